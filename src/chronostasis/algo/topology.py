# MediaPipe Pose landmark indices (33-point model)
NUM_POSE_LANDMARKS = 33

POSE_CONNECTIONS = (
    # Torso and arms
    (11, 12), (11, 13), (13, 15), (12, 14), (14, 16),
    (11, 23), (12, 24), (23, 24),
    # Legs
    (23, 25), (25, 27), (24, 26), (26, 28),
    # Feet
    (27, 29), (29, 31), (27, 31),
    (28, 30), (30, 32), (28, 32),
    # Hands
    (15, 17), (17, 19), (19, 21), (15, 21),
    (16, 18), (18, 20), (20, 22), (16, 22),
    # Mouth
    (9, 10),
)

FACE_CONNECTIONS = (
    (0, 1), (1, 2), (2, 3), (3, 7),
    (0, 4), (4, 5), (5, 6), (6, 8),
)

ALL_CONNECTIONS = POSE_CONNECTIONS + FACE_CONNECTIONS
