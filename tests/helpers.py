from chronostasis.algo.topology import NUM_POSE_LANDMARKS
from chronostasis.core.types import Landmark, PoseFrame


def full_landmarks(offset=0.0):
    return [
        Landmark(x=0.2 + 0.6 * i / NUM_POSE_LANDMARKS + offset, y=0.1 + 0.8 * i / NUM_POSE_LANDMARKS, z=-0.1, visibility=0.9)
        for i in range(NUM_POSE_LANDMARKS)
    ]


def make_frame(ts, landmarks=None, missing=()):
    lms = full_landmarks() if landmarks is None else list(landmarks)
    for k in missing:
        lms[k] = None
    return PoseFrame.create(ts, lms)
