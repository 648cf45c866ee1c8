class ChronostasisError(Exception):
    """Base error for the visualizer"""


class PoseSourceUnavailableError(ChronostasisError):
    """Pose estimation backend is missing or cannot be constructed"""


class CameraAccessError(ChronostasisError):
    """Camera could not be opened (missing device or permission denied)"""
