"""Exception types raised by the exercise tracking backend."""

from typing import List, Optional


class CampTrainerError(Exception):
    """Base class for all backend errors."""


class UnsupportedExerciseError(CampTrainerError):
    """Raised when no camera detector exists for an exercise type."""

    def __init__(self, exercise_type: str) -> None:
        super().__init__(
            f"Exercise detection not available for '{exercise_type}'. "
            "Please mark complete manually."
        )
        self.exercise_type = exercise_type


class InvalidExerciseConfig(CampTrainerError):
    """Raised when reps, sets or rest values are out of range."""


class SessionDisposedError(CampTrainerError):
    """Raised when a frame is fed to a session that was already disposed."""


class CameraError(CampTrainerError):
    """Camera acquisition failure with remediation hints for the trainee.

    Attributes:
        kind: Short machine-readable failure kind
        suggestions: Steps the trainee can take to fix the problem
    """

    kind = 'camera'
    default_suggestions: List[str] = [
        'Check camera permissions',
        'Ensure camera is not being used by another app',
        'Try refreshing the page',
    ]

    def __init__(self, message: str, suggestions: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.suggestions = list(suggestions or self.default_suggestions)


class CameraPermissionError(CameraError):
    kind = 'permission_denied'
    default_suggestions = [
        'Click allow when prompted for camera access',
        'Check browser camera permissions',
        'Reload the page and try again',
    ]


class CameraNotFoundError(CameraError):
    kind = 'device_not_found'
    default_suggestions = [
        'Connect a camera to your device',
        'Try using a different device',
        'Check if camera is properly connected',
    ]


class PoseModelUnavailableError(CampTrainerError):
    """Raised when the MediaPipe pose landmarker model file is missing."""

    def __init__(self, model_path: str) -> None:
        super().__init__(
            f"Pose model not found at '{model_path}'. Download pose_landmarker_full.task "
            "from the MediaPipe model page and set POSE_MODEL_PATH."
        )
        self.model_path = model_path
