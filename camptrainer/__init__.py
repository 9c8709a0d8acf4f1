"""Camera-tracked rep and set counting for camp exercise tasks."""

from camptrainer.models import ExerciseConfig, ExerciseType
from camptrainer.session import ExerciseSession, create_session, dispose, feed_frame

__version__ = '0.1.0'

__all__ = [
    'ExerciseConfig',
    'ExerciseSession',
    'ExerciseType',
    'create_session',
    'dispose',
    'feed_frame',
]
