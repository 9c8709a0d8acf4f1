#The code is according to PEP 8 Coding styles standards
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from camptrainer.errors import InvalidExerciseConfig, UnsupportedExerciseError


class ExerciseType(str, Enum):
    """Exercises that can be tracked through the camera."""
    SQUATS = 'squats'
    JUMPING_JACKS = 'jumping_jacks'
    PUSHUPS = 'pushups'

    @classmethod
    def parse(cls, value: Any) -> 'ExerciseType':
        """Resolve the names used by task documents and the admin forms."""
        if isinstance(value, cls):
            return value
        key = str(value or '').strip().lower().replace('-', '').replace(' ', '').replace('_', '')
        aliases = {
            'squat': cls.SQUATS,
            'squats': cls.SQUATS,
            'jumpingjack': cls.JUMPING_JACKS,
            'jumpingjacks': cls.JUMPING_JACKS,
            'pushup': cls.PUSHUPS,
            'pushups': cls.PUSHUPS,
        }
        if key not in aliases:
            raise UnsupportedExerciseError(str(value))
        return aliases[key]


class Phase(str, Enum):
    """Pose phase reported by a detector for the current frame."""
    UNKNOWN = 'unknown'
    DOWN = 'down'
    UP = 'up'
    EXTENDED = 'extended'
    CLOSED = 'closed'
    TRANSITION = 'transition'


@dataclass(frozen=True)
class ExerciseConfig:
    """
    Parameters of one camera-tracked exercise task.
    Defaults match a task that only names its exercise.
    """
    exercise_type: ExerciseType = ExerciseType.SQUATS
    reps_per_set: int = 5
    sets: int = 2
    rest_seconds: int = 5
    language: str = 'en'

    def __post_init__(self):
        """Normalize the exercise type and reject impossible targets."""
        object.__setattr__(self, 'exercise_type', ExerciseType.parse(self.exercise_type))
        if self.reps_per_set < 1:
            raise InvalidExerciseConfig('reps_per_set must be at least 1')
        if self.sets < 1:
            raise InvalidExerciseConfig('sets must be at least 1')
        if self.rest_seconds < 0:
            raise InvalidExerciseConfig('rest_seconds cannot be negative')

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], default_language: str = 'en') -> 'ExerciseConfig':
        """Build a config from a task document or request body.

        Accepts both snake_case keys and the camelCase keys stored with
        tasks (exerciseType, repsPerSet or reps, sets, restTime).
        """
        def pick(*keys, default=None):
            for key in keys:
                if data.get(key) is not None:
                    return data[key]
            return default

        try:
            return cls(
                exercise_type=pick('exercise_type', 'exerciseType', default='squats'),
                reps_per_set=int(pick('reps_per_set', 'repsPerSet', 'reps', default=5)),
                sets=int(pick('sets', default=2)),
                rest_seconds=int(pick('rest_seconds', 'restTime', default=5)),
                language=str(pick('language', default=default_language)),
            )
        except (TypeError, ValueError) as e:
            raise InvalidExerciseConfig(f'Invalid exercise config: {e}') from e

    def to_dict(self) -> Dict[str, Any]:
        return {
            'exercise_type': self.exercise_type.value,
            'reps_per_set': self.reps_per_set,
            'sets': self.sets,
            'rest_seconds': self.rest_seconds,
            'language': self.language,
        }


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of running a detector over one frame of landmarks."""
    recognized: bool
    phase: Phase = Phase.UNKNOWN
    message: str = ''
    rep_completed: bool = False
    metrics: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class SessionEvent:
    """Something the client should show, say or play."""
    kind: str
    value: Optional[int] = None
    message: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind, 'value': self.value, 'message': self.message}
