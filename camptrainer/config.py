"""Tunable thresholds, timings and server settings."""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class DetectionThresholds:
    """Pose thresholds shared by all exercise detectors.

    Image y grows downward, so "above" means a smaller y value.
    """
    visibility: float = 0.5

    # Squat knee angles (degrees); the gap between them is the hysteresis band
    squat_bent_angle: float = 120.0
    squat_extended_angle: float = 150.0

    # Push-up average elbow angles (degrees)
    pushup_bent_angle: float = 90.0
    pushup_extended_angle: float = 160.0

    # Jumping jacks
    jack_arm_margin: float = 0.05  # fraction of frame height above shoulders
    jack_leg_spread_ratio: float = 1.5  # ankle distance / shoulder width
    jack_refractory_seconds: float = 0.5


@dataclass(frozen=True)
class CounterTimings:
    """Delays driving the set/rest state machine, in seconds."""
    set_complete_delay: float = 2.0
    completion_delay: float = 3.0
    rest_tick: float = 1.0
    countdown_from: int = 5


@dataclass(frozen=True)
class Settings:
    """Server settings read from the environment."""
    host: str = '0.0.0.0'
    port: int = 10000
    log_level: str = 'INFO'
    default_language: str = 'en'
    pose_model_path: str = 'pose_landmarker_full.task'

    @classmethod
    def from_env(cls) -> 'Settings':
        return cls(
            host=os.environ.get('HOST', cls.host),
            port=int(os.environ.get('PORT', cls.port)),
            log_level=os.environ.get('LOG_LEVEL', cls.log_level).upper(),
            default_language=os.environ.get('DEFAULT_LANGUAGE', cls.default_language),
            pose_model_path=os.environ.get('POSE_MODEL_PATH', cls.pose_model_path),
        )
