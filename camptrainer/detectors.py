"""Per-exercise repetition detectors.

Each detector looks at one frame of named landmarks and decides which phase
of the movement the trainee is in. The only state carried between frames is
whether the trainee already reached the flagged position (bent knees, bent
elbows, or the extended jumping-jack star), plus the refractory clock for
jumping jacks. Detectors never touch the camera, the counter or the UI.
"""

import logging
from typing import Dict, Optional, Tuple

from camptrainer.config import DetectionThresholds
from camptrainer.feedback import FeedbackComposer
from camptrainer.landmarks import (
    LEFT_ELBOW,
    LEFT_KNEE,
    RIGHT_ELBOW,
    RIGHT_KNEE,
    BodyLandmarks,
    joint_angle,
)
from camptrainer.models import DetectionResult, ExerciseType, Phase

logger = logging.getLogger("Detectors")


class ExerciseDetector:
    """Shared visibility gate and message lookup for all detectors.

    Attributes:
        required_joints: Joints that must be visible to evaluate a frame
        thresholds: Angle, distance and visibility thresholds
        feedback: Message catalog in the session language
        flagged: Whether the trainee is currently in the flagged position
    """

    required_joints: Tuple[str, ...] = ()

    def __init__(
        self,
        thresholds: Optional[DetectionThresholds] = None,
        feedback: Optional[FeedbackComposer] = None
    ) -> None:
        self.thresholds = thresholds or DetectionThresholds()
        self.feedback = feedback or FeedbackComposer()
        self.flagged: bool = False

    def detect(self, body: Optional[BodyLandmarks], now: float) -> DetectionResult:
        """Classify one frame of landmarks.

        Args:
            body: Named landmarks, or None when no person was found
            now: Frame timestamp in seconds

        Returns:
            DetectionResult; ``recognized`` is False whenever a required
            joint is missing or below the visibility threshold
        """
        if body is None:
            return DetectionResult(recognized=False, message=self.feedback.message('no_body'))
        if not body.visible(self.required_joints, self.thresholds.visibility):
            return DetectionResult(
                recognized=False,
                message=self.feedback.message('show_full_body')
            )
        return self._classify(body, now)

    def reset(self) -> None:
        """Forget the carried pose state, e.g. when a new set begins."""
        self.flagged = False

    def _classify(self, body: BodyLandmarks, now: float) -> DetectionResult:
        raise NotImplementedError

    def _result(
        self,
        phase: Phase,
        message_key: str,
        metrics: Dict[str, float],
        rep_completed: bool = False
    ) -> DetectionResult:
        return DetectionResult(
            recognized=True,
            phase=phase,
            message=self.feedback.message(message_key),
            rep_completed=rep_completed,
            metrics=metrics
        )


class AngleHysteresisDetector(ExerciseDetector):
    """Counts a rep when a joint angle dips below one cutoff and rises above another.

    The gap between the bent and extended cutoffs keeps angle jitter
    near a single cutoff from producing double counts.
    """

    message_prefix = ''

    def _angles(self, body: BodyLandmarks) -> Dict[str, float]:
        raise NotImplementedError

    def _bent(self, angles: Dict[str, float]) -> bool:
        raise NotImplementedError

    def _extended(self, angles: Dict[str, float]) -> bool:
        raise NotImplementedError

    def _classify(self, body: BodyLandmarks, now: float) -> DetectionResult:
        angles = self._angles(body)
        prefix = self.message_prefix

        if self._bent(angles):
            self.flagged = True
            return self._result(Phase.DOWN, f'{prefix}_down', angles)

        if self._extended(angles):
            if self.flagged:
                self.flagged = False
                logger.debug("%s rep completed with angles %s", prefix, angles)
                return self._result(Phase.UP, f'{prefix}_rep', angles, rep_completed=True)
            return self._result(Phase.UP, f'{prefix}_ready', angles)

        return self._result(Phase.TRANSITION, f'{prefix}_transition', angles)


class SquatDetector(AngleHysteresisDetector):
    """Both knees bent below the bent cutoff, then both straightened past the extended cutoff."""

    required_joints = LEFT_KNEE + RIGHT_KNEE
    message_prefix = 'squat'

    def _angles(self, body: BodyLandmarks) -> Dict[str, float]:
        return {
            'left_knee_angle': joint_angle(body, LEFT_KNEE),
            'right_knee_angle': joint_angle(body, RIGHT_KNEE),
        }

    def _bent(self, angles: Dict[str, float]) -> bool:
        cutoff = self.thresholds.squat_bent_angle
        return angles['left_knee_angle'] < cutoff and angles['right_knee_angle'] < cutoff

    def _extended(self, angles: Dict[str, float]) -> bool:
        cutoff = self.thresholds.squat_extended_angle
        return angles['left_knee_angle'] > cutoff and angles['right_knee_angle'] > cutoff


class PushupDetector(AngleHysteresisDetector):
    """Average elbow angle of both arms goes below the bent cutoff and back above the extended one."""

    required_joints = LEFT_ELBOW + RIGHT_ELBOW
    message_prefix = 'pushup'

    def _angles(self, body: BodyLandmarks) -> Dict[str, float]:
        left = joint_angle(body, LEFT_ELBOW)
        right = joint_angle(body, RIGHT_ELBOW)
        return {
            'left_elbow_angle': left,
            'right_elbow_angle': right,
            'elbow_angle': (left + right) / 2,
        }

    def _bent(self, angles: Dict[str, float]) -> bool:
        return angles['elbow_angle'] < self.thresholds.pushup_bent_angle

    def _extended(self, angles: Dict[str, float]) -> bool:
        return angles['elbow_angle'] > self.thresholds.pushup_extended_angle


class JumpingJackDetector(ExerciseDetector):
    """Counts a rep on the return from the extended star to the closed stance.

    Extended means both wrists are above their shoulders and the feet are
    wider apart than the shoulders by the spread ratio. Closed means neither
    holds. Poses that are only half-way stay in transition.

    Attributes:
        last_rep_time: Timestamp of the last counted rep, for the refractory window
    """

    required_joints = (
        'left_shoulder', 'right_shoulder',
        'left_wrist', 'right_wrist',
        'left_ankle', 'right_ankle',
    )

    def __init__(
        self,
        thresholds: Optional[DetectionThresholds] = None,
        feedback: Optional[FeedbackComposer] = None
    ) -> None:
        super().__init__(thresholds, feedback)
        self.last_rep_time: Optional[float] = None

    def reset(self) -> None:
        super().reset()
        self.last_rep_time = None

    def _classify(self, body: BodyLandmarks, now: float) -> DetectionResult:
        margin = self.thresholds.jack_arm_margin
        arms_up = (body.left_wrist.y < body.left_shoulder.y - margin and
                   body.right_wrist.y < body.right_shoulder.y - margin)

        ankle_distance = abs(body.left_ankle.x - body.right_ankle.x)
        shoulder_width = abs(body.left_shoulder.x - body.right_shoulder.x)
        legs_apart = ankle_distance > shoulder_width * self.thresholds.jack_leg_spread_ratio

        metrics = {
            'ankle_distance': ankle_distance,
            'shoulder_width': shoulder_width,
            'wrist_lift': ((body.left_shoulder.y - body.left_wrist.y) +
                           (body.right_shoulder.y - body.right_wrist.y)) / 2,
        }

        if arms_up and legs_apart:
            if not self._in_refractory(now):
                self.flagged = True
            return self._result(Phase.EXTENDED, 'jack_extended', metrics)

        if not arms_up and not legs_apart:
            if self.flagged:
                self.flagged = False
                self.last_rep_time = now
                return self._result(Phase.CLOSED, 'jack_rep', metrics, rep_completed=True)
            return self._result(Phase.CLOSED, 'jack_ready', metrics)

        return self._result(Phase.TRANSITION, 'jack_transition', metrics)

    def _in_refractory(self, now: float) -> bool:
        if self.last_rep_time is None:
            return False
        return now - self.last_rep_time < self.thresholds.jack_refractory_seconds


DETECTORS = {
    ExerciseType.SQUATS: SquatDetector,
    ExerciseType.JUMPING_JACKS: JumpingJackDetector,
    ExerciseType.PUSHUPS: PushupDetector,
}


def create_detector(
    exercise_type: ExerciseType,
    thresholds: Optional[DetectionThresholds] = None,
    feedback: Optional[FeedbackComposer] = None
) -> ExerciseDetector:
    """Instantiate the detector registered for an exercise type."""
    return DETECTORS[exercise_type](thresholds, feedback)
