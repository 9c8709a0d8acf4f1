"""Exercise sessions: one camera-tracked task from first frame to teardown.

A session glues a detector to the counter state machine, runs the delayed
events the counter asks for (set-complete overlay, rest countdown,
completion banner) on a scheduler, and owns the camera handle so it can be
released exactly once however the session ends.
"""

import logging
import threading
import time
import uuid
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Union

from camptrainer.config import CounterTimings, DetectionThresholds
from camptrainer.counter import (
    Active,
    CounterEvent,
    Effect,
    EffectKind,
    ExerciseComplete,
    RepConfirmed,
    Resting,
    Schedule,
    SetComplete,
    initial_state,
    is_detecting,
    transition,
)
from camptrainer.detectors import ExerciseDetector, create_detector
from camptrainer.errors import SessionDisposedError
from camptrainer.feedback import FeedbackComposer
from camptrainer.landmarks import BodyLandmarks, from_payload
from camptrainer.models import DetectionResult, ExerciseConfig, SessionEvent

logger = logging.getLogger("ExerciseSession")


class ThreadingScheduler:
    """Runs callbacks after a delay on daemon timer threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class ExerciseSession:
    """Tracks reps and sets for one exercise task.

    Frames are fed synchronously; counter timers fire on the scheduler and
    their events are queued until the next ``feed_frame`` or
    ``drain_events`` call. Both paths share one lock, so the counter state
    is only ever touched by one thread at a time.

    Attributes:
        session_id: Opaque identifier handed to HTTP clients
        config: Exercise targets
        detector: Per-exercise rep detector
        state: Current counter state
        last_detection: Detector result for the most recent frame
        frame_lock: Serializes image frames through the session's pose analyzer
    """

    def __init__(
        self,
        config: ExerciseConfig,
        detector: Optional[ExerciseDetector] = None,
        scheduler: Optional[Any] = None,
        clock: Callable[[], float] = time.monotonic,
        timings: Optional[CounterTimings] = None,
        thresholds: Optional[DetectionThresholds] = None,
        camera: Optional[Any] = None,
        on_effect: Optional[Callable[[SessionEvent], None]] = None,
        on_complete: Optional[Callable[['ExerciseSession'], None]] = None
    ) -> None:
        self.session_id = uuid.uuid4().hex
        self.config = config
        self.timings = timings or CounterTimings()
        self.feedback = FeedbackComposer(config.language)
        self.detector = detector or create_detector(
            config.exercise_type, thresholds, self.feedback
        )
        self.scheduler = scheduler or ThreadingScheduler()
        self.state = initial_state()
        self.last_detection: Optional[DetectionResult] = None

        self._clock = clock
        self._camera = camera
        self._pose_analyzer: Optional[Any] = None
        self._on_effect = on_effect
        self._on_complete = on_complete
        self._lock = threading.RLock()
        self.frame_lock = threading.RLock()
        self._timers: Set[Any] = set()
        self._pending: List[SessionEvent] = []
        self._disposed = False

        logger.info(
            "Session %s started: %s, %d x %d reps, %ds rest",
            self.session_id, config.exercise_type.value,
            config.sets, config.reps_per_set, config.rest_seconds
        )

    @property
    def rep(self) -> int:
        return self.state.rep

    @property
    def set_number(self) -> int:
        return self.state.set

    @property
    def detection_active(self) -> bool:
        return not self._disposed and is_detecting(self.state)

    @property
    def is_complete(self) -> bool:
        return isinstance(self.state, ExerciseComplete)

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    def feed_frame(self, body: Optional[BodyLandmarks]) -> List[SessionEvent]:
        """Run detection on one frame and advance the counter.

        Args:
            body: Named landmarks, or None when no person is in view

        Returns:
            Events queued by timers since the last call, followed by this
            frame's feedback and any counter effects it triggered. While
            resting or after completion the frame is not analysed.

        Raises:
            SessionDisposedError: If the session was already disposed
        """
        with self._lock:
            if self._disposed:
                raise SessionDisposedError(f"Session {self.session_id} is disposed")

            events = self._take_pending()
            if not is_detecting(self.state):
                return events

            result = self.detector.detect(body, self._clock())
            self.last_detection = result
            events.append(SessionEvent('feedback', None, result.message))

            if result.rep_completed:
                events.extend(self._dispatch(RepConfirmed()))
            return events

    def pose_analyzer(self, factory: Callable[[], Any]) -> Any:
        """Return the pose analyzer tracking this session's video stream.

        The analyzer is built by ``factory`` on first use and closed on
        dispose. Trainees never share one, since it carries tracking state
        from frame to frame.

        Raises:
            SessionDisposedError: If the session was already disposed
        """
        with self._lock:
            if self._disposed:
                raise SessionDisposedError(f"Session {self.session_id} is disposed")
            if self._pose_analyzer is None:
                self._pose_analyzer = factory()
            return self._pose_analyzer

    def drain_events(self) -> List[SessionEvent]:
        """Return and clear the events produced by timers."""
        with self._lock:
            return self._take_pending()

    def status(self) -> Dict[str, Any]:
        """Snapshot of progress for the client display."""
        with self._lock:
            state = self.state
            reps_left = max(self.config.reps_per_set - state.rep, 0)
            message = ''
            if self.last_detection is not None:
                message = self.last_detection.message
            if isinstance(state, Active) and state.rep > 0:
                message = self.feedback.remaining(reps_left)
            elif isinstance(state, SetComplete):
                message = self.feedback.message('set_completed')
            elif isinstance(state, Resting):
                message = self.feedback.message('rest_started')
            elif isinstance(state, ExerciseComplete):
                message = self.feedback.message('exercise_completed')

            return {
                'session_id': self.session_id,
                'exercise': self.config.to_dict(),
                'state': type(state).__name__,
                'rep': state.rep,
                'set': state.set,
                'reps_left': reps_left,
                'rest_remaining': state.remaining if isinstance(state, Resting) else 0,
                'detection_active': self.detection_active,
                'complete': self.is_complete,
                'disposed': self._disposed,
                'message': message,
                'speech_language': self.feedback.speech_language(),
            }

    def dispose(self) -> None:
        """Cancel timers, release the camera and close the pose analyzer.

        Safe to call more than once.
        """
        with self._lock:
            if self._disposed:
                return
            self._disposed = True

            for timer in list(self._timers):
                timer.cancel()
            self._timers.clear()
            self._pending.clear()
            self.detector.reset()

            camera, self._camera = self._camera, None
            if camera is not None:
                camera.release()
            analyzer, self._pose_analyzer = self._pose_analyzer, None

        if analyzer is not None:
            # Wait for a frame still running through the analyzer
            with self.frame_lock:
                analyzer.close()

        logger.info("Session %s disposed at set %d rep %d",
                    self.session_id, self.state.set, self.state.rep)

    def __enter__(self) -> 'ExerciseSession':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.dispose()

    def _take_pending(self) -> List[SessionEvent]:
        events, self._pending = self._pending, []
        return events

    def _dispatch(self, event: CounterEvent) -> List[SessionEvent]:
        """Apply a counter event and carry out the resulting effects.

        Must be called with the lock held.
        """
        self.state, outputs = transition(self.state, event, self.config, self.timings)
        events = []
        for output in outputs:
            if isinstance(output, Schedule):
                self._schedule(output)
                continue
            events.append(self._perform(output))
        return events

    def _perform(self, effect: Effect) -> SessionEvent:
        event = SessionEvent(effect.kind.value, effect.value, self.feedback.describe(effect))
        logger.debug("Session %s effect %s", self.session_id, event)

        if effect.kind == EffectKind.REST_OVER:
            self.detector.reset()
            self.last_detection = None

        if self._on_effect is not None:
            try:
                self._on_effect(event)
            except Exception:
                logger.exception("Effect handler failed for %s", event.kind)

        if effect.kind == EffectKind.COMPLETION_DUE and self._on_complete is not None:
            try:
                self._on_complete(self)
            except Exception:
                logger.exception("Completion callback failed for session %s", self.session_id)
        return event

    def _schedule(self, request: Schedule) -> None:
        handle = None

        def fire() -> None:
            with self._lock:
                self._timers.discard(handle)
                if self._disposed:
                    return
                self._pending.extend(self._dispatch(request.event))

        handle = self.scheduler.call_later(request.delay, fire)
        self._timers.add(handle)


def create_session(
    config: Union[ExerciseConfig, Mapping[str, Any]],
    camera: Optional[Any] = None,
    **kwargs: Any
) -> ExerciseSession:
    """Open a session, acquiring the camera first when one is given.

    Args:
        config: ExerciseConfig or a task document to build one from
        camera: Camera resource exposing ``open`` and ``release``
        **kwargs: Passed through to ExerciseSession

    Returns:
        A running ExerciseSession that owns the camera

    Raises:
        CameraError: If the camera cannot be opened; no session is created
        UnsupportedExerciseError: If the exercise has no detector
        InvalidExerciseConfig: If reps, sets or rest are out of range
    """
    if not isinstance(config, ExerciseConfig):
        config = ExerciseConfig.from_dict(config)
    if camera is not None:
        camera.open()
    try:
        return ExerciseSession(config, camera=camera, **kwargs)
    except Exception:
        if camera is not None:
            camera.release()
        raise


def feed_frame(session: ExerciseSession, landmarks: Any) -> List[SessionEvent]:
    """Feed named landmarks, an index-ordered list or a joint mapping."""
    if landmarks is not None and not isinstance(landmarks, BodyLandmarks):
        landmarks = from_payload(landmarks)
    return session.feed_frame(landmarks)


def dispose(session: ExerciseSession) -> None:
    session.dispose()
