"""Frame processing pipeline for camera-tracked exercises.

This module handles the complete frame processing pipeline including:
- Pose detection with the session's own analyzer
- Landmark conversion and visualization
- Feeding the exercise session
- Progress overlay drawing
"""

import time
from typing import Any, Callable, Dict

import cv2
import numpy as np

from camptrainer.landmarks import from_indexed
from camptrainer.pose_analyzer import PoseAnalyzer
from camptrainer.session import ExerciseSession


class FrameProcessor:
    """Processes video frames through pose detection into an exercise session.

    The processor holds no tracking state, so one instance can serve many
    sessions. Each session gets its own analyzer from ``analyzer_factory``.

    Attributes:
        analyzer_factory: Builds a pose analyzer for a new session
        draw_overlay: Whether to annotate returned frames
    """

    def __init__(
        self,
        analyzer_factory: Callable[[], Any] = PoseAnalyzer,
        draw_overlay: bool = True
    ) -> None:
        """Initialize processing pipeline."""
        self.analyzer_factory = analyzer_factory
        self.draw_overlay = draw_overlay

    def process_frame(
        self,
        frame: np.ndarray,
        session: ExerciseSession
    ) -> Dict[str, Any]:
        """Process a video frame for exercise analysis.

        Args:
            frame: Input BGR frame (H, W, 3)
            session: Active exercise session

        Returns:
            Dictionary containing:
                - annotated_frame: Visualized analysis results
                - events: Session events as dictionaries
                - status: Session progress snapshot
                - debug: Processing metadata

        Raises:
            SessionDisposedError: If the session was disposed
        """
        with session.frame_lock:
            return self._process(frame, session)

    def _process(self, frame: np.ndarray, session: ExerciseSession) -> Dict[str, Any]:
        analyzer = session.pose_analyzer(self.analyzer_factory)
        annotated_frame = frame.copy()

        response: Dict[str, Any] = {
            'annotated_frame': annotated_frame,
            'events': [],
            'status': {},
            'debug': {
                'timestamp': time.time(),
                'landmarks_visible': False,
                'detection_active': session.detection_active
            }
        }

        # Skip pose estimation while the session is not counting
        body = None
        landmarks = None
        if session.detection_active:
            frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
            landmarks = analyzer.analyze_pose(frame_rgb)
            if landmarks is not None:
                body = from_indexed(landmarks)
                response['debug']['landmarks_visible'] = True

        events = session.feed_frame(body)
        response['events'] = [event.to_dict() for event in events]
        response['status'] = session.status()

        if session.last_detection is not None:
            response['debug']['metrics'] = session.last_detection.metrics

        if self.draw_overlay:
            if landmarks is not None:
                analyzer.draw_pose(annotated_frame, landmarks)
            self._draw_progress(annotated_frame, response['status'])

        return response

    def _draw_progress(self, frame: np.ndarray, status: Dict[str, Any]) -> None:
        """Draw rep, set and status text in the top-left corner.

        Args:
            frame: Frame to draw on
            status: Session status snapshot
        """
        lines = [
            f"Set {status['set']}/{status['exercise']['sets']}  "
            f"Reps {status['rep']}/{status['exercise']['reps_per_set']}",
        ]
        if status['rest_remaining']:
            lines.append(f"Rest: {status['rest_remaining']}s")
        if status['message']:
            lines.append(status['message'])

        y = 30
        for line in lines:
            cv2.putText(frame, line, (10, y), cv2.FONT_HERSHEY_SIMPLEX,
                        0.7, (0, 255, 0), 2)
            y += 30
