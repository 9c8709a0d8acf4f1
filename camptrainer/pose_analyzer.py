"""Human pose analysis module using MediaPipe.

This module is the landmark provider: it runs the MediaPipe pose landmarker
on a stream of frames and hands back the raw 33-point landmark list of the
first person in view. One analyzer follows one video stream; its tracking
state must not be shared between trainees.
"""

import logging
import os
import time
from typing import Any, List, Optional, Sequence

import cv2
import mediapipe as mp
import numpy as np

from camptrainer.config import DetectionThresholds, Settings
from camptrainer.errors import PoseModelUnavailableError
from camptrainer.landmarks import POSE_INDICES

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("PoseAnalyzer")

# Bones drawn between the tracked joints
SKELETON = (
    ('left_shoulder', 'right_shoulder'),
    ('left_shoulder', 'left_elbow'), ('left_elbow', 'left_wrist'),
    ('right_shoulder', 'right_elbow'), ('right_elbow', 'right_wrist'),
    ('left_shoulder', 'left_hip'), ('right_shoulder', 'right_hip'),
    ('left_hip', 'right_hip'),
    ('left_hip', 'left_knee'), ('left_knee', 'left_ankle'),
    ('right_hip', 'right_knee'), ('right_knee', 'right_ankle'),
)


class PoseAnalyzer:
    """Analyzes human body pose using the MediaPipe pose landmarker.

    Attributes:
        landmarker: MediaPipe PoseLandmarker running in video mode
        thresholds: Visibility threshold used when drawing keypoints
        model_path: Path of the .task model bundle
    """

    def __init__(
        self,
        model_path: Optional[str] = None,
        thresholds: Optional[DetectionThresholds] = None
    ) -> None:
        """Load the pose model.

        Raises:
            PoseModelUnavailableError: If the model file does not exist
        """
        self.model_path = model_path or Settings.from_env().pose_model_path
        if not os.path.isfile(self.model_path):
            raise PoseModelUnavailableError(self.model_path)

        vision = mp.tasks.vision
        options = vision.PoseLandmarkerOptions(
            base_options=mp.tasks.BaseOptions(model_asset_path=self.model_path),
            running_mode=vision.RunningMode.VIDEO,
            num_poses=1,
            min_pose_detection_confidence=0.5,
            min_pose_presence_confidence=0.5,
            min_tracking_confidence=0.5
        )
        self.landmarker = vision.PoseLandmarker.create_from_options(options)
        self.thresholds = thresholds or DetectionThresholds()
        self._last_timestamp_ms = -1
        logger.info("Pose landmarker loaded from %s", self.model_path)

    def analyze_pose(self, frame_rgb: np.ndarray) -> Optional[List[Any]]:
        """Run pose estimation on the next RGB frame of the stream.

        Args:
            frame_rgb: Input frame in RGB format with shape (H, W, 3)

        Returns:
            Index-ordered landmarks of the first pose, or None if no pose detected
        """
        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=frame_rgb)
        result = self.landmarker.detect_for_video(image, self._next_timestamp())
        if not result.pose_landmarks:
            return None
        return result.pose_landmarks[0]

    def draw_pose(self, frame: np.ndarray, landmarks: Sequence[Any]) -> np.ndarray:
        """Draw the skeleton and key joints on a BGR frame in place.

        Args:
            frame: Input BGR frame
            landmarks: Index-ordered landmarks from ``analyze_pose``

        Returns:
            Annotated frame
        """
        frame_height, frame_width = frame.shape[:2]
        points = {}
        for name, index in POSE_INDICES.items():
            landmark = landmarks[index]
            if (landmark.visibility or 0.0) > self.thresholds.visibility:
                points[name] = (int(landmark.x * frame_width), int(landmark.y * frame_height))

        for start, end in SKELETON:
            if start in points and end in points:
                cv2.line(frame, points[start], points[end], (255, 255, 255), 2)
        for point in points.values():
            cv2.circle(frame, point, 5, (246, 130, 59), -1)  # Blue

        return frame

    def close(self) -> None:
        """Release all MediaPipe resources."""
        self.landmarker.close()

    def _next_timestamp(self) -> int:
        # Video mode rejects timestamps that do not increase
        timestamp_ms = max(int(time.monotonic() * 1000), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = timestamp_ms
        return timestamp_ms
