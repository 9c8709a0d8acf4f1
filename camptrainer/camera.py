"""Webcam access for the local runner."""

import logging
import os
import sys
from typing import Optional, Tuple

import cv2
import numpy as np

from camptrainer.errors import CameraNotFoundError, CameraPermissionError

logger = logging.getLogger("CameraSource")


class CameraSource:
    """OpenCV capture device that is opened once and released once.

    Attributes:
        index: OpenCV device index
        width: Requested frame width
        height: Requested frame height
        release_count: How many times the device was actually released
    """

    def __init__(self, index: int = 0, width: int = 640, height: int = 480) -> None:
        self.index = index
        self.width = width
        self.height = height
        self.release_count = 0
        self._capture: Optional[cv2.VideoCapture] = None

    @property
    def is_open(self) -> bool:
        return self._capture is not None

    def open(self) -> None:
        """Acquire the device.

        Raises:
            CameraPermissionError: If the OS denies access to the device node
            CameraNotFoundError: If no device answers at this index
        """
        if self._capture is not None:
            return

        device_path = f'/dev/video{self.index}'
        if sys.platform.startswith('linux') and os.path.exists(device_path):
            if not os.access(device_path, os.R_OK | os.W_OK):
                raise CameraPermissionError(
                    'Camera permission denied. Please allow camera access and try again.'
                )

        capture = cv2.VideoCapture(self.index)
        if not capture.isOpened():
            capture.release()
            raise CameraNotFoundError('No camera found on this device.')

        capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self._capture = capture
        logger.info("Camera %d opened", self.index)

    def read(self) -> Tuple[bool, Optional[np.ndarray]]:
        """Grab one BGR frame; returns (False, None) when nothing was read."""
        if self._capture is None:
            return False, None
        ok, frame = self._capture.read()
        if not ok or frame is None:
            return False, None
        return True, frame

    def release(self) -> None:
        """Release the device; later calls do nothing."""
        capture, self._capture = self._capture, None
        if capture is None:
            return
        capture.release()
        self.release_count += 1
        logger.info("Camera %d released", self.index)

    def __enter__(self) -> 'CameraSource':
        self.open()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.release()
