"""Named body landmarks and the joint geometry built on them.

Pose providers hand out landmarks as index-ordered lists following the
33-point BlazePose convention. This module turns those lists (or JSON
payloads from the browser) into a record with one field per joint, so the
detectors never deal with raw indices.
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class Landmark:
    """One normalized body joint position with its visibility confidence."""
    x: float
    y: float
    visibility: float = 1.0


@dataclass(frozen=True)
class BodyLandmarks:
    """Joints used by the exercise detectors; missing joints are None."""
    nose: Optional[Landmark] = None
    left_shoulder: Optional[Landmark] = None
    right_shoulder: Optional[Landmark] = None
    left_elbow: Optional[Landmark] = None
    right_elbow: Optional[Landmark] = None
    left_wrist: Optional[Landmark] = None
    right_wrist: Optional[Landmark] = None
    left_hip: Optional[Landmark] = None
    right_hip: Optional[Landmark] = None
    left_knee: Optional[Landmark] = None
    right_knee: Optional[Landmark] = None
    left_ankle: Optional[Landmark] = None
    right_ankle: Optional[Landmark] = None

    def visible(self, names: Sequence[str], threshold: float) -> bool:
        """Check that every named joint is present and confidently seen.

        Args:
            names: Joint field names
            threshold: Minimum visibility, exclusive

        Returns:
            True only if all joints pass
        """
        for name in names:
            landmark = getattr(self, name)
            if landmark is None or landmark.visibility <= threshold:
                return False
        return True

    def to_dict(self) -> Dict[str, Optional[Dict[str, float]]]:
        result = {}
        for item in fields(self):
            landmark = getattr(self, item.name)
            result[item.name] = None if landmark is None else {
                'x': landmark.x, 'y': landmark.y, 'visibility': landmark.visibility
            }
        return result


# BlazePose / MediaPipe Pose landmark indices
POSE_INDICES: Dict[str, int] = {
    'nose': 0,
    'left_shoulder': 11,
    'right_shoulder': 12,
    'left_elbow': 13,
    'right_elbow': 14,
    'left_wrist': 15,
    'right_wrist': 16,
    'left_hip': 23,
    'right_hip': 24,
    'left_knee': 25,
    'right_knee': 26,
    'left_ankle': 27,
    'right_ankle': 28,
}

# Vertex is the middle joint
JointTriple = Tuple[str, str, str]

LEFT_KNEE: JointTriple = ('left_hip', 'left_knee', 'left_ankle')
RIGHT_KNEE: JointTriple = ('right_hip', 'right_knee', 'right_ankle')
LEFT_ELBOW: JointTriple = ('left_shoulder', 'left_elbow', 'left_wrist')
RIGHT_ELBOW: JointTriple = ('right_shoulder', 'right_elbow', 'right_wrist')


def _to_landmark(raw: Any) -> Optional[Landmark]:
    if raw is None:
        return None
    if isinstance(raw, Landmark):
        return raw
    if isinstance(raw, Mapping):
        return Landmark(
            x=float(raw['x']),
            y=float(raw['y']),
            visibility=float(raw.get('visibility', 1.0)),
        )
    # MediaPipe NormalizedLandmark and similar objects; visibility may be unset
    visibility = getattr(raw, 'visibility', None)
    return Landmark(
        x=float(raw.x),
        y=float(raw.y),
        visibility=1.0 if visibility is None else float(visibility),
    )


def from_indexed(landmarks: Sequence[Any]) -> BodyLandmarks:
    """Build named landmarks from an index-ordered BlazePose landmark list.

    Args:
        landmarks: Sequence of landmark objects or dicts with x, y, visibility

    Returns:
        BodyLandmarks with joints beyond the end of the list left as None
    """
    values = {}
    for name, index in POSE_INDICES.items():
        values[name] = _to_landmark(landmarks[index]) if index < len(landmarks) else None
    return BodyLandmarks(**values)


def from_named(landmarks: Mapping[str, Any]) -> BodyLandmarks:
    """Build named landmarks from a joint-name mapping, ignoring unknown names."""
    return BodyLandmarks(**{
        name: _to_landmark(landmarks.get(name)) for name in POSE_INDICES
    })


def from_payload(payload: Any) -> Optional[BodyLandmarks]:
    """Parse landmarks posted by a client.

    Args:
        payload: None, an index-ordered list or a joint-name mapping

    Returns:
        BodyLandmarks, or None when no body was detected
    """
    if not payload:
        return None
    if isinstance(payload, Mapping):
        return from_named(payload)
    if isinstance(payload, (list, tuple)):
        return from_indexed(payload)
    raise ValueError('landmarks must be a list or an object')


def calculate_angle(a: Landmark, b: Landmark, c: Landmark) -> float:
    """Calculate the angle at vertex b formed by a-b-c.

    Args:
        a: First point
        b: Vertex point
        c: Third point

    Returns:
        Angle in degrees (0-180)
    """
    radians = np.arctan2(c.y - b.y, c.x - b.x) - np.arctan2(a.y - b.y, a.x - b.x)
    angle = abs(float(np.degrees(radians)))
    if angle > 180.0:
        angle = 360.0 - angle
    return angle


def joint_angle(body: BodyLandmarks, triple: JointTriple) -> float:
    """Angle at the middle joint of a named triple."""
    a, b, c = (getattr(body, name) for name in triple)
    return calculate_angle(a, b, c)

