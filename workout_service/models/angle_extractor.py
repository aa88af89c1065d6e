"""
ALIGNIFY Workout Service - Joint Angle Extraction

Computes named joint angles from landmark triplets. Partial-body focus modes
substitute virtual points (a visible landmark shifted by a fixed offset) for
anatomical points that are usually out of frame, e.g. a point below the
shoulder standing in for the hip when only the upper body is tracked.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from .landmarks import AngleSet, BodyFocusMode, JointType, LandmarkFrame

# Vertical offset (fraction of normalized image height) for virtual points.
# Image y grows downward, so a positive offset moves the point down.
VIRTUAL_POINT_OFFSET = 0.25

# Vectors shorter than this are treated as degenerate.
MIN_VECTOR_NORM = 1e-6


# ═══════════════════════════════════════════════════════════════════════════════
# JOINT DEFINITIONS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PointRef:
    """A real landmark, or a virtual point derived from one by an offset."""
    index: int
    offset: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    @property
    def is_virtual(self) -> bool:
        return any(self.offset)


def real(joint: JointType) -> PointRef:
    return PointRef(joint.value)


def virtual(base: JointType, dy: float) -> PointRef:
    return PointRef(base.value, (0.0, dy, 0.0))


@dataclass(frozen=True)
class JointAngleDefinition:
    """Angle measured at ``vertex`` between ``first`` and ``third``."""
    name: str
    first: PointRef
    vertex: PointRef
    third: PointRef

    @property
    def points(self) -> Tuple[PointRef, PointRef, PointRef]:
        return (self.first, self.vertex, self.third)


_limb = JointAngleDefinition
J = JointType
DOWN = VIRTUAL_POINT_OFFSET
UP = -VIRTUAL_POINT_OFFSET

_ELBOWS = (
    _limb("left_elbow", real(J.LEFT_SHOULDER), real(J.LEFT_ELBOW), real(J.LEFT_WRIST)),
    _limb("right_elbow", real(J.RIGHT_SHOULDER), real(J.RIGHT_ELBOW), real(J.RIGHT_WRIST)),
)
_KNEES = (
    _limb("left_knee", real(J.LEFT_HIP), real(J.LEFT_KNEE), real(J.LEFT_ANKLE)),
    _limb("right_knee", real(J.RIGHT_HIP), real(J.RIGHT_KNEE), real(J.RIGHT_ANKLE)),
)

JOINT_DEFINITIONS: Dict[BodyFocusMode, Tuple[JointAngleDefinition, ...]] = {
    BodyFocusMode.FULL: _ELBOWS + (
        _limb("left_shoulder", real(J.LEFT_ELBOW), real(J.LEFT_SHOULDER), real(J.LEFT_HIP)),
        _limb("right_shoulder", real(J.RIGHT_ELBOW), real(J.RIGHT_SHOULDER), real(J.RIGHT_HIP)),
        _limb("left_hip", real(J.LEFT_SHOULDER), real(J.LEFT_HIP), real(J.LEFT_KNEE)),
        _limb("right_hip", real(J.RIGHT_SHOULDER), real(J.RIGHT_HIP), real(J.RIGHT_KNEE)),
    ) + _KNEES,
    # Hips are usually out of frame: measure shoulders against a point below them.
    BodyFocusMode.UPPER: _ELBOWS + (
        _limb("left_shoulder", real(J.LEFT_ELBOW), real(J.LEFT_SHOULDER), virtual(J.LEFT_SHOULDER, DOWN)),
        _limb("right_shoulder", real(J.RIGHT_ELBOW), real(J.RIGHT_SHOULDER), virtual(J.RIGHT_SHOULDER, DOWN)),
    ),
    # Shoulders are usually out of frame: measure hips against a point above them.
    BodyFocusMode.LOWER: (
        _limb("left_hip", virtual(J.LEFT_HIP, UP), real(J.LEFT_HIP), real(J.LEFT_KNEE)),
        _limb("right_hip", virtual(J.RIGHT_HIP, UP), real(J.RIGHT_HIP), real(J.RIGHT_KNEE)),
    ) + _KNEES + (
        _limb("left_ankle", real(J.LEFT_KNEE), real(J.LEFT_ANKLE), real(J.LEFT_FOOT_INDEX)),
        _limb("right_ankle", real(J.RIGHT_KNEE), real(J.RIGHT_ANKLE), real(J.RIGHT_FOOT_INDEX)),
    ),
}


def joint_names(mode: BodyFocusMode) -> List[str]:
    """Names of the joints scored in ``mode``, in definition order."""
    return [definition.name for definition in JOINT_DEFINITIONS[mode]]


# ═══════════════════════════════════════════════════════════════════════════════
# ANGLE EXTRACTOR
# ═══════════════════════════════════════════════════════════════════════════════

class AngleExtractor:
    """
    Resolve joint definitions against a landmark frame and measure angles.

    A landmark is usable when it is present in the frame and its visibility
    is at least ``min_visibility``. Joints with an unusable point, or with a
    degenerate (zero-length) vector, are left out of the result.
    """

    def __init__(self, min_visibility: float = 0.5, use_depth: bool = False):
        self.min_visibility = min_visibility
        self.use_depth = use_depth

    @staticmethod
    def calculate_angle(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> Optional[float]:
        """
        Calculate the angle at point b formed by points a-b-c.

        Returns:
            Angle in degrees (0-180), or None if either vector is degenerate
        """
        ba = a - b
        bc = c - b

        norm_ba = np.linalg.norm(ba)
        norm_bc = np.linalg.norm(bc)
        if norm_ba < MIN_VECTOR_NORM or norm_bc < MIN_VECTOR_NORM:
            return None

        cosine_angle = np.clip(np.dot(ba, bc) / (norm_ba * norm_bc), -1.0, 1.0)
        return math.degrees(math.acos(cosine_angle))

    def resolve_point(self, frame: LandmarkFrame, ref: PointRef) -> Optional[np.ndarray]:
        landmark = frame.get(ref.index)
        if landmark is None or landmark.visibility < self.min_visibility:
            return None

        point = landmark.to_numpy(use_depth=True) + np.array(ref.offset)
        return point if self.use_depth else point[:2]

    def extract(self, frame: LandmarkFrame, mode: BodyFocusMode = BodyFocusMode.FULL) -> AngleSet:
        angles: AngleSet = {}
        for definition in JOINT_DEFINITIONS[mode]:
            points = [self.resolve_point(frame, ref) for ref in definition.points]
            if any(p is None for p in points):
                continue

            angle = self.calculate_angle(*points)
            if angle is not None:
                angles[definition.name] = angle
        return angles
