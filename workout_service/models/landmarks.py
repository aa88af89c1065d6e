"""
ALIGNIFY Workout Service - Landmark Types

Shared data types for the pose-matching pipeline: body landmarks,
landmark frames, angle sets and body-focus modes.
"""

import numpy as np
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping
from enum import Enum


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS AND DATA CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class JointType(Enum):
    """Canonical body landmark indices (MediaPipe Pose topology)."""
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32


NUM_LANDMARKS = len(JointType)


class BodyFocusMode(Enum):
    """Which part of the body participates in scoring."""
    FULL = "full"
    UPPER = "upper"
    LOWER = "lower"


@dataclass
class Landmark:
    """A single pose landmark with normalized coordinates and visibility."""
    x: float
    y: float
    z: float
    visibility: float = 1.0

    def to_numpy(self, use_depth: bool = True) -> np.ndarray:
        if use_depth:
            return np.array([self.x, self.y, self.z], dtype=float)
        return np.array([self.x, self.y], dtype=float)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z, "visibility": self.visibility}


# One detection cycle: landmark index -> Landmark. An index that is not a key
# is absent for that frame.
LandmarkFrame = Dict[int, Landmark]

# Joint name -> angle in degrees.
AngleSet = Dict[str, float]


def frame_from_points(points: Iterable[Mapping[str, Any]]) -> LandmarkFrame:
    """
    Build a LandmarkFrame from a list of point dicts.

    Each point carries ``x``, ``y``, ``z`` and optionally ``visibility`` and
    ``index`` (or ``id``). Points without an index are numbered by position.
    """
    frame: LandmarkFrame = {}
    for position, point in enumerate(points):
        idx = point.get("index", point.get("id", position))
        frame[int(idx)] = Landmark(
            x=float(point["x"]),
            y=float(point["y"]),
            z=float(point.get("z", 0.0)),
            visibility=float(point.get("visibility", 1.0)),
        )
    return frame


def frame_to_points(frame: LandmarkFrame) -> list:
    """Convert a LandmarkFrame to a JSON-serializable list of points."""
    return [
        {
            "index": idx,
            "name": JointType(idx).name.lower() if idx < NUM_LANDMARKS else f"point_{idx}",
            **lm.to_dict(),
        }
        for idx, lm in sorted(frame.items())
    ]
