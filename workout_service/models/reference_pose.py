"""
ALIGNIFY Workout Service - Reference Poses

Target postures for each workout step. A reference pose is either a stored
landmark frame (captured during calibration) or a precomputed angle set.
Reference poses are immutable once a session has loaded them.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, Field

from .angle_extractor import AngleExtractor
from .landmarks import AngleSet, BodyFocusMode, Landmark, LandmarkFrame


# ============= Stored Format =============

class StoredPoseLandmark(BaseModel):
    """One landmark as persisted by the calibration flow."""
    index: int = Field(ge=0)
    x: float
    y: float
    z: float = 0.0
    visibility: float = Field(1.0, ge=0, le=1)


class StoredReferencePose(BaseModel):
    """A persisted reference pose and its place in the workout sequence."""
    position: int = 0
    name: Optional[str] = None
    landmarks: List[StoredPoseLandmark] = Field(default_factory=list)
    angles: Optional[Dict[str, float]] = None


# ============= Reference Pose =============

@dataclass(frozen=True)
class ReferencePose:
    """Target posture for one workout step."""
    position: int
    name: str = ""
    landmarks: Optional[Mapping[int, Landmark]] = None
    angles: Optional[Mapping[str, float]] = None

    def __post_init__(self):
        if self.landmarks is None and self.angles is None:
            raise ValueError("ReferencePose needs landmarks or precomputed angles")
        # Freeze the mappings so a loaded pose cannot be edited mid-session.
        if self.landmarks is not None:
            object.__setattr__(self, "landmarks", MappingProxyType(dict(self.landmarks)))
        if self.angles is not None:
            object.__setattr__(self, "angles", MappingProxyType(dict(self.angles)))

    @classmethod
    def from_landmarks(cls, landmarks: LandmarkFrame, position: int = 0, name: str = "") -> "ReferencePose":
        return cls(position=position, name=name, landmarks=landmarks)

    @classmethod
    def from_angles(cls, angles: AngleSet, position: int = 0, name: str = "") -> "ReferencePose":
        return cls(position=position, name=name, angles=angles)

    @classmethod
    def from_stored(cls, stored: Union[StoredReferencePose, Mapping[str, Any]]) -> "ReferencePose":
        if not isinstance(stored, StoredReferencePose):
            stored = StoredReferencePose.model_validate(stored)

        landmarks = None
        if stored.landmarks:
            landmarks = {
                lm.index: Landmark(x=lm.x, y=lm.y, z=lm.z, visibility=lm.visibility)
                for lm in stored.landmarks
            }

        return cls(
            position=stored.position,
            name=stored.name or f"Pose {stored.position + 1}",
            landmarks=landmarks,
            angles=stored.angles,
        )

    def resolve_angles(self, extractor: AngleExtractor, mode: BodyFocusMode) -> AngleSet:
        """Angle set to score against; precomputed angles take precedence."""
        if self.angles is not None:
            return dict(self.angles)
        return extractor.extract(dict(self.landmarks), mode)


def load_reference_poses(
    stored_poses: Iterable[Union[StoredReferencePose, Mapping[str, Any]]],
) -> List[ReferencePose]:
    """Convert stored poses and order them by their workout position."""
    poses = [ReferencePose.from_stored(stored) for stored in stored_poses]
    return sorted(poses, key=lambda pose: pose.position)
