"""
ALIGNIFY Workout Service - Similarity Scoring

Compares the live angle set against a reference pose. Each joint scores
linearly from 1.0 (identical) down to 0.0 at ``tolerance_degrees`` of
difference; the overall score is the mean over the joints available in both
sets. Joints missing on either side are excluded rather than scored as zero.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .angle_extractor import joint_names
from .landmarks import AngleSet, BodyFocusMode


@dataclass
class SimilarityResult:
    """Per-frame comparison against the current reference pose."""
    per_joint: Dict[str, float]
    overall: float
    is_match: bool
    feedback: List[str] = field(default_factory=list)

    @property
    def available_joints(self) -> int:
        return len(self.per_joint)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "per_joint": {name: round(score, 4) for name, score in self.per_joint.items()},
            "overall": round(self.overall, 4),
            "is_match": self.is_match,
            "feedback": self.feedback,
        }


class SimilarityScorer:
    """
    Angle-difference scorer.

    Args:
        tolerance_degrees: Difference at which a joint scores 0
        match_threshold: Minimum overall score counted as a match
    """

    def __init__(self, tolerance_degrees: float = 60.0, match_threshold: float = 0.3):
        self.tolerance_degrees = tolerance_degrees
        self.match_threshold = match_threshold

    def joint_similarity(self, reference_angle: float, current_angle: float) -> float:
        difference = abs(reference_angle - current_angle)
        return max(0.0, 1.0 - difference / self.tolerance_degrees)

    def score(
        self,
        reference: AngleSet,
        current: AngleSet,
        mode: BodyFocusMode = BodyFocusMode.FULL,
    ) -> SimilarityResult:
        per_joint: Dict[str, float] = {}
        for name in joint_names(mode):
            if name in reference and name in current:
                per_joint[name] = self.joint_similarity(reference[name], current[name])

        overall = sum(per_joint.values()) / len(per_joint) if per_joint else 0.0

        return SimilarityResult(
            per_joint=per_joint,
            overall=overall,
            is_match=bool(per_joint) and overall >= self.match_threshold,
            feedback=self.joint_feedback(reference, current, per_joint),
        )

    def joint_feedback(
        self,
        reference: AngleSet,
        current: AngleSet,
        per_joint: Dict[str, float],
    ) -> List[str]:
        """Correction hints for joints off by more than half the tolerance."""
        messages = []
        for name in per_joint:
            difference = current[name] - reference[name]
            if abs(difference) <= self.tolerance_degrees / 2:
                continue
            hint = "Bend" if difference > 0 else "Straighten"
            messages.append(f"{hint} {name.replace('_', ' ')} (difference {abs(difference):.1f}°)")
        return messages
