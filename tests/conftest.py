"""
Shared fixtures for the workout service tests.
"""

import pytest

from workout_service.models import JointType, Landmark

# Upright, arms out to the sides (T-pose), image coordinates (y grows downward).
STANDING_POINTS = {
    JointType.LEFT_SHOULDER: (0.60, 0.30),
    JointType.RIGHT_SHOULDER: (0.40, 0.30),
    JointType.LEFT_ELBOW: (0.70, 0.30),
    JointType.RIGHT_ELBOW: (0.30, 0.30),
    JointType.LEFT_WRIST: (0.80, 0.30),
    JointType.RIGHT_WRIST: (0.20, 0.30),
    JointType.LEFT_HIP: (0.55, 0.60),
    JointType.RIGHT_HIP: (0.45, 0.60),
    JointType.LEFT_KNEE: (0.55, 0.75),
    JointType.RIGHT_KNEE: (0.45, 0.75),
    JointType.LEFT_ANKLE: (0.55, 0.90),
    JointType.RIGHT_ANKLE: (0.45, 0.90),
    JointType.LEFT_FOOT_INDEX: (0.60, 0.92),
    JointType.RIGHT_FOOT_INDEX: (0.40, 0.92),
}


def build_frame(overrides=None, drop=(), visibility=1.0):
    """Standing frame with optional moved (``overrides``) or missing (``drop``) joints."""
    points = dict(STANDING_POINTS)
    points.update(overrides or {})
    return {
        joint.value: Landmark(x=x, y=y, z=0.0, visibility=visibility)
        for joint, (x, y) in points.items()
        if joint not in drop
    }


@pytest.fixture
def make_frame():
    return build_frame


@pytest.fixture
def standing_frame():
    return build_frame()


@pytest.fixture
def upper_body_frame():
    """Standing frame cropped at the waist: no hips, knees, ankles or feet."""
    lower = {
        JointType.LEFT_HIP, JointType.RIGHT_HIP,
        JointType.LEFT_KNEE, JointType.RIGHT_KNEE,
        JointType.LEFT_ANKLE, JointType.RIGHT_ANKLE,
        JointType.LEFT_FOOT_INDEX, JointType.RIGHT_FOOT_INDEX,
    }
    return build_frame(drop=lower)
