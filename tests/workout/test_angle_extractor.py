"""
Joint angle extraction tests, including virtual points for partial-body modes.
"""

import numpy as np
import pytest

from workout_service.models import (
    AngleExtractor,
    BodyFocusMode,
    JOINT_DEFINITIONS,
    JointType,
    Landmark,
    joint_names,
)


# ═══════════════════════════════════════════════════════════════════════════════
# ANGLE MATH
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize(
    "a, b, c, expected",
    [
        ((1, 0), (0, 0), (0, 1), 90.0),
        ((1, 0), (0, 0), (-1, 0), 180.0),
        ((1, 0), (0, 0), (1, 1), 45.0),
        ((1, 0), (0, 0), (2, 0), 0.0),
    ],
)
def test_calculate_angle(a, b, c, expected):
    angle = AngleExtractor.calculate_angle(np.array(a, float), np.array(b, float), np.array(c, float))
    assert angle == pytest.approx(expected, abs=1e-6)


def test_degenerate_vector_gives_no_angle():
    p = np.array([0.5, 0.5])
    assert AngleExtractor.calculate_angle(p, p.copy(), np.array([0.9, 0.5])) is None


# ═══════════════════════════════════════════════════════════════════════════════
# FULL BODY
# ═══════════════════════════════════════════════════════════════════════════════

def test_full_body_extracts_all_joints(standing_frame):
    angles = AngleExtractor().extract(standing_frame, BodyFocusMode.FULL)

    assert set(angles) == set(joint_names(BodyFocusMode.FULL))
    assert len(angles) == 8
    assert angles["left_elbow"] == pytest.approx(180.0)
    assert angles["right_knee"] == pytest.approx(180.0)


def test_bent_elbow(make_frame):
    frame = make_frame({JointType.LEFT_WRIST: (0.70, 0.20)})

    angles = AngleExtractor().extract(frame, BodyFocusMode.FULL)

    assert angles["left_elbow"] == pytest.approx(90.0)
    assert angles["right_elbow"] == pytest.approx(180.0)


def test_missing_landmark_omits_joint(make_frame):
    frame = make_frame(drop={JointType.LEFT_WRIST})

    angles = AngleExtractor().extract(frame, BodyFocusMode.FULL)

    assert "left_elbow" not in angles
    assert "right_elbow" in angles


def test_low_visibility_landmark_counts_as_missing(standing_frame):
    wrist = standing_frame[JointType.LEFT_WRIST.value]
    standing_frame[JointType.LEFT_WRIST.value] = Landmark(wrist.x, wrist.y, wrist.z, visibility=0.1)

    angles = AngleExtractor(min_visibility=0.5).extract(standing_frame, BodyFocusMode.FULL)

    assert "left_elbow" not in angles


def test_coincident_points_omit_joint(make_frame):
    frame = make_frame({JointType.LEFT_WRIST: (0.70, 0.30)})  # on top of the elbow

    angles = AngleExtractor().extract(frame, BodyFocusMode.FULL)

    assert "left_elbow" not in angles


def test_depth_used_only_when_enabled(standing_frame):
    elbow = standing_frame[JointType.LEFT_ELBOW.value]
    standing_frame[JointType.LEFT_WRIST.value] = Landmark(elbow.x, elbow.y, 0.1)

    flat = AngleExtractor(use_depth=False).extract(standing_frame, BodyFocusMode.FULL)
    deep = AngleExtractor(use_depth=True).extract(standing_frame, BodyFocusMode.FULL)

    assert "left_elbow" not in flat
    assert deep["left_elbow"] == pytest.approx(90.0)


# ═══════════════════════════════════════════════════════════════════════════════
# PARTIAL BODY MODES
# ═══════════════════════════════════════════════════════════════════════════════

def test_upper_body_uses_virtual_hip(upper_body_frame):
    angles = AngleExtractor().extract(upper_body_frame, BodyFocusMode.UPPER)

    assert set(angles) == {"left_elbow", "right_elbow", "left_shoulder", "right_shoulder"}
    # Arm horizontal, virtual point straight below the shoulder.
    assert angles["left_shoulder"] == pytest.approx(90.0)
    assert angles["right_shoulder"] == pytest.approx(90.0)


def test_upper_body_ignores_real_hips(make_frame, upper_body_frame):
    # Moving the hips must not change the shoulder angle in upper-body mode.
    frame = make_frame({JointType.LEFT_HIP: (0.90, 0.35)})

    with_hips = AngleExtractor().extract(frame, BodyFocusMode.UPPER)
    without_hips = AngleExtractor().extract(upper_body_frame, BodyFocusMode.UPPER)

    assert with_hips["left_shoulder"] == pytest.approx(without_hips["left_shoulder"])


def test_lower_body_uses_virtual_shoulder(make_frame):
    frame = make_frame(drop={JointType.LEFT_SHOULDER, JointType.RIGHT_SHOULDER})

    angles = AngleExtractor().extract(frame, BodyFocusMode.LOWER)

    assert set(angles) == set(joint_names(BodyFocusMode.LOWER))
    assert len(angles) == 6
    # Thigh vertical, virtual point straight above the hip.
    assert angles["left_hip"] == pytest.approx(180.0)


def test_virtual_points_only_in_partial_modes():
    def has_virtual(mode):
        return any(ref.is_virtual for d in JOINT_DEFINITIONS[mode] for ref in d.points)

    assert not has_virtual(BodyFocusMode.FULL)
    assert has_virtual(BodyFocusMode.UPPER)
    assert has_virtual(BodyFocusMode.LOWER)


def test_empty_frame_gives_empty_angle_set():
    assert AngleExtractor().extract({}, BodyFocusMode.FULL) == {}
