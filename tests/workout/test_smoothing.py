"""
Landmark and angle smoothing tests.
"""

import pytest

from workout_service.models import AngleSmoother, JointType, Landmark, LandmarkSmoother


LEFT_WRIST = JointType.LEFT_WRIST.value


# ═══════════════════════════════════════════════════════════════════════════════
# LANDMARK SMOOTHER
# ═══════════════════════════════════════════════════════════════════════════════

def test_constant_frame_converges_to_itself(standing_frame):
    smoother = LandmarkSmoother(window_size=5)

    for _ in range(7):
        smoothed = smoother.push(standing_frame)

    assert smoothed.keys() == standing_frame.keys()
    for idx, lm in standing_frame.items():
        assert smoothed[idx].x == pytest.approx(lm.x)
        assert smoothed[idx].y == pytest.approx(lm.y)
        assert smoothed[idx].z == pytest.approx(lm.z)


def test_first_frame_seeds_whole_window(standing_frame):
    smoother = LandmarkSmoother(window_size=4)

    smoothed = smoother.push(standing_frame)

    assert len(smoother) == 4
    assert smoothed[LEFT_WRIST].x == pytest.approx(standing_frame[LEFT_WRIST].x)


def test_mean_over_window_and_eviction():
    smoother = LandmarkSmoother(window_size=2)

    smoother.push({0: Landmark(0.0, 0.0, 0.0)})
    assert smoother.push({0: Landmark(1.0, 0.5, 0.2)})[0].x == pytest.approx(0.5)
    # Seed frames are evicted: only the last two pushes remain.
    smoothed = smoother.push({0: Landmark(1.0, 0.5, 0.2)})
    assert smoothed[0].x == pytest.approx(1.0)
    assert smoothed[0].y == pytest.approx(0.5)
    assert smoothed[0].z == pytest.approx(0.2)


def test_visibility_comes_from_latest_frame():
    smoother = LandmarkSmoother(window_size=3)

    smoother.push({0: Landmark(0.5, 0.5, 0.0, visibility=0.9)})
    smoothed = smoother.push({0: Landmark(0.5, 0.5, 0.0, visibility=0.2)})

    assert smoothed[0].visibility == 0.2


def test_landmark_averaged_only_where_present():
    smoother = LandmarkSmoother(window_size=3)

    smoother.push({0: Landmark(0.1, 0.1, 0.0)})
    smoothed = smoother.push({0: Landmark(0.1, 0.1, 0.0), 1: Landmark(0.9, 0.4, 0.0)})

    assert smoothed[1].x == pytest.approx(0.9)
    assert smoothed[1].y == pytest.approx(0.4)


def test_output_omits_landmarks_missing_from_latest_frame():
    smoother = LandmarkSmoother(window_size=3)

    smoother.push({0: Landmark(0.1, 0.1, 0.0), 1: Landmark(0.9, 0.4, 0.0)})
    smoothed = smoother.push({0: Landmark(0.1, 0.1, 0.0)})

    assert list(smoothed) == [0]


def test_reset_reseeds_on_next_push():
    smoother = LandmarkSmoother(window_size=3)
    smoother.push({0: Landmark(0.0, 0.0, 0.0)})

    smoother.reset()
    assert not smoother.is_seeded

    smoothed = smoother.push({0: Landmark(0.8, 0.8, 0.0)})
    assert smoothed[0].x == pytest.approx(0.8)


@pytest.mark.parametrize("window", [0, -3])
def test_invalid_window_rejected(window):
    with pytest.raises(ValueError):
        LandmarkSmoother(window_size=window)


# ═══════════════════════════════════════════════════════════════════════════════
# ANGLE SMOOTHER
# ═══════════════════════════════════════════════════════════════════════════════

def test_angle_mean_over_window():
    smoother = AngleSmoother(window_size=2)

    smoother.push({"left_knee": 100.0})
    smoothed = smoother.push({"left_knee": 140.0})

    assert smoothed == {"left_knee": pytest.approx(120.0)}


def test_occluded_joint_holds_history():
    smoother = AngleSmoother(window_size=4)

    smoother.push({"left_knee": 90.0, "right_knee": 170.0})
    smoothed = smoother.push({"right_knee": 170.0})

    assert smoothed["left_knee"] == pytest.approx(90.0)
    assert smoothed["right_knee"] == pytest.approx(170.0)


def test_occluded_joint_dropped_once_out_of_window():
    smoother = AngleSmoother(window_size=2)

    smoother.push({"left_knee": 90.0, "right_knee": 170.0})
    smoother.push({"right_knee": 170.0})
    smoothed = smoother.push({"right_knee": 170.0})

    assert "left_knee" not in smoothed


def test_never_seen_joint_is_omitted():
    smoother = AngleSmoother(window_size=3)

    assert smoother.push({}) == {}
    assert smoother.push({"left_elbow": 45.0}) == {"left_elbow": pytest.approx(45.0)}
