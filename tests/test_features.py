"""Tests for per-frame feature extraction."""

import pytest

from golf_analyzer.config import FeatureConfig
from golf_analyzer.core.features import (
    SCREEN_CENTER,
    FeatureExtractor,
    WeightDistribution,
    club_head_position,
    normalize_angle,
    weight_distribution,
)
from golf_analyzer.core.frames import Landmark, LandmarkFrame


ADDRESS_POSE = {
    "left_shoulder": (0.45, 0.30),
    "right_shoulder": (0.55, 0.30),
    "left_hip": (0.46, 0.55),
    "right_hip": (0.54, 0.55),
    "left_wrist": (0.49, 0.65),
    "right_wrist": (0.51, 0.65),
}


def _make_frame(points=None, t=0.0, idx=0, hidden=(), visibility=1.0):
    """Synthetic landmark frame; names in ``hidden`` get visibility 0.1."""
    points = dict(ADDRESS_POSE if points is None else points)
    landmarks = tuple(
        Landmark(name, x, y, 0.0, 0.1 if name in hidden else visibility)
        for name, (x, y) in points.items()
    )
    return LandmarkFrame(landmarks=landmarks, timestamp_ms=t, frame_index=idx)


def _moved(dx=0.0, dy=0.0, names=("left_wrist", "right_wrist")):
    pose = dict(ADDRESS_POSE)
    for name in names:
        x, y = pose[name]
        pose[name] = (x + dx, y + dy)
    return pose


class TestGeometry:
    @pytest.mark.parametrize("raw,expected", [
        (0.0, 0.0),
        (190.0, -170.0),
        (-180.0, 180.0),
        (540.0, 180.0),
        (-190.0, 170.0),
    ])
    def test_normalize_angle(self, raw, expected):
        assert normalize_angle(raw) == pytest.approx(expected)

    def test_club_head_offset(self):
        frame = _make_frame()
        pos = club_head_position(frame, 0.5, 0.1)
        assert pos[0] == pytest.approx(0.5)
        assert pos[1] == pytest.approx(0.75)

    def test_club_head_single_wrist(self):
        frame = _make_frame(hidden=("left_wrist",))
        pos = club_head_position(frame, 0.5, 0.1)
        assert pos[0] == pytest.approx(0.51)
        assert pos[1] == pytest.approx(0.75)

    def test_club_head_no_wrist(self):
        frame = _make_frame(hidden=("left_wrist", "right_wrist"))
        assert club_head_position(frame, 0.5, 0.1) is None


class TestWeightDistribution:
    def test_fallback_without_feet(self):
        assert weight_distribution(_make_frame(), 0.5) == WeightDistribution(50, 50)

    def test_sums_to_100(self):
        pose = dict(ADDRESS_POSE)
        pose.update({
            "left_ankle": (0.45, 0.90), "right_ankle": (0.55, 0.95),
            "left_foot_index": (0.43, 0.92), "right_foot_index": (0.57, 0.97),
        })
        wd = weight_distribution(_make_frame(pose), 0.5)
        assert wd.left_pct + wd.right_pct == 100
        # Higher foot (smaller y) reads as more pressure in this proxy
        assert wd.left_pct > wd.right_pct
        assert wd.imbalance == wd.left_pct - wd.right_pct

    def test_feet_at_screen_bottom(self):
        pose = dict(ADDRESS_POSE)
        pose.update({"left_ankle": (0.45, 1.2), "right_ankle": (0.55, 1.0)})
        assert weight_distribution(_make_frame(pose), 0.5) == WeightDistribution(50, 50)


class TestFeatureExtractor:
    def test_address_features(self):
        fv = FeatureExtractor().extract(_make_frame())
        assert fv.confidence == pytest.approx(1.0)
        assert fv.proxy_position == pytest.approx((0.5, 0.75, 0.0))
        assert fv.proxy_speed == 0.0
        assert fv.shoulder_angle == pytest.approx(0.0)
        assert fv.hip_angle == pytest.approx(0.0)
        assert fv.x_factor == pytest.approx(0.0)
        assert fv.hands_height == pytest.approx(-0.45)
        assert fv.hands_hip_height == pytest.approx(-0.20)
        assert fv.hands_lateral == pytest.approx(0.0)
        assert fv.is_reliable

    def test_partial_confidence(self):
        fv = FeatureExtractor().extract(_make_frame(hidden=("left_hip", "right_hip", "left_wrist")))
        assert fv.confidence == pytest.approx(0.5)

    def test_confidence_zero_below_minimum(self):
        hidden = ("left_shoulder", "right_shoulder", "left_hip", "right_hip", "left_wrist")
        fv = FeatureExtractor().extract(_make_frame(hidden=hidden))
        assert fv.confidence == 0.0
        assert not fv.is_reliable

    def test_all_hidden_never_raises(self):
        fv = FeatureExtractor().extract(_make_frame(visibility=0.0))
        assert fv.confidence == 0.0
        assert fv.proxy_position == SCREEN_CENTER

    def test_missing_wrists_use_previous_proxy(self):
        hidden = ("left_wrist", "right_wrist")
        fv = FeatureExtractor().extract(
            _make_frame(hidden=hidden, t=33.0, idx=1),
            previous=_make_frame(),
            previous_proxy=(0.3, 0.4, 0.0),
        )
        assert fv.proxy_position == pytest.approx((0.3, 0.4, 0.0))
        assert fv.proxy_speed == 0.0

    def test_missing_wrists_use_previous_frame(self):
        hidden = ("left_wrist", "right_wrist")
        fv = FeatureExtractor().extract(_make_frame(hidden=hidden, t=33.0, idx=1), previous=_make_frame())
        assert fv.proxy_position == pytest.approx((0.5, 0.75, 0.0))

    def test_velocity_units_per_second(self):
        prev = _make_frame(t=0.0, idx=0)
        cur = _make_frame(_moved(dx=0.1), t=100.0, idx=1)
        fv = FeatureExtractor().extract(cur, previous=prev)
        assert fv.proxy_velocity[0] == pytest.approx(1.0)
        assert fv.proxy_velocity[1] == pytest.approx(0.0)
        assert fv.proxy_speed == pytest.approx(1.0)

    def test_zero_dt_velocity(self):
        prev = _make_frame(t=50.0, idx=0)
        cur = _make_frame(_moved(dx=0.1), t=50.0, idx=1)
        fv = FeatureExtractor().extract(cur, previous=prev)
        assert fv.proxy_speed == 0.0

    def test_angles_and_x_factor(self):
        pose = dict(ADDRESS_POSE)
        pose["right_shoulder"] = (0.55, 0.40)
        fv = FeatureExtractor().extract(_make_frame(pose))
        assert fv.shoulder_angle == pytest.approx(45.0)
        assert fv.x_factor == pytest.approx(45.0)

    def test_hidden_shoulder_excluded_from_angles(self):
        fv = FeatureExtractor().extract(_make_frame(hidden=("left_shoulder",)))
        assert fv.shoulder_angle == 0.0
        assert fv.x_factor == 0.0

    def test_hands_lateral_trail_side(self):
        # Right-hander, face-on: trail side is toward smaller x
        fv = FeatureExtractor().extract(_make_frame(_moved(dx=-0.1)))
        assert fv.hands_lateral == pytest.approx(0.1)
        flipped = FeatureExtractor(FeatureConfig(trail_direction=1.0)).extract(_make_frame(_moved(dx=-0.1)))
        assert flipped.hands_lateral == pytest.approx(-0.1)
