"""Tests for trajectory containers and batch metrics."""

import math

import numpy as np
import pytest

from golf_analyzer.analysis.trajectory import (
    KeyMoments,
    PathDirection,
    SwingTrajectory,
    Trajectory,
    TrajectoryAnalyzer,
    TrajectoryMetrics,
    TrajectoryPoint,
)
from golf_analyzer.config import TrajectoryConfig
from golf_analyzer.core.phase_classifier import PhaseLabel
from golf_analyzer.core.timeline import PhaseSegment


def _traj(xs, ys=None, dt=33.33, first_frame=0):
    ys = ys if ys is not None else [0.5] * len(xs)
    t = Trajectory()
    for i, (x, y) in enumerate(zip(xs, ys)):
        t.add(x, y, 0.0, i * dt, first_frame + i)
    return t


def _swing_arc(n=60, dt=33.33):
    """Half-cosine sweep: slow at both ends, fastest in the middle."""
    xs = [0.5 - 0.4 * math.cos(math.pi * i / (n - 1)) for i in range(n)]
    return _traj(xs, dt=dt)


def _random_traj(seed, n):
    rng = np.random.default_rng(seed)
    t = Trajectory()
    ts = np.cumsum(rng.uniform(0.0, 40.0, size=n))
    for i in range(n):
        x, y, z = rng.uniform(0.0, 1.0, size=3)
        t.add(x, y, z, ts[i], i)
    return t


# =====================================================================
# Containers
# =====================================================================

class TestTrajectory:
    def test_append_and_snapshot(self):
        t = _traj([0.1, 0.2, 0.3])
        snap = t.snapshot()
        t.add(0.4, 0.5, 0.0, 200.0, 3)
        assert len(snap) == 3
        assert len(t) == 4
        assert t[-1].frame == 3

    def test_out_of_order_rejected(self):
        t = _traj([0.1, 0.2])
        with pytest.raises(ValueError):
            t.add(0.3, 0.5, 0.0, 10.0, 2)
        with pytest.raises(ValueError):
            t.append(TrajectoryPoint(0.3, 0.5, 0.0, 100.0, 0))

    def test_swing_trajectory_names(self):
        swing = SwingTrajectory()
        assert "clubhead" in swing
        assert "right_wrist" in swing
        assert len(swing.clubhead) == 0


# =====================================================================
# Metrics
# =====================================================================

class TestAnalyzeTrajectory:
    def test_total_distance_is_sum_of_steps(self):
        t = _random_traj(1, 25)
        pts = t.snapshot()
        expected = sum(
            math.dist((a.x, a.y, a.z), (b.x, b.y, b.z)) for a, b in zip(pts, pts[1:])
        )
        metrics = TrajectoryAnalyzer().analyze_trajectory(t)
        assert metrics.total_distance == pytest.approx(expected)
        assert metrics.total_distance >= 0

    @pytest.mark.parametrize("n", [0, 1])
    def test_degenerate(self, n):
        metrics = TrajectoryAnalyzer().analyze_trajectory(_traj([0.3] * n))
        assert metrics == TrajectoryMetrics()
        assert metrics.smoothness == 1.0
        assert metrics.max_velocity == 0.0

    def test_zero_dt_is_finite(self):
        t = Trajectory(points=[
            TrajectoryPoint(0.0, 0.0, 0.0, 10.0, 0),
            TrajectoryPoint(1.0, 0.0, 0.0, 10.0, 1),
            TrajectoryPoint(2.0, 0.0, 0.0, 10.0, 2),
        ])
        metrics = TrajectoryAnalyzer().analyze_trajectory(t)
        assert metrics.max_velocity == 0.0
        assert metrics.max_acceleration == 0.0
        assert metrics.total_distance == pytest.approx(2.0)
        assert metrics.smoothness == 1.0

    def test_peak_of_sweep_is_mid_swing(self):
        metrics = TrajectoryAnalyzer().analyze_trajectory(_swing_arc())
        assert 29 <= metrics.peak_frame <= 31
        assert metrics.peak_frame == 29
        assert metrics.peak_source_frame == 30

    def test_constant_speed_is_smooth(self):
        # exactly representable steps keep every acceleration at 0
        metrics = TrajectoryAnalyzer().analyze_trajectory(_traj([0.0625 * i for i in range(10)], dt=32.0))
        assert metrics.smoothness == 1.0
        assert metrics.avg_velocity == pytest.approx(0.0625 / 32.0)

    def test_smoothness_in_range(self):
        metrics = TrajectoryAnalyzer().analyze_trajectory(_random_traj(7, 40))
        assert 0.0 <= metrics.smoothness <= 1.0

    def test_idempotent(self):
        t = _random_traj(3, 30)
        analyzer = TrajectoryAnalyzer()
        assert analyzer.analyze_trajectory(t) == analyzer.analyze_trajectory(t)
        assert analyzer.find_key_moments(t) == analyzer.find_key_moments(t)

    def test_samples_carry_source_frames(self):
        t = _traj([0.1, 0.2, 0.4, 0.5], first_frame=100)
        analyzer = TrajectoryAnalyzer()
        vel = analyzer.velocity_samples(t)
        acc = analyzer.acceleration_samples(t)
        assert [s.frame for s in vel] == [101, 102, 103]
        assert [s.frame for s in acc] == [101, 102]
        assert vel[1].value == pytest.approx(0.2 / 33.33)

    def test_velocity_profile(self):
        profile = TrajectoryAnalyzer().create_velocity_profile(_swing_arc())
        assert len(profile.frames) == 60
        assert len(profile.velocities) == 59
        assert len(profile.accelerations) == 58
        assert profile.peak_velocity_frame == 29

    def test_velocity_profile_empty(self):
        profile = TrajectoryAnalyzer().create_velocity_profile(Trajectory())
        assert profile.peak_velocity_frame == 0
        assert profile.peak_acceleration_frame == 0


class TestSmoothing:
    @pytest.mark.parametrize("w", [1, 3, 4, 5, 8])
    def test_length_and_timestamps(self, w):
        t = _random_traj(11, 12)
        pts = t.snapshot()
        out = TrajectoryAnalyzer().smooth_trajectory(t, w)
        assert len(out) == len(pts)
        n = len(pts)
        for i, p in enumerate(out):
            lo, hi = max(0, i - w // 2), min(n, i + math.ceil(w / 2))
            assert p.timestamp == pytest.approx(np.mean([q.timestamp for q in pts[lo:hi]]))
            assert p.frame == pts[i].frame

    def test_window_below_one_is_identity(self):
        t = _random_traj(5, 6)
        out = TrajectoryAnalyzer().smooth_trajectory(t, 0)
        assert [p.x for p in out] == pytest.approx([p.x for p in t])

    def test_default_window_from_config(self):
        t = _traj([0.0, 0.0, 1.0, 0.0, 0.0])
        out = TrajectoryAnalyzer(TrajectoryConfig(smoothing_window=3)).smooth_trajectory(t)
        assert out[2].x == pytest.approx(1.0 / 3.0)

    def test_empty(self):
        assert TrajectoryAnalyzer().smooth_trajectory(Trajectory()) == ()


# =====================================================================
# Swing path
# =====================================================================

def _two_leg_path(down_deg, n=10):
    """Backswing frames 0..n-1 along +x, downswing frames n..2n-1 at ``down_deg``."""
    xs, ys = [], []
    for i in range(n):
        xs.append(0.1 + 0.02 * i)
        ys.append(0.5)
    x0, y0 = xs[-1], ys[-1]
    rad = math.radians(down_deg)
    for k in range(1, n + 1):
        xs.append(x0 + 0.02 * k * math.cos(rad))
        ys.append(y0 + 0.02 * k * math.sin(rad))
    segments = (
        PhaseSegment(PhaseLabel.BACKSWING, 0, n - 1, 0.0, (n - 1) * 33.33, 1.0),
        PhaseSegment(PhaseLabel.DOWNSWING, n, 2 * n - 1, n * 33.33, (2 * n - 1) * 33.33, 1.0),
    )
    return _traj(xs, ys), segments


class TestSwingPath:
    @pytest.mark.parametrize("deg,expected", [
        (5.0, PathDirection.ON_PLANE),
        (-9.0, PathDirection.ON_PLANE),
        (30.0, PathDirection.INSIDE_OUT),
        (-30.0, PathDirection.OUTSIDE_IN),
    ])
    def test_path_direction(self, deg, expected):
        t, segments = _two_leg_path(deg)
        result = TrajectoryAnalyzer().analyze_path_direction(t, segments)
        assert result.direction == expected
        assert result.difference == pytest.approx(deg)

    def test_missing_segment(self):
        t, segments = _two_leg_path(30.0)
        result = TrajectoryAnalyzer().analyze_path_direction(t, segments[:1])
        assert result.on_plane
        assert result.backswing_angle == 0.0
        assert result.downswing_angle == 0.0

    def test_short_trajectory(self):
        _, segments = _two_leg_path(30.0)
        result = TrajectoryAnalyzer().analyze_path_direction(_traj([0.1, 0.2]), segments)
        assert result.on_plane

    def test_swing_plane(self):
        t = _traj([0.0, 0.5, 1.0], [0.0, 0.5, 1.0])
        assert TrajectoryAnalyzer().calculate_swing_plane(t) == pytest.approx(45.0)
        assert TrajectoryAnalyzer().calculate_swing_plane(_traj([0.2])) == 0.0

    def test_path_consistency(self):
        analyzer = TrajectoryAnalyzer()
        assert analyzer.calculate_path_consistency(_traj([0.01 * i for i in range(10)])) == pytest.approx(1.0)
        assert analyzer.calculate_path_consistency(_traj([0.3] * 10)) == 1.0
        assert analyzer.calculate_path_consistency(_traj([0.1, 0.2])) == 1.0
        assert 0.0 <= analyzer.calculate_path_consistency(_random_traj(2, 20)) <= 1.0

    def test_analyze_swing_path(self):
        t, segments = _two_leg_path(30.0)
        swing = SwingTrajectory()
        for p in t:
            swing.clubhead.append(p)
        result = TrajectoryAnalyzer().analyze_swing_path(swing, segments)
        assert len(result.clubhead_path) == 20
        assert result.inside_out
        assert not result.on_plane


# =====================================================================
# Key moments
# =====================================================================

class TestKeyMoments:
    def test_empty(self):
        assert TrajectoryAnalyzer().find_key_moments(Trajectory()) == KeyMoments()

    def test_single_point(self):
        km = TrajectoryAnalyzer().find_key_moments(_traj([0.5], first_frame=7))
        assert km.finish_frame == 7
        assert km.takeaway_index == km.top_index == km.impact_index == km.finish_index == 0

    @pytest.mark.parametrize("seed", range(10))
    def test_ordering(self, seed):
        rng = np.random.default_rng(seed)
        n = int(rng.integers(1, 80))
        km = TrajectoryAnalyzer().find_key_moments(_random_traj(seed, n))
        assert km.takeaway_index <= km.top_index <= km.impact_index <= km.finish_index
        assert km.takeaway_frame <= km.top_frame <= km.impact_frame <= km.finish_frame

    def test_swing_shape(self):
        # still for 3 frames, hands rise to frame 20, then drop and accelerate
        n = 40
        ys = []
        for i in range(n):
            if i < 3:
                ys.append(0.8)
            elif i <= 20:
                ys.append(0.8 - 0.04 * (i - 2))
            else:
                ys.append(ys[-1] + 0.002 * (i - 20) ** 2)
        xs = [0.5] * n
        km = TrajectoryAnalyzer().find_key_moments(_traj(xs, ys, first_frame=100))
        assert km.takeaway_index == 2
        assert km.top_index == 20
        assert km.impact_index >= 20
        assert km.finish_index == n - 1
        assert km.takeaway_frame == 102
        assert km.finish_frame == 100 + n - 1

    def test_default_impact_when_nothing_accelerates(self):
        n = 20
        km = TrajectoryAnalyzer().find_key_moments(_traj([0.0625 * i for i in range(n)], dt=32.0))
        assert km.impact_index == int(n * 0.7)

    def test_visualization_data(self):
        t, segments = _two_leg_path(10.0)
        viz = TrajectoryAnalyzer().create_visualization_data(t, segments)
        assert len(viz.points) == len(viz.smoothed_points) == 20
        assert viz.segments == segments
        assert viz.metrics == TrajectoryAnalyzer().analyze_trajectory(t)
