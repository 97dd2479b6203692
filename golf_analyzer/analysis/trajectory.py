"""Tracked-point trajectories and batch swing metrics.

A ``Trajectory`` is the append-only path of one tracked point (the club head
proxy or a body landmark).  ``TrajectoryAnalyzer`` works on immutable
snapshots of it and never raises on degenerate input: fewer than two points
resolve to zeros (and 1.0 for smoothness / consistency).

Timestamps are milliseconds, so velocities are screen units per ms.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..config.engine_config import TrajectoryConfig, DEFAULT_CONFIG
from ..config.landmarks import TRACKED_LANDMARKS
from ..core.features import normalize_angle
from ..core.phase_classifier import PhaseLabel
from ..core.timeline import PhaseSegment

logger = logging.getLogger(__name__)

CLUBHEAD = "clubhead"


@dataclass(frozen=True)
class TrajectoryPoint:
    x: float
    y: float
    z: float
    timestamp: float
    frame: int


class Trajectory:
    """Ordered, append-only sequence of ``TrajectoryPoint``."""

    def __init__(self, name: str = CLUBHEAD, points: Sequence[TrajectoryPoint] = ()):
        self.name = name
        self._points: List[TrajectoryPoint] = []
        for p in points:
            self.append(p)

    def append(self, point: TrajectoryPoint):
        if self._points:
            last = self._points[-1]
            if point.timestamp < last.timestamp or point.frame < last.frame:
                raise ValueError(
                    f"{self.name}: point at frame {point.frame} ({point.timestamp} ms) "
                    f"precedes frame {last.frame} ({last.timestamp} ms)"
                )
        self._points.append(point)

    def add(self, x: float, y: float, z: float, timestamp: float, frame: int) -> TrajectoryPoint:
        """Record a new observation."""
        point = TrajectoryPoint(float(x), float(y), float(z), float(timestamp), int(frame))
        self.append(point)
        return point

    def snapshot(self) -> Tuple[TrajectoryPoint, ...]:
        """Immutable copy for analysis."""
        return tuple(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[TrajectoryPoint]:
        return iter(tuple(self._points))

    def __getitem__(self, index: int) -> TrajectoryPoint:
        return self._points[index]


class SwingTrajectory:
    """One ``Trajectory`` per tracked point plus the club head path."""

    def __init__(self, names: Sequence[str] = TRACKED_LANDMARKS):
        self.trajectories: Dict[str, Trajectory] = {
            name: Trajectory(name) for name in tuple(names) + (CLUBHEAD,)
        }

    @property
    def clubhead(self) -> Trajectory:
        return self.trajectories[CLUBHEAD]

    def get(self, name: str) -> Trajectory:
        """Retrieve a trajectory by point name."""
        return self.trajectories[name]

    def __contains__(self, name: object) -> bool:
        return name in self.trajectories

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self.trajectories)


TrajectoryLike = Union[Trajectory, Sequence[TrajectoryPoint]]


# ── Result records ────────────────────────────────────────────────────

@dataclass(frozen=True)
class VelocitySample:
    """Speed over the interval ending at ``frame``."""
    index: int
    frame: int
    timestamp: float
    value: float


@dataclass(frozen=True)
class AccelerationSample:
    """Speed change centred on ``frame``."""
    index: int
    frame: int
    timestamp: float
    value: float


@dataclass(frozen=True)
class TrajectoryMetrics:
    total_distance: float = 0.0
    max_velocity: float = 0.0
    avg_velocity: float = 0.0
    max_acceleration: float = 0.0
    avg_acceleration: float = 0.0
    peak_frame: int = 0           # index into the velocity array
    peak_source_frame: int = 0    # frame carried by that velocity sample
    smoothness: float = 1.0


@dataclass(frozen=True)
class VelocityProfile:
    frames: Tuple[int, ...]
    velocities: Tuple[float, ...]
    accelerations: Tuple[float, ...]
    peak_velocity_frame: int
    peak_acceleration_frame: int


@dataclass(frozen=True)
class KeyMoments:
    """Key swing moments as source frames and as trajectory indices."""

    takeaway_frame: int = 0
    top_frame: int = 0
    impact_frame: int = 0
    finish_frame: int = 0
    takeaway_index: int = 0
    top_index: int = 0
    impact_index: int = 0
    finish_index: int = 0


class PathDirection(Enum):
    ON_PLANE = "on_plane"
    INSIDE_OUT = "inside_out"
    OUTSIDE_IN = "outside_in"


@dataclass(frozen=True)
class PathDirectionAnalysis:
    direction: PathDirection = PathDirection.ON_PLANE
    backswing_angle: float = 0.0
    downswing_angle: float = 0.0
    difference: float = 0.0

    @property
    def on_plane(self) -> bool:
        return self.direction == PathDirection.ON_PLANE

    @property
    def inside_out(self) -> bool:
        return self.direction == PathDirection.INSIDE_OUT

    @property
    def outside_in(self) -> bool:
        return self.direction == PathDirection.OUTSIDE_IN


@dataclass(frozen=True)
class SwingPathAnalysis:
    clubhead_path: Tuple[TrajectoryPoint, ...]
    swing_plane: float
    path_consistency: float
    path_direction: PathDirectionAnalysis

    @property
    def on_plane(self) -> bool:
        return self.path_direction.on_plane

    @property
    def inside_out(self) -> bool:
        return self.path_direction.inside_out

    @property
    def outside_in(self) -> bool:
        return self.path_direction.outside_in


@dataclass(frozen=True)
class TrajectoryVisualization:
    points: Tuple[TrajectoryPoint, ...]
    smoothed_points: Tuple[TrajectoryPoint, ...]
    velocity_profile: VelocityProfile
    segments: Tuple[PhaseSegment, ...]
    metrics: TrajectoryMetrics


# ── Array helpers ─────────────────────────────────────────────────────

def _as_points(trajectory: TrajectoryLike) -> Tuple[TrajectoryPoint, ...]:
    if isinstance(trajectory, Trajectory):
        return trajectory.snapshot()
    return tuple(trajectory)


def _positions(points: Sequence[TrajectoryPoint]) -> np.ndarray:
    if not points:
        return np.empty((0, 3), dtype=np.float64)
    return np.array([(p.x, p.y, p.z) for p in points], dtype=np.float64)


def _timestamps(points: Sequence[TrajectoryPoint]) -> np.ndarray:
    return np.array([p.timestamp for p in points], dtype=np.float64)


def _safe_divide(num: np.ndarray, den: np.ndarray) -> np.ndarray:
    """Element-wise num / den with 0 wherever den == 0."""
    out = np.zeros_like(num, dtype=np.float64)
    np.divide(num, den, out=out, where=den != 0)
    return out


def _direction(p1: TrajectoryPoint, p2: TrajectoryPoint) -> float:
    return math.degrees(math.atan2(p2.y - p1.y, p2.x - p1.x))


# ── Analyzer ──────────────────────────────────────────────────────────

class TrajectoryAnalyzer:
    """Batch metrics over a completed (or snapshotted) trajectory."""

    def __init__(self, config: Optional[TrajectoryConfig] = None):
        self.config = config or DEFAULT_CONFIG.trajectory

    # ── derivatives ───────────────────────────────────────────────────
    def velocities(self, trajectory: TrajectoryLike) -> np.ndarray:
        """(N-1,) speeds: |P[i+1] - P[i]| / dt, 0 for zero dt."""
        points = _as_points(trajectory)
        if len(points) < 2:
            return np.empty(0, dtype=np.float64)
        dist = np.linalg.norm(np.diff(_positions(points), axis=0), axis=1)
        return _safe_divide(dist, np.diff(_timestamps(points)))

    def accelerations(self, trajectory: TrajectoryLike) -> np.ndarray:
        """(N-2,) |v[j+1] - v[j]| over the half-span (t[j+2] - t[j]) / 2."""
        points = _as_points(trajectory)
        if len(points) < 3:
            return np.empty(0, dtype=np.float64)
        vel = self.velocities(points)
        ts = _timestamps(points)
        half_span = (ts[2:] - ts[:-2]) / 2.0
        return _safe_divide(np.abs(np.diff(vel)), half_span)

    def velocity_samples(self, trajectory: TrajectoryLike) -> List[VelocitySample]:
        points = _as_points(trajectory)
        return [
            VelocitySample(i, points[i + 1].frame, points[i + 1].timestamp, float(v))
            for i, v in enumerate(self.velocities(points))
        ]

    def acceleration_samples(self, trajectory: TrajectoryLike) -> List[AccelerationSample]:
        points = _as_points(trajectory)
        return [
            AccelerationSample(j, points[j + 1].frame, points[j + 1].timestamp, float(a))
            for j, a in enumerate(self.accelerations(points))
        ]

    # ── metrics ───────────────────────────────────────────────────────
    def analyze_trajectory(self, trajectory: TrajectoryLike) -> TrajectoryMetrics:
        """Distance, velocity, acceleration and smoothness summary."""
        points = _as_points(trajectory)
        if len(points) < 2:
            return TrajectoryMetrics()

        vel = self.velocities(points)
        acc = self.accelerations(points)
        peak = int(np.argmax(vel))
        total_distance = float(np.sum(np.linalg.norm(np.diff(_positions(points), axis=0), axis=1)))

        return TrajectoryMetrics(
            total_distance=total_distance,
            max_velocity=float(vel[peak]),
            avg_velocity=float(np.mean(vel)),
            max_acceleration=float(np.max(acc)) if len(acc) else 0.0,
            avg_acceleration=float(np.mean(acc)) if len(acc) else 0.0,
            peak_frame=peak,
            peak_source_frame=points[peak + 1].frame,
            smoothness=self._smoothness(acc),
        )

    @staticmethod
    def _smoothness(acc: np.ndarray) -> float:
        if len(acc) == 0:
            return 1.0
        peak = float(np.max(acc))
        if peak == 0.0:
            return 1.0
        normalized_var = float(np.var(acc)) / (peak * peak)
        return float(min(1.0, max(0.0, 1.0 - normalized_var)))

    def create_velocity_profile(self, trajectory: TrajectoryLike) -> VelocityProfile:
        points = _as_points(trajectory)
        vel = self.velocities(points)
        acc = self.accelerations(points)
        return VelocityProfile(
            frames=tuple(p.frame for p in points),
            velocities=tuple(float(v) for v in vel),
            accelerations=tuple(float(a) for a in acc),
            peak_velocity_frame=int(np.argmax(vel)) if len(vel) else 0,
            peak_acceleration_frame=int(np.argmax(acc)) if len(acc) else 0,
        )

    def smooth_trajectory(
        self, trajectory: TrajectoryLike, window: Optional[int] = None
    ) -> Tuple[TrajectoryPoint, ...]:
        """
        Centred moving average, clamped at the ends.

        Point i averages ``[i - w // 2, i + ceil(w / 2))``; the output keeps
        the input length and each point keeps its centre frame.
        """
        points = _as_points(trajectory)
        if not points:
            return ()
        w = max(1, int(window if window is not None else self.config.smoothing_window))
        pos = _positions(points)
        ts = _timestamps(points)
        n = len(points)
        half_lo, half_hi = w // 2, math.ceil(w / 2)

        smoothed = []
        for i in range(n):
            lo, hi = max(0, i - half_lo), min(n, i + half_hi)
            mean = pos[lo:hi].mean(axis=0)
            smoothed.append(TrajectoryPoint(
                x=float(mean[0]),
                y=float(mean[1]),
                z=float(mean[2]),
                timestamp=float(ts[lo:hi].mean()),
                frame=points[i].frame,
            ))
        return tuple(smoothed)

    # ── swing path ────────────────────────────────────────────────────
    def calculate_swing_plane(self, trajectory: TrajectoryLike) -> float:
        """Angle in degrees of the first -> last point vector."""
        points = _as_points(trajectory)
        if len(points) < 2:
            return 0.0
        return _direction(points[0], points[-1])

    def calculate_path_consistency(self, trajectory: TrajectoryLike) -> float:
        """1 - Var(v) / mean(v)^2, floored at 0."""
        points = _as_points(trajectory)
        if len(points) < 3:
            return 1.0
        vel = self.velocities(points)
        mean = float(np.mean(vel))
        if mean == 0.0:
            return 1.0
        return max(0.0, 1.0 - float(np.var(vel)) / (mean * mean))

    def analyze_path_direction(
        self, trajectory: TrajectoryLike, segments: Sequence[PhaseSegment]
    ) -> PathDirectionAnalysis:
        """Compare the net direction of the downswing against the backswing."""
        points = _as_points(trajectory)
        if len(points) < 3:
            return PathDirectionAnalysis()

        backswing = _segment_points(points, segments, PhaseLabel.BACKSWING)
        downswing = _segment_points(points, segments, PhaseLabel.DOWNSWING)
        if len(backswing) < 2 or len(downswing) < 2:
            logger.debug(
                f"Path direction undetermined: {len(backswing)} backswing / "
                f"{len(downswing)} downswing points"
            )
            return PathDirectionAnalysis()

        back_angle = _direction(backswing[0], backswing[-1])
        down_angle = _direction(downswing[0], downswing[-1])
        diff = normalize_angle(down_angle - back_angle)

        if abs(diff) < self.config.on_plane_threshold_deg:
            direction = PathDirection.ON_PLANE
        elif diff > 0:
            direction = PathDirection.INSIDE_OUT
        else:
            direction = PathDirection.OUTSIDE_IN
        return PathDirectionAnalysis(direction, back_angle, down_angle, diff)

    def analyze_swing_path(
        self, swing: SwingTrajectory, segments: Sequence[PhaseSegment]
    ) -> SwingPathAnalysis:
        path = swing.clubhead.snapshot()
        return SwingPathAnalysis(
            clubhead_path=path,
            swing_plane=self.calculate_swing_plane(path),
            path_consistency=self.calculate_path_consistency(path),
            path_direction=self.analyze_path_direction(path, segments),
        )

    # ── key moments ───────────────────────────────────────────────────
    def find_key_moments(self, trajectory: TrajectoryLike) -> KeyMoments:
        """
        Locate takeaway, top, impact and finish.

        - takeaway: start of the first interval faster than
          ``min_velocity_threshold``
        - top: highest point (minimum y) within the first
          ``top_search_fraction`` of the path
        - impact: centre of the largest acceleration at or after
          ``impact_search_start_fraction``; ``impact_default_fraction`` when
          nothing accelerates there
        - finish: last point

        Indices are clamped so takeaway <= top <= impact <= finish.
        """
        points = _as_points(trajectory)
        n = len(points)
        if n == 0:
            return KeyMoments()
        cfg = self.config

        vel = self.velocities(points)
        fast = np.nonzero(vel > cfg.min_velocity_threshold)[0]
        takeaway = int(fast[0]) if len(fast) else 0

        ys = _positions(points)[:, 1]
        search_end = min(n - 1, int(math.floor(n * cfg.top_search_fraction)))
        top = int(np.argmin(ys[: search_end + 1]))

        impact = min(n - 1, int(math.floor(n * cfg.impact_default_fraction)))
        impact_start = int(math.floor(n * cfg.impact_search_start_fraction))
        best = 0.0
        for j, a in enumerate(self.accelerations(points)):
            if j + 1 >= impact_start and a > best:
                best = float(a)
                impact = j + 1

        finish = n - 1
        top = max(takeaway, top)
        impact = min(finish, max(top, impact))

        return KeyMoments(
            takeaway_frame=points[takeaway].frame,
            top_frame=points[top].frame,
            impact_frame=points[impact].frame,
            finish_frame=points[finish].frame,
            takeaway_index=takeaway,
            top_index=top,
            impact_index=impact,
            finish_index=finish,
        )

    def create_visualization_data(
        self, trajectory: TrajectoryLike, segments: Sequence[PhaseSegment] = ()
    ) -> TrajectoryVisualization:
        points = _as_points(trajectory)
        return TrajectoryVisualization(
            points=points,
            smoothed_points=self.smooth_trajectory(points),
            velocity_profile=self.create_velocity_profile(points),
            segments=tuple(segments),
            metrics=self.analyze_trajectory(points),
        )


def _segment_points(
    points: Sequence[TrajectoryPoint], segments: Sequence[PhaseSegment], label: PhaseLabel
) -> List[TrajectoryPoint]:
    """Points whose frame falls inside the first segment carrying ``label``."""
    segment = next((s for s in segments if s.label == label), None)
    if segment is None:
        return []
    return [p for p in points if segment.contains_frame(p.frame)]
