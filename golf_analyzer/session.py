"""Per-swing processing pipeline.

``SwingSession`` wires the live path together for one recording:

    LandmarkFrame -> FeatureExtractor -> PhaseClassifier -> PhaseSmoother
                  -> SwingTimeline

and records the club head proxy plus the tracked landmarks into a
``SwingTrajectory``.  ``finish()`` runs the batch trajectory analysis on a
snapshot and returns a ``SwingReport``.

Usage:
    session = SwingSession()
    session.add_listener(print)          # receives each closed PhaseSegment
    for record in detector_records:
        session.process_frame(record)
    report = session.finish()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .analysis.trajectory import (
    CLUBHEAD,
    KeyMoments,
    SwingPathAnalysis,
    SwingTrajectory,
    TrajectoryAnalyzer,
    TrajectoryMetrics,
    TrajectoryPoint,
)
from .config.engine_config import EngineConfig, DEFAULT_CONFIG
from .core.features import FeatureExtractor, FeatureVector
from .core.frames import FrameValidationError, LandmarkFrame
from .core.phase_classifier import PhaseClassifier, PhaseLabel
from .core.smoother import PhaseSmoother
from .core.timeline import PhaseSegment, SegmentListener, SwingTimeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameResult:
    """Everything the live path produced for one frame."""

    frame_index: int
    timestamp_ms: float
    features: FeatureVector
    raw_label: PhaseLabel
    label: PhaseLabel
    confidence: float
    transitioned: bool
    closed_segment: Optional[PhaseSegment] = None


@dataclass(frozen=True)
class SwingReport:
    """Summary of a finished session."""

    segments: Tuple[PhaseSegment, ...]
    metrics: TrajectoryMetrics
    key_moments: KeyMoments
    path: SwingPathAnalysis
    tempo_ratio: float
    canonical_order: bool
    num_frames: int

    @property
    def clubhead_path(self) -> Tuple[TrajectoryPoint, ...]:
        return self.path.clubhead_path

    def to_dict(self) -> Dict[str, Any]:
        return {
            "num_frames": self.num_frames,
            "segments": [s.to_dict() for s in self.segments],
            "metrics": {
                "total_distance": self.metrics.total_distance,
                "max_velocity": self.metrics.max_velocity,
                "avg_velocity": self.metrics.avg_velocity,
                "max_acceleration": self.metrics.max_acceleration,
                "avg_acceleration": self.metrics.avg_acceleration,
                "peak_frame": self.metrics.peak_frame,
                "peak_source_frame": self.metrics.peak_source_frame,
                "smoothness": self.metrics.smoothness,
            },
            "key_moments": {
                "takeaway": self.key_moments.takeaway_frame,
                "top": self.key_moments.top_frame,
                "impact": self.key_moments.impact_frame,
                "finish": self.key_moments.finish_frame,
            },
            "swing_plane": self.path.swing_plane,
            "path_consistency": self.path.path_consistency,
            "path_direction": self.path.path_direction.direction.value,
            "tempo_ratio": self.tempo_ratio,
            "canonical_order": self.canonical_order,
        }


class SwingSession:
    """Caller-owned state for analysing one swing."""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.extractor = FeatureExtractor(self.config.features)
        self.classifier = PhaseClassifier(self.config.classifier)
        self.timeline = SwingTimeline()
        self.smoother = PhaseSmoother(self.config.smoothing, self.timeline)
        self.analyzer = TrajectoryAnalyzer(self.config.trajectory)
        self.trajectory = SwingTrajectory()

        self._previous: Optional[LandmarkFrame] = None
        self._previous_proxy: Optional[Tuple[float, float, float]] = None
        self._num_frames = 0
        self._finished = False

    def add_listener(self, listener: SegmentListener):
        """Subscribe to closed-segment events."""
        self.timeline.add_listener(listener)

    @property
    def num_frames(self) -> int:
        return self._num_frames

    def process_frame(self, frame: Union[LandmarkFrame, Mapping[str, Any]]) -> FrameResult:
        """
        Run one frame through the live path.

        Args:
            frame: A ``LandmarkFrame`` or a raw detector record.

        Raises:
            FrameValidationError: malformed record, or timestamp / frame
                index earlier than the previous frame's.
        """
        if self._finished:
            raise RuntimeError("Session already finished; call reset() to reuse it")
        if not isinstance(frame, LandmarkFrame):
            frame = LandmarkFrame.from_record(frame)

        prev = self._previous
        if prev is not None:
            if frame.timestamp_ms < prev.timestamp_ms:
                raise FrameValidationError(
                    f"Frame {frame.frame_index}: timestamp {frame.timestamp_ms} ms "
                    f"is earlier than previous {prev.timestamp_ms} ms"
                )
            if frame.frame_index < prev.frame_index:
                raise FrameValidationError(
                    f"Frame index {frame.frame_index} is earlier than previous {prev.frame_index}"
                )

        features = self.extractor.extract(frame, prev, self._previous_proxy)
        raw_label = self.classifier.classify(features)
        smoothed = self.smoother.update(
            raw_label, frame.timestamp_ms, frame.frame_index, features.confidence
        )
        self._record_points(frame, features)

        self._previous = frame
        self._previous_proxy = features.proxy_position
        self._num_frames += 1

        return FrameResult(
            frame_index=frame.frame_index,
            timestamp_ms=frame.timestamp_ms,
            features=features,
            raw_label=raw_label,
            label=smoothed.label,
            confidence=smoothed.confidence,
            transitioned=smoothed.transitioned,
            closed_segment=smoothed.closed_segment,
        )

    def _record_points(self, frame: LandmarkFrame, features: FeatureVector):
        x, y, z = features.proxy_position
        self.trajectory.clubhead.add(x, y, z, frame.timestamp_ms, frame.frame_index)

        min_vis = self.config.features.min_visibility
        for name in self.trajectory.names:
            if name == CLUBHEAD:
                continue
            lm = frame.visible(name, min_vis)
            if lm is not None:
                self.trajectory.get(name).add(lm.x, lm.y, lm.z, frame.timestamp_ms, frame.frame_index)

    def current_segments(self) -> Tuple[PhaseSegment, ...]:
        """Closed segments plus the open one, ending at the latest frame."""
        if self._previous is None:
            return self.timeline.get_segments()
        return self.timeline.get_segments(self._previous.frame_index, self._previous.timestamp_ms)

    def finish(self) -> SwingReport:
        """Close the open segment and analyse the club head path."""
        if self.timeline.current is not None:
            self.timeline.close()
        self._finished = True

        segments = self.timeline.segments
        path = self.trajectory.clubhead.snapshot()
        report = SwingReport(
            segments=segments,
            metrics=self.analyzer.analyze_trajectory(path),
            key_moments=self.analyzer.find_key_moments(path),
            path=self.analyzer.analyze_swing_path(self.trajectory, segments),
            tempo_ratio=self.timeline.tempo_ratio(),
            canonical_order=self.timeline.follows_canonical_order(),
            num_frames=self._num_frames,
        )
        logger.info(
            f"Session finished: {self._num_frames} frames, {len(segments)} segments, "
            f"tempo {report.tempo_ratio:.2f}"
        )
        return report

    def reset(self):
        """Discard all per-session state (listeners are kept)."""
        self.smoother.reset()
        self.timeline.clear()
        self.trajectory = SwingTrajectory()
        self._previous = None
        self._previous_proxy = None
        self._num_frames = 0
        self._finished = False
