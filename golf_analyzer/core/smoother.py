"""Temporal smoothing of raw phase labels.

``PhaseSmoother`` debounces the classifier's per-frame guesses with a ring
buffer majority vote, a cooldown after each transition and a minimum vote
share.  Every committed change is written to a ``SwingTimeline``.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Optional, Tuple, Union

import numpy as np

from ..config.engine_config import SmoothingConfig, DEFAULT_CONFIG
from .phase_classifier import PhaseLabel
from .timeline import PhaseSegment, SwingTimeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SmoothingResult:
    """Outcome of one ``PhaseSmoother.update`` call."""

    label: PhaseLabel
    confidence: float
    transitioned: bool
    closed_segment: Optional[PhaseSegment] = None


@dataclass(frozen=True)
class SmoothingState:
    """Read-only snapshot of the smoother's internals."""

    raw_label_buffer: Tuple[PhaseLabel, ...]
    confidence_buffer: Tuple[float, ...]
    committed_label: Optional[PhaseLabel]
    last_transition_time: Optional[float]
    cooldown_ms: float
    window_size: int
    hysteresis_threshold: float


class PhaseSmoother:
    """Smooth phase classification to reduce flickering."""

    def __init__(
        self,
        config: Optional[SmoothingConfig] = None,
        timeline: Optional[SwingTimeline] = None,
    ):
        """
        Args:
            config: Window size, cooldown and hysteresis settings.
            timeline: Ledger receiving committed segments.  A private one is
                created when omitted.
        """
        self.config = config or DEFAULT_CONFIG.smoothing
        self.timeline = timeline if timeline is not None else SwingTimeline()

        self.history: Deque[PhaseLabel] = deque(maxlen=self.config.window_size)
        self.confidences: Deque[float] = deque(maxlen=self.config.window_size)
        self.intervals: Deque[float] = deque(
            maxlen=max(self.config.window_size, self.config.min_gap_history)
        )

        self.current_label: Optional[PhaseLabel] = None
        self.current_confidence = 0.0
        self.last_transition_time: Optional[float] = None
        self._last_time: Optional[float] = None
        self._last_frame: Optional[int] = None

    @property
    def state(self) -> SmoothingState:
        return SmoothingState(
            raw_label_buffer=tuple(self.history),
            confidence_buffer=tuple(self.confidences),
            committed_label=self.current_label,
            last_transition_time=self.last_transition_time,
            cooldown_ms=self.config.cooldown_ms,
            window_size=self.config.window_size,
            hysteresis_threshold=self.config.hysteresis_threshold,
        )

    def update(
        self,
        raw_label: Union[PhaseLabel, str],
        timestamp_ms: float,
        frame_index: Optional[int] = None,
        sample_confidence: float = 1.0,
    ) -> SmoothingResult:
        """
        Feed one raw label and return the committed label after it.

        Args:
            raw_label: Classifier output for this frame.
            timestamp_ms: Frame timestamp; must not go backwards.
            frame_index: Frame number; defaults to previous + 1.
            sample_confidence: Feature confidence.  Samples at 0 only extend
                the open segment once a label is committed.

        Returns:
            SmoothingResult with the committed label and its vote share.
        """
        label = PhaseLabel.coerce(raw_label)
        if self._last_time is not None and timestamp_ms < self._last_time:
            raise ValueError(
                f"Timestamp {timestamp_ms} ms is earlier than previous {self._last_time} ms"
            )
        if frame_index is None:
            frame_index = 0 if self._last_frame is None else self._last_frame + 1
        elif self._last_frame is not None and frame_index < self._last_frame:
            raise ValueError(
                f"Frame {frame_index} is earlier than previous frame {self._last_frame}"
            )

        self._track_interval(timestamp_ms)
        self._last_time = timestamp_ms
        self._last_frame = frame_index

        # First sample: nothing to debounce against
        if self.current_label is None:
            self.history.append(label)
            self.confidences.append(float(sample_confidence))
            return self._commit(label, 1.0, frame_index, timestamp_ms)

        # Unreliable frame: hold previous state
        if sample_confidence <= 0.0:
            self.timeline.extend(frame_index, timestamp_ms)
            return SmoothingResult(self.current_label, self.current_confidence, False)

        self.history.append(label)
        self.confidences.append(float(sample_confidence))
        majority, share = self._majority()

        in_cooldown = (
            self.last_transition_time is not None
            and timestamp_ms - self.last_transition_time < self.config.cooldown_ms
        )
        if in_cooldown or share < self.config.hysteresis_threshold or majority == self.current_label:
            committed_share = self._share(self.current_label)
            segment = self.timeline.extend(frame_index, timestamp_ms, committed_share)
            self.current_confidence = segment.confidence
            return SmoothingResult(self.current_label, self.current_confidence, False)

        return self._commit(majority, share, frame_index, timestamp_ms)

    def reset(self):
        """Reset smoother state (the timeline is left untouched)."""
        self.history.clear()
        self.confidences.clear()
        self.intervals.clear()
        self.current_label = None
        self.current_confidence = 0.0
        self.last_transition_time = None
        self._last_time = None
        self._last_frame = None

    # ── internals ─────────────────────────────────────────────────────
    def _commit(
        self, label: PhaseLabel, share: float, frame_index: int, timestamp_ms: float
    ) -> SmoothingResult:
        closed = None
        if self.timeline.current is not None:
            closed = self.timeline.close()
        self.timeline.open_segment(label, frame_index, timestamp_ms, share)

        previous = self.current_label
        self.current_label = label
        self.current_confidence = share
        self.last_transition_time = timestamp_ms
        if previous is None:
            logger.info(f"Phase initialised: {label.value} at frame {frame_index}")
        else:
            logger.info(
                f"Phase {previous.value} -> {label.value} at frame {frame_index} "
                f"({timestamp_ms:.1f} ms, share {share:.2f})"
            )
        return SmoothingResult(label, share, True, closed)

    def _majority(self) -> Tuple[PhaseLabel, float]:
        """Most common buffered label and its vote share.

        Ties prefer the committed label, then the label whose oldest vote sits
        earliest in the buffer.
        """
        counts: Dict[PhaseLabel, int] = {}
        first_seen: Dict[PhaseLabel, int] = {}
        for position, label in enumerate(self.history):
            counts[label] = counts.get(label, 0) + 1
            first_seen.setdefault(label, position)

        top = max(counts.values())
        tied = [label for label, count in counts.items() if count == top]
        if self.current_label in tied:
            winner = self.current_label
        else:
            winner = min(tied, key=lambda label: first_seen[label])
        return winner, top / len(self.history)

    def _share(self, label: Optional[PhaseLabel]) -> float:
        if not self.history:
            return 0.0
        return sum(1 for l in self.history if l == label) / len(self.history)

    def _track_interval(self, timestamp_ms: float):
        """Clear the vote buffers after a dropped-frame gap."""
        if self._last_time is None:
            return
        dt = timestamp_ms - self._last_time
        if len(self.intervals) >= self.config.min_gap_history:
            typical = float(np.median(self.intervals))
            if typical > 0.0 and dt > self.config.max_gap_factor * typical:
                logger.debug(
                    f"Gap of {dt:.1f} ms (typical {typical:.1f} ms): clearing vote buffer"
                )
                self.history.clear()
                self.confidences.clear()
        self.intervals.append(dt)
