"""Ledger of committed swing-phase segments.

``SwingTimeline`` holds the closed segments in time order plus at most one
open segment.  The smoother is its only writer; everything else reads.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Tuple

from .phase_classifier import PHASE_ORDER, PhaseLabel

logger = logging.getLogger(__name__)

SegmentListener = Callable[["PhaseSegment"], None]


@dataclass(frozen=True)
class PhaseSegment:
    """A contiguous span of frames committed to one phase."""

    label: PhaseLabel
    start_frame: int
    end_frame: int
    start_time: float
    end_time: float
    confidence: float

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def contains_frame(self, frame: int) -> bool:
        return self.start_frame <= frame <= self.end_frame

    def to_dict(self) -> dict:
        return {
            "label": self.label.value,
            "start_frame": self.start_frame,
            "end_frame": self.end_frame,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "confidence": self.confidence,
        }


class SwingTimeline:
    """Append-only, time-ordered list of phase segments."""

    def __init__(self):
        self._closed: List[PhaseSegment] = []
        self._open: Optional[PhaseSegment] = None
        self._listeners: List[SegmentListener] = []

    # ── writing ───────────────────────────────────────────────────────
    def open_segment(
        self, label: PhaseLabel, frame: int, time: float, confidence: float
    ) -> PhaseSegment:
        """Start a new segment.  The previous one must be closed first."""
        if self._open is not None:
            raise ValueError(f"Segment '{self._open.label.value}' is still open")
        if self._closed:
            last = self._closed[-1]
            if time < last.end_time or frame < last.end_frame:
                raise ValueError(
                    f"Segment starting at frame {frame} ({time} ms) overlaps "
                    f"'{last.label.value}' ending at frame {last.end_frame} ({last.end_time} ms)"
                )
        self._open = PhaseSegment(
            label=label,
            start_frame=frame,
            end_frame=frame,
            start_time=time,
            end_time=time,
            confidence=confidence,
        )
        return self._open

    def extend(self, frame: int, time: float, confidence: Optional[float] = None) -> PhaseSegment:
        """Move the open segment's end forward to ``frame`` / ``time``.

        ``confidence`` only ever raises the segment's confidence.
        """
        current = self._require_open()
        if time < current.end_time or frame < current.end_frame:
            raise ValueError(
                f"Cannot extend '{current.label.value}' backwards to frame {frame} ({time} ms)"
            )
        new_conf = current.confidence if confidence is None else max(current.confidence, confidence)
        self._open = replace(current, end_frame=frame, end_time=time, confidence=new_conf)
        return self._open

    def close(self) -> PhaseSegment:
        """Close the open segment at its current end and notify listeners."""
        segment = self._require_open()
        self._closed.append(segment)
        self._open = None
        for listener in self._listeners:
            listener(segment)
        return segment

    def add_listener(self, listener: SegmentListener):
        """Register a callback receiving every segment as it is closed."""
        self._listeners.append(listener)

    def clear(self):
        self._closed.clear()
        self._open = None

    def _require_open(self) -> PhaseSegment:
        if self._open is None:
            raise ValueError("No open segment")
        return self._open

    # ── reading ───────────────────────────────────────────────────────
    @property
    def segments(self) -> Tuple[PhaseSegment, ...]:
        """Closed segments only."""
        return tuple(self._closed)

    @property
    def current(self) -> Optional[PhaseSegment]:
        return self._open

    def get_segments(
        self, now_frame: Optional[int] = None, now_time: Optional[float] = None
    ) -> Tuple[PhaseSegment, ...]:
        """Closed segments plus the open one stretched to "now"."""
        if self._open is None:
            return tuple(self._closed)
        trailing = self._open
        if now_frame is not None and now_frame >= trailing.end_frame:
            trailing = replace(trailing, end_frame=now_frame)
        if now_time is not None and now_time >= trailing.end_time:
            trailing = replace(trailing, end_time=now_time)
        return tuple(self._closed) + (trailing,)

    def find(self, label: PhaseLabel) -> Optional[PhaseSegment]:
        """First segment (closed or open) carrying ``label``."""
        for segment in self.get_segments():
            if segment.label == label:
                return segment
        return None

    def labels(self) -> List[PhaseLabel]:
        return [s.label for s in self.get_segments()]

    def __len__(self) -> int:
        return len(self._closed) + (1 if self._open is not None else 0)

    # ── swing-level summaries ─────────────────────────────────────────
    def tempo_ratio(self) -> float:
        """Backswing duration over downswing duration; 1.0 when unknown."""
        backswing = self.find(PhaseLabel.BACKSWING)
        downswing = self.find(PhaseLabel.DOWNSWING)
        if backswing is None or downswing is None or downswing.duration <= 0:
            return 1.0
        return backswing.duration / downswing.duration

    def follows_canonical_order(self) -> bool:
        """
        Whether committed labels progress through the canonical order.

        Skipping phases is fine and a single step back is tolerated; anything
        further back is reported (at warning level) but never rejected.
        """
        current = 0
        for label in self.labels():
            index = PHASE_ORDER.index(label)
            if index >= current:
                current = index
            elif index < current - 1:
                sequence = " -> ".join(l.value for l in self.labels())
                logger.warning(f"Non-canonical phase order: {sequence}")
                return False
        return True
