"""Landmark frame records produced by the pose detector.

A ``LandmarkFrame`` is the only input the live pipeline consumes.  Records
coming from the detector are validated once, here, so everything downstream
can trust the numbers.  A malformed record is the one hard error of the
frame path and surfaces as ``FrameValidationError``.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from ..config.landmarks import POSE_LANDMARKS


class FrameValidationError(ValueError):
    """Raised for detector records with missing fields or bad numbers."""


@dataclass(frozen=True)
class Landmark:
    """One tracked anatomical point (normalised screen coordinates)."""

    name: str
    x: float
    y: float
    z: float = 0.0
    visibility: float = 1.0

    def is_visible(self, min_visibility: float) -> bool:
        return self.visibility >= min_visibility


@dataclass(frozen=True)
class LandmarkFrame:
    """Immutable set of named landmarks for one video frame."""

    landmarks: Tuple[Landmark, ...]
    timestamp_ms: float
    frame_index: int
    _by_name: Dict[str, Landmark] = field(
        init=False, repr=False, compare=False, hash=False, default_factory=dict
    )

    def __post_init__(self):
        object.__setattr__(self, "_by_name", {lm.name: lm for lm in self.landmarks})

    def get(self, name: str) -> Optional[Landmark]:
        return self._by_name.get(name)

    def visible(self, name: str, min_visibility: float) -> Optional[Landmark]:
        """Return the landmark when present and visible enough, else None."""
        lm = self._by_name.get(name)
        if lm is None or not lm.is_visible(min_visibility):
            return None
        return lm

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self.landmarks)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "LandmarkFrame":
        """Build a frame from a detector record.

        Accepted keys: ``landmarks``, ``timestampMs`` or ``timestamp_ms``,
        ``frameIndex`` or ``frame_index``.  Landmarks may carry a ``name``;
        unnamed landmarks are mapped positionally to the MediaPipe names.
        """
        if not isinstance(record, Mapping):
            raise FrameValidationError(f"Frame record must be a mapping, got {type(record).__name__}")

        raw_landmarks = record.get("landmarks")
        if raw_landmarks is None:
            raise FrameValidationError("Frame record is missing 'landmarks'")
        if isinstance(raw_landmarks, (str, bytes)) or not isinstance(raw_landmarks, Iterable):
            raise FrameValidationError("'landmarks' must be a list of points")

        timestamp = _first_present(record, ("timestampMs", "timestamp_ms"))
        if timestamp is None:
            raise FrameValidationError("Frame record is missing 'timestampMs'")
        frame_index = _first_present(record, ("frameIndex", "frame_index"))
        if frame_index is None:
            raise FrameValidationError("Frame record is missing 'frameIndex'")

        landmarks = tuple(
            _parse_landmark(raw, position) for position, raw in enumerate(raw_landmarks)
        )
        return cls(
            landmarks=landmarks,
            timestamp_ms=_finite_number(timestamp, "timestampMs"),
            frame_index=_integer(frame_index, "frameIndex"),
        )


# ── record parsing helpers ────────────────────────────────────────────

def _first_present(record: Mapping[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return None


def _finite_number(value: Any, what: str) -> float:
    # bool is an int subclass but never a coordinate; numpy scalars register as Real
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise FrameValidationError(f"{what} must be numeric, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise FrameValidationError(f"{what} must be finite, got {value!r}")
    return value


def _integer(value: Any, what: str) -> int:
    if isinstance(value, bool):
        raise FrameValidationError(f"{what} must be an integer, got {value!r}")
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real) and float(value).is_integer():
        return int(value)
    raise FrameValidationError(f"{what} must be an integer, got {value!r}")


def _parse_landmark(raw: Any, position: int) -> Landmark:
    if isinstance(raw, Landmark):
        return raw
    if not isinstance(raw, Mapping):
        raise FrameValidationError(f"Landmark {position} must be a mapping, got {type(raw).__name__}")

    name = raw.get("name")
    if name is None:
        name = POSE_LANDMARKS.get(position)
        if name is None:
            raise FrameValidationError(f"Landmark {position} has no name and no positional default")
    elif not isinstance(name, str) or not name:
        raise FrameValidationError(f"Landmark {position} has an invalid name {name!r}")

    for key in ("x", "y"):
        if key not in raw:
            raise FrameValidationError(f"Landmark '{name}' is missing '{key}'")

    x = _finite_number(raw["x"], f"{name}.x")
    y = _finite_number(raw["y"], f"{name}.y")
    z = _finite_number(raw["z"], f"{name}.z") if raw.get("z") is not None else 0.0

    visibility = 1.0
    if raw.get("visibility") is not None:
        visibility = _finite_number(raw["visibility"], f"{name}.visibility")
        if not 0.0 <= visibility <= 1.0:
            raise FrameValidationError(f"{name}.visibility must be in [0, 1], got {visibility}")

    return Landmark(name=name, x=x, y=y, z=z, visibility=visibility)
