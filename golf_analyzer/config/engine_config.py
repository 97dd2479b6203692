"""Swing engine configuration.

All thresholds for feature extraction, phase classification, smoothing and
trajectory analysis are centralised here so that tuning never requires
touching analysis code.

Coordinates are normalised screen space (0-1, y increases downward) and
timestamps are milliseconds.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict


# =====================================================================
# Feature extraction
# =====================================================================

@dataclass(frozen=True)
class FeatureConfig:
    """Parameters for per-frame feature extraction."""

    # Landmarks below this visibility are excluded from angle math
    min_visibility: float = 0.5

    # Fewer visible required keypoints than this => confidence 0
    min_required_visible: int = 2

    # Club head sits below the hands
    club_offset: float = 0.1

    # -1.0: trail side is toward smaller x (right-hander, face-on camera)
    trail_direction: float = -1.0

    def __post_init__(self):
        if not 0.0 <= self.min_visibility <= 1.0:
            raise ValueError(f"min_visibility must be in [0, 1], got {self.min_visibility}")
        if self.min_required_visible < 0:
            raise ValueError("min_required_visible must be >= 0")
        if self.trail_direction not in (-1.0, 1.0):
            raise ValueError("trail_direction must be -1.0 or 1.0")


# =====================================================================
# Raw phase classification
# =====================================================================

@dataclass(frozen=True)
class ClassifierConfig:
    """Thresholds for the ordered phase rule table (units/s, screen units)."""

    # Address: hands low and nearly still
    address_max_speed: float = 0.15
    address_max_hands_height: float = -0.15
    address_max_lateral: float = 0.05

    # Takeaway: hands drift to the trail side while still below the shoulders
    takeaway_min_lateral: float = 0.03
    takeaway_min_speed: float = 0.05

    # Backswing: hands rising on the trail side
    backswing_min_rise_speed: float = 0.1

    # Top: hands at or above the shoulders and slowing down
    top_min_hands_height: float = 0.0
    top_max_speed: float = 0.5

    # Downswing: hands dropping while still above the hip line
    downswing_min_drop_speed: float = 0.1
    downswing_min_hip_clearance: float = 0.05

    # Impact: fast hands back in front of the hips
    impact_min_speed: float = 1.0
    impact_max_lateral: float = 0.08

    # Follow-through: hands past the lead hip
    follow_through_min_lateral: float = 0.05


# =====================================================================
# Phase smoothing
# =====================================================================

@dataclass(frozen=True)
class SmoothingConfig:
    """Debounce parameters for the phase smoother."""

    window_size: int = 5
    cooldown_ms: float = 100.0
    hysteresis_threshold: float = 0.15

    # Gap larger than max_gap_factor x median recent interval clears the vote buffer
    max_gap_factor: float = 3.0
    # Intervals needed before the gap policy applies
    min_gap_history: int = 3

    def __post_init__(self):
        if self.window_size < 1:
            raise ValueError(f"window_size must be >= 1, got {self.window_size}")
        if self.cooldown_ms < 0:
            raise ValueError(f"cooldown_ms must be >= 0, got {self.cooldown_ms}")
        if not 0.0 <= self.hysteresis_threshold <= 1.0:
            raise ValueError(
                f"hysteresis_threshold must be in [0, 1], got {self.hysteresis_threshold}"
            )
        if self.max_gap_factor <= 1.0:
            raise ValueError("max_gap_factor must be > 1")


# =====================================================================
# Trajectory analysis
# =====================================================================

@dataclass(frozen=True)
class TrajectoryConfig:
    """Parameters for batch trajectory metrics."""

    smoothing_window: int = 5
    # units per ms; 0.001 is one screen width per second, so a 30 fps
    # backswing in normalised coordinates usually needs about 0.0002
    min_velocity_threshold: float = 0.001

    # Key moment search windows (fractions of trajectory length)
    top_search_fraction: float = 0.7
    impact_search_start_fraction: float = 0.5
    impact_default_fraction: float = 0.7

    # Path direction classification
    on_plane_threshold_deg: float = 10.0

    def __post_init__(self):
        if self.min_velocity_threshold < 0:
            raise ValueError("min_velocity_threshold must be >= 0")
        for name in ("top_search_fraction", "impact_search_start_fraction",
                     "impact_default_fraction"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")


# =====================================================================
# Master Configuration
# =====================================================================

@dataclass(frozen=True)
class EngineConfig:
    """Top-level configuration aggregating all sub-configs."""

    features: FeatureConfig = field(default_factory=FeatureConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    smoothing: SmoothingConfig = field(default_factory=SmoothingConfig)
    trajectory: TrajectoryConfig = field(default_factory=TrajectoryConfig)

    def with_overrides(self, **overrides: Any) -> "EngineConfig":
        """Return a copy with flat overrides routed to their sub-config.

        ``DEFAULT_CONFIG.with_overrides(window_size=7, cooldown_ms=150)``
        """
        grouped: Dict[str, Dict[str, Any]] = {}
        for key, value in overrides.items():
            section = _FIELD_SECTIONS.get(key)
            if section is None:
                raise ValueError(f"Unknown configuration option: {key}")
            grouped.setdefault(section, {})[key] = value

        updates = {
            section: replace(getattr(self, section), **values)
            for section, values in grouped.items()
        }
        return replace(self, **updates)


_FIELD_SECTIONS: Dict[str, str] = {}
for _section, _cls in (
    ("features", FeatureConfig),
    ("classifier", ClassifierConfig),
    ("smoothing", SmoothingConfig),
    ("trajectory", TrajectoryConfig),
):
    for _f in fields(_cls):
        _FIELD_SECTIONS[_f.name] = _section


# Default configuration instance
DEFAULT_CONFIG = EngineConfig()
