"""Rule-based raw phase classifier for golf swings.

The classifier is a pure function of one ``FeatureVector``: an ordered table
of ``PhaseRule`` entries is evaluated top to bottom and the first matching
rule wins.  It keeps no history; temporal stability is the job of
``PhaseSmoother``.

Screen coordinates: y increases downward, so a *negative* vertical velocity
means the hands are rising.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple, Union

from ..config.engine_config import ClassifierConfig, DEFAULT_CONFIG
from .features import FeatureVector


class PhaseLabel(Enum):
    """Phases of a golf swing."""
    ADDRESS = "address"
    TAKEAWAY = "takeaway"
    BACKSWING = "backswing"
    TOP = "top"
    DOWNSWING = "downswing"
    IMPACT = "impact"
    FOLLOW_THROUGH = "follow-through"

    @classmethod
    def coerce(cls, value: Union["PhaseLabel", str]) -> "PhaseLabel":
        """Accept a member, its value (``"follow-through"``) or its name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace("_", "-")
            for label in cls:
                if label.value == key or label.name.lower().replace("_", "-") == key:
                    return label
        raise ValueError(f"Unknown phase label: {value!r}")


# Canonical order of a full swing
PHASE_ORDER: Tuple[PhaseLabel, ...] = tuple(PhaseLabel)


@dataclass(frozen=True)
class PhaseRule:
    """One row of the classification table."""

    priority: int
    name: str
    label: PhaseLabel
    predicate: Callable[[FeatureVector, ClassifierConfig], bool]

    def matches(self, features: FeatureVector, config: ClassifierConfig) -> bool:
        return bool(self.predicate(features, config))


# ── Predicates ────────────────────────────────────────────────────────

def _vertical_speed(f: FeatureVector) -> float:
    return f.proxy_velocity[1]


def is_address(f: FeatureVector, c: ClassifierConfig) -> bool:
    """Hands low, centred and nearly still."""
    return (
        f.proxy_speed < c.address_max_speed
        and f.hands_height <= c.address_max_hands_height
        and abs(f.hands_lateral) <= c.address_max_lateral
    )


def is_takeaway(f: FeatureVector, c: ClassifierConfig) -> bool:
    """Hands moving to the trail side while still below the shoulders."""
    return (
        f.hands_height < 0.0
        and f.hands_lateral >= c.takeaway_min_lateral
        and f.proxy_speed >= c.takeaway_min_speed
        and _vertical_speed(f) <= 0.0
        and _vertical_speed(f) > -c.backswing_min_rise_speed
    )


def is_backswing(f: FeatureVector, c: ClassifierConfig) -> bool:
    """Hands rising on the trail side."""
    return _vertical_speed(f) <= -c.backswing_min_rise_speed and f.hands_lateral > 0.0


def is_top(f: FeatureVector, c: ClassifierConfig) -> bool:
    """Hands at or above the shoulders and close to still."""
    return f.hands_height >= c.top_min_hands_height and f.proxy_speed <= c.top_max_speed


def is_downswing(f: FeatureVector, c: ClassifierConfig) -> bool:
    """Hands dropping, clear of the hip line or not yet back in front of the hips."""
    return _vertical_speed(f) >= c.downswing_min_drop_speed and (
        f.hands_hip_height >= c.downswing_min_hip_clearance
        or abs(f.hands_lateral) > c.impact_max_lateral
    )


def is_impact(f: FeatureVector, c: ClassifierConfig) -> bool:
    """Fast hands back in front of the hips."""
    return f.proxy_speed >= c.impact_min_speed and abs(f.hands_lateral) <= c.impact_max_lateral


def is_follow_through(f: FeatureVector, c: ClassifierConfig) -> bool:
    """Hands past the lead hip."""
    return f.hands_lateral <= -c.follow_through_min_lateral


PHASE_RULES: Tuple[PhaseRule, ...] = (
    PhaseRule(10, "address", PhaseLabel.ADDRESS, is_address),
    PhaseRule(20, "takeaway", PhaseLabel.TAKEAWAY, is_takeaway),
    PhaseRule(30, "backswing", PhaseLabel.BACKSWING, is_backswing),
    PhaseRule(40, "top", PhaseLabel.TOP, is_top),
    PhaseRule(50, "downswing", PhaseLabel.DOWNSWING, is_downswing),
    PhaseRule(60, "impact", PhaseLabel.IMPACT, is_impact),
    PhaseRule(70, "follow_through", PhaseLabel.FOLLOW_THROUGH, is_follow_through),
)


def fallback_phase(f: FeatureVector, c: ClassifierConfig) -> PhaseLabel:
    """Label for a vector no rule matched, picked from the direction of motion.

    Only near-still hands fall back to ADDRESS.  Moving hands past the
    hips count as FOLLOW_THROUGH, dropping hands as DOWNSWING and anything
    else as BACKSWING.
    """
    if f.proxy_speed < c.address_max_speed:
        return PhaseLabel.ADDRESS
    if f.hands_lateral <= 0.0:
        return PhaseLabel.FOLLOW_THROUGH
    if _vertical_speed(f) > 0.0:
        return PhaseLabel.DOWNSWING
    return PhaseLabel.BACKSWING


Fallback = Callable[[FeatureVector, ClassifierConfig], PhaseLabel]


class PhaseClassifier:
    """
    Stateless classifier: FeatureVector -> candidate PhaseLabel.

    Low-confidence vectors are classified like any other; the smoother
    absorbs the noise.
    """

    def __init__(
        self,
        config: Optional[ClassifierConfig] = None,
        rules: Tuple[PhaseRule, ...] = PHASE_RULES,
        fallback: Fallback = fallback_phase,
    ):
        self.config = config or DEFAULT_CONFIG.classifier
        self.rules = tuple(sorted(rules, key=lambda r: r.priority))
        self.fallback = fallback

    def classify(self, features: FeatureVector) -> PhaseLabel:
        rule = self.matching_rule(features)
        if rule is not None:
            return rule.label
        return self.fallback(features, self.config)

    def matching_rule(self, features: FeatureVector) -> Optional[PhaseRule]:
        """First rule (by priority) whose predicate holds, or None."""
        for rule in self.rules:
            if rule.matches(features, self.config):
                return rule
        return None


def classify_phase(features: FeatureVector, config: Optional[ClassifierConfig] = None) -> PhaseLabel:
    """Module-level convenience wrapper around ``PhaseClassifier``."""
    return PhaseClassifier(config).classify(features)
