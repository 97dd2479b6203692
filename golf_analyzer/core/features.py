"""Per-frame kinematic features.

All geometry helpers are pure and operate on a single ``LandmarkFrame``.
``FeatureExtractor`` combines them into a ``FeatureVector`` and uses the
previous frame only for the finite-difference velocity of the club proxy.

Landmarks below the visibility threshold never enter the angle math.  When
too few required keypoints are visible the vector still comes back, with
``confidence == 0``; callers treat that as "hold previous state".
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ..config.engine_config import FeatureConfig, DEFAULT_CONFIG
from ..config.landmarks import REQUIRED_LANDMARKS
from .frames import Landmark, LandmarkFrame

logger = logging.getLogger(__name__)

SCREEN_CENTER = (0.5, 0.5, 0.0)


@dataclass(frozen=True)
class WeightDistribution:
    """Share of body weight on each foot, in whole percent (sums to 100)."""

    left_pct: int = 50
    right_pct: int = 50

    @property
    def imbalance(self) -> int:
        return abs(self.left_pct - self.right_pct)


@dataclass(frozen=True)
class FeatureVector:
    """Kinematic features of one frame."""

    frame_index: int
    timestamp_ms: float
    proxy_position: Tuple[float, float, float]
    proxy_velocity: Tuple[float, float]     # units/s, +y = moving down
    proxy_speed: float
    shoulder_angle: float
    hip_angle: float
    x_factor: float
    weight_distribution: WeightDistribution
    hands_height: float                     # > 0: hands above the shoulders
    hands_hip_height: float                 # > 0: hands above the hip line
    hands_lateral: float                    # > 0: hands on the trail side
    confidence: float

    @property
    def is_reliable(self) -> bool:
        return self.confidence > 0.0


# ── Low-level geometry helpers ────────────────────────────────────────

def normalize_angle(angle: float) -> float:
    """Wrap an angle in degrees into (-180, 180]."""
    wrapped = math.fmod(angle, 360.0)
    if wrapped <= -180.0:
        wrapped += 360.0
    elif wrapped > 180.0:
        wrapped -= 360.0
    return wrapped


def line_angle(p1: Landmark, p2: Landmark) -> float:
    """Angle of the line p1 -> p2 from horizontal, degrees in (-180, 180]."""
    return normalize_angle(math.degrees(math.atan2(p2.y - p1.y, p2.x - p1.x)))


def _midpoint(a: Landmark, b: Landmark) -> np.ndarray:
    return 0.5 * (np.array([a.x, a.y, a.z]) + np.array([b.x, b.y, b.z]))


def pair_angle(
    frame: LandmarkFrame, left: str, right: str, min_visibility: float
) -> Optional[float]:
    """Left->right line angle, or None if either side is not visible."""
    lm_l = frame.visible(left, min_visibility)
    lm_r = frame.visible(right, min_visibility)
    if lm_l is None or lm_r is None:
        return None
    return line_angle(lm_l, lm_r)


def pair_center(
    frame: LandmarkFrame, left: str, right: str, min_visibility: float
) -> Optional[np.ndarray]:
    """Midpoint of a visible pair; a lone visible side stands in for the pair."""
    lm_l = frame.visible(left, min_visibility)
    lm_r = frame.visible(right, min_visibility)
    if lm_l is not None and lm_r is not None:
        return _midpoint(lm_l, lm_r)
    single = lm_l or lm_r
    if single is None:
        return None
    return np.array([single.x, single.y, single.z])


def club_head_position(
    frame: LandmarkFrame, min_visibility: float, club_offset: float
) -> Optional[np.ndarray]:
    """Club head proxy: between the hands, ``club_offset`` below them."""
    hands = pair_center(frame, "left_wrist", "right_wrist", min_visibility)
    if hands is None:
        return None
    hands[1] += club_offset
    return hands


def _foot_pressure(heel: Landmark, toe: Landmark) -> float:
    # Lower on screen (larger y) reads as a more planted foot
    heel_p = 1.0 - min(1.0, max(0.0, heel.y))
    toe_p = 1.0 - min(1.0, max(0.0, toe.y))
    return (heel_p + toe_p) / 2.0


def weight_distribution(frame: LandmarkFrame, min_visibility: float) -> WeightDistribution:
    """Left/right weight split from ankle and foot heights."""
    left_foot = frame.visible("left_ankle", min_visibility) or frame.visible("left_heel", min_visibility)
    right_foot = frame.visible("right_ankle", min_visibility) or frame.visible("right_heel", min_visibility)
    if left_foot is None or right_foot is None:
        return WeightDistribution()

    left_toe = frame.visible("left_foot_index", min_visibility) or left_foot
    right_toe = frame.visible("right_foot_index", min_visibility) or right_foot

    left_p = _foot_pressure(left_foot, left_toe)
    right_p = _foot_pressure(right_foot, right_toe)
    total = left_p + right_p
    if total <= 0.0:
        return WeightDistribution()

    left_pct = int(round(100.0 * left_p / total))
    return WeightDistribution(left_pct=left_pct, right_pct=100 - left_pct)


# ── Extractor ─────────────────────────────────────────────────────────

class FeatureExtractor:
    """Turn landmark frames into ``FeatureVector`` records.

    Stateless apart from configuration: the caller passes the previous frame
    (and optionally the previous proxy position) explicitly.
    """

    def __init__(self, config: Optional[FeatureConfig] = None):
        self.config = config or DEFAULT_CONFIG.features

    def extract(
        self,
        frame: LandmarkFrame,
        previous: Optional[LandmarkFrame] = None,
        previous_proxy: Optional[Tuple[float, float, float]] = None,
    ) -> FeatureVector:
        """
        Compute the feature vector of ``frame``.

        Args:
            frame: Current landmark frame.
            previous: Previous frame of the same session, for velocity.
            previous_proxy: Proxy position reported for the previous frame.
                Used when this frame has no visible wrist, and as the velocity
                reference when given.

        Returns:
            FeatureVector (confidence 0 when fewer than the minimum number of
            required keypoints are visible).
        """
        cfg = self.config
        vis = cfg.min_visibility

        visible_required = sum(1 for name in REQUIRED_LANDMARKS if frame.visible(name, vis) is not None)
        if visible_required < cfg.min_required_visible:
            confidence = 0.0
        else:
            confidence = visible_required / len(REQUIRED_LANDMARKS)

        shoulder_angle = pair_angle(frame, "left_shoulder", "right_shoulder", vis)
        hip_angle = pair_angle(frame, "left_hip", "right_hip", vis)
        x_factor = 0.0
        if shoulder_angle is not None and hip_angle is not None:
            x_factor = normalize_angle(shoulder_angle - hip_angle)

        proxy = club_head_position(frame, vis, cfg.club_offset)
        if proxy is None:
            if previous_proxy is not None:
                proxy = np.array(previous_proxy, dtype=np.float64)
            elif previous is not None:
                proxy = club_head_position(previous, vis, cfg.club_offset)
        if proxy is None:
            proxy = np.array(SCREEN_CENTER, dtype=np.float64)

        velocity = self._proxy_velocity(frame, previous, previous_proxy, proxy)

        shoulder_c = pair_center(frame, "left_shoulder", "right_shoulder", vis)
        hip_c = pair_center(frame, "left_hip", "right_hip", vis)
        hands_height = float(shoulder_c[1] - proxy[1]) if shoulder_c is not None else 0.0
        hands_hip_height = float(hip_c[1] - proxy[1]) if hip_c is not None else 0.0
        hands_lateral = (
            float((proxy[0] - hip_c[0]) * cfg.trail_direction) if hip_c is not None else 0.0
        )

        if confidence == 0.0:
            logger.debug(
                f"Frame {frame.frame_index}: only {visible_required} required keypoints visible"
            )

        return FeatureVector(
            frame_index=frame.frame_index,
            timestamp_ms=frame.timestamp_ms,
            proxy_position=(float(proxy[0]), float(proxy[1]), float(proxy[2])),
            proxy_velocity=(float(velocity[0]), float(velocity[1])),
            proxy_speed=float(np.linalg.norm(velocity)),
            shoulder_angle=shoulder_angle if shoulder_angle is not None else 0.0,
            hip_angle=hip_angle if hip_angle is not None else 0.0,
            x_factor=x_factor,
            weight_distribution=weight_distribution(frame, vis),
            hands_height=hands_height,
            hands_hip_height=hands_hip_height,
            hands_lateral=hands_lateral,
            confidence=confidence,
        )

    def _proxy_velocity(
        self,
        frame: LandmarkFrame,
        previous: Optional[LandmarkFrame],
        previous_proxy: Optional[Tuple[float, float, float]],
        proxy: np.ndarray,
    ) -> np.ndarray:
        """Finite-difference (vx, vy) of the proxy in units per second."""
        if previous is None:
            return np.zeros(2)
        dt_s = (frame.timestamp_ms - previous.timestamp_ms) / 1000.0
        if dt_s <= 0.0:
            return np.zeros(2)

        if previous_proxy is not None:
            prev = np.array(previous_proxy[:2], dtype=np.float64)
        else:
            prev_full = club_head_position(previous, self.config.min_visibility, self.config.club_offset)
            if prev_full is None:
                return np.zeros(2)
            prev = prev_full[:2]
        return (proxy[:2] - prev) / dt_s
