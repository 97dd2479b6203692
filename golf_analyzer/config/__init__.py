"""Configuration module for the golf swing engine."""

from .engine_config import (
    EngineConfig,
    FeatureConfig,
    ClassifierConfig,
    SmoothingConfig,
    TrajectoryConfig,
    DEFAULT_CONFIG,
)
from .landmarks import (
    POSE_LANDMARKS,
    LANDMARK_NAMES,
    NUM_LANDMARKS,
    REQUIRED_LANDMARKS,
    TRACKED_LANDMARKS,
)
