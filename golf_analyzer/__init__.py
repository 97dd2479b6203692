"""Streaming golf swing phase and trajectory engine."""

from .config import EngineConfig, DEFAULT_CONFIG
from .core import (
    FrameValidationError,
    Landmark,
    LandmarkFrame,
    FeatureExtractor,
    FeatureVector,
    PhaseLabel,
    PhaseClassifier,
    PhaseSmoother,
    PhaseSegment,
    SwingTimeline,
)
from .analysis import Trajectory, TrajectoryPoint, SwingTrajectory, TrajectoryAnalyzer
from .session import SwingSession, SwingReport, FrameResult

__version__ = "0.1.0"
