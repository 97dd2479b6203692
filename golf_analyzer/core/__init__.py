from .frames import FrameValidationError, Landmark, LandmarkFrame
from .features import FeatureExtractor, FeatureVector, WeightDistribution
from .phase_classifier import (
    PhaseLabel,
    PhaseRule,
    PhaseClassifier,
    PHASE_ORDER,
    PHASE_RULES,
    classify_phase,
    fallback_phase,
)
from .timeline import PhaseSegment, SwingTimeline
from .smoother import PhaseSmoother, SmoothingResult, SmoothingState
