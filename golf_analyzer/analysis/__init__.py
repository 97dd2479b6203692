from .trajectory import (
    TrajectoryPoint,
    Trajectory,
    SwingTrajectory,
    TrajectoryAnalyzer,
    TrajectoryMetrics,
    VelocityProfile,
    KeyMoments,
    PathDirection,
    PathDirectionAnalysis,
    SwingPathAnalysis,
    TrajectoryVisualization,
)
