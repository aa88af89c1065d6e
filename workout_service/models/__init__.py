"""
ALIGNIFY Workout Service Models

Real-time pose matching: smoothing, joint angles, similarity scoring and
hold-to-advance workout sessions.
"""

from .landmarks import (
    JointType,
    BodyFocusMode,
    Landmark,
    LandmarkFrame,
    AngleSet,
    frame_from_points,
    frame_to_points,
)

from .smoothing import LandmarkSmoother, AngleSmoother

from .angle_extractor import (
    AngleExtractor,
    JointAngleDefinition,
    PointRef,
    JOINT_DEFINITIONS,
    VIRTUAL_POINT_OFFSET,
    joint_names,
)

from .similarity import SimilarityScorer, SimilarityResult

from .hold_accumulator import HoldAccumulator, HoldState, HoldPhase

from .session_config import (
    SessionConfig,
    WorkoutEngineError,
    ConfigurationError,
    SessionStateError,
)

from .reference_pose import (
    ReferencePose,
    StoredReferencePose,
    StoredPoseLandmark,
    load_reference_poses,
)

from .workout_session import (
    WorkoutSession,
    WorkoutSessionController,
    SessionState,
    SessionEvent,
    FrameScored,
    PoseCompleted,
    NextPose,
    SessionCompleted,
    SessionCancelled,
    PoseRecord,
)

from .session_handler import WorkoutSessionHandler, get_session_handler

__all__ = [
    # Landmarks
    "JointType",
    "BodyFocusMode",
    "Landmark",
    "LandmarkFrame",
    "AngleSet",
    "frame_from_points",
    "frame_to_points",
    # Pipeline stages
    "LandmarkSmoother",
    "AngleSmoother",
    "AngleExtractor",
    "JointAngleDefinition",
    "PointRef",
    "JOINT_DEFINITIONS",
    "VIRTUAL_POINT_OFFSET",
    "joint_names",
    "SimilarityScorer",
    "SimilarityResult",
    "HoldAccumulator",
    "HoldState",
    "HoldPhase",
    # Configuration and errors
    "SessionConfig",
    "WorkoutEngineError",
    "ConfigurationError",
    "SessionStateError",
    # Reference poses
    "ReferencePose",
    "StoredReferencePose",
    "StoredPoseLandmark",
    "load_reference_poses",
    # Workout session
    "WorkoutSession",
    "WorkoutSessionController",
    "SessionState",
    "SessionEvent",
    "FrameScored",
    "PoseCompleted",
    "NextPose",
    "SessionCompleted",
    "SessionCancelled",
    "PoseRecord",
    "WorkoutSessionHandler",
    "get_session_handler",
]
