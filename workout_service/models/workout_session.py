"""
ALIGNIFY Workout Service - Workout Session Controller

Walks a user through an ordered list of reference poses. Every frame runs
the matching pipeline (landmark smoothing, angle extraction, angle
smoothing, similarity scoring, hold accumulation) against the current pose;
a completed hold records the pose's accuracy and advances the workout.
"""

import logging
import time
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, ClassVar, Dict, List, Mapping, Optional, Sequence, Union
from enum import Enum

from core.config import settings
from shared.utils import log_execution_time
from .angle_extractor import AngleExtractor, joint_names
from .hold_accumulator import HoldAccumulator, HoldState
from .landmarks import AngleSet, BodyFocusMode, LandmarkFrame
from .reference_pose import ReferencePose
from .session_config import ConfigurationError, SessionConfig, SessionStateError
from .similarity import SimilarityResult, SimilarityScorer
from .smoothing import AngleSmoother, LandmarkSmoother

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Workout session states. COMPLETED and CANCELLED are terminal."""
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.COMPLETED, SessionState.CANCELLED)


# ═══════════════════════════════════════════════════════════════════════════════
# EVENTS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class SessionEvent:
    """Base class for events emitted to rendering and persistence collaborators."""
    type: ClassVar[str] = "SESSION_EVENT"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, **asdict(self)}


@dataclass
class FrameScored(SessionEvent):
    type: ClassVar[str] = "FRAME_SCORED"
    pose_index: int
    per_joint: Dict[str, float]
    overall: float
    is_match: bool
    hold_progress_percent: int
    feedback: List[str] = field(default_factory=list)


@dataclass
class PoseCompleted(SessionEvent):
    type: ClassVar[str] = "POSE_COMPLETED"
    pose_index: int
    accuracy: int


@dataclass
class NextPose(SessionEvent):
    type: ClassVar[str] = "NEXT_POSE"
    pose_index: int


@dataclass
class SessionCompleted(SessionEvent):
    type: ClassVar[str] = "SESSION_COMPLETED"
    per_pose_accuracy: List[int]
    average_accuracy: float
    duration_seconds: float


@dataclass
class SessionCancelled(SessionEvent):
    type: ClassVar[str] = "SESSION_CANCELLED"
    per_pose_accuracy: List[int]


# ═══════════════════════════════════════════════════════════════════════════════
# SESSION DATA
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class PoseRecord:
    """Result of one completed reference pose."""
    pose_index: int
    name: str
    accuracy: int
    hold_seconds: float
    attempts: int = 1  # times the match was (re)acquired before the hold completed


@dataclass
class WorkoutSession:
    """Complete workout session data."""
    session_id: str
    poses: List[ReferencePose] = field(default_factory=list)
    body_focus_mode: BodyFocusMode = BodyFocusMode.FULL
    state: SessionState = SessionState.NOT_STARTED

    # Progress tracking
    current_index: int = 0
    per_pose_accuracy: List[int] = field(default_factory=list)
    pose_records: List[PoseRecord] = field(default_factory=list)

    # Timing
    started_at: Optional[float] = None
    ended_at: Optional[float] = None
    pose_started_at: Optional[float] = None

    @property
    def average_accuracy(self) -> float:
        if not self.per_pose_accuracy:
            return 0.0
        return sum(self.per_pose_accuracy) / len(self.per_pose_accuracy)

    def duration_seconds(self, now: Optional[float] = None) -> float:
        if self.started_at is None:
            return 0.0
        end = self.ended_at if self.ended_at is not None else now
        return max(0.0, (end if end is not None else self.started_at) - self.started_at)

    def challenging_poses(self, threshold: int) -> List[str]:
        """Names of completed poses scored below ``threshold``."""
        return [r.name for r in self.pose_records if r.accuracy < threshold]

    def to_dict(self, now: Optional[float] = None) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "session_id": self.session_id,
            "state": self.state.value,
            "body_focus_mode": self.body_focus_mode.value,
            "current_index": self.current_index,
            "poses_completed": len(self.per_pose_accuracy),
            "total_poses": len(self.poses),
            "per_pose_accuracy": list(self.per_pose_accuracy),
            "average_accuracy": round(self.average_accuracy, 1),
            "duration_seconds": round(self.duration_seconds(now), 1),
            "pose_results": [
                {
                    "pose_index": r.pose_index,
                    "name": r.name,
                    "accuracy": r.accuracy,
                    "hold_seconds": round(r.hold_seconds, 1),
                    "attempts": r.attempts,
                }
                for r in self.pose_records
            ],
            "challenging_poses": self.challenging_poses(settings.CHALLENGING_POSE_ACCURACY),
        }


# ═══════════════════════════════════════════════════════════════════════════════
# SESSION CONTROLLER
# ═══════════════════════════════════════════════════════════════════════════════

class WorkoutSessionController:
    """
    State machine driving one workout session.

    States: NOT_STARTED -> ACTIVE -> {COMPLETED, CANCELLED}.

    The controller owns its pipeline stages (smoothing buffers, hold timer),
    so two concurrent sessions need two controllers. All work happens
    synchronously inside ``on_frame``; frames delivered after the session
    reached a terminal state are ignored.
    """

    def __init__(
        self,
        config: Optional[Union[SessionConfig, Mapping[str, Any]]] = None,
        session_id: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize session controller.

        Args:
            config: SessionConfig or overrides of the default settings;
                validated in ``start``
            session_id: Identifier (random if None)
            clock: Time source used when callers omit timestamps
        """
        self._raw_config = config
        self.config: Optional[SessionConfig] = None
        self.clock = clock
        self.session = WorkoutSession(session_id=session_id or str(uuid.uuid4())[:8])

        self.landmark_smoother: Optional[LandmarkSmoother] = None
        self.angle_smoother: Optional[AngleSmoother] = None
        self.extractor: Optional[AngleExtractor] = None
        self.scorer: Optional[SimilarityScorer] = None
        self.hold: Optional[HoldAccumulator] = None

        self._reference_angles: List[AngleSet] = []
        self.last_result: Optional[SimilarityResult] = None
        self.last_hold: Optional[HoldState] = None

        # Caller-supplied frame times may use a different timebase than clock().
        # A session started without a timestamp is re-anchored to its first frame.
        self._anchor_to_first_frame = False
        self._last_frame_at: Optional[float] = None

        self._attempts = 0
        self._was_matching = False

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def session_id(self) -> str:
        return self.session.session_id

    def _build_pipeline(self, config: SessionConfig):
        self.landmark_smoother = LandmarkSmoother(config.landmark_smoothing_window)
        self.angle_smoother = AngleSmoother(config.angle_smoothing_window)
        self.extractor = AngleExtractor(
            min_visibility=config.min_landmark_visibility,
            use_depth=config.use_depth,
        )
        self.scorer = SimilarityScorer(
            tolerance_degrees=config.tolerance_degrees,
            match_threshold=config.match_threshold,
        )
        self.hold = HoldAccumulator(
            required_seconds=config.required_hold_seconds,
            increment_rate=config.increment_rate,
            decay_rate=config.decay_rate,
            max_dt=config.max_frame_delta_seconds,
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # LIFECYCLE
    # ═══════════════════════════════════════════════════════════════════════════

    def start(self, poses: Sequence[ReferencePose], now: Optional[float] = None) -> WorkoutSession:
        """
        Validate configuration, load the reference poses and go ACTIVE.

        Raises:
            SessionStateError: if the session was already started
            ConfigurationError: if the configuration or pose list is invalid
        """
        if self.session.state != SessionState.NOT_STARTED:
            raise SessionStateError(
                f"Session {self.session_id} cannot start from state {self.session.state.value}"
            )
        if not poses:
            raise ConfigurationError("A workout session needs at least one reference pose")

        config = SessionConfig.resolve(self._raw_config)
        self._build_pipeline(config)
        self.config = config

        mode = config.body_focus_mode
        scored_joints = set(joint_names(mode))
        self._reference_angles = [pose.resolve_angles(self.extractor, mode) for pose in poses]
        for pose, angles in zip(poses, self._reference_angles):
            if not scored_joints.intersection(angles):
                raise ConfigurationError(
                    f"Reference pose '{pose.name}' has no measurable joints in {mode.value} mode"
                )

        self._anchor_to_first_frame = now is None
        now = self.clock() if now is None else now
        session = self.session
        session.poses = list(poses)
        session.body_focus_mode = mode
        session.current_index = 0
        session.started_at = now
        session.pose_started_at = now
        session.state = SessionState.ACTIVE

        logger.info(
            f"▶️ Session {self.session_id} started: {len(poses)} poses, "
            f"mode={mode.value}, hold={config.required_hold_seconds}s"
        )
        return session

    def cancel(self, now: Optional[float] = None) -> Optional[SessionCancelled]:
        """Cancel from any non-terminal state. Returns None if already terminal."""
        session = self.session
        if session.state.is_terminal:
            return None

        session.state = SessionState.CANCELLED
        session.ended_at = self._resolve_now(now)
        logger.info(f"⏹️ Session {self.session_id} cancelled after {len(session.per_pose_accuracy)} poses")
        return SessionCancelled(per_pose_accuracy=list(session.per_pose_accuracy))

    def _resolve_now(self, now: Optional[float]) -> float:
        """Explicit time, else the latest caller-supplied frame time, else clock()."""
        if now is not None:
            return now
        if self._last_frame_at is not None:
            return self._last_frame_at
        return self.clock()

    # ═══════════════════════════════════════════════════════════════════════════
    # FRAME PROCESSING
    # ═══════════════════════════════════════════════════════════════════════════

    def current_angles(self, frame: Optional[LandmarkFrame]) -> AngleSet:
        """
        Run the smoothing and extraction stages for one frame.

        ``None`` means the detector found no body: the smoothing buffers are
        dropped and the frame contributes no joints.
        """
        if frame is None:
            self.landmark_smoother.reset()
            self.angle_smoother.reset()
            return {}

        smoothed = self.landmark_smoother.push(frame)
        angles = self.extractor.extract(smoothed, self.session.body_focus_mode)
        return self.angle_smoother.push(angles)

    @log_execution_time
    def on_frame(self, frame: Optional[LandmarkFrame], now: Optional[float] = None) -> List[SessionEvent]:
        """
        Process one detection cycle.

        Args:
            frame: Landmark frame, or None when no body was detected
            now: Frame timestamp in seconds (clock() if None)

        Returns:
            Events emitted for this frame; empty unless the session is ACTIVE
        """
        session = self.session
        if session.state != SessionState.ACTIVE:
            logger.debug(f"Session {self.session_id} ignoring frame in state {session.state.value}")
            return []

        if now is not None:
            if self._anchor_to_first_frame:
                session.started_at = now
                session.pose_started_at = now
            self._last_frame_at = now
        else:
            now = self.clock()
        self._anchor_to_first_frame = False
        index = session.current_index

        current = self.current_angles(frame)
        result = self.scorer.score(self._reference_angles[index], current, session.body_focus_mode)
        hold_state = self.hold.tick(result.is_match, now)
        self.last_result = result
        self.last_hold = hold_state

        if result.is_match and not self._was_matching:
            self._attempts += 1
        self._was_matching = result.is_match

        events: List[SessionEvent] = [
            FrameScored(
                pose_index=index,
                per_joint=result.per_joint,
                overall=result.overall,
                is_match=result.is_match,
                hold_progress_percent=hold_state.progress_percent,
                feedback=result.feedback,
            )
        ]

        if hold_state.is_complete:
            events.extend(self._complete_pose(result, now))

        return events

    def _complete_pose(self, result: SimilarityResult, now: float) -> List[SessionEvent]:
        session = self.session
        index = session.current_index
        accuracy = round(result.overall * 100)
        pose = session.poses[index]

        session.per_pose_accuracy.append(accuracy)
        session.pose_records.append(
            PoseRecord(
                pose_index=index,
                name=pose.name,
                accuracy=accuracy,
                hold_seconds=(now - session.pose_started_at) if session.pose_started_at is not None else 0.0,
                attempts=max(self._attempts, 1),
            )
        )
        self._attempts = 0
        self._was_matching = False
        logger.info(f"✅ Session {self.session_id} pose {index + 1}/{len(session.poses)} held ({accuracy}%)")

        events: List[SessionEvent] = [PoseCompleted(pose_index=index, accuracy=accuracy)]

        if index + 1 < len(session.poses):
            session.current_index = index + 1
            session.pose_started_at = now
            self.hold.reset()
            events.append(NextPose(pose_index=session.current_index))
            return events

        session.state = SessionState.COMPLETED
        session.ended_at = now
        duration = session.duration_seconds()
        logger.info(
            f"🏁 Session {self.session_id} completed in {duration:.1f}s "
            f"(average accuracy {session.average_accuracy:.1f}%)"
        )
        events.append(
            SessionCompleted(
                per_pose_accuracy=list(session.per_pose_accuracy),
                average_accuracy=session.average_accuracy,
                duration_seconds=duration,
            )
        )
        return events

    def summary(self, now: Optional[float] = None) -> Dict[str, Any]:
        """Session summary for status queries and persistence collaborators."""
        return self.session.to_dict(now=self._resolve_now(now))
