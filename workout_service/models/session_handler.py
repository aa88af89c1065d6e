"""
ALIGNIFY Workout Service - Session Handler

Registry of live workout sessions keyed by session id. Each session owns an
independent controller and pipeline; the handler only creates, finds and
drops them.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from .reference_pose import ReferencePose
from .session_config import SessionConfig
from .workout_session import WorkoutSessionController

logger = logging.getLogger(__name__)


class WorkoutSessionHandler:
    """Creates and tracks workout session controllers."""

    def __init__(self):
        self.active_sessions: Dict[str, WorkoutSessionController] = {}

    def create_session(
        self,
        poses: Sequence[ReferencePose],
        config: Optional[Union[SessionConfig, Mapping[str, Any]]] = None,
        now: Optional[float] = None,
    ) -> WorkoutSessionController:
        """
        Create and start a new workout session.

        Args:
            poses: Reference poses in workout order
            config: Overrides of the default session configuration
            now: Start timestamp in seconds (controller clock if None)

        Returns:
            The started controller

        Raises:
            ConfigurationError: if the configuration or pose list is invalid
        """
        controller = WorkoutSessionController(config=config)
        controller.start(poses, now=now)
        self.active_sessions[controller.session_id] = controller
        return controller

    def get_session(self, session_id: str) -> Optional[WorkoutSessionController]:
        """Get session by ID."""
        return self.active_sessions.get(session_id)

    def cleanup_session(self, session_id: str) -> bool:
        """Remove session from active sessions."""
        controller = self.active_sessions.pop(session_id, None)
        if controller is None:
            return False
        if not controller.state.is_terminal:
            controller.cancel()
        logger.debug(f"Session {session_id} removed ({len(self.active_sessions)} remaining)")
        return True


# ═══════════════════════════════════════════════════════════════════════════════
# MODULE-LEVEL SINGLETON
# ═══════════════════════════════════════════════════════════════════════════════

_handler_instance: Optional[WorkoutSessionHandler] = None

def get_session_handler() -> WorkoutSessionHandler:
    """Get or create the global session handler instance."""
    global _handler_instance
    if _handler_instance is None:
        _handler_instance = WorkoutSessionHandler()
    return _handler_instance
