"""
ALIGNIFY Workout Service Router

Endpoints for guided workout sessions. Clients run pose estimation on their
side and stream landmark frames; the service scores each frame against the
current reference pose and reports hold progress and completion events.
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, HTTPException
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from typing import Optional, List, Dict, Any
import json
import logging

from .models import (
    BodyFocusMode,
    ConfigurationError,
    StoredPoseLandmark,
    StoredReferencePose,
    WorkoutSessionController,
    WorkoutSessionHandler,
    frame_from_points,
    get_session_handler,
    load_reference_poses,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_services() -> WorkoutSessionHandler:
    """Get the session handler instance."""
    return get_session_handler()


# ============= Pydantic Models =============

class SessionConfigRequest(BaseModel):
    # Unknown keys are passed on so session validation rejects them with a 400.
    model_config = ConfigDict(extra="allow")

    body_focus_mode: Optional[BodyFocusMode] = None
    landmark_smoothing_window: Optional[int] = None
    angle_smoothing_window: Optional[int] = None
    tolerance_degrees: Optional[float] = None
    match_threshold: Optional[float] = None
    required_hold_seconds: Optional[float] = None
    increment_rate: Optional[float] = None
    decay_rate: Optional[float] = None
    max_frame_delta_seconds: Optional[float] = None
    min_landmark_visibility: Optional[float] = None
    use_depth: Optional[bool] = None


class StartSessionRequest(BaseModel):
    reference_poses: List[StoredReferencePose] = Field(default_factory=list)
    config: SessionConfigRequest = Field(default_factory=SessionConfigRequest)
    timestamp: Optional[float] = None  # seconds, same timebase as frame timestamps


class FrameRequest(BaseModel):
    landmarks: Optional[List[StoredPoseLandmark]] = None  # None = no detection
    timestamp: Optional[float] = None  # seconds


class CancelRequest(BaseModel):
    timestamp: Optional[float] = None


# ============= Helpers =============

def _require_session(session_id: str) -> WorkoutSessionController:
    controller = get_services().get_session(session_id)
    if controller is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return controller


def _process_frame(controller: WorkoutSessionController, request: FrameRequest) -> List[Dict[str, Any]]:
    frame = None
    if request.landmarks is not None:
        frame = frame_from_points(lm.model_dump() for lm in request.landmarks)
    events = controller.on_frame(frame, now=request.timestamp)
    return [event.to_dict() for event in events]


# ============= REST Endpoints =============

@router.post("/session/start")
async def start_workout_session(request: StartSessionRequest):
    """
    Start a new workout session over an ordered set of reference poses.

    Returns a session ID for use with the frame endpoint or WebSocket stream.
    """
    session_handler = get_services()

    try:
        poses = load_reference_poses(request.reference_poses)
        controller = session_handler.create_session(
            poses,
            config=request.config.model_dump(exclude_none=True),
            now=request.timestamp,
        )
    except (ConfigurationError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "status": "started",
        "session_id": controller.session_id,
        "total_poses": len(poses),
        "config": controller.config.model_dump(mode="json"),
        "websocket_url": f"/api/workout/ws/session/{controller.session_id}",
    }


@router.post("/session/{session_id}/frame")
async def submit_frame(session_id: str, request: FrameRequest):
    """Score one landmark frame and return the emitted events."""
    controller = _require_session(session_id)
    events = _process_frame(controller, request)
    return {
        "session_id": session_id,
        "state": controller.state.value,
        "events": events,
    }


@router.post("/session/{session_id}/cancel")
async def cancel_session(session_id: str, request: Optional[CancelRequest] = None):
    """Cancel a workout session, keeping the accuracies recorded so far."""
    controller = _require_session(session_id)
    event = controller.cancel(now=request.timestamp if request else None)
    return {
        "session_id": session_id,
        "state": controller.state.value,
        "events": [event.to_dict()] if event else [],
    }


@router.get("/session/{session_id}")
async def get_session_status(session_id: str):
    """Get current session status and summary."""
    return _require_session(session_id).summary()


@router.delete("/session/{session_id}")
async def delete_session(session_id: str):
    """Drop a session from the registry (cancelling it if still active)."""
    if not get_services().cleanup_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "deleted", "session_id": session_id}


# ============= WebSocket Endpoints =============

@router.websocket("/ws/session/{session_id}")
async def workout_session_stream(websocket: WebSocket, session_id: str):
    """
    Real-time workout session stream.

    Receives JSON frames ``{"landmarks": [...] | null, "timestamp": s}`` and
    replies with the events each frame produced; ``{"action": "cancel"}``
    cancels the session. Malformed messages get an ERROR reply. The socket
    closes once the session completes or is cancelled.
    """
    await websocket.accept()
    controller = get_services().get_session(session_id)

    if controller is None:
        await websocket.send_json({
            "type": "ERROR",
            "message": f"Session {session_id} not found"
        })
        await websocket.close()
        return

    try:
        await websocket.send_json({
            "type": "SESSION_STARTED",
            "session_id": session_id,
            "state": controller.state.value,
            "total_poses": len(controller.session.poses),
            "pose_index": controller.session.current_index,
        })

        while not controller.state.is_terminal:
            message = await websocket.receive_text()

            try:
                data = json.loads(message)
            except json.JSONDecodeError:
                await websocket.send_json({
                    "type": "ERROR",
                    "message": "Invalid message: expected JSON"
                })
                continue

            if not isinstance(data, dict):
                await websocket.send_json({
                    "type": "ERROR",
                    "message": "Invalid message: expected a JSON object"
                })
                continue

            try:
                if data.get("action") == "cancel":
                    cancel = CancelRequest.model_validate(data)
                    event = controller.cancel(now=cancel.timestamp)
                    if event:
                        await websocket.send_json(event.to_dict())
                    break

                request = FrameRequest.model_validate(data)
            except ValidationError as e:
                await websocket.send_json({
                    "type": "ERROR",
                    "message": f"Invalid frame: {e.errors()[0]['msg']}"
                })
                continue

            for event in _process_frame(controller, request):
                await websocket.send_json(event)

        await websocket.close()

    except WebSocketDisconnect:
        logger.info(f"Session {session_id} stream disconnected ({controller.state.value})")
