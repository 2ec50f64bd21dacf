"""Counting session API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from repcoach.cv.exercise_types import ExerciseKind
from repcoach.cv.rep_counter import RepCountingConfig
from repcoach.schemas.session import (
    FrameIn,
    FrameResponse,
    SessionCreate,
    SessionListResponse,
    SessionResponse,
    StateResponse,
    StatisticsResponse,
)
from repcoach.sessions import CountingSession, SessionLimitError, SessionNotFoundError, SessionRegistry

router = APIRouter()


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def _get_session(session_id: str, registry: SessionRegistry) -> CountingSession:
    try:
        return registry.get(session_id)
    except SessionNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found"
        )


def _session_response(session: CountingSession) -> SessionResponse:
    return SessionResponse(
        id=session.id,
        exercise=session.kind.value,
        display_name=session.kind.display_name,
        config=session.counter.config.to_dict(),
    )


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    body: SessionCreate,
    registry: SessionRegistry = Depends(get_registry)
):
    """Start counting one exercise."""
    try:
        ExerciseKind.from_name(body.exercise)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    config = None
    if body.config:
        config = RepCountingConfig.from_settings(registry.settings, **body.config.model_dump())

    try:
        session = registry.create(body.exercise, config)
    except SessionLimitError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return _session_response(session)


@router.get("", response_model=SessionListResponse)
async def list_sessions(registry: SessionRegistry = Depends(get_registry)):
    """List live session ids."""
    ids = registry.ids()
    return SessionListResponse(items=ids, total=len(ids))


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    return _session_response(_get_session(session_id, registry))


@router.post("/{session_id}/frames", response_model=FrameResponse)
async def submit_frame(
    session_id: str,
    frame: FrameIn,
    registry: SessionRegistry = Depends(get_registry)
):
    """Feed one detector frame to the session's counter."""
    session = _get_session(session_id, registry)

    try:
        result = session.submit_payload(frame.to_payload())
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return FrameResponse(
        accepted=result.accepted,
        state=result.state.to_dict(include_history=False),
        completed_rep=result.completed_rep.to_dict() if result.completed_rep else None,
        skipped_frames=session.skipped_frames,
    )


@router.get("/{session_id}/state", response_model=StateResponse)
async def get_state(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    return _get_session(session_id, registry).counter.state.to_dict()


@router.get("/{session_id}/statistics", response_model=StatisticsResponse)
async def get_statistics(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Session summary computed on demand."""
    session = _get_session(session_id, registry)
    return {
        **session.counter.get_statistics().to_dict(),
        "processed_frames": session.processed_frames,
        "skipped_frames": session.skipped_frames,
    }


@router.post("/{session_id}/reset", response_model=StateResponse)
async def reset_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Clear counts and history; configuration is kept."""
    return _get_session(session_id, registry).reset().to_dict()


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    _get_session(session_id, registry)
    registry.remove(session_id)
