"""Session routes: one circuit board per player session."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request

from circuit_backend.models import (
    CircuitSnapshotOut,
    CompletionOut,
    CreateSessionRequest,
    LevelRequest,
    PlaceComponentRequest,
    PlacementResponse,
    PlayerStatsOut,
    SessionResponse,
    SessionSummary,
    TopologyRequest,
)
from circuit_backend.session_store import InMemorySessionStore, PlaySession
from circuit_engine.scoring import level_points

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_store(request: Request) -> InMemorySessionStore:
    return request.app.state.session_store


async def _require_session(request: Request, session_id: str) -> PlaySession:
    session = await _get_store(request).get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _session_payload(session: PlaySession) -> dict:
    completions = [
        CompletionOut(
            **c.to_dict(),
            points=level_points(c.elapsed_seconds, c.attempts),
        )
        for c in session.drain_completions()
    ]
    return {
        "session_id": session.id,
        "circuit": CircuitSnapshotOut(**session.circuit.snapshot().to_dict()),
        "stats": PlayerStatsOut(**session.tracker.stats().to_dict()),
        "completions": completions,
    }


@router.post("/sessions", response_model=SessionResponse, status_code=201)
async def create_session(request: Request, body: Optional[CreateSessionRequest] = None):
    """Start a session on the first level."""
    store = _get_store(request)
    await store.cleanup_expired()
    session = await store.create_session(multi_slot=body.multi_slot if body else False)
    return SessionResponse(**_session_payload(session))


@router.get("/sessions", response_model=list[SessionSummary])
async def list_sessions(request: Request):
    sessions = await _get_store(request).list_sessions()
    return [
        SessionSummary(
            id=s.id,
            active_level_id=s.circuit.active_level_id,
            component_count=len(s.circuit.components),
            is_complete=s.circuit.is_complete,
            total_score=s.tracker.stats().total_score,
            created_at=s.created_at,
            updated_at=s.updated_at,
        )
        for s in sessions
    ]


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str, request: Request):
    session = await _require_session(request, session_id)
    return SessionResponse(**_session_payload(session))


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str, request: Request):
    deleted = await _get_store(request).delete_session(session_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "deleted"}


@router.post("/sessions/{session_id}/components", response_model=PlacementResponse)
async def place_component(session_id: str, body: PlaceComponentRequest, request: Request):
    """Drop a component on the canvas.

    A drop outside the kind's gap is not an HTTP error: the response has
    ``accepted: false`` and a reason so the canvas can show feedback.
    """
    session = await _require_session(request, session_id)
    result = session.circuit.place_component(body.kind, body.magnitude, body.point.model_dump())
    await _get_store(request).touch_session(session)

    if not result.accepted:
        logger.debug("Session %s: placement rejected (%s)", session_id, result.reason.value)

    return PlacementResponse(
        accepted=result.accepted,
        component_id=result.component_id,
        reason=result.reason,
        **_session_payload(session),
    )


@router.delete("/sessions/{session_id}/components/{component_id}", response_model=SessionResponse)
async def remove_component(session_id: str, component_id: str, request: Request):
    """Remove a component. Unknown component ids are ignored."""
    session = await _require_session(request, session_id)
    session.circuit.remove_component(component_id)
    await _get_store(request).touch_session(session)
    return SessionResponse(**_session_payload(session))


@router.put("/sessions/{session_id}/topology", response_model=SessionResponse)
async def set_topology(session_id: str, body: TopologyRequest, request: Request):
    session = await _require_session(request, session_id)
    session.circuit.set_topology_mode(body.mode)
    await _get_store(request).touch_session(session)
    return SessionResponse(**_session_payload(session))


@router.post("/sessions/{session_id}/reset", response_model=SessionResponse)
async def reset_circuit(session_id: str, request: Request):
    session = await _require_session(request, session_id)
    session.circuit.reset()
    await _get_store(request).touch_session(session)
    return SessionResponse(**_session_payload(session))


@router.put("/sessions/{session_id}/level", response_model=SessionResponse)
async def change_level(session_id: str, body: LevelRequest, request: Request):
    """Switch level; clears the board and restarts the level clock."""
    session = await _require_session(request, session_id)
    result = session.circuit.change_level(body.level_id)
    if not result.ok:
        raise HTTPException(status_code=404, detail=str(result.error))
    await _get_store(request).touch_session(session)
    return SessionResponse(**_session_payload(session))
