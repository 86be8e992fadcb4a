"""Session intake: the desktop client posts its login material here after sign-in."""

from __future__ import annotations

from fastapi import APIRouter, Request

from skuflow.models.session import SessionContext

router = APIRouter(tags=["sessions"])


@router.post("/sessions", status_code=201)
def create_session(session: SessionContext, request: Request) -> dict[str, str]:
    session_id = request.app.state.session_store.save(session)
    return {"sessionId": session_id}


@router.delete("/sessions/{session_id}", status_code=204)
def delete_session(session_id: str, request: Request) -> None:
    request.app.state.session_store.delete(session_id)
