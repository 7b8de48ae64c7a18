# Role: Read-only transparency endpoint. Does NOT change any flow logic (and does not create sessions);
# only exposes the current context snapshot by session_id.

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from spot_assistant.api.deps import get_flow_controller
from spot_assistant.core.flow_controller import FlowController
from spot_assistant.models.state import SessionSnapshot

router = APIRouter(tags=["state"])


@router.get("/state/{session_id}", response_model=SessionSnapshot)
def get_state(session_id: str, flow: FlowController = Depends(get_flow_controller)) -> SessionSnapshot:
    snapshot = flow.session_snapshot(session_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    return snapshot
