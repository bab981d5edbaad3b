from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from coursegrid.api.deps import get_workspace
from coursegrid.services.workspace import Workspace

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live(workspace: Workspace = Depends(get_workspace)) -> dict:
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "catalog": {"courses": len(workspace.catalog), "tracks": len(workspace.arena)},
        "grid": {"slots": len(workspace.grid), "days": list(workspace.grid.days)},
    }
