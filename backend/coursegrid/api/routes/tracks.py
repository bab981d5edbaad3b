from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query, status

from coursegrid.api.deps import get_workspace
from coursegrid.models.track import OverridePatch
from coursegrid.schemas.catalog import SessionOut, session_out
from coursegrid.schemas.schedule import ScoreOut
from coursegrid.schemas.track import (
    ActiveTrackRequest,
    ModifiedCopyRequest,
    OverrideRequest,
    OverrideState,
    TrackListOut,
    TrackOut,
    TrackRankingOut,
)
from coursegrid.services.catalog import sessions_for_registrations
from coursegrid.services.insights import rank_tracks
from coursegrid.services.workspace import Workspace

router = APIRouter()


def _patch(payload) -> OverridePatch:
    return OverridePatch(staff=payload.staff, time=payload.time, day=payload.day)


def _export(workspace: Workspace, ignored: list[str] | None = None) -> OverrideState:
    return OverrideState(
        overrides=workspace.arena.export_overrides(),
        modified_tracks=workspace.arena.export_modified(),
        ignored_track_ids=ignored or [],
    )


@router.get("", response_model=TrackListOut)
def list_tracks(workspace: Workspace = Depends(get_workspace)):
    return TrackListOut(
        active_track_id=workspace.active_track_id,
        tracks=[TrackOut.from_track(track) for track in workspace.arena.ordered()],
    )


@router.get("/ranking", response_model=list[TrackRankingOut])
def ranking(
    criterion: Literal["balanced", "days", "gaps", "late"] = Query(default="balanced"),
    workspace: Workspace = Depends(get_workspace),
):
    registered = sessions_for_registrations(workspace.catalog, workspace.registrations)
    candidates = rank_tracks(workspace.evaluator, workspace.catalog, workspace.arena, registered, criterion)
    return [
        TrackRankingOut(track=TrackOut.from_track(item.track), score=ScoreOut.from_score(item.score))
        for item in candidates
    ]


@router.put("/active", response_model=TrackListOut)
def set_active(payload: ActiveTrackRequest, workspace: Workspace = Depends(get_workspace)):
    with workspace.lock:
        workspace.set_active_track(payload.track_id)
    return list_tracks(workspace)


@router.get("/{track_id:path}/sessions", response_model=list[SessionOut])
def track_sessions(track_id: str, workspace: Workspace = Depends(get_workspace)):
    return [
        session_out(item.session, workspace.grid, is_modified=item.is_modified, reason=item.reason)
        for item in workspace.arena.track_sessions(track_id, workspace.catalog)
    ]


@router.post("/{track_id:path}/copies", response_model=TrackOut, status_code=status.HTTP_201_CREATED)
def create_copy(track_id: str, payload: ModifiedCopyRequest, workspace: Workspace = Depends(get_workspace)):
    with workspace.lock:
        patch = _patch(payload.patch) if payload.patch is not None else None
        track = workspace.arena.create_modified_copy(track_id, payload.session_key, patch)
        return TrackOut.from_track(track)


@router.put("/{track_id:path}/overrides", response_model=TrackOut)
def set_override(track_id: str, payload: OverrideRequest, workspace: Workspace = Depends(get_workspace)):
    with workspace.lock:
        track = workspace.arena.set_override(track_id, payload.session_key, _patch(payload.patch))
        return TrackOut.from_track(track)


@router.post("/{track_id:path}/revert", response_model=TrackOut)
def revert(track_id: str, workspace: Workspace = Depends(get_workspace)):
    with workspace.lock:
        return TrackOut.from_track(workspace.arena.revert(track_id))


@router.delete("/{track_id:path}", response_model=TrackListOut)
def remove(track_id: str, workspace: Workspace = Depends(get_workspace)):
    with workspace.lock:
        workspace.active_track_id = workspace.arena.remove(track_id, workspace.active_track_id)
    return list_tracks(workspace)


overrides_router = APIRouter()


@overrides_router.get("", response_model=OverrideState)
def export_overrides(workspace: Workspace = Depends(get_workspace)):
    return _export(workspace)


@overrides_router.put("", response_model=OverrideState)
def restore_overrides(payload: OverrideState, workspace: Workspace = Depends(get_workspace)):
    with workspace.lock:
        ignored = workspace.arena.restore(
            {
                track_id: {key: patch.model_dump(exclude_none=True) for key, patch in override_map.items()}
                for track_id, override_map in payload.overrides.items()
            },
            [item.model_dump() for item in payload.modified_tracks],
        )
        return _export(workspace, ignored)
