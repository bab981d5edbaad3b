from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, status

from coursegrid.api.deps import get_workspace
from coursegrid.core.exceptions import ResourceNotFoundError
from coursegrid.schemas.registration import RegisterRequest, RegistrationPayload, RegistrationState
from coursegrid.services.registration import remove_registration, restore_registrations
from coursegrid.services.workspace import Workspace

logger = logging.getLogger(__name__)

router = APIRouter()


def _state(workspace: Workspace, dropped: list[str] | None = None) -> RegistrationState:
    return RegistrationState(
        registrations=[RegistrationPayload.from_registration(item) for item in workspace.registrations],
        dropped_course_ids=dropped or [],
    )


@router.get("", response_model=RegistrationState)
def list_registrations(workspace: Workspace = Depends(get_workspace)):
    return _state(workspace)


@router.put("", response_model=RegistrationState)
def restore(raw: Any = Body(...), workspace: Workspace = Depends(get_workspace)):
    with workspace.lock:
        kept, dropped = restore_registrations(workspace.catalog, raw)
        workspace.registrations = kept
        return _state(workspace, dropped)


@router.put("/{course_id}", response_model=RegistrationState)
def register(course_id: str, payload: RegisterRequest, workspace: Workspace = Depends(get_workspace)):
    with workspace.lock:
        service = workspace.registration_service()
        workspace.registrations = service.register(workspace.registrations, course_id, payload.selected_group_ids)
        return _state(workspace)


@router.delete("/{course_id}", response_model=RegistrationState)
def cancel(course_id: str, workspace: Workspace = Depends(get_workspace)):
    with workspace.lock:
        if all(item.course_id != course_id for item in workspace.registrations):
            raise ResourceNotFoundError("Registration", course_id)
        workspace.registrations = remove_registration(workspace.registrations, course_id)
        logger.info("Registration cancelled course=%s", course_id)
        return _state(workspace)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def clear(workspace: Workspace = Depends(get_workspace)) -> None:
    with workspace.lock:
        workspace.registrations = []
        workspace.active_track_id = None
        logger.info("All registrations cleared")
