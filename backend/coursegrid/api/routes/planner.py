from __future__ import annotations

from fastapi import APIRouter, Depends

from coursegrid.api.deps import get_workspace
from coursegrid.core.exceptions import ResourceNotFoundError
from coursegrid.schemas.catalog import session_out
from coursegrid.schemas.planner import CombinationOut, PlanDiffOut, PlannerRequest, PlannerResponse, PlanOut
from coursegrid.schemas.registration import RegistrationPayload
from coursegrid.schemas.schedule import ScoreOut
from coursegrid.services.planner import NOTHING_TO_PLAN, course_combinations, current_combination
from coursegrid.services.workspace import Workspace

router = APIRouter()


@router.get("/combinations/{course_id}", response_model=list[CombinationOut])
def list_combinations(course_id: str, workspace: Workspace = Depends(get_workspace)):
    course = workspace.catalog.get(course_id)
    if course is None:
        raise ResourceNotFoundError("Course", course_id)
    registration = next((item for item in workspace.registrations if item.course_id == course_id), None)
    current_key = current_combination(course, registration).key if registration else None
    return [
        CombinationOut(key=combo.key, label=combo.label, group_ids=list(combo.group_ids), is_current=combo.key == current_key)
        for combo in course_combinations(course)
    ]


# Plain ``def`` keeps the search on the worker thread pool, off the event loop.
@router.post("/plans", response_model=PlannerResponse)
def plan(payload: PlannerRequest, workspace: Workspace = Depends(get_workspace)):
    with workspace.lock:
        catalog = workspace.catalog
        registrations = list(workspace.registrations)
        overrides = workspace.active_overrides()

    result = workspace.planner.plan(
        catalog,
        registrations,
        max_changes=payload.max_changes,
        locks=payload.locks,
        allow_change=payload.allow_change,
        overrides=overrides,
    )

    message = None
    if result.reason == NOTHING_TO_PLAN:
        message = "No registered courses to plan."
    elif result.truncated:
        message = "Exploration limit reached; results may be incomplete."

    return PlannerResponse(
        plans=[
            PlanOut(
                registrations=[RegistrationPayload.from_registration(item) for item in item_plan.registrations],
                sessions=[session_out(session, workspace.grid) for session in item_plan.sessions],
                score=ScoreOut.from_score(item_plan.score),
                damage=item_plan.damage,
                change_count=item_plan.change_count,
                diffs=[
                    PlanDiffOut(
                        course_id=diff.course_id,
                        course_name=diff.course_name,
                        old_label=diff.old_label,
                        new_label=diff.new_label,
                    )
                    for diff in item_plan.diffs
                ],
                improves=item_plan.improves,
            )
            for item_plan in result.plans
        ],
        current_score=ScoreOut.from_score(result.current_score),
        current_damage=result.current_damage,
        explored=result.explored,
        truncated=result.truncated,
        reason=result.reason,
        message=message,
    )


@router.post("/plans/{index}/apply", response_model=list[RegistrationPayload])
def apply_plan(index: int, payload: PlannerRequest, workspace: Workspace = Depends(get_workspace)):
    with workspace.lock:
        result = workspace.planner.plan(
            workspace.catalog,
            workspace.registrations,
            max_changes=payload.max_changes,
            locks=payload.locks,
            allow_change=payload.allow_change,
            overrides=workspace.active_overrides(),
        )
        if index < 0 or index >= len(result.plans):
            raise ResourceNotFoundError("Plan", str(index))
        workspace.registrations = list(result.plans[index].registrations)
        return [RegistrationPayload.from_registration(item) for item in workspace.registrations]
