from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from coursegrid.api.deps import get_workspace
from coursegrid.models.session import Session
from coursegrid.schemas.catalog import session_out
from coursegrid.schemas.schedule import (
    ConflictPairOut,
    EvaluateRequest,
    EvaluateResponse,
    FreeBlockOut,
    FreeTimeOut,
    RecommendationOut,
    ScheduleOut,
    ScoreOut,
    UnschedulableOut,
)
from coursegrid.services.insights import free_blocks, recommend_sessions
from coursegrid.services.slots import format_label, normalize_day
from coursegrid.services.workspace import Workspace

router = APIRouter()


def _warnings(workspace: Workspace, sessions: list[Session]) -> list[UnschedulableOut]:
    return [
        UnschedulableOut(
            key=str(item.session.key),
            course_id=item.session.course_id,
            group_name=item.session.group_name,
            day=item.session.day,
            time=item.session.time,
            reason=item.reason,
        )
        for item in workspace.evaluator.unschedulable(sessions)
    ]


@router.get("", response_model=ScheduleOut)
def current_schedule(workspace: Workspace = Depends(get_workspace)):
    applied = workspace.table_sessions()
    sessions = [item.session for item in applied]
    return ScheduleOut(
        active_track_id=workspace.active_track_id,
        sessions=[
            session_out(item.session, workspace.grid, is_modified=item.is_modified, reason=item.reason)
            for item in applied
        ],
        score=ScoreOut.from_score(workspace.evaluator.evaluate(sessions)),
        conflicts=[
            ConflictPairOut(
                day=first.day,
                time=workspace.grid.format_range(overlap),
                first_key=str(first.key),
                second_key=str(second.key),
                first_course_id=first.course_id,
                second_course_id=second.course_id,
            )
            for first, second, overlap in workspace.conflicts.conflicting_pairs(sessions)
        ],
        warnings=_warnings(workspace, sessions),
    )


@router.post("/evaluate", response_model=EvaluateResponse)
def evaluate(payload: EvaluateRequest, workspace: Workspace = Depends(get_workspace)):
    sessions = []
    for item in payload.sessions:
        course = workspace.catalog.get(item.course_id)
        group_id = str(item.group_id).strip()
        sessions.append(
            Session(
                course_id=item.course_id,
                group_id=group_id,
                group_name=item.group_name or f"Group {group_id}",
                type_text=item.type or "Group",
                day=normalize_day(item.day_name, item.day_code),
                time=item.time or "",
                room=item.room or "",
                staff=item.staff or "",
                name_en=item.name_en or "",
                timeslot_id="" if item.timeslot_id is None else str(item.timeslot_id),
                course_name=course.name if course else item.course_id,
            )
        )
    score = workspace.evaluator.evaluate(sessions)
    return EvaluateResponse(
        score=ScoreOut.from_score(score),
        damage=workspace.evaluator.damage(score),
        warnings=_warnings(workspace, sessions),
    )


@router.get("/free-time", response_model=FreeTimeOut)
def free_time(
    time_format: str = Query(default="24h", pattern="^(12h|24h)$", alias="format"),
    workspace: Workspace = Depends(get_workspace),
):
    sessions = [item.session for item in workspace.table_sessions()]
    blocks = free_blocks(workspace.evaluator, sessions)
    return FreeTimeOut(
        days={
            day: [
                FreeBlockOut(
                    start=block.slot_range.start,
                    end=block.slot_range.end,
                    label=format_label(block.label, time_format),
                )
                for block in day_blocks
            ]
            for day, day_blocks in blocks.items()
        }
    )


@router.get("/recommendations", response_model=list[RecommendationOut])
def recommendations(
    kind: str = Query(default="all", pattern="^(all|lecture|section)$"),
    day: str | None = None,
    search: str | None = None,
    workspace: Workspace = Depends(get_workspace),
):
    sessions = [item.session for item in workspace.table_sessions()]
    items = recommend_sessions(workspace.evaluator, workspace.catalog, sessions)
    needle = (search or "").strip().lower()
    output = []
    for item in items:
        if kind != "all" and item.kind.value != kind:
            continue
        if day and item.day != day:
            continue
        session = item.session
        if needle:
            haystack = " ".join((item.day, session.time, item.kind.value, session.course_name, session.group_name)).lower()
            if needle not in haystack:
                continue
        output.append(
            RecommendationOut(
                key=str(session.key),
                day=item.day,
                start=item.slot_range.start,
                time=session.time,
                type=item.kind.value,
                course_id=session.course_id,
                course_name=session.course_name,
                group_id=session.group_id,
                group_name=session.group_name,
            )
        )
    return output
