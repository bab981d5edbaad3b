from __future__ import annotations

from fastapi import APIRouter, Depends

from coursegrid.api.deps import get_workspace
from coursegrid.schemas.catalog import CatalogPayload, CatalogSummary, CourseOut, GroupOut
from coursegrid.services.catalog import build_catalog, split_groups, summarize_group
from coursegrid.services.workspace import Workspace

router = APIRouter()


@router.put("", response_model=CatalogSummary)
def load_catalog(payload: CatalogPayload, workspace: Workspace = Depends(get_workspace)):
    catalog = build_catalog(payload)
    with workspace.lock:
        dropped = workspace.load_catalog(catalog)
        return CatalogSummary(
            course_count=len(catalog),
            session_count=sum(len(course.sessions) for course in catalog.courses),
            track_count=len(workspace.arena),
            dropped_registrations=dropped,
        )


@router.get("/courses", response_model=list[CourseOut])
def list_courses(workspace: Workspace = Depends(get_workspace)):
    courses = []
    for course in workspace.catalog.courses:
        lectures, sections = split_groups(course)
        courses.append(
            CourseOut(
                id=course.id,
                name=course.name,
                lectures=[
                    GroupOut(group_id=g.group_id, group_name=g.group_name, kind=g.kind.value, summary=summarize_group(g))
                    for g in lectures
                ],
                sections=[
                    GroupOut(group_id=g.group_id, group_name=g.group_name, kind=g.kind.value, summary=summarize_group(g))
                    for g in sections
                ],
            )
        )
    return courses
