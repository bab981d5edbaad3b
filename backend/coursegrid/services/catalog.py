from __future__ import annotations

import re
from collections.abc import Iterable

from coursegrid.models.registration import Registration
from coursegrid.models.session import Catalog, Course, Group, Session, SessionKey, SessionKind
from coursegrid.schemas.catalog import CatalogPayload, CoursePayload, SessionPayload
from coursegrid.services.slots import normalize_day

PREFIX_PATTERN = re.compile(r"^([A-Za-z]+)")


def format_course_name(identifier: str) -> str:
    stem = re.sub(r"\.json$", "", identifier, flags=re.IGNORECASE)
    return re.sub(r"[_-]+", " ", stem).strip()


def section_prefix(group_name: str | None) -> str:
    match = PREFIX_PATTERN.match(str(group_name or "").strip())
    return match.group(1).upper() if match else ""


def _session_from_payload(course: CoursePayload, name: str, payload: SessionPayload) -> Session:
    group_id = str(payload.group_id).strip()
    return Session(
        course_id=course.id,
        group_id=group_id,
        group_name=payload.group_name or f"Group {group_id}",
        type_text=payload.type or "Group",
        day=normalize_day(payload.day_name, payload.day_code),
        time=payload.time or "",
        room=payload.room or "",
        staff=payload.staff or "",
        name_en=payload.name_en or "",
        timeslot_id="" if payload.timeslot_id is None else str(payload.timeslot_id).strip(),
        course_name=name,
    )


def build_catalog(payload: CatalogPayload) -> Catalog:
    courses: list[Course] = []
    for course_payload in payload.courses:
        name = course_payload.name or format_course_name(course_payload.id)
        sessions = tuple(_session_from_payload(course_payload, name, item) for item in course_payload.sessions)
        courses.append(Course(id=course_payload.id, name=name, sessions=sessions))
    return Catalog(courses=tuple(courses))


def course_groups(course: Course) -> list[Group]:
    """Groups of a course in order of first appearance; kind follows the first session."""
    order: list[str] = []
    buckets: dict[str, list[Session]] = {}
    for session in course.sessions:
        if session.group_id not in buckets:
            order.append(session.group_id)
            buckets[session.group_id] = []
        buckets[session.group_id].append(session)
    groups = []
    for group_id in order:
        sessions = buckets[group_id]
        first = sessions[0]
        groups.append(
            Group(
                group_id=group_id,
                group_name=first.group_name,
                kind=first.kind,
                sessions=tuple(sessions),
            )
        )
    return groups


def split_groups(course: Course) -> tuple[list[Group], list[Group]]:
    groups = course_groups(course)
    lectures = [group for group in groups if group.kind == SessionKind.lecture]
    sections = [group for group in groups if group.kind == SessionKind.section]
    return lectures, sections


def summarize_group(group: Group) -> str:
    parts = []
    for session in group.sessions:
        text = f"{session.day}: {session.time}"
        if session.room:
            text += f" @ {session.room}"
        parts.append(text)
    return " | ".join(parts)


def sessions_for_registration(catalog: Catalog, registration: Registration) -> list[Session]:
    course = catalog.get(registration.course_id)
    if course is None:
        return []
    selected = set(registration.selected_group_ids)
    return [session for session in course.sessions if session.group_id in selected]


def sessions_for_registrations(catalog: Catalog, registrations: Iterable[Registration]) -> list[Session]:
    sessions: list[Session] = []
    for registration in registrations:
        sessions.extend(sessions_for_registration(catalog, registration))
    return sessions


def _survivor_rank(session: Session) -> tuple:
    return (
        session.origin_key is None,
        session.day,
        session.time,
        session.staff,
        session.room,
        session.type_text,
        session.group_name,
    )


def dedupe_sessions(sessions: Iterable[Session]) -> list[Session]:
    """One session per identity key; an override-applied copy beats its base.

    The survivor does not depend on input order. Output keeps first-seen key order.
    """
    chosen: dict[SessionKey, Session] = {}
    for session in sessions:
        current = chosen.get(session.key)
        if current is None or _survivor_rank(session) < _survivor_rank(current):
            chosen[session.key] = session
    return list(chosen.values())


def all_section_names(catalog: Catalog) -> set[str]:
    names: set[str] = set()
    for course in catalog.courses:
        for session in course.sessions:
            if session.kind == SessionKind.section and session.group_name.strip():
                names.add(session.group_name.strip())
    return names
