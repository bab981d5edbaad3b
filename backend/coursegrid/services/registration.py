from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence

from coursegrid.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from coursegrid.models.conflict import ConflictInfo
from coursegrid.models.registration import Registration
from coursegrid.models.session import Catalog, Session, SessionKind
from coursegrid.services.catalog import course_groups, sessions_for_registration, sessions_for_registrations
from coursegrid.services.conflict_service import ConflictService

logger = logging.getLogger(__name__)

SessionTransform = Callable[[list[Session]], list[Session]]


def _identity(sessions: list[Session]) -> list[Session]:
    return sessions


def normalize_group_ids(values: Iterable[object]) -> tuple[str, ...]:
    ordered: list[str] = []
    for value in values:
        group_id = str(value).strip()
        if group_id and group_id not in ordered:
            ordered.append(group_id)
    return tuple(ordered)


def upsert_registration(registrations: Sequence[Registration], registration: Registration) -> list[Registration]:
    updated = list(registrations)
    for index, existing in enumerate(updated):
        if existing.course_id == registration.course_id:
            updated[index] = registration
            return updated
    updated.append(registration)
    return updated


def remove_registration(registrations: Sequence[Registration], course_id: str) -> list[Registration]:
    return [registration for registration in registrations if registration.course_id != course_id]


def restore_registrations(catalog: Catalog, raw: object) -> tuple[list[Registration], list[str]]:
    """Accept host-persisted state, keeping entries whose course exists; returns (kept, dropped ids)."""
    if not isinstance(raw, list):
        raise ValidationError("Registration state must be a list")
    kept: list[Registration] = []
    dropped: list[str] = []
    for item in raw:
        if not isinstance(item, Mapping):
            raise ValidationError("Each registration must be an object with courseId and selectedGroupIds")
        course_id = str(item.get("courseId") or item.get("course_id") or "").strip()
        group_ids = item.get("selectedGroupIds", item.get("selected_group_ids"))
        if not isinstance(group_ids, list):
            raise ValidationError(
                "selectedGroupIds must be a list",
                details={"course_id": course_id},
            )
        if course_id not in catalog:
            dropped.append(course_id)
            continue
        kept = upsert_registration(kept, Registration(course_id, normalize_group_ids(group_ids)))
    if dropped:
        logger.warning("Dropped registrations for unknown courses: %s", ", ".join(dropped))
    return kept, dropped


class RegistrationService:
    def __init__(
        self,
        catalog: Catalog,
        conflicts: ConflictService,
        *,
        require_section_when_offered: bool = False,
        transform: SessionTransform | None = None,
    ):
        self.catalog = catalog
        self.conflicts = conflicts
        self.require_section_when_offered = require_section_when_offered
        self.transform = transform or _identity

    def validate(self, course_id: str, group_ids: Iterable[object]) -> Registration:
        course = self.catalog.get(course_id)
        if course is None:
            raise ResourceNotFoundError("Course", course_id)

        selected = normalize_group_ids(group_ids)
        groups = {group.group_id: group for group in course_groups(course)}
        unknown = [group_id for group_id in selected if group_id not in groups]
        if unknown:
            raise ValidationError(
                f"Unknown group id(s) for {course.name}: {', '.join(unknown)}",
                details={"course_id": course_id, "unknown_group_ids": unknown},
            )

        kinds = [groups[group_id].kind for group_id in selected]
        lecture_count = kinds.count(SessionKind.lecture)
        section_count = kinds.count(SessionKind.section)
        if lecture_count > 1 or section_count > 1:
            raise ValidationError(
                "You can only register one lecture and one section per course.",
                details={"course_id": course_id, "lectures": lecture_count, "sections": section_count},
            )
        if lecture_count == 0:
            raise ValidationError("Select one lecture group.", details={"course_id": course_id})
        offers_sections = any(group.kind == SessionKind.section for group in groups.values())
        if self.require_section_when_offered and offers_sections and section_count == 0:
            raise ValidationError(
                "This course requires selecting one section.",
                details={"course_id": course_id},
            )
        return Registration(course_id, selected)

    def check_conflict(self, registration: Registration, registrations: Sequence[Registration]) -> ConflictInfo | None:
        candidate = self.transform(sessions_for_registration(self.catalog, registration))
        others = [item for item in registrations if item.course_id != registration.course_id]
        existing = self.transform(sessions_for_registrations(self.catalog, others))
        return self.conflicts.find_conflict(candidate, existing)

    def register(
        self,
        registrations: Sequence[Registration],
        course_id: str,
        group_ids: Iterable[object],
    ) -> list[Registration]:
        """Validate and conflict-check a selection; returns the new registration list."""
        registration = self.validate(course_id, group_ids)
        conflict = self.check_conflict(registration, registrations)
        if conflict is not None:
            course = self.catalog.get(course_id)
            raise ConflictError(
                f"Conflict detected for {course.name} on {conflict.day} at {conflict.overlap_label}",
                conflict=conflict,
                details={
                    "course_id": course_id,
                    "course_name": course.name,
                    "day": conflict.day,
                    "time": conflict.overlap_label or conflict.candidate.time,
                    "overlap": {"start": conflict.overlap.start, "end": conflict.overlap.end},
                    "candidate_group": conflict.candidate.group_name,
                    "conflicting_course_id": conflict.existing.course_id,
                    "conflicting_course_name": conflict.existing.course_name,
                    "conflicting_group": conflict.existing.group_name,
                },
            )
        logger.info("Registration saved course=%s groups=%s", course_id, ",".join(registration.selected_group_ids))
        return upsert_registration(registrations, registration)
