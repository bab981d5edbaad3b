from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class SessionKind(str, Enum):
    lecture = "lecture"
    section = "section"


def normalize_kind(type_text: str | None) -> SessionKind:
    normalized = "".join((type_text or "").lower().split())
    if "sub" in normalized or "lab" in normalized:
        return SessionKind.section
    return SessionKind.lecture


@dataclass(frozen=True, order=True)
class SlotRange:
    start: int
    end: int

    @property
    def span(self) -> int:
        return self.end - self.start

    def overlaps(self, other: SlotRange) -> bool:
        return self.start < other.end and other.start < self.end

    def intersection(self, other: SlotRange) -> SlotRange | None:
        start = max(self.start, other.start)
        end = min(self.end, other.end)
        if end <= start:
            return None
        return SlotRange(start=start, end=end)

    def contains(self, other: SlotRange) -> bool:
        return self.start <= other.start and other.end <= self.end

    def indices(self) -> range:
        return range(self.start, self.end)


@dataclass(frozen=True)
class SessionKey:
    """Structural identity of a session, stable across override edits."""

    course_id: str
    group_id: str
    day: str
    timeslot_id: str
    name_en: str = ""

    def __str__(self) -> str:
        return "|".join((self.course_id, self.group_id, self.day, self.timeslot_id, self.name_en))


@dataclass(frozen=True)
class Session:
    course_id: str
    group_id: str
    group_name: str
    type_text: str
    day: str
    time: str
    room: str = ""
    staff: str = ""
    name_en: str = ""
    timeslot_id: str = ""
    course_name: str = ""
    origin_key: SessionKey | None = None

    @property
    def kind(self) -> SessionKind:
        return normalize_kind(self.type_text)

    @property
    def key(self) -> SessionKey:
        if self.origin_key is not None:
            return self.origin_key
        return SessionKey(
            course_id=self.course_id,
            group_id=self.group_id,
            day=self.day,
            timeslot_id=self.timeslot_id or self.time,
            name_en=self.name_en,
        )


@dataclass(frozen=True)
class Group:
    group_id: str
    group_name: str
    kind: SessionKind
    sessions: tuple[Session, ...]


@dataclass(frozen=True)
class Course:
    id: str
    name: str
    sessions: tuple[Session, ...]


@dataclass(frozen=True)
class Catalog:
    courses: tuple[Course, ...] = ()
    _by_id: dict[str, Course] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_by_id", {course.id: course for course in self.courses})

    def get(self, course_id: str) -> Course | None:
        return self._by_id.get(course_id)

    def __contains__(self, course_id: object) -> bool:
        return course_id in self._by_id

    def __len__(self) -> int:
        return len(self.courses)


@dataclass(frozen=True)
class UnschedulableSession:
    session: Session
    reason: str
