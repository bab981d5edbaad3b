from __future__ import annotations

from dataclasses import dataclass

from coursegrid.models.registration import Registration
from coursegrid.models.session import Session


@dataclass(frozen=True)
class Score:
    active_days: int = 0
    gap_slots: int = 0
    late_sessions: int = 0
    conflict_count: int = 0
    score_days: int = 100
    score_gaps: int = 100
    score_late: int = 100
    score_conflict: int = 100
    overall: int = 100


@dataclass(frozen=True)
class Combination:
    course_id: str
    lecture_group_id: str
    section_group_id: str | None
    label: str

    @property
    def key(self) -> str:
        return f"{self.lecture_group_id}|{self.section_group_id or '-'}"

    @property
    def group_ids(self) -> tuple[str, ...]:
        return tuple(group_id for group_id in (self.lecture_group_id, self.section_group_id) if group_id)


@dataclass(frozen=True)
class PlanDiff:
    course_id: str
    course_name: str
    old_label: str
    new_label: str


@dataclass(frozen=True)
class Plan:
    registrations: tuple[Registration, ...]
    sessions: tuple[Session, ...]
    score: Score
    damage: int
    change_count: int
    diffs: tuple[PlanDiff, ...]
    improves: bool = False


@dataclass(frozen=True)
class PlannerResult:
    plans: tuple[Plan, ...]
    current_score: Score
    current_damage: int
    explored: int
    truncated: bool = False
    reason: str | None = None
