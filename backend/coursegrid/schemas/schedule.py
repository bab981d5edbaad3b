from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from coursegrid.schemas.catalog import SessionOut, SessionPayload


class ScoreOut(BaseModel):
    active_days: int
    gap_slots: int
    late_sessions: int
    conflict_count: int
    score_days: int
    score_gaps: int
    score_late: int
    score_conflict: int
    overall: int

    @classmethod
    def from_score(cls, score) -> "ScoreOut":
        return cls(
            active_days=score.active_days,
            gap_slots=score.gap_slots,
            late_sessions=score.late_sessions,
            conflict_count=score.conflict_count,
            score_days=score.score_days,
            score_gaps=score.score_gaps,
            score_late=score.score_late,
            score_conflict=score.score_conflict,
            overall=score.overall,
        )


class UnschedulableOut(BaseModel):
    key: str
    course_id: str
    group_name: str
    day: str
    time: str
    reason: Literal["unknown_day", "unparsable_time", "unaligned_start", "span_overflow"]


class ConflictPairOut(BaseModel):
    day: str
    time: str
    first_key: str
    second_key: str
    first_course_id: str
    second_course_id: str


class ScheduleOut(BaseModel):
    active_track_id: str | None
    sessions: list[SessionOut]
    score: ScoreOut
    conflicts: list[ConflictPairOut] = Field(default_factory=list)
    warnings: list[UnschedulableOut] = Field(default_factory=list)


class EvaluateSession(SessionPayload):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    course_id: str = Field(alias="courseId", min_length=1)


class EvaluateRequest(BaseModel):
    sessions: list[EvaluateSession] = Field(default_factory=list)


class EvaluateResponse(BaseModel):
    score: ScoreOut
    damage: int
    warnings: list[UnschedulableOut] = Field(default_factory=list)


class FreeBlockOut(BaseModel):
    start: int
    end: int
    label: str


class FreeTimeOut(BaseModel):
    days: dict[str, list[FreeBlockOut]]


class RecommendationOut(BaseModel):
    key: str
    day: str
    start: int
    time: str
    type: Literal["lecture", "section"]
    course_id: str
    course_name: str
    group_id: str
    group_name: str
