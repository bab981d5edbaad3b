from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from coursegrid.schemas.catalog import SessionOut
from coursegrid.schemas.registration import RegistrationPayload
from coursegrid.schemas.schedule import ScoreOut


class PlannerRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    max_changes: int | None = Field(default=None, alias="maxChanges", ge=0, le=100)
    locks: dict[str, str | None] = Field(default_factory=dict)
    allow_change: dict[str, bool] = Field(default_factory=dict, alias="allowChange")


class PlanDiffOut(BaseModel):
    course_id: str
    course_name: str
    old_label: str
    new_label: str


class PlanOut(BaseModel):
    registrations: list[RegistrationPayload]
    sessions: list[SessionOut]
    score: ScoreOut
    damage: int
    change_count: int
    diffs: list[PlanDiffOut]
    improves: bool


class PlannerResponse(BaseModel):
    plans: list[PlanOut]
    current_score: ScoreOut
    current_damage: int
    explored: int
    truncated: bool
    reason: str | None = None
    message: str | None = None


class CombinationOut(BaseModel):
    key: str
    label: str
    group_ids: list[str]
    is_current: bool
