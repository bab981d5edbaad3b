from functools import lru_cache
import json
from pathlib import Path
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from coursegrid.schemas.policy import DamageWeights, ScorePenalties, ScoreWeights, SchedulingPolicy


BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"

DEFAULT_TIME_SLOTS = [
    "08:45 - 09:30",
    "09:30 - 10:15",
    "10:15 - 11:00",
    "11:00 - 11:45",
    "11:45 - 12:30",
    "12:30 - 13:15",
    "13:15 - 14:00",
    "14:00 - 14:45",
    "14:45 - 15:30",
    "15:30 - 16:15",
    "16:15 - 17:00",
    "17:00 - 17:45",
]

DEFAULT_DAYS = ["Saturday", "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday"]


def _split_list(value: str | list[str]) -> list[str]:
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.startswith("["):
            try:
                parsed = json.loads(stripped)
                if isinstance(parsed, list):
                    return [str(item).strip() for item in parsed if str(item).strip()]
            except json.JSONDecodeError:
                pass
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class Settings(BaseSettings):
    # Resolve to backend/.env so the app starts the same way from any cwd.
    model_config = SettingsConfigDict(
        env_file=str(BACKEND_ENV_FILE),
        env_file_encoding="utf-8",
        env_prefix="COURSEGRID_",
        extra="ignore",
    )

    project_name: str = "CourseGrid API"
    api_prefix: str = "/api"
    max_request_size_bytes: int = 2_500_000

    cors_origins: Annotated[list[str], NoDecode] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    time_slots: Annotated[list[str], NoDecode] = DEFAULT_TIME_SLOTS
    days: Annotated[list[str], NoDecode] = DEFAULT_DAYS
    late_threshold: str = "16:15"

    score_weight_days: float = 0.34
    score_weight_gaps: float = 0.30
    score_weight_late: float = 0.20
    score_weight_conflict: float = 0.16
    score_penalty_day: int = 18
    score_penalty_gap: int = 10
    score_penalty_late: int = 24
    score_penalty_conflict: int = 40

    damage_conflict: int = 1200
    damage_gap: int = 18
    damage_late: int = 28
    damage_active_day: int = 4

    planner_exploration_cap: int = 20_000
    planner_top_n: int = 8
    planner_default_max_changes: int = 2
    recommendation_limit: int = 30
    require_section_when_offered: bool = False

    @field_validator("cors_origins", "time_slots", "days", mode="before")
    @classmethod
    def split_lists(cls, value: str | list[str]) -> list[str]:
        return _split_list(value)

    def scheduling_policy(self) -> SchedulingPolicy:
        return SchedulingPolicy(
            time_slots=self.time_slots,
            days=self.days,
            late_threshold=self.late_threshold,
            score_weights=ScoreWeights(
                days=self.score_weight_days,
                gaps=self.score_weight_gaps,
                late=self.score_weight_late,
                conflict=self.score_weight_conflict,
            ),
            score_penalties=ScorePenalties(
                day=self.score_penalty_day,
                gap=self.score_penalty_gap,
                late=self.score_penalty_late,
                conflict=self.score_penalty_conflict,
            ),
            damage_weights=DamageWeights(
                conflict=self.damage_conflict,
                gap=self.damage_gap,
                late=self.damage_late,
                active_day=self.damage_active_day,
            ),
            exploration_cap=self.planner_exploration_cap,
            top_n=self.planner_top_n,
            default_max_changes=self.planner_default_max_changes,
            recommendation_limit=self.recommendation_limit,
            require_section_when_offered=self.require_section_when_offered,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
