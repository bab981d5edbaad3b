from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator

TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d$")


class ScoreWeights(BaseModel):
    days: float = Field(default=0.34, ge=0, le=1)
    gaps: float = Field(default=0.30, ge=0, le=1)
    late: float = Field(default=0.20, ge=0, le=1)
    conflict: float = Field(default=0.16, ge=0, le=1)


class ScorePenalties(BaseModel):
    day: int = Field(default=18, ge=0, le=100)
    gap: int = Field(default=10, ge=0, le=100)
    late: int = Field(default=24, ge=0, le=100)
    conflict: int = Field(default=40, ge=0, le=100)


class DamageWeights(BaseModel):
    conflict: int = Field(default=1200, ge=0, le=100_000)
    gap: int = Field(default=18, ge=0, le=10_000)
    late: int = Field(default=28, ge=0, le=10_000)
    active_day: int = Field(default=4, ge=0, le=10_000)


class SchedulingPolicy(BaseModel):
    time_slots: list[str] = Field(
        default_factory=lambda: [
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
        ],
        min_length=1,
        max_length=48,
    )
    days: list[str] = Field(
        default_factory=lambda: ["Saturday", "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday"],
        min_length=1,
        max_length=7,
    )
    late_threshold: str = "16:15"
    score_weights: ScoreWeights = Field(default_factory=ScoreWeights)
    score_penalties: ScorePenalties = Field(default_factory=ScorePenalties)
    damage_weights: DamageWeights = Field(default_factory=DamageWeights)
    exploration_cap: int = Field(default=20_000, ge=1, le=5_000_000)
    top_n: int = Field(default=8, ge=1, le=200)
    default_max_changes: int = Field(default=2, ge=0, le=100)
    recommendation_limit: int = Field(default=30, ge=1, le=500)
    require_section_when_offered: bool = False

    @field_validator("late_threshold")
    @classmethod
    def validate_threshold(cls, value: str) -> str:
        value = value.strip()
        if not TIME_PATTERN.match(value):
            raise ValueError("late_threshold must be in HH:MM 24-hour format")
        return value

    @field_validator("days")
    @classmethod
    def validate_days(cls, value: list[str]) -> list[str]:
        cleaned = [day.strip() for day in value if day.strip()]
        if len(set(cleaned)) != len(cleaned):
            raise ValueError("Duplicate day entries")
        return cleaned
