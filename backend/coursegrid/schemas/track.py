from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from coursegrid.schemas.schedule import ScoreOut

TIME_RANGE_PATTERN = re.compile(r"^\s*\d{1,2}:\d{2}\s*-\s*\d{1,2}:\d{2}\s*$")


class OverridePatchPayload(BaseModel):
    staff: str | None = Field(default=None, max_length=200)
    time: str | None = None
    day: str | None = Field(default=None, max_length=20)

    @field_validator("staff", "time", "day")
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @field_validator("time")
    @classmethod
    def validate_time(cls, value: str | None) -> str | None:
        if value is not None and not TIME_RANGE_PATTERN.match(value):
            raise ValueError("Time must be in 'HH:MM - HH:MM' format")
        return value

    @model_validator(mode="after")
    def validate_not_empty(self) -> "OverridePatchPayload":
        if self.staff is None and self.time is None and self.day is None:
            raise ValueError("Override must change at least one of staff, time or day")
        return self


class OverrideRequest(BaseModel):
    session_key: str = Field(min_length=3)
    patch: OverridePatchPayload


class ModifiedCopyRequest(BaseModel):
    session_key: str | None = None
    patch: OverridePatchPayload | None = None


class ActiveTrackRequest(BaseModel):
    track_id: str | None = None


class TrackOut(BaseModel):
    id: str
    label: str
    prefix: str
    section_names: list[str]
    kind: Literal["regular", "modified"]
    base_track_id: str | None = None
    override_count: int = 0

    @classmethod
    def from_track(cls, track) -> "TrackOut":
        return cls(
            id=track.id,
            label=track.label,
            prefix=track.prefix,
            section_names=list(track.section_names),
            kind=track.kind.value,
            base_track_id=track.base_track_id,
            override_count=len(track.overrides),
        )


class TrackListOut(BaseModel):
    active_track_id: str | None
    tracks: list[TrackOut]


class TrackRankingOut(BaseModel):
    track: TrackOut
    score: ScoreOut


class ModifiedTrackPayload(BaseModel):
    id: str = Field(min_length=1)
    label: str | None = None
    prefix: str = ""
    section_names: list[str] = Field(default_factory=list)
    base_track_id: str | None = None


class OverrideState(BaseModel):
    overrides: dict[str, dict[str, OverridePatchPayload]] = Field(default_factory=dict)
    modified_tracks: list[ModifiedTrackPayload] = Field(default_factory=list)
    ignored_track_ids: list[str] = Field(default_factory=list)
