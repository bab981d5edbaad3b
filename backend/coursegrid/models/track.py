from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from coursegrid.models.session import Session


class TrackKind(str, Enum):
    regular = "regular"
    modified = "modified"


@dataclass(frozen=True)
class OverridePatch:
    staff: str | None = None
    time: str | None = None
    day: str | None = None

    def is_empty(self) -> bool:
        return self.staff is None and self.time is None and self.day is None

    def merged(self, later: OverridePatch) -> OverridePatch:
        return replace(
            self,
            staff=later.staff if later.staff is not None else self.staff,
            time=later.time if later.time is not None else self.time,
            day=later.day if later.day is not None else self.day,
        )

    def to_dict(self) -> dict:
        return {name: value for name, value in (("staff", self.staff), ("time", self.time), ("day", self.day)) if value is not None}


@dataclass
class Track:
    id: str
    label: str
    prefix: str
    section_names: tuple[str, ...]
    kind: TrackKind = TrackKind.regular
    base_track_id: str | None = None
    overrides: dict[str, OverridePatch] = field(default_factory=dict)


@dataclass(frozen=True)
class AppliedSession:
    session: Session
    is_modified: bool = False
    reason: str = ""
