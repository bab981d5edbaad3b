from __future__ import annotations

from dataclasses import dataclass

from coursegrid.models.session import Session, SlotRange


@dataclass(frozen=True)
class ConflictInfo:
    candidate: Session
    existing: Session
    day: str
    overlap: SlotRange
    overlap_label: str
