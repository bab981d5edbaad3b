from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from itertools import combinations

from coursegrid.models.conflict import ConflictInfo
from coursegrid.models.session import Session, SlotRange
from coursegrid.services.slots import SlotGrid


class ConflictService:
    def __init__(self, grid: SlotGrid):
        self.grid = grid

    def find_conflict(
        self,
        candidate_sessions: Sequence[Session],
        existing_sessions: Sequence[Session],
    ) -> ConflictInfo | None:
        """First overlap in candidate-then-existing order; unschedulable entries are skipped."""
        existing_placed = [
            (session, placement)
            for session in existing_sessions
            if (placement := self.grid.placement(session)) is not None
        ]
        for candidate in candidate_sessions:
            placement = self.grid.placement(candidate)
            if placement is None:
                continue
            day, candidate_range = placement
            for existing, (existing_day, existing_range) in existing_placed:
                if existing_day != day:
                    continue
                overlap = candidate_range.intersection(existing_range)
                if overlap is None:
                    continue
                return ConflictInfo(
                    candidate=candidate,
                    existing=existing,
                    day=day,
                    overlap=overlap,
                    overlap_label=self.grid.format_range(overlap),
                )
        return None

    def placed_by_day(self, sessions: Iterable[Session]) -> dict[str, list[tuple[Session, SlotRange]]]:
        by_day: dict[str, list[tuple[Session, SlotRange]]] = defaultdict(list)
        for session in sessions:
            placement = self.grid.placement(session)
            if placement is None:
                continue
            day, slot_range = placement
            by_day[day].append((session, slot_range))
        return by_day

    def conflicting_pairs(self, sessions: Iterable[Session]) -> list[tuple[Session, Session, SlotRange]]:
        pairs: list[tuple[Session, Session, SlotRange]] = []
        by_day = self.placed_by_day(sessions)
        for day in sorted(by_day, key=self.grid.day_index):
            for (first, first_range), (second, second_range) in combinations(by_day[day], 2):
                overlap = first_range.intersection(second_range)
                if overlap is not None:
                    pairs.append((first, second, overlap))
        return pairs

    def count_conflicts(self, sessions: Iterable[Session]) -> int:
        count = 0
        for placed in self.placed_by_day(sessions).values():
            for (_, first_range), (_, second_range) in combinations(placed, 2):
                if first_range.overlaps(second_range):
                    count += 1
        return count
