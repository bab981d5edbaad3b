from __future__ import annotations

import logging
import math
from collections import defaultdict
from collections.abc import Iterable

from coursegrid.models.planning import Score
from coursegrid.models.session import Session, UnschedulableSession
from coursegrid.schemas.policy import DamageWeights
from coursegrid.services.catalog import dedupe_sessions
from coursegrid.services.conflict_service import ConflictService
from coursegrid.services.slots import SlotGrid

logger = logging.getLogger(__name__)


def _clamp(value: int) -> int:
    return max(0, min(100, value))


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def damage_of(score: Score, weights: DamageWeights) -> int:
    return (
        weights.conflict * score.conflict_count
        + weights.gap * score.gap_slots
        + weights.late * score.late_sessions
        + weights.active_day * score.active_days
    )


class ScheduleEvaluator:
    def __init__(self, grid: SlotGrid):
        self.grid = grid
        self.policy = grid.policy
        self.conflicts = ConflictService(grid)

    def occupancy(self, sessions: Iterable[Session]) -> dict[str, set[int]]:
        occupied: dict[str, set[int]] = defaultdict(set)
        for session in sessions:
            placement = self.grid.placement(session)
            if placement is None:
                continue
            day, slot_range = placement
            occupied[day].update(slot_range.indices())
        return occupied

    def evaluate(self, sessions: Iterable[Session]) -> Score:
        unique = dedupe_sessions(sessions)
        occupied = self.occupancy(unique)

        active_days = 0
        gap_slots = 0
        for used in occupied.values():
            if not used:
                continue
            active_days += 1
            first, last = min(used), max(used)
            gap_slots += sum(1 for index in range(first, last + 1) if index not in used)

        late_sessions = 0
        for session in unique:
            placement = self.grid.placement(session)
            if placement is not None and self.grid.is_late(placement[1]):
                late_sessions += 1

        conflict_count = self.conflicts.count_conflicts(unique)

        penalties = self.policy.score_penalties
        weights = self.policy.score_weights
        score_days = _clamp(100 - penalties.day * max(0, active_days - 1))
        score_gaps = _clamp(100 - penalties.gap * gap_slots)
        score_late = _clamp(100 - penalties.late * late_sessions)
        score_conflict = _clamp(100 - penalties.conflict * conflict_count)
        overall = round_half_up(
            weights.days * score_days
            + weights.gaps * score_gaps
            + weights.late * score_late
            + weights.conflict * score_conflict
        )
        return Score(
            active_days=active_days,
            gap_slots=gap_slots,
            late_sessions=late_sessions,
            conflict_count=conflict_count,
            score_days=score_days,
            score_gaps=score_gaps,
            score_late=score_late,
            score_conflict=score_conflict,
            overall=overall,
        )

    def damage(self, score: Score) -> int:
        return damage_of(score, self.policy.damage_weights)

    def unschedulable(self, sessions: Iterable[Session]) -> list[UnschedulableSession]:
        warnings = []
        for session in dedupe_sessions(sessions):
            reason = self.grid.unschedulable_reason(session)
            if reason is None:
                continue
            logger.debug(
                "Skipping unschedulable session course=%s group=%s day=%s time=%r reason=%s",
                session.course_id,
                session.group_id,
                session.day,
                session.time,
                reason,
            )
            warnings.append(UnschedulableSession(session=session, reason=reason))
        return warnings
