from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from coursegrid.models.planning import Score
from coursegrid.models.session import Catalog, Session, SessionKind, SlotRange
from coursegrid.models.track import Track
from coursegrid.services.catalog import dedupe_sessions
from coursegrid.services.evaluator import ScheduleEvaluator
from coursegrid.services.overrides import TrackArena, apply_to_sessions

RankingCriterion = Literal["balanced", "days", "gaps", "late"]


@dataclass(frozen=True)
class FreeBlock:
    day: str
    slot_range: SlotRange
    label: str


@dataclass(frozen=True)
class Recommendation:
    session: Session
    day: str
    slot_range: SlotRange
    kind: SessionKind


@dataclass(frozen=True)
class TrackCandidate:
    track: Track
    score: Score


def free_blocks(evaluator: ScheduleEvaluator, sessions: Sequence[Session]) -> dict[str, list[FreeBlock]]:
    """Maximal runs of free slots on every day that has at least one session."""
    grid = evaluator.grid
    occupied = evaluator.occupancy(sessions)
    result: dict[str, list[FreeBlock]] = {}
    for day in grid.days:
        used = occupied.get(day)
        if not used:
            continue
        blocks: list[FreeBlock] = []
        start: int | None = None
        for index in range(len(grid) + 1):
            busy = index == len(grid) or index in used
            if not busy and start is None:
                start = index
            elif busy and start is not None:
                slot_range = SlotRange(start=start, end=index)
                blocks.append(FreeBlock(day=day, slot_range=slot_range, label=grid.format_range(slot_range)))
                start = None
        result[day] = blocks
    return result


def recommend_sessions(
    evaluator: ScheduleEvaluator,
    catalog: Catalog,
    sessions: Sequence[Session],
    limit: int | None = None,
) -> list[Recommendation]:
    grid = evaluator.grid
    limit = evaluator.policy.recommendation_limit if limit is None else limit
    blocks = free_blocks(evaluator, sessions)
    if not blocks:
        return []
    existing = {session.key for session in sessions}

    items: list[Recommendation] = []
    for course in catalog.courses:
        for session in course.sessions:
            day_blocks = blocks.get(session.day)
            if not day_blocks or session.key in existing:
                continue
            placement = grid.placement(session)
            if placement is None:
                continue
            slot_range = placement[1]
            if not any(block.slot_range.contains(slot_range) for block in day_blocks):
                continue
            items.append(Recommendation(session=session, day=session.day, slot_range=slot_range, kind=session.kind))

    items.sort(key=lambda item: (grid.day_index(item.day), item.slot_range.start, item.session.course_name))
    return items[:limit]


def _ranking_key(criterion: RankingCriterion):
    def key(candidate: TrackCandidate):
        score = candidate.score
        if criterion == "days":
            primary = score.active_days
        elif criterion == "gaps":
            primary = score.gap_slots
        elif criterion == "late":
            primary = score.late_sessions
        else:
            primary = 0
        return (primary, -score.overall, candidate.track.label)

    return key


def rank_tracks(
    evaluator: ScheduleEvaluator,
    catalog: Catalog,
    arena: TrackArena,
    registered_sessions: Sequence[Session],
    criterion: RankingCriterion = "balanced",
) -> list[TrackCandidate]:
    """Score every track as if it were active: its override chain applies to registered sessions too."""
    candidates = []
    for track in arena.ordered():
        overrides = arena.override_chain(track.id)
        registered = [applied.session for applied in apply_to_sessions(registered_sessions, track.id, overrides)]
        track_sessions = [applied.session for applied in arena.track_sessions(track.id, catalog)]
        merged = dedupe_sessions([*registered, *track_sessions])
        candidates.append(TrackCandidate(track=track, score=evaluator.evaluate(merged)))
    candidates.sort(key=_ranking_key(criterion))
    return candidates
