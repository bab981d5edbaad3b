from __future__ import annotations

import heapq
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from time import perf_counter

from coursegrid.core.exceptions import ValidationError
from coursegrid.models.planning import Combination, Plan, PlanDiff, PlannerResult, Score
from coursegrid.models.registration import Registration
from coursegrid.models.session import Catalog, Course, Session
from coursegrid.models.track import OverridePatch
from coursegrid.services.catalog import sessions_for_registrations, split_groups
from coursegrid.services.evaluator import ScheduleEvaluator
from coursegrid.services.overrides import apply_to_sessions

logger = logging.getLogger(__name__)

NOTHING_TO_PLAN = "nothing_to_plan"


@dataclass(frozen=True)
class CourseOptions:
    course: Course
    registration: Registration
    current: Combination
    eligible: tuple[Combination, ...]


@dataclass
class _SearchState:
    explored: int = 0
    truncated: bool = False
    leaves: list[tuple] = field(default_factory=list)


def course_combinations(course: Course) -> list[Combination]:
    lectures, sections = split_groups(course)
    combos: list[Combination] = []
    for lecture in lectures:
        if not sections:
            combos.append(Combination(course.id, lecture.group_id, None, lecture.group_name))
            continue
        for section in sections:
            combos.append(
                Combination(course.id, lecture.group_id, section.group_id, f"{lecture.group_name} + {section.group_name}")
            )
    return combos


def current_combination(course: Course, registration: Registration) -> Combination:
    lectures, sections = split_groups(course)
    lecture_names = {group.group_id: group.group_name for group in lectures}
    section_names = {group.group_id: group.group_name for group in sections}
    selected = registration.selected_group_ids
    lecture_id = next((group_id for group_id in selected if group_id in lecture_names), "")
    section_id = next((group_id for group_id in selected if group_id in section_names), None)
    label = lecture_names.get(lecture_id, lecture_id or "(no lecture)")
    if section_id is not None:
        label = f"{label} + {section_names[section_id]}"
    return Combination(course.id, lecture_id, section_id, label)


class LowDamagePlanner:
    """Bounded depth-first search over per-course group combinations."""

    def __init__(self, evaluator: ScheduleEvaluator):
        self.evaluator = evaluator
        self.policy = evaluator.policy

    def course_options(
        self,
        catalog: Catalog,
        registrations: Sequence[Registration],
        locks: Mapping[str, str | None],
        allow_change: Mapping[str, bool],
    ) -> list[CourseOptions]:
        options: list[CourseOptions] = []
        for registration in registrations:
            course = catalog.get(registration.course_id)
            if course is None:
                logger.warning("Planner skipping registration for unknown course %s", registration.course_id)
                continue
            current = current_combination(course, registration)
            combos = course_combinations(course)
            if all(combo.key != current.key for combo in combos):
                combos.insert(0, current)

            lock = locks.get(course.id)
            if lock:
                eligible = [combo for combo in combos if combo.key == lock]
                if not eligible:
                    raise ValidationError(
                        f"Lock {lock!r} does not match any combination of {course.name}",
                        details={"course_id": course.id, "lock": lock, "combinations": [combo.key for combo in combos]},
                    )
            elif not allow_change.get(course.id, True):
                eligible = [current]
            else:
                eligible = combos
            options.append(CourseOptions(course, registration, current, tuple(eligible)))

        options.sort(key=lambda option: len(option.eligible))
        return options

    def _effective(self, sessions: list[Session], overrides: Mapping[str, OverridePatch] | None) -> list[Session]:
        if not overrides:
            return sessions
        return [applied.session for applied in apply_to_sessions(sessions, "planner", overrides)]

    def plan(
        self,
        catalog: Catalog,
        registrations: Sequence[Registration],
        *,
        max_changes: int | None = None,
        locks: Mapping[str, str | None] | None = None,
        allow_change: Mapping[str, bool] | None = None,
        overrides: Mapping[str, OverridePatch] | None = None,
    ) -> PlannerResult:
        max_changes = self.policy.default_max_changes if max_changes is None else max_changes
        if max_changes < 0:
            raise ValidationError("maxChanges cannot be negative", details={"max_changes": max_changes})

        current_sessions = self._effective(sessions_for_registrations(catalog, registrations), overrides)
        current_score = self.evaluator.evaluate(current_sessions)
        current_damage = self.evaluator.damage(current_score)

        options = self.course_options(catalog, registrations, locks or {}, allow_change or {})
        if not options:
            return PlannerResult(
                plans=(),
                current_score=current_score,
                current_damage=current_damage,
                explored=0,
                reason=NOTHING_TO_PLAN,
            )

        started = perf_counter()
        state = _SearchState()
        cap = self.policy.exploration_cap
        chosen: list[Combination] = []

        def visit(depth: int, cost: int) -> None:
            if depth == len(options):
                state.explored += 1
                if state.explored > cap:
                    state.truncated = True
                    return
                assignment = {option.course.id: combo for option, combo in zip(options, chosen)}
                candidate = self._materialize(catalog, registrations, options, assignment)
                sessions = self._effective(sessions_for_registrations(catalog, candidate), overrides)
                score = self.evaluator.evaluate(sessions)
                damage = self.evaluator.damage(score)
                state.leaves.append((damage, cost, -score.overall, len(state.leaves), assignment, score))
                return

            option = options[depth]
            for combo in option.eligible:
                step = 0 if combo.key == option.current.key else 1
                if cost + step > max_changes:
                    continue
                chosen.append(combo)
                visit(depth + 1, cost + step)
                chosen.pop()
                if state.truncated:
                    return

        visit(0, 0)

        best = heapq.nsmallest(self.policy.top_n, state.leaves, key=lambda leaf: leaf[:4])
        plans = tuple(
            self._build_plan(catalog, registrations, options, assignment, score, damage, cost, overrides, current_damage)
            for damage, cost, _, _, assignment, score in best
        )

        if state.truncated:
            logger.warning(
                "Planner exploration cap reached | cap=%s courses=%s max_changes=%s",
                cap,
                len(options),
                max_changes,
            )
        logger.info(
            "Planner run courses=%s max_changes=%s explored=%s plans=%s current_damage=%s best_damage=%s runtime_ms=%.1f",
            len(options),
            max_changes,
            min(state.explored, cap),
            len(plans),
            current_damage,
            plans[0].damage if plans else None,
            (perf_counter() - started) * 1000,
        )
        return PlannerResult(
            plans=plans,
            current_score=current_score,
            current_damage=current_damage,
            explored=min(state.explored, cap),
            truncated=state.truncated,
        )

    @staticmethod
    def _materialize(
        catalog: Catalog,
        registrations: Sequence[Registration],
        options: Sequence[CourseOptions],
        assignment: Mapping[str, Combination],
    ) -> list[Registration]:
        current_by_course = {option.course.id: option.current for option in options}
        materialized: list[Registration] = []
        for registration in registrations:
            combo = assignment.get(registration.course_id)
            if combo is None or combo.key == current_by_course[registration.course_id].key:
                materialized.append(registration)
            else:
                materialized.append(Registration(registration.course_id, combo.group_ids))
        return materialized

    def _build_plan(
        self,
        catalog: Catalog,
        registrations: Sequence[Registration],
        options: Sequence[CourseOptions],
        assignment: Mapping[str, Combination],
        score: Score,
        damage: int,
        change_count: int,
        overrides: Mapping[str, OverridePatch] | None,
        current_damage: int,
    ) -> Plan:
        materialized = self._materialize(catalog, registrations, options, assignment)
        sessions = self._effective(sessions_for_registrations(catalog, materialized), overrides)
        option_by_course = {option.course.id: option for option in options}
        diffs = []
        for registration in registrations:
            option = option_by_course.get(registration.course_id)
            if option is None:
                continue
            combo = assignment[registration.course_id]
            if combo.key != option.current.key:
                diffs.append(PlanDiff(option.course.id, option.course.name, option.current.label, combo.label))
        return Plan(
            registrations=tuple(materialized),
            sessions=tuple(sessions),
            score=score,
            damage=damage,
            change_count=change_count,
            diffs=tuple(diffs),
            improves=damage < current_damage,
        )
