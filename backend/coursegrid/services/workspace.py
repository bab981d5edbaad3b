from __future__ import annotations

import logging
from threading import Lock

from coursegrid.core.exceptions import ResourceNotFoundError
from coursegrid.models.registration import Registration
from coursegrid.models.session import Catalog, Session
from coursegrid.models.track import AppliedSession, OverridePatch
from coursegrid.schemas.policy import SchedulingPolicy
from coursegrid.services.catalog import sessions_for_registrations
from coursegrid.services.evaluator import ScheduleEvaluator
from coursegrid.services.overrides import TrackArena, apply_to_sessions
from coursegrid.services.planner import LowDamagePlanner
from coursegrid.services.registration import RegistrationService, restore_registrations
from coursegrid.services.slots import SlotGrid

logger = logging.getLogger(__name__)


class Workspace:
    """Host-side state for one student: catalog, tracks, registrations and the active track.

    Writers hold ``lock`` so registration checks always see a stable snapshot.
    """

    def __init__(self, policy: SchedulingPolicy) -> None:
        self.policy = policy
        self.grid = SlotGrid(policy)
        self.evaluator = ScheduleEvaluator(self.grid)
        self.conflicts = self.evaluator.conflicts
        self.planner = LowDamagePlanner(self.evaluator)
        self.catalog = Catalog()
        self.arena = TrackArena()
        self.registrations: list[Registration] = []
        self.active_track_id: str | None = None
        self.lock = Lock()

    def load_catalog(self, catalog: Catalog) -> list[str]:
        self.catalog = catalog
        self.arena = self.arena.rebuild(catalog)
        if self.active_track_id is not None and self.active_track_id not in self.arena:
            self.active_track_id = None
        kept, dropped = restore_registrations(catalog, [item.to_dict() for item in self.registrations])
        self.registrations = kept
        logger.info(
            "Catalog loaded courses=%s tracks=%s dropped_registrations=%s",
            len(catalog),
            len(self.arena),
            len(dropped),
        )
        return dropped

    def set_active_track(self, track_id: str | None) -> None:
        if track_id is not None and track_id not in self.arena:
            raise ResourceNotFoundError("Track", track_id)
        self.active_track_id = track_id

    def active_overrides(self) -> dict[str, OverridePatch]:
        if self.active_track_id is None:
            return {}
        return self.arena.override_chain(self.active_track_id)

    def apply_active(self, sessions: list[Session]) -> list[AppliedSession]:
        return apply_to_sessions(sessions, self.active_track_id or "", self.active_overrides())

    def effective(self, sessions: list[Session]) -> list[Session]:
        return [applied.session for applied in self.apply_active(sessions)]

    def registration_service(self) -> RegistrationService:
        return RegistrationService(
            self.catalog,
            self.conflicts,
            require_section_when_offered=self.policy.require_section_when_offered,
            transform=self.effective,
        )

    def table_sessions(self) -> list[AppliedSession]:
        """Registered sessions plus the active track's sessions, deduplicated by identity."""
        applied = self.apply_active(sessions_for_registrations(self.catalog, self.registrations))
        if self.active_track_id is not None:
            applied.extend(self.arena.track_sessions(self.active_track_id, self.catalog))
        seen = set()
        output: list[AppliedSession] = []
        for item in applied:
            key = item.session.key
            if key in seen:
                continue
            seen.add(key)
            output.append(item)
        return output
