from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import replace

from coursegrid.core.exceptions import ResourceNotFoundError, ValidationError
from coursegrid.models.session import Catalog, Session, SessionKind
from coursegrid.models.track import AppliedSession, OverridePatch, Track, TrackKind
from coursegrid.services.track_merger import merge_catalog_tracks, natural_key

logger = logging.getLogger(__name__)


def describe_patch(track_id: str, patch: OverridePatch) -> str:
    changes = ", ".join(f"{name}={value}" for name, value in patch.to_dict().items())
    return f"Modified by track {track_id}: {changes}"


def apply_overrides(session: Session, track_id: str, override_map: Mapping[str, OverridePatch]) -> AppliedSession:
    patch = override_map.get(str(session.key))
    if patch is None or patch.is_empty():
        return AppliedSession(session=session)
    updated = replace(
        session,
        staff=patch.staff if patch.staff is not None else session.staff,
        time=patch.time if patch.time is not None else session.time,
        day=patch.day if patch.day is not None else session.day,
        origin_key=session.key,
    )
    return AppliedSession(session=updated, is_modified=True, reason=describe_patch(track_id, patch))


def apply_to_sessions(
    sessions: Iterable[Session],
    track_id: str,
    override_map: Mapping[str, OverridePatch],
) -> list[AppliedSession]:
    return [apply_overrides(session, track_id, override_map) for session in sessions]


def track_base_sessions(catalog: Catalog, track: Track) -> list[Session]:
    prefix = track.prefix.upper()
    section_names = {name.upper() for name in track.section_names}
    sessions: list[Session] = []
    for course in catalog.courses:
        for session in course.sessions:
            group_name = session.group_name.strip().upper()
            if session.kind == SessionKind.lecture and prefix and group_name == prefix:
                sessions.append(session)
            elif session.kind == SessionKind.section and group_name in section_names:
                sessions.append(session)
    return sessions


def parse_patch(data: Mapping[str, object]) -> OverridePatch:
    def text(name: str) -> str | None:
        value = data.get(name)
        if value is None:
            return None
        return str(value).strip()

    return OverridePatch(staff=text("staff"), time=text("time"), day=text("day"))


class TrackArena:
    """Tracks keyed by id; modified copies point back at their base by id only."""

    def __init__(self, tracks: Iterable[Track] = ()) -> None:
        self._tracks: dict[str, Track] = {}
        for track in tracks:
            self._tracks[track.id] = track

    @classmethod
    def from_catalog(cls, catalog: Catalog) -> TrackArena:
        return cls(merge_catalog_tracks(catalog))

    def __iter__(self) -> Iterator[Track]:
        return iter(self._tracks.values())

    def __len__(self) -> int:
        return len(self._tracks)

    def __contains__(self, track_id: object) -> bool:
        return track_id in self._tracks

    def get(self, track_id: str) -> Track:
        track = self._tracks.get(track_id)
        if track is None:
            raise ResourceNotFoundError("Track", track_id)
        return track

    def ordered(self) -> list[Track]:
        return sorted(self._tracks.values(), key=lambda track: (natural_key(track.label), track.kind != TrackKind.regular, track.id))

    def rebuild(self, catalog: Catalog) -> TrackArena:
        """Re-project regular tracks from a new catalog, keeping overrides and copies."""
        fresh = TrackArena.from_catalog(catalog)
        for track in self._tracks.values():
            if track.kind == TrackKind.modified:
                fresh._tracks[track.id] = replace(track, overrides=dict(track.overrides))
            elif track.id in fresh and track.overrides:
                fresh._tracks[track.id].overrides = dict(track.overrides)
        return fresh

    def override_chain(self, track_id: str) -> dict[str, OverridePatch]:
        """Overrides of a track merged over those of its base tracks."""
        lineage: list[Track] = []
        seen: set[str] = set()
        current = self._tracks.get(track_id)
        while current is not None and current.id not in seen:
            seen.add(current.id)
            lineage.append(current)
            current = self._tracks.get(current.base_track_id) if current.base_track_id else None

        merged: dict[str, OverridePatch] = {}
        for track in reversed(lineage):
            for key, patch in track.overrides.items():
                merged[key] = merged[key].merged(patch) if key in merged else patch
        return merged

    def track_sessions(self, track_id: str, catalog: Catalog) -> list[AppliedSession]:
        track = self.get(track_id)
        return apply_to_sessions(track_base_sessions(catalog, track), track.id, self.override_chain(track.id))

    def set_override(self, track_id: str, session_key: str, patch: OverridePatch) -> Track:
        track = self.get(track_id)
        if patch.is_empty():
            raise ValidationError("Override patch must change staff, time or day", details={"track_id": track_id})
        existing = track.overrides.get(session_key)
        track.overrides[session_key] = existing.merged(patch) if existing else patch
        logger.info("Override set track=%s key=%s fields=%s", track_id, session_key, sorted(patch.to_dict()))
        return track

    def create_modified_copy(self, track_id: str, session_key: str | None = None, patch: OverridePatch | None = None) -> Track:
        base = self.get(track_id)
        copy = Track(
            id=f"{base.id}~{uuid.uuid4().hex[:8]}",
            label=f"{base.label} (modified)",
            prefix=base.prefix,
            section_names=tuple(base.section_names),
            kind=TrackKind.modified,
            base_track_id=base.id,
        )
        if session_key is not None and patch is not None and not patch.is_empty():
            copy.overrides[session_key] = patch
        self._tracks[copy.id] = copy
        logger.info("Created modified track %s from %s", copy.id, base.id)
        return copy

    def remove(self, track_id: str, active_track_id: str | None) -> str | None:
        """Delete a modified copy; returns the active selection after removal."""
        track = self.get(track_id)
        if track.kind != TrackKind.modified:
            raise ValidationError(
                "Only modified tracks can be removed; revert a regular track instead",
                details={"track_id": track_id},
            )
        track.overrides.clear()
        del self._tracks[track_id]
        if active_track_id != track_id:
            return active_track_id
        if track.base_track_id and track.base_track_id in self._tracks:
            return track.base_track_id
        return None

    def revert(self, track_id: str) -> Track:
        track = self.get(track_id)
        track.overrides.clear()
        return track

    def export_overrides(self) -> dict[str, dict[str, dict]]:
        return {
            track.id: {key: patch.to_dict() for key, patch in track.overrides.items()}
            for track in self._tracks.values()
            if track.overrides
        }

    def export_modified(self) -> list[dict]:
        return [
            {
                "id": track.id,
                "label": track.label,
                "prefix": track.prefix,
                "section_names": list(track.section_names),
                "base_track_id": track.base_track_id,
            }
            for track in self._tracks.values()
            if track.kind == TrackKind.modified
        ]

    def restore(self, overrides: Mapping[str, Mapping[str, Mapping[str, object]]], modified: Iterable[Mapping] = ()) -> list[str]:
        """Load host-persisted state; returns track ids that were ignored.

        A modified entry is ignored when its id belongs to a regular track or its
        base track is neither present nor restored alongside it.
        """
        rejected: list[str] = []
        incoming: list[Mapping] = []
        for item in modified:
            existing = self._tracks.get(str(item["id"]))
            if existing is not None and existing.kind == TrackKind.regular:
                rejected.append(str(item["id"]))
                continue
            incoming.append(item)
        incoming_ids = {str(item["id"]) for item in incoming}

        for item in incoming:
            base_id = item.get("base_track_id")
            if not base_id or (base_id not in self._tracks and base_id not in incoming_ids):
                rejected.append(str(item["id"]))
                continue
            track = Track(
                id=str(item["id"]),
                label=str(item.get("label") or item["id"]),
                prefix=str(item.get("prefix") or ""),
                section_names=tuple(item.get("section_names") or ()),
                kind=TrackKind.modified,
                base_track_id=base_id,
            )
            self._tracks[track.id] = track
        if rejected:
            logger.warning("Ignored modified tracks on restore: %s", ", ".join(sorted(rejected)))
        for track in self._tracks.values():
            track.overrides.clear()

        unknown: list[str] = []
        for track_id, override_map in overrides.items():
            track = self._tracks.get(track_id)
            if track is None:
                unknown.append(track_id)
                continue
            for key, data in override_map.items():
                patch = parse_patch(data)
                if not patch.is_empty():
                    track.overrides[key] = patch
        if unknown:
            logger.warning("Ignored overrides for unknown tracks: %s", ", ".join(sorted(unknown)))
        return rejected + [track_id for track_id in unknown if track_id not in rejected]
