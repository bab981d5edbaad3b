from coursegrid.models.registration import Registration
from coursegrid.models.session import SlotRange
from coursegrid.models.track import OverridePatch
from coursegrid.services.catalog import sessions_for_registrations
from coursegrid.services.insights import free_blocks, rank_tracks, recommend_sessions
from coursegrid.services.overrides import TrackArena


def test_free_blocks_only_for_active_days(evaluator, catalog):
    sessions = sessions_for_registrations(catalog, [Registration("micro", ("1", "11"))])
    blocks = free_blocks(evaluator, sessions)
    assert list(blocks) == ["Monday"]
    assert [(block.slot_range, block.label) for block in blocks["Monday"]] == [(SlotRange(3, 12), "11:00 - 17:45")]


def test_free_blocks_between_sessions(evaluator, catalog):
    sessions = sessions_for_registrations(catalog, [Registration("micro", ("1", "12"))])
    blocks = free_blocks(evaluator, sessions)["Monday"]
    assert [block.slot_range for block in blocks] == [SlotRange(1, 3), SlotRange(5, 12)]


def test_recommendations_fit_free_blocks(evaluator, catalog):
    sessions = sessions_for_registrations(catalog, [Registration("micro", ("1", "11"))])
    items = recommend_sessions(evaluator, catalog, sessions)
    assert [(item.session.course_id, item.session.group_id) for item in items] == [("micro", "12")]
    assert items[0].slot_range == SlotRange(3, 5)


def test_recommendations_need_an_active_day(evaluator, catalog):
    assert recommend_sessions(evaluator, catalog, []) == []


def test_recommendation_limit(evaluator, catalog):
    sessions = sessions_for_registrations(catalog, [Registration("micro", ("1", "11"))])
    assert recommend_sessions(evaluator, catalog, sessions, limit=0) == []


def test_rank_tracks_by_active_days(evaluator, catalog):
    arena = TrackArena.from_catalog(catalog)
    ranked = rank_tracks(evaluator, catalog, arena, [], criterion="days")
    assert [candidate.track.label for candidate in ranked] == ["B3", "B1/B2"]
    assert ranked[0].score.active_days == 1
    assert ranked[1].score.active_days == 2


def test_rank_tracks_applies_track_overrides_to_registered_sessions(evaluator, catalog):
    arena = TrackArena.from_catalog(catalog)
    arena.set_override("B3", "micro|1|Monday|08:45 - 09:30|", OverridePatch(day="Thursday"))
    registered = sessions_for_registrations(catalog, [Registration("micro", ("1",))])

    ranked = {candidate.track.id: candidate.score for candidate in rank_tracks(evaluator, catalog, arena, registered)}

    effective = [applied.session for applied in arena.track_sessions("B3", catalog)]
    assert ranked["B3"] == evaluator.evaluate(effective)
    assert ranked["B3"].active_days == 2
    assert ranked["B1/B2"].active_days == 2
