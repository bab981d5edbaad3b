from coursegrid.models.session import Session, SlotRange
from coursegrid.services.conflict_service import ConflictService


def _session(group_id, kind, day, time, course_id="c1"):
    return Session(
        course_id=course_id,
        group_id=str(group_id),
        group_name=f"G{group_id}",
        type_text=kind,
        day=day,
        time=time,
    )


def test_touching_ranges_do_not_conflict(grid):
    service = ConflictService(grid)
    lecture = _session(1, "Group", "Monday", "10:15 - 11:00")  # [2,3)
    section = _session(2, "Sub Group", "Monday", "11:00 - 11:45", course_id="c2")  # [3,5)
    assert service.find_conflict([lecture], [section]) is None


def test_overlapping_ranges_report_overlap(grid):
    service = ConflictService(grid)
    first = _session(1, "Sub Group", "Monday", "10:15 - 11:00")  # [2,4)
    second = _session(2, "Sub Group", "Monday", "11:00 - 11:45", course_id="c2")  # [3,5)
    conflict = service.find_conflict([first], [second])
    assert conflict is not None
    assert conflict.day == "Monday"
    assert conflict.overlap == SlotRange(3, 4)
    assert conflict.overlap_label == "11:00 - 11:45"
    assert conflict.candidate is first
    assert conflict.existing is second


def test_different_days_never_conflict(grid):
    service = ConflictService(grid)
    first = _session(1, "Group", "Monday", "08:45 - 09:30")
    second = _session(2, "Group", "Tuesday", "08:45 - 09:30", course_id="c2")
    assert service.find_conflict([first], [second]) is None


def test_unschedulable_sessions_are_skipped(grid):
    service = ConflictService(grid)
    existing = [_session(9, "Group", "Monday", "08:45 - 09:30", course_id="c2")]
    unknown_day = _session(1, "Group", "Friday", "08:45 - 09:30")
    unaligned = _session(2, "Group", "Monday", "08:50 - 09:30")
    garbage = _session(3, "Group", "Monday", "whenever")
    assert service.find_conflict([unknown_day, unaligned, garbage], existing) is None
    assert service.find_conflict(existing, [unknown_day, unaligned, garbage]) is None


def test_first_conflict_follows_input_order(grid):
    service = ConflictService(grid)
    candidates = [
        _session(1, "Group", "Tuesday", "08:45 - 09:30"),
        _session(2, "Group", "Monday", "09:30 - 10:15"),
    ]
    existing = [
        _session(7, "Sub Group", "Monday", "08:45 - 09:30", course_id="c2"),  # [0,2)
        _session(8, "Group", "Tuesday", "08:45 - 09:30", course_id="c2"),
    ]
    conflict = service.find_conflict(candidates, existing)
    assert conflict.candidate.group_id == "1"
    assert conflict.existing.group_id == "8"


def test_internal_pairs_are_counted_once(grid):
    service = ConflictService(grid)
    a = _session(1, "Sub Group", "Monday", "08:45 - 09:30")
    b = _session(2, "Group", "Monday", "09:30 - 10:15", course_id="c2")
    c = _session(3, "Group", "Monday", "10:15 - 11:00", course_id="c3")
    assert service.count_conflicts([a, b, c]) == 1
    pairs = service.conflicting_pairs([a, b, c])
    assert [(first.group_id, second.group_id, overlap) for first, second, overlap in pairs] == [("1", "2", SlotRange(1, 2))]


def test_session_overlaps_itself(grid):
    service = ConflictService(grid)
    a = _session(1, "Group", "Monday", "08:45 - 09:30")
    assert service.count_conflicts([a, a]) == 1
