from __future__ import annotations

from dataclasses import dataclass

from coursegrid.core.exceptions import ConfigurationError
from coursegrid.models.session import Session, SessionKind, SlotRange, normalize_kind
from coursegrid.schemas.policy import SchedulingPolicy

DAY_CODE_MAP = {
    1: "Sunday",
    2: "Monday",
    3: "Tuesday",
    4: "Wednesday",
    5: "Thursday",
    6: "Friday",
    7: "Saturday",
}

SPAN_BY_KIND = {
    SessionKind.lecture: 1,
    SessionKind.section: 2,
}


def normalize_clock(value: str | None) -> str | None:
    if not isinstance(value, str):
        return None
    parts = value.strip().split(":")
    if len(parts) != 2:
        return None
    hours, minutes = (part.strip() for part in parts)
    if not hours.isdigit() or not minutes.isdigit():
        return None
    return f"{hours.zfill(2)}:{minutes.zfill(2)}"


def clock_to_minutes(value: str | None) -> int | None:
    clock = normalize_clock(value)
    if clock is None:
        return None
    hours, minutes = clock.split(":")
    return int(hours) * 60 + int(minutes)


def split_time_range(text: str | None) -> tuple[str, str] | None:
    if not isinstance(text, str):
        return None
    parts = [part.strip() for part in text.split("-")]
    if len(parts) != 2:
        return None
    start, end = normalize_clock(parts[0]), normalize_clock(parts[1])
    if start is None or end is None:
        return None
    return start, end


def to_12h(clock: str) -> str:
    normalized = normalize_clock(clock)
    if normalized is None:
        return clock
    hours, minutes = normalized.split(":")
    hour = int(hours)
    suffix = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}:{minutes} {suffix}"


def format_label(label: str, time_format: str = "24h") -> str:
    if time_format != "12h":
        return label
    clocks = split_time_range(label)
    if clocks is None:
        return label
    return f"{to_12h(clocks[0])} - {to_12h(clocks[1])}"


def normalize_day(day_name: str | None, day_code: int | str | None = None) -> str:
    if isinstance(day_name, str) and day_name.strip():
        return day_name.strip()
    try:
        return DAY_CODE_MAP.get(int(day_code), "Unknown")
    except (TypeError, ValueError):
        return "Unknown"


@dataclass(frozen=True)
class TimeSlot:
    index: int
    start: str
    end: str
    start_minutes: int
    end_minutes: int

    @property
    def label(self) -> str:
        return f"{self.start} - {self.end}"


class SlotGrid:
    """Fixed weekly grid of contiguous time slots and ordered days."""

    def __init__(self, policy: SchedulingPolicy) -> None:
        self.policy = policy
        self.slots: tuple[TimeSlot, ...] = self._build_slots(policy.time_slots)
        self.days: tuple[str, ...] = tuple(policy.days)
        self._day_index = {day: index for index, day in enumerate(self.days)}
        self._index_by_start = {slot.start: slot.index for slot in self.slots}
        late_minutes = clock_to_minutes(policy.late_threshold)
        self.late_threshold_minutes = late_minutes if late_minutes is not None else 24 * 60

    @staticmethod
    def _build_slots(labels: list[str]) -> tuple[TimeSlot, ...]:
        slots: list[TimeSlot] = []
        for index, label in enumerate(labels):
            clocks = split_time_range(label)
            if clocks is None:
                raise ConfigurationError(f"Time slot {index} ({label!r}) is not in 'HH:MM - HH:MM' format")
            start_minutes = clock_to_minutes(clocks[0])
            end_minutes = clock_to_minutes(clocks[1])
            if end_minutes <= start_minutes:
                raise ConfigurationError(f"Time slot {label!r} must end after it starts")
            if slots and slots[-1].end_minutes != start_minutes:
                raise ConfigurationError(
                    f"Time slot {label!r} does not start where slot {slots[-1].label!r} ends"
                )
            slots.append(TimeSlot(index, clocks[0], clocks[1], start_minutes, end_minutes))
        return tuple(slots)

    def __len__(self) -> int:
        return len(self.slots)

    def is_known_day(self, day: str) -> bool:
        return day in self._day_index

    def day_index(self, day: str) -> int:
        return self._day_index.get(day, len(self.days))

    def slot_index_for_clock(self, clock: str | None) -> int | None:
        normalized = normalize_clock(clock)
        if normalized is None:
            return None
        return self._index_by_start.get(normalized)

    def span_for(self, type_text: str | None) -> int:
        return SPAN_BY_KIND[normalize_kind(type_text)]

    def slot_range_for(self, time_text: str | None, type_text: str | None) -> SlotRange | None:
        clocks = split_time_range(time_text)
        if clocks is None:
            return None
        start = self.slot_index_for_clock(clocks[0])
        if start is None:
            return None
        end = start + self.span_for(type_text)
        if end > len(self.slots):
            return None
        return SlotRange(start=start, end=end)

    def slot_range_of(self, session: Session) -> SlotRange | None:
        return self.slot_range_for(session.time, session.type_text)

    def format_range(self, slot_range: SlotRange | None) -> str:
        if slot_range is None:
            return ""
        if slot_range.start < 0 or slot_range.end > len(self.slots) or slot_range.end <= slot_range.start:
            return ""
        return f"{self.slots[slot_range.start].start} - {self.slots[slot_range.end - 1].end}"

    def is_late(self, slot_range: SlotRange) -> bool:
        return self.slots[slot_range.start].start_minutes >= self.late_threshold_minutes

    def placement(self, session: Session) -> tuple[str, SlotRange] | None:
        """Day and slot range of a schedulable session, ``None`` otherwise."""
        if not self.is_known_day(session.day):
            return None
        slot_range = self.slot_range_of(session)
        if slot_range is None:
            return None
        return session.day, slot_range

    def unschedulable_reason(self, session: Session) -> str | None:
        if not self.is_known_day(session.day):
            return "unknown_day"
        clocks = split_time_range(session.time)
        if clocks is None:
            return "unparsable_time"
        start = self.slot_index_for_clock(clocks[0])
        if start is None:
            return "unaligned_start"
        if start + self.span_for(session.type_text) > len(self.slots):
            return "span_overflow"
        return None
