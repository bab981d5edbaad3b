from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


def clean_text(value):
    if not isinstance(value, str):
        return value
    return value.replace("\u00a0", " ").strip()


class SessionPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    group_id: int | str = Field(alias="GroupId")
    group_name: str | None = Field(default=None, alias="GroupName")
    type: str | None = Field(default=None, alias="Type")
    day_name: str | None = Field(default=None, alias="DayWeekName")
    day_code: int | str | None = Field(default=None, alias="DayWeek")
    time: str | None = Field(default=None, alias="Time")
    room: str | None = Field(default=None, alias="ClassRoomName")
    staff: str | None = Field(default=None, alias="Staff")
    name_en: str | None = Field(default=None, alias="NameEn")
    timeslot_id: int | str | None = Field(default=None, alias="TimeSlotId")

    @field_validator("group_name", "type", "day_name", "time", "room", "staff", "name_en", mode="before")
    @classmethod
    def strip_text(cls, value):
        return clean_text(value)

    @field_validator("group_id", mode="before")
    @classmethod
    def validate_group_id(cls, value):
        if isinstance(value, str) and not value.strip():
            raise ValueError("GroupId cannot be empty")
        return value


class CoursePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1, max_length=200)
    name: str | None = Field(default=None, max_length=300)
    sessions: list[SessionPayload] = Field(
        default_factory=list,
        validation_alias=AliasChoices("sessions", "groups"),
    )

    @field_validator("id", "name", mode="before")
    @classmethod
    def strip_text(cls, value):
        return clean_text(value)


class CatalogPayload(BaseModel):
    courses: list[CoursePayload] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "CatalogPayload":
        seen: set[str] = set()
        duplicates: set[str] = set()
        for course in self.courses:
            if course.id in seen:
                duplicates.add(course.id)
            seen.add(course.id)
        if duplicates:
            raise ValueError(f"Duplicate course ids: {', '.join(sorted(duplicates))}")
        return self


class SessionOut(BaseModel):
    course_id: str
    course_name: str
    group_id: str
    group_name: str
    kind: str
    type: str
    day: str
    time: str
    room: str
    staff: str
    name_en: str
    key: str
    slot_start: int | None = None
    slot_end: int | None = None
    is_modified: bool = False
    reason: str = ""


class GroupOut(BaseModel):
    group_id: str
    group_name: str
    kind: str
    summary: str


class CourseOut(BaseModel):
    id: str
    name: str
    lectures: list[GroupOut]
    sections: list[GroupOut]


class CatalogSummary(BaseModel):
    course_count: int
    session_count: int
    track_count: int
    dropped_registrations: list[str] = Field(default_factory=list)


def session_out(session, grid=None, *, is_modified: bool = False, reason: str = "") -> SessionOut:
    slot_range = grid.slot_range_of(session) if grid is not None else None
    return SessionOut(
        course_id=session.course_id,
        course_name=session.course_name,
        group_id=session.group_id,
        group_name=session.group_name,
        kind=session.kind.value,
        type=session.type_text,
        day=session.day,
        time=session.time,
        room=session.room,
        staff=session.staff,
        name_en=session.name_en,
        key=str(session.key),
        slot_start=slot_range.start if slot_range else None,
        slot_end=slot_range.end if slot_range else None,
        is_modified=is_modified,
        reason=reason,
    )
