from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _coerce_group_ids(value):
    if not isinstance(value, list):
        raise ValueError("selectedGroupIds must be a list")
    return [str(item).strip() for item in value]


class RegistrationPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    course_id: str = Field(alias="courseId", min_length=1, max_length=200)
    selected_group_ids: list[str] = Field(alias="selectedGroupIds")

    @field_validator("selected_group_ids", mode="before")
    @classmethod
    def coerce_group_ids(cls, value):
        return _coerce_group_ids(value)

    @classmethod
    def from_registration(cls, registration) -> "RegistrationPayload":
        return cls(course_id=registration.course_id, selected_group_ids=list(registration.selected_group_ids))


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    selected_group_ids: list[str] = Field(alias="selectedGroupIds", max_length=4)

    @field_validator("selected_group_ids", mode="before")
    @classmethod
    def coerce_group_ids(cls, value):
        return _coerce_group_ids(value)


class RegistrationState(BaseModel):
    registrations: list[RegistrationPayload]
    dropped_course_ids: list[str] = Field(default_factory=list)
