from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Registration:
    course_id: str
    selected_group_ids: tuple[str, ...]

    def to_dict(self) -> dict:
        return {"courseId": self.course_id, "selectedGroupIds": list(self.selected_group_ids)}
