from fastapi import FastAPI
from fastapi.testclient import TestClient

from coursegrid.core.middleware import RequestSizeLimitMiddleware

MICRO_LECTURE_KEY = "micro|1|Monday|08:45 - 09:30|"


def _register(client, course_id, group_ids):
    return client.put(f"/api/registrations/{course_id}", json={"selectedGroupIds": group_ids})


def test_load_catalog_summary(client, catalog_data):
    response = client.put("/api/catalog", json=catalog_data)
    assert response.status_code == 200
    assert response.json() == {
        "course_count": 2,
        "session_count": 8,
        "track_count": 2,
        "dropped_registrations": [],
    }


def test_duplicate_course_ids_are_rejected(client, catalog_data):
    catalog_data["courses"].append(dict(catalog_data["courses"][0]))
    response = client.put("/api/catalog", json=catalog_data)
    assert response.status_code == 422


def test_list_courses(loaded_client):
    courses = loaded_client.get("/api/catalog/courses").json()
    micro = next(course for course in courses if course["id"] == "micro")
    assert [group["group_name"] for group in micro["lectures"]] == ["B", "C"]
    assert [group["group_name"] for group in micro["sections"]] == ["B1", "B2"]
    assert micro["lectures"][0]["summary"] == "Monday: 08:45 - 09:30 @ R1"


def test_register_and_cancel(loaded_client):
    response = _register(loaded_client, "micro", [1, 11])
    assert response.status_code == 200
    assert response.json()["registrations"] == [{"courseId": "micro", "selectedGroupIds": ["1", "11"]}]

    response = loaded_client.delete("/api/registrations/micro")
    assert response.status_code == 200
    assert response.json()["registrations"] == []

    assert loaded_client.delete("/api/registrations/micro").status_code == 404


def test_conflicting_registration_returns_409(loaded_client):
    _register(loaded_client, "micro", ["1", "11"])
    response = _register(loaded_client, "pharma", ["3"])
    assert response.status_code == 409
    body = response.json()
    assert body["message"].startswith("Conflict detected for Pharmacology")
    assert body["details"]["day"] == "Monday"
    assert body["details"]["time"] == "10:15 - 11:00"

    state = loaded_client.get("/api/registrations").json()
    assert [item["courseId"] for item in state["registrations"]] == ["micro"]


def test_invalid_selection_returns_422(loaded_client):
    response = _register(loaded_client, "micro", ["1", "2"])
    assert response.status_code == 422
    assert response.json()["message"] == "You can only register one lecture and one section per course."

    response = _register(loaded_client, "micro", [])
    assert response.status_code == 422
    assert response.json()["message"] == "Select one lecture group."

    response = loaded_client.put("/api/registrations/micro", json={"selectedGroupIds": "1"})
    assert response.status_code == 422


def test_unknown_course_returns_404(loaded_client):
    response = _register(loaded_client, "chemistry", ["1"])
    assert response.status_code == 404
    assert response.json()["details"]["resource_type"] == "Course"


def test_restore_and_clear_registrations(loaded_client):
    response = loaded_client.put(
        "/api/registrations",
        json=[
            {"courseId": "micro", "selectedGroupIds": [1, 11]},
            {"courseId": "chemistry", "selectedGroupIds": [2]},
        ],
    )
    assert response.status_code == 200
    assert response.json()["dropped_course_ids"] == ["chemistry"]

    assert loaded_client.put("/api/registrations", json={"courseId": "micro"}).status_code == 422

    assert loaded_client.delete("/api/registrations").status_code == 204
    assert loaded_client.get("/api/registrations").json()["registrations"] == []


def test_schedule_and_free_time(loaded_client):
    _register(loaded_client, "micro", ["1", "11"])
    schedule = loaded_client.get("/api/schedule").json()
    assert [(item["group_id"], item["slot_start"], item["slot_end"]) for item in schedule["sessions"]] == [
        ("1", 0, 1),
        ("11", 1, 3),
    ]
    assert schedule["score"]["overall"] == 100
    assert schedule["warnings"] == []

    free = loaded_client.get("/api/schedule/free-time", params={"format": "12h"}).json()
    assert free == {"days": {"Monday": [{"start": 3, "end": 12, "label": "11:00 AM - 5:45 PM"}]}}


def test_recommendations_filter(loaded_client):
    _register(loaded_client, "micro", ["1", "11"])
    sections = loaded_client.get("/api/schedule/recommendations", params={"kind": "section"}).json()
    assert [(item["course_id"], item["group_name"]) for item in sections] == [("micro", "B2")]
    lectures = loaded_client.get("/api/schedule/recommendations", params={"kind": "lecture"}).json()
    assert lectures == []


def test_evaluate_reports_unschedulable(loaded_client):
    response = loaded_client.post(
        "/api/schedule/evaluate",
        json={
            "sessions": [
                {"courseId": "x", "GroupId": 1, "Type": "Group", "DayWeekName": "Monday", "Time": "08:45 - 09:30"},
                {"courseId": "x", "GroupId": 2, "Type": "Group", "DayWeek": 6, "Time": "08:45 - 09:30"},
            ]
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["damage"] == 4
    assert [(item["day"], item["reason"]) for item in body["warnings"]] == [("Friday", "unknown_day")]


def test_planner_resolves_restored_conflict(loaded_client):
    loaded_client.put(
        "/api/registrations",
        json=[
            {"courseId": "micro", "selectedGroupIds": ["1", "11"]},
            {"courseId": "pharma", "selectedGroupIds": ["3"]},
        ],
    )
    response = loaded_client.post("/api/planner/plans", json={"maxChanges": 1})
    assert response.status_code == 200
    body = response.json()
    assert body["current_damage"] == 1204
    assert body["current_score"]["conflict_count"] == 1
    damages = [plan["damage"] for plan in body["plans"]]
    assert damages == sorted(damages)
    assert len(body["plans"]) <= 8
    best = body["plans"][0]
    assert best["damage"] == 8
    assert best["improves"] is True
    assert best["diffs"] == [
        {"course_id": "pharma", "course_name": "Pharmacology", "old_label": "B", "new_label": "C + B1"}
    ]
    assert all(plan["change_count"] <= 1 for plan in body["plans"])

    applied = loaded_client.post("/api/planner/plans/0/apply", json={"maxChanges": 1})
    assert applied.status_code == 200
    assert applied.json() == [
        {"courseId": "micro", "selectedGroupIds": ["1", "11"]},
        {"courseId": "pharma", "selectedGroupIds": ["4", "13"]},
    ]

    assert loaded_client.post("/api/planner/plans/99/apply", json={"maxChanges": 1}).status_code == 404


def test_planner_with_nothing_registered(loaded_client):
    body = loaded_client.post("/api/planner/plans", json={}).json()
    assert body["plans"] == []
    assert body["reason"] == "nothing_to_plan"
    assert body["message"] == "No registered courses to plan."


def test_combinations_mark_current(loaded_client):
    _register(loaded_client, "micro", ["1", "12"])
    combos = loaded_client.get("/api/planner/combinations/micro").json()
    assert [combo["key"] for combo in combos if combo["is_current"]] == ["1|12"]
    assert loaded_client.get("/api/planner/combinations/chemistry").status_code == 404


def test_tracks_and_modified_copies(loaded_client):
    tracks = loaded_client.get("/api/tracks").json()
    assert tracks["active_track_id"] is None
    assert [track["id"] for track in tracks["tracks"]] == ["B1/B2", "B3"]

    created = loaded_client.post(
        "/api/tracks/B3/copies",
        json={"session_key": MICRO_LECTURE_KEY, "patch": {"staff": "Dr. Copy"}},
    )
    assert created.status_code == 201
    copy = created.json()
    assert copy["kind"] == "modified"
    assert copy["base_track_id"] == "B3"
    assert copy["override_count"] == 1

    sessions = loaded_client.get(f"/api/tracks/{copy['id']}/sessions").json()
    lecture = next(item for item in sessions if item["key"] == MICRO_LECTURE_KEY)
    assert lecture["staff"] == "Dr. Copy"
    assert lecture["is_modified"] is True

    active = loaded_client.put("/api/tracks/active", json={"track_id": copy["id"]}).json()
    assert active["active_track_id"] == copy["id"]

    removed = loaded_client.delete(f"/api/tracks/{copy['id']}").json()
    assert removed["active_track_id"] == "B3"
    assert loaded_client.delete("/api/tracks/B3").status_code == 422


def test_override_on_paired_track(loaded_client):
    response = loaded_client.put(
        "/api/tracks/B1/B2/overrides",
        json={"session_key": MICRO_LECTURE_KEY, "patch": {"time": "12:30 - 13:15"}},
    )
    assert response.status_code == 200
    assert response.json()["override_count"] == 1

    bad = loaded_client.put(
        "/api/tracks/B1/B2/overrides",
        json={"session_key": MICRO_LECTURE_KEY, "patch": {"time": "noon"}},
    )
    assert bad.status_code == 422

    reverted = loaded_client.post("/api/tracks/B1/B2/revert").json()
    assert reverted["override_count"] == 0


def test_active_track_sessions_join_the_schedule(loaded_client):
    loaded_client.put("/api/tracks/active", json={"track_id": "B3"})
    schedule = loaded_client.get("/api/schedule").json()
    assert schedule["active_track_id"] == "B3"
    assert sorted(item["group_id"] for item in schedule["sessions"]) == ["1", "14", "3"]
    assert loaded_client.put("/api/tracks/active", json={"track_id": "Z9"}).status_code == 404


def test_track_ranking(loaded_client):
    ranked = loaded_client.get("/api/tracks/ranking", params={"criterion": "days"}).json()
    assert [item["track"]["id"] for item in ranked] == ["B3", "B1/B2"]


def test_override_export_and_restore(loaded_client):
    loaded_client.put(
        "/api/tracks/B3/overrides",
        json={"session_key": MICRO_LECTURE_KEY, "patch": {"day": "Sunday"}},
    )
    exported = loaded_client.get("/api/overrides").json()
    assert exported["overrides"] == {"B3": {MICRO_LECTURE_KEY: {"staff": None, "time": None, "day": "Sunday"}}}

    restored = loaded_client.put(
        "/api/overrides",
        json={
            "overrides": {
                "B1/B2": {MICRO_LECTURE_KEY: {"staff": "Dr. Restored"}},
                "ghost": {MICRO_LECTURE_KEY: {"day": "Monday"}},
            }
        },
    ).json()
    assert restored["ignored_track_ids"] == ["ghost"]
    assert list(restored["overrides"]) == ["B1/B2"]


def test_oversized_body_is_rejected():
    app = FastAPI()
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=16)

    @app.post("/echo")
    def echo(payload: dict):
        return payload

    with TestClient(app) as client:
        response = client.post("/echo", json={"data": "x" * 64})
    assert response.status_code == 413
    assert response.json()["details"] == {"max_bytes": 16}


def test_schedule_lists_conflicting_pairs(loaded_client):
    loaded_client.put(
        "/api/registrations",
        json=[
            {"courseId": "micro", "selectedGroupIds": ["1", "11"]},
            {"courseId": "pharma", "selectedGroupIds": ["3"]},
        ],
    )
    schedule = loaded_client.get("/api/schedule").json()
    assert schedule["score"]["conflict_count"] == 1
    assert schedule["conflicts"] == [
        {
            "day": "Monday",
            "time": "10:15 - 11:00",
            "first_key": "micro|11|Monday|09:30 - 10:15|",
            "second_key": "pharma|3|Monday|10:15 - 11:00|",
            "first_course_id": "micro",
            "second_course_id": "pharma",
        }
    ]
