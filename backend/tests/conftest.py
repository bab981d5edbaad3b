import copy

import pytest
from fastapi.testclient import TestClient #in-process http client, no real server needed

from coursegrid.api.deps import get_workspace
from coursegrid.main import app
from coursegrid.schemas.catalog import CatalogPayload
from coursegrid.schemas.policy import SchedulingPolicy
from coursegrid.services.catalog import build_catalog
from coursegrid.services.evaluator import ScheduleEvaluator
from coursegrid.services.slots import SlotGrid
from coursegrid.services.workspace import Workspace


def make_session(group_id, name, kind, day, time, **extra):
    entry = {
        "GroupId": group_id,
        "GroupName": name,
        "Type": kind,
        "DayWeekName": day,
        "Time": time,
        "ClassRoomName": extra.pop("room", "R1"),
        "Staff": extra.pop("staff", "Dr. Staff"),
    }
    entry.update(extra)
    return entry


# Slots: 0=08:45 1=09:30 2=10:15 3=11:00 4=11:45 5=12:30 ... 10=16:15 11=17:00
CATALOG_DATA = {
    "courses": [
        {
            "id": "micro",
            "name": "Microbiology",
            "sessions": [
                make_session(1, "B", "Group", "Monday", "08:45 - 09:30"),
                make_session(2, "C", "Group", "Tuesday", "08:45 - 09:30"),
                make_session(11, "B1", "Sub Group", "Monday", "09:30 - 10:15"),
                make_session(12, "B2", "Sub Group", "Monday", "11:00 - 11:45"),
            ],
        },
        {
            "id": "pharma",
            "name": "Pharmacology",
            "sessions": [
                make_session(3, "B", "Group", "Monday", "10:15 - 11:00"),
                make_session(4, "C", "Group", "Wednesday", "10:15 - 11:00"),
                make_session(13, "B1", "Sub Group", "Wednesday", "08:45 - 09:30"),
                make_session(14, "B3", "Sub Group", "Monday", "09:30 - 10:15"),
            ],
        },
    ]
}


@pytest.fixture()
def policy():
    return SchedulingPolicy()


@pytest.fixture()
def grid(policy):
    return SlotGrid(policy)


@pytest.fixture()
def evaluator(grid):
    return ScheduleEvaluator(grid)


@pytest.fixture()
def catalog():
    return build_catalog(CatalogPayload.model_validate(CATALOG_DATA))


@pytest.fixture() #test client
def client(): #fake http client with a fresh in-memory workspace
    workspace = Workspace(SchedulingPolicy())
    app.state.workspace = workspace #lifespan keeps an injected workspace
    app.dependency_overrides[get_workspace] = lambda: workspace

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    app.state.workspace = None


@pytest.fixture()
def catalog_data():
    return copy.deepcopy(CATALOG_DATA)


@pytest.fixture()
def loaded_client(client, catalog_data):
    response = client.put("/api/catalog", json=catalog_data)
    assert response.status_code == 200
    return client
