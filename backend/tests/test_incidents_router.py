import pytest
from fastapi.testclient import TestClient

from conftest import make_message
from hrfe.db import get_db
from hrfe.main import app
from hrfe.routers.incidents import get_timeline_client
from hrfe.services.incident_store import IncidentStore
from hrfe.services.parse_incident import parse_incident
from hrfe.services.timeline import SourceError


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _use_source(source):
    app.dependency_overrides[get_timeline_client] = lambda: source


def test_sync_endpoint_reports_counts(client, scripted_timeline):
    _use_source(scripted_timeline(newer=[[make_message(2), make_message(1)]]))

    resp = client.post("/incidents/sync")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["inserted"] == 2
    assert [p["direction"] for p in body["passes"]] == ["forward", "backward"]
    assert body["passes"][0]["boundary"] == 2


def test_sync_endpoint_surfaces_aborted_run(client, scripted_timeline):
    _use_source(scripted_timeline(fail_on={"since": SourceError("HTTP 401", status_code=401)}))

    resp = client.post("/incidents/sync")

    assert resp.status_code == 502
    detail = resp.json()["detail"]
    assert detail["direction"] == "forward"
    assert detail["phase"] == "fetch"
    assert detail["tweet_id"] is None
    assert detail["cause"] == "HTTP 401"


def test_recent_lists_stored_incidents(client, db_session):
    store = IncidentStore(db_session)
    msg = make_message(
        42, text="INC-42\n100 Main St   Downtown\nStructure Fire\nE1 E1 STN3 STN1"
    )
    store.insert_if_absent(msg, parse_incident(msg.text))

    resp = client.get("/incidents/recent", params={"hours": 1})

    assert resp.status_code == 200
    items = resp.json()["items"]
    assert len(items) == 1
    assert items[0]["id"] == "INC-42"
    assert items[0]["community"] == "Downtown"
    assert items[0]["apparatuses"] == ["E1"]
    assert items[0]["stations"] == ["STN1", "STN3"]
    assert items[0]["tweet_id"] == 42
