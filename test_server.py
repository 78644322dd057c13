"""
HTTP surface tests with the Flask test client and fake collaborators.
"""

import json

import pytest

from config import GENERAL_QUERIES, REGIONS
from conftest import FakeModel, FakeSearch, make_article
from errors import ConfigurationError
from runner import Pipeline
from server import create_app
from store import JsonStore


def _pipeline(store, articles, reply=None, healthy=True):
    reply = reply if reply is not None else json.dumps(
        {"states": [{"name": "Punjab", "dangerLevel": "danger", "description": "x"}], "attacks": []})
    return Pipeline(FakeSearch({GENERAL_QUERIES[0]: articles}), FakeModel(reply, healthy=healthy), store)


@pytest.fixture
def client(store, articles):
    app = create_app(pipeline=_pipeline(store, articles))
    return app.test_client()


def test_conflict_data_without_runs_is_neutral(client):
    resp = client.get("/api/conflict-data")
    assert resp.status_code == 200
    data = resp.get_json()
    assert len(data["regionStatuses"]) == len(REGIONS)
    assert {s["dangerLevel"] for s in data["regionStatuses"]} == {"neutral"}
    assert data["mode"] == "default"


def test_update_then_read(client):
    resp = client.get("/api/updateConflictData")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True and body["mode"] == "live"

    data = client.get("/api/conflict-data").get_json()
    assert data["lastUpdated"] == body["timestamp"]
    punjab = next(s for s in data["regionStatuses"] if s["name"] == "Punjab")
    assert punjab["dangerLevel"] == "danger"


def test_news_returns_relevant_articles(store):
    batch = [make_article(1), make_article(2, title="Local flower festival")]
    client = create_app(pipeline=_pipeline(store, batch)).test_client()
    data = client.get("/api/news").get_json()
    assert data["status"] == "ok"
    assert data["query"] == GENERAL_QUERIES[0]
    assert data["totalResults"] == 1
    assert data["articles"][0]["url"] == batch[0].url


def test_test_services_reports_each_collaborator(client):
    data = client.get("/api/test-services").get_json()
    assert data["store"]["success"] is True
    assert data["newsApi"]["success"] is True and data["newsApi"]["articles"] == 0
    assert data["ai"]["success"] is True and data["ai"]["response"] == "ok"


def test_missing_key_is_structured_error(store):
    def factory():
        raise ConfigurationError("NewsAPI")

    client = create_app(store=store, pipeline_factory=factory).test_client()
    resp = client.get("/api/updateConflictData")
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "NewsAPI key missing"}
    # reads do not need credentials
    assert client.get("/api/conflict-data").status_code == 200


def test_unexpected_error_hides_traceback(store):
    def factory():
        raise RuntimeError("secret internals")

    client = create_app(store=store, pipeline_factory=factory).test_client()
    resp = client.get("/api/news")
    assert resp.status_code == 500
    assert "secret" not in resp.get_data(as_text=True)
    assert "error" in resp.get_json()


def test_unknown_route_is_json(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert "error" in resp.get_json()


def test_dashboard_renders_snapshot(client):
    client.get("/api/updateConflictData")
    resp = client.get("/")
    assert resp.status_code == 200
    html = resp.get_data(as_text=True)
    assert "Jammu and Kashmir" in html
    assert "lvl-danger" in html
    assert 'http-equiv="refresh" content="1800"' in html


def test_default_wiring_reads_what_update_wrote(store, articles, monkeypatch):
    def build(store=None, **kw):
        return _pipeline(store, articles)

    monkeypatch.setattr("server.build_pipeline", build)
    client = create_app(store=store).test_client()

    assert client.get("/api/conflict-data").get_json()["mode"] == "default"
    client.get("/api/updateConflictData")
    data = client.get("/api/conflict-data").get_json()
    punjab = next(s for s in data["regionStatuses"] if s["name"] == "Punjab")
    assert punjab["dangerLevel"] == "danger"


def test_reads_pick_up_runs_from_another_store_instance(store, articles):
    writer = _pipeline(JsonStore(store.path), articles)
    client = create_app(pipeline=writer, store=store).test_client()

    assert client.get("/api/conflict-data").get_json()["mode"] == "default"
    client.get("/api/updateConflictData")
    data = client.get("/api/conflict-data").get_json()
    assert data["mode"] == "cached"
    punjab = next(s for s in data["regionStatuses"] if s["name"] == "Punjab")
    assert punjab["dangerLevel"] == "danger"


def test_news_requests_do_not_accumulate_reports(store, articles):
    pipeline = _pipeline(store, articles)
    client = create_app(pipeline=pipeline).test_client()
    for _ in range(5):
        assert client.get("/api/news").status_code == 200
    assert pipeline.reports == []
