"""
Store tests: upsert semantics, latest-N queries, transactions, snapshot mapping.
"""

import json

import pytest

from config import REGIONS
from models import Article, ConflictSnapshot, IncidentRecord, RegionStatus
from store import JsonStore, article_key, load_snapshot, save_snapshot


def test_upsert_overwrites_by_key(store):
    store.upsert("c", "k", {"v": 1})
    store.upsert("c", "k", {"v": 2})
    assert store.list_all("c") == [{"v": 2}]
    assert json.loads(store.path.read_text())["c"]["k"] == {"v": 2}


def test_query_latest_orders_descending(store):
    for i, ts in enumerate(["2025-05-01", "2025-05-03", "2025-05-02"]):
        store.upsert("attacks", str(i), {"timestamp": ts})
    latest = store.query_latest("attacks", "timestamp", 2)
    assert [d["timestamp"] for d in latest] == ["2025-05-03", "2025-05-02"]


def test_transaction_writes_once_on_exit(store):
    with store.transaction():
        store.upsert("c", "a", {"v": 1})
        store.upsert("c", "b", {"v": 2})
        assert not store.path.exists()
    assert len(json.loads(store.path.read_text())["c"]) == 2


def test_failed_transaction_keeps_last_good_file(store):
    store.upsert("c", "a", {"v": 1})
    with pytest.raises(RuntimeError):
        with store.transaction():
            store.upsert("c", "a", {"v": 99})
            raise RuntimeError("mid-write")
    assert store.get("c", "a") == {"v": 1}
    assert JsonStore(store.path).get("c", "a") == {"v": 1}


def test_unreadable_file_starts_empty(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json")
    assert JsonStore(path).list_all("anything") == []


def test_article_key_is_stable():
    assert article_key("https://a.example/x") == article_key("https://a.example/x")
    assert article_key("https://a.example/x") != article_key("https://a.example/y")


def test_empty_store_has_no_snapshot(store):
    assert load_snapshot(store) is None


def test_snapshot_mapping(store):
    ts = "2025-05-09T12:00:00+00:00"
    snapshot = ConflictSnapshot(
        region_statuses=[RegionStatus("Punjab", "danger", "Shelling", ts)],
        incidents=[IncidentRecord("Amritsar", "Punjab", "Drone", ts, "https://n.example/1")],
        articles=[Article("Drone over Amritsar", "https://n.example/1", "Wire", "2025-05-09T10:00:00Z")],
        last_updated=ts,
    )
    save_snapshot(store, snapshot)

    assert store.get("regionStatuses", "Punjab")["dangerLevel"] == "danger"
    assert store.get("attacks", "Amritsar_" + ts)["sourceArticleUrl"] == "https://n.example/1"
    assert store.get("articles", article_key("https://n.example/1"))["publishedAt"] == "2025-05-09T10:00:00Z"
    assert store.get("metadata", "lastUpdate")["timestamp"] == ts

    loaded = load_snapshot(store)
    # regions the run did not store are filled in as neutral
    assert [s.name for s in loaded.region_statuses] == REGIONS
    assert loaded.status_for("Punjab").danger_level == "danger"
    assert loaded.status_for("Bihar").danger_level == "neutral"
    assert loaded.incidents[0].source_article_url == "https://n.example/1"
    assert loaded.last_updated == ts


def test_ping(store):
    assert store.ping() is True


def test_write_from_another_instance_is_seen(store):
    store.list_all("c")
    JsonStore(store.path).upsert("c", "k", {"v": 1})
    assert store.get("c", "k") == {"v": 1}


def _snapshot(ts, incidents=(), articles=(), mode="live"):
    return ConflictSnapshot(
        region_statuses=[RegionStatus("Jammu and Kashmir", "danger" if incidents else "neutral", "x", ts)],
        incidents=list(incidents), articles=list(articles), last_updated=ts, mode=mode)


def test_save_replaces_previous_run(store):
    first = "2025-05-01T12:00:00+00:00"
    save_snapshot(store, _snapshot(
        first,
        incidents=[IncidentRecord("Poonch", "Jammu and Kashmir", "Shelling", first)],
        articles=[Article("Shelling in Poonch", "https://n.example/1", "Wire", "2025-05-01T10:00:00Z")]))
    second = "2025-05-02T12:00:00+00:00"
    save_snapshot(store, _snapshot(second, mode="quiet"))

    loaded = load_snapshot(store)
    assert loaded.last_updated == second
    assert loaded.status_for("Jammu and Kashmir").danger_level == "neutral"
    assert loaded.incidents == []
    assert loaded.articles == []


def test_same_city_twice_in_one_run_keeps_both(store):
    ts = "2025-05-09T12:00:00+00:00"
    save_snapshot(store, _snapshot(ts, incidents=[
        IncidentRecord("Amritsar", "Punjab", "Drone sighted", ts),
        IncidentRecord("Amritsar", "Punjab", "Blackout ordered", ts),
    ]))
    assert store.get("attacks", "Amritsar_" + ts)["description"] == "Drone sighted"
    assert store.get("attacks", "Amritsar_{}_2".format(ts))["description"] == "Blackout ordered"
    assert len(load_snapshot(store).incidents) == 2
