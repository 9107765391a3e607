"""Tests for the ingest and stats endpoints."""
import json
from datetime import date

from hitstats.api import ingest as ingest_api
from hitstats.config import settings
from hitstats.models.stat import Stat
from hitstats.utils.exceptions import StoreError
from hitstats.utils.hashing import fingerprint

CHROME_ANDROID = (
    "Mozilla/5.0 (Linux; Android 10; K) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/90.0.4430.212 Mobile Safari/537.36"
)
FEVER = "FeverFeedFetcher-Google (+http://www.google.com/feedfetcher.html) feed-id:123"


def _event(**overrides):
    event = {
        "timestamp": "2024-03-01T10:15:30Z",
        "host": "example.com",
        "path": "/posts/1",
        "ip": "203.0.113.7",
        "userAgent": CHROME_ANDROID,
        "referrer": "https://www.google.com/",
    }
    event.update(overrides)
    return event


def _rows(db):
    return db.query(Stat).order_by(Stat.id).all()


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_ingest_batch(client, db):
    response = client.post("/api/ingest", json={"events": [_event(), _event(path="/posts/2")]})

    assert response.status_code == 202
    assert response.json() == {
        "success": True,
        "message": "Events ingested successfully",
        "events_received": 2,
    }
    rows = _rows(db)
    assert len(rows) == 2
    assert rows[0].date == date(2024, 3, 1)
    assert rows[0].agent == "Chrome"
    assert rows[0].type == "browser"
    assert rows[0].os == "Android"
    assert rows[0].ref_domain == "google.com"
    assert rows[0].uniq == rows[1].uniq


def test_ingest_empty_batch(client, db):
    response = client.post("/api/ingest", json={"events": []})
    assert response.status_code == 202
    assert response.json()["events_received"] == 0
    assert _rows(db) == []


def test_feed_content_type_presets_type(client, db):
    response = client.post("/api/ingest", json={"events": [
        _event(userAgent=FEVER, contentType="application/rss+xml; charset=utf-8"),
    ]})
    assert response.status_code == 202
    row = _rows(db)[0]
    assert row.type == "feed"
    assert row.uniq == fingerprint("FeverFeedFetcher-Google/123")


def test_malformed_event_rejects_whole_batch(client, db):
    response = client.post("/api/ingest", json={"events": [_event(), _event(timestamp="yesterday")]})
    assert response.status_code == 422
    assert _rows(db) == []


def test_second_visit_cookie_upgrade(client, db):
    cookie = "0b5c2f4e-2a55-4f4b-9d4c-6a7b1e0f9c21"
    client.post("/api/ingest", json={"events": [_event(setCookie=cookie)]})
    client.post("/api/ingest", json={"events": [_event(ip="192.0.2.44", uniq=cookie, secondVisit=True)]})

    first, second = _rows(db)
    assert first.uniq == second.uniq == cookie


def test_ingest_ndjson(client, db):
    body = "\n".join([json.dumps(_event()), "", json.dumps(_event(path="/feed.xml", userAgent=FEVER))]) + "\n"
    response = client.post(
        "/api/ingest/ndjson",
        content=body,
        headers={"Content-Type": "application/x-ndjson"},
    )
    assert response.status_code == 202
    assert response.json()["events_received"] == 2
    assert [row.path for row in _rows(db)] == ["/posts/1", "/feed.xml"]


def test_ingest_ndjson_bad_line(client, db):
    body = json.dumps(_event()) + "\n{not json}\n"
    response = client.post("/api/ingest/ndjson", content=body)
    assert response.status_code == 400
    assert "line 2" in response.json()["detail"]
    assert _rows(db) == []


def test_batch_limit(client, db, monkeypatch):
    monkeypatch.setattr(settings, "max_batch_events", 1)
    response = client.post("/api/ingest", json={"events": [_event(), _event()]})
    assert response.status_code == 413
    assert _rows(db) == []


def test_storage_failure_is_reported(client, monkeypatch):
    def failing_insert(db, records):
        raise StoreError("boom")

    monkeypatch.setattr(ingest_api, "insert_events", failing_insert)
    response = client.post("/api/ingest", json={"events": [_event()]})
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to ingest events"


def test_api_token(client, monkeypatch):
    monkeypatch.setattr(settings, "api_token", "s3cret")

    assert client.post("/api/ingest", json={"events": []}).status_code == 401
    assert client.post(
        "/api/ingest", json={"events": []}, headers={"X-API-Key": "wrong"}
    ).status_code == 401
    assert client.post(
        "/api/ingest", json={"events": []}, headers={"X-API-Key": "s3cret"}
    ).status_code == 202
    assert client.get("/api/stats").status_code == 401


def test_stats_summary(client):
    client.post("/api/ingest", json={"events": [
        _event(),
        _event(path="/posts/2"),
        _event(ip="198.51.100.3", host="other.example"),
        _event(
            path="/feed.xml",
            userAgent="Feedbin feed-id:1373711 - 192 subscribers",
            contentType="application/atom+xml",
            referrer="",
        ),
    ]})

    response = client.get("/api/stats", params={"from": "2024-01-01", "to": "2024-12-31"})
    assert response.status_code == 200
    summary = response.json()
    assert summary["hits"] == 4
    assert summary["uniques"] == 2 + 192
    assert summary["uniques_by_type"] == {"browser": 2, "feed": 192}
    assert summary["visits_by_type_date"] == {"browser": {"2024-03-01": 2}, "feed": {"2024-03-01": 192}}
    assert summary["top"]["path"]["hits"][0] == {"value": "/posts/1", "count": 2}
    assert summary["top"]["agent"]["uniques"] == [
        {"value": "Feedbin", "count": 192},
        {"value": "Chrome", "count": 2},
    ]
    assert summary["first_date"] == summary["last_date"] == "2024-03-01"
    assert summary["hosts"] == ["example.com", "other.example"]


def test_stats_filters(client):
    client.post("/api/ingest", json={"events": [
        _event(),
        _event(ip="198.51.100.3", host="other.example"),
    ]})

    response = client.get("/api/stats", params={"from": "2024-01-01", "to": "2024-12-31", "host": "other.example"})
    summary = response.json()
    assert summary["filters"] == {"host": "other.example"}
    assert summary["hits"] == 1
    assert summary["uniques"] == 1


def test_stats_default_range_is_current_year(client):
    summary = client.get("/api/stats").json()
    assert summary["date_from"].endswith("-01-01")
    assert summary["date_to"].endswith("-12-31")
    assert summary["hits"] == 0
