"""
Event / run store tests against an in-memory SQLite database.
"""
from datetime import datetime

from webtwin.models.lighthouse import LighthouseRun
from webtwin.models.rum import RumEvent


def test_insert_event_normalizes_fields(store, db_session):
    store.insert_event({
        "site": "  Example.COM ",
        "type": "pageview",
        "url": "https://example.com/a",
        "referrer": None,
        "userAgent": "x" * 600,
        "viewport": {"width": 390, "height": 844},
        "vitals": {"load": 1200, "domContentLoaded": 600},
        "ts": 1767225600000,
    })

    row = db_session.query(RumEvent).one()
    assert row.site == "example.com"
    assert row.type == "pageview"
    assert len(row.user_agent) == 500
    assert row.viewport == {"width": 390, "height": 844}
    assert row.vitals["load"] == 1200
    assert row.ts == datetime(2026, 1, 1)


def test_insert_event_tolerates_garbage(store, db_session):
    store.insert_event({"site": 42, "vitals": "fast", "viewport": [1, 2], "ts": "yesterday"})

    row = db_session.query(RumEvent).one()
    assert row.site is None
    assert row.url is None
    assert row.vitals is None
    assert row.viewport is None
    assert row.ts is not None  # ingestion time


def test_insert_event_accepts_iso_timestamps(store, db_session):
    store.insert_event({"url": "/a", "ts": "2026-03-01T10:00:00Z"})
    assert db_session.query(RumEvent).one().ts == datetime(2026, 3, 1, 10, 0, 0)


def test_recent_events_order_and_limit(store):
    for i in range(5):
        store.insert_event({"site": "a.com", "url": f"/p{i}", "ts": 1767225600000 + i * 1000})

    ascending = store.recent_events(site="a.com", limit=3, ascending=True)
    assert [e["url"] for e in ascending] == ["/p2", "/p3", "/p4"]

    descending = store.recent_events(site="a.com", limit=3, ascending=False)
    assert [e["url"] for e in descending] == ["/p4", "/p3", "/p2"]


def test_recent_events_site_filter(store):
    store.insert_event({"site": "a.com", "url": "/a", "ts": 1767225600000})
    store.insert_event({"site": "b.com", "url": "/b", "ts": 1767225601000})

    assert [e["url"] for e in store.recent_events(site="A.com")] == ["/a"]
    assert [e["url"] for e in store.recent_events(site=None)] == ["/a", "/b"]
    assert store.recent_events(site="c.com") == []


def test_recent_events_row_shape(store):
    store.insert_event({"site": "a.com", "url": "/a", "vitals": {"load": 1}, "ts": 1767225600000})
    (event,) = store.recent_events(site="a.com")
    assert set(event) == {"site", "url", "vitals", "ts"}
    assert isinstance(event["ts"], datetime)


def _run_payload(**overrides):
    payload = {
        "site": "Example.com ",
        "strategy": "mobile",
        "performance": 91,
        "accessibility": 88,
        "seo": 100,
        "bestPractices": 96,
        "homepageLoadSec": 2.31,
        "finalUrl": "https://example.com/",
        "perfRecommendations": [{"key": "unused-javascript", "title": "Reduce unused JS", "detail": "1.2 s", "impact": "high"}],
        "seoRecommendations": [],
        "uiuxRecommendations": [],
        "checkedAt": "2026-03-01T10:00:00Z",
    }
    payload.update(overrides)
    return payload


def test_insert_run_and_latest_run(store, db_session):
    store.insert_run(_run_payload(performance=70, checkedAt="2026-03-01T10:00:00Z"))
    store.insert_run(_run_payload(performance=85, checkedAt="2026-03-02T10:00:00Z"))
    store.insert_run(_run_payload(strategy="desktop", performance=99, checkedAt="2026-03-03T10:00:00Z"))

    assert db_session.query(LighthouseRun).count() == 3

    latest = store.latest_run("example.com", "mobile")
    assert latest.performance == 85
    assert latest.site == "example.com"
    assert latest.perf_recommendations[0]["key"] == "unused-javascript"

    assert store.latest_run("example.com", "desktop").performance == 99
    assert store.latest_run("other.com", "mobile") is None
