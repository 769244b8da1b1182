"""
Twin Map pipeline tests.

Covers:
  - Page key derivation and event normalization
  - Node aggregation, averages, health thresholds
  - Transition counting (ordered pairs, no self-loops)
  - Ranking / truncation and graph self-consistency
  - Totals semantics and the empty result
  - TwinMapService reads and failure degradation

Pure pipeline tests do NOT require a database.
"""
import json
import math
import random
from datetime import datetime, timedelta, timezone

import pytest

from webtwin.services.twin_map_service import (
    HEALTHY_MAX_MS,
    WARNING_MAX_MS,
    PageView,
    TwinMapService,
    aggregate_page_views,
    build_twin_map,
    classify_load,
    empty_twin_map,
    normalize_event,
    order_events,
    rank_graph,
)
from webtwin.utils.helpers import MAX_TIMING_MS
from webtwin.utils.url_parsing import page_key_from_url


def make_events(paths, load=1000, dcl=500):
    return [
        {"site": "example.com", "url": path, "vitals": {"load": load, "domContentLoaded": dcl}, "ts": i}
        for i, path in enumerate(paths)
    ]


# ────────────────────────────────────────────
# PAGE KEYS & NORMALIZATION
# ────────────────────────────────────────────


class TestPageKey:

    def test_absolute_url_collapses_to_path(self):
        assert page_key_from_url("https://example.com/pricing?utm_source=x#top") == "/pricing"

    def test_query_variants_share_a_key(self):
        assert page_key_from_url("https://example.com/a?x=1") == page_key_from_url("https://example.com/a?x=2")

    def test_absolute_url_without_path_is_root(self):
        assert page_key_from_url("https://example.com") == "/"

    def test_relative_path_kept_verbatim(self):
        assert page_key_from_url("/docs/start?x=1") == "/docs/start?x=1"

    def test_garbage_maps_to_root(self):
        assert page_key_from_url("not a url") == "/"
        assert page_key_from_url("example.com/pricing") == "/"

    def test_missing_maps_to_root(self):
        assert page_key_from_url(None) == "/"
        assert page_key_from_url("") == "/"


class TestNormalizeEvent:

    def test_event_without_url_is_dropped(self):
        assert normalize_event({"url": None, "vitals": {"load": 100}}) is None
        assert normalize_event({"url": "", "vitals": {"load": 100}}) is None
        assert normalize_event({"vitals": {"load": 100}}) is None

    def test_valid_event(self):
        view = normalize_event({"url": "https://example.com/a", "vitals": {"load": 1200, "domContentLoaded": 800}})
        assert view == PageView(key="/a", load_ms=1200.0, dcl_ms=800.0)

    @pytest.mark.parametrize("bad", [-500, float("nan"), float("inf"), 1e308, MAX_TIMING_MS + 1, "abc", None, True, [1]])
    def test_malformed_timings_become_zero(self, bad):
        view = normalize_event({"url": "/a", "vitals": {"load": bad, "domContentLoaded": bad}})
        assert view.load_ms == 0
        assert view.dcl_ms == 0

    def test_numeric_strings_are_coerced(self):
        view = normalize_event({"url": "/a", "vitals": {"load": "1500"}})
        assert view.load_ms == 1500.0

    def test_missing_or_malformed_vitals(self):
        assert normalize_event({"url": "/a", "vitals": None}).load_ms == 0
        assert normalize_event({"url": "/a", "vitals": "oops"}).dcl_ms == 0

    def test_accepts_objects_with_attributes(self):
        class Row:
            url = "https://example.com/b"
            vitals = {"load": 10, "domContentLoaded": 5}
            ts = None

        assert normalize_event(Row()).key == "/b"


# ────────────────────────────────────────────
# HEALTH CLASSIFICATION
# ────────────────────────────────────────────


class TestClassification:

    def test_cut_points(self):
        assert classify_load(0) == "healthy"
        assert classify_load(HEALTHY_MAX_MS) == "healthy"
        assert classify_load(HEALTHY_MAX_MS + 1) == "warning"
        assert classify_load(WARNING_MAX_MS) == "warning"
        assert classify_load(WARNING_MAX_MS + 1) == "critical"

    @pytest.mark.parametrize("load,status", [(5000, "critical"), (3000, "warning"), (1000, "healthy")])
    def test_slow_page_status(self, load, status):
        result = build_twin_map(make_events(["/slow"] * 3, load=load))
        assert result["nodes"][0]["status"] == status
        assert result["nodes"][0]["avgLoadMs"] == load


# ────────────────────────────────────────────
# AGGREGATION
# ────────────────────────────────────────────


class TestAggregation:

    def test_empty_input(self):
        assert build_twin_map([]) == {"nodes": [], "edges": [], "totals": {"events": 0, "pages": 0}}
        assert build_twin_map(None) == empty_twin_map()

    def test_only_url_less_events_is_empty(self):
        assert build_twin_map([{"url": None, "vitals": None, "ts": 1}]) == empty_twin_map()

    def test_single_event(self):
        result = build_twin_map(make_events(["/a"], load=1200, dcl=700))
        assert result == {
            "nodes": [{"key": "/a", "hits": 1, "avgLoadMs": 1200, "avgDclMs": 700, "status": "healthy"}],
            "edges": [],
            "totals": {"events": 1, "pages": 1},
        }

    def test_averages_round_half_up(self):
        events = [
            {"url": "/a", "vitals": {"load": 1000, "domContentLoaded": 10}, "ts": 1},
            {"url": "/a", "vitals": {"load": 1001, "domContentLoaded": 11}, "ts": 2},
        ]
        node = build_twin_map(events)["nodes"][0]
        assert node["avgLoadMs"] == 1001
        assert node["avgDclMs"] == 11

    def test_sanitized_values_count_as_zero_in_average(self):
        events = [
            {"url": "/a", "vitals": {"load": 2000}, "ts": 1},
            {"url": "/a", "vitals": {"load": -500}, "ts": 2},
            {"url": "/a", "vitals": {"load": float("nan")}, "ts": 3},
            {"url": "/a", "vitals": {"load": 1000}, "ts": 4},
        ]
        node = build_twin_map(events)["nodes"][0]
        assert node["hits"] == 4
        assert node["avgLoadMs"] == 750
        assert not math.isnan(node["avgLoadMs"])

    def test_huge_timings_on_one_page_stay_finite(self):
        events = [
            {"url": "/a", "vitals": {"load": 1e308, "domContentLoaded": 1e308}, "ts": 1},
            {"url": "/a", "vitals": {"load": 1e308, "domContentLoaded": 1e308}, "ts": 2},
            {"url": "/a", "vitals": {"load": 900, "domContentLoaded": 300}, "ts": 3},
            {"url": "/b", "vitals": {"load": 1200, "domContentLoaded": 600}, "ts": 4},
        ]
        result = build_twin_map(events)
        a, b = result["nodes"]
        assert a == {"key": "/a", "hits": 3, "avgLoadMs": 300, "avgDclMs": 100, "status": "healthy"}
        assert b["avgLoadMs"] == 1200
        assert result["edges"] == [{"from": "/a", "to": "/b", "count": 1}]

    def test_timing_at_ceiling_is_kept(self):
        node = build_twin_map([{"url": "/a", "vitals": {"load": MAX_TIMING_MS}, "ts": 1}])["nodes"][0]
        assert node["avgLoadMs"] == int(MAX_TIMING_MS)
        assert node["status"] == "critical"

    def test_query_strings_merge_into_one_node(self):
        result = build_twin_map(make_events([
            "https://example.com/p?id=1",
            "https://example.com/p?id=2",
            "https://example.com/p",
        ]))
        assert [n["key"] for n in result["nodes"]] == ["/p"]
        assert result["nodes"][0]["hits"] == 3
        assert result["edges"] == []

    def test_aggregate_counts_hits_and_totals(self):
        views = [PageView("/a", 100, 10), PageView("/b", 300, 30), PageView("/a", 200, 20)]
        nodes, edges = aggregate_page_views(views)
        assert nodes["/a"].hits == 2
        assert nodes["/a"].load_total == 300
        assert nodes["/a"].dcl_total == 30
        assert {pair: e.count for pair, e in edges.items()} == {("/a", "/b"): 1, ("/b", "/a"): 1}


# ────────────────────────────────────────────
# TRANSITIONS
# ────────────────────────────────────────────


class TestTransitions:

    def test_alternating_pages(self):
        result = build_twin_map(make_events(["/a", "/b", "/a", "/b", "/a"]))
        assert result["edges"] == [
            {"from": "/a", "to": "/b", "count": 2},
            {"from": "/b", "to": "/a", "count": 2},
        ]
        assert result["totals"] == {"events": 5, "pages": 2}

    def test_repeated_page_makes_no_self_loop(self):
        result = build_twin_map(make_events(["/a", "/a", "/a", "/b", "/b"]))
        assert result["edges"] == [{"from": "/a", "to": "/b", "count": 1}]

    def test_direction_matters(self):
        result = build_twin_map(make_events(["/a", "/b", "/c", "/b"]))
        pairs = {(e["from"], e["to"]): e["count"] for e in result["edges"]}
        assert pairs == {("/a", "/b"): 1, ("/b", "/c"): 1, ("/c", "/b"): 1}

    def test_adjacency_skips_url_less_events(self):
        events = [
            {"url": "/a", "vitals": None, "ts": 1},
            {"url": None, "vitals": {"load": 9999}, "ts": 2},
            {"url": "/b", "vitals": None, "ts": 3},
        ]
        result = build_twin_map(events)
        assert result["edges"] == [{"from": "/a", "to": "/b", "count": 1}]
        assert result["totals"]["events"] == 2

    def test_out_of_order_input_is_sorted_by_ts(self):
        events = [
            {"url": "/b", "vitals": None, "ts": 2},
            {"url": "/a", "vitals": None, "ts": 1},
        ]
        assert build_twin_map(events)["edges"] == [{"from": "/a", "to": "/b", "count": 1}]

    def test_order_events_is_stable(self):
        base = datetime(2026, 1, 1)
        events = [
            {"url": "/x", "ts": base},
            {"url": "/y", "ts": base},
            {"url": "/z", "ts": None},
            {"url": "/w", "ts": base - timedelta(seconds=1)},
        ]
        assert [e["url"] for e in order_events(events)] == ["/z", "/w", "/x", "/y"]

    def test_mixed_timestamp_types_are_ordered(self):
        events = [
            {"url": "/c", "ts": datetime(2026, 1, 1, 0, 0, 2)},
            {"url": "/b", "ts": "2026-01-01T00:00:01Z"},
            {"url": "/a", "ts": 1767225600000},
            {"url": "/d", "ts": datetime(2026, 1, 1, 0, 0, 3, tzinfo=timezone.utc)},
        ]
        assert [e["url"] for e in order_events(events)] == ["/a", "/b", "/c", "/d"]
        result = build_twin_map(events)
        assert [(e["from"], e["to"]) for e in result["edges"]] == [("/a", "/b"), ("/b", "/c"), ("/c", "/d")]

    def test_unreadable_timestamp_sorts_like_missing(self):
        events = [
            {"url": "/b", "ts": 1},
            {"url": "/a", "ts": "yesterday"},
            {"url": "/c", "ts": {"nested": True}},
        ]
        assert [e["url"] for e in order_events(events)] == ["/a", "/c", "/b"]


# ────────────────────────────────────────────
# RANKING / TRUNCATION
# ────────────────────────────────────────────


class TestRanking:

    def test_hot_page_survives_truncation(self):
        paths = ["/hot"] * 100 + [f"/page-{i}" for i in range(29)]
        result = build_twin_map(make_events(paths))
        keys = [n["key"] for n in result["nodes"]]
        assert len(keys) == 20
        assert keys[0] == "/hot"
        assert result["totals"] == {"events": 129, "pages": 20}

    def test_ties_keep_first_seen_order(self):
        result = build_twin_map(make_events(["/x", "/y", "/z"]))
        assert [n["key"] for n in result["nodes"]] == ["/x", "/y", "/z"]

    def test_edges_restricted_to_surviving_nodes(self):
        paths = ["/a", "/b", "/a", "/b", "/a", "/b", "/c", "/d", "/c", "/d"]
        result = build_twin_map(make_events(paths), max_nodes=2)
        assert [n["key"] for n in result["nodes"]] == ["/a", "/b"]
        assert result["edges"] == [
            {"from": "/a", "to": "/b", "count": 3},
            {"from": "/b", "to": "/a", "count": 2},
        ]

    def test_edge_cap(self):
        paths = []
        for i in range(15):
            paths += ["/hub", f"/leaf-{i}"]
        result = build_twin_map(make_events(paths), max_nodes=50, max_edges=25)
        assert len(result["edges"]) == 25

    def test_rank_graph_directly(self):
        nodes, edges = aggregate_page_views([PageView("/a", 0, 0), PageView("/b", 0, 0), PageView("/b", 0, 0)])
        top_nodes, top_edges = rank_graph(nodes, edges, max_nodes=1, max_edges=5)
        assert [n.key for n in top_nodes] == ["/b"]
        assert top_edges == []


# ────────────────────────────────────────────
# PROPERTIES
# ────────────────────────────────────────────


def random_walk(seed, pages=40, length=500):
    rng = random.Random(seed)
    paths = []
    for i in range(length):
        paths.append(f"/p{min(int(rng.expovariate(0.15)), pages - 1)}")
    events = make_events(paths)
    for e in events:
        e["vitals"]["load"] = rng.choice([0, 800, 2600, 4200, -1, float("nan")])
    # sprinkle url-less events
    for i in range(0, length, 17):
        events[i]["url"] = None
    return events


@pytest.mark.parametrize("seed", range(8))
class TestProperties:

    def test_idempotent(self, seed):
        events = random_walk(seed)
        first = json.dumps(build_twin_map(events), sort_keys=True)
        second = json.dumps(build_twin_map(events), sort_keys=True)
        assert first == second

    def test_edges_reference_returned_nodes(self, seed):
        result = build_twin_map(random_walk(seed))
        keys = {n["key"] for n in result["nodes"]}
        for edge in result["edges"]:
            assert edge["from"] in keys
            assert edge["to"] in keys

    def test_no_self_loops_and_bounds(self, seed):
        result = build_twin_map(random_walk(seed))
        assert all(e["from"] != e["to"] for e in result["edges"])
        assert len(result["nodes"]) <= 20
        assert len(result["edges"]) <= 25
        assert result["totals"]["pages"] == len(result["nodes"])

    def test_hit_conservation(self, seed):
        events = random_walk(seed)
        result = build_twin_map(events)
        hits = sum(n["hits"] for n in result["nodes"])
        assert hits <= result["totals"]["events"]
        assert result["totals"]["events"] == sum(1 for e in events if e["url"])

    def test_averages_are_sane(self, seed):
        for node in build_twin_map(random_walk(seed))["nodes"]:
            assert node["avgLoadMs"] >= 0
            assert node["avgDclMs"] >= 0
            assert isinstance(node["avgLoadMs"], int)


def test_hit_conservation_is_exact_with_few_pages():
    result = build_twin_map(make_events(["/a", "/b", "/c", "/a", "/a"]))
    assert sum(n["hits"] for n in result["nodes"]) == result["totals"]["events"] == 5


# ────────────────────────────────────────────
# SERVICE
# ────────────────────────────────────────────


class _BrokenStore:
    def recent_events(self, **kwargs):
        raise ConnectionError("database unavailable")


class _RecordingStore:
    def __init__(self, events):
        self.events = events
        self.calls = []

    def recent_events(self, **kwargs):
        self.calls.append(kwargs)
        return self.events


class TestTwinMapService:

    def test_read_failure_degrades_to_empty(self):
        assert TwinMapService(_BrokenStore()).get_twin_map("example.com") == empty_twin_map()

    def test_site_is_normalized_and_window_requested_oldest_first(self):
        store = _RecordingStore(make_events(["/a", "/b"]))
        result = TwinMapService(store, event_limit=500).get_twin_map("  Example.COM ")
        assert store.calls == [{"site": "example.com", "limit": 500, "ascending": True}]
        assert result["totals"] == {"events": 2, "pages": 2}

    def test_one_bad_row_does_not_empty_the_map(self):
        events = make_events(["/a", "/b", "/a", "/c"])
        events[1]["vitals"] = {"load": 1e308, "domContentLoaded": 1e308}
        events.append({"url": "/b", "vitals": {"load": 1e308}, "ts": 99})
        result = TwinMapService(_RecordingStore(events)).get_twin_map("example.com")
        assert result["totals"] == {"events": 5, "pages": 3}
        b = next(n for n in result["nodes"] if n["key"] == "/b")
        assert b["hits"] == 2
        assert b["avgLoadMs"] == 0

    def test_blank_site_means_all_sites(self):
        store = _RecordingStore([])
        TwinMapService(store).get_twin_map("   ")
        assert store.calls[0]["site"] is None

    def test_reads_from_event_store(self, store):
        for i, path in enumerate(["/a", "/b", "/a", "/c"]):
            store.insert_event({
                "site": "example.com",
                "url": f"https://example.com{path}",
                "vitals": {"load": 1000, "domContentLoaded": 400},
                "ts": 1767225600000 + i * 1000,
            })
        store.insert_event({"site": "other.com", "url": "https://other.com/x", "ts": 1767225600500})

        result = TwinMapService(store).get_twin_map("example.com")
        assert [n["key"] for n in result["nodes"]] == ["/a", "/b", "/c"]
        assert {(e["from"], e["to"]) for e in result["edges"]} == {("/a", "/b"), ("/b", "/a"), ("/a", "/c")}

    def test_event_window_keeps_most_recent(self, store):
        for i, path in enumerate(["/old", "/a", "/b", "/c"]):
            store.insert_event({"site": "example.com", "url": path, "ts": 1767225600000 + i * 1000})

        result = TwinMapService(store, event_limit=3).get_twin_map("example.com")
        assert [n["key"] for n in result["nodes"]] == ["/a", "/b", "/c"]
