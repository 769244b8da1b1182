"""
Twin Map Service

Turns a time-ordered window of RUM page views into a page-flow graph:
per-page load averages with a health status (nodes) and counts of
consecutive page-to-page transitions (edges).

Pipeline, one pass over the events:
  normalize -> aggregate nodes + edges -> rank/truncate -> assemble

Everything here is a pure function of its arguments except
TwinMapService, which adds the single read from the event store.
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from webtwin.services.event_store import EventStore
from webtwin.utils.helpers import parse_client_timestamp, sanitize_ms
from webtwin.utils.logger import log
from webtwin.utils.url_parsing import page_key_from_url, site_filter

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Average load time cut points (ms), LCP-style budgets
HEALTHY_MAX_MS = 2500
WARNING_MAX_MS = 4000

STATUS_HEALTHY = "healthy"
STATUS_WARNING = "warning"
STATUS_CRITICAL = "critical"

DEFAULT_EVENT_LIMIT = 500
DEFAULT_MAX_NODES = 20
DEFAULT_MAX_EDGES = 25


def empty_twin_map() -> Dict:
    return {"nodes": [], "edges": [], "totals": {"events": 0, "pages": 0}}


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PageView:
    """A validated event: page key plus sanitized timings"""
    key: str
    load_ms: float
    dcl_ms: float


@dataclass
class NodeAggregate:
    key: str
    hits: int = 0
    load_total: float = 0.0
    dcl_total: float = 0.0

    def add(self, view: PageView) -> None:
        self.hits += 1
        self.load_total += view.load_ms
        self.dcl_total += view.dcl_ms

    @property
    def avg_load_ms(self) -> int:
        return _round_ms(self.load_total / self.hits) if self.hits else 0

    @property
    def avg_dcl_ms(self) -> int:
        return _round_ms(self.dcl_total / self.hits) if self.hits else 0

    @property
    def status(self) -> str:
        return classify_load(self.avg_load_ms)

    def to_dict(self) -> Dict:
        return {
            "key": self.key,
            "hits": self.hits,
            "avgLoadMs": self.avg_load_ms,
            "avgDclMs": self.avg_dcl_ms,
            "status": self.status,
        }


@dataclass
class EdgeAggregate:
    source: str
    target: str
    count: int = 0

    def to_dict(self) -> Dict:
        return {"from": self.source, "to": self.target, "count": self.count}


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

def _field(event: Any, name: str) -> Any:
    if isinstance(event, Mapping):
        return event.get(name)
    return getattr(event, name, None)


def normalize_event(event: Any) -> Optional[PageView]:
    """
    Validate one raw event (dict or RumEvent row).

    Returns None for events without a url; they take no part in
    aggregation or adjacency.
    """
    url = _field(event, "url")
    if not url:
        return None
    if not isinstance(url, str):
        url = str(url)

    vitals = _field(event, "vitals")
    if not isinstance(vitals, Mapping):
        vitals = {}

    return PageView(
        key=page_key_from_url(url),
        load_ms=sanitize_ms(vitals.get("load")),
        dcl_ms=sanitize_ms(vitals.get("domContentLoaded")),
    )


def order_events(events: Iterable[Any]) -> List[Any]:
    """
    Stable sort by ts ascending.

    ts may be a datetime, epoch ms or an ISO string. Events whose ts is
    missing or unreadable keep their relative order ahead of timestamped ones.
    Already-ordered input comes back unchanged.
    """
    def sort_key(event):
        ts = parse_client_timestamp(_field(event, "ts"))
        return (0, 0) if ts is None else (1, ts)

    return sorted(events, key=sort_key)


def classify_load(avg_load_ms: float) -> str:
    if avg_load_ms > WARNING_MAX_MS:
        return STATUS_CRITICAL
    if avg_load_ms > HEALTHY_MAX_MS:
        return STATUS_WARNING
    return STATUS_HEALTHY


def _round_ms(value: float) -> int:
    # Half-up rounding; values are never negative
    if not math.isfinite(value):
        return 0
    return int(math.floor(value + 0.5))


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def aggregate_page_views(
    views: List[PageView],
) -> Tuple[Dict[str, NodeAggregate], Dict[Tuple[str, str], EdgeAggregate]]:
    """
    Single forward pass building the node map and the transition map.

    Adjacency is over `views` as given: url-less events are already gone,
    so their neighbours count as consecutive.
    """
    nodes: Dict[str, NodeAggregate] = {}
    edges: Dict[Tuple[str, str], EdgeAggregate] = {}

    previous_key: Optional[str] = None
    for view in views:
        node = nodes.get(view.key)
        if node is None:
            node = nodes[view.key] = NodeAggregate(key=view.key)
        node.add(view)

        if previous_key is not None and previous_key != view.key:
            pair = (previous_key, view.key)
            edge = edges.get(pair)
            if edge is None:
                edge = edges[pair] = EdgeAggregate(source=previous_key, target=view.key)
            edge.count += 1

        previous_key = view.key

    return nodes, edges


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------

def rank_graph(
    nodes: Dict[str, NodeAggregate],
    edges: Dict[Tuple[str, str], EdgeAggregate],
    max_nodes: int = DEFAULT_MAX_NODES,
    max_edges: int = DEFAULT_MAX_EDGES,
) -> Tuple[List[NodeAggregate], List[EdgeAggregate]]:
    """
    Top nodes by hits, then top edges by count among the surviving nodes.

    Sorts are stable, so ties keep first-seen order. An edge touching a
    page outside the top nodes is dropped even if its own count is high.
    """
    top_nodes = sorted(nodes.values(), key=lambda n: n.hits, reverse=True)[:max_nodes]
    kept = {node.key for node in top_nodes}

    top_edges = [
        edge
        for edge in sorted(edges.values(), key=lambda e: e.count, reverse=True)
        if edge.source in kept and edge.target in kept
    ][:max_edges]

    return top_nodes, top_edges


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def build_twin_map(
    events: Iterable[Any],
    max_nodes: int = DEFAULT_MAX_NODES,
    max_edges: int = DEFAULT_MAX_EDGES,
) -> Dict:
    """
    Compute the Twin Map response body for one batch of raw events.

    totals.events counts url-bearing events; totals.pages counts the
    nodes actually returned.
    """
    views = [
        view for view in (normalize_event(e) for e in order_events(events or []))
        if view is not None
    ]
    if not views:
        return empty_twin_map()

    nodes, edges = aggregate_page_views(views)
    top_nodes, top_edges = rank_graph(nodes, edges, max_nodes, max_edges)

    return {
        "nodes": [node.to_dict() for node in top_nodes],
        "edges": [edge.to_dict() for edge in top_edges],
        "totals": {
            "events": len(views),
            "pages": len(top_nodes),
        },
    }


class TwinMapService:
    """Reads the recent event window for a site and builds its Twin Map"""

    def __init__(
        self,
        store: EventStore,
        event_limit: int = DEFAULT_EVENT_LIMIT,
        max_nodes: int = DEFAULT_MAX_NODES,
        max_edges: int = DEFAULT_MAX_EDGES,
    ):
        self.store = store
        self.event_limit = event_limit
        self.max_nodes = max_nodes
        self.max_edges = max_edges

    def get_twin_map(self, site: Optional[str] = None) -> Dict:
        """
        Twin Map for `site` (all sites when blank).

        A failed read degrades to the empty map; the dashboard panel must
        always render.
        """
        site = site_filter(site)
        try:
            events = self.store.recent_events(site=site, limit=self.event_limit, ascending=True)
        except Exception as e:
            log.error(f"Twin map event read failed for site={site or '*'}: {str(e)}")
            return empty_twin_map()

        result = build_twin_map(events, self.max_nodes, self.max_edges)
        log.info(
            f"Twin map for site={site or '*'}: {result['totals']['events']} events, "
            f"{result['totals']['pages']} pages, {len(result['edges'])} edges"
        )
        return result
