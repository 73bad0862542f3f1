"""
Boundary clipping for the Voronoi edge set.

Step A (chop) cuts every dual segment that leaves the border at the points
where it meets the border outline and keeps only the interior pieces, then
rebuilds the border itself out of sub-spans between consecutive meeting
points. Step B (winding) walks the resulting border cycle from a canonical
edge and flips any border segment stored against the walking direction.
"""

from collections import defaultdict
from typing import Dict, List, Set

import structlog

from .arena import SegmentKey, SegmentSet
from .errors import BorderCycleError
from .primitives import Point, Polygon, Segment

logger = structlog.get_logger()


def _parameter(segment: Segment, point: Point) -> float:
    dx, dy = segment.direction
    return ((point.x - segment.start.x) * dx + (point.y - segment.start.y) * dy) / (dx * dx + dy * dy)


def _crosses(segment: Segment, border_edges: List[Segment]) -> bool:
    for edge in border_edges:
        hit = segment.intersects(edge)
        if hit.intersects and not hit.is_endpoint_touch and not hit.overlap:
            return True
    return False


def chop_border(segments: SegmentSet, border: Polygon, tolerance: float) -> SegmentSet:
    """Clip the dual segments to the border and add the border sub-spans.

    Args:
        segments: Live dual segments
        border: Counter-clockwise border polygon
        tolerance: Absolute on-border distance

    Returns:
        New segment set holding the interior pieces plus border segments,
        each border segment stored in the counter-clockwise border direction
    """
    graph = segments.copy()
    arena = graph.points
    corners = [arena.add(v) for v in border.vertices]
    border_edges = border.edges
    n = len(corners)

    inside_cache: Dict[int, bool] = {}

    def is_inside(slot: int) -> bool:
        if slot not in inside_cache:
            inside_cache[slot] = border.contains(arena[slot], tolerance)
        return inside_cache[slot]

    external = []
    for key in graph.keys():
        a, b = graph.directed(key)
        if not (is_inside(a) and is_inside(b)) or _crosses(graph.segment(key), border_edges):
            external.append(key)

    meeting_points: Dict[int, Set[int]] = defaultdict(set)
    kept = 0
    for key in external:
        segment = graph.segment(key)
        a, b = graph.directed(key)
        graph.remove(key)

        cuts = []
        for edge_index, edge in enumerate(border_edges):
            hit = segment.intersects(edge)
            if not hit.intersects or hit.point is None:
                continue
            if segment.has_endpoint(hit.point, tolerance):
                continue
            slot = arena.add(hit.point)
            if slot in (a, b):
                continue
            meeting_points[edge_index].add(slot)
            cuts.append((_parameter(segment, hit.point), slot))

        chain = [a] + [slot for _, slot in sorted(cuts)] + [b]
        for p, q in zip(chain, chain[1:]):
            if p == q or not (is_inside(p) and is_inside(q)):
                continue
            start, end = arena[p], arena[q]
            if not border.contains(Point((start.x + end.x) / 2, (start.y + end.y) / 2), tolerance):
                continue
            graph.add(p, q)
            kept += 1

    # Interior endpoints that sit on the outline (circumcenters on a border
    # edge, pieces ending at a border vertex) become border nodes as well.
    live = graph.used_points()
    border_segments = 0
    for edge_index, edge in enumerate(border_edges):
        nodes = {corners[edge_index], corners[(edge_index + 1) % n]} | meeting_points[edge_index]
        for slot in live:
            if edge.distance_to_point(arena[slot]) <= tolerance:
                nodes.add(slot)

        ordered = sorted(nodes, key=lambda slot: arena[slot].distance_squared_to(edge.start))
        for p, q in zip(ordered, ordered[1:]):
            if graph.add(p, q, border_edge=edge_index) is not None:
                border_segments += 1

    dropped = 0
    for key in graph.keys():
        if graph.is_border(key):
            continue
        a, b = graph.directed(key)
        if not (is_inside(a) and is_inside(b)):
            graph.remove(key)
            dropped += 1

    logger.debug("Border chopped", external=len(external), kept_pieces=kept,
                 border_segments=border_segments, dropped=dropped)
    return graph


def _canonical_start(graph: SegmentSet, tolerance: float) -> SegmentKey:
    """Lowest, then leftmost, non-vertical border segment."""
    arena = graph.points
    candidates = [
        key for key in graph.border_keys()
        if abs(arena[key[0]].x - arena[key[1]].x) > tolerance
    ]
    if not candidates:
        raise BorderCycleError("Border has no non-vertical segment to start from")

    def rank(key: SegmentKey):
        p, q = arena[key[0]], arena[key[1]]
        return (min(p.y, q.y), min(p.x, q.x), key)

    return min(candidates, key=rank)


def fix_border_winding(segments: SegmentSet, border: Polygon, tolerance: float) -> SegmentSet:
    """Orient every border segment along one consistent cycle.

    Raises:
        BorderCycleError: If the walk gets stuck, fails to close, or leaves
            border segments unvisited
    """
    graph = segments.copy()
    arena = graph.points
    border_keys = graph.border_keys()
    edges = border.edges

    start_key = _canonical_start(graph, tolerance)
    flips = 0

    a, b = graph.directed(start_key)
    ex, ey = edges[graph.border_edge_of(start_key)].direction
    if (arena[b].x - arena[a].x) * ex + (arena[b].y - arena[a].y) * ey < 0:
        graph.flip(start_key)
        flips += 1
        a, b = b, a

    origin = a
    current_key, current_end = start_key, b
    visited = {start_key}
    for _ in range(len(border_keys) + 1):
        if current_end == origin:
            break
        continuations = [
            key for key in graph.incident(current_end)
            if graph.is_border(key) and key != current_key
        ]
        if len(continuations) != 1:
            raise BorderCycleError("Border walk is stuck", vertex=current_end,
                                   continuations=len(continuations))
        key = continuations[0]
        s, e = graph.directed(key)
        if s != current_end:
            graph.flip(key)
            flips += 1
            s, e = e, s
        visited.add(key)
        current_key, current_end = key, e
    else:
        raise BorderCycleError("Border walk did not return to its start", start=origin)

    if len(visited) != len(border_keys):
        raise BorderCycleError("Border segments form more than one cycle",
                               walked=len(visited), total=len(border_keys))

    logger.debug("Border winding fixed", border_segments=len(border_keys), flips=flips)
    return graph
