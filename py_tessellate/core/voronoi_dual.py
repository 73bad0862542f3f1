"""
Voronoi dual of a Delaunay triangulation.

Voronoi vertices are triangle circumcenters; every triangle edge shared by
two triangles contributes the segment between their circumcenters. Edges on
the outside of the triangulation have an unbounded dual ray, which is
approximated by a finite segment that the boundary clipper later truncates.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Tuple

import structlog

from .arena import PointArena, SegmentKey, SegmentSet, segment_key
from .delaunay import Triangulation, apex_height
from .errors import NonManifoldEdgeError
from .primitives import Point, circumcircle

logger = structlog.get_logger()


@dataclass
class VoronoiDual:
    """Dual segments plus the arena slot of each triangle's circumcenter."""
    segments: SegmentSet
    circumcenters: List[int]
    open_edges: int


def edge_neighbors(triangles: List[Tuple[int, int, int]]) -> Dict[SegmentKey, List[int]]:
    """Map every triangle edge to the triangles that carry it.

    Raises:
        NonManifoldEdgeError: If an edge is carried by more than two triangles
    """
    owners: Dict[SegmentKey, List[int]] = defaultdict(list)
    for tid, (a, b, c) in enumerate(triangles):
        for edge in ((a, b), (b, c), (c, a)):
            owners[segment_key(*edge)].append(tid)

    for key, tids in owners.items():
        if len(tids) > 2:
            raise NonManifoldEdgeError("Delaunay edge has more than one neighbouring triangle",
                                       edge=key, triangles=tids)
    return owners


def build_voronoi_dual(triangulation: Triangulation, tolerance: float, diameter: float,
                       ray_strategy: str = "bisector") -> VoronoiDual:
    """Build the Voronoi edge set from circumcenters and triangle adjacency.

    Args:
        triangulation: Delaunay triangulation to dualize
        tolerance: Absolute merge distance for circumcenters
        diameter: Border diameter, used to size explicit rays
        ray_strategy: "bisector" mirrors the circumcenter across the open
            edge's midpoint for vertices with fewer than 3 dual edges;
            "ray" emits an explicit outward ray for every open edge

    Returns:
        VoronoiDual over a fresh point arena
    """
    vertices = triangulation.vertices
    triangles = triangulation.triangles
    arena = PointArena(tolerance)
    segments = SegmentSet(arena)

    centers = [circumcircle(*(vertices[i] for i in t)).center for t in triangles]
    slots = [arena.add(center) for center in centers]
    owners = edge_neighbors(triangles)

    open_edges = []
    for key in sorted(owners):
        tids = owners[key]
        if len(tids) == 2:
            segments.add(slots[tids[0]], slots[tids[1]])
        else:
            open_edges.append((key, tids[0]))

    # Degrees are taken before any open edge is handled so that the outcome
    # does not depend on the order open edges are visited in.
    degrees = {slot: segments.degree(slot) for slot in set(slots)}

    emitted = 0
    for key, tid in open_edges:
        a, b, _ = _orient_open_edge(triangles[tid], key)
        pa, pb = vertices[a], vertices[b]
        center = centers[tid]

        # Circumcenters outside (or on) the open edge have no dual inside the hull
        if apex_height(center, pa, pb) <= tolerance:
            continue
        if ray_strategy == "bisector" and degrees[slots[tid]] >= 3:
            continue

        midpoint = Point((pa.x + pb.x) / 2, (pa.y + pb.y) / 2)
        if ray_strategy == "bisector":
            far = Point(2 * midpoint.x - center.x, 2 * midpoint.y - center.y)
        else:
            # Outward normal of a->b (right-hand side of a counter-clockwise triangle)
            length = pa.distance_to(pb)
            nx, ny = (pb.y - pa.y) / length, (pa.x - pb.x) / length
            far = Point(midpoint.x + nx * diameter, midpoint.y + ny * diameter)

        if segments.add(slots[tid], arena.add(far)) is not None:
            emitted += 1

    logger.debug("Voronoi dual built", circumcenters=len(arena), segments=len(segments),
                 open_edges=len(open_edges), rays=emitted, strategy=ray_strategy)
    return VoronoiDual(segments=segments, circumcenters=slots, open_edges=len(open_edges))


def _orient_open_edge(triangle: Tuple[int, int, int], key: SegmentKey) -> Tuple[int, int, int]:
    """Rotate a triangle so that its first two vertices form ``key``."""
    a, b, c = triangle
    for rotation in ((a, b, c), (b, c, a), (c, a, b)):
        if segment_key(rotation[0], rotation[1]) == key:
            return rotation
    raise ValueError(f"Edge {key} is not part of triangle {triangle}")
