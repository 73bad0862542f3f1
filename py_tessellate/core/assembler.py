"""
Face extraction from the clipped edge set by a leftmost-turn walk.

Interior segments are doubled so each can bound the two faces beside it;
border segments are already oriented counter-clockwise and stay single, so
every traced face is an interior face lying to the left of its edges.
"""

import math
from collections import defaultdict
from typing import Dict, List, Tuple

import structlog

from .arena import PointArena, SegmentSet
from .errors import DegenerateFaceError
from .primitives import Polygon

logger = structlog.get_logger()

DirectedEdge = Tuple[int, int]


def turn_angle(points: PointArena, incoming: DirectedEdge, outgoing: DirectedEdge) -> float:
    """Signed turn from ``incoming`` onto ``outgoing`` in (-pi, pi].

    Left turns are positive and right turns negative, so a continuation on the
    wrong side of the incoming line always ranks below a collinear one.
    """
    a, b = points[incoming[0]], points[incoming[1]]
    c = points[outgoing[1]]
    d1x, d1y = b.x - a.x, b.y - a.y
    d2x, d2y = c.x - b.x, c.y - b.y
    return math.atan2(d1x * d2y - d1y * d2x, d1x * d2x + d1y * d2y)


def assemble_polygons(segments: SegmentSet) -> List[Polygon]:
    """Trace every face of the planar edge set.

    Args:
        segments: Clipped segment set with a consistently wound border

    Returns:
        Counter-clockwise face polygons; clockwise (exterior) rings are dropped

    Raises:
        DegenerateFaceError: If a walk dead-ends, fails to close, or closes
            with fewer than 3 vertices
    """
    points = segments.points
    remaining: Dict[DirectedEdge, None] = {}
    for key, (a, b) in segments.items():
        remaining[(a, b)] = None
        if not segments.is_border(key):
            remaining[(b, a)] = None

    outgoing: Dict[int, List[DirectedEdge]] = defaultdict(list)
    for edge in remaining:
        outgoing[edge[0]].append(edge)

    total = len(remaining)
    faces: List[Polygon] = []
    exterior = 0

    while remaining:
        first = next(iter(remaining))
        del remaining[first]
        ring = [first[0]]
        current = first

        while current[1] != ring[0]:
            ring.append(current[1])
            if len(ring) > total:
                raise DegenerateFaceError("Face walk did not close", start=first)

            candidates = [
                edge for edge in outgoing[current[1]]
                if edge in remaining and edge[1] != current[0]
            ]
            if not candidates:
                raise DegenerateFaceError("Face walk reached a dead end",
                                          vertex=current[1], start=first)
            current = max(candidates, key=lambda edge: (turn_angle(points, current, edge), -edge[1]))
            del remaining[current]

        if len(ring) < 3:
            raise DegenerateFaceError("Face closed with fewer than 3 vertices",
                                      vertices=len(ring), start=first)
        try:
            polygon = Polygon(tuple(points[i] for i in ring))
        except ValueError as e:
            raise DegenerateFaceError("Face walk revisited a vertex", start=first) from e

        if polygon.signed_area <= 0:
            exterior += 1
            continue
        faces.append(polygon)

    logger.debug("Faces assembled", faces=len(faces), exterior=exterior, edges=total)
    return faces
