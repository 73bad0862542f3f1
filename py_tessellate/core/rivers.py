"""
River tracing across a finished tessellation.

A river runs between the midpoints of two randomly chosen, non-parallel
border edges. The cell edges it crosses give the control points, and a
Catmull-Rom spline through their midpoints gives the smooth course.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import structlog

from .alea_prng import AleaPRNG
from .primitives import Point, Polygon, Segment

logger = structlog.get_logger()


@dataclass
class RiverOptions:
    """River generation options."""
    spline_step: float = 0.1  # Parameter step per spline span
    max_attempts: int = 100  # Draws allowed to find a non-parallel end edge
    parallel_epsilon: float = 1e-9  # |sin| below which two edges count as parallel


@dataclass
class River:
    """A river course with the geometry it was derived from."""
    source: Point
    mouth: Point
    crossed_edges: List[Segment] = field(default_factory=list)
    control_points: List[Point] = field(default_factory=list)
    path: List[Point] = field(default_factory=list)

    @property
    def length(self) -> float:
        return sum(a.distance_to(b) for a, b in zip(self.path, self.path[1:]))


def tessellation_edges(polygons: Sequence[Polygon]) -> List[Segment]:
    """Unique undirected edges of a set of faces, in first-seen order."""
    edges: Dict[Tuple, Segment] = {}
    for polygon in polygons:
        for edge in polygon.edges:
            edges.setdefault(edge.key, edge)
    return list(edges.values())


def catmull_rom(points: Sequence[Point], step: float = 0.1) -> List[Point]:
    """Sample a uniform Catmull-Rom spline through ``points``.

    End spans reuse the first/last control point as their outer neighbour.
    The final control point is appended so the path ends where it should.
    """
    if len(points) < 2:
        return list(points)

    controls = np.array([[p.x, p.y] for p in points], dtype=float)
    last = len(controls) - 1
    ts = np.arange(0.0, 1.0, step)
    basis = np.stack([
        -ts + 2 * ts ** 2 - ts ** 3,
        2 - 5 * ts ** 2 + 3 * ts ** 3,
        ts + 4 * ts ** 2 - 3 * ts ** 3,
        -ts ** 2 + ts ** 3,
    ], axis=1) * 0.5

    samples = []
    for i in range(last):
        p0 = controls[max(i - 1, 0)]
        p3 = controls[min(i + 2, last)]
        span = np.stack([p0, controls[i], controls[i + 1], p3])
        samples.append(basis @ span)
    samples.append(controls[last:])

    path = np.vstack(samples)
    return [Point(float(x), float(y)) for x, y in path]


def _pick_end_edges(border: Polygon, prng: AleaPRNG,
                    options: RiverOptions) -> Tuple[Segment, Segment]:
    edges = border.edges
    start = prng.choice(edges)
    sx, sy = start.direction
    for _ in range(options.max_attempts):
        candidate = prng.choice(edges)
        cx, cy = candidate.direction
        sine = (sx * cy - sy * cx) / (start.length * candidate.length)
        if abs(sine) > options.parallel_epsilon:
            return start, candidate
    raise ValueError("Could not find two non-parallel border edges for a river")


def generate_river(polygons: Sequence[Polygon], border: Polygon, seed,
                   options: Optional[RiverOptions] = None) -> River:
    """Trace one river across the tessellation.

    Args:
        polygons: Tessellation faces
        border: Border polygon the faces cover
        seed: Seed for choosing the source and mouth edges
        options: River options

    Returns:
        River with its crossed edges, control points and spline path
    """
    options = options or RiverOptions()
    prng = AleaPRNG(seed)
    source_edge, mouth_edge = _pick_end_edges(border, prng, options)
    course = Segment(source_edge.midpoint, mouth_edge.midpoint)

    crossed = []
    for edge in tessellation_edges(polygons):
        hit = course.intersects(edge)
        if hit.intersects and not hit.overlap:
            crossed.append(edge)

    midpoints = list(dict.fromkeys(edge.midpoint for edge in crossed))
    midpoints.sort(key=lambda p: p.distance_to(course.start))

    river = River(
        source=course.start,
        mouth=course.end,
        crossed_edges=crossed,
        control_points=midpoints,
        path=catmull_rom(midpoints, options.spline_step),
    )
    logger.info("River traced", crossed_edges=len(crossed), path_points=len(river.path),
                length=round(river.length, 3))
    return river
