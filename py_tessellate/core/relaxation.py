"""
Vertex relaxation for finished tessellations.

This is an "inverted" Lloyd relaxation: instead of moving sites to the
centroids of their cells, every free cell vertex moves part of the way
toward the average of the vertices it is connected to. Vertices on the
border stay put, so the union of the faces never changes.
"""

from typing import Dict, List, Sequence, Set

import numpy as np
import structlog

from .primitives import Point, Polygon

logger = structlog.get_logger()


def relax_polygons(polygons: Sequence[Polygon], border: Polygon,
                   iterations: int = 5, factor: float = 0.25,
                   tolerance: float = 1e-9) -> List[Polygon]:
    """Smooth a tessellation by pulling free vertices toward their neighbours.

    Args:
        polygons: Faces sharing vertices by exact coordinates
        border: Region the faces cover; vertices on its outline are fixed
        iterations: Number of smoothing passes
        factor: Fraction of the way to move toward the neighbour average
        tolerance: On-border distance, relative to the border diameter

    Returns:
        Faces with the same topology and moved interior vertices
    """
    if not polygons or iterations <= 0:
        return list(polygons)

    slots: Dict[Point, int] = {}
    rings: List[List[int]] = []
    for polygon in polygons:
        ring = []
        for vertex in polygon.vertices:
            if vertex not in slots:
                slots[vertex] = len(slots)
            ring.append(slots[vertex])
        rings.append(ring)

    positions = np.array([[p.x, p.y] for p in slots], dtype=float)
    neighbors: List[Set[int]] = [set() for _ in range(len(positions))]
    for ring in rings:
        for i, a in enumerate(ring):
            b = ring[(i + 1) % len(ring)]
            neighbors[a].add(b)
            neighbors[b].add(a)

    absolute_tolerance = tolerance * border.diameter
    free = np.array([
        not border.on_boundary(p, absolute_tolerance) for p in slots
    ], dtype=bool)
    neighbor_lists = [sorted(n) for n in neighbors]

    logger.info("Relaxing tessellation", vertices=len(positions),
                free_vertices=int(free.sum()), iterations=iterations)

    for _ in range(iterations):
        targets = np.array([
            positions[nbrs].mean(axis=0) if nbrs else positions[i]
            for i, nbrs in enumerate(neighbor_lists)
        ])
        positions[free] += factor * (targets[free] - positions[free])

    relaxed = [
        Polygon(tuple(Point(float(positions[i, 0]), float(positions[i, 1])) for i in ring))
        for ring in rings
    ]
    return relaxed
