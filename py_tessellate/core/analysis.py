"""
Quality checks for triangulations and tessellations.

Coverage and overlap are measured with shapely; the incremental
triangulation is cross-checked against scipy's Qhull Delaunay.
"""

from dataclasses import dataclass
from typing import List, Sequence, Set, Tuple

import numpy as np
import structlog
from scipy.spatial import Delaunay
from shapely.geometry import Polygon as ShapelyPolygon
from shapely.ops import unary_union

from .delaunay import Triangulation
from .primitives import Polygon

logger = structlog.get_logger()


@dataclass
class CoverageReport:
    """How well a set of faces partitions the border."""
    border_area: float
    total_area: float
    union_area: float
    overlap_area: float
    gap_area: float
    faces_within_border: bool

    @property
    def area_error(self) -> float:
        return abs(self.total_area - self.border_area)

    def is_partition(self, relative_tolerance: float = 1e-6) -> bool:
        slack = relative_tolerance * self.border_area
        return (self.area_error <= slack and self.overlap_area <= slack
                and self.gap_area <= slack and self.faces_within_border)


def to_shapely(polygon: Polygon) -> ShapelyPolygon:
    return ShapelyPolygon([(v.x, v.y) for v in polygon.vertices])


def coverage_report(polygons: Sequence[Polygon], border: Polygon,
                    relative_tolerance: float = 1e-9) -> CoverageReport:
    """Compare a tessellation's faces against the border they should tile.

    Args:
        polygons: Tessellation faces
        border: Border polygon
        relative_tolerance: Containment slack, relative to the border diameter

    Returns:
        CoverageReport with area sums, overlap and gap measurements
    """
    border_shape = to_shapely(border)
    shapes = [to_shapely(p) for p in polygons]
    total_area = float(sum(shape.area for shape in shapes))
    union = unary_union(shapes) if shapes else ShapelyPolygon()

    slack = relative_tolerance * border.diameter
    envelope = border_shape.buffer(slack)
    within = all(envelope.covers(shape) for shape in shapes)

    report = CoverageReport(
        border_area=float(border_shape.area),
        total_area=total_area,
        union_area=float(union.area),
        overlap_area=max(0.0, total_area - float(union.area)),
        gap_area=float(border_shape.difference(union).area),
        faces_within_border=within,
    )
    logger.debug("Coverage measured", faces=len(shapes), border_area=report.border_area,
                 total_area=report.total_area, gap_area=report.gap_area,
                 overlap_area=report.overlap_area)
    return report


def _triangle_set(triangles) -> Set[Tuple[int, ...]]:
    return {tuple(sorted(int(i) for i in t)) for t in triangles}


def delaunay_agreement(triangulation: Triangulation) -> float:
    """Fraction of scipy Delaunay triangles also produced incrementally.

    For points in general position the Delaunay triangulation is unique, so
    anything below 1.0 points at a bug or at cocircular input.
    """
    points = np.array([[p.x, p.y] for p in triangulation.vertices], dtype=float)
    reference = _triangle_set(Delaunay(points).simplices)
    ours = _triangle_set(triangulation.triangles)
    if not reference:
        return 1.0 if not ours else 0.0
    return len(reference & ours) / len(reference | ours)


def circumcircle_violations(triangulation: Triangulation,
                            relative_tolerance: float = 1e-9) -> List[Tuple[int, int]]:
    """(triangle, vertex) pairs where a vertex lies strictly inside a circumcircle.

    Args:
        triangulation: Triangulation to check
        relative_tolerance: Slack on the radius, relative to that radius

    Returns:
        Violating pairs; empty for a Delaunay triangulation
    """
    points = np.array([[p.x, p.y] for p in triangulation.vertices], dtype=float)
    violations = []
    for tid, (triangle, circle) in enumerate(zip(triangulation.triangles,
                                                 triangulation.circumcircles())):
        center = np.array([circle.center.x, circle.center.y])
        distances = np.linalg.norm(points - center, axis=1)
        inside = np.nonzero(distances < circle.radius * (1 - relative_tolerance))[0]
        violations.extend((tid, int(v)) for v in inside if v not in triangle)
    return violations
