"""
Incremental Delaunay triangulation (Bowyer-Watson) seeded by a border fan.

The fan joins the border's vertex centroid to every border edge, so the
triangulated region is the border itself. Each accepted point then removes
the triangles whose circumcircle contains it and re-fans the resulting hole.
"""

import math
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import structlog

from .alea_prng import AleaPRNG
from .arena import PointArena, SegmentKey, segment_key
from .errors import DegenerateTriangulationError, InvalidBorderError
from .options import TessellationOptions
from .primitives import Circle, Point, Polygon, circumcircle, cross

logger = structlog.get_logger()

Triangle = Tuple[int, int, int]


def apex_height(apex: Point, a: Point, b: Point) -> float:
    """Signed distance of ``apex`` from the line a->b, positive on the left."""
    return cross(a, b, apex) / a.distance_to(b)


def sample_points(border: Polygon, count: int, prng: AleaPRNG,
                  tolerance: float = 0.0, max_attempts: int = 1000) -> List[Point]:
    """Draw points uniformly inside the border by bounding-box rejection.

    Args:
        border: Region to sample
        count: Number of points to accept
        prng: Seeded random source
        tolerance: Points this close to the border outline are rejected
        max_attempts: Draw budget per requested point

    Returns:
        Accepted points sorted by (y, x) for a reproducible insertion order
    """
    min_x, min_y, max_x, max_y = border.bounding_box
    budget = max(1, count) * max_attempts
    accepted: List[Point] = []
    draws = 0

    while len(accepted) < count:
        if draws >= budget:
            raise InvalidBorderError("Could not sample enough points inside the border",
                                     requested=count, accepted=len(accepted))
        draws += 1
        point = Point(prng.uniform(min_x, max_x), prng.uniform(min_y, max_y))
        if border.contains(point) and not border.on_boundary(point, tolerance):
            accepted.append(point)

    accepted.sort(key=lambda p: (p.y, p.x))
    return accepted


@dataclass
class Triangulation:
    """A finished triangulation over a vertex arena.

    Slots ``0 .. border_vertex_count - 1`` hold the border corners,
    ``centroid_index`` the fan centroid, and the rest the inserted sites.
    Every triangle is stored counter-clockwise.
    """
    vertices: PointArena
    triangles: List[Triangle]
    border_vertex_count: int
    centroid_index: int
    inserted: List[int] = field(default_factory=list)
    skipped: List[Point] = field(default_factory=list)

    def triangle_polygon(self, triangle: Triangle) -> Polygon:
        return Polygon(tuple(self.vertices[i] for i in triangle))

    def polygons(self) -> List[Polygon]:
        return [self.triangle_polygon(t) for t in self.triangles]

    def circumcircles(self) -> List[Circle]:
        return [circumcircle(*(self.vertices[i] for i in t)) for t in self.triangles]

    @property
    def sites(self) -> List[Point]:
        return list(self.vertices)


class DelaunayTriangulator:
    """Bowyer-Watson triangulator with degenerate-insertion recovery."""

    def __init__(self, border: Polygon, tolerance: float,
                 options: Optional[TessellationOptions] = None,
                 prng: Optional[AleaPRNG] = None):
        self.border = border
        self.tolerance = tolerance
        self.options = options or TessellationOptions()
        self.prng = prng or AleaPRNG(0)
        self.vertices = PointArena(tolerance)
        self.inserted: List[int] = []
        self.skipped: List[Point] = []

        self._triangles: Dict[int, Triangle] = {}
        self._circles: Dict[int, Circle] = {}
        self._next_id = 0

        self._seed_fan()

    def _store(self, triangle: Triangle) -> None:
        a, b, c = triangle
        self._triangles[self._next_id] = triangle
        self._circles[self._next_id] = circumcircle(self.vertices[a], self.vertices[b], self.vertices[c])
        self._next_id += 1

    def _discard(self, triangle_id: int) -> None:
        del self._triangles[triangle_id]
        del self._circles[triangle_id]

    def _seed_fan(self) -> None:
        corners = [self.vertices.add(v) for v in self.border.vertices]
        if len(set(corners)) != len(corners):
            raise InvalidBorderError("Border vertices collapse within tolerance",
                                     tolerance=self.tolerance)
        self.border_vertex_count = len(corners)

        centroid = self.border.centroid
        self.centroid_index = self.vertices.add(centroid)
        if self.centroid_index in corners:
            raise InvalidBorderError("Border centroid coincides with a border vertex")

        n = len(corners)
        for i in range(n):
            a, b = corners[i], corners[(i + 1) % n]
            if apex_height(centroid, self.vertices[a], self.vertices[b]) <= self.tolerance:
                raise InvalidBorderError("Border is not star-shaped around its centroid", edge=i)
            self._store((self.centroid_index, a, b))

        self._legalize()

    def _edge_owners(self) -> Dict[SegmentKey, List[int]]:
        owners: Dict[SegmentKey, List[int]] = defaultdict(list)
        for tid, (a, b, c) in self._triangles.items():
            for edge in ((a, b), (b, c), (c, a)):
                owners[segment_key(*edge)].append(tid)
        return owners

    def _legalize(self) -> None:
        """Lawson-flip the seed fan until every triangle has an empty circumcircle."""
        flips = 0
        limit = 4 * len(self._triangles) ** 2 + 16
        changed = True
        while changed:
            changed = False
            owners = self._edge_owners()
            for key in sorted(owners):
                tids = owners[key]
                if len(tids) == 2 and self._flip_if_illegal(tids[0], tids[1]):
                    flips += 1
                    if flips > limit:
                        raise DegenerateTriangulationError("Seed fan legalization did not converge",
                                                           flips=flips)
                    changed = True
                    break

        if flips:
            logger.debug("Legalized seed fan", flips=flips)

    def _flip_if_illegal(self, first_id: int, second_id: int) -> bool:
        first = self._triangles[first_id]
        second = self._triangles[second_id]
        shared = set(first) & set(second)
        c = next(v for v in first if v not in shared)
        d = next(v for v in second if v not in shared)

        if not self._circles[first_id].strictly_contains(self.vertices[d], self.tolerance):
            return False

        # first reads (a, b, c) counter-clockwise, second reads (b, a, d)
        i = first.index(c)
        a, b = first[(i + 1) % 3], first[(i + 2) % 3]
        pa, pb, pc, pd = (self.vertices[v] for v in (a, b, c, d))
        if apex_height(pc, pa, pd) <= self.tolerance or apex_height(pc, pd, pb) <= self.tolerance:
            return False

        self._discard(first_id)
        self._discard(second_id)
        self._store((a, d, c))
        self._store((d, b, c))
        return True

    def _arrange_hole(self, boundary: List[Tuple[int, int]], point: Point) -> List[Tuple[int, int]]:
        """Chain the hole's boundary edges into one ordered vertex cycle."""
        outgoing: Dict[int, List[Tuple[int, int]]] = defaultdict(list)
        for edge in boundary:
            outgoing[edge[0]].append(edge)

        current = boundary[0]
        start = current[0]
        cycle = [current]
        while current[1] != start:
            continuations = outgoing.get(current[1], [])
            if len(continuations) != 1:
                raise DegenerateTriangulationError(
                    "Hole boundary does not chain into a single cycle",
                    x=point.x, y=point.y, vertex=current[1], continuations=len(continuations))
            current = continuations[0]
            cycle.append(current)
            if len(cycle) > len(boundary):
                raise DegenerateTriangulationError("Hole boundary chaining did not terminate",
                                                   x=point.x, y=point.y)

        if len(cycle) != len(boundary):
            raise DegenerateTriangulationError("Hole boundary splits into several cycles",
                                               x=point.x, y=point.y,
                                               edges=len(boundary), chained=len(cycle))
        return cycle

    def insert_point(self, point: Point) -> int:
        """Insert one point, leaving the triangulation untouched on failure.

        Returns:
            Arena index of the inserted vertex

        Raises:
            DegenerateTriangulationError: If the point duplicates a vertex, lies
                outside every circumcircle, or the hole cannot be re-fanned
        """
        existing = self.vertices.find(point)
        if existing is not None:
            raise DegenerateTriangulationError("Point coincides with an existing vertex",
                                               x=point.x, y=point.y, vertex=existing)

        bad = [tid for tid, circle in self._circles.items() if circle.contains(point)]
        if not bad:
            raise DegenerateTriangulationError("Point lies outside every circumcircle",
                                               x=point.x, y=point.y)

        edge_count: Counter = Counter()
        directed: List[Tuple[int, int]] = []
        for tid in bad:
            a, b, c = self._triangles[tid]
            for edge in ((a, b), (b, c), (c, a)):
                edge_count[segment_key(*edge)] += 1
                directed.append(edge)
        boundary = [edge for edge in directed if edge_count[segment_key(*edge)] == 1]

        cycle = self._arrange_hole(boundary, point)

        fan = []
        for a, b in cycle:
            if apex_height(point, self.vertices[a], self.vertices[b]) <= self.tolerance:
                raise DegenerateTriangulationError("Re-fanned triangle would be degenerate",
                                                   x=point.x, y=point.y, edge=(a, b))
            fan.append((a, b))

        index = self.vertices.add(point)
        for tid in bad:
            self._discard(tid)
        for a, b in fan:
            if a == index or b == index:
                continue
            self._store((index, a, b))
        return index

    def _perturb(self, point: Point, attempt: int) -> Point:
        radius = self.options.perturbation_scale * self.border.diameter * attempt
        for _ in range(8):
            angle = self.prng.uniform(0, 2 * math.pi)
            candidate = Point(point.x + radius * math.cos(angle), point.y + radius * math.sin(angle))
            if self.border.contains(candidate) and not self.border.on_boundary(candidate, self.tolerance):
                return candidate
        return point

    def add_point(self, point: Point) -> Optional[int]:
        """Insert a point, retrying with small perturbations when it is degenerate.

        Returns:
            Arena index of the new vertex, or None if the point was skipped
        """
        if self.vertices.find(point) is not None:
            logger.debug("Skipping duplicate point", x=point.x, y=point.y)
            self.skipped.append(point)
            return None

        candidate = point
        last_error = None
        for attempt in range(self.options.degenerate_retries + 1):
            try:
                index = self.insert_point(candidate)
            except DegenerateTriangulationError as error:
                last_error = error
                candidate = self._perturb(point, attempt + 1)
                continue
            self.inserted.append(index)
            return index

        if not self.options.skip_degenerate_points:
            raise last_error
        logger.warning("Skipping degenerate point", x=point.x, y=point.y,
                       attempts=self.options.degenerate_retries + 1, error=str(last_error))
        self.skipped.append(point)
        return None

    def result(self) -> Triangulation:
        return Triangulation(
            vertices=self.vertices,
            triangles=list(self._triangles.values()),
            border_vertex_count=self.border_vertex_count,
            centroid_index=self.centroid_index,
            inserted=list(self.inserted),
            skipped=list(self.skipped),
        )


def triangulate(border: Polygon, points: Sequence[Point], tolerance: float,
                options: Optional[TessellationOptions] = None,
                prng: Optional[AleaPRNG] = None) -> Triangulation:
    """Triangulate the border fan plus the given points.

    Args:
        border: Counter-clockwise border polygon
        points: Points to insert, in insertion order
        tolerance: Absolute merge/degeneracy distance
        options: Recovery options
        prng: Random source for perturbations

    Returns:
        Triangulation whose triangles have empty circumcircles
    """
    triangulator = DelaunayTriangulator(border, tolerance, options, prng)
    for point in points:
        triangulator.add_point(point)

    result = triangulator.result()
    logger.debug("Triangulation built", vertices=len(result.vertices),
                 triangles=len(result.triangles), skipped=len(result.skipped))
    return result
