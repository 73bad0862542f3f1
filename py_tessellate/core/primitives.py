"""
Geometric primitives shared by every tessellation stage.

Point, Segment, Circle and Polygon are immutable value types. Their predicates
are total over well-formed input: they answer questions about containment,
intersection and orientation without raising geometry errors.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, NamedTuple, Optional, Sequence, Tuple

# Parameter-space slack used by Segment.intersects
PARAMETRIC_EPSILON = 1e-10


@dataclass(frozen=True)
class Point:
    """A location in the plane. Equality is exact-value equality."""

    x: float
    y: float

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def distance_squared_to(self, other: "Point") -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy

    def distance_to(self, other: "Point") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


def cross(origin: Point, a: Point, b: Point) -> float:
    """Z component of (a - origin) x (b - origin). Positive when origin->a->b turns left."""
    return (a.x - origin.x) * (b.y - origin.y) - (a.y - origin.y) * (b.x - origin.x)


class Intersection(NamedTuple):
    """Outcome of a segment/segment intersection test.

    ``is_endpoint_touch`` is set when the meeting point coincides with an
    endpoint of either segment, as opposed to a crossing of both interiors.
    ``overlap`` marks collinear segments sharing more than a single point;
    no unique ``point`` exists in that case.
    """

    intersects: bool
    point: Optional[Point] = None
    is_endpoint_touch: bool = False
    overlap: bool = False


NO_INTERSECTION = Intersection(False)


@dataclass(frozen=True)
class Segment:
    """A straight edge between two distinct points.

    The segment is stored with a direction (``start`` -> ``end``) because the
    border cycle and the face walk need one, but its geometric identity is the
    unordered pair exposed through ``key``.
    """

    start: Point
    end: Point

    def __post_init__(self):
        if self.start == self.end:
            raise ValueError(f"Segment endpoints must be distinct, got {self.start} twice")

    @property
    def key(self) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        a = self.start.as_tuple()
        b = self.end.as_tuple()
        return (a, b) if a <= b else (b, a)

    def same_edge(self, other: "Segment") -> bool:
        return self.key == other.key

    @property
    def midpoint(self) -> Point:
        return Point((self.start.x + self.end.x) / 2, (self.start.y + self.end.y) / 2)

    @property
    def slope(self) -> float:
        dx = self.end.x - self.start.x
        if dx == 0:
            return math.inf
        return (self.end.y - self.start.y) / dx

    @property
    def length(self) -> float:
        return self.start.distance_to(self.end)

    @property
    def direction(self) -> Tuple[float, float]:
        return (self.end.x - self.start.x, self.end.y - self.start.y)

    def reversed(self) -> "Segment":
        return Segment(self.end, self.start)

    def has_endpoint(self, point: Point, tolerance: float = 0.0) -> bool:
        if tolerance <= 0:
            return point == self.start or point == self.end
        return (self.start.distance_to(point) <= tolerance
                or self.end.distance_to(point) <= tolerance)

    def other_end(self, point: Point) -> Point:
        if point == self.start:
            return self.end
        if point == self.end:
            return self.start
        raise ValueError(f"{point} is not an endpoint of {self}")

    def side_of(self, point: Point) -> float:
        """Positive when ``point`` is left of the directed segment, negative when right."""
        return cross(self.start, self.end, point)

    def distance_to_point(self, point: Point) -> float:
        dx, dy = self.direction
        t = ((point.x - self.start.x) * dx + (point.y - self.start.y) * dy) / (dx * dx + dy * dy)
        t = min(1.0, max(0.0, t))
        return math.hypot(self.start.x + t * dx - point.x, self.start.y + t * dy - point.y)

    def intersects(self, other: "Segment") -> Intersection:
        """Parametric intersection test against another segment.

        Args:
            other: Segment to test against

        Returns:
            Intersection describing a proper crossing, an endpoint touch,
            a collinear overlap, or no contact at all
        """
        rx, ry = self.direction
        sx, sy = other.direction
        qpx = other.start.x - self.start.x
        qpy = other.start.y - self.start.y

        denom = rx * sy - ry * sx
        r_len = math.hypot(rx, ry)
        s_len = math.hypot(sx, sy)

        if abs(denom) <= PARAMETRIC_EPSILON * r_len * s_len:
            # Parallel: only collinear segments can meet
            if abs(qpx * ry - qpy * rx) > PARAMETRIC_EPSILON * r_len * max(r_len, math.hypot(qpx, qpy)):
                return NO_INTERSECTION
            return self._collinear_intersection(other)

        t = (qpx * sy - qpy * sx) / denom
        u = (qpx * ry - qpy * rx) / denom
        eps = PARAMETRIC_EPSILON
        if t < -eps or t > 1 + eps or u < -eps or u > 1 + eps:
            return NO_INTERSECTION

        if abs(t) <= eps:
            return Intersection(True, self.start, True)
        if abs(t - 1) <= eps:
            return Intersection(True, self.end, True)
        if abs(u) <= eps:
            return Intersection(True, other.start, True)
        if abs(u - 1) <= eps:
            return Intersection(True, other.end, True)
        return Intersection(True, Point(self.start.x + t * rx, self.start.y + t * ry), False)

    def _collinear_intersection(self, other: "Segment") -> Intersection:
        rx, ry = self.direction
        rr = rx * rx + ry * ry
        t0 = ((other.start.x - self.start.x) * rx + (other.start.y - self.start.y) * ry) / rr
        t1 = ((other.end.x - self.start.x) * rx + (other.end.y - self.start.y) * ry) / rr
        low, high = min(t0, t1), max(t0, t1)
        eps = PARAMETRIC_EPSILON

        if high < -eps or low > 1 + eps:
            return NO_INTERSECTION
        if abs(high) <= eps:
            return Intersection(True, self.start, True)
        if abs(low - 1) <= eps:
            return Intersection(True, self.end, True)
        return Intersection(True, None, False, overlap=True)


def circumcircle(a: Point, b: Point, c: Point) -> "Circle":
    """Circle through three points.

    Raises:
        ValueError: If the points are collinear
    """
    bx, by = b.x - a.x, b.y - a.y
    cx, cy = c.x - a.x, c.y - a.y
    d = 2 * (bx * cy - by * cx)
    if d == 0:
        raise ValueError(f"Points {a}, {b}, {c} are collinear and have no circumcircle")

    b_sq = bx * bx + by * by
    c_sq = cx * cx + cy * cy
    ux = (cy * b_sq - by * c_sq) / d
    uy = (bx * c_sq - cx * b_sq) / d
    center = Point(a.x + ux, a.y + uy)
    return Circle(center, math.hypot(ux, uy))


@dataclass(frozen=True)
class Circle:
    center: Point
    radius: float

    def contains(self, point: Point) -> bool:
        """Closed-disk test: squared distance <= radius squared."""
        return self.center.distance_squared_to(point) <= self.radius * self.radius

    def strictly_contains(self, point: Point, tolerance: float = 0.0) -> bool:
        return self.center.distance_to(point) < self.radius - tolerance

    def to_polygon(self, sides: int, rotation: float = 0.0) -> "Polygon":
        """Regular polygon inscribed in this circle, counter-clockwise."""
        if sides < 3:
            raise ValueError(f"A polygon needs at least 3 sides, got {sides}")
        step = 2 * math.pi / sides
        return Polygon(tuple(
            Point(self.center.x + self.radius * math.cos(rotation + i * step),
                  self.center.y + self.radius * math.sin(rotation + i * step))
            for i in range(sides)
        ))


class Winding(Enum):
    CLOCKWISE = "clockwise"
    COUNTER_CLOCKWISE = "counter_clockwise"
    DEGENERATE = "degenerate"


@dataclass(frozen=True)
class Polygon:
    """An ordered ring of at least three distinct vertices (implicitly closed)."""

    vertices: Tuple[Point, ...]

    def __post_init__(self):
        vertices = tuple(self.vertices)
        object.__setattr__(self, "vertices", vertices)
        if len(vertices) < 3:
            raise ValueError(f"A polygon needs at least 3 vertices, got {len(vertices)}")
        if len(set(vertices)) != len(vertices):
            raise ValueError("Polygon vertices must be distinct")

    @classmethod
    def from_coords(cls, coords: Sequence) -> "Polygon":
        """Build a polygon from Points or (x, y) pairs."""
        return cls(tuple(
            c if isinstance(c, Point) else Point(float(c[0]), float(c[1])) for c in coords
        ))

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def edges(self) -> List[Segment]:
        n = len(self.vertices)
        return [Segment(self.vertices[i], self.vertices[(i + 1) % n]) for i in range(n)]

    @property
    def centroid(self) -> Point:
        """Vertex average (not the area centroid)."""
        n = len(self.vertices)
        return Point(sum(v.x for v in self.vertices) / n, sum(v.y for v in self.vertices) / n)

    @property
    def circumcircle(self) -> Circle:
        if len(self.vertices) != 3:
            raise ValueError(f"Circumcircle is only defined for triangles, got {len(self.vertices)} vertices")
        return circumcircle(*self.vertices)

    @property
    def signed_area(self) -> float:
        """Shoelace area, positive for counter-clockwise rings."""
        total = 0.0
        n = len(self.vertices)
        for i in range(n):
            a = self.vertices[i]
            b = self.vertices[(i + 1) % n]
            total += a.x * b.y - b.x * a.y
        return total / 2

    @property
    def area(self) -> float:
        return abs(self.signed_area)

    @property
    def winding(self) -> Winding:
        area = self.signed_area
        if area > 0:
            return Winding.COUNTER_CLOCKWISE
        if area < 0:
            return Winding.CLOCKWISE
        return Winding.DEGENERATE

    @property
    def is_counter_clockwise(self) -> bool:
        return self.winding is Winding.COUNTER_CLOCKWISE

    def reversed(self) -> "Polygon":
        return Polygon(self.vertices[::-1])

    @property
    def is_convex(self) -> bool:
        n = len(self.vertices)
        sign = 0
        for i in range(n):
            turn = cross(self.vertices[i], self.vertices[(i + 1) % n], self.vertices[(i + 2) % n])
            if turn == 0:
                continue
            if sign == 0:
                sign = 1 if turn > 0 else -1
            elif (turn > 0) != (sign > 0):
                return False
        return sign != 0

    def on_boundary(self, point: Point, tolerance: float = 0.0) -> bool:
        return any(edge.distance_to_point(point) <= tolerance for edge in self.edges)

    def contains(self, point: Point, tolerance: float = 0.0) -> bool:
        """Even-odd point-in-polygon test; points on the boundary count as inside."""
        if self.on_boundary(point, tolerance):
            return True

        inside = False
        n = len(self.vertices)
        j = n - 1
        for i in range(n):
            vi = self.vertices[i]
            vj = self.vertices[j]
            if (vi.y > point.y) != (vj.y > point.y):
                x_cross = vi.x + (point.y - vi.y) * (vj.x - vi.x) / (vj.y - vi.y)
                if point.x < x_cross:
                    inside = not inside
            j = i
        return inside

    @property
    def bounding_box(self) -> Tuple[float, float, float, float]:
        xs = [v.x for v in self.vertices]
        ys = [v.y for v in self.vertices]
        return (min(xs), min(ys), max(xs), max(ys))

    @property
    def diameter(self) -> float:
        """Length of the bounding box diagonal."""
        min_x, min_y, max_x, max_y = self.bounding_box
        return math.hypot(max_x - min_x, max_y - min_y)
