"""
Index-based storage for the live points and segments of a pipeline stage.

Points live in an append-only arena that merges near-coincident insertions
(e.g. a circumcenter computed twice along different paths), and segments are
index pairs into that arena. Adjacency is derived from indices instead of
back-references held on the points themselves.
"""

import math
from collections import defaultdict
from typing import Dict, Iterator, List, Optional, Set, Tuple

from .primitives import Point, Segment

SegmentKey = Tuple[int, int]


def segment_key(a: int, b: int) -> SegmentKey:
    """Unordered identity of the segment between arena slots ``a`` and ``b``."""
    return (a, b) if a < b else (b, a)


class PointArena:
    """Append-only point store with epsilon deduplication.

    A spatial hash with cells ``tolerance`` wide finds candidates in the 3x3
    neighbourhood of a query; any stored point within ``tolerance`` is reused.
    With a zero tolerance the arena falls back to exact-value matching.
    """

    def __init__(self, tolerance: float = 0.0):
        self.tolerance = tolerance
        self._points: List[Point] = []
        self._buckets: Dict[Tuple[int, int], List[int]] = defaultdict(list)
        self._exact: Dict[Point, int] = {}

    def _cell(self, point: Point) -> Tuple[int, int]:
        return (math.floor(point.x / self.tolerance), math.floor(point.y / self.tolerance))

    def find(self, point: Point) -> Optional[int]:
        """Index of a stored point within tolerance of ``point``, if any."""
        if point in self._exact:
            return self._exact[point]
        if self.tolerance <= 0:
            return None

        cx, cy = self._cell(point)
        best = None
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                for index in self._buckets.get((cx + dx, cy + dy), ()):
                    if self._points[index].distance_to(point) <= self.tolerance:
                        if best is None or index < best:
                            best = index
        return best

    def add(self, point: Point) -> int:
        existing = self.find(point)
        if existing is not None:
            return existing

        index = len(self._points)
        self._points.append(point)
        self._exact[point] = index
        if self.tolerance > 0:
            self._buckets[self._cell(point)].append(index)
        return index

    def __getitem__(self, index: int) -> Point:
        return self._points[index]

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[Point]:
        return iter(self._points)

    def points(self) -> Tuple[Point, ...]:
        return tuple(self._points)


class SegmentSet:
    """Live directed segments over a PointArena, keyed by unordered index pair.

    Border segments are tracked separately together with the index of the
    border polygon edge they were cut from.
    """

    def __init__(self, points: PointArena):
        self.points = points
        self._segments: Dict[SegmentKey, SegmentKey] = {}
        self._incident: Dict[int, Set[SegmentKey]] = defaultdict(set)
        self._border: Dict[SegmentKey, int] = {}

    def add(self, a: int, b: int, border_edge: Optional[int] = None) -> Optional[SegmentKey]:
        """Insert the directed segment a -> b.

        An existing segment with the same endpoints is kept as is, except that
        a border insertion claims it for the border and takes over its direction.

        Returns:
            The segment key, or None when both endpoints share an arena slot
        """
        if a == b:
            return None
        key = segment_key(a, b)
        if key in self._segments:
            if border_edge is not None:
                self._segments[key] = (a, b)
                self._border[key] = border_edge
            return key

        self._segments[key] = (a, b)
        self._incident[a].add(key)
        self._incident[b].add(key)
        if border_edge is not None:
            self._border[key] = border_edge
        return key

    def remove(self, key: SegmentKey) -> None:
        a, b = self._segments.pop(key)
        self._incident[a].discard(key)
        self._incident[b].discard(key)
        self._border.pop(key, None)

    def flip(self, key: SegmentKey) -> None:
        a, b = self._segments[key]
        self._segments[key] = (b, a)

    def directed(self, key: SegmentKey) -> SegmentKey:
        return self._segments[key]

    def segment(self, key: SegmentKey) -> Segment:
        a, b = self._segments[key]
        return Segment(self.points[a], self.points[b])

    def incident(self, index: int) -> List[SegmentKey]:
        return sorted(self._incident.get(index, ()))

    def degree(self, index: int) -> int:
        return len(self._incident.get(index, ()))

    def is_border(self, key: SegmentKey) -> bool:
        return key in self._border

    def border_edge_of(self, key: SegmentKey) -> int:
        return self._border[key]

    def border_keys(self) -> List[SegmentKey]:
        return list(self._border)

    def keys(self) -> List[SegmentKey]:
        return list(self._segments)

    def items(self) -> List[Tuple[SegmentKey, SegmentKey]]:
        return list(self._segments.items())

    def segments(self) -> Tuple[Segment, ...]:
        return tuple(self.segment(key) for key in self._segments)

    def used_points(self) -> List[int]:
        return sorted(index for index, keys in self._incident.items() if keys)

    def copy(self) -> "SegmentSet":
        clone = SegmentSet(self.points)
        clone._segments = dict(self._segments)
        clone._incident = defaultdict(set, {k: set(v) for k, v in self._incident.items()})
        clone._border = dict(self._border)
        return clone

    def __contains__(self, key: SegmentKey) -> bool:
        return key in self._segments

    def __len__(self) -> int:
        return len(self._segments)
