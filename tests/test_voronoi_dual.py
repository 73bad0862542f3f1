"""Tests for the Voronoi dual builder."""

import pytest
from py_tessellate.core.arena import PointArena
from py_tessellate.core.delaunay import Triangulation, triangulate
from py_tessellate.core.errors import NonManifoldEdgeError
from py_tessellate.core.primitives import Circle, Point, Polygon
from py_tessellate.core.voronoi_dual import build_voronoi_dual, edge_neighbors

TOLERANCE = 1e-7


def single_triangle(*coords):
    arena = PointArena(TOLERANCE)
    for x, y in coords:
        arena.add(Point(x, y))
    return Triangulation(vertices=arena, triangles=[(0, 1, 2)],
                         border_vertex_count=3, centroid_index=-1)


def dual_points(dual):
    segments = dual.segments
    return {segments.points[i] for i in segments.used_points()}


class TestEdgeNeighbors:
    """Test the edge to triangle map."""

    def test_shared_edge(self):
        """Test that an interior edge lists both triangles."""
        owners = edge_neighbors([(0, 1, 2), (1, 0, 3)])
        assert owners[(0, 1)] == [0, 1]
        assert owners[(1, 2)] == [0]

    def test_non_manifold_edge(self):
        """Test that an edge with two neighbours is reported."""
        with pytest.raises(NonManifoldEdgeError):
            edge_neighbors([(0, 1, 2), (1, 0, 3), (0, 1, 4)])


class TestVoronoiDual:
    """Test circumcenter graph construction."""

    def test_square_fan_diamond(self):
        """Test that an empty square dualizes to the diamond of edge midpoints."""
        square = Polygon.from_coords([(0, 0), (100, 0), (100, 100), (0, 100)])
        dual = build_voronoi_dual(triangulate(square, [], TOLERANCE), TOLERANCE, square.diameter)
        assert len(dual.segments) == 4
        assert dual.open_edges == 4
        expected = {Point(50, 0), Point(100, 50), Point(50, 100), Point(0, 50)}
        assert dual_points(dual) == expected

    def test_circumcenters_outside_emit_no_rays(self):
        """Test that obtuse fan triangles only contribute interior dual edges."""
        triangle = Circle(Point(0, 0), 100).to_polygon(3)
        dual = build_voronoi_dual(triangulate(triangle, [], TOLERANCE), TOLERANCE, triangle.diameter)
        assert len(dual.segments) == 3
        for point in dual_points(dual):
            assert not triangle.contains(point)

    def test_bisector_rays(self):
        """Test that an acute triangle gets one mirrored bisector per open edge."""
        triangulation = single_triangle((0, 0), (10, 0), (5, 8))
        dual = build_voronoi_dual(triangulation, TOLERANCE, 100.0)
        assert len(dual.segments) == 3
        assert dual.open_edges == 3
        points = dual_points(dual)
        center = Point(5, 2.4375)
        assert any(p.distance_to(center) < 1e-9 for p in points)
        assert any(p.distance_to(Point(5, -2.4375)) < 1e-9 for p in points)

    def test_explicit_rays(self):
        """Test that the ray strategy reaches one diameter past each open edge."""
        triangulation = single_triangle((0, 0), (10, 0), (5, 8))
        dual = build_voronoi_dual(triangulation, TOLERANCE, 100.0, ray_strategy="ray")
        assert len(dual.segments) == 3
        points = dual_points(dual)
        assert any(p.distance_to(Point(5, -100)) < 1e-9 for p in points)

    def test_circumcenter_beyond_open_edge(self):
        """Test that an edge with the circumcenter on its far side gets no ray."""
        triangulation = single_triangle((0, 0), (10, 0), (5, 1))
        dual = build_voronoi_dual(triangulation, TOLERANCE, 100.0)
        assert len(dual.segments) == 2

    def test_circumcenters_per_triangle(self):
        """Test that every triangle maps to a circumcenter slot."""
        square = Polygon.from_coords([(0, 0), (100, 0), (100, 100), (0, 100)])
        triangulation = triangulate(square, [Point(30, 60), Point(70, 20)], TOLERANCE)
        dual = build_voronoi_dual(triangulation, TOLERANCE, square.diameter)
        assert len(dual.circumcenters) == len(triangulation.triangles)
        assert len(dual.segments) >= len(triangulation.triangles) - 1
