"""Tests for the tessellation pipeline."""

import time

import pytest
from py_tessellate.core import (
    CancellationToken, InvalidBorderError, PipelineStage, Point, Polygon,
    TessellationCancelledError, TessellationOptions, prepare_border,
    run_pipeline, tessellate, tessellate_nested
)
from py_tessellate.core.primitives import Circle, cross

SQUARE = [(0, 0), (100, 0), (100, 100), (0, 100)]
HEXAGON = Circle(Point(400, 300), 300).to_polygon(6)
PENTAGON = Polygon.from_coords([(0, 0), (120, 10), (150, 90), (60, 140), (-20, 80)])


def is_convex_within(polygon, tolerance):
    vertices = polygon.vertices
    n = len(vertices)
    return all(
        cross(vertices[i], vertices[(i + 1) % n], vertices[(i + 2) % n]) >= -tolerance
        for i in range(n)
    )


class TestBorderPreparation:
    """Test border validation and normalization."""

    def test_clockwise_reversed(self):
        """Test that a clockwise border comes back counter-clockwise."""
        border = prepare_border(list(reversed(SQUARE)))
        assert border.is_counter_clockwise
        assert border.area == pytest.approx(10000)

    def test_closing_vertex_dropped(self):
        """Test that a repeated first vertex at the end is ignored."""
        border = prepare_border(SQUARE + [(0, 0)])
        assert border.vertex_count == 4

    @pytest.mark.parametrize("border", [
        [(0, 0), (10, 0)],
        [(0, 0), (10, 0), (0, 0)],
        [(0, 0), (5, 5), (10, 10)],
        [(0, 0), ("a", 1), (2, 2)],
    ])
    def test_invalid_borders(self, border):
        """Test rejection of short, repeating, collinear and malformed borders."""
        with pytest.raises(InvalidBorderError):
            prepare_border(border)

    def test_convexity_requirement(self):
        """Test the optional convex border check."""
        concave = [(0, 0), (10, 0), (10, 10), (5, 7), (0, 10)]
        assert prepare_border(concave).vertex_count == 5
        with pytest.raises(InvalidBorderError):
            prepare_border(concave, TessellationOptions(require_convex_border=True))


class TestTessellate:
    """Test end-to-end tessellation."""

    def test_square_without_points(self):
        """Test the five cells of an empty square: a diamond and four corners."""
        polygons = tessellate(SQUARE, 0, "empty")
        assert len(polygons) == 5
        areas = sorted(p.area for p in polygons)
        assert areas == pytest.approx([1250, 1250, 1250, 1250, 5000])
        assert sum(areas) == pytest.approx(10000)

    def test_triangle_without_points(self):
        """Test the hexagon and three corner cells of an empty triangle."""
        triangle = Circle(Point(0, 0), 100).to_polygon(3)
        polygons = tessellate(triangle, 0, "empty")
        assert len(polygons) == 4
        assert sorted(p.vertex_count for p in polygons) == [3, 3, 3, 6]
        assert sum(p.area for p in polygons) == pytest.approx(triangle.area)

    @pytest.mark.parametrize("border", [HEXAGON, PENTAGON])
    def test_partition(self, border):
        """Test that the cells tile the border with convex counter-clockwise faces."""
        result = run_pipeline(border, 30, "partition")
        scale = border.diameter
        assert len(result.polygons) == len(result.sites)
        assert sum(p.area for p in result.polygons) == pytest.approx(border.area, rel=1e-9)
        for polygon in result.polygons:
            assert polygon.signed_area > 0
            assert is_convex_within(polygon, 1e-9 * scale * scale)
            for vertex in polygon.vertices:
                assert border.contains(vertex, 1e-9 * scale)

    def test_one_site_per_cell(self):
        """Test that every site lies in exactly one cell."""
        result = run_pipeline(HEXAGON, 30, "sites")
        tolerance = 1e-9 * HEXAGON.diameter
        for site in result.sites:
            owners = [p for p in result.polygons if p.contains(site, tolerance)]
            assert len(owners) == 1

    def test_reproducible(self):
        """Test that the seed fixes the output."""
        first = tessellate(PENTAGON, 20, 1234)
        assert tessellate(PENTAGON, 20, 1234) == first
        assert tessellate(PENTAGON, 20, 4321) != first

    def test_clockwise_border_accepted(self):
        """Test that winding of the input border does not matter."""
        forward = tessellate(SQUARE, 10, "wind")
        backward = tessellate(list(reversed(SQUARE)), 10, "wind")
        assert len(forward) == len(backward) == 15
        assert sum(p.area for p in backward) == pytest.approx(10000)

    def test_ray_strategy(self):
        """Test that explicit rays also produce a partition."""
        options = TessellationOptions(ray_strategy="ray")
        result = run_pipeline(HEXAGON, 25, "rays", options=options)
        assert len(result.polygons) == len(result.sites)
        assert sum(p.area for p in result.polygons) == pytest.approx(HEXAGON.area, rel=1e-9)

    def test_negative_count(self):
        """Test that a negative point count is refused."""
        with pytest.raises(ValueError):
            tessellate(SQUARE, -1, 0)

    def test_not_star_shaped(self):
        """Test that a border the centroid fan cannot cover is rejected."""
        u_shape = [(0, 0), (100, 0), (100, 100), (90, 100), (90, 10), (10, 10), (10, 100), (0, 100)]
        with pytest.raises(InvalidBorderError):
            tessellate(u_shape, 5, 0)


class TestPipelineControl:
    """Test observers, cancellation and deadlines."""

    def test_observer_sees_every_stage(self):
        """Test that a snapshot arrives after each stage in order."""
        snapshots = []
        result = run_pipeline(SQUARE, 5, "observe", observer=snapshots.append)
        assert [s.stage for s in snapshots] == list(PipelineStage)
        assert result.stages == list(PipelineStage)
        assert len(snapshots[0].polygons) == len(result.triangulation.triangles)
        assert snapshots[1].segments
        assert snapshots[-1].polygons == tuple(result.polygons)

    def test_cancel_before_start(self):
        """Test that a cancelled token stops the pipeline immediately."""
        token = CancellationToken()
        token.cancel()
        with pytest.raises(TessellationCancelledError):
            tessellate(SQUARE, 5, 0, cancel_token=token)

    def test_cancel_between_stages(self):
        """Test cancelling from inside the observer."""
        token = CancellationToken()
        seen = []

        def observer(snapshot):
            seen.append(snapshot.stage)
            token.cancel()

        with pytest.raises(TessellationCancelledError) as info:
            tessellate(SQUARE, 5, 0, observer=observer, cancel_token=token)
        assert seen == [PipelineStage.TRIANGULATE]
        assert info.value.context["stage"] == "dual"

    def test_deadline_passed(self):
        """Test that an expired deadline aborts the run."""
        with pytest.raises(TessellationCancelledError):
            tessellate(SQUARE, 5, 0, deadline=time.monotonic() - 1)


class TestNested:
    """Test recursive subdivision."""

    def test_levels_preserve_area(self):
        """Test that the deepest cells still tile the outer border."""
        cells = tessellate_nested(SQUARE, [3, 2], "nested")
        assert len(cells) > 8
        assert sum(p.area for p in cells) == pytest.approx(10000, rel=1e-6)
        for cell in cells:
            assert cell.is_counter_clockwise

    def test_no_levels(self):
        """Test that an empty level list returns the prepared border."""
        cells = tessellate_nested(list(reversed(SQUARE)), [], 0)
        assert len(cells) == 1
        assert cells[0].is_counter_clockwise
