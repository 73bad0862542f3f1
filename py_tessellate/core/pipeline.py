"""
Tessellation pipeline.

The border is triangulated, the triangulation is dualized, the dual is
clipped to the border and finally traced into faces. Every stage is a
function from one TessellationState to the next; nothing is shared between
stages except through that state. A cancellation token and a deadline are
checked between stages, and an optional observer receives a snapshot of the
geometry after each stage (e.g. to animate the construction).
"""

import threading
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple, Union

import structlog

from .alea_prng import AleaPRNG
from .arena import SegmentSet
from .assembler import assemble_polygons
from .clipper import chop_border, fix_border_winding
from .delaunay import Triangulation, sample_points, triangulate
from .errors import InvalidBorderError, TessellationCancelledError
from .options import TessellationOptions
from .primitives import Point, Polygon, Segment
from .voronoi_dual import build_voronoi_dual

logger = structlog.get_logger()

Seed = Union[int, str]
BorderLike = Union[Polygon, Sequence]


class PipelineStage(str, Enum):
    TRIANGULATE = "triangulate"
    DUAL = "dual"
    CHOP = "chop"
    WINDING = "winding"
    ASSEMBLE = "assemble"


@dataclass(frozen=True)
class StageSnapshot:
    """Immutable view of the live geometry right after a stage finished."""
    stage: PipelineStage
    points: Tuple[Point, ...]
    segments: Tuple[Segment, ...]
    polygons: Tuple[Polygon, ...]


Observer = Callable[[StageSnapshot], None]


class CancellationToken:
    """Thread-safe flag a caller can set to abort before the next stage."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class TessellationState:
    border: Polygon
    tolerance: float
    diameter: float
    triangulation: Optional[Triangulation] = None
    segments: Optional[SegmentSet] = None
    polygons: Tuple[Polygon, ...] = ()


@dataclass
class TessellationResult:
    """Output polygons plus the intermediate products worth keeping."""
    polygons: List[Polygon]
    border: Polygon
    triangulation: Triangulation
    stages: List[PipelineStage]
    elapsed_seconds: float

    @property
    def sites(self) -> List[Point]:
        return self.triangulation.sites

    @property
    def skipped_points(self) -> List[Point]:
        return self.triangulation.skipped


def prepare_border(border: BorderLike, options: Optional[TessellationOptions] = None) -> Polygon:
    """Validate a border and normalize it to counter-clockwise winding.

    Args:
        border: Polygon or sequence of (x, y) pairs; a repeated closing vertex is allowed
        options: Supplies the tolerance and the convexity requirement

    Returns:
        Counter-clockwise border polygon

    Raises:
        InvalidBorderError: If the border has fewer than 3 distinct vertices,
            zero area, or is not convex when convexity is required
    """
    options = options or TessellationOptions()
    raw = border.vertices if isinstance(border, Polygon) else border
    try:
        vertices = [v if isinstance(v, Point) else Point(float(v[0]), float(v[1])) for v in raw]
    except (TypeError, ValueError, IndexError) as e:
        raise InvalidBorderError("Border must be a sequence of (x, y) pairs") from e

    cleaned: List[Point] = []
    for vertex in vertices:
        if not cleaned or vertex != cleaned[-1]:
            cleaned.append(vertex)
    while len(cleaned) > 1 and cleaned[0] == cleaned[-1]:
        cleaned.pop()

    if len(set(cleaned)) < 3:
        raise InvalidBorderError("Border needs at least 3 distinct vertices",
                                 vertices=len(set(cleaned)))
    try:
        polygon = Polygon(tuple(cleaned))
    except ValueError as e:
        raise InvalidBorderError(str(e)) from e

    diameter = polygon.diameter
    if polygon.area <= options.tolerance * diameter * diameter:
        raise InvalidBorderError("Border has zero area", area=polygon.signed_area)
    if not polygon.is_counter_clockwise:
        polygon = polygon.reversed()
    if options.require_convex_border and not polygon.is_convex:
        raise InvalidBorderError("Border is not convex")
    return polygon


def _check_interrupt(stage: PipelineStage, cancel_token: Optional[CancellationToken],
                     deadline: Optional[float]) -> None:
    if cancel_token is not None and cancel_token.cancelled:
        logger.info("Tessellation cancelled", before_stage=stage.value)
        raise TessellationCancelledError("Tessellation cancelled", stage=stage.value)
    if deadline is not None and time.monotonic() >= deadline:
        logger.info("Tessellation deadline passed", before_stage=stage.value)
        raise TessellationCancelledError("Tessellation deadline passed", stage=stage.value)


def _snapshot(stage: PipelineStage, state: TessellationState) -> StageSnapshot:
    if stage is PipelineStage.TRIANGULATE:
        triangulation = state.triangulation
        return StageSnapshot(stage, triangulation.vertices.points(), (),
                             tuple(triangulation.polygons()))
    if stage is PipelineStage.ASSEMBLE:
        return StageSnapshot(stage, (), (), state.polygons)

    segments = state.segments
    points = tuple(segments.points[i] for i in segments.used_points())
    return StageSnapshot(stage, points, segments.segments(), ())


def triangulate_stage(state: TessellationState, point_count: int,
                      options: TessellationOptions, prng: AleaPRNG) -> TessellationState:
    points = sample_points(state.border, point_count, prng, state.tolerance,
                           options.max_sampling_attempts)
    triangulation = triangulate(state.border, points, state.tolerance, options, prng)
    return replace(state, triangulation=triangulation)


def dual_stage(state: TessellationState, options: TessellationOptions) -> TessellationState:
    dual = build_voronoi_dual(state.triangulation, state.tolerance, state.diameter,
                              options.ray_strategy)
    return replace(state, segments=dual.segments)


def chop_stage(state: TessellationState) -> TessellationState:
    return replace(state, segments=chop_border(state.segments, state.border, state.tolerance))


def winding_stage(state: TessellationState) -> TessellationState:
    return replace(state, segments=fix_border_winding(state.segments, state.border, state.tolerance))


def assemble_stage(state: TessellationState) -> TessellationState:
    return replace(state, polygons=tuple(assemble_polygons(state.segments)))


def run_pipeline(border: BorderLike, point_count: int, seed: Seed, *,
                 options: Optional[TessellationOptions] = None,
                 observer: Optional[Observer] = None,
                 cancel_token: Optional[CancellationToken] = None,
                 deadline: Optional[float] = None) -> TessellationResult:
    """Run every stage and keep the intermediate products.

    Args:
        border: Region to tessellate
        point_count: Number of interior sites to sample
        seed: Seed for point sampling and perturbation
        options: Pipeline options
        observer: Called with a StageSnapshot after each stage
        cancel_token: Checked before each stage
        deadline: ``time.monotonic()`` timestamp checked before each stage

    Returns:
        TessellationResult with the face polygons and the triangulation

    Raises:
        GeometryError: If a stage cannot produce valid geometry
        TessellationCancelledError: If cancelled or past the deadline
    """
    if point_count < 0:
        raise ValueError(f"point_count must be non-negative, got {point_count}")

    options = options or TessellationOptions()
    polygon = prepare_border(border, options)
    diameter = polygon.diameter
    state = TessellationState(border=polygon, tolerance=options.tolerance * diameter,
                              diameter=diameter)
    prng = AleaPRNG(seed)

    logger.info("Tessellating region", border_vertices=polygon.vertex_count,
                point_count=point_count, seed=seed, ray_strategy=options.ray_strategy)
    started = time.monotonic()

    stages = [
        (PipelineStage.TRIANGULATE, lambda s: triangulate_stage(s, point_count, options, prng)),
        (PipelineStage.DUAL, lambda s: dual_stage(s, options)),
        (PipelineStage.CHOP, chop_stage),
        (PipelineStage.WINDING, winding_stage),
        (PipelineStage.ASSEMBLE, assemble_stage),
    ]
    completed: List[PipelineStage] = []
    for stage, run in stages:
        _check_interrupt(stage, cancel_token, deadline)
        state = run(state)
        completed.append(stage)
        if observer is not None:
            observer(_snapshot(stage, state))

    elapsed = time.monotonic() - started
    logger.info("Tessellation complete", polygons=len(state.polygons),
                skipped_points=len(state.triangulation.skipped), elapsed_seconds=round(elapsed, 4))
    return TessellationResult(
        polygons=list(state.polygons),
        border=polygon,
        triangulation=state.triangulation,
        stages=completed,
        elapsed_seconds=elapsed,
    )


def tessellate(border: BorderLike, point_count: int, seed: Seed, *,
               options: Optional[TessellationOptions] = None,
               observer: Optional[Observer] = None,
               cancel_token: Optional[CancellationToken] = None,
               deadline: Optional[float] = None) -> List[Polygon]:
    """Split the border into clipped Voronoi cells.

    Returns:
        Counter-clockwise cell polygons whose union is the border region
    """
    return run_pipeline(border, point_count, seed, options=options, observer=observer,
                        cancel_token=cancel_token, deadline=deadline).polygons


def tessellate_nested(border: BorderLike, point_counts: Sequence[int], seed: Seed, *,
                      options: Optional[TessellationOptions] = None,
                      cancel_token: Optional[CancellationToken] = None,
                      deadline: Optional[float] = None) -> List[Polygon]:
    """Tessellate repeatedly, using every cell of one level as the border of the next.

    Args:
        border: Outer region
        point_counts: Interior point count per level
        seed: Base seed; each region derives its own seed from level and index

    Returns:
        Cells of the deepest level
    """
    level = [prepare_border(border, options)]
    for depth, count in enumerate(point_counts):
        next_level: List[Polygon] = []
        for index, region in enumerate(level):
            next_level.extend(tessellate(region, count, f"{seed}:{depth}:{index}", options=options,
                                         cancel_token=cancel_token, deadline=deadline))
        logger.info("Nested level complete", depth=depth, regions=len(level), cells=len(next_level))
        level = next_level
    return level
