"""FastAPI main application."""

import time
from typing import Annotated, List, Optional, Union

import structlog
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ..config import configure_logging, settings
from ..core.errors import GeometryError, TessellationCancelledError
from ..core.pipeline import prepare_border, run_pipeline, tessellate_nested
from ..core.primitives import Point, Polygon
from ..core.relaxation import relax_polygons
from ..core.rivers import generate_river

configure_logging(settings.log_level, settings.log_format)

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Tessellation API",
    description="Voronoi tessellation of bounded regions over an incremental Delaunay triangulation",
    version="0.1.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class PointModel(BaseModel):
    """A 2D coordinate."""

    x: float
    y: float


class TessellationRequest(BaseModel):
    """Request to tessellate a bordered region."""

    border: List[PointModel] = Field(..., min_length=3, description="Border polygon vertices")
    point_count: int = Field(settings.default_point_count, ge=0, le=settings.max_point_count,
                             description="Number of interior sites")
    seed: Union[int, str] = Field(0, description="Seed for reproducible sampling")
    ray_strategy: Optional[str] = Field(None, pattern="^(bisector|ray)$",
                                        description="Open cell strategy override")
    relax_iterations: int = Field(0, ge=0, le=20, description="Vertex relaxation passes")
    include_river: bool = Field(False, description="Trace a river across the result")


class NestedTessellationRequest(BaseModel):
    """Request to tessellate a region level by level."""

    border: List[PointModel] = Field(..., min_length=3, description="Border polygon vertices")
    point_counts: List[Annotated[int, Field(ge=0, le=200)]] = Field(..., min_length=1, max_length=4,
                                    description="Interior sites per level")
    seed: Union[int, str] = Field(0, description="Base seed")


class PolygonModel(BaseModel):
    """One tessellation cell."""

    vertices: List[PointModel]
    area: float


class TessellationResponse(BaseModel):
    """Cells of a tessellation with summary statistics."""

    polygons: List[PolygonModel]
    polygon_count: int
    total_area: float
    border_area: float
    skipped_points: int = 0
    river: Optional[List[PointModel]] = None
    generation_time_seconds: float


def _to_polygon_model(polygon: Polygon) -> PolygonModel:
    return PolygonModel(
        vertices=[PointModel(x=v.x, y=v.y) for v in polygon.vertices],
        area=polygon.area,
    )


def _border_points(border: List[PointModel]) -> List[Point]:
    return [Point(p.x, p.y) for p in border]


def _deadline() -> float:
    return time.monotonic() + settings.generation_timeout_seconds


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Tessellation API",
        "version": "0.1.0",
        "endpoints": ["/tessellate", "/tessellate/nested", "/health"],
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post("/tessellate", response_model=TessellationResponse)
def create_tessellation(request: TessellationRequest):
    """Tessellate a border into clipped Voronoi cells."""
    logger.info("Tessellation requested", point_count=request.point_count,
                border_vertices=len(request.border), seed=request.seed)
    started = time.monotonic()

    try:
        options = settings.tessellation_options(ray_strategy=request.ray_strategy)
        result = run_pipeline(_border_points(request.border), request.point_count, request.seed,
                              options=options, deadline=_deadline())
        polygons = result.polygons
        if request.relax_iterations:
            polygons = relax_polygons(polygons, result.border, iterations=request.relax_iterations,
                                      tolerance=options.tolerance)
        river = None
        if request.include_river:
            course = generate_river(polygons, result.border, request.seed)
            river = [PointModel(x=p.x, y=p.y) for p in course.path]
    except TessellationCancelledError as e:
        logger.error("Tessellation timed out", error=str(e))
        raise HTTPException(status_code=504, detail=str(e))
    except GeometryError as e:
        logger.error("Tessellation failed", error=str(e))
        raise HTTPException(status_code=422, detail=str(e))

    return TessellationResponse(
        polygons=[_to_polygon_model(p) for p in polygons],
        polygon_count=len(polygons),
        total_area=sum(p.area for p in polygons),
        border_area=result.border.area,
        skipped_points=len(result.skipped_points),
        river=river,
        generation_time_seconds=time.monotonic() - started,
    )


@app.post("/tessellate/nested", response_model=TessellationResponse)
def create_nested_tessellation(request: NestedTessellationRequest):
    """Tessellate a border, then tessellate every resulting cell again."""
    logger.info("Nested tessellation requested", levels=request.point_counts, seed=request.seed)
    started = time.monotonic()
    border = _border_points(request.border)

    try:
        options = settings.tessellation_options()
        polygons = tessellate_nested(border, request.point_counts, request.seed,
                                     options=options, deadline=_deadline())
        border_area = prepare_border(border, options).area
    except TessellationCancelledError as e:
        logger.error("Nested tessellation timed out", error=str(e))
        raise HTTPException(status_code=504, detail=str(e))
    except GeometryError as e:
        logger.error("Nested tessellation failed", error=str(e))
        raise HTTPException(status_code=422, detail=str(e))

    return TessellationResponse(
        polygons=[_to_polygon_model(p) for p in polygons],
        polygon_count=len(polygons),
        total_area=sum(p.area for p in polygons),
        border_area=border_area,
        generation_time_seconds=time.monotonic() - started,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
