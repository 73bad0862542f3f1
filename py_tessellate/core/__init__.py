"""
Core tessellation functionality.
"""

from .primitives import Point, Segment, Circle, Polygon, Intersection, Winding
from .errors import (
    TessellationError, GeometryError, InvalidBorderError, DegenerateTriangulationError,
    NonManifoldEdgeError, DegenerateFaceError, BorderCycleError, TessellationCancelledError,
)
from .options import TessellationOptions
from .pipeline import (
    tessellate, tessellate_nested, run_pipeline, prepare_border,
    PipelineStage, StageSnapshot, CancellationToken, TessellationResult,
)

__all__ = ['Point', 'Segment', 'Circle', 'Polygon', 'Intersection', 'Winding',
           'TessellationError', 'GeometryError', 'InvalidBorderError',
           'DegenerateTriangulationError', 'NonManifoldEdgeError', 'DegenerateFaceError',
           'BorderCycleError', 'TessellationCancelledError', 'TessellationOptions',
           'tessellate', 'tessellate_nested', 'run_pipeline', 'prepare_border',
           'PipelineStage', 'StageSnapshot', 'CancellationToken', 'TessellationResult']
