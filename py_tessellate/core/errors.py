"""
Error taxonomy for the tessellation pipeline.

Geometry predicates never raise these; only the stage-level algorithms do,
and a raised error aborts the whole tessellate call.
"""


class TessellationError(Exception):
    """Base class for every failure raised by the pipeline."""

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in sorted(self.context.items()))
        return f"{self.message} ({details})"


class GeometryError(TessellationError):
    """A stage could not produce valid geometry from its input."""


class InvalidBorderError(GeometryError):
    """Border has fewer than 3 distinct vertices, zero area, or an unusable shape."""


class DegenerateTriangulationError(GeometryError):
    """Hole boundary chaining did not form a single cycle (cocircular or collinear input)."""


class NonManifoldEdgeError(GeometryError):
    """A Delaunay edge is shared by more than two triangles."""


class DegenerateFaceError(GeometryError):
    """A face walk closed with fewer than 3 vertices or ran into a dead end."""


class BorderCycleError(GeometryError):
    """The border segments could not be walked as one closed cycle."""


class TessellationCancelledError(TessellationError):
    """Cancellation token fired or deadline passed between two stages."""
