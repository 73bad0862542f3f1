"""Tunable knobs for the tessellation pipeline."""

from dataclasses import dataclass

RAY_STRATEGIES = ("bisector", "ray")


@dataclass
class TessellationOptions:
    """Pipeline options.

    Lengths are relative to the border diameter, so the same options work for
    a unit square and for a continent-sized region.
    """
    tolerance: float = 1e-9  # Point merge / on-line distance, relative to diameter
    ray_strategy: str = "bisector"  # "bisector" (compatible heuristic) or "ray"
    degenerate_retries: int = 3  # Perturbed re-insertions before giving up on a point
    perturbation_scale: float = 1e-6  # Perturbation radius, relative to diameter
    skip_degenerate_points: bool = True  # Skip and log instead of raising
    require_convex_border: bool = False
    max_sampling_attempts: int = 1000  # Rejection-sampling draws per requested point

    def __post_init__(self):
        if self.ray_strategy not in RAY_STRATEGIES:
            raise ValueError(f"Unknown ray strategy {self.ray_strategy!r}, expected one of {RAY_STRATEGIES}")
        if self.tolerance <= 0:
            raise ValueError("tolerance must be positive")
        if self.degenerate_retries < 0:
            raise ValueError("degenerate_retries must be non-negative")
