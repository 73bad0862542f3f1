"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings

from ..core.options import TessellationOptions


class Settings(BaseSettings):
    """Application settings pulled from environment variables and .env."""

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    # Tessellation Configuration
    default_point_count: int = Field(default=25, description="Interior points when a request omits them")
    max_point_count: int = Field(default=5000, description="Max interior points per request")
    tolerance: float = Field(default=1e-9, gt=0, description="Merge distance relative to border diameter")
    ray_strategy: str = Field(default="bisector", description="Open cell strategy (bisector or ray)")
    degenerate_retries: int = Field(default=3, ge=0, description="Perturbed retries per degenerate point")
    skip_degenerate_points: bool = Field(default=True, description="Skip points that stay degenerate")

    # Performance Configuration
    generation_timeout_seconds: float = Field(default=30.0, gt=0, description="Deadline per request in seconds")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    def tessellation_options(self, **overrides) -> TessellationOptions:
        """Build pipeline options from these settings."""
        values = dict(
            tolerance=self.tolerance,
            ray_strategy=self.ray_strategy,
            degenerate_retries=self.degenerate_retries,
            skip_degenerate_points=self.skip_degenerate_points,
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return TessellationOptions(**values)


# Instantiate singleton settings object
settings = Settings()
