"""Cache key model."""

from pydantic import BaseModel, ConfigDict, Field


class CacheKey(BaseModel):
    """
    Stable identifier for a cached derivation.

    Uniquely identifies a cached value based on:
    - Step identity (id + version)
    - Input fingerprint (SHA256 of the canonicalized input)
    """

    model_config = ConfigDict(frozen=True)

    step_id: str = Field(description="Stable step identifier (e.g., 'graph.index')")
    step_version: str = Field(description="Step version string (bump on logic/schema changes)")
    input_fingerprint: str = Field(description="SHA256 hex digest of canonicalized inputs")

    def __str__(self) -> str:
        return f"{self.step_id}:{self.step_version}:{self.input_fingerprint[:12]}"
