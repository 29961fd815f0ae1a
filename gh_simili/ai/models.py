"""Pydantic models for AI processing responses."""

from pydantic import BaseModel, ConfigDict, Field


class RoutingResult(BaseModel):
    """Routing decision returned by the language model."""

    model_config = ConfigDict(extra="ignore")

    target_repo: str = Field(
        description="org/repo of the destination, or the current repo if it "
        "belongs there"
    )
    confidence: float = Field(ge=0.0, le=1.0, description="Confidence (0-1)")
    reason: str = Field(
        default="", description="Why the issue intent matches the repository"
    )
