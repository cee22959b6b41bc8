"""Pydantic models for AI Code Tracker API requests and responses."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ReportRequest(BaseModel):
    """Request model for the report endpoint: exactly one of range or since."""

    range: Optional[str] = Field(
        None,
        description="Revision range to aggregate",
        examples=["main..HEAD"],
    )
    since: Optional[str] = Field(
        None,
        description="Date or shorthand (7d, 2w, 1m, 1y) of the oldest commit",
        examples=["7d"],
    )

    @field_validator("range", "since")
    @classmethod
    def must_not_look_like_option(cls, v):
        """Reject blank values and values git would read as an option."""
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("value cannot be empty")
        if v.startswith("-"):
            raise ValueError("value cannot start with '-'")
        return v

    @model_validator(mode="after")
    def exactly_one_target(self):
        if (self.range is None) == (self.since is None):
            raise ValueError("exactly one of range or since is required")
        return self


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(..., examples=["healthy"])
    version: str = Field(..., examples=["1.0.0"])
    git_available: bool = Field(..., examples=[True])
    git_version: Optional[str] = Field(None, examples=["2.43.0"])


class VersionResponse(BaseModel):
    """Response model for version endpoint."""

    version: str = Field(..., examples=["1.0.0"])
    api_version: str = Field(..., examples=["v1"])
    authorship_log_version: str = Field(..., examples=["1.0"])
    git_version: Optional[str] = Field(None, examples=["2.43.0"])
