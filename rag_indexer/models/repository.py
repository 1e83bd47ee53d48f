"""
Repository models for tracking local working copies and per-repository index results.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class RepositorySnapshot(BaseModel):
    """A locally materialized working copy of a remote repository."""

    name: str = Field(..., description="Repository name")
    path: str = Field(..., description="Local working copy path")
    url: str = Field(..., description="Remote URL the copy tracks")
    cloned: bool = Field(False, description="True when created by this sync, False when refreshed")
    head_commit: Optional[str] = Field(None, description="Commit checked out after the sync")


class RepositoryIndexResult(BaseModel):
    """Outcome of indexing one repository during an index run."""

    repo: str = Field(..., description="Repository name")
    functions_indexed: int = Field(0, description="Functions successfully stored")
    duration_seconds: float = Field(0.0, description="Wall time spent walking the repository")
    status: str = Field("completed", description="Outcome of the run")
    last_success: Optional[datetime] = Field(None, description="When the repository last indexed cleanly")
    error_message: Optional[str] = Field(None, description="Failure detail, if any")

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        """Validate status values."""
        valid_statuses = ['completed', 'failed']
        if v not in valid_statuses:
            raise ValueError(f"Status must be one of: {', '.join(valid_statuses)}")
        return v

    @field_validator('functions_indexed')
    @classmethod
    def validate_count(cls, v):
        """Validate function count values."""
        if v < 0:
            raise ValueError("Function count cannot be negative")
        return v
