"""
Function record models: the document format stored in the search index.
"""

from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field, field_validator


class FunctionRecord(BaseModel):
    """One indexed function declaration with its metadata and source text."""

    repo: str = Field(..., description="Repository name")
    file_path: str = Field(..., description="Path relative to the repository root")
    function_name: str = Field(..., description="Declared function or method name")
    code: str = Field("", description="Source text of the declaration, signature included")
    has_namedreturns: bool = Field(False, description="Whether any result parameter is named")
    has_error_handling: bool = Field(False, description="Whether the body contains an error guard")
    package: str = Field("", description="Package clause of the file")
    imports: List[str] = Field(default_factory=list, description="Imported paths in declaration order")
    lint_compliant: bool = Field(False, description="Reserved; always false")
    indexed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the record was extracted"
    )

    @field_validator('repo', 'file_path', 'function_name')
    @classmethod
    def validate_not_empty(cls, v):
        """Identity fields must be present."""
        if not v:
            raise ValueError("Field cannot be empty")
        return v

    @field_validator('imports', mode='before')
    @classmethod
    def default_imports(cls, v):
        """A null import list decodes to an empty one."""
        if v is None:
            return []
        return v

    def to_document(self) -> dict:
        """Serialize into the JSON document submitted to the store."""
        return self.model_dump(mode="json")

    @classmethod
    def from_document(cls, data: dict) -> "FunctionRecord":
        """Build a record from a stored document's source."""
        return cls.model_validate(data)


class SearchRequest(BaseModel):
    """Search request body accepted by the HTTP API."""

    query: str = Field("", description="Free-text query")
    limit: int = Field(10, description="Maximum number of results")


class SearchHit(BaseModel):
    """A single search hit."""

    source: FunctionRecord = Field(..., alias="_source")


class SearchHits(BaseModel):
    """Hits envelope of a search response."""

    hits: List[SearchHit] = Field(default_factory=list)


class SearchResponse(BaseModel):
    """Subset of the Elasticsearch search response that we consume."""

    hits: SearchHits = Field(default_factory=SearchHits)

    @property
    def records(self) -> List[FunctionRecord]:
        """Matched records in ranking order."""
        return [hit.source for hit in self.hits.hits]
