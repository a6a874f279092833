from typing import Any, Dict, List, Optional
from datetime import date, datetime
from pydantic import BaseModel, Field, validator

from compliance_kb.core.config import settings
from compliance_kb.models.chunk import SourceType

# Largest value an INTEGER column holds
MAX_STORED_INTEGER = 2**63 - 1


def _unique(values: List[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


class ChunkCreate(BaseModel):
    """
    Chunk as supplied by the ingestion side.
    Derived fields (preview, search text, word count) are never accepted here.
    """
    source_type: SourceType
    source_id: str = Field(..., min_length=1)
    source_title: str = Field(..., min_length=1)
    source_number: Optional[str] = None
    section: Optional[str] = None
    section_title: Optional[str] = None
    content: str
    page_number: Optional[int] = Field(None, ge=0, le=MAX_STORED_INTEGER)
    keywords: List[str] = Field(default_factory=list)
    regulatory_refs: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    version: str = "1.0"
    effective_date: Optional[date] = None

    @validator('source_id', 'source_number', 'section', pre=True)
    def coerce_identifier(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @validator('content')
    def validate_content(cls, v):
        if not v or not v.strip():
            raise ValueError("content cannot be empty")
        return v

    @validator('source_title')
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError("source_title cannot be blank")
        return v

    @validator('keywords', 'regulatory_refs', 'categories', pre=True)
    def none_as_empty(cls, v):
        return [] if v is None else v

    @validator('keywords')
    def normalize_keywords(cls, v):
        return _unique([k.strip().lower() for k in v])

    @validator('regulatory_refs', 'categories')
    def dedupe(cls, v):
        return _unique([item.strip() for item in v])


class Chunk(BaseModel):
    """Stored chunk, including the fields derived at write time."""
    id: str
    tenant_id: str
    source_type: SourceType
    source_id: str
    source_title: str
    source_number: Optional[str] = None
    section: Optional[str] = None
    section_title: Optional[str] = None
    content: str
    content_preview: str
    page_number: Optional[int] = None
    keywords: List[str] = Field(default_factory=list)
    regulatory_refs: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    version: str = "1.0"
    effective_date: Optional[date] = None
    indexed_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    search_text: str
    word_count: int

    class Config:
        from_attributes = True


class SearchResult(Chunk):
    relevance_score: int = Field(..., ge=0, le=100)
    matched_terms: List[str] = Field(default_factory=list)


class SearchOptions(BaseModel):
    source_types: Optional[List[SourceType]] = None
    categories: Optional[List[str]] = None
    regulatory_ref: Optional[str] = None
    max_results: int = Field(default_factory=lambda: settings.DEFAULT_MAX_RESULTS, ge=0)


class SearchRequest(SearchOptions):
    query: str


class BatchError(BaseModel):
    chunk_data: Any
    error: str


class BatchResult(BaseModel):
    created: int = 0
    errors: List[BatchError] = Field(default_factory=list)


class DeleteResult(BaseModel):
    deleted: int


class SourceTypeInfo(BaseModel):
    id: SourceType
    name: str
    description: str
