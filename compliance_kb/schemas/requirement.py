from typing import List, Optional
from pydantic import BaseModel, Field, validator

from compliance_kb.schemas.chunk import SearchResult


class Requirement(BaseModel):
    """
    Compliance requirement to find documentation for.
    Owned by the caller; never persisted here.
    """
    text: str = Field(..., min_length=1)
    short_text: Optional[str] = None
    regulatory_ref: Optional[str] = None
    guidance: Optional[str] = None
    suggested_policies: List[str] = Field(
        default_factory=list,
        description="Source numbers of policies expected to cover this requirement"
    )

    @validator('suggested_policies', pre=True)
    def coerce_policy_numbers(cls, v):
        if v is None:
            return []
        if isinstance(v, (list, tuple)):
            return [
                str(item) if isinstance(item, int) and not isinstance(item, bool) else item
                for item in v
            ]
        return v


class SuggestedPolicyMatch(BaseModel):
    policy_number: str
    found: bool = True
    chunks: List[SearchResult] = Field(default_factory=list)


class Gap(BaseModel):
    """No indexed documentation exists for something the requirement needs."""
    type: str
    policy_number: str
    message: str


class RequirementMatches(BaseModel):
    direct_matches: List[SearchResult] = Field(default_factory=list)
    related_matches: List[SearchResult] = Field(default_factory=list)
    suggested_policies: List[SuggestedPolicyMatch] = Field(default_factory=list)
    gaps: List[Gap] = Field(default_factory=list)
