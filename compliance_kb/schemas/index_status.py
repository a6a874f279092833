from typing import Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

class IndexStatus(BaseModel):
    is_indexed: bool = False
    last_indexed_at: Optional[datetime] = None
    total_chunks: int = 0
    unique_sources: int = 0
    by_source_type: Dict[str, int] = Field(default_factory=dict)
    by_category: Dict[str, int] = Field(default_factory=dict)
    regulatory_refs: List[str] = Field(default_factory=list)

    class Config:
        from_attributes = True
