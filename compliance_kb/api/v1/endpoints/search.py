from typing import Any, List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from compliance_kb.core.database import get_db
from compliance_kb.schemas.chunk import SearchOptions, SearchRequest, SearchResult
from compliance_kb.schemas.requirement import Requirement, RequirementMatches
from compliance_kb.services.requirement_resolver import RequirementResolver
from compliance_kb.services.search_service import SearchService

router = APIRouter()

@router.post("/{tenant_id}/search", response_model=List[SearchResult])
def search_knowledge_base(
    tenant_id: str,
    search_in: SearchRequest,
    db: Session = Depends(get_db),
) -> Any:
    """
    Free-text search over the tenant's chunks, best match first.
    """
    options = SearchOptions(**search_in.model_dump(exclude={"query"}))
    return SearchService(db).search(tenant_id, search_in.query, options)

@router.post("/{tenant_id}/requirements/resolve", response_model=RequirementMatches)
def resolve_requirement(
    tenant_id: str,
    requirement: Requirement,
    db: Session = Depends(get_db),
) -> Any:
    """
    Find documentation for a compliance requirement and report missing policies.
    """
    return RequirementResolver(db).resolve(tenant_id, requirement)
