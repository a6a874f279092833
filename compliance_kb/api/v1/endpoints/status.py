from typing import Any
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from compliance_kb.core.database import get_db
from compliance_kb.schemas.index_status import IndexStatus
from compliance_kb.services.index_status import IndexStatusTracker

router = APIRouter()

@router.get("/{tenant_id}/index-status", response_model=IndexStatus)
def get_index_status(
    tenant_id: str,
    db: Session = Depends(get_db),
) -> Any:
    """
    Last computed index statistics. May be stale until refreshed.
    """
    return IndexStatusTracker(db).get(tenant_id)

@router.post("/{tenant_id}/index-status/refresh", response_model=IndexStatus)
def refresh_index_status(
    tenant_id: str,
    db: Session = Depends(get_db),
) -> Any:
    return IndexStatusTracker(db).refresh(tenant_id)
