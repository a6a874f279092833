from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from compliance_kb.core.constants import SOURCE_TYPE_CATALOG
from compliance_kb.core.database import get_db
from compliance_kb.models.chunk import SourceType
from compliance_kb.schemas.chunk import BatchResult, Chunk, DeleteResult, SourceTypeInfo
from compliance_kb.services.chunk_store import ChunkStore

router = APIRouter()

@router.get("/source-types", response_model=List[SourceTypeInfo])
def list_source_types() -> Any:
    """
    Kinds of source a chunk can be extracted from.
    """
    return [
        {"id": source_type, **info}
        for source_type, info in SOURCE_TYPE_CATALOG.items()
    ]

# Raw dicts so one bad item is reported instead of failing the whole request
@router.post("/{tenant_id}/chunks", response_model=Chunk, status_code=201)
def create_chunk(
    tenant_id: str,
    chunk_in: Dict[str, Any],
    db: Session = Depends(get_db),
) -> Any:
    return ChunkStore(db).put(tenant_id, chunk_in)

@router.post("/{tenant_id}/chunks/batch", response_model=BatchResult)
def create_chunks_batch(
    tenant_id: str,
    chunks_in: List[Any] = Body(...),
    db: Session = Depends(get_db),
) -> Any:
    """
    Index many chunks; invalid items come back in `errors`.
    """
    return ChunkStore(db).put_batch(tenant_id, chunks_in)

@router.get("/{tenant_id}/chunks", response_model=List[Chunk])
def list_chunks(
    tenant_id: str,
    source_type: Optional[SourceType] = None,
    source_id: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
) -> Any:
    return ChunkStore(db).list(tenant_id, source_type=source_type, source_id=source_id, limit=limit)

@router.get("/{tenant_id}/chunks/by-regulatory-ref", response_model=List[Chunk])
def find_by_regulatory_ref(
    tenant_id: str,
    ref: str,
    db: Session = Depends(get_db),
) -> Any:
    return ChunkStore(db).find_by_regulatory_ref(tenant_id, ref)

@router.get("/{tenant_id}/chunks/by-keyword", response_model=List[Chunk])
def find_by_keyword(
    tenant_id: str,
    keyword: str,
    db: Session = Depends(get_db),
) -> Any:
    return ChunkStore(db).find_by_keyword(tenant_id, keyword)

@router.delete("/{tenant_id}/chunks", response_model=DeleteResult)
def clear_chunks(
    tenant_id: str,
    db: Session = Depends(get_db),
) -> Any:
    """
    Remove every chunk of the tenant ahead of a full reindex.
    """
    return {"deleted": ChunkStore(db).clear_all(tenant_id)}

@router.delete("/{tenant_id}/sources/{source_type}/{source_id}", response_model=DeleteResult)
def delete_source_chunks(
    tenant_id: str,
    source_type: SourceType,
    source_id: str,
    db: Session = Depends(get_db),
) -> Any:
    return {"deleted": ChunkStore(db).delete_by_source(tenant_id, source_type, source_id)}
