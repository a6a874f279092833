from typing import Any, Dict, Optional
from datetime import datetime
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from compliance_kb.core.exceptions import StorageError, ValidationError
from compliance_kb.models.index_status import IndexStatusRecord
from compliance_kb.schemas.index_status import IndexStatus
from compliance_kb.services.chunk_store import ChunkStore

logger = logging.getLogger(__name__)


class IndexStatusTracker:
    """
    Per-tenant index statistics.

    The cached row is only rewritten by `refresh` (a full rescan) or an
    explicit `update`; reads never recompute it.
    """

    def __init__(self, db: Session):
        self.db = db
        self.store = ChunkStore(db)

    def get(self, tenant_id: str) -> IndexStatus:
        record = self._load(tenant_id)
        if record is None:
            return IndexStatus()
        return IndexStatus.model_validate(record)

    def update(self, tenant_id: str, **fields: Any) -> IndexStatus:
        """Merge the given fields into the cached status."""
        unknown = [key for key in fields if key not in IndexStatus.model_fields]
        if unknown:
            raise ValidationError(f"Unknown index status fields: {', '.join(sorted(unknown))}")

        record = self._load(tenant_id)
        if record is None:
            record = IndexStatusRecord(tenant_id=tenant_id)
            self.db.add(record)

        for key, value in fields.items():
            setattr(record, key, value)

        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            raise StorageError(f"Failed to save index status for tenant {tenant_id}: {e}") from e
        self.db.refresh(record)
        return IndexStatus.model_validate(record)

    def refresh(self, tenant_id: str) -> IndexStatus:
        """Recount everything from the tenant's chunks. O(total chunks)."""
        chunks = self.store.candidates(tenant_id)

        by_source_type: Dict[str, int] = {}
        by_category: Dict[str, int] = {}
        unique_sources = set()
        regulatory_refs: Dict[str, None] = {}

        for chunk in chunks:
            source_type = chunk.source_type.value
            by_source_type[source_type] = by_source_type.get(source_type, 0) + 1
            unique_sources.add((source_type, chunk.source_id))
            for category in chunk.categories:
                by_category[category] = by_category.get(category, 0) + 1
            for ref in chunk.regulatory_refs:
                regulatory_refs.setdefault(ref, None)

        status = self.update(
            tenant_id,
            is_indexed=len(chunks) > 0,
            last_indexed_at=datetime.utcnow(),
            total_chunks=len(chunks),
            unique_sources=len(unique_sources),
            by_source_type=by_source_type,
            by_category=by_category,
            regulatory_refs=list(regulatory_refs),
        )
        logger.info(f"Index status refreshed for tenant {tenant_id}: {status.total_chunks} chunks")
        return status

    def _load(self, tenant_id: str) -> Optional[IndexStatusRecord]:
        try:
            return self.db.get(IndexStatusRecord, tenant_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Failed to read index status for tenant {tenant_id}: {e}") from e
