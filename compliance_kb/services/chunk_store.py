from typing import Any, Dict, Iterable, List, Optional, Union
from datetime import datetime
import logging
import uuid

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from compliance_kb.core.config import settings
from compliance_kb.core.exceptions import StorageError, ValidationError
from compliance_kb.models.chunk import KnowledgeChunk, SourceType
from compliance_kb.schemas.chunk import BatchError, BatchResult, Chunk, ChunkCreate

logger = logging.getLogger(__name__)

ChunkInput = Union[ChunkCreate, Dict[str, Any]]


def build_search_text(data: ChunkCreate) -> str:
    """Lower-cased concatenation of every field that search looks at."""
    parts = [
        data.source_title or "",
        data.section_title or "",
        data.content or "",
        *data.keywords,
        *data.regulatory_refs,
    ]
    return " ".join(parts).lower()


def _source_type_value(source_type: Union[SourceType, str]) -> str:
    return source_type.value if isinstance(source_type, SourceType) else str(source_type)


class ChunkStore:
    """
    Tenant-partitioned persistence for knowledge chunks.

    Every query is scoped by tenant_id. Writes larger than
    MAX_WRITES_PER_TRANSACTION are split across several commits and are only
    atomic per commit.
    """

    def __init__(self, db: Session, max_writes_per_transaction: Optional[int] = None):
        self.db = db
        self.max_writes = max_writes_per_transaction or settings.MAX_WRITES_PER_TRANSACTION

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def put(self, tenant_id: str, chunk_data: ChunkInput) -> Chunk:
        """Validate, derive and persist a single chunk."""
        row = self._build_row(tenant_id, chunk_data)
        self.db.add(row)
        self._commit("put")
        self.db.refresh(row)
        logger.debug(f"Indexed chunk {row.id} for {row.source_type}:{row.source_id}")
        return Chunk.model_validate(row)

    def put_batch(self, tenant_id: str, chunks: Iterable[ChunkInput]) -> BatchResult:
        """
        Index many chunks. Invalid items are reported in `errors` and skipped;
        valid ones are committed every `max_writes` rows.
        """
        self._require_tenant(tenant_id)
        result = BatchResult()
        pending = 0

        for chunk_data in chunks:
            try:
                row = self._build_row(tenant_id, chunk_data)
            except ValidationError as e:
                result.errors.append(BatchError(chunk_data=_describe(chunk_data), error=str(e)))
                continue

            self.db.add(row)
            pending += 1
            if pending == self.max_writes:
                self._commit("put_batch")
                result.created += pending
                pending = 0

        if pending:
            self._commit("put_batch")
            result.created += pending

        logger.info(
            f"Batch indexed {result.created} chunks for tenant {tenant_id} "
            f"({len(result.errors)} rejected)"
        )
        return result

    def delete_by_source(self, tenant_id: str, source_type: Union[SourceType, str], source_id: str) -> int:
        self._require_tenant(tenant_id)
        try:
            deleted = self.db.query(KnowledgeChunk).filter(
                KnowledgeChunk.tenant_id == tenant_id,
                KnowledgeChunk.source_type == _source_type_value(source_type),
                KnowledgeChunk.source_id == str(source_id)
            ).delete(synchronize_session=False)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Failed to delete chunks for {source_type}:{source_id}: {e}") from e
        self._commit("delete_by_source")
        logger.info(f"Deleted {deleted} chunks for {source_type}:{source_id} (tenant {tenant_id})")
        return deleted

    def clear_all(self, tenant_id: str) -> int:
        """Delete every chunk of the tenant, `max_writes` rows per transaction."""
        self._require_tenant(tenant_id)
        try:
            ids = [
                row.seq for row in self.db.query(KnowledgeChunk.seq)
                .filter(KnowledgeChunk.tenant_id == tenant_id)
                .all()
            ]
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Failed to read chunks for tenant {tenant_id}: {e}") from e

        for start in range(0, len(ids), self.max_writes):
            batch_ids = ids[start:start + self.max_writes]
            try:
                self.db.query(KnowledgeChunk).filter(
                    KnowledgeChunk.seq.in_(batch_ids)
                ).delete(synchronize_session=False)
            except SQLAlchemyError as e:
                self.db.rollback()
                raise StorageError(f"Failed to clear chunks for tenant {tenant_id}: {e}") from e
            self._commit("clear_all")

        logger.info(f"Cleared {len(ids)} chunks for tenant {tenant_id}")
        return len(ids)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list(
        self,
        tenant_id: str,
        source_type: Optional[Union[SourceType, str]] = None,
        source_id: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Chunk]:
        query = self.db.query(KnowledgeChunk).filter(KnowledgeChunk.tenant_id == tenant_id)
        if source_type:
            query = query.filter(KnowledgeChunk.source_type == _source_type_value(source_type))
        if source_id:
            query = query.filter(KnowledgeChunk.source_id == str(source_id))
            query = query.order_by(KnowledgeChunk.indexed_at.desc(), KnowledgeChunk.seq.desc())
        else:
            query = query.order_by(KnowledgeChunk.source_title.asc(), KnowledgeChunk.seq.asc())
        if limit:
            query = query.limit(limit)
        return self._fetch(query)

    def candidates(self, tenant_id: str, source_types: Optional[Iterable[Union[SourceType, str]]] = None) -> List[Chunk]:
        """All chunks of the tenant in insertion order, optionally scoped to source types."""
        query = self.db.query(KnowledgeChunk).filter(KnowledgeChunk.tenant_id == tenant_id)
        if source_types:
            values = [_source_type_value(t) for t in source_types]
            query = query.filter(KnowledgeChunk.source_type.in_(values))
        return self._fetch(query.order_by(KnowledgeChunk.seq.asc()))

    def find_by_regulatory_ref(self, tenant_id: str, regulatory_ref: str) -> List[Chunk]:
        """Chunks whose regulatory_refs contain exactly this reference."""
        return [c for c in self.candidates(tenant_id) if regulatory_ref in c.regulatory_refs]

    def find_by_keyword(self, tenant_id: str, keyword: str) -> List[Chunk]:
        keyword = keyword.strip().lower()
        return [c for c in self.candidates(tenant_id) if keyword in c.keywords]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_row(self, tenant_id: str, chunk_data: ChunkInput) -> KnowledgeChunk:
        self._require_tenant(tenant_id)
        if isinstance(chunk_data, ChunkCreate):
            data = chunk_data
        else:
            try:
                data = ChunkCreate.model_validate(chunk_data)
            except PydanticValidationError as e:
                raise ValidationError(
                    _summarize_errors(e),
                    errors=e.errors(include_url=False, include_context=False, include_input=False)
                ) from e

        now = datetime.utcnow()
        return KnowledgeChunk(
            id=str(uuid.uuid4()),
            tenant_id=tenant_id,
            source_type=data.source_type.value,
            source_id=data.source_id,
            source_title=data.source_title,
            source_number=data.source_number,
            section=data.section,
            section_title=data.section_title,
            content=data.content,
            content_preview=data.content[:settings.CONTENT_PREVIEW_LENGTH],
            page_number=data.page_number,
            keywords=list(data.keywords),
            regulatory_refs=list(data.regulatory_refs),
            categories=list(data.categories),
            version=data.version,
            effective_date=data.effective_date,
            indexed_at=now,
            last_updated=now,
            search_text=build_search_text(data),
            word_count=len(data.content.split())
        )

    def _fetch(self, query) -> List[Chunk]:
        try:
            rows = query.all()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Failed to read knowledge chunks: {e}") from e
        return [Chunk.model_validate(row) for row in rows]

    def _commit(self, operation: str):
        # Driver errors (e.g. OverflowError on bind) are not SQLAlchemyErrors
        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"{operation} commit failed: {e}")
            raise StorageError(f"{operation} commit failed: {e}") from e

    @staticmethod
    def _require_tenant(tenant_id: str):
        if not tenant_id or not str(tenant_id).strip():
            raise ValidationError("tenant_id is required")


def _summarize_errors(error: PydanticValidationError) -> str:
    fields = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "chunk"
        fields.append(f"{location}: {item.get('msg')}")
    return "Invalid chunk - " + "; ".join(fields)


def _describe(chunk_data: ChunkInput) -> Any:
    if isinstance(chunk_data, ChunkCreate):
        return chunk_data.model_dump(mode="json")
    return chunk_data
