from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from compliance_kb.core.observability import LatencyTracker
from compliance_kb.schemas.chunk import Chunk, SearchOptions, SearchResult
from compliance_kb.services.chunk_store import ChunkStore
from compliance_kb.services.scoring import score_chunk

logger = logging.getLogger(__name__)


def to_search_result(chunk: Chunk, query: str) -> SearchResult:
    score, matched_terms = score_chunk(chunk, query)
    return SearchResult(**chunk.model_dump(), relevance_score=score, matched_terms=matched_terms)


def rank_results(results: List[SearchResult]) -> List[SearchResult]:
    """Highest score first; equal scores keep their incoming order."""
    return sorted(results, key=lambda r: r.relevance_score, reverse=True)


class SearchService:
    """
    Full scan, filter, score and rank over one tenant's chunks.

    There is no inverted index: every call reads the tenant's candidate set,
    which is fine while tenants hold a few thousand chunks.
    """

    def __init__(self, db: Session, store: Optional[ChunkStore] = None):
        self.store = store or ChunkStore(db)
        self.latency_tracker = LatencyTracker()

    def search(self, tenant_id: str, query: str, options: Optional[SearchOptions] = None) -> List[SearchResult]:
        options = options or SearchOptions()
        if not query or not query.strip():
            return []

        with self.latency_tracker.measure("search", tenant_id):
            candidates = self.store.candidates(tenant_id, options.source_types)
            categories = set(options.categories or [])
            regulatory_ref = (options.regulatory_ref or "").lower()

            results = []
            for chunk in candidates:
                if categories and not categories.intersection(chunk.categories):
                    continue
                if regulatory_ref and not any(regulatory_ref in ref.lower() for ref in chunk.regulatory_refs):
                    continue

                result = to_search_result(chunk, query)
                if result.relevance_score > 0:
                    results.append(result)

            ranked = rank_results(results)[:options.max_results]

        logger.info(
            f"Search '{query}' for tenant {tenant_id}: {len(candidates)} candidates, "
            f"{len(results)} scored, {len(ranked)} returned"
        )
        return ranked
