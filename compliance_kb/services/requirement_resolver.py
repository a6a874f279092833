from typing import Callable, List, Optional, Set, TypeVar
import logging

from sqlalchemy.orm import Session

from compliance_kb.core.constants import COMPLIANCE_TERMS, MISSING_POLICY_GAP
from compliance_kb.core.exceptions import KnowledgeBaseError
from compliance_kb.models.chunk import SourceType
from compliance_kb.schemas.chunk import Chunk, SearchOptions, SearchResult
from compliance_kb.schemas.requirement import (
    Gap,
    Requirement,
    RequirementMatches,
    SuggestedPolicyMatch,
)
from compliance_kb.services.chunk_store import ChunkStore
from compliance_kb.services.search_service import SearchService, rank_results, to_search_result

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_DIRECT_MATCHES = 5
MAX_RELATED_MATCHES = 10
MAX_POLICY_CHUNKS = 3
MAX_GUIDANCE_KEYWORDS = 3
MAX_MATCHES_PER_KEYWORD = 2


def extract_keywords(text: str) -> List[str]:
    """Vocabulary terms present in the text, in vocabulary order."""
    text_lower = text.lower()
    return [term for term in COMPLIANCE_TERMS if term in text_lower]


class RequirementResolver:
    """
    Collects the documentation relevant to one compliance requirement.

    Combines regulatory-reference lookup, free-text search, suggested policy
    checks and guidance keyword lookup. A failing lookup counts as no match,
    so reviewers still get a partial answer.
    """

    def __init__(self, db: Session, store: Optional[ChunkStore] = None, search_service: Optional[SearchService] = None):
        self.store = store or ChunkStore(db)
        self.search_service = search_service or SearchService(db, store=self.store)

    def resolve(self, tenant_id: str, requirement: Requirement) -> RequirementMatches:
        matches = RequirementMatches()
        query_text = requirement.short_text or requirement.text
        seen_ids: Set[str] = set()

        # 1. Direct hits on the regulatory reference
        if requirement.regulatory_ref:
            chunks = self._safe(
                "regulatory ref lookup",
                lambda: self.store.find_by_regulatory_ref(tenant_id, requirement.regulatory_ref),
            )
            for chunk in chunks[:MAX_DIRECT_MATCHES]:
                matches.direct_matches.append(to_search_result(chunk, query_text))
                seen_ids.add(chunk.id)

        # 2. Free-text relevance
        text_matches = self._safe(
            "text search",
            lambda: self.search_service.search(
                tenant_id, query_text, SearchOptions(max_results=MAX_RELATED_MATCHES)
            ),
        )
        for result in text_matches:
            if result.id not in seen_ids:
                matches.related_matches.append(result)
                seen_ids.add(result.id)

        # 3. Policies the requirement expects to exist
        for policy_number in requirement.suggested_policies:
            policy_chunks = self._safe(
                f"policy {policy_number} lookup",
                lambda: self.search_service.search(
                    tenant_id,
                    policy_number,
                    SearchOptions(source_types=[SourceType.POLICY], max_results=MAX_POLICY_CHUNKS),
                ),
            )
            if policy_chunks:
                matches.suggested_policies.append(
                    SuggestedPolicyMatch(policy_number=policy_number, found=True, chunks=policy_chunks)
                )
            else:
                matches.gaps.append(Gap(
                    type=MISSING_POLICY_GAP,
                    policy_number=policy_number,
                    message=f"Policy {policy_number} not found in knowledge base"
                ))

        # 4. Guidance keywords
        if requirement.guidance:
            for keyword in extract_keywords(requirement.guidance)[:MAX_GUIDANCE_KEYWORDS]:
                keyword_chunks: List[Chunk] = self._safe(
                    f"keyword '{keyword}' lookup",
                    lambda: self.store.find_by_keyword(tenant_id, keyword),
                )
                novel = [c for c in keyword_chunks if c.id not in seen_ids][:MAX_MATCHES_PER_KEYWORD]
                for chunk in novel:
                    matches.related_matches.append(to_search_result(chunk, query_text))
                    seen_ids.add(chunk.id)

        matches.direct_matches = rank_results(matches.direct_matches)
        matches.related_matches = rank_results(matches.related_matches)[:MAX_RELATED_MATCHES]

        logger.info(
            f"Resolved requirement for tenant {tenant_id}: "
            f"{len(matches.direct_matches)} direct, {len(matches.related_matches)} related, "
            f"{len(matches.gaps)} gaps"
        )
        return matches

    @staticmethod
    def _safe(description: str, lookup: Callable[[], List[T]]) -> List[T]:
        try:
            return lookup()
        except KnowledgeBaseError as e:
            logger.warning(f"{description} failed, treating as no match: {e}")
            return []
