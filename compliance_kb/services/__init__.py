# Knowledge base services: storage, scoring, search and requirement lookup
from compliance_kb.services.chunk_store import ChunkStore
from compliance_kb.services.index_status import IndexStatusTracker
from compliance_kb.services.requirement_resolver import RequirementResolver
from compliance_kb.services.scoring import score_chunk
from compliance_kb.services.search_service import SearchService

__all__ = [
    "ChunkStore",
    "IndexStatusTracker",
    "RequirementResolver",
    "SearchService",
    "score_chunk"
]
