from compliance_kb.models.chunk import KnowledgeChunk, SourceType
from compliance_kb.models.index_status import IndexStatusRecord
