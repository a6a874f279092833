from sqlalchemy import Column, String, Text, Integer, Date, DateTime, JSON, Index
from datetime import datetime
import enum
from compliance_kb.core.database import Base

class SourceType(str, enum.Enum):
    POLICY = "policy"
    PROJECT = "project"
    EQUIPMENT = "equipment"
    CREW = "crew"
    UPLOAD = "upload"

class KnowledgeChunk(Base):
    """
    One independently retrievable piece of a source document, owned by a tenant.
    """
    __tablename__ = "knowledge_chunks"

    # Insertion sequence; search ties are broken on it
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), unique=True, index=True, nullable=False)
    tenant_id = Column(String, index=True, nullable=False)

    # Source identification
    source_type = Column(String, nullable=False)
    source_id = Column(String, nullable=False)
    source_title = Column(Text, nullable=False)
    source_number = Column(String, nullable=True)

    # Content
    section = Column(String, nullable=True)
    section_title = Column(Text, nullable=True)
    content = Column(Text, nullable=False)
    content_preview = Column(Text, nullable=False)
    page_number = Column(Integer, nullable=True)

    keywords = Column(JSON, default=list)
    regulatory_refs = Column(JSON, default=list)
    categories = Column(JSON, default=list)

    version = Column(String, default="1.0")
    effective_date = Column(Date, nullable=True)
    indexed_at = Column(DateTime, default=datetime.utcnow)
    last_updated = Column(DateTime, default=datetime.utcnow)

    # Derived at write time
    search_text = Column(Text, nullable=False)
    word_count = Column(Integer, nullable=False)

    __table_args__ = (
        Index("ix_knowledge_chunks_source", "tenant_id", "source_type", "source_id"),
    )
