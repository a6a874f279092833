from sqlalchemy import Column, String, Integer, Boolean, DateTime, JSON
from datetime import datetime
from compliance_kb.core.database import Base

class IndexStatusRecord(Base):
    __tablename__ = "knowledge_index_status"

    tenant_id = Column(String, primary_key=True)
    is_indexed = Column(Boolean, default=False)
    last_indexed_at = Column(DateTime, nullable=True)
    total_chunks = Column(Integer, default=0)
    unique_sources = Column(Integer, default=0)
    by_source_type = Column(JSON, default=dict)
    by_category = Column(JSON, default=dict)
    regulatory_refs = Column(JSON, default=list)
    last_updated = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
