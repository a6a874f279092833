import os

# Keep the app's own engine off the filesystem during tests
os.environ.setdefault("SQLALCHEMY_DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from compliance_kb.main import app
from compliance_kb.core.database import Base, get_db
from compliance_kb.services.chunk_store import ChunkStore

# Use in-memory SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite://"

TENANT = "org-alpha"
OTHER_TENANT = "org-beta"

@pytest.fixture(scope="function")
def db_engine():
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture(scope="function")
def db(db_engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSessionLocal()
    yield session
    session.close()

@pytest.fixture(scope="function")
def client(db):
    def override_get_db():
        try:
            yield db
        finally:
            pass
    
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

@pytest.fixture
def store(db):
    return ChunkStore(db)

@pytest.fixture
def flight_review_chunk():
    return {
        "source_type": "policy",
        "source_id": "pol-1010",
        "source_title": "Policy 1010",
        "source_number": "1010",
        "content": "Pilots must complete Flight Review every 24 months",
        "regulatory_refs": ["CARs 901.56"],
    }

@pytest.fixture
def inspection_chunk():
    return {
        "source_type": "policy",
        "source_id": "pol-1009",
        "source_title": "Policy 1009",
        "source_number": "1009",
        "content": "Equipment is inspected before each flight",
    }

@pytest.fixture
def sample_chunks(flight_review_chunk, inspection_chunk):
    """A small mixed-source knowledge base."""
    return [
        flight_review_chunk,
        inspection_chunk,
        {
            "source_type": "policy",
            "source_id": "pol-1020",
            "source_title": "Policy 1020 Emergency Response",
            "source_number": "1020",
            "section": "3.1",
            "section_title": "Lost Link Procedures",
            "content": "If the C2 link is lost the aircraft returns to home automatically.",
            "keywords": ["Lost Link", "emergency"],
            "regulatory_refs": ["CARs 901.23"],
            "categories": ["operations"],
        },
        {
            "source_type": "crew",
            "source_id": "crew-7",
            "source_title": "Jordan Lee Training Record",
            "content": "Completed recurrent training and flight review in March.",
            "keywords": ["training", "pilot"],
            "categories": ["training"],
        },
        {
            "source_type": "equipment",
            "source_id": "eq-m300",
            "source_title": "M300 Maintenance Log",
            "content": "Maintenance inspection completed; propellers replaced.",
            "keywords": ["maintenance", "inspection"],
            "regulatory_refs": ["CARs 901.29"],
            "categories": ["maintenance"],
        },
    ]

@pytest.fixture
def seeded_store(store, sample_chunks):
    """Store with the sample knowledge base indexed for TENANT."""
    for chunk in sample_chunks:
        store.put(TENANT, chunk)
    return store
