import pytest
from sqlalchemy.exc import OperationalError

from compliance_kb.core.exceptions import StorageError, ValidationError
from compliance_kb.models.chunk import SourceType
from compliance_kb.schemas.chunk import ChunkCreate
from compliance_kb.services.chunk_store import ChunkStore

from conftest import OTHER_TENANT, TENANT


def _chunk(index: int, **overrides):
    data = {
        "source_type": "upload",
        "source_id": f"doc-{index}",
        "source_title": f"Reference {index}",
        "content": f"Reference document number {index}",
    }
    data.update(overrides)
    return data


def _count_commits(db, monkeypatch):
    calls = []
    real_commit = db.commit

    def counting_commit():
        calls.append(1)
        real_commit()

    monkeypatch.setattr(db, "commit", counting_commit)
    return calls


def _failing_commit():
    raise OperationalError("COMMIT", {}, Exception("database is locked"))


class TestPut:
    def test_derives_fields(self, store, flight_review_chunk):
        chunk = store.put(TENANT, flight_review_chunk)

        assert chunk.id
        assert chunk.tenant_id == TENANT
        assert chunk.source_type == SourceType.POLICY
        assert chunk.content_preview == flight_review_chunk["content"]
        assert chunk.word_count == 8
        assert chunk.search_text == "policy 1010  pilots must complete flight review every 24 months cars 901.56"
        assert chunk.version == "1.0"
        assert chunk.indexed_at is not None

    def test_preview_is_first_200_chars(self, store):
        chunk = store.put(TENANT, _chunk(1, content="x" * 450))
        assert chunk.content_preview == "x" * 200
        assert len(chunk.content) == 450

    def test_accepts_chunk_create(self, store):
        chunk = store.put(TENANT, ChunkCreate(**_chunk(1)))
        assert chunk.source_id == "doc-1"

    def test_keywords_are_normalized(self, store):
        chunk = store.put(TENANT, _chunk(1, keywords=["Lost Link", "lost link ", "SORA"]))
        assert chunk.keywords == ["lost link", "sora"]

    @pytest.mark.parametrize("missing", ["source_type", "source_id", "source_title", "content"])
    def test_missing_required_field_is_rejected(self, store, missing):
        data = _chunk(1)
        del data[missing]
        with pytest.raises(ValidationError) as excinfo:
            store.put(TENANT, data)
        assert missing in str(excinfo.value)
        assert store.list(TENANT) == []

    def test_blank_content_is_rejected(self, store):
        with pytest.raises(ValidationError):
            store.put(TENANT, _chunk(1, content="   "))

    def test_unknown_source_type_is_rejected(self, store):
        with pytest.raises(ValidationError):
            store.put(TENANT, _chunk(1, source_type="spreadsheet"))

    def test_tenant_is_required(self, store):
        with pytest.raises(ValidationError):
            store.put("", _chunk(1))

    def test_same_chunk_twice_is_stored_twice(self, store, flight_review_chunk):
        first = store.put(TENANT, flight_review_chunk)
        second = store.put(TENANT, flight_review_chunk)
        assert first.id != second.id
        assert len(store.list(TENANT)) == 2

    def test_commit_failure_raises_storage_error(self, store, db, monkeypatch):
        monkeypatch.setattr(db, "commit", _failing_commit)
        with pytest.raises(StorageError):
            store.put(TENANT, _chunk(1))


class TestPutBatch:
    def test_bad_item_does_not_abort_batch(self, store):
        chunks = [_chunk(i) for i in range(501)]
        del chunks[250]["content"]

        result = store.put_batch(TENANT, chunks)

        assert result.created == 500
        assert len(result.errors) == 1
        assert result.errors[0].chunk_data["source_id"] == "doc-250"
        assert "content" in result.errors[0].error
        assert len(store.list(TENANT)) == 500

    def test_commits_per_transaction_limit(self, db, monkeypatch):
        store = ChunkStore(db, max_writes_per_transaction=2)
        commits = _count_commits(db, monkeypatch)

        result = store.put_batch(TENANT, [_chunk(i) for i in range(5)])

        assert result.created == 5
        assert len(commits) == 3

    def test_empty_batch(self, store):
        result = store.put_batch(TENANT, [])
        assert result.created == 0
        assert result.errors == []

    def test_non_mapping_items_are_reported(self, store):
        result = store.put_batch(TENANT, [_chunk(1), None, "text"])
        assert result.created == 1
        assert len(result.errors) == 2

    def test_commit_failure_propagates(self, store, db, monkeypatch):
        monkeypatch.setattr(db, "commit", _failing_commit)
        with pytest.raises(StorageError):
            store.put_batch(TENANT, [_chunk(1)])

    def test_unstorable_page_number_is_reported_per_item(self, store):
        chunks = [_chunk(i) for i in range(5)]
        chunks[2]["page_number"] = 2**70

        result = store.put_batch(TENANT, chunks)

        assert result.created == 4
        assert len(result.errors) == 1
        assert result.errors[0].chunk_data["source_id"] == "doc-2"
        assert "page_number" in result.errors[0].error
        assert len(store.list(TENANT)) == 4

    def test_negative_page_number_is_rejected(self, store):
        with pytest.raises(ValidationError):
            store.put(TENANT, _chunk(1, page_number=-1))

    def test_driver_error_on_commit_rolls_back(self, store, db, monkeypatch):
        def overflowing_commit():
            raise OverflowError("Python int too large to convert to SQLite INTEGER")

        monkeypatch.setattr(db, "commit", overflowing_commit)
        with pytest.raises(StorageError):
            store.put_batch(TENANT, [_chunk(1), _chunk(2)])
        monkeypatch.undo()

        assert store.list(TENANT) == []
        store.put(TENANT, _chunk(3))
        assert [c.source_id for c in store.list(TENANT)] == ["doc-3"]


class TestDeletes:
    def test_delete_by_source(self, store):
        store.put(TENANT, _chunk(1, source_type="policy", source_id="pol-1"))
        store.put(TENANT, _chunk(2, source_type="policy", source_id="pol-1"))
        store.put(TENANT, _chunk(3, source_type="policy", source_id="pol-2"))
        store.put(TENANT, _chunk(4, source_type="crew", source_id="pol-1"))
        store.put(OTHER_TENANT, _chunk(5, source_type="policy", source_id="pol-1"))

        assert store.delete_by_source(TENANT, SourceType.POLICY, "pol-1") == 2

        remaining = {(c.source_type.value, c.source_id) for c in store.list(TENANT)}
        assert remaining == {("policy", "pol-2"), ("crew", "pol-1")}
        assert len(store.list(OTHER_TENANT)) == 1

    def test_delete_unknown_source_returns_zero(self, store):
        assert store.delete_by_source(TENANT, "policy", "missing") == 0

    def test_update_is_delete_then_reindex(self, store):
        store.put(TENANT, _chunk(1, source_id="pol-1", content="Old wording"))
        store.delete_by_source(TENANT, "upload", "pol-1")
        store.put(TENANT, _chunk(1, source_id="pol-1", content="New wording"))

        chunks = store.list(TENANT, source_id="pol-1")
        assert [c.content for c in chunks] == ["New wording"]

    def test_clear_all_in_transactions(self, db, monkeypatch):
        store = ChunkStore(db, max_writes_per_transaction=2)
        store.put_batch(TENANT, [_chunk(i) for i in range(5)])
        store.put(OTHER_TENANT, _chunk(9))
        commits = _count_commits(db, monkeypatch)

        assert store.clear_all(TENANT) == 5
        assert len(commits) == 3
        assert store.list(TENANT) == []
        assert len(store.list(OTHER_TENANT)) == 1

    def test_clear_empty_tenant(self, store):
        assert store.clear_all(TENANT) == 0


class TestReads:
    def test_list_filters_and_orders_by_title(self, seeded_store):
        titles = [c.source_title for c in seeded_store.list(TENANT)]
        assert titles == sorted(titles)

        policies = seeded_store.list(TENANT, source_type="policy")
        assert {c.source_id for c in policies} == {"pol-1010", "pol-1009", "pol-1020"}

        assert [c.source_id for c in seeded_store.list(TENANT, source_id="crew-7")] == ["crew-7"]
        assert len(seeded_store.list(TENANT, limit=2)) == 2

    def test_tenants_are_isolated(self, seeded_store):
        assert seeded_store.list(OTHER_TENANT) == []
        assert seeded_store.candidates(OTHER_TENANT) == []

    def test_candidates_keep_insertion_order(self, seeded_store, sample_chunks):
        ids = [c.source_id for c in seeded_store.candidates(TENANT)]
        assert ids == [c["source_id"] for c in sample_chunks]

    def test_candidates_scoped_to_source_types(self, seeded_store):
        chunks = seeded_store.candidates(TENANT, [SourceType.CREW, SourceType.EQUIPMENT])
        assert [c.source_id for c in chunks] == ["crew-7", "eq-m300"]

    def test_find_by_regulatory_ref_is_exact(self, seeded_store):
        assert [c.source_id for c in seeded_store.find_by_regulatory_ref(TENANT, "CARs 901.56")] == ["pol-1010"]
        assert seeded_store.find_by_regulatory_ref(TENANT, "CARs 901") == []
        assert seeded_store.find_by_regulatory_ref(TENANT, "cars 901.56") == []

    def test_find_by_keyword_ignores_case(self, seeded_store):
        assert [c.source_id for c in seeded_store.find_by_keyword(TENANT, "LOST LINK")] == ["pol-1020"]
        assert seeded_store.find_by_keyword(TENANT, "lost") == []
