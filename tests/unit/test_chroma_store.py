"""Unit tests for the Chroma backend with a mocked client."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from pdf_vectorstore.errors import SearchError, StorageError
from pdf_vectorstore.ingestion.enricher import ChunkEnricher
from pdf_vectorstore.ingestion.models import Chunk, EnrichedRecord


@pytest.fixture(autouse=True)
def _skip_if_chroma_broken() -> None:
    """Skip if chromadb can't be imported (pydantic v1/v2 conflict)."""
    try:
        import pdf_vectorstore.vectorstore.chroma_store  # noqa: F401
    except Exception:
        pytest.skip("chromadb not importable in this environment")


def _record(text: str, enricher: ChunkEnricher) -> EnrichedRecord:
    meta = enricher.build_metadata(Chunk(text=text, page_number=1, source="a.pdf", metadata={"page": 0}))
    return EnrichedRecord(content=text, embedding=[0.1, 0.2], metadata=meta, source="a.pdf", chunk_hash=meta.chunk_hash)


@pytest.fixture()
def client() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def collection(client: MagicMock) -> MagicMock:
    shared = client.get_or_create_collection.return_value
    client.get_collection.return_value = shared
    return shared


@pytest.fixture()
def store(client: MagicMock):
    from pdf_vectorstore.vectorstore.chroma_store import ChromaVectorStore

    return ChromaVectorStore(client=client)


def test_ensure_table_creates_collection(store, client) -> None:
    store.ensure_table("pdf_chunks")
    client.get_or_create_collection.assert_called_once_with(name="pdf_chunks", metadata={"hnsw:space": "l2"})


def test_ensure_table_failure(store, client) -> None:
    client.get_or_create_collection.side_effect = RuntimeError("unreachable")
    with pytest.raises(StorageError):
        store.ensure_table("pdf_chunks")


def test_upsert_skips_existing_and_repeated_hashes(store, collection) -> None:
    enricher = ChunkEnricher("m")
    old, new = _record("old", enricher), _record("new", enricher)
    collection.get.return_value = {"ids": [old.chunk_hash]}

    store.upsert_records("pdf_chunks", [old, new, new])

    kwargs = collection.add.call_args.kwargs
    assert kwargs["ids"] == [new.chunk_hash]
    assert kwargs["documents"] == ["new"]
    meta = kwargs["metadatas"][0]
    assert meta["source"] == "a.pdf"
    assert meta["original_metadata"] == '{"page": 0}'


def test_upsert_all_existing_adds_nothing(store, collection) -> None:
    rec = _record("old", ChunkEnricher("m"))
    collection.get.return_value = {"ids": [rec.chunk_hash]}
    store.upsert_records("pdf_chunks", [rec])
    collection.add.assert_not_called()


def test_upsert_failure(store, collection) -> None:
    collection.get.return_value = {"ids": []}
    collection.add.side_effect = RuntimeError("write failed")
    with pytest.raises(StorageError, match="write failed"):
        store.upsert_records("pdf_chunks", [_record("x", ChunkEnricher("m"))])


def test_search_converts_and_filters(store, collection) -> None:
    collection.query.return_value = {
        "documents": [["near", "far"]],
        "metadatas": [[{"page_number": 1, "original_metadata": '{"page": 0}'}, {}]],
        "distances": [[0.1, 3.0]],
    }

    hits = store.similarity_search("pdf_chunks", [0.1, 0.2], limit=2, threshold=0.5)

    assert len(hits) == 1
    assert hits[0]["content"] == "near"
    assert hits[0]["similarity"] == pytest.approx(1 / 1.1)
    assert hits[0]["metadata"]["original_metadata"] == {"page": 0}


def test_search_zero_limit(store, collection) -> None:
    assert store.similarity_search("pdf_chunks", [0.1], limit=0) == []
    collection.query.assert_not_called()


def test_search_failure(store, collection) -> None:
    collection.query.side_effect = RuntimeError("boom")
    with pytest.raises(SearchError):
        store.similarity_search("pdf_chunks", [0.1])


def test_search_missing_collection_is_not_created(store, client) -> None:
    client.get_collection.side_effect = ValueError("Collection pdf_chunks does not exist.")
    with pytest.raises(SearchError, match="does not exist"):
        store.similarity_search("pdf_chunks", [0.1])
    client.get_collection.assert_called_once_with(name="pdf_chunks")
    client.get_or_create_collection.assert_not_called()
