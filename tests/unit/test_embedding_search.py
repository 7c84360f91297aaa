"""Unit tests for semantic search over specification chunks."""

from unittest.mock import Mock

import pytest

from carfinder.core.ports import ChunkStorePort, EmbeddingPort
from carfinder.core.services import EmbeddingSearchService
from carfinder.core.services.embedding_search import DEFAULT_QUERY, build_query
from tests.conftest import make_chunk, make_identity

pytestmark = pytest.mark.unit


@pytest.fixture
def embeddings():
    mock = Mock(spec=EmbeddingPort)
    mock.embed_query.return_value = [0.1, 0.2, 0.3]
    return mock


@pytest.fixture
def chunk_store():
    return Mock(spec=ChunkStorePort)


def test_empty_candidates_short_circuit(embeddings, chunk_store):
    service = EmbeddingSearchService(embeddings, chunk_store)

    assert service.search(["quiet cabin"], []) == []
    embeddings.embed_query.assert_not_called()
    chunk_store.search_chunks.assert_not_called()
    chunk_store.get_identity_chunks.assert_not_called()


def test_query_and_store_parameters(embeddings, chunk_store):
    chunk_store.search_chunks.return_value = []
    service = EmbeddingSearchService(
        embeddings, chunk_store, similarity_threshold=0.4, max_chunk_rows=250
    )

    assert service.search(["quiet cabin", " big boot "], ["a", "b"]) == []
    embeddings.embed_query.assert_called_once_with("quiet cabin big boot")
    chunk_store.search_chunks.assert_called_once_with(
        [0.1, 0.2, 0.3], ["a", "b"], threshold=0.4, limit=250
    )
    chunk_store.get_identity_chunks.assert_not_called()


def test_build_query_falls_back_to_default():
    assert build_query([]) == DEFAULT_QUERY
    assert build_query(["  "]) == DEFAULT_QUERY
    assert build_query(None) == DEFAULT_QUERY
    assert build_query("towing") == "towing"


def test_keeps_best_variant_per_make_model(embeddings, chunk_store):
    chunk_store.search_chunks.return_value = [
        make_chunk("rav4-gx", 0.5),
        make_chunk("rav4-gx", 0.7),
        make_chunk("rav4-xse", 0.9),
        make_chunk("cx5", 0.6),
    ]
    chunk_store.get_identity_chunks.return_value = {
        "rav4-gx": make_identity("rav4-gx", "Toyota", "RAV4", 0.3),
        "rav4-xse": make_identity("rav4-xse", "Toyota", "RAV4", 0.3),
        "cx5": make_identity("cx5", "Mazda", "CX-5", 0.3),
    }
    service = EmbeddingSearchService(embeddings, chunk_store)

    matches = service.search(["quiet"], ["rav4-gx", "rav4-xse", "cx5"], limit=5)

    # rav4-gx matched average 0.6, rav4-xse 0.9; identity joins the winner afterwards
    assert [m.vehicle_id for m in matches] == ["rav4-xse", "cx5"]
    best = matches[0]
    assert best.make == "Toyota"
    assert best.model == "RAV4"
    assert best.max_similarity == pytest.approx(0.9)
    assert best.avg_similarity == pytest.approx(0.6)
    assert best.relevant_chunk_count == 2
    assert any(chunk.is_identity for chunk in best.chunks)
    chunk_store.get_identity_chunks.assert_called_once_with(
        [0.1, 0.2, 0.3], ["rav4-gx", "rav4-xse", "cx5"]
    )

def test_variant_choice_ignores_identity_similarity(embeddings, chunk_store):
    chunk_store.search_chunks.return_value = [
        make_chunk("rav4-a", 0.60),
        make_chunk("rav4-b", 0.50),
    ]
    chunk_store.get_identity_chunks.return_value = {
        "rav4-a": make_identity("rav4-a", "Toyota", "RAV4", 0.05),
        "rav4-b": make_identity("rav4-b", "Toyota", "RAV4", 0.50),
    }

    matches = EmbeddingSearchService(embeddings, chunk_store).search(["x"], ["rav4-a", "rav4-b"])

    assert [m.vehicle_id for m in matches] == ["rav4-a"]
    # the identity chunk still feeds the reported scores
    assert matches[0].avg_similarity == pytest.approx(0.325)
    assert matches[0].max_similarity == pytest.approx(0.60)



def test_equal_average_keeps_first_seen(embeddings, chunk_store):
    chunk_store.search_chunks.return_value = [
        make_chunk("first", 0.6),
        make_chunk("second", 0.6),
    ]
    chunk_store.get_identity_chunks.return_value = {
        "first": make_identity("first", "Kia", "Sorento", 0.6),
        "second": make_identity("second", "Kia", "Sorento", 0.6),
    }

    matches = EmbeddingSearchService(embeddings, chunk_store).search(["x"], ["first", "second"])

    assert [m.vehicle_id for m in matches] == ["first"]


def test_vehicle_without_identity_is_dropped(embeddings, chunk_store):
    chunk_store.search_chunks.return_value = [
        make_chunk("known", 0.5),
        make_chunk("orphan", 0.95),
    ]
    chunk_store.get_identity_chunks.return_value = {
        "known": make_identity("known", "Ford", "Ranger"),
    }

    matches = EmbeddingSearchService(embeddings, chunk_store).search(["x"], ["known", "orphan"])

    assert [m.vehicle_id for m in matches] == ["known"]


def test_results_sorted_by_max_similarity_and_truncated(embeddings, chunk_store):
    chunk_store.search_chunks.return_value = [
        make_chunk("a", 0.5),
        make_chunk("b", 0.8),
        make_chunk("c", 0.7),
    ]
    chunk_store.get_identity_chunks.return_value = {
        "a": make_identity("a", "Toyota", "RAV4"),
        "b": make_identity("b", "Mazda", "CX-5"),
        "c": make_identity("c", "Kia", "Sorento"),
    }

    matches = EmbeddingSearchService(embeddings, chunk_store).search(["x"], ["a", "b", "c"], limit=2)

    assert [m.vehicle_id for m in matches] == ["b", "c"]
    for match in matches:
        assert [c.similarity for c in match.chunks] == sorted(
            (c.similarity for c in match.chunks), reverse=True
        )
