"""Tests for the embedding provider and its local fallback."""

from __future__ import annotations

import math
import os

import pytest

import invo_context.embeddings as embeddings_module
from invo_context.embeddings import (
    KEY_TERMS,
    EmbeddingProvider,
    LocalHashEmbedder,
    stable_hash,
)


# ---------------------------------------------------------------------------
# Local hash embedding
# ---------------------------------------------------------------------------


def test_local_embedding_is_deterministic() -> None:
    embedder = LocalHashEmbedder(dim=128)
    text = "Product: Sunflower Oil\nQuantity: 3 (low stock)"

    assert embedder.embed(text) == embedder.embed(text)
    assert LocalHashEmbedder(dim=128).embed(text) == embedder.embed(text)


def test_local_embedding_is_unit_length() -> None:
    vector = LocalHashEmbedder(dim=64).embed("call the supplier about rice prices")

    assert len(vector) == 64
    assert math.isclose(math.sqrt(sum(v * v for v in vector)), 1.0, rel_tol=1e-9)


def test_local_embedding_of_empty_text_hashes_the_empty_word() -> None:
    # "" splits into one empty word, which lands at stable_hash("") % D == 0.
    vector = LocalHashEmbedder(dim=16).embed("")

    assert vector == [1.0] + [0.0] * 15


def test_leading_whitespace_adds_an_empty_word() -> None:
    embedder = LocalHashEmbedder(dim=128)

    # Nothing in "rice" maps to slot 0; the leading space adds the empty word there.
    assert embedder.embed("rice")[0] == 0.0
    assert embedder.embed(" rice")[0] > 0.0


def test_local_embedding_is_case_insensitive() -> None:
    embedder = LocalHashEmbedder()

    assert embedder.embed("Green TEA") == embedder.embed("green tea")


def test_key_terms_share_bonus_slot() -> None:
    embedder = LocalHashEmbedder(dim=128)
    stock_slot = KEY_TERMS.index("stock") * 10 % 128

    with_term = embedder.embed("stock")
    without_term = embedder.embed("stick")

    assert with_term[stock_slot] > without_term[stock_slot]


def test_stable_hash_matches_32bit_rolling_hash() -> None:
    assert stable_hash("") == 0
    assert stable_hash("a") == 97
    assert stable_hash("ab") == 97 * 31 + 98
    # Overflows wrap to a signed 32-bit value before abs().
    assert 0 <= stable_hash("supercalifragilisticexpialidocious") < 2**31 + 1


def test_invalid_dimension_rejected() -> None:
    with pytest.raises(ValueError):
        LocalHashEmbedder(dim=0)


# ---------------------------------------------------------------------------
# Provider selection and fallback
# ---------------------------------------------------------------------------


def test_missing_api_key_uses_local_strategy(monkeypatch) -> None:
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.delenv("INVO_CONTEXT_DISABLE_REMOTE_EMBEDDINGS", raising=False)

    provider = EmbeddingProvider()

    assert provider.is_remote is False
    assert provider.fingerprint == "local-hash:128"


def test_env_overrides(monkeypatch, fake_genai_client) -> None:
    monkeypatch.setenv("INVO_CONTEXT_EMBEDDING_MODEL", "custom-model-001")
    monkeypatch.setenv("INVO_CONTEXT_EMBEDDING_DIM", "256")

    provider = EmbeddingProvider(client=fake_genai_client())

    assert provider.model == "custom-model-001"
    assert provider.dim == 256
    assert provider.fingerprint == "genai:custom-model-001:256"


def test_disable_remote_env_wins_over_client(monkeypatch, fake_genai_client) -> None:
    monkeypatch.setenv("INVO_CONTEXT_DISABLE_REMOTE_EMBEDDINGS", "true")

    provider = EmbeddingProvider(client=fake_genai_client())

    assert provider.is_remote is False


@pytest.mark.asyncio
async def test_remote_embed_requests_configured_dimension(fake_genai_client) -> None:
    client = fake_genai_client()
    provider = EmbeddingProvider(client=client, dim=32)

    vector = await provider.embed("search query")

    assert len(vector) == 32
    call = client.calls[0]
    assert call["config"]["output_dimensionality"] == 32
    assert call["config"]["task_type"] == "RETRIEVAL_QUERY"


@pytest.mark.asyncio
async def test_remote_failure_falls_back_to_local(fake_genai_client) -> None:
    provider = EmbeddingProvider(client=fake_genai_client(fail=True), dim=64)

    vector = await provider.embed("low stock items")

    assert vector == LocalHashEmbedder(dim=64).embed("low stock items")


@pytest.mark.asyncio
async def test_remote_wrong_dimension_falls_back_to_local(fake_genai_client) -> None:
    provider = EmbeddingProvider(client=fake_genai_client(dim_override=768), dim=64)

    vectors = await provider.embed_batch(["a", "b"])

    assert [len(v) for v in vectors] == [64, 64]
    assert vectors[0] == LocalHashEmbedder(dim=64).embed("a")


@pytest.mark.asyncio
async def test_embed_batch_chunks_by_ten_with_delay(monkeypatch, fake_genai_client) -> None:
    sleeps: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    monkeypatch.setattr(embeddings_module.asyncio, "sleep", fake_sleep)
    client = fake_genai_client()
    provider = EmbeddingProvider(client=client, dim=8)

    texts = [f"text_{i}" for i in range(23)]
    vectors = await provider.embed_batch(texts)

    assert len(vectors) == 23
    # 23 texts in chunks of 10 -> 3 API calls (10+10+3), 2 delays between them
    assert [len(call["contents"]) for call in client.calls] == [10, 10, 3]
    assert all(call["config"]["task_type"] == "RETRIEVAL_DOCUMENT" for call in client.calls)
    assert sleeps == [0.1, 0.1]


@pytest.mark.asyncio
async def test_local_batch_has_no_delay(monkeypatch) -> None:
    sleeps: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    monkeypatch.setattr(embeddings_module.asyncio, "sleep", fake_sleep)
    provider = EmbeddingProvider(use_remote=False, dim=16)

    vectors = await provider.embed_batch([f"t{i}" for i in range(25)])

    assert len(vectors) == 25
    assert sleeps == []


# ---------------------------------------------------------------------------
# Real API integration test (skipped unless GOOGLE_API_KEY is set)
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.skipif(
    not os.getenv("GOOGLE_API_KEY"),
    reason="GOOGLE_API_KEY not set, skipping real embedding test",
)
async def test_real_embedding_api() -> None:
    provider = EmbeddingProvider(dim=128)

    vectors = await provider.embed_batch(["Basmati rice, 3 left.", "Supplier contact"])

    assert len(vectors) == 2
    assert len(vectors[0]) == 128
    assert all(isinstance(v, float) for v in vectors[0])
