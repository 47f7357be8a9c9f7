"""
Embedding provider for semantic search over the business corpus.

Wraps the Google GenAI embedding API and falls back to a deterministic local
feature hash whenever the remote service is unconfigured or fails, so callers
always receive a vector of the configured dimension.
"""

from __future__ import annotations

import asyncio
import logging
import math
import os
import re
from typing import Any

from google.genai import Client as GenAIClient

logger = logging.getLogger(__name__)

_DEFAULT_MODEL = "gemini-embedding-001"
_DEFAULT_DIM = 128
_BATCH_SIZE = 10
_BATCH_DELAY_SECONDS = 0.1

_CHAR_WEIGHT = 1.0
_WORD_WEIGHT = 2.0
_KEY_TERM_BONUS = 5.0
_WHITESPACE = re.compile(r"\s+")

KEY_TERMS: tuple[str, ...] = (
    "stock",
    "price",
    "sales",
    "profit",
    "supplier",
    "quantity",
    "margin",
    "contact",
    "phone",
    "email",
    "whatsapp",
    "call",
    "reach",
    "vendor",
)


def stable_hash(text: str) -> int:
    """Non-negative 32-bit rolling hash (``h * 31 + c``), stable across runs."""
    value = 0
    for char in text:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value)


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


class LocalHashEmbedder:
    """Deterministic bag-of-features embedding with no external dependency."""

    def __init__(self, dim: int = _DEFAULT_DIM) -> None:
        if dim <= 0:
            raise ValueError("dim must be > 0")
        self.dim = dim

    @property
    def fingerprint(self) -> str:
        return f"local-hash:{self.dim}"

    def embed(self, text: str) -> list[float]:
        normalized = text.lower()
        vector = [0.0] * self.dim

        for char in normalized:
            vector[ord(char) % self.dim] += _CHAR_WEIGHT

        # Runs of whitespace separate words; leading or trailing whitespace
        # yields an empty word, which is hashed like any other.
        for word in _WHITESPACE.split(normalized):
            vector[stable_hash(word) % self.dim] += _WORD_WEIGHT

        for idx, term in enumerate(KEY_TERMS):
            if term in normalized:
                vector[(idx * 10) % self.dim] += _KEY_TERM_BONUS

        magnitude = math.sqrt(sum(value * value for value in vector))
        if magnitude == 0:
            return vector
        return [value / magnitude for value in vector]


class EmbeddingProvider:
    """Generate text embeddings via Google GenAI with a local fallback."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        dim: int | None = None,
        client: Any | None = None,
        use_remote: bool | None = None,
    ) -> None:
        self.model = model or os.getenv("INVO_CONTEXT_EMBEDDING_MODEL", _DEFAULT_MODEL)
        self.dim = dim or int(os.getenv("INVO_CONTEXT_EMBEDDING_DIM", str(_DEFAULT_DIM)))
        self.local = LocalHashEmbedder(self.dim)
        self.batch_size = _BATCH_SIZE
        self.batch_delay = _BATCH_DELAY_SECONDS

        remote_disabled = use_remote is False or _env_flag(
            "INVO_CONTEXT_DISABLE_REMOTE_EMBEDDINGS"
        )
        self._client: Any | None = None
        if remote_disabled:
            logger.info("Remote embeddings disabled; using local hash embeddings")
        elif client is not None:
            self._client = client
        else:
            resolved_key = api_key or os.getenv("GOOGLE_API_KEY")
            if resolved_key is None:
                logger.info("GOOGLE_API_KEY not set; using local hash embeddings")
            else:
                self._client = GenAIClient(api_key=resolved_key)

    @property
    def is_remote(self) -> bool:
        return self._client is not None

    @property
    def fingerprint(self) -> str:
        """Identify the embedding strategy so stores built with another can be discarded."""
        if self.is_remote:
            return f"genai:{self.model}:{self.dim}"
        return self.local.fingerprint

    async def embed(self, text: str, *, task_type: str = "RETRIEVAL_QUERY") -> list[float]:
        """Embed a single text. Never raises."""
        vectors = await self._embed_chunk([text], task_type=task_type)
        return vectors[0]

    async def embed_batch(
        self,
        texts: list[str],
        *,
        task_type: str = "RETRIEVAL_DOCUMENT",
    ) -> list[list[float]]:
        """Embed texts in fixed-size chunks.

        Returns one vector per input, in order. Remote chunks are separated by
        a short delay to stay under the provider's rate limits.
        """
        all_embeddings: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            if start > 0 and self.is_remote:
                await asyncio.sleep(self.batch_delay)
            batch = texts[start : start + self.batch_size]
            all_embeddings.extend(await self._embed_chunk(batch, task_type=task_type))
        return all_embeddings

    async def _embed_chunk(self, texts: list[str], *, task_type: str) -> list[list[float]]:
        if self._client is None:
            return [self.local.embed(text) for text in texts]

        try:
            result = await self._client.aio.models.embed_content(
                model=self.model,
                contents=list(texts),
                config={
                    "task_type": task_type,
                    "output_dimensionality": self.dim,
                },
            )
            vectors = [list(emb.values or []) for emb in result.embeddings or []]
        except Exception as exc:
            logger.warning("Remote embedding failed, using local fallback: %s", exc)
            return [self.local.embed(text) for text in texts]

        if len(vectors) != len(texts):
            logger.warning(
                "Remote embedding returned %d vectors for %d texts, using local fallback",
                len(vectors),
                len(texts),
            )
            return [self.local.embed(text) for text in texts]

        resolved: list[list[float]] = []
        for text, vector in zip(texts, vectors):
            if len(vector) != self.dim:
                logger.warning(
                    "Remote embedding has dimension %d (expected %d), using local fallback",
                    len(vector),
                    self.dim,
                )
                resolved.append(self.local.embed(text))
            else:
                resolved.append([float(value) for value in vector])
        return resolved
