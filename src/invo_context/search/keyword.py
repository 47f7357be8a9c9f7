"""
Lexical search over stored document content.
"""

from __future__ import annotations

import re

from ..models import Document
from ..vector_store import VectorStore
from .ranker import SearchResult

EXACT_PHRASE_SCORE = 10
KEYWORD_OCCURRENCE_SCORE = 2
NAME_MATCH_SCORE = 5
_MIN_KEYWORD_LENGTH = 3


def query_keywords(query: str) -> list[str]:
    """Lowercased whitespace tokens longer than two characters."""
    return [word for word in query.lower().split() if len(word) >= _MIN_KEYWORD_LENGTH]


def keyword_score(query: str, document: Document) -> int:
    query_lower = query.lower()
    content_lower = document.content.lower()
    keywords = query_keywords(query)

    score = 0
    if query_lower and query_lower in content_lower:
        score += EXACT_PHRASE_SCORE

    for keyword in keywords:
        matches = re.findall(rf"\b{re.escape(keyword)}\b", content_lower)
        score += len(matches) * KEYWORD_OCCURRENCE_SCORE

    if document.name:
        name_lower = document.name.lower()
        score += NAME_MATCH_SCORE * sum(1 for keyword in keywords if keyword in name_lower)
    return score


class KeywordSearchEngine:
    """Rank stored documents by lexical overlap with the query."""

    def __init__(self, store: VectorStore) -> None:
        self.store = store

    async def search(self, query: str, top_k: int = 5) -> list[SearchResult]:
        await self.store.initialize()
        results: list[SearchResult] = []
        for document in self.store.documents:
            score = keyword_score(query, document)
            if score <= 0:
                continue
            results.append(
                SearchResult(
                    id=document.id,
                    content=document.content,
                    score=float(score),
                    metadata=document.metadata,
                )
            )
        results.sort(key=lambda result: -result.score)
        return results[: max(top_k, 1)]
