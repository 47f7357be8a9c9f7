"""
Cached aggregate business metrics.

Two tiers are consulted before recomputing: an in-process copy and a copy
persisted in the key-value layer. A record is fresh while
``now - computed_at < ANALYTICS_TTL_SECONDS``.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from pydantic import ValidationError

from .indexing.corpus import is_low_stock, is_out_of_stock
from .models import CachedAnalytics, Product
from .storage import DataStore, KeyValueStore

logger = logging.getLogger(__name__)

ANALYTICS_CACHE_KEY = "invo:analytics_cache"
ANALYTICS_TTL_SECONDS = 5 * 60
HIGH_MARGIN_THRESHOLD = 30.0
TOP_PRODUCTS_LIMIT = 3
HIGH_MARGIN_LIMIT = 3
REORDER_LIMIT = 5

_MIN_TIMESTAMP_STEP = 0.001


class AnalyticsUnavailableError(RuntimeError):
    """Raised when analytics cannot be computed and no earlier record exists."""


def health_score(low_stock: int, out_of_stock: int, total: int) -> float | None:
    if total == 0:
        return None
    return 100 - ((low_stock + out_of_stock * 2) / total * 100)


def stock_health(score: float | None) -> str:
    if score is None:
        return "N/A"
    if score >= 90:
        return "Excellent"
    if score >= 75:
        return "Good"
    if score >= 60:
        return "Fair"
    return "Needs Attention"


def compute_analytics(products: list[Product], *, computed_at: float) -> CachedAnalytics:
    """Derive aggregate metrics from a full product scan."""
    total = len(products)
    low_stock = [p for p in products if is_low_stock(p.quantity)]
    out_of_stock = [p for p in products if is_out_of_stock(p.quantity)]

    by_quantity = sorted(products, key=lambda p: -p.quantity)
    high_margin = [p.name for p in products if p.margin > HIGH_MARGIN_THRESHOLD]
    reorder = sorted(low_stock, key=lambda p: p.quantity)
    score = health_score(len(low_stock), len(out_of_stock), total)

    return CachedAnalytics(
        total_products=total,
        total_stock=sum(p.quantity for p in products),
        total_value=sum(p.buying_price * p.quantity for p in products),
        low_stock_count=len(low_stock),
        out_of_stock_count=len(out_of_stock),
        avg_price=sum(p.selling_price for p in products) / total if total else 0.0,
        avg_margin=sum(p.margin for p in products) / total if total else 0.0,
        top_products=[p.name for p in by_quantity[:TOP_PRODUCTS_LIMIT]],
        high_margin_products=high_margin[:HIGH_MARGIN_LIMIT],
        reorder_suggestions=[
            f"{p.name} ({p.quantity} left)" for p in reorder[:REORDER_LIMIT]
        ],
        health_score=score,
        stock_health=stock_health(score),
        computed_at=computed_at,
    )


class AnalyticsCache:
    """Dual-tier TTL cache in front of :func:`compute_analytics`."""

    def __init__(
        self,
        data_store: DataStore,
        kv_store: KeyValueStore,
        *,
        ttl: float = ANALYTICS_TTL_SECONDS,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.data_store = data_store
        self.kv_store = kv_store
        self.ttl = ttl
        self._clock = clock or time.time
        self._memory: CachedAnalytics | None = None
        self._last_computed_at = 0.0

    def is_fresh(self, record: CachedAnalytics, now: float | None = None) -> bool:
        current = self._clock() if now is None else now
        return current - record.computed_at < self.ttl

    async def get_analytics(self) -> CachedAnalytics:
        """Return fresh analytics from memory, then storage, else recompute."""
        now = self._clock()
        if self._memory is not None and self.is_fresh(self._memory, now):
            logger.debug("Using analytics from memory")
            return self._memory

        persisted = await self._read_persisted()
        if persisted is not None and self.is_fresh(persisted, now):
            logger.debug("Using analytics from storage")
            self._memory = persisted
            return persisted

        return await self._recompute(fallback=persisted)

    async def force_refresh(self) -> CachedAnalytics:
        """Recompute regardless of either tier; the result is strictly newer."""
        # Reading the persisted record raises the timestamp floor past it.
        persisted = await self._read_persisted()
        return await self._recompute(fallback=persisted)

    async def invalidate(self) -> None:
        """Clear both tiers without recomputing."""
        self._memory = None
        try:
            await self.kv_store.remove(ANALYTICS_CACHE_KEY)
        except Exception as exc:
            logger.warning("Failed to clear analytics cache: %s", exc)
        logger.info("Analytics cache invalidated")

    async def _recompute(self, *, fallback: CachedAnalytics | None) -> CachedAnalytics:
        logger.info("Computing fresh analytics")
        try:
            products = await self.data_store.list_products()
            analytics = compute_analytics(products, computed_at=self._next_timestamp())
        except Exception as exc:
            last_known = self._memory or fallback
            if last_known is None:
                raise AnalyticsUnavailableError(
                    f"Analytics computation failed: {exc}"
                ) from exc
            logger.warning(
                "Analytics computation failed, serving record from %.0f: %s",
                last_known.computed_at,
                exc,
            )
            return last_known

        await self._save(analytics)
        return analytics

    def _next_timestamp(self) -> float:
        now = self._clock()
        if now <= self._last_computed_at:
            now = self._last_computed_at + _MIN_TIMESTAMP_STEP
        self._last_computed_at = now
        return now

    async def _read_persisted(self) -> CachedAnalytics | None:
        try:
            raw = await self.kv_store.get(ANALYTICS_CACHE_KEY)
        except Exception as exc:
            logger.warning("Failed to read analytics cache: %s", exc)
            return None
        if raw is None:
            return None
        try:
            record = CachedAnalytics.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding unreadable analytics cache: %s", exc)
            return None
        self._last_computed_at = max(self._last_computed_at, record.computed_at)
        return record

    async def _save(self, analytics: CachedAnalytics) -> None:
        self._memory = analytics
        try:
            await self.kv_store.set(ANALYTICS_CACHE_KEY, analytics.model_dump_json())
        except Exception as exc:
            logger.warning("Failed to save analytics cache: %s", exc)
