"""Offset-to-page translation and learned upstream page sizes."""

from __future__ import annotations

import logging

from ..cache import TTLStore
from ..models import CatalogQuerySignature

logger = logging.getLogger(__name__)


def upstream_page(offset: int, page_size: int) -> int:
    """Return the 1-based upstream page that holds item ``offset``."""

    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return max(offset, 0) // page_size + 1


class PageSizeLearner:
    """Remembers the page size TMDB actually served for each signature.

    Only a first page (offset 0) is trusted, since later pages may be short.
    Until a size is learned the default applies.
    """

    def __init__(self, store: TTLStore, *, default_page_size: int, ttl: float) -> None:
        self._store = store
        self._default = default_page_size
        self._ttl = ttl

    @property
    def default_page_size(self) -> int:
        return self._default

    def page_size(self, signature: CatalogQuerySignature) -> int:
        cached = self._store.lookup(signature.page_size_key)
        if cached.hit and isinstance(cached.value, int) and cached.value > 0:
            return cached.value
        return self._default

    def learn(
        self, signature: CatalogQuerySignature, observed_count: int, *, offset: int
    ) -> bool:
        """Record ``observed_count`` for a first-page response; return whether stored."""

        if offset != 0 or observed_count <= 0:
            return False
        self._store.set(signature.page_size_key, observed_count, self._ttl)
        logger.info("Page size learned for %s: %s", signature.key, observed_count)
        return True
