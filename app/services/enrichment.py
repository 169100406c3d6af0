"""Memoised per-item lookups: IMDb id resolution and audio-language checks."""

from __future__ import annotations

import logging
from typing import Any

from ..cache import TTLStore
from .tmdb import TMDBClient, TMDBError

logger = logging.getLogger(__name__)


class ExternalIdResolver:
    """Maps TMDB ids to IMDb ids with positive and negative caching."""

    def __init__(
        self,
        tmdb: TMDBClient,
        store: TTLStore,
        *,
        positive_ttl: float,
        negative_ttl: float,
    ) -> None:
        self._tmdb = tmdb
        self._store = store
        self._positive_ttl = positive_ttl
        self._negative_ttl = negative_ttl

    @staticmethod
    def cache_key(tmdb_id: int, content_type: str) -> str:
        return f"imdb:{content_type}:{tmdb_id}"

    async def resolve(self, tmdb_id: int, content_type: str) -> str | None:
        """Return the IMDb id for an item, or ``None`` when it has none (yet)."""

        key = self.cache_key(tmdb_id, content_type)
        cached = self._store.lookup(key)
        if cached.hit:
            return cached.value

        try:
            imdb_id = await self._tmdb.external_ids(tmdb_id, content_type)
        except TMDBError as exc:
            logger.debug("External id lookup failed for %s %s: %s", content_type, tmdb_id, exc)
            imdb_id = None

        if imdb_id:
            self._store.set(key, imdb_id, self._positive_ttl)
        else:
            self._store.set(key, None, self._negative_ttl)
        return imdb_id


class AudioLanguageClassifier:
    """Decides whether an item is available in a target audio language.

    Any one of three signals qualifies an item: its original language is the
    target language, TMDB lists a translation into it, or it has a release
    record in the target territory. Positive verdicts are cached for
    ``positive_ttl`` and negative ones for ``negative_ttl``. When TMDB cannot
    be reached the verdict is ``fail_open`` and is cached for ``negative_ttl``.
    """

    def __init__(
        self,
        tmdb: TMDBClient,
        store: TTLStore,
        *,
        language: str,
        region: str,
        positive_ttl: float,
        negative_ttl: float,
        fail_open: bool = False,
    ) -> None:
        self._tmdb = tmdb
        self._store = store
        self._language = language
        self._region = region
        self._positive_ttl = positive_ttl
        self._negative_ttl = negative_ttl
        self._fail_open = fail_open

    def cache_key(self, tmdb_id: int, content_type: str) -> str:
        return f"audio:{self._language}:{content_type}:{tmdb_id}"

    async def qualifies(self, tmdb_id: int, content_type: str = "movie") -> bool:
        key = self.cache_key(tmdb_id, content_type)
        cached = self._store.lookup(key)
        if cached.hit:
            return bool(cached.value)

        releases_section = "content_ratings" if content_type == "series" else "release_dates"
        try:
            detail = await self._tmdb.details(
                tmdb_id, content_type, append=("translations", releases_section)
            )
        except TMDBError as exc:
            logger.debug("Audio language check failed for %s: %s", tmdb_id, exc)
            self._store.set(key, self._fail_open, self._negative_ttl)
            return self._fail_open

        verdict = self.evaluate(detail, releases_section=releases_section)
        self._store.set(
            key, verdict, self._positive_ttl if verdict else self._negative_ttl
        )
        return verdict

    def evaluate(
        self, detail: dict[str, Any], *, releases_section: str = "release_dates"
    ) -> bool:
        if detail.get("original_language") == self._language:
            return True

        translations = (detail.get("translations") or {}).get("translations") or []
        if any(
            isinstance(entry, dict) and entry.get("iso_639_1") == self._language
            for entry in translations
        ):
            return True

        releases = (detail.get(releases_section) or {}).get("results") or []
        return any(
            isinstance(entry, dict) and entry.get("iso_3166_1") == self._region
            for entry in releases
        )
