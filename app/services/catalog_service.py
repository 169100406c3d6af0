"""High level orchestration for catalog aggregation."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Sequence

from ..cache import TTLStore
from ..catalogs import CATALOG_MAP, CATALOGS, CatalogDefinition
from ..config import Settings
from ..models import CatalogQuerySignature, MetaDetail, MetaPreview, RawItem
from ..utils import as_of_date, gather_ordered
from .enrichment import AudioLanguageClassifier, ExternalIdResolver
from .pagination import PageSizeLearner, upstream_page
from .tmdb import TMDBClient, TMDBError

logger = logging.getLogger(__name__)


def dedupe_items(items: Sequence[RawItem]) -> list[RawItem]:
    """Keep the first occurrence of each TMDB id, preserving order."""

    seen: set[int | None] = set()
    unique: list[RawItem] = []
    for item in items:
        if item.id in seen:
            continue
        seen.add(item.id)
        unique.append(item)
    return unique


def sort_newest_first(items: Sequence[RawItem]) -> list[RawItem]:
    """Stable sort by release date descending; unknown dates sort last."""

    return sorted(items, key=lambda item: item.released_on, reverse=True)


class CatalogService:
    """Serves paginated catalogs assembled from TMDB queries."""

    def __init__(
        self,
        settings: Settings,
        tmdb_client: TMDBClient,
        store: TTLStore,
        *,
        clock: Callable[[], datetime] | None = None,
    ):
        self._settings = settings
        self._tmdb = tmdb_client
        self._store = store
        self._clock = clock
        self._resolver = ExternalIdResolver(
            tmdb_client,
            store,
            positive_ttl=settings.positive_cache_seconds,
            negative_ttl=settings.negative_cache_seconds,
        )
        self._classifier = AudioLanguageClassifier(
            tmdb_client,
            store,
            language=settings.classifier_language,
            region=settings.classifier_region,
            positive_ttl=settings.positive_cache_seconds,
            negative_ttl=settings.negative_cache_seconds,
            fail_open=settings.classifier_fail_open,
        )
        self._learner = PageSizeLearner(
            store,
            default_page_size=settings.default_page_size,
            ttl=settings.page_size_cache_seconds,
        )

    @property
    def learner(self) -> PageSizeLearner:
        return self._learner

    async def start(self) -> None:
        """Start background cache maintenance."""

        await self._store.start()

    async def stop(self) -> None:
        await self._store.stop()

    def manifest_catalogs(self) -> list[dict[str, object]]:
        return [definition.to_manifest_entry() for definition in CATALOGS]

    def get_definition(self, content_type: str, catalog_id: str) -> CatalogDefinition:
        definition = CATALOG_MAP.get(catalog_id)
        if definition is None or definition.content_type != content_type:
            raise KeyError(f"Catalog {catalog_id} not found for {content_type}")
        return definition

    async def get_catalog_payload(
        self,
        content_type: str,
        catalog_id: str,
        *,
        skip: int = 0,
        search: str | None = None,
    ) -> dict[str, Any]:
        """Return the Stremio catalog payload for a page of the catalog."""

        metas = await self.fetch_catalog(content_type, catalog_id, skip=skip, search=search)
        return {
            "metas": [meta.to_meta() for meta in metas],
            "cacheMaxAge": 0,
            "staleRevalidate": 0,
            "staleError": 0,
        }

    async def fetch_catalog(
        self,
        content_type: str,
        catalog_id: str,
        *,
        skip: int = 0,
        search: str | None = None,
    ) -> list[MetaPreview]:
        """Return the formatted items for the page that contains ``skip``.

        Upstream failures never propagate: the result is then an empty list.
        """

        definition = self.get_definition(content_type, catalog_id)
        skip = max(skip, 0)
        signature = CatalogQuerySignature.build(content_type, catalog_id, search)
        page_size = self._learner.page_size(signature)
        page = upstream_page(skip, page_size)
        cache_key = signature.page_key(page)

        cached = self._store.lookup(cache_key)
        if cached.hit:
            logger.info(
                "Cache: %s skip=%s p%s pageSize=%s", catalog_id, skip, page, page_size
            )
            return list(cached.value)

        logger.info(
            "Fetch: %s skip=%s p%s%s pageSizeGuess=%s",
            catalog_id,
            skip,
            page,
            f" q:{signature.search}" if signature.search else "",
            page_size,
        )
        try:
            if signature.search:
                metas = await self._collect_search(definition, signature.search, page)
            elif definition.is_composite:
                metas = await self._collect_composite(definition, page)
            else:
                metas = await self._collect_simple(definition, page)
        except TMDBError as exc:
            logger.error("Error %s p%s: %s", catalog_id, page, exc)
            return []

        if metas:
            self._store.set(cache_key, tuple(metas))
            self._learner.learn(signature, len(metas), offset=skip)
            logger.info("%s p%s: %s items", catalog_id, page, len(metas))
        return metas

    async def _collect_simple(
        self, definition: CatalogDefinition, page: int
    ) -> list[MetaPreview]:
        items = await self._tmdb.discover(
            definition.content_type,
            definition.primary,
            page=page,
            released_before=self._as_of(),
        )
        return await self._format_items(items, definition.content_type)

    async def _collect_composite(
        self, definition: CatalogDefinition, page: int
    ) -> list[MetaPreview]:
        released_before = self._as_of()
        floor = self._settings.aggregation_floor
        accumulated = list(
            await self._tmdb.discover(
                definition.content_type,
                definition.primary,
                page=page,
                released_before=released_before,
            )
        )

        for language in definition.secondary_languages:
            if len(accumulated) >= floor:
                break
            candidates = await self._tmdb.discover(
                definition.content_type,
                definition.primary.for_language(language),
                page=page,
                released_before=released_before,
            )
            accumulated.extend(
                await self._filter_qualifying(candidates, definition.content_type)
            )

        ordered = sort_newest_first(dedupe_items(accumulated))
        return await self._format_items(
            ordered[: self._settings.composite_page_length], definition.content_type
        )

    async def _collect_search(
        self, definition: CatalogDefinition, query: str, page: int
    ) -> list[MetaPreview]:
        items = await self._tmdb.search(definition.content_type, query, page=page)
        scope = definition.search_languages
        if scope is not None:
            in_scope = [item for item in items if item.original_language in scope]
            if definition.classify_search and self._settings.classify_search_results:
                items = await self._filter_qualifying(in_scope, definition.content_type)
            else:
                items = in_scope
        return await self._format_items(items, definition.content_type)

    async def _filter_qualifying(
        self, items: Sequence[RawItem], content_type: str
    ) -> list[RawItem]:
        async def _check(item: RawItem) -> bool:
            if item.id is None:
                return False
            return await self._classifier.qualifies(item.id, content_type)

        verdicts = await gather_ordered(
            items, _check, limit=self._settings.lookup_concurrency, default=False
        )
        return [item for item, keep in zip(items, verdicts) if keep]

    async def _format_items(
        self, items: Sequence[RawItem], content_type: str
    ) -> list[MetaPreview]:
        presentable = [item for item in items if item.poster_path and item.id]

        async def _format(item: RawItem) -> MetaPreview | None:
            imdb_id = await self._resolver.resolve(item.id, content_type)  # type: ignore[arg-type]
            if not imdb_id:
                return None
            return MetaPreview.from_raw(
                item,
                imdb_id=imdb_id,
                content_type=content_type,  # type: ignore[arg-type]
                poster_base_url=self._settings.poster_base_url,
                backdrop_base_url=self._settings.backdrop_base_url,
            )

        formatted = await gather_ordered(
            presentable, _format, limit=self._settings.lookup_concurrency, default=None
        )
        return [meta for meta in formatted if meta is not None]

    async def get_meta(self, content_type: str, meta_id: str) -> MetaDetail | None:
        """Return full metadata for an IMDb id, or ``None`` when unavailable."""

        if not meta_id.startswith("tt"):
            return None
        cache_key = f"meta:{content_type}:{meta_id}"
        cached = self._store.lookup(cache_key)
        if cached.hit and cached.value is not None:
            return cached.value

        try:
            tmdb_id = await self._tmdb.find_by_imdb(meta_id, content_type)
            if tmdb_id is None:
                return None
            detail = await self._tmdb.details(
                tmdb_id,
                content_type,
                append=("credits", "videos", "external_ids"),
                timeout=self._settings.tmdb_meta_timeout,
            )
        except TMDBError as exc:
            logger.error("Meta error for %s: %s", meta_id, exc)
            return None

        meta = MetaDetail.from_detail(
            detail,
            imdb_id=meta_id,
            content_type=content_type,  # type: ignore[arg-type]
            poster_base_url=self._settings.poster_base_url,
            backdrop_base_url=self._settings.backdrop_base_url,
        )
        self._store.set(cache_key, meta, self._settings.meta_cache_seconds)
        return meta

    def _as_of(self) -> str:
        now = self._clock() if self._clock else None
        return as_of_date(self._settings.release_date_utc_offset_minutes, now=now)
