"""Catalog definitions served by the add-on."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal


ContentType = Literal["movie", "series"]


@dataclass(frozen=True)
class DiscoverCriteria:
    """Filters for a single TMDB discover query.

    The sort order (newest first) and the upper release-date bound are
    applied by the client at query time.
    """

    language: str
    region: str | None = None
    release_type: str | None = None
    min_votes: int = 0

    def for_language(self, language: str) -> "DiscoverCriteria":
        """Return the same criteria scoped to another original language."""

        return replace(self, language=language)


@dataclass(frozen=True)
class CatalogDefinition:
    """Describes a fixed catalog lane shown in Stremio."""

    id: str
    name: str
    content_type: ContentType
    primary: DiscoverCriteria
    secondary_languages: tuple[str, ...] = ()
    search_languages: tuple[str, ...] | None = None
    classify_search: bool = False

    @property
    def is_composite(self) -> bool:
        """Composite catalogs merge several source-language queries."""

        return bool(self.secondary_languages)

    def to_manifest_entry(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.content_type,
            "extra": [
                {"name": "skip", "isRequired": False},
                {"name": "search", "isRequired": False},
            ],
        }


CATALOGS: tuple[CatalogDefinition, ...] = (
    CatalogDefinition(
        id="hollywood_latest",
        name="Hollywood Movies",
        content_type="movie",
        primary=DiscoverCriteria(
            language="en", region="US", release_type="3", min_votes=5
        ),
        search_languages=("en",),
    ),
    CatalogDefinition(
        id="indian_latest",
        name="Indian Movies",
        content_type="movie",
        primary=DiscoverCriteria(
            language="hi", region="IN", release_type="3", min_votes=0
        ),
        secondary_languages=("ta", "te", "ml", "kn", "mr"),
        search_languages=("hi", "ta", "te", "ml", "kn", "mr", "bn", "pa"),
        classify_search=True,
    ),
    CatalogDefinition(
        id="hollywood_series_latest",
        name="TV Series",
        content_type="series",
        primary=DiscoverCriteria(language="en", min_votes=10),
        search_languages=("en",),
    ),
)

CATALOG_MAP: dict[str, CatalogDefinition] = {
    definition.id: definition for definition in CATALOGS
}
