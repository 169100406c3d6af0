"""Pydantic models describing upstream records and catalog payloads."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .utils import format_rating, format_release_info, language_label

ContentType = Literal["movie", "series"]


@dataclass(frozen=True, slots=True)
class CatalogQuerySignature:
    """Identity of a catalog variant used to scope every derived cache key."""

    content_type: str
    catalog_id: str
    search: str | None = None

    @classmethod
    def build(
        cls, content_type: str, catalog_id: str, search: str | None = None
    ) -> "CatalogQuerySignature":
        cleaned = (search or "").strip()
        return cls(content_type, catalog_id, cleaned or None)

    @property
    def key(self) -> str:
        base = f"{self.content_type}:{self.catalog_id}"
        if self.search:
            return f"{base}:s:{self.search}"
        return base

    @property
    def page_size_key(self) -> str:
        return f"ps:{self.key}"

    def page_key(self, page: int) -> str:
        return f"{self.key}:p{page}"


class RawItem(BaseModel):
    """A single TMDB list result (discover or search)."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int | None = None
    title: str | None = None
    original_title: str | None = None
    name: str | None = None
    original_name: str | None = None
    original_language: str | None = None
    release_date: str | None = None
    first_air_date: str | None = None
    poster_path: str | None = None
    backdrop_path: str | None = None
    vote_average: float | None = None
    overview: str | None = None

    @property
    def released_on(self) -> str:
        """Release (or first air) date, ``""`` when unknown."""

        return self.release_date or self.first_air_date or ""

    @property
    def display_name(self) -> str:
        return (
            self.title
            or self.original_title
            or self.name
            or self.original_name
            or "Unknown"
        )


class MetaPreview(BaseModel):
    """A representable catalog entry returned to Stremio."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: ContentType
    name: str
    poster: str
    background: str | None = None
    description: str
    release_info: str | None = None
    rating: str = ""
    language: str = ""

    @classmethod
    def from_raw(
        cls,
        item: RawItem,
        *,
        imdb_id: str,
        content_type: ContentType,
        poster_base_url: str,
        backdrop_base_url: str,
    ) -> "MetaPreview | None":
        """Format a raw item, or ``None`` when it has no valid presentation."""

        if not imdb_id or not item.poster_path:
            return None
        background = (
            f"{backdrop_base_url}{item.backdrop_path}" if item.backdrop_path else None
        )
        return cls(
            id=imdb_id,
            type=content_type,
            name=item.display_name,
            poster=f"{poster_base_url}{item.poster_path}",
            background=background,
            description=item.overview or "No description",
            release_info=format_release_info(item.released_on),
            rating=format_rating(item.vote_average),
            language=language_label(item.original_language),
        )

    def to_meta(self) -> dict[str, Any]:
        """Return a Stremio-compatible meta preview object."""

        meta: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "poster": self.poster,
            "posterShape": "poster",
            "description": self.description,
            "imdbRating": self.rating,
            "language": self.language,
        }
        if self.background:
            meta["background"] = self.background
        if self.release_info:
            meta["releaseInfo"] = self.release_info
        return meta


class MetaDetail(BaseModel):
    """Full meta object for the meta resource."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: ContentType
    name: str
    poster: str | None = None
    background: str | None = None
    description: str = "No description"
    release_info: str | None = None
    rating: str = ""
    genres: list[str] = Field(default_factory=list)
    cast: list[str] = Field(default_factory=list)
    director: str = ""
    language: str = ""
    runtime: str | None = None

    @classmethod
    def from_detail(
        cls,
        payload: dict[str, Any],
        *,
        imdb_id: str,
        content_type: ContentType,
        poster_base_url: str,
        backdrop_base_url: str,
    ) -> "MetaDetail":
        credits = payload.get("credits") or {}
        cast = [
            str(member.get("name"))
            for member in (credits.get("cast") or [])[:5]
            if isinstance(member, dict) and member.get("name")
        ]
        director = next(
            (
                str(member.get("name") or "")
                for member in credits.get("crew") or []
                if isinstance(member, dict) and member.get("job") == "Director"
            ),
            "",
        )
        genres = [
            str(genre.get("name"))
            for genre in payload.get("genres") or []
            if isinstance(genre, dict) and genre.get("name")
        ]
        released = payload.get("release_date") or payload.get("first_air_date") or ""
        runtime = payload.get("runtime")
        poster_path = payload.get("poster_path")
        backdrop_path = payload.get("backdrop_path")
        vote_average = payload.get("vote_average")
        return cls(
            id=imdb_id,
            type=content_type,
            name=payload.get("title") or payload.get("name") or "Unknown",
            poster=f"{poster_base_url}{poster_path}" if poster_path else None,
            background=f"{backdrop_base_url}{backdrop_path}" if backdrop_path else None,
            description=payload.get("overview") or "No description",
            release_info=str(released)[:4] or None,
            rating=format_rating(vote_average if isinstance(vote_average, (int, float)) else None),
            genres=genres,
            cast=cast,
            director=director,
            language=language_label(payload.get("original_language")),
            runtime=f"{runtime} min" if content_type == "movie" and runtime else None,
        )

    def to_meta(self) -> dict[str, Any]:
        meta: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "posterShape": "poster",
            "description": self.description,
            "imdbRating": self.rating,
            "genres": list(self.genres),
            "cast": list(self.cast),
            "director": self.director,
            "language": self.language,
        }
        for key, value in (
            ("poster", self.poster),
            ("background", self.background),
            ("releaseInfo", self.release_info),
            ("runtime", self.runtime),
        ):
            if value:
                meta[key] = value
        return meta
