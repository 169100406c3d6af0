"""Utility helpers for the catalogue service."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Awaitable, Callable, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

LANGUAGE_LABELS: dict[str, str] = {
    "hi": "Hindi",
    "en": "English",
    "ta": "Tamil",
    "te": "Telugu",
    "ml": "Malayalam",
    "kn": "Kannada",
    "mr": "Marathi",
    "bn": "Bengali",
    "pa": "Punjabi",
}


async def gather_ordered(
    items: Sequence[T],
    func: Callable[[T], Awaitable[R]],
    *,
    limit: int,
    default: R,
) -> list[R]:
    """Run ``func`` over ``items`` concurrently and return results in input order.

    At most ``limit`` calls are in flight at once. A call that raises yields
    ``default`` in its slot so one failing lookup never fails the batch.
    """

    if not items:
        return []
    semaphore = asyncio.Semaphore(max(1, limit))

    async def _run(item: T) -> R:
        async with semaphore:
            return await func(item)

    results = await asyncio.gather(
        *(_run(item) for item in items), return_exceptions=True
    )
    ordered: list[R] = []
    for item, result in zip(items, results):
        if isinstance(result, BaseException):
            if isinstance(result, asyncio.CancelledError):
                raise result
            logger.warning("Concurrent lookup failed for %r: %s", item, result)
            ordered.append(default)
            continue
        ordered.append(result)
    return ordered


def as_of_date(offset_minutes: int, *, now: datetime | None = None) -> str:
    """Return today's date as ``YYYY-MM-DD`` in a fixed UTC offset.

    The host timezone is ignored; naive ``now`` values are taken as UTC.
    """

    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    zone = timezone(timedelta(minutes=offset_minutes))
    return current.astimezone(zone).date().isoformat()


def language_label(code: str | None) -> str:
    """Return a display label for an ISO 639-1 language code."""

    cleaned = (code or "").strip().lower()
    return LANGUAGE_LABELS.get(cleaned, cleaned.upper())


def parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def format_release_info(value: str | None) -> str | None:
    """Return ``DD-MM-YYYY`` for a full date, else the year, else ``None``."""

    parsed = parse_date(value)
    if parsed is not None:
        return parsed.strftime("%d-%m-%Y")
    if value and len(value) >= 4:
        return value[:4]
    return None


def format_rating(value: float | None) -> str:
    if not value:
        return ""
    return f"{value:.1f}"
