"""Offset translation and page size learning."""

from __future__ import annotations

import pytest

from app.models import CatalogQuerySignature
from app.services.pagination import PageSizeLearner, upstream_page
from tests.factories import FakeTimer, build_store


@pytest.mark.parametrize("page_size", [1, 7, 17, 20, 100])
def test_offset_zero_is_first_page(page_size: int) -> None:
    assert upstream_page(0, page_size) == 1


@pytest.mark.parametrize(
    ("offset", "page_size", "expected"),
    [(19, 20, 1), (20, 20, 2), (39, 20, 2), (17, 17, 2), (34, 17, 3), (50, 17, 3)],
)
def test_upstream_page_boundaries(offset: int, page_size: int, expected: int) -> None:
    assert upstream_page(offset, page_size) == expected


def test_upstream_page_is_monotonic() -> None:
    pages = [upstream_page(offset, 17) for offset in range(200)]
    assert pages == sorted(pages)


def test_negative_offset_clamps_to_first_page() -> None:
    assert upstream_page(-5, 20) == 1


def test_non_positive_page_size_rejected() -> None:
    with pytest.raises(ValueError):
        upstream_page(10, 0)


def _learner(timer: FakeTimer | None = None) -> PageSizeLearner:
    return PageSizeLearner(build_store(timer), default_page_size=20, ttl=86_400)


def test_learner_defaults_until_learned() -> None:
    learner = _learner()
    signature = CatalogQuerySignature.build("movie", "indian_latest")

    assert learner.page_size(signature) == 20


def test_learner_records_first_page_count() -> None:
    learner = _learner()
    signature = CatalogQuerySignature.build("movie", "indian_latest")

    assert learner.learn(signature, 17, offset=0) is True
    assert learner.page_size(signature) == 17
    assert upstream_page(17, learner.page_size(signature)) == 2
    assert upstream_page(34, learner.page_size(signature)) == 3


def test_learner_ignores_later_pages_and_empty_results() -> None:
    learner = _learner()
    signature = CatalogQuerySignature.build("movie", "indian_latest")

    assert learner.learn(signature, 5, offset=20) is False
    assert learner.learn(signature, 0, offset=0) is False
    assert learner.page_size(signature) == 20


def test_learned_sizes_are_scoped_by_signature() -> None:
    learner = _learner()
    plain = CatalogQuerySignature.build("movie", "indian_latest")
    searched = CatalogQuerySignature.build("movie", "indian_latest", "  dune ")

    learner.learn(searched, 12, offset=0)

    assert searched.search == "dune"
    assert learner.page_size(plain) == 20
    assert learner.page_size(searched) == 12


def test_learned_size_expires() -> None:
    timer = FakeTimer()
    learner = _learner(timer)
    signature = CatalogQuerySignature.build("series", "hollywood_series_latest")
    learner.learn(signature, 18, offset=0)

    timer.advance(86_401)

    assert learner.page_size(signature) == 20


def test_signature_keys() -> None:
    plain = CatalogQuerySignature.build("movie", "hollywood_latest", "   ")
    searched = CatalogQuerySignature.build("movie", "hollywood_latest", "alien")

    assert plain.search is None
    assert plain.page_key(2) == "movie:hollywood_latest:p2"
    assert searched.page_size_key == "ps:movie:hollywood_latest:s:alien"
    assert plain == CatalogQuerySignature.build("movie", "hollywood_latest")
