from app.models import MetaPreview, RawItem


def _preview(**fields) -> MetaPreview | None:
    item = RawItem.model_validate(
        {"id": 5, "title": "Film", "poster_path": "/p.jpg", **fields}
    )
    return MetaPreview.from_raw(
        item,
        imdb_id="tt0000005",
        content_type="movie",
        poster_base_url="https://img.test/w500",
        backdrop_base_url="https://img.test/original",
    )


def test_preview_formats_full_item():
    meta = _preview(
        backdrop_path="/b.jpg",
        release_date="2024-05-01",
        vote_average=7.25,
        original_language="ta",
        overview="Plot",
    )

    assert meta is not None
    assert meta.to_meta() == {
        "id": "tt0000005",
        "type": "movie",
        "name": "Film",
        "poster": "https://img.test/w500/p.jpg",
        "posterShape": "poster",
        "background": "https://img.test/original/b.jpg",
        "description": "Plot",
        "releaseInfo": "01-05-2024",
        "imdbRating": "7.2",
        "language": "Tamil",
    }


def test_preview_defaults_for_sparse_item():
    meta = _preview(title=None, original_title="Original", release_date="2019")

    assert meta is not None
    payload = meta.to_meta()
    assert payload["name"] == "Original"
    assert payload["description"] == "No description"
    assert payload["releaseInfo"] == "2019"
    assert payload["imdbRating"] == ""
    assert payload["language"] == ""
    assert "background" not in payload


def test_preview_requires_poster_and_identifier():
    assert _preview(poster_path=None) is None

    item = RawItem(id=1, poster_path="/p.jpg")
    assert (
        MetaPreview.from_raw(
            item,
            imdb_id="",
            content_type="movie",
            poster_base_url="",
            backdrop_base_url="",
        )
        is None
    )


def test_raw_item_ignores_unknown_fields_and_prefers_release_date():
    item = RawItem.model_validate(
        {"id": 1, "release_date": "2022-02-02", "first_air_date": "2020-01-01", "genre_ids": [1]}
    )
    series = RawItem.model_validate({"id": 2, "name": "Show", "first_air_date": "2021-03-04"})

    assert item.released_on == "2022-02-02"
    assert series.released_on == "2021-03-04"
    assert series.display_name == "Show"
    assert RawItem(id=3).released_on == ""
