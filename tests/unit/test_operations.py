"""Tests for query encoding and media URL helpers."""

import pytest

from strapi_transfer.operations import (
    encode_query_params,
    file_data_from_url,
    is_extension_allowed,
    to_absolute_url,
)
from strapi_transfer.operations.media import is_absolute_url


class TestEncodeQueryParams:
    """Tests for bracket-notation encoding."""

    def test_nested_filters(self) -> None:
        params = encode_query_params({"filters": {"slug": {"$eq": "hello"}}})

        assert params == {"filters[slug][$eq]": "hello"}

    def test_lists_are_indexed(self) -> None:
        params = encode_query_params({"filters": {"documentId": {"$in": ["a", "b"]}}})

        assert params == {
            "filters[documentId][$in][0]": "a",
            "filters[documentId][$in][1]": "b",
        }

    def test_populate_and_booleans(self) -> None:
        params = encode_query_params(
            {
                "status": "draft",
                "populate": {"seo": {"populate": {"image": True}}, "blocks": "*"},
            }
        )

        assert params == {
            "status": "draft",
            "populate[seo][populate][image]": "true",
            "populate[blocks]": "*",
        }

    def test_none_skipped(self) -> None:
        assert encode_query_params({"locale": None, "pagination": {"page": 2}}) == {
            "pagination[page]": 2
        }


class TestMediaUrls:
    """Tests for URL helpers."""

    def test_to_absolute_url(self) -> None:
        assert (
            to_absolute_url("https://cms.example.com/", "/uploads/a.png")
            == "https://cms.example.com/uploads/a.png"
        )

    def test_absolute_url_untouched(self) -> None:
        url = "https://cdn.example.com/a.png"

        assert to_absolute_url("https://cms.example.com", url) == url
        assert is_absolute_url(url)
        assert not is_absolute_url("/uploads/a.png")

    def test_file_data_from_url(self) -> None:
        data = file_data_from_url("https://cdn.example.com/uploads/My%20Cover.PNG")

        assert data.name == "uploads-My Cover.PNG"
        assert data.extension == "png"
        assert data.hash == "uploads_My_Cover"

    def test_file_data_without_extension(self) -> None:
        data = file_data_from_url("https://cdn.example.com/files/readme")

        assert data.extension == ""
        assert data.name == "files-readme"


class TestAllowedExtensions:
    """Tests for allowedTypes checks."""

    @pytest.mark.parametrize(
        ("ext", "types", "allowed"),
        [
            ("png", ["images"], True),
            (".JPG", ["images"], True),
            ("mp4", ["images"], False),
            ("mp4", ["images", "videos"], True),
            ("mp3", ["audios"], True),
            ("pdf", ["files"], True),
            ("pdf", None, True),
            ("pdf", ["any"], True),
        ],
    )
    def test_is_extension_allowed(self, ext: str, types: list[str] | None, allowed: bool) -> None:
        assert is_extension_allowed(ext, types) is allowed

    def test_unknown_type(self) -> None:
        with pytest.raises(ValueError, match="not handled"):
            is_extension_allowed("png", ["documents"])
