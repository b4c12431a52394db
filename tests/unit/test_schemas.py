"""Tests for request model sanitization.

Filter input never raises: malformed values are clamped, defaulted or dropped.
"""

import pytest

from assetindex.models.schemas import MAX_ROW_OFFSET, FileQueryParams, FolderOrder, SortField, SortOrder


class TestFileQueryParamsDefaults:
    """Defaults with no input."""

    def test_defaults(self):
        params = FileQueryParams()
        assert params.folderId is None
        assert params.search is None
        assert params.format == []
        assert params.color == []
        assert params.tagIds == []
        assert params.rating is None
        assert params.sortBy == SortField.createdAt
        assert params.sortOrder == SortOrder.desc
        assert params.page == 1
        assert params.limit == 50


class TestFileQueryParamsSanitization:
    """Per-field sanitization."""

    def test_search_truncated(self):
        params = FileQueryParams(search="x" * 500)
        assert len(params.search) == 200

    def test_empty_search_is_none(self):
        assert FileQueryParams(search="").search is None

    def test_mime_type_truncated(self):
        params = FileQueryParams(mimeType="  image/" + "x" * 200)
        assert params.mimeType.startswith("image/")
        assert len(params.mimeType) == 100

    def test_format_parsing(self):
        params = FileQueryParams(format=" PNG, jpg,,j.pg,png ,tar.gz,webp")
        assert params.format == ["png", "jpg", "webp"]

    def test_format_cap_applies_before_filtering(self):
        junk = ",".join(["*"] * 50)
        assert FileQueryParams(format=f"{junk},png").format == []
        assert FileQueryParams(format=["gif"] * 60).format == ["gif"]

    def test_colors(self):
        params = FileQueryParams(color="#FF0000,red,#00ff00,#ff0000,#12345")
        assert params.color == ["#ff0000", "#00ff00"]

    def test_colors_capped(self):
        colors = ",".join(f"#0000{i:02x}" for i in range(15))
        assert len(FileQueryParams(color=colors).color) == 10

    @pytest.mark.parametrize(
        "raw, expected",
        [(3, 3), ("4", 4), ("9", 5), (-1, 0), ("2.7", 2), ("abc", None), (None, None), (True, None)],
    )
    def test_rating(self, raw, expected):
        assert FileQueryParams(rating=raw).rating == expected

    def test_tag_ids(self):
        params = FileQueryParams(tagIds="tag_1, bad id!,tag-2,,../x")
        assert params.tagIds == ["tag_1", "tag-2"]

    def test_tag_ids_capped(self):
        assert len(FileQueryParams(tagIds=[f"tag_{i}" for i in range(30)]).tagIds) == 20

    @pytest.mark.parametrize(
        "raw, expected",
        [("name", SortField.name), ("format", SortField.format), ("bogus", SortField.createdAt), (None, SortField.createdAt)],
    )
    def test_sort_by(self, raw, expected):
        assert FileQueryParams(sortBy=raw).sortBy == expected

    @pytest.mark.parametrize(
        "raw, expected",
        [("asc", SortOrder.asc), ("ASC", SortOrder.asc), (SortOrder.asc, SortOrder.asc), ("sideways", SortOrder.desc)],
    )
    def test_sort_order(self, raw, expected):
        assert FileQueryParams(sortOrder=raw).sortOrder == expected

    @pytest.mark.parametrize("raw, expected", [(3, 3), (0, 1), (-5, 1), ("2", 2), ("x", 1)])
    def test_page(self, raw, expected):
        assert FileQueryParams(page=raw).page == expected

    @pytest.mark.parametrize("raw", [float("inf"), float("-inf"), float("nan"), "inf"])
    def test_non_finite_page_is_first_page(self, raw):
        assert FileQueryParams(page=raw).page == 1

    def test_huge_page_keeps_offset_in_range(self):
        params = FileQueryParams(page=10**20, limit=200)
        assert params.page > 1
        assert (params.page - 1) * params.limit <= MAX_ROW_OFFSET

    def test_non_finite_limit_is_default(self):
        assert FileQueryParams(limit=float("inf")).limit == 50

    @pytest.mark.parametrize("raw, expected", [(20, 20), (0, 50), (500, 200), (-1, 1), ("x", 50), (None, 50)])
    def test_limit(self, raw, expected):
        assert FileQueryParams(limit=raw).limit == expected

    def test_folder_id_blank_is_none(self):
        assert FileQueryParams(folderId="  ").folderId is None


class TestFolderOrder:
    """Reorder entries are strict."""

    def test_valid(self):
        order = FolderOrder.model_validate({"id": "folder_1", "sortOrder": 3})
        assert (order.id, order.sortOrder) == ("folder_1", 3)

    @pytest.mark.parametrize(
        "payload",
        [{"id": "folder_1"}, {"id": "no spaces", "sortOrder": 1}, {"id": "folder_1", "sortOrder": False}],
    )
    def test_invalid(self, payload):
        with pytest.raises(ValueError):
            FolderOrder.model_validate(payload)
