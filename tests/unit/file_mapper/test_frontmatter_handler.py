"""Unit tests for file_mapper.frontmatter_handler module."""

from datetime import datetime, timedelta, timezone

import pytest

from src.file_mapper.errors import FrontmatterError
from src.file_mapper.frontmatter_handler import FrontmatterHandler

CST = timezone(timedelta(hours=8))


class TestGenerate:
    """Test cases for FrontmatterHandler.generate."""

    def test_full_block(self):
        """All fields appear in order and round-trip through YAML."""
        content = FrontmatterHandler.generate(
            title="Storage: design",
            doc_id="doxcnABC",
            body="# Body\n",
            tz=CST,
            created_at=datetime(2024, 3, 1, 2, 0, tzinfo=timezone.utc),
            updated_at=datetime(2024, 3, 5, 10, 30, tzinfo=timezone.utc),
            category="Backend",
            tags=["Guides", "Backend"],
        )

        frontmatter, body = FrontmatterHandler.extract_frontmatter_and_content(content)
        assert list(frontmatter) == ['title', 'date', 'updated', 'categories', 'tags', 'id']
        assert frontmatter['title'] == "Storage: design"
        assert frontmatter['date'] == "2024-03-01T10:00:00+08:00"
        assert frontmatter['updated'] == "2024-03-05T18:30:00+08:00"
        assert frontmatter['categories'] == ["Backend"]
        assert frontmatter['tags'] == ["Guides", "Backend"]
        assert frontmatter['id'] == "doxcnABC"
        assert body == "# Body\n"
        assert content.endswith("---\n\n# Body\n")

    def test_empty_tags_are_omitted(self):
        """Documents at the root have no tags key."""
        content = FrontmatterHandler.generate(
            title="Home", doc_id="doxcnH", body="", tz=CST,
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            category="Uncategorized", tags=[],
        )

        frontmatter, _ = FrontmatterHandler.extract_frontmatter_and_content(content)
        assert 'tags' not in frontmatter
        assert frontmatter['categories'] == ["Uncategorized"]

    def test_unicode_is_kept_readable(self):
        """Non-ASCII titles are written as-is, not escaped."""
        content = FrontmatterHandler.generate(
            title="存储设计", doc_id="doxcnZ", body="", tz=CST,
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        assert "title: 存储设计" in content

    def test_same_inputs_render_identically(self):
        """Rendering is deterministic when timestamps are known."""
        kwargs = dict(
            title="A", doc_id="doxcnA", body="x", tz=CST,
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            updated_at=datetime(2024, 1, 2, tzinfo=timezone.utc),
            category="C", tags=["C"],
        )
        assert FrontmatterHandler.generate(**kwargs) == FrontmatterHandler.generate(**kwargs)


class TestFormatTimestamp:
    """Test cases for timestamp rendering."""

    def test_converts_to_zone(self):
        """Aware datetimes are converted to the configured offset."""
        value = datetime(2024, 3, 1, 23, 30, tzinfo=timezone.utc)
        assert FrontmatterHandler.format_timestamp(value, CST) == "2024-03-02T07:30:00+08:00"

    def test_naive_is_taken_as_local_zone(self):
        """Naive datetimes are interpreted in the configured offset."""
        value = datetime(2024, 3, 1, 9, 0, 0, 123456)
        assert FrontmatterHandler.format_timestamp(value, CST) == "2024-03-01T09:00:00+08:00"

    def test_missing_uses_now(self):
        """Unknown timestamps fall back to the current time."""
        rendered = FrontmatterHandler.format_timestamp(None, CST)
        parsed = datetime.fromisoformat(rendered)
        assert abs((datetime.now(CST) - parsed).total_seconds()) < 5


class TestExtract:
    """Test cases for frontmatter extraction."""

    def test_no_frontmatter(self):
        """Plain markdown yields an empty dict."""
        assert FrontmatterHandler.extract_frontmatter_and_content("# Hi\n") == ({}, "# Hi\n")

    def test_invalid_yaml(self):
        """Broken YAML raises FrontmatterError."""
        with pytest.raises(FrontmatterError):
            FrontmatterHandler.extract_frontmatter_and_content("---\ntitle: [unclosed\n---\nbody")

    def test_non_mapping(self):
        """A YAML list is not valid frontmatter."""
        with pytest.raises(FrontmatterError):
            FrontmatterHandler.extract_frontmatter_and_content("---\n- a\n- b\n---\nbody")
