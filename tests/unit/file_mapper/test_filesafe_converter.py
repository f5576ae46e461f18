"""Unit tests for file_mapper.filesafe_converter module."""

import pytest
from src.file_mapper.filesafe_converter import FilesafeConverter


class TestSanitize:
    """Test cases for FilesafeConverter.sanitize method."""

    @pytest.mark.parametrize("title,expected", [
        ("Client/Server", "Client-Server"),
        ("Path\\To\\File", "Path-To-File"),
        ("Q&A: Setup", "Q&A- Setup"),
        ("Option A|Option B", "Option A-Option B"),
        ("Important*Notice", "Important★Notice"),
        ("What is REST?", "What is REST？"),
        ('The "Best" Practices', "The 'Best' Practices"),
        ("<Draft>", "《Draft》"),
    ])
    def test_special_characters_are_replaced(self, title, expected):
        """Unsafe characters become visually similar safe ones."""
        assert FilesafeConverter.sanitize(title) == expected

    def test_case_and_unicode_preserved(self):
        """Case and non-ASCII characters are kept as they are."""
        assert FilesafeConverter.sanitize("API 设计 Guide") == "API 设计 Guide"

    def test_whitespace_trimmed(self):
        """Leading and trailing whitespace is removed."""
        assert FilesafeConverter.sanitize("  Roadmap  ") == "Roadmap"

    @pytest.mark.parametrize("title", ["", "   ", ".", "..", None])
    def test_empty_or_special_names(self, title):
        """Names that cannot be a path segment become 'untitled'."""
        assert FilesafeConverter.sanitize(title) == "untitled"

    def test_never_contains_separator(self):
        """The result is always a single path segment."""
        assert "/" not in FilesafeConverter.sanitize("a/b/c")
        assert "\\" not in FilesafeConverter.sanitize("a\\b")

    def test_collisions_are_possible(self):
        """Different titles may sanitize to the same name; callers accept it."""
        assert FilesafeConverter.sanitize("a/b") == FilesafeConverter.sanitize("a:b")


class TestTitleToFilename:
    """Test cases for FilesafeConverter.title_to_filename method."""

    def test_markdown_extension(self):
        """Titles get the .md extension by default."""
        assert FilesafeConverter.title_to_filename("Release notes: 2.0") == "Release notes- 2.0.md"

    def test_custom_extension(self):
        """Other extensions can be requested."""
        assert FilesafeConverter.title_to_filename("Data", extension=".json") == "Data.json"
