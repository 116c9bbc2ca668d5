"""Tests for note text helpers."""

import pytest

from webvault.services.markdown_utils import (
    format_file_size,
    generate_slug,
    line_count,
    note_stats,
    reading_time,
    sanitize_filename,
    word_count,
)


class TestFilenames:
    def test_sanitize_drops_invalid_characters(self):
        assert sanitize_filename('a<b>c:"d/e\\f|g?h*.md') == "abcdefgh.md"

    def test_sanitize_trims(self):
        assert sanitize_filename("  Note.md  ") == "Note.md"

    def test_slug(self):
        assert generate_slug("Hello, World! 2024") == "hello-world-2024"

    def test_slug_strips_edges(self):
        assert generate_slug("  --Draft--  ") == "draft"


class TestFileSize:
    @pytest.mark.parametrize("size, expected", [
        (0, "0 Bytes"),
        (512, "512 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (1048576, "1 MB"),
        (5 * 1024 ** 3, "5 GB"),
    ])
    def test_format(self, size, expected):
        assert format_file_size(size) == expected


class TestStats:
    def test_word_count_ignores_extra_whitespace(self):
        assert word_count("  one   two\nthree ") == 3

    def test_line_count(self):
        assert line_count("a\nb\nc") == 3

    def test_reading_time_rounds_up(self):
        assert reading_time("word " * 200) == 1
        assert reading_time("word " * 201) == 2
        assert reading_time("") == 0

    def test_note_stats(self):
        stats = note_stats("# Title\nSome words here")
        assert stats == {
            "words": 5,
            "characters": 23,
            "lines": 2,
            "reading_time": 1,
            "size": "23 Bytes",
        }

    def test_note_stats_tolerates_none(self):
        assert note_stats(None)["words"] == 0
