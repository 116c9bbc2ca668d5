"""Small text helpers used by the editor: filenames, slugs and note statistics."""

import math
import re

WORDS_PER_MINUTE = 200


def sanitize_filename(filename: str) -> str:
    """Drop characters that are invalid in file names."""
    return re.sub(r'[<>:"/\\|?*]', "", filename).strip()


def generate_slug(title: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower())
    return slug.strip("-")


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size)
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 2):g} {units[i]}"


def word_count(content: str) -> int:
    return len(content.split())


def character_count(content: str) -> int:
    return len(content)


def line_count(content: str) -> int:
    return len(content.split("\n"))


def reading_time(content: str) -> int:
    """Minutes to read at 200 words per minute, rounded up."""
    return math.ceil(word_count(content) / WORDS_PER_MINUTE)


def note_stats(content: str) -> dict:
    content = content or ""
    return {
        "words": word_count(content),
        "characters": character_count(content),
        "lines": line_count(content),
        "reading_time": reading_time(content),
        "size": format_file_size(len(content.encode("utf-8"))),
    }
