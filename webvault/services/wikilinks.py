"""
Wikilink processing — turns ``[[Target]]`` and ``[[Target|Display]]`` into
renderable markdown links, renders notes to HTML, and resolves link targets
back to concrete files in a vault.

Converted links look like ``[Display](wikilink:Target)``.  The target is
percent-encoded so spaces survive markdown link parsing, and converted text
contains no ``[[...]]`` sequences, so converting twice is a no-op.
"""

import html
import logging
import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from urllib.parse import quote, unquote

import markdown

logger = logging.getLogger(__name__)

WIKILINK_SCHEME = "wikilink:"
NOTE_EXTENSION = ".md"

# ![[embeds]] are left alone; brackets are not allowed inside the link
WIKILINK_RE = re.compile(r"(?<!!)\[\[([^\[\]\n]+)\]\]")

_ANCHOR_RE = re.compile(r'<a href="wikilink:([^"]*)"')
_EXTERNAL_RE = re.compile(r'<a href="(https?://[^"]+)"')

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "sane_lists", "nl2br"]


@dataclass(frozen=True)
class Wikilink:
    target: str
    display: str

    @property
    def href(self) -> str:
        return wikilink_href(self.target)


def parse_wikilink(inner: str) -> Wikilink | None:
    """Split the text between the brackets into target and display text."""
    target, _, display = inner.partition("|")
    target = target.strip()
    if not target:
        return None
    display = display.strip() or target
    return Wikilink(target=target, display=display)


def wikilink_href(target: str) -> str:
    return WIKILINK_SCHEME + quote(target, safe="/#")


def target_from_href(href: str) -> str | None:
    """Recover the raw target from a converted link, or None for other links."""
    if not href or not href.startswith(WIKILINK_SCHEME):
        return None
    return unquote(href[len(WIKILINK_SCHEME):])


def process_wikilinks(text: str) -> str:
    """Rewrite every wikilink in *text* into a markdown link."""

    def replace(m):
        link = parse_wikilink(m.group(1))
        if link is None:
            return m.group(0)
        return f"[{link.display}]({link.href})"

    return WIKILINK_RE.sub(replace, text)


def iter_wikilinks(text: str):
    for m in WIKILINK_RE.finditer(text):
        link = parse_wikilink(m.group(1))
        if link is not None:
            yield link


def extract_wikilinks(text: str) -> list[str]:
    """Raw link targets in order of appearance (duplicates kept)."""
    return [link.target for link in iter_wikilinks(text)]


def render_markdown(text: str) -> str:
    """Render a note to HTML with wikilinks as clickable ``a.wikilink`` anchors."""
    body = markdown.markdown(process_wikilinks(text or ""), extensions=MARKDOWN_EXTENSIONS)

    def wikilink_anchor(m):
        # the pattern captures only what follows the scheme
        target = target_from_href(WIKILINK_SCHEME + html.unescape(m.group(1))) or ""
        return f'<a href="#" class="wikilink" data-target="{html.escape(target, quote=True)}"'

    body = _ANCHOR_RE.sub(wikilink_anchor, body)
    body = _EXTERNAL_RE.sub(
        r'<a href="\1" target="_blank" rel="noopener noreferrer"',
        body,
    )
    return body


# ── Resolution ────────────────────────────────────────────────────────

def _strip_heading(target: str) -> str:
    return target.split("#", 1)[0].strip()


def _name_variants(target: str) -> set[str]:
    variants = {target}
    if target.lower().endswith(NOTE_EXTENSION):
        variants.add(target[: -len(NOTE_EXTENSION)])
    else:
        variants.add(target + NOTE_EXTENSION)
    return variants


def resolve_wikilink(target: str, files):
    """
    Find the file a wikilink points at.  Tried in order, first match wins:

      1. exact name match
      2. name match with or without the ``.md`` extension
      3. path match (leading slash and extension optional)
      4. case-insensitive name match

    Folders are never link targets.  Returns None when nothing matches.
    """
    wanted = _strip_heading(target)
    notes = [f for f in files if not f.is_folder]
    if not wanted:
        return None

    for f in notes:
        if f.name == wanted:
            return f

    variants = _name_variants(wanted)
    for f in notes:
        if f.name in variants or PurePosixPath(f.name).stem == wanted:
            return f

    path_variants = {v.strip("/") for v in _name_variants(wanted)}
    for f in notes:
        if f.path.strip("/") in path_variants:
            return f

    lowered = {v.lower() for v in variants}
    for f in notes:
        if f.name.lower() in lowered or PurePosixPath(f.name).stem.lower() == wanted.lower():
            return f

    logger.info("Wikilink target not found: %s", target)
    return None


def link_graph(files) -> list[dict]:
    """Resolved ``{"source", "target"}`` edges between notes, de-duplicated."""
    files = list(files)
    edges = []
    seen = set()
    for f in files:
        if f.is_folder or not f.content:
            continue
        for target in extract_wikilinks(f.content):
            hit = resolve_wikilink(target, files)
            if hit is None or hit.id == f.id:
                continue
            key = (f.id, hit.id)
            if key not in seen:
                seen.add(key)
                edges.append({"source": f.id, "target": hit.id})
    return edges


def backlinks(file, files) -> list:
    """Notes whose wikilinks resolve to *file*."""
    files = list(files)
    by_id = {f.id: f for f in files}
    sources = [e["source"] for e in link_graph(files) if e["target"] == file.id]
    return [by_id[s] for s in sources]
