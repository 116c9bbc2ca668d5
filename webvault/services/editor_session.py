"""
Editor session — one open note: the editable buffer, its derived preview and
the autosave debouncer that keeps the stored copy in step with the buffer.
"""

import logging
from typing import Callable

from webvault.services.autosave import AutosaveDebouncer, DEFAULT_DELAY, Notice
from webvault.services.markdown_utils import note_stats
from webvault.services.wikilinks import extract_wikilinks, render_markdown, resolve_wikilink

logger = logging.getLogger(__name__)


class EditorSession:
    """Keeps buffer, preview and persisted copy of a single file consistent."""

    def __init__(
        self,
        file_id: int,
        content: str,
        persist: Callable[[str], object],
        delay: float = DEFAULT_DELAY,
        scheduler=None,
        on_notice: Callable[[Notice], None] | None = None,
    ):
        self.file_id = file_id
        self.autosave = AutosaveDebouncer(
            persist,
            delay=delay,
            scheduler=scheduler,
            on_notice=on_notice,
            content=content or "",
        )
        self._preview_source: str | None = None
        self._preview_html = ""

    @property
    def content(self) -> str:
        return self.autosave.content

    def edit(self, content: str) -> None:
        self.autosave.update(content)

    def reload(self, content: str) -> None:
        """Replace the buffer with the stored copy, e.g. after a remote pull."""
        self.autosave.load(content or "")

    @property
    def preview(self) -> str:
        # re-rendered only when the buffer changed since the last render
        if self._preview_source != self.content:
            self._preview_html = render_markdown(self.content)
            self._preview_source = self.content
        return self._preview_html

    @property
    def links(self) -> list[str]:
        return extract_wikilinks(self.content)

    @property
    def stats(self) -> dict:
        return note_stats(self.content)

    @property
    def has_unsaved_changes(self) -> bool:
        return self.autosave.has_unsaved_changes

    @property
    def last_saved(self):
        return self.autosave.last_saved

    def save(self) -> bool:
        return self.autosave.save()

    def follow_link(self, target: str, files):
        """Resolve a clicked wikilink; an unknown target is a silent no-op."""
        return resolve_wikilink(target, files)

    def close(self, wait: float | None = None) -> bool:
        """Flush pending edits before the buffer goes away."""
        saved = self.autosave.flush(wait=wait)
        if self.has_unsaved_changes:
            logger.warning("Closing file %s with unsaved changes.", self.file_id)
        return saved
