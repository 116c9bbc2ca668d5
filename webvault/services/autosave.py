"""
Autosave — debounced persistence for an editable buffer.

Every change (re)starts a timer; when it fires, the current content is handed
to a ``persist`` callable.  Rapid edits therefore collapse into one write per
debounce window.  Only one save runs at a time: a save requested while another
is in flight is dropped, and once the in-flight save finishes a follow-up is
scheduled if the buffer has moved on.

Failures never raise out of the debouncer.  They surface a ``Notice`` and the
buffer stays dirty, so the next change (or ``flush`` on shutdown) retries.
"""

import datetime
import logging
import threading
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

DEFAULT_DELAY = 1.0


@dataclass(frozen=True)
class Notice:
    """A user-facing message, shown as a toast by whatever UI hosts the editor."""
    title: str
    description: str
    variant: str = "default"


class ThreadingScheduler:
    """Runs callbacks on ``threading.Timer`` threads."""

    def call_later(self, delay: float, callback: Callable[[], None]):
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


def _log_notice(notice: Notice) -> None:
    logger.warning("%s: %s", notice.title, notice.description)


class AutosaveDebouncer:
    """Debounced, single-flight saving of one buffer."""

    def __init__(
        self,
        persist: Callable[[str], object],
        delay: float = DEFAULT_DELAY,
        scheduler=None,
        on_notice: Callable[[Notice], None] | None = None,
        on_saved: Callable[[str], None] | None = None,
        content: str = "",
    ):
        self.persist = persist
        self.delay = delay
        self.scheduler = scheduler or ThreadingScheduler()
        self.on_notice = on_notice or _log_notice
        self.on_saved = on_saved

        self._lock = threading.RLock()
        self._timer = None
        self._generation = 0
        self._saving = False
        self._idle = threading.Event()
        self._idle.set()
        self.content = content
        self.saved_content = content
        self.last_saved: datetime.datetime | None = None

    # ── State ─────────────────────────────────────────────────────────

    @property
    def has_unsaved_changes(self) -> bool:
        return self.content != self.saved_content

    @property
    def is_saving(self) -> bool:
        return self._saving

    @property
    def is_scheduled(self) -> bool:
        return self._timer is not None

    def load(self, content: str) -> None:
        """Start tracking a freshly opened buffer; nothing is pending afterwards."""
        with self._lock:
            self._cancel_timer()
            self.content = content
            self.saved_content = content

    # ── Editing ───────────────────────────────────────────────────────

    def update(self, content: str) -> None:
        """Record a change and (re)start the debounce timer."""
        with self._lock:
            self.content = content
            if self.has_unsaved_changes:
                self._schedule()
            else:
                self._cancel_timer()

    def save(self) -> bool:
        """
        Persist the current content now.  Returns True when a write happened
        and succeeded; False when nothing was written (no changes, a save
        already in flight, or the write failed).
        """
        with self._lock:
            self._cancel_timer()
            if self._saving:
                logger.debug("Save already in flight; dropping request.")
                return False
            if not self.has_unsaved_changes:
                return False
            self._saving = True
            self._idle.clear()
            snapshot = self.content

        try:
            self.persist(snapshot)
        except Exception as exc:
            logger.exception("Auto-save failed")
            with self._lock:
                self._saving = False
                self._idle.set()
            self.on_notice(Notice(
                title="Save Failed",
                description=f"Failed to save changes. Please try again. ({exc})",
                variant="destructive",
            ))
            return False

        with self._lock:
            self._saving = False
            self.saved_content = snapshot
            self.last_saved = datetime.datetime.utcnow()
            self._idle.set()
            if self.has_unsaved_changes:
                self._schedule()
        if self.on_saved:
            self.on_saved(snapshot)
        return True

    def flush(self, wait: float | None = None) -> bool:
        """
        Best-effort synchronous save, for shutdown or closing the buffer.

        With *wait*, first give a save running on another thread up to that
        many seconds to finish, so the last edit is not dropped as a
        mid-flight request.  Never pass it from inside ``persist``.
        """
        if wait is not None and not self._idle.wait(wait):
            logger.warning("Save still in flight after %.1fs; flushing anyway.", wait)
        with self._lock:
            self._cancel_timer()
            pending = self.has_unsaved_changes
        if not pending:
            return False
        return self.save()

    def cancel(self) -> None:
        with self._lock:
            self._cancel_timer()

    # ── Timer ─────────────────────────────────────────────────────────

    def _schedule(self) -> None:
        self._cancel_timer()
        generation = self._generation
        self._timer = self.scheduler.call_later(self.delay, lambda: self._fire(generation))

    def _cancel_timer(self) -> None:
        # a timer thread may already be running; bumping the generation makes it a no-op
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None
        self.save()
