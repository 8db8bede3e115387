"""Debounced preview sessions.

A PreviewSession owns the state an editor keeps for its live preview: the
pending debounce timer and the currently displayed document. Each edit
restarts the timer; only the last snapshot is composed when it fires.
"""

import functools
import logging
import secrets
import threading
from collections.abc import Callable
from dataclasses import dataclass

from .bundle import PreviewboxError, SourceBundle
from .composer import compose_bundle

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 250


@dataclass(frozen=True)
class RenderedDocument:
    """A composed preview document.

    ``key`` is a fresh nonce per render so the host can force a clean reload
    of the frame instead of patching it. ``generation`` counts renders
    within a session.
    """

    markup: str
    key: str
    generation: int

    def __str__(self) -> str:
        return self.markup


class PreviewSession:
    """Debounced composer for one editor view.

    Args:
        on_render: Called with each new RenderedDocument. Runs on the timer
            thread unless the render was triggered by flush().
        debounce_ms: Quiet period after the last update before rendering.
        timer_factory: Callable with the threading.Timer signature
            ``(interval_seconds, function)`` returning an object with
            start() and cancel().
    """

    def __init__(
        self,
        on_render: Callable[[RenderedDocument], None] | None = None,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        timer_factory: Callable = threading.Timer,
    ):
        if debounce_ms < 0:
            raise PreviewboxError("debounce_ms must be non-negative")
        self._on_render = on_render
        self._debounce_ms = debounce_ms
        self._timer_factory = timer_factory
        self._lock = threading.RLock()
        self._timer = None
        self._pending: SourceBundle | None = None
        self._current: RenderedDocument | None = None
        self._generation = 0
        self._scheduled = 0
        self._disposed = False

    @property
    def debounce_ms(self) -> int:
        return self._debounce_ms

    @property
    def current(self) -> RenderedDocument | None:
        """The most recently rendered document, or None."""
        return self._current

    @property
    def pending(self) -> bool:
        """True while a render is scheduled but has not run yet."""
        return self._pending is not None

    @property
    def render_count(self) -> int:
        return self._generation

    @property
    def disposed(self) -> bool:
        return self._disposed

    def update(self, bundle: SourceBundle) -> None:
        """Schedule a render of a snapshot of ``bundle``.

        Cancels any render still pending; the newest snapshot wins.

        Raises:
            PreviewboxError: If the session has been disposed.
        """
        with self._lock:
            if self._disposed:
                raise PreviewboxError("Preview session has been disposed")
            self._pending = bundle.snapshot()
            self._cancel_timer()
            self._scheduled += 1
            timer = self._timer_factory(
                self._debounce_ms / 1000.0, functools.partial(self._fire, self._scheduled)
            )
            # Timer threads must not keep the interpreter alive
            if isinstance(timer, threading.Thread):
                timer.daemon = True
            self._timer = timer
            timer.start()
            logger.debug("Render scheduled in %d ms", self._debounce_ms)

    def flush(self) -> RenderedDocument | None:
        """Render the pending snapshot now.

        Returns:
            The new document, or None if nothing was pending.
        """
        with self._lock:
            self._cancel_timer()
            document = self._render_pending()
        self._notify(document)
        return document

    def dispose(self) -> None:
        """Cancel any pending render and drop the current document."""
        with self._lock:
            if self._disposed:
                return
            self._cancel_timer()
            self._pending = None
            self._current = None
            self._disposed = True
            logger.debug("Preview session disposed after %d render(s)", self._generation)

    def _fire(self, scheduled: int) -> None:
        with self._lock:
            # A timer cancelled while waiting on the lock is stale
            if scheduled != self._scheduled:
                return
            self._timer = None
            document = self._render_pending()
        self._notify(document)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _render_pending(self) -> RenderedDocument | None:
        # Caller holds the lock
        if self._disposed or self._pending is None:
            return None

        bundle, self._pending = self._pending, None
        markup = compose_bundle(bundle)
        self._generation += 1
        document = RenderedDocument(
            markup=markup,
            key=secrets.token_hex(8),
            generation=self._generation,
        )
        self._current = document
        logger.debug(
            "Rendered generation %d (%d chars)", document.generation, len(markup)
        )
        return document

    def _notify(self, document: RenderedDocument | None) -> None:
        # Called without the lock held
        if document is None or self._on_render is None:
            return
        try:
            self._on_render(document)
        except Exception:
            logger.exception("Preview render callback failed")

    def __enter__(self) -> "PreviewSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()
