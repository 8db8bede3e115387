"""Tests for previewbox.session module."""

import threading

import pytest

from previewbox.bundle import PreviewboxError, SourceBundle
from previewbox.composer import compose
from previewbox.session import PreviewSession, RenderedDocument


class FakeTimer:
    """Manually fired stand-in for threading.Timer."""

    created: list["FakeTimer"] = []

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.started = False
        self.cancelled = False
        FakeTimer.created.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function()


@pytest.fixture
def timers():
    """Fresh list of fake timers created during a test."""
    FakeTimer.created = []
    return FakeTimer.created


@pytest.fixture
def rendered():
    """Collects documents passed to on_render."""
    return []


@pytest.fixture
def session(timers, rendered):
    """Session driven by fake timers."""
    s = PreviewSession(rendered.append, debounce_ms=250, timer_factory=FakeTimer)
    yield s
    s.dispose()


def _live(timers):
    return [t for t in timers if not t.cancelled]


class TestDebounce:
    """Tests for update() coalescing."""

    def test_update_schedules_timer(self, session, timers):
        """Test update starts one timer with the debounce interval."""
        session.update(SourceBundle(html="<p>a</p>"))
        assert len(timers) == 1
        assert timers[0].started
        assert timers[0].interval == pytest.approx(0.25)
        assert session.pending

    def test_no_render_before_timer_fires(self, session, rendered):
        """Test nothing is rendered until the timer fires."""
        session.update(SourceBundle(html="<p>a</p>"))
        assert rendered == []
        assert session.current is None

    def test_rapid_edits_render_once_with_last_value(self, session, timers, rendered):
        """Test a burst of edits renders once with the newest sources."""
        for i in range(5):
            session.update(SourceBundle(html=f"<p>edit {i}</p>"))

        live = _live(timers)
        assert len(timers) == 5
        assert len(live) == 1
        live[0].fire()

        assert session.render_count == 1
        assert len(rendered) == 1
        assert "<p>edit 4</p>" in rendered[0].markup
        assert "<p>edit 3</p>" not in rendered[0].markup

    def test_cancelled_timer_does_not_render(self, session, timers, rendered):
        """Test a superseded timer that still runs is ignored."""
        session.update(SourceBundle(html="first"))
        session.update(SourceBundle(html="second"))
        timers[0].function()
        assert rendered == []
        timers[1].fire()
        assert len(rendered) == 1

    def test_markup_matches_compose(self, session, timers):
        """Test rendered markup is exactly compose() of the sources."""
        bundle = SourceBundle(html="<h1>x</h1>", css="h1{}", js="var a;")
        session.update(bundle)
        timers[-1].fire()
        assert session.current.markup == compose("<h1>x</h1>", "h1{}", "var a;")

    def test_snapshot_isolated_from_later_mutation(self, session, timers):
        """Test later edits to the caller's bundle do not leak into a render."""
        bundle = SourceBundle(html="before")
        session.update(bundle)
        bundle.html = "after"
        timers[-1].fire()
        assert "before" in session.current.markup
        assert "after" not in session.current.markup

    def test_negative_debounce_rejected(self):
        with pytest.raises(PreviewboxError, match="non-negative"):
            PreviewSession(debounce_ms=-1)

    def test_zero_debounce_still_scheduled(self, timers):
        """Test a zero debounce still goes through a timer."""
        s = PreviewSession(debounce_ms=0, timer_factory=FakeTimer)
        s.update(SourceBundle())
        assert timers[-1].interval == 0
        timers[-1].fire()
        assert s.current is not None


class TestRenderedDocuments:
    """Tests for the documents a session produces."""

    def test_generation_increments(self, session, timers):
        """Test each render bumps the generation by one."""
        session.update(SourceBundle(html="a"))
        timers[-1].fire()
        session.update(SourceBundle(html="b"))
        timers[-1].fire()
        assert session.current.generation == 2

    def test_fresh_key_per_render(self, session, timers, rendered):
        """Test identical sources still get a new render key."""
        session.update(SourceBundle(html="same"))
        timers[-1].fire()
        session.update(SourceBundle(html="same"))
        timers[-1].fire()
        assert rendered[0].markup == rendered[1].markup
        assert rendered[0].key != rendered[1].key

    def test_new_render_replaces_current(self, session, timers, rendered):
        """Test a new render replaces the current document wholesale."""
        session.update(SourceBundle(html="one"))
        timers[-1].fire()
        first = session.current
        session.update(SourceBundle(html="two"))
        timers[-1].fire()
        assert session.current is rendered[-1]
        assert session.current is not first
        assert "one" in first.markup

    def test_str_is_markup(self):
        doc = RenderedDocument(markup="<html></html>", key="k", generation=1)
        assert str(doc) == "<html></html>"

    def test_immutable(self):
        doc = RenderedDocument(markup="x", key="k", generation=1)
        with pytest.raises(AttributeError):
            doc.markup = "y"


class TestRenderCallback:
    """Tests for the on_render callback."""

    def test_callback_error_is_contained(self, timers, caplog):
        """Test a failing callback is logged and the session keeps working."""

        def boom(doc):
            raise RuntimeError("host failure")

        s = PreviewSession(boom, timer_factory=FakeTimer)
        s.update(SourceBundle(html="a"))
        timers[-1].fire()
        assert s.current is not None
        assert "render callback failed" in caplog.text

        s.update(SourceBundle(html="b"))
        timers[-1].fire()
        assert s.current.generation == 2

    def test_callback_runs_without_lock(self, timers):
        """Test another thread can take the session lock during the callback."""
        acquired = []

        def on_render(doc):
            def grab():
                got = s._lock.acquire(timeout=1)
                acquired.append(got)
                if got:
                    s._lock.release()

            worker = threading.Thread(target=grab)
            worker.start()
            worker.join(2)

        s = PreviewSession(on_render, timer_factory=FakeTimer)
        s.update(SourceBundle(html="a"))
        timers[-1].fire()
        assert acquired == [True]
        s.dispose()

    def test_callback_can_hand_off_to_thread_using_session(self, timers):
        """Test a callback waiting on a thread that updates the session."""
        seen = []

        def on_render(doc):
            seen.append(doc.generation)
            if doc.generation == 1:
                worker = threading.Thread(
                    target=s.update, args=(SourceBundle(html="again"),)
                )
                worker.start()
                worker.join(2)
                assert not worker.is_alive()

        s = PreviewSession(on_render, timer_factory=FakeTimer)
        s.update(SourceBundle(html="first"))
        s.flush()
        assert s.pending
        s.flush()
        assert seen == [1, 2]
        assert "again" in s.current.markup
        s.dispose()

    def test_current_set_before_callback(self, timers):
        """Test current already holds the document the callback receives."""
        observed = []
        s = PreviewSession(
            lambda doc: observed.append(s.current is doc), timer_factory=FakeTimer
        )
        s.update(SourceBundle(html="a"))
        timers[-1].fire()
        assert observed == [True]
        s.dispose()


class TestFlush:
    """Tests for flush()."""

    def test_renders_pending_now(self, session, timers, rendered):
        """Test flush renders immediately and cancels the timer."""
        session.update(SourceBundle(html="now"))
        doc = session.flush()
        assert doc is not None
        assert "now" in doc.markup
        assert timers[-1].cancelled
        assert not session.pending
        assert rendered == [doc]

    def test_nothing_pending(self, session):
        """Test flush with nothing pending returns None."""
        assert session.flush() is None
        assert session.render_count == 0

    def test_timer_after_flush_is_noop(self, session, timers, rendered):
        """Test a timer that fires after flush does not render again."""
        session.update(SourceBundle(html="x"))
        session.flush()
        timers[-1].function()
        assert len(rendered) == 1


class TestDispose:
    """Tests for dispose() and the context manager."""

    def test_cancels_pending_timer(self, session, timers, rendered):
        """Test dispose cancels the pending render."""
        session.update(SourceBundle(html="x"))
        session.dispose()
        assert timers[-1].cancelled
        assert not session.pending
        timers[-1].function()
        assert rendered == []

    def test_drops_current(self, session, timers):
        """Test dispose releases the current document."""
        session.update(SourceBundle(html="x"))
        timers[-1].fire()
        session.dispose()
        assert session.current is None
        assert session.disposed

    def test_update_after_dispose_raises(self, session):
        """Test update on a disposed session raises."""
        session.dispose()
        with pytest.raises(PreviewboxError, match="disposed"):
            session.update(SourceBundle())

    def test_idempotent(self, session):
        session.dispose()
        session.dispose()
        assert session.disposed

    def test_context_manager_disposes(self, timers):
        """Test leaving the with block disposes the session."""
        with PreviewSession(timer_factory=FakeTimer) as s:
            s.update(SourceBundle(html="x"))
        assert s.disposed
        assert timers[-1].cancelled


class TestRealTimer:
    """Tests with the default threading.Timer."""

    def test_renders_after_quiet_period(self):
        """Test real timers coalesce a burst into one render."""
        done = threading.Event()
        docs = []

        def on_render(doc):
            docs.append(doc)
            done.set()

        with PreviewSession(on_render, debounce_ms=20) as s:
            for i in range(5):
                s.update(SourceBundle(html=f"<i>{i}</i>"))
            assert done.wait(5)

        assert len(docs) == 1
        assert "<i>4</i>" in docs[0].markup

    def test_dispose_prevents_render(self):
        """Test disposing before the timer fires suppresses the render."""
        docs = []
        s = PreviewSession(docs.append, debounce_ms=50)
        s.update(SourceBundle(html="x"))
        s.dispose()
        threading.Event().wait(0.15)
        assert docs == []
