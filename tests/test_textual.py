"""Tests for atomx.textual — Textual integration layer."""

import threading

import pytest
from textual.css.query import NoMatches

from atomx import Store
from atomx import textual as atx


class _MockApp:
    """Minimal mock matching the Textual App interface atx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running


class _MockWidget(atx.AtomReader, atx.AtomWriter):
    """Queues posted messages instead of dispatching them, like a busy UI thread."""

    def __init__(self, app):
        self.app = app
        self.posted = []

    def post_message(self, message):
        self.posted.append(message)
        return True

    def dispatch_posted(self):
        posted, self.posted = self.posted, []
        for message in posted:
            self.on_atom_effect(message)


def _store_with_text():
    s = Store()
    return s, s.create_atom("")


class TestGuarded:
    def test_skips_when_not_running(self):
        app = _MockApp(is_running=False)
        s, text = _store_with_text()
        effects = []
        s.subscribe(text, atx.guarded(app, effects.append, _MockWidget(app)))
        s.write(text, "a")
        assert effects == []

    def test_fires_when_safe(self):
        app = _MockApp()
        s, text = _store_with_text()
        effects = []
        s.subscribe(text, atx.guarded(app, effects.append, _MockWidget(app)))
        s.write(text, "a")
        assert effects == ["a"]

    def test_catches_nomatch(self):
        """NoMatches from widget queries is swallowed."""
        app = _MockApp()
        s, text = _store_with_text()

        def _raise_nomatch(v):
            raise NoMatches("PostList")

        s.subscribe(text, atx.guarded(app, _raise_nomatch, _MockWidget(app)))
        s.write(text, "a")  # should not raise

    def test_propagates_real_errors(self):
        """Non-NoMatches exceptions propagate normally."""
        app = _MockApp()
        s, text = _store_with_text()

        def _raise_value_error(v):
            raise ValueError("boom")

        s.subscribe(text, atx.guarded(app, _raise_value_error, _MockWidget(app)))
        with pytest.raises(ValueError, match="boom"):
            s.write(text, "a")

    def test_background_notification_posts_message(self):
        """A pass on a background thread hands the effect over without waiting."""
        widget = _MockWidget(_MockApp())
        s, text = _store_with_text()
        effects = []
        widget.bind_atom(s, text, effects.append)

        t = threading.Thread(target=lambda: s.write(text, "bg"))
        t.start()
        t.join(timeout=5)

        assert not t.is_alive()
        assert effects == [""]  # not run on the background thread
        assert len(widget.posted) == 1
        assert isinstance(widget.posted[0], atx.AtomEffect)

        # The UI thread is free to use the store before draining its queue.
        assert s._lock.acquire(timeout=1)
        s._lock.release()
        widget.dispatch_posted()
        assert effects == ["", "bg"]

    def test_posted_effect_dropped_after_unmount(self):
        widget = _MockWidget(_MockApp())
        s, text = _store_with_text()
        effects = []
        widget.bind_atom(s, text, effects.append)

        t = threading.Thread(target=lambda: s.write(text, "late"))
        t.start()
        t.join(timeout=5)

        widget.on_unmount()
        widget.dispatch_posted()
        assert effects == [""]


class TestAtomReader:
    def test_bind_runs_effect_immediately(self):
        widget = _MockWidget(_MockApp())
        s, text = _store_with_text()
        s.write(text, "initial")
        seen = []
        widget.bind_atom(s, text, seen.append)
        assert seen == ["initial"]

    def test_bound_effect_follows_writes(self):
        widget = _MockWidget(_MockApp())
        s, text = _store_with_text()
        seen = []
        widget.bind_atom(s, text, seen.append)
        s.write(text, "next")
        assert seen == ["", "next"]

    def test_unmount_releases_all(self):
        widget = _MockWidget(_MockApp())
        s, text = _store_with_text()
        length = s.create_selector([text], len)
        seen = []
        widget.bind_atom(s, text, seen.append)
        widget.bind_atom(s, length, seen.append)
        assert s.observer_count(text) == 1
        assert s.observer_count(length) == 1

        widget.on_unmount()
        widget.on_unmount()  # idempotent
        s.write(text, "gone")
        assert s.observer_count(text) == 0
        assert s.observer_count(length) == 0
        assert seen == ["", 0]

    def test_skips_when_app_stops(self):
        app = _MockApp()
        widget = _MockWidget(app)
        s, text = _store_with_text()
        seen = []
        widget.bind_atom(s, text, seen.append)
        app.is_running = False
        s.write(text, "shutting down")
        assert seen == [""]


class TestAtomWriter:
    def test_writer_for(self):
        widget = _MockWidget(_MockApp())
        s, text = _store_with_text()
        widget.writer_for(s, text)("typed")
        assert s.read(text) == "typed"

    def test_appender_for(self):
        widget = _MockWidget(_MockApp())
        s = Store()
        posts = s.create_atom([])
        append = widget.appender_for(s, posts)
        append("A")
        append("B")
        assert s.read(posts) == ["A", "B"]
