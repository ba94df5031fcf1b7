"""Board — a small Textual app sharing one store between independent widgets.

TextInput writes the text atom, TextDisplay echoes it, and PostList shows and
appends to the posts list atom. None of them references another; the store
passed in at construction is the only thing they share.
"""

from __future__ import annotations

from dataclasses import dataclass

from rich.text import Text
from textual import on
from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.widgets import Input, Static

from atomx.atom import Atom
from atomx.selector import Selector
from atomx.store import Store
from atomx.textual import AtomReader, AtomWriter


@dataclass(frozen=True)
class Post:
    id: int
    title: str


@dataclass(frozen=True)
class Board:
    """The application's fixed schema: one store and its handles."""

    store: Store
    text: Atom[str]
    posts: Atom[list[Post]]
    text_length: Selector[int]
    post_count: Selector[int]


def build_board(store: Store | None = None) -> Board:
    """Create the board's atoms and selectors in store (a fresh one by default)."""
    store = store or Store()
    text = store.create_atom("", name="text")
    posts = store.create_atom([], value_type=list[Post], name="posts")
    text_length = store.create_selector([text], len, name="text_length")
    post_count = store.create_selector([posts], len, name="post_count")
    return Board(store, text, posts, text_length, post_count)


class TextInput(AtomWriter, Input):
    """Writes every edit to the text atom."""

    def __init__(self, board: Board, **kwargs) -> None:
        super().__init__(placeholder="Type something...", **kwargs)
        self._write_text = self.writer_for(board.store, board.text)

    def on_input_changed(self, event: Input.Changed) -> None:
        self._write_text(event.value)


class TextDisplay(AtomReader, Static):
    """Echoes the text atom and its length."""

    def __init__(self, board: Board, **kwargs) -> None:
        super().__init__("", **kwargs)
        self._board = board
        self.shown_text = ""
        self.shown_length = 0

    def on_mount(self) -> None:
        self.bind_atom(self._board.store, self._board.text, self._show_text)
        self.bind_atom(self._board.store, self._board.text_length, self._show_length)

    def _show_text(self, text: str) -> None:
        self.shown_text = text
        self._refresh_label()

    def _show_length(self, length: int) -> None:
        self.shown_length = length
        self._refresh_label()

    def _refresh_label(self) -> None:
        self.update(Text(f"Echo: {self.shown_text}  ({self.shown_length} chars)"))


class PostList(AtomReader, AtomWriter, Vertical):
    """Lists posts in insertion order and appends new ones on submit."""

    def __init__(self, board: Board, **kwargs) -> None:
        super().__init__(**kwargs)
        self._board = board
        self._append_post = self.appender_for(board.store, board.posts)
        self.shown_titles: list[str] = []

    def compose(self) -> ComposeResult:
        yield Input(placeholder="New post title", id="post-title")
        yield Static(id="post-items")
        yield Static(id="post-count")

    def on_mount(self) -> None:
        self.bind_atom(self._board.store, self._board.posts, self._show_posts)
        self.bind_atom(self._board.store, self._board.post_count, self._show_count)

    def add_post(self, title: str) -> None:
        title = title.strip()
        if not title:
            return
        next_id = self._board.store.read(self._board.post_count) + 1
        self._append_post(Post(next_id, title))

    @on(Input.Submitted, "#post-title")
    def _submitted(self, event: Input.Submitted) -> None:
        self.add_post(event.value)
        event.input.value = ""

    def _show_posts(self, posts: list[Post]) -> None:
        self.shown_titles = [post.title for post in posts]
        lines = "\n".join(f"{post.id}. {post.title}" for post in posts)
        self.query_one("#post-items", Static).update(Text(lines or "No posts yet"))

    def _show_count(self, count: int) -> None:
        self.query_one("#post-count", Static).update(Text(f"{count} posts"))


class BoardApp(App):
    """Text input, text display and post list over one shared store."""

    TITLE = "atomx board"
    CSS = """
    Screen {
        align: center middle;
    }
    #title {
        text-style: bold;
        margin-bottom: 1;
    }
    #editor, PostList {
        width: 60;
        height: auto;
        border: round $accent;
        padding: 0 1;
    }
    """

    def __init__(self, board: Board | None = None) -> None:
        super().__init__()
        self.board = board or build_board()

    def compose(self) -> ComposeResult:
        yield Static("Simple atomx example", id="title")
        with Vertical(id="editor"):
            yield TextInput(self.board, id="text-input")
            yield TextDisplay(self.board, id="text-display")
        yield PostList(self.board, id="post-list")

    def on_mount(self) -> None:
        self.board.store.set_scheduler(self.call_from_thread)
