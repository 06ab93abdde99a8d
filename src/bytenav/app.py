from __future__ import annotations

import os

from rich.text import Text
from textual.app import App, ComposeResult
from textual.widgets import Footer, Header, Input, Static

from bytenav.core.config import NavigatorConfig
from bytenav.core.cursor import LineCursor, SearchCursor
from bytenav.core.navigator import Navigator
from bytenav.core.spans import SpanMeta


def render_page(
    lines: list[tuple[int, bytes]],
    *,
    encoding: str = "utf-8",
    match: SpanMeta | None = None,
) -> Text:
    """Render (offset, content) rows with an offset gutter.

    A match range overlapping a row is highlighted inside that row.
    """
    out = Text()
    for i, (offset, data) in enumerate(lines):
        if i:
            out.append("\n")
        out.append(f"{offset:08x}  ", style="dim")
        row = Text(data.decode(encoding, errors="replace"))
        if match is not None and match.start < offset + len(data) and match.end > offset:
            lo = max(0, match.start - offset)
            hi = min(len(data), match.end - offset)
            # Byte columns equal text columns only for single-byte content.
            if len(row) == len(data):
                row.stylize("reverse", lo, hi)
        out.append_text(row)
    return out


class BytenavApp(App):
    """Textual pager over a LineCursor with incremental search."""

    CSS = """
    #page { height: 1fr; padding: 0 1; }
    #search { dock: bottom; display: none; }
    #search.visible { display: block; }
    #status { dock: bottom; height: 1; background: $panel; padding: 0 1; }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("j", "next_line", "Next Line"),
        ("k", "prev_line", "Prev Line"),
        ("g", "first_line", "First Line"),
        ("G", "last_line", "Last Line"),
        ("slash", "open_search", "Search"),
        ("n", "next_match", "Next Match"),
        ("p", "prev_match", "Prev Match"),
        ("escape", "cancel_search", "Cancel Search"),
    ]

    PAGE_LINES = 40
    # Keys go to the pager until the search box is opened.
    AUTO_FOCUS = None

    def __init__(self, path: str, *, config: NavigatorConfig | None = None) -> None:
        super().__init__()
        self._path = path
        self._config = config or NavigatorConfig()
        self._nav: Navigator | None = None
        self._line: LineCursor | None = None
        self._match: SearchCursor | None = None
        self.title = f"bytenav: {os.path.basename(path)}"

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static(id="page")
        yield Input(placeholder="search", id="search")
        yield Static(id="status")
        yield Footer()

    async def on_mount(self) -> None:
        self._nav = Navigator.open(self._path, config=self._config)
        self._line = await self._nav.first_line()
        await self._refresh_page()

    async def on_unmount(self) -> None:
        if self._nav is not None:
            await self._nav.close()

    async def _refresh_page(self) -> None:
        if self._line is None:
            return
        cursor = self._line.copy()
        rows: list[tuple[int, bytes]] = []
        for _ in range(self.PAGE_LINES):
            data = await cursor.read()
            rows.append((cursor.meta.start, data))
            if await cursor.next() is None:
                break
        match = self._match.meta if self._match is not None else None
        page = render_page(rows, encoding=self._config.encoding, match=match)
        self.query_one("#page", Static).update(page)
        self._set_status()

    def _set_status(self, message: str = "") -> None:
        parts = []
        if self._line is not None:
            meta = self._line.meta
            parts.append(f"line @ {meta.start:#x}")
        if self._match is not None:
            meta = self._match.meta
            parts.append(f"match [{meta.start:#x}, {meta.end:#x})")
        if message:
            parts.append(message)
        self.query_one("#status", Static).update("  |  ".join(parts))

    async def action_next_line(self) -> None:
        if self._line is not None and await self._line.next() is not None:
            await self._refresh_page()

    async def action_prev_line(self) -> None:
        if self._line is not None and await self._line.prev() is not None:
            await self._refresh_page()

    async def action_first_line(self) -> None:
        if self._nav is not None:
            self._line = await self._nav.first_line()
            await self._refresh_page()

    async def action_last_line(self) -> None:
        if self._nav is not None:
            self._line = await self._nav.last_line()
            await self._refresh_page()

    def action_open_search(self) -> None:
        box = self.query_one("#search", Input)
        box.add_class("visible")
        box.focus()

    def action_cancel_search(self) -> None:
        box = self.query_one("#search", Input)
        box.remove_class("visible")
        self.set_focus(None)

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        self.action_cancel_search()
        if self._nav is None or not event.value:
            return
        self._match = await self._nav.search_first(event.value)
        if self._match is None:
            self._set_status(f"not found: {event.value}")
            return
        await self._show_match()

    async def action_next_match(self) -> None:
        if self._match is None:
            return
        if await self._match.next() is None:
            self._set_status("no further match")
            return
        await self._show_match()

    async def action_prev_match(self) -> None:
        if self._match is None:
            return
        if await self._match.prev() is None:
            self._set_status("no earlier match")
            return
        await self._show_match()

    async def _show_match(self) -> None:
        # Page from the line holding the match start.
        if self._nav is not None and self._match is not None:
            self._line = await self._nav.line_at(self._match.meta.start)
        await self._refresh_page()
