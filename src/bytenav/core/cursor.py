from __future__ import annotations

from abc import ABC, abstractmethod

from bytenav.core.index import MatchIndex
from bytenav.core.spans import Span, SpanMeta


class Cursor(ABC):
    """Bidirectional position on the span list of one `MatchIndex`.

    `has_next`/`has_prev` may scan once to grow the list; `next`/`prev`
    move and return the cursor itself, or None at either end.
    """

    def __init__(self, index: MatchIndex, span: Span, pattern: bytes) -> None:
        self._index = index
        self._span = span
        self._pattern = pattern

    @property
    def pattern(self) -> bytes:
        return self._pattern

    @property
    def index(self) -> MatchIndex:
        return self._index

    @property
    def span(self) -> Span:
        return self._span

    @property
    def meta(self) -> SpanMeta:
        return self._span.meta

    def copy(self) -> Cursor:
        return type(self)(self._index, self._span, self._pattern)

    @abstractmethod
    async def has_next(self) -> bool: ...

    @abstractmethod
    async def has_prev(self) -> bool: ...

    async def next(self) -> Cursor | None:
        nxt = self._index.spans.next_of(self._span) if await self.has_next() else None
        if nxt is None:
            return None
        self._span = nxt
        return self

    async def prev(self) -> Cursor | None:
        prev = self._index.spans.prev_of(self._span) if await self.has_prev() else None
        if prev is None:
            return None
        self._span = prev
        return self

    def __repr__(self) -> str:
        return f"{type(self).__name__}(start={self._span.start}, end={self._span.end})"


class SearchCursor(Cursor):
    """Cursor over the occurrences of one pattern."""

    async def has_next(self) -> bool:
        cur = self._span
        if cur.after is not None:
            return True
        if cur.scanned_after:
            return False
        size = await self._index.size()
        found = await self._index.scan_forward(self._pattern, cur.end, size, anchor=cur)
        if found is None or found.match_range == cur.match_range:
            cur.scanned_after = True
            return False
        return True

    async def has_prev(self) -> bool:
        cur = self._span
        if cur.before is not None:
            return True
        if cur.scanned_before:
            return False
        found = await self._index.scan_reverse(self._pattern, 0, cur.start, anchor=cur)
        if found is None or found.match_range == cur.match_range:
            cur.scanned_before = True
            return False
        return True

    async def read(self) -> bytes:
        """Matched bytes."""
        return await self._index.read(self._span.start, self._span.length)


class LineCursor(Cursor):
    """Cursor over the lines delimited by a separator.

    Spans are separator matches widened into lines: a line span runs from
    the end of the previous separator to the end of its own separator, and
    the last line ends in a virtual separator at `[size, size + len(sep))`.
    A span found by a reverse scan keeps its raw start until the preceding
    separator is looked up (`has_prev`, `read`).
    """

    def __init__(self, index: MatchIndex, span: Span, separator: bytes) -> None:
        super().__init__(index, span, separator)
        self._patch_prev_items()
        self._patch_next_items()

    @property
    def separator(self) -> bytes:
        return self._pattern

    def _patch_prev_items(self) -> None:
        spans = self._index.spans
        cur = self._span
        prev = spans.prev_of(cur)
        while prev is not None:
            cur.start = prev.end
            cur = prev
            prev = spans.prev_of(cur)

    def _patch_next_items(self) -> None:
        spans = self._index.spans
        cur = self._span
        nxt = spans.next_of(cur)
        while nxt is not None:
            nxt.start = cur.end
            cur = nxt
            nxt = spans.next_of(cur)

    async def has_next(self) -> bool:
        cur = self._span
        if cur.after is not None:
            return True
        size = await self._index.size()
        if cur.end >= size:
            return False
        found = await self._index.scan_forward(self._pattern, cur.end, size, anchor=cur)
        if found is None:
            sep_len = len(self._pattern)
            tail = Span(cur.end, size + sep_len, match_start=size, match_end=size + sep_len)
            self._index.spans.add(cur, tail)
        else:
            self._patch_next_items()
        return True

    async def has_prev(self) -> bool:
        cur = self._span
        if cur.before is not None:
            return True
        if cur.start == 0:
            return False
        found = await self._index.scan_reverse(self._pattern, 0, cur.match_start, anchor=cur)
        if found is None:
            cur.start = 0
            return False
        self._patch_prev_items()
        return True

    async def read(self, encoding: str | None = None, errors: str = "strict") -> bytes | str:
        """Line content without its separator; text when `encoding` is given.

        `errors` is handed to `bytes.decode`.
        """
        await self.has_prev()  # resolves the line start
        length = self._span.length - len(self._pattern)
        data = await self._index.read(self._span.start, length) if length > 0 else b""
        if encoding is None:
            return data
        return data.decode(encoding, errors)
