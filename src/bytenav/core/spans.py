from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass


class InvalidInsertion(RuntimeError):
    """Raised when a span cannot be placed in the ordered list without overlap."""

    def __init__(self, new: tuple[int, int], existing: tuple[int, int]) -> None:
        super().__init__(
            f"span [{new[0]}, {new[1]}) overlaps existing span [{existing[0]}, {existing[1]})"
        )
        self.new = new
        self.existing = existing


@dataclass(frozen=True)
class SpanMeta:
    start: int
    end: int
    read_reverse: bool = False


@dataclass
class Span:
    """Half-open byte range node of a `SpanList`.

    `match_start`/`match_end` keep the range as it was discovered;
    `start`/`end` may later be patched (line cursors widen separator
    matches into whole lines). Ordering always uses the discovered range.
    """

    start: int
    end: int
    read_reverse: bool = False
    match_start: int = -1
    match_end: int = -1
    index: int = -1
    before: int | None = None
    after: int | None = None
    # Set once a scan from this span toward that side came back empty.
    scanned_after: bool = False
    scanned_before: bool = False

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"invalid span range [{self.start}, {self.end})")
        if self.match_start < 0:
            self.match_start = self.start
        if self.match_end < 0:
            self.match_end = self.end

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def match_range(self) -> tuple[int, int]:
        return (self.match_start, self.match_end)

    @property
    def meta(self) -> SpanMeta:
        return SpanMeta(self.start, self.end, self.read_reverse)


class SpanList:
    """Position-ordered doubly linked list of spans, stored as an arena.

    Links are arena indices, so spans never reference each other directly.
    The list only grows; spans are never unlinked once added.
    """

    def __init__(self) -> None:
        self._items: list[Span] = []

    def __len__(self) -> int:
        return len(self._items)

    def get(self, index: int) -> Span:
        return self._items[index]

    def next_of(self, span: Span) -> Span | None:
        return None if span.after is None else self._items[span.after]

    def prev_of(self, span: Span) -> Span | None:
        return None if span.before is None else self._items[span.before]

    def first_item(self, span: Span) -> Span:
        cur = span
        while cur.before is not None:
            cur = self._items[cur.before]
        return cur

    def last_item(self, span: Span) -> Span:
        cur = span
        while cur.after is not None:
            cur = self._items[cur.after]
        return cur

    def iter_forward(self, span: Span) -> Iterator[Span]:
        cur: Span | None = span
        while cur is not None:
            yield cur
            cur = self.next_of(cur)

    def last_forward(self, span: Span) -> Span | None:
        """Right-most span of the forward-discovered run the list starts with.

        Forward scans grow the list from the front, reverse scans from the
        back; this is the edge where the forward run hands over to spans
        tagged `read_reverse`. None when the list holds reverse spans only.

        Inspection helper: cursors never need it to settle a first or last
        span, since every scan is clipped to its range and no undiscovered
        match ever sits between two linked neighbours.
        """
        cur: Span | None = span
        if span.read_reverse:
            while cur is not None and cur.read_reverse:
                cur = self.prev_of(cur)
            return cur
        while cur is not None:
            nxt = self.next_of(cur)
            if nxt is None or nxt.read_reverse:
                return cur
            cur = nxt
        return None

    def last_reverse(self, span: Span) -> Span | None:
        """Left-most span of the reverse-discovered run, the counterpart of `last_forward`."""
        cur: Span | None = span
        if not span.read_reverse:
            while cur is not None and not cur.read_reverse:
                cur = self.next_of(cur)
            return cur
        while cur is not None:
            prev = self.prev_of(cur)
            if prev is None or not prev.read_reverse:
                return cur
            cur = prev
        return None

    def add(self, anchor: Span | None, span: Span) -> Span:
        """Insert `span` in order, searching outward from `anchor`.

        The first span of an empty list is added with `anchor=None`.
        Returns the span now holding that range: `span` itself, or the
        existing span when the same range was already known.
        """
        if span.index != -1:
            raise ValueError("span already belongs to a list")
        if anchor is None:
            if self._items:
                raise ValueError("an anchor is required once the list is non-empty")
            return self._register(span)
        if span.match_range == anchor.match_range:
            return anchor
        if span.match_start < anchor.match_start:
            return self._search_and_add_before(anchor, span)
        return self._search_and_add_after(anchor, span)

    def _register(self, span: Span) -> Span:
        span.index = len(self._items)
        self._items.append(span)
        return span

    def _search_and_add_before(self, anchor: Span, span: Span) -> Span:
        cur = anchor
        while True:
            prev = self.prev_of(cur)
            if prev is not None and prev.match_range == span.match_range:
                return prev
            if prev is None or prev.match_start < span.match_start:
                self._check_slot(prev, span, cur)
                return self._link_between(prev, span, cur)
            cur = prev

    def _search_and_add_after(self, anchor: Span, span: Span) -> Span:
        cur = anchor
        while True:
            nxt = self.next_of(cur)
            if nxt is not None and nxt.match_range == span.match_range:
                return nxt
            if nxt is None or nxt.match_start > span.match_start:
                self._check_slot(cur, span, nxt)
                return self._link_between(cur, span, nxt)
            cur = nxt

    @staticmethod
    def _check_slot(left: Span | None, span: Span, right: Span | None) -> None:
        if left is not None and left.match_end > span.match_start:
            raise InvalidInsertion(span.match_range, left.match_range)
        if left is not None and left.match_start == span.match_start:
            raise InvalidInsertion(span.match_range, left.match_range)
        if right is not None and span.match_end > right.match_start:
            raise InvalidInsertion(span.match_range, right.match_range)

    def _link_between(self, left: Span | None, span: Span, right: Span | None) -> Span:
        self._register(span)
        if left is not None:
            left.after = span.index
            span.before = left.index
        if right is not None:
            right.before = span.index
            span.after = right.index
        return span
