"""Chunk geometry and in-chunk pattern matching.

Everything here is pure: no I/O, no list state. The scan drivers in
`bytenav.core.index` feed these windows to a byte source.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CHUNK = 1024


@dataclass(frozen=True)
class ForwardWindow:
    position: int
    read_length: int
    next_position: int


@dataclass(frozen=True)
class ReverseWindow:
    position: int
    length: int


def chunk_size_for(pattern_length: int, base: int = DEFAULT_CHUNK) -> int:
    """Chunk size for a pattern: the base chunk, or 3x the pattern when larger."""
    return max(base, pattern_length * 3)


def find_occurrences(pattern: bytes, chunk: bytes) -> list[int]:
    """Return non-overlapping start offsets of `pattern` in `chunk`, left to right."""
    if not pattern:
        raise ValueError("pattern must not be empty")
    hits: list[int] = []
    i = chunk.find(pattern)
    while i != -1:
        hits.append(i)
        i = chunk.find(pattern, i + len(pattern))
    return hits


def next_forward_window(position: int, chunk_size: int, pattern_length: int) -> ForwardWindow:
    """Window read at `position` when scanning toward the end.

    Consecutive windows overlap by pattern_length + pattern_length // 2
    bytes, so an occurrence cut by the end of one window lies whole inside
    the next one.
    """
    return ForwardWindow(
        position=position,
        read_length=chunk_size + pattern_length,
        next_position=position + chunk_size - pattern_length // 2,
    )


def next_reverse_window(
    current: int, chunk_size: int, pattern_length: int, min_position: int
) -> ReverseWindow:
    """Window ending near `current` when scanning toward the start.

    Clamped at `min_position`; a clamped window reads from `min_position`
    up to `current + pattern_length // 2`.
    """
    position = current - (chunk_size + pattern_length // 2)
    length = chunk_size + pattern_length
    if position < min_position:
        position = min_position
        length = current - min_position + pattern_length // 2
    return ReverseWindow(position=position, length=length)
