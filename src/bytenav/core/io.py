from __future__ import annotations

import asyncio
import logging
import os
from collections import OrderedDict
from contextlib import suppress
from typing import Protocol

try:
    import mmap as _mmap_mod  # type: ignore
except Exception:  # pragma: no cover - platform-specific
    _mmap_mod = None  # type: ignore

logger = logging.getLogger(__name__)


class InvalidOffset(ValueError):
    """Raised when an invalid (e.g., negative) position or length is provided."""


class ByteSource(Protocol):
    """Sized, ranged reads over one resource.

    `read_range` returns exactly `length` bytes; the part past the end of
    the resource is zero-filled.
    """

    async def size(self) -> int: ...

    async def read_range(self, position: int, length: int) -> bytes: ...

    async def close(self) -> None: ...


def _check_range(position: int, length: int) -> None:
    if position < 0:
        raise InvalidOffset("position must be >= 0")
    if length < 0:
        raise InvalidOffset("length must be >= 0")


def _pad(data: bytes, length: int) -> bytes:
    if len(data) < length:
        return data + b"\x00" * (length - len(data))
    return data


class MemorySource:
    """Byte source over an in-memory buffer."""

    def __init__(self, data: bytes | bytearray) -> None:
        self._data = bytes(data)
        self._closed = False

    async def size(self) -> int:
        self._ensure_open()
        return len(self._data)

    async def read_range(self, position: int, length: int) -> bytes:
        self._ensure_open()
        _check_range(position, length)
        return _pad(self._data[position : position + length], length)

    async def close(self) -> None:
        self._closed = True

    def _ensure_open(self) -> None:
        if self._closed:
            raise ValueError("I/O operation on closed source")


class FileSource:
    """Byte source over a local file.

    Prefers `mmap` for slices; falls back to buffered reads with a small LRU
    page cache. The full file is never loaded into memory at once.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        page_size: int = 64 * 1024,
        cache_pages: int = 16,
        use_mmap: bool = True,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        if cache_pages <= 0:
            raise ValueError("cache_pages must be positive")

        self._path = os.fspath(path)
        if not os.path.isfile(self._path):
            raise FileNotFoundError(f"File not found: {self._path}")

        self._fh = open(self._path, "rb", buffering=0)  # noqa: SIM115
        self._page_size = int(page_size)
        self._cache_limit = int(cache_pages)
        self._cache: OrderedDict[int, bytes] = OrderedDict()
        self._cached_size = os.fstat(self._fh.fileno()).st_size
        # One handle; seek+read pairs must not interleave.
        self._lock = asyncio.Lock()
        self._closed = False

        self._use_mmap = use_mmap and _mmap_mod is not None
        self._mmap = None
        self._remap()
        logger.info("opened %s (%d bytes, mmap=%s)", self._path, self._cached_size, self._mmap is not None)

    @property
    def path(self) -> str:
        return self._path

    async def size(self) -> int:
        self._ensure_open()
        current = os.fstat(self._fh.fileno()).st_size
        if current != self._cached_size:
            logger.debug("%s changed size: %d -> %d", self._path, self._cached_size, current)
            self._cache.clear()
            self._cached_size = current
            # A mapping is fixed at the size it was created with.
            self._remap()
        return current

    async def read_range(self, position: int, length: int) -> bytes:
        self._ensure_open()
        _check_range(position, length)
        if length == 0:
            return b""
        if self._mmap is not None:
            end = min(len(self._mmap), position + length)
            data = bytes(self._mmap[position:end]) if position < end else b""
            return _pad(data, length)
        async with self._lock:
            data = await asyncio.to_thread(self._read_buffered, position, length)
        return _pad(data, length)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._mmap is not None:
            with suppress(Exception):
                self._mmap.close()
            self._mmap = None
        self._fh.close()
        self._cache.clear()
        logger.info("closed %s", self._path)

    def _remap(self) -> None:
        if self._mmap is not None:
            with suppress(Exception):
                self._mmap.close()
            self._mmap = None
        if not self._use_mmap or self._cached_size == 0:
            return
        try:
            self._mmap = _mmap_mod.mmap(
                self._fh.fileno(),
                length=0,
                access=_mmap_mod.ACCESS_READ,
            )
        except Exception:
            # Fall back to buffered cache path if mmap fails.
            self._mmap = None

    def _ensure_open(self) -> None:
        if self._closed:
            raise ValueError("I/O operation on closed source")

    def _page(self, index: int) -> bytes:
        if index in self._cache:
            self._cache.move_to_end(index)
            return self._cache[index]

        start = index * self._page_size
        if start >= self._cached_size:
            data = b""
        else:
            self._fh.seek(start)
            data = self._fh.read(min(self._page_size, self._cached_size - start))

        self._cache[index] = data
        if len(self._cache) > self._cache_limit:
            self._cache.popitem(last=False)  # evict LRU
        return data

    def _read_buffered(self, position: int, length: int) -> bytes:
        end = min(self._cached_size, position + length)
        result = bytearray()
        pos = position
        while pos < end:
            page_index = pos // self._page_size
            page = self._page(page_index)
            within = pos - page_index * self._page_size
            take = min(len(page) - within, end - pos)
            if take <= 0:
                break
            result += page[within : within + take]
            pos += take
        return bytes(result)
