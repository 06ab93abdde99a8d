from __future__ import annotations

from pathlib import Path

import pytest

from bytenav.core.io import MemorySource
from bytenav.core.navigator import Navigator

FRONT = b"---\nkey: value\n---\n### EOF"


async def lines_forward(nav: Navigator, sep: bytes | None = None) -> list[bytes]:
    cursor = await nav.first_line(sep)
    out = [await cursor.read()]
    while await cursor.next() is not None:
        out.append(await cursor.read())
    return out


async def lines_reverse(nav: Navigator, sep: bytes | None = None) -> list[bytes]:
    cursor = await nav.last_line(sep)
    out = [await cursor.read()]
    while await cursor.prev() is not None:
        out.append(await cursor.read())
    return out


@pytest.mark.asyncio
async def test_front_matter_lines() -> None:
    nav = Navigator(MemorySource(FRONT))
    line = await nav.first_line()
    assert await line.read("utf-8") == "---"
    for _ in range(3):
        assert await line.next() is line
    assert await line.read("utf-8") == "### EOF"
    assert await line.has_next() is False
    assert await line.next() is None


@pytest.mark.asyncio
async def test_last_line_walks_back() -> None:
    nav = Navigator(MemorySource(FRONT))
    line = await nav.last_line()
    assert await line.read() == b"### EOF"
    assert await line.prev() is line
    assert await line.read() == b"---"
    assert await line.prev() is line
    assert await line.read() == b"key: value"
    assert await line.prev() is line
    assert await line.read() == b"---"
    assert await line.has_prev() is False
    assert await line.prev() is None


@pytest.mark.asyncio
@pytest.mark.parametrize("chunk", [4, 16, 1024])
@pytest.mark.parametrize("sep", [b"\n", b"\r\n", b"<br/>"])
async def test_line_round_trip(chunk: int, sep: bytes) -> None:
    lines = [f"line {i} ".encode() * (i % 7) for i in range(60)]
    data = sep.join(lines)
    nav = Navigator(MemorySource(data), chunk_size=chunk)
    assert await lines_forward(nav, sep) == lines
    assert await lines_reverse(nav, sep) == list(reversed(lines))


@pytest.mark.asyncio
async def test_empty_resource_is_one_empty_line() -> None:
    nav = Navigator(MemorySource(b""))
    first = await nav.first_line()
    assert await first.read() == b""
    assert await first.has_next() is False
    assert await first.has_prev() is False
    last = await nav.last_line()
    assert await last.read("utf-8") == ""
    assert await last.has_next() is False
    assert await last.has_prev() is False


@pytest.mark.asyncio
async def test_no_separator_is_one_line() -> None:
    nav = Navigator(MemorySource(b"just one line"))
    assert await lines_forward(nav) == [b"just one line"]
    assert await lines_reverse(nav) == [b"just one line"]
    line = await nav.first_line()
    assert line.meta.start == 0
    assert line.meta.end == len(b"just one line") + 1


@pytest.mark.asyncio
async def test_trailing_separator_ends_last_line() -> None:
    nav = Navigator(MemorySource(b"a\nb\n"))
    assert await lines_forward(nav) == [b"a", b"b"]
    assert await lines_reverse(nav) == [b"b", b"a"]


@pytest.mark.asyncio
async def test_blank_lines_are_kept() -> None:
    data = b"\n\nmid\n\n"
    nav = Navigator(MemorySource(data), chunk_size=4)
    assert await lines_forward(nav) == [b"", b"", b"mid", b""]
    assert await lines_reverse(nav) == [b"", b"mid", b"", b""]


@pytest.mark.asyncio
async def test_direction_changes() -> None:
    lines = [f"row-{i}".encode() for i in range(200)]
    nav = Navigator(MemorySource(b"\n".join(lines)), chunk_size=8)
    line = await nav.first_line()
    for _ in range(50):
        await line.next()
    assert await line.read() == b"row-50"
    for _ in range(20):
        await line.prev()
    assert await line.read() == b"row-30"

    line = await nav.last_line()
    for _ in range(120):
        await line.prev()
    assert await line.read() == b"row-79"
    await line.next()
    assert await line.read() == b"row-80"


@pytest.mark.asyncio
async def test_copy_leaves_original_in_place() -> None:
    nav = Navigator(MemorySource(b"one\ntwo\nthree"))
    line = await nav.first_line()
    ahead = line.copy()
    await ahead.next()
    await ahead.next()
    assert await ahead.read() == b"three"
    assert await line.read() == b"one"
    # the copy grew the shared list; the original sees it without rescanning
    reads = line.index.reads
    assert await line.next() is line
    assert await line.read() == b"two"
    assert line.index.reads == reads


@pytest.mark.asyncio
async def test_str_separator_and_encoding() -> None:
    text = "grüße;über;ende"
    nav = Navigator(MemorySource(text.encode("utf-8")), separator=";")
    line = await nav.first_line()
    out = [await line.read("utf-8")]
    while await line.next() is not None:
        out.append(await line.read("utf-8"))
    assert out == ["grüße", "über", "ende"]


@pytest.mark.asyncio
async def test_lines_from_file(tmp_path: Path) -> None:
    lines = [f"{i:05d} " + "x" * (i % 50) for i in range(2000)]
    p = tmp_path / "big.txt"
    p.write_text("\n".join(lines) + "\n", encoding="utf-8")
    async with Navigator.open(p) as nav:
        first = await nav.first_line()
        assert await first.read("utf-8") == lines[0]
        last = await nav.last_line()
        assert await last.read("utf-8") == lines[-1]
        await last.prev()
        assert await last.read("utf-8") == lines[-2]


@pytest.mark.asyncio
@pytest.mark.parametrize("chunk", [4, 1024])
async def test_line_at_offset(chunk: int) -> None:
    lines = [f"row-{i}".encode() * (i % 3) for i in range(30)]
    data = b"\r\n".join(lines)
    nav = Navigator(MemorySource(data), chunk_size=chunk)
    offset = 0
    for i, expected in enumerate(lines):
        # first byte, last content byte, then both separator bytes
        for pos in range(offset, offset + len(expected) + 2):
            if pos >= len(data):
                break
            line = await nav.line_at(pos, b"\r\n")
            assert await line.read() == expected
        offset += len(expected) + 2

    line = await nav.line_at(len(b"\r\n".join(lines[:12])) + 2, b"\r\n")
    assert await line.read() == lines[12]
    assert await line.prev() is line
    assert await line.read() == lines[11]
    await line.next()
    await line.next()
    assert await line.read() == lines[13]


@pytest.mark.asyncio
async def test_line_at_edges() -> None:
    nav = Navigator(MemorySource(b"alpha\nbeta\ngamma"))
    assert await (await nav.line_at(0)).read() == b"alpha"
    tail = await nav.line_at(13)
    assert await tail.read() == b"gamma"
    assert await tail.has_next() is False
    assert await tail.prev() is tail
    assert await tail.read() == b"beta"
    assert await (await nav.line_at(99)).read() == b"gamma"
    with pytest.raises(ValueError):
        await nav.line_at(-1)

    single = Navigator(MemorySource(b"no separator"))
    line = await single.line_at(5)
    assert await line.read() == b"no separator"
    assert await line.has_prev() is False


@pytest.mark.asyncio
async def test_read_with_replacement() -> None:
    nav = Navigator(MemorySource(b"ok\n\xff\nend"))
    line = await nav.first_line()
    await line.next()
    with pytest.raises(UnicodeDecodeError):
        await line.read("utf-8")
    assert await line.read("utf-8", "replace") == "\ufffd"
