from __future__ import annotations

from pathlib import Path

import pytest

textual = pytest.importorskip("textual")


def test_app_constructs(tmp_path: Path) -> None:
    p = tmp_path / "tiny.txt"
    p.write_bytes(b"alpha\nbeta\ngamma\n")

    # textual may be missing; import after the skip check
    from bytenav.app import BytenavApp

    app = BytenavApp(str(p))
    # Construction alone must not open the file
    assert app is not None
    assert app.title == "bytenav: tiny.txt"


def test_render_page_gutter_and_match() -> None:
    from bytenav.app import render_page
    from bytenav.core.spans import SpanMeta

    text = render_page([(0, b"alpha"), (6, b"beta")], match=SpanMeta(7, 9))
    assert text.plain == "00000000  alpha\n00000006  beta"
    styled = [(span.start, span.end) for span in text.spans if span.style == "reverse"]
    # "et" of "beta": row text starts after the 10-char gutter of the second row
    second_row = len("00000000  alpha\n") + 10
    assert styled == [(second_row + 1, second_row + 3)]


@pytest.mark.asyncio
async def test_app_walks_lines(tmp_path: Path) -> None:
    p = tmp_path / "tiny.txt"
    p.write_bytes(b"alpha\nbeta\ngamma\n")
    from bytenav.app import BytenavApp

    app = BytenavApp(str(p))
    async with app.run_test() as pilot:
        await pilot.press("j")
        await pilot.pause()
        assert app._line is not None
        assert await app._line.read() == b"beta"
        await pilot.press("G")
        await pilot.pause()
        assert await app._line.read() == b"gamma"


@pytest.mark.asyncio
async def test_search_moves_page_to_match(tmp_path: Path) -> None:
    p = tmp_path / "long.txt"
    p.write_text("\n".join(f"row {i}" for i in range(200)) + "\nneedle here\n", encoding="utf-8")
    from bytenav.app import BytenavApp

    app = BytenavApp(str(p))
    async with app.run_test() as pilot:
        await pilot.press("slash", *"needle", "enter")
        await pilot.pause()
        assert app._match is not None
        assert app._line is not None
        assert await app._line.read() == b"needle here"
