"""Front-matter blocks (`---` fenced YAML or JSON) read line by line."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import yaml

from bytenav.core.navigator import Navigator

FENCE = "---"


class FrontMatterError(ValueError):
    pass


@dataclass
class FrontMatter:
    data: Any = field(default_factory=dict)
    content: str = ""


def _parser_for(first_line: str):
    kind = first_line[len(FENCE) :].strip()
    if kind in ("", "yaml", "yml"):
        return yaml.safe_load
    if kind == "json":
        return json.loads
    raise FrontMatterError(f"front matter format not supported: {kind}")


async def read_front_matter(
    nav: Navigator, *, encoding: str | None = None, errors: str = "strict"
) -> FrontMatter:
    enc = encoding or nav.encoding
    line = await nav.first_line()
    first = await line.read(enc, errors)

    data: Any = {}
    fenced = first.startswith(FENCE)
    if fenced:
        parse = _parser_for(first)
        block: list[str] = []
        while True:
            if await line.next() is None:
                raise FrontMatterError("front matter is not closed")
            text = await line.read(enc, errors)
            if text == FENCE:
                break
            block.append(text)
        try:
            data = parse("\n".join(block))
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise FrontMatterError(f"invalid front matter: {e}") from None
        if data is None:
            data = {}
        if await line.next() is None:
            return FrontMatter(data=data, content="")

    content: list[str] = []
    while True:
        text = await line.read(enc, errors)
        if content or text or not fenced:
            content.append(text)
        if await line.next() is None:
            break
    return FrontMatter(data=data, content="\n".join(content))
