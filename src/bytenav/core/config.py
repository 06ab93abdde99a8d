from __future__ import annotations

import codecs
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from bytenav.core.scanner import DEFAULT_CHUNK


class ConfigError(Exception):
    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


@dataclass(frozen=True)
class NavigatorConfig:
    chunk_size: int = DEFAULT_CHUNK
    separator: str = "\n"
    encoding: str = "utf-8"
    page_size: int = 64 * 1024  # FileSource page cache
    cache_pages: int = 16
    use_mmap: bool = True


_POSITIVE_INTS = ("chunk_size", "page_size", "cache_pages")


def load_config(text: str) -> NavigatorConfig:
    """Parse a YAML mapping into a `NavigatorConfig`.

    Missing keys keep their defaults. All problems are reported together.
    """
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError([f"YAML parse error: {e}"]) from None

    if not isinstance(data, dict):
        raise ConfigError(["Top-level YAML must be a mapping"])

    known = {f.name for f in fields(NavigatorConfig)}
    errors: list[str] = [f"unknown key: {key}" for key in data if key not in known]
    values: dict[str, Any] = {k: v for k, v in data.items() if k in known}

    for name in _POSITIVE_INTS:
        if name in values:
            v = values[name]
            # bool is an int subclass; reject it explicitly
            if isinstance(v, bool) or not isinstance(v, int) or v <= 0:
                errors.append(f"{name} must be a positive integer")

    if "separator" in values:
        sep = values["separator"]
        if not isinstance(sep, str) or not sep:
            errors.append("separator must be a non-empty string")

    if "encoding" in values:
        enc = values["encoding"]
        if not isinstance(enc, str):
            errors.append("encoding must be a string")
        else:
            try:
                codecs.lookup(enc)
            except LookupError:
                errors.append(f"unknown encoding: {enc}")

    if "use_mmap" in values and not isinstance(values["use_mmap"], bool):
        errors.append("use_mmap must be true or false")

    if errors:
        raise ConfigError(errors)
    return NavigatorConfig(**values)


def load_config_file(path: str | Path) -> NavigatorConfig:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError([f"config file not found: {path}"]) from None
    return load_config(text)
