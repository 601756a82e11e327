"""
Identifier sanitizing.

Table and column names are embedded in SQL text, so anything outside
`[A-Za-z0-9_]` is dropped. Values never go through here; they are bound
as positional parameters.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_]")


def sanitize_identifier(name: str) -> str:
    return _UNSAFE_CHARS.sub("", name or "")


def sanitize_identifiers(names: Iterable[str]) -> list[str]:
    return [sanitize_identifier(name) for name in names]
