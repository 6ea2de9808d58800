"""Allowlist of known-safe strings.

Entries are plain literals, or regexes when written as ``/pattern/``. Each
entry is resolved once when the allowlist is built. A ``/.../`` entry that
does not compile is kept as a literal rather than rejected.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiteralEntry:
    """Exact-match allowlist entry."""

    value: str

    def matches(self, candidate: str) -> bool:
        return candidate == self.value


@dataclass(frozen=True)
class RegexEntry:
    """Regex allowlist entry (``/pattern/`` in configuration)."""

    raw: str
    pattern: re.Pattern[str]

    def matches(self, candidate: str) -> bool:
        return candidate == self.raw or self.pattern.search(candidate) is not None


AllowlistEntry = LiteralEntry | RegexEntry


def parse_entry(raw: str) -> AllowlistEntry:
    """Resolve one configured string into a typed entry."""
    if len(raw) > 2 and raw.startswith("/") and raw.endswith("/"):
        try:
            return RegexEntry(raw=raw, pattern=re.compile(raw[1:-1]))
        except re.error as e:
            logger.warning("Allowlist entry %r is not a valid regex (%s); matching it literally", raw, e)
    return LiteralEntry(raw)


class Allowlist:
    """Resolved set of allowlist entries."""

    def __init__(self, entries: Iterable[str] | None = None) -> None:
        self.entries: tuple[AllowlistEntry, ...] = tuple(parse_entry(e) for e in entries or () if e)

    def is_allowed(self, value: str) -> bool:
        return any(entry.matches(value) for entry in self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)
