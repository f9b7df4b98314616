"""Utility helpers for the ReelSearch service."""

from __future__ import annotations

import re
import unicodedata
from functools import lru_cache
from typing import Any


WHITESPACE_RE = re.compile(r"\s+")
YEAR_PREFIX_RE = re.compile(r"^(\d{4})")
QUOTE_TRANSLATION = str.maketrans(
    {
        "‘": "'",
        "’": "'",
        "“": '"',
        "”": '"',
        "–": "-",
        "—": "-",
    }
)


def normalize_text(value: str) -> str:
    """Return lower-cased text with straight quotes and collapsed whitespace."""

    value = unicodedata.normalize("NFKC", value or "")
    value = value.translate(QUOTE_TRANSLATION).lower()
    return WHITESPACE_RE.sub(" ", value).strip()


@lru_cache(maxsize=4096)
def phrase_pattern(phrase: str) -> re.Pattern[str]:
    """Compile a whole-word pattern for ``phrase``."""

    return re.compile(rf"(?<!\w){re.escape(phrase)}(?!\w)")


def find_phrase(text: str, phrase: str) -> re.Match[str] | None:
    """Return the first whole-word occurrence of ``phrase`` in ``text``."""

    if not phrase:
        return None
    return phrase_pattern(phrase).search(text)


def contains_phrase(text: str, phrase: str) -> bool:
    """Return whether ``phrase`` occurs in ``text`` on word boundaries."""

    return find_phrase(text, phrase) is not None


def parse_year(value: Any) -> int | None:
    """Extract the year from a ``YYYY-MM-DD`` style date string."""

    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        return None
    match = YEAR_PREFIX_RE.match(value.strip())
    if not match:
        return None
    return int(match.group(1))
