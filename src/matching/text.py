"""Text normalization shared by every field matcher.

All substring and token comparisons run on normalized text so matching is
case- and punctuation-insensitive.
"""

import re

_NON_ALNUM = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")


def normalize(text: str | None) -> str:
    """Lower-case, strip punctuation, collapse whitespace and trim.

    Total function: ``None`` or empty input yields ``""``.
    Symbols are dropped too, so "C++", "C#" and "C" all become "c".
    """
    if not text:
        return ""
    cleaned = _NON_ALNUM.sub("", text.lower())
    return _WHITESPACE.sub(" ", cleaned).strip()


def title_words(title: str | None, min_length: int = 3) -> list[str]:
    """Split a normalized title into words of at least ``min_length`` chars."""
    return [w for w in normalize(title).split(" ") if len(w) >= min_length]


def contains_either(a: str, b: str) -> bool:
    """True if either non-empty string contains the other."""
    if not a or not b:
        return False
    return a in b or b in a
