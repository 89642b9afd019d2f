"""Filesystem-safe identifiers derived from free text."""

from __future__ import annotations

import unicodedata

REPLACEMENT = "_"

# Unicode general categories dropped without producing a separator:
# marks, modifier symbols, modifier letters, control and format characters.
_IGNORED_CATEGORIES = frozenset({"Mn", "Mc", "Me", "Sk", "Lm", "Cc", "Cf"})


def _is_ascii_alphanumeric(ch: str) -> bool:
    return ch.isascii() and ch.isalnum()


def clean(text: str) -> str:
    """Turn free text into a lowercase ASCII slug.

    Letters are stripped of diacritical marks and lowercased. Each run of other
    characters becomes a single ``_``, except for leading and trailing runs.
    Returns an empty string when nothing usable is left; callers must treat
    that as "no valid filename".

    >>> clean("Café du Monde")
    'cafe_du_monde'
    """
    buf: list[str] = []
    pending_separator = False

    for ch in unicodedata.normalize("NFKD", text):
        if _is_ascii_alphanumeric(ch):
            buf.append(ch.lower())
            pending_separator = True
        elif unicodedata.category(ch) in _IGNORED_CATEGORIES:
            continue
        elif pending_separator:
            buf.append(REPLACEMENT)
            pending_separator = False

    if buf and buf[-1] == REPLACEMENT:
        buf.pop()

    return "".join(buf)


__all__ = ["REPLACEMENT", "clean"]
