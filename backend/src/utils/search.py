"""Name normalization shared by user writes and directory search."""

import re

_NON_SEARCHABLE = re.compile(r"[^a-z0-9\s]")


def normalize_name(name: str | None) -> str:
    """Normalize a display name into its search key.

    Lowercases, strips every character outside ``[a-z0-9\\s]`` and trims.
    Writes and prefix queries must both go through this function so that a
    stored key and a typed prefix compare on the same alphabet.

    >>> normalize_name("  O'Brien-Smith ")
    'obriensmith'
    """
    if not name:
        return ""
    return _NON_SEARCHABLE.sub("", name.lower()).strip()
