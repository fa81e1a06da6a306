"""
Search normalization helpers.

``normalize_for_search`` folds text so that substring matching ignores case and
the common Latin diacritics. Loaders apply the same fold to stored values and to
the search term before comparing; the SQL loader replays ``fold_table()``
server-side so both sides agree.
"""

from __future__ import annotations

import unicodedata
from functools import lru_cache
from typing import Dict, Optional, Tuple

_FOLDS: Tuple[Tuple[str, str], ...] = (
    ("á", "a"), ("ä", "a"), ("à", "a"), ("â", "a"), ("ã", "a"), ("å", "a"), ("æ", "ae"),
    ("č", "c"), ("ć", "c"), ("ç", "c"), ("ď", "d"), ("đ", "d"),
    ("é", "e"), ("ë", "e"), ("è", "e"), ("ê", "e"), ("ě", "e"),
    ("í", "i"), ("ï", "i"), ("ì", "i"), ("î", "i"),
    ("ľ", "l"), ("ĺ", "l"), ("ł", "l"), ("ň", "n"), ("ń", "n"), ("ñ", "n"),
    ("ó", "o"), ("ö", "o"), ("ò", "o"), ("ô", "o"), ("õ", "o"), ("ø", "o"), ("œ", "oe"),
    ("ř", "r"), ("ŕ", "r"), ("š", "s"), ("ś", "s"), ("ş", "s"), ("ș", "s"),
    ("ť", "t"), ("ț", "t"),
    ("ú", "u"), ("ü", "u"), ("ù", "u"), ("û", "u"), ("ů", "u"),
    ("ý", "y"), ("ÿ", "y"), ("ž", "z"), ("ź", "z"), ("ż", "z"),
)

_TRANSLATION = str.maketrans(dict(_FOLDS))


@lru_cache(maxsize=1)
def fold_table() -> Dict[str, str]:
    """
    Return the accent fold as ``{accented: replacement}``.

    Upper-case forms are included so a backend whose ``lower()`` only handles
    ASCII still folds ``"Á"`` to ``"a"``. Replacements are always lower-case.
    """
    table: Dict[str, str] = {}
    for accented, plain in _FOLDS:
        table[accented] = plain
        upper = accented.upper()
        if len(upper) == 1 and upper != accented:
            table[upper] = plain
    return table


def normalize_for_search(text: Optional[str]) -> str:
    """
    Lower-case ``text`` and fold accented Latin letters to ASCII.

    Total and idempotent: ``None`` maps to ``""`` and
    ``normalize_for_search(normalize_for_search(s)) == normalize_for_search(s)``.
    """
    if not text:
        return ""
    composed = unicodedata.normalize("NFC", text)
    return composed.lower().translate(_TRANSLATION)


__all__ = ["fold_table", "normalize_for_search"]
