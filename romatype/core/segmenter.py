"""Greedy longest-match segmentation of target text into graphemes."""

from __future__ import annotations

from typing import List, Optional

from romatype.core.patterns import MAX_GRAPHEME_LENGTH, PatternTable, default_table


def segment(source: str, table: Optional[PatternTable] = None) -> List[str]:
    """Split ``source`` into the longest graphemes known to ``table``.

    Tries a 3-character lookahead, then 2, then falls back to a single
    character. Characters the table does not know (kanji, Latin letters,
    digits ...) become one-character segments, so the result always joins
    back to ``source``.
    """
    if table is None:
        table = default_table()
    longest = min(MAX_GRAPHEME_LENGTH, table.max_key_length)
    segments: List[str] = []
    i = 0
    n = len(source)
    while i < n:
        for size in range(longest, 1, -1):
            if i + size <= n and source[i:i + size] in table:
                segments.append(source[i:i + size])
                i += size
                break
        else:
            segments.append(source[i])
            i += 1
    return segments
