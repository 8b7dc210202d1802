from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from romatype.core.patterns import PatternTable, default_table

logger = logging.getLogger(__name__)


class MatchMode(Enum):
    """Which encodings of a grapheme the matcher accepts."""

    FLEXIBLE = "flexible"  # every encoding in the table
    STRICT = "strict"  # canonical encoding only


@dataclass(frozen=True)
class MatchState:
    """Result of matching one input string against a segmented target.

    ``input_position`` counts the characters consumed by fully typed segments
    plus the valid partial of the segment in progress. ``pending_pattern`` is
    the encoding picked for the segment at ``segment_index`` when matching
    stopped inside it (in progress or diverged).
    """

    segment_index: int
    input_position: int
    correct_length: int
    used_patterns: Tuple[str, ...]
    display_romaji: str
    input_length: int
    segment_count: int
    partial: str = ""
    pending_pattern: Optional[str] = None

    @property
    def confirmed_position(self) -> int:
        return self.input_position - len(self.partial)

    @property
    def is_complete(self) -> bool:
        return self.segment_index >= self.segment_count and self.input_position == self.input_length

    @property
    def is_valid(self) -> bool:
        return self.correct_length == self.input_length


def shared_prefix_length(a: str, b: str) -> int:
    length = 0
    for x, y in zip(a, b):
        if x != y:
            break
        length += 1
    return length


class Matcher:
    """Validates typed romaji against every acceptable encoding of a target.

    Segments are matched left to right. For each one the encoding sharing the
    longest prefix with the unconsumed input wins (earliest listed on ties).
    A fully typed encoding confirms the segment; a partial one at the end of
    the input is the segment in progress; anything else is a divergence.
    """

    def __init__(self, table: Optional[PatternTable] = None, mode: MatchMode = MatchMode.FLEXIBLE) -> None:
        self._table = table if table is not None else default_table()
        self._mode = mode

    @property
    def table(self) -> PatternTable:
        return self._table

    @property
    def mode(self) -> MatchMode:
        return self._mode

    def candidates(self, grapheme: str) -> Tuple[str, ...]:
        """Encodings accepted for ``grapheme``; unknown graphemes match themselves."""
        spellings = self._table.candidates(grapheme)
        if not spellings:
            return (grapheme,)
        if self._mode is MatchMode.STRICT:
            return spellings[:1]
        return spellings

    def canonical(self, grapheme: str) -> str:
        return self.candidates(grapheme)[0]

    def match(self, segments: Sequence[str], user_input: str) -> MatchState:
        segments = list(segments)
        total = len(user_input)
        position = 0
        index = 0
        used: List[str] = []
        partial = ""
        pending: Optional[str] = None
        memo: Dict[Tuple[int, int], Tuple[bool, int]] = {}

        while index < len(segments) and position < total:
            remaining = user_input[position:]
            candidates = self.candidates(segments[index])
            pattern, shared = _best_candidate(candidates, remaining)
            if shared == len(pattern):
                pattern = self._settle(segments, index, user_input, position, pattern, memo)
                used.append(pattern)
                position += len(pattern)
                index += 1
                continue
            pending = pattern
            if shared > 0 and shared == len(remaining):
                partial = remaining
            correct = position + shared
            break
        else:
            correct = position

        display_parts = list(used)
        tail_start = index
        if pending is not None:
            display_parts.append(pending)
            tail_start += 1
        display_parts.extend(self.canonical(s) for s in segments[tail_start:])

        state = MatchState(
            segment_index=index,
            input_position=position + len(partial),
            correct_length=correct,
            used_patterns=tuple(used),
            display_romaji="".join(display_parts),
            input_length=total,
            segment_count=len(segments),
            partial=partial,
            pending_pattern=pending,
        )
        logger.debug(
            "match input=%r segment=%d/%d correct=%d",
            user_input, state.segment_index, state.segment_count, state.correct_length,
        )
        return state

    def next_expected(self, segments: Sequence[str], state: MatchState, user_input: str) -> Tuple[str, ...]:
        """Distinct characters that would be accepted as the next keystroke.

        Computed from the valid part of the input, so after a divergence this
        is what the learner should type once the wrong characters are removed.
        """
        if state.is_complete or state.segment_index >= len(segments):
            return ()
        typed = user_input[state.confirmed_position:state.correct_length]
        chars: List[str] = []
        for spelling in self.candidates(segments[state.segment_index]):
            if len(spelling) > len(typed) and spelling.startswith(typed):
                _append_unique(chars, spelling[len(typed)])
        if state.used_patterns:
            # A confirmed "n" for ん may still grow into "nn", and "n" typed
            # after it may be that second "n".
            grown = state.used_patterns[-1] + typed
            for spelling in self.candidates(segments[state.segment_index - 1]):
                if len(spelling) > len(grown) and spelling.startswith(grown):
                    _append_unique(chars, spelling[len(grown)])
                elif typed and spelling == grown:
                    for following in self.candidates(segments[state.segment_index]):
                        _append_unique(chars, following[0])
        return tuple(chars)

    def _settle(
        self,
        segments: Sequence[str],
        index: int,
        user_input: str,
        position: int,
        greedy: str,
        memo: Dict[Tuple[int, int], Tuple[bool, int]],
    ) -> str:
        """Pick among several fully typed encodings by matching the rest of the input.

        "konnichiha" against こんにちは types both "n" and "nn" for ん in full;
        only "n" lets the rest of the input match. The encoding that completes,
        or else reaches furthest, wins; on a tie the shorter one does, so a
        confirmed "n" does not turn into "nn" while the next grapheme is typed.
        """
        typed_in_full = [
            c for c in self.candidates(segments[index]) if user_input.startswith(c, position)
        ]
        if len(typed_in_full) < 2:
            return greedy

        def score(spelling: str) -> Tuple[bool, int, int]:
            complete, reached = self._reach(segments, index + 1, user_input, position + len(spelling), memo)
            return complete, reached, -len(spelling)

        return max(typed_in_full, key=score)

    def _reach(
        self,
        segments: Sequence[str],
        index: int,
        user_input: str,
        position: int,
        memo: Dict[Tuple[int, int], Tuple[bool, int]],
    ) -> Tuple[bool, int]:
        """(complete, correct length) of matching from segment ``index`` at ``position``."""
        key = (index, position)
        if key in memo:
            return memo[key]
        total = len(user_input)
        result: Optional[Tuple[bool, int]] = None
        while index < len(segments) and position < total:
            pattern, shared = _best_candidate(self.candidates(segments[index]), user_input[position:])
            if shared < len(pattern):
                result = (False, position + shared)
                break
            pattern = self._settle(segments, index, user_input, position, pattern, memo)
            position += len(pattern)
            index += 1
        if result is None:
            result = (index >= len(segments) and position == total, position)
        memo[key] = result
        return result


def _best_candidate(candidates: Sequence[str], remaining: str) -> Tuple[str, int]:
    best = candidates[0]
    best_shared = shared_prefix_length(best, remaining)
    for spelling in candidates[1:]:
        shared = shared_prefix_length(spelling, remaining)
        if shared > best_shared:
            best, best_shared = spelling, shared
    return best, best_shared


def _append_unique(items: List[str], item: str) -> None:
    if item not in items:
        items.append(item)
