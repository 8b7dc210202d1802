"""Progress and validation reports built on top of the matcher.

Everything here is a pure function of the target text and the input typed so
far. Nothing raises for unexpected input: a wrong keystroke shows up as
``is_valid=False`` and a frozen ``correct_length``, an unfinished word as
``is_complete=False``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from romatype.core.matcher import Matcher, MatchMode
from romatype.core.patterns import PatternTable
from romatype.core.segmenter import segment


class CharStatus(Enum):
    """Per-character state of the display romaji, used for coloring."""

    CORRECT = "correct"
    INCORRECT = "incorrect"
    CURRENT = "current"
    PENDING = "pending"


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    correct_length: int
    is_complete: bool
    next_expected_chars: Tuple[str, ...]
    used_patterns: Tuple[str, ...]
    display_romaji: str
    progress: float

    def as_payload(self) -> Dict[str, object]:
        """Field names as broadcast to the room."""
        return {
            "isValid": self.is_valid,
            "correctLength": self.correct_length,
            "isComplete": self.is_complete,
            "nextExpectedChars": list(self.next_expected_chars),
            "usedPatterns": list(self.used_patterns),
            "displayRomaji": self.display_romaji,
            "progress": self.progress,
        }


def validate(
    target_text: str,
    user_input: str,
    *,
    table: Optional[PatternTable] = None,
    mode: MatchMode = MatchMode.FLEXIBLE,
) -> ValidationResult:
    """Validate ``user_input`` against every acceptable encoding of ``target_text``."""
    matcher = Matcher(table, mode)
    segments = segment(target_text, matcher.table)
    state = matcher.match(segments, user_input)
    return ValidationResult(
        is_valid=state.is_valid,
        correct_length=state.correct_length,
        is_complete=state.is_complete,
        next_expected_chars=matcher.next_expected(segments, state, user_input),
        used_patterns=state.used_patterns,
        display_romaji=state.display_romaji,
        progress=_progress_percentage(
            state.correct_length, state.display_romaji, len(user_input), state.is_complete
        ),
    )


def progress(
    target_text: str,
    user_input: str,
    *,
    table: Optional[PatternTable] = None,
    mode: MatchMode = MatchMode.FLEXIBLE,
) -> float:
    """Percentage of the display romaji typed correctly, in [0, 100]."""
    return validate(target_text, user_input, table=table, mode=mode).progress


def canonical_romaji(
    target_text: str,
    *,
    table: Optional[PatternTable] = None,
    mode: MatchMode = MatchMode.FLEXIBLE,
) -> str:
    """Full canonical encoding of ``target_text``: the display before typing starts."""
    matcher = Matcher(table, mode)
    return "".join(matcher.canonical(s) for s in segment(target_text, matcher.table))


def char_statuses(display_romaji: str, user_input: str, correct_length: int) -> List[CharStatus]:
    statuses: List[CharStatus] = []
    typed = len(user_input)
    for i in range(len(display_romaji)):
        if i < correct_length:
            statuses.append(CharStatus.CORRECT)
        elif i < typed:
            statuses.append(CharStatus.INCORRECT)
        elif i == typed:
            statuses.append(CharStatus.CURRENT)
        else:
            statuses.append(CharStatus.PENDING)
    return statuses


def _progress_percentage(correct: int, display: str, typed: int, is_complete: bool) -> float:
    if is_complete:
        return 100.0
    if not display:
        return 0.0
    value = min(correct / len(display) * 100.0, 100.0)
    if value >= 100.0:
        # Every segment is typed but extra characters follow.
        value = correct / typed * 100.0
    return max(0.0, value)
