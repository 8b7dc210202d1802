from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Optional

from romatype.config import WPM_WORD_LENGTH
from romatype.core.reporter import ValidationResult, validate

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Validator = Callable[[str, str], ValidationResult]


class Phase(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    FINISHED = "finished"


@dataclass(frozen=True)
class TypingStats:
    """Keystroke counters for one attempt (a word or a whole text).

    Speed follows the usual convention:
      * **accuracy** – correct keystrokes / total keystrokes, 100 before the
        first keystroke.
      * **WPM** – (correct keystrokes / 5) / elapsed minutes since the first
        keystroke, frozen once the attempt is finished.

    Counters only ever grow; deleting characters changes ``last_input`` only.
    """

    phase: Phase = Phase.IDLE
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    total_keystrokes: int = 0
    correct_keystrokes: int = 0
    error_count: int = 0
    last_input: str = ""

    @property
    def accuracy(self) -> float:
        if self.total_keystrokes == 0:
            return 100.0
        return self.correct_keystrokes / self.total_keystrokes * 100.0

    def elapsed_seconds(self, now: Optional[float] = None) -> float:
        if self.start_time is None:
            return 0.0
        end = self.end_time if self.end_time is not None else now
        if end is None:
            return 0.0
        return max(0.0, end - self.start_time)

    def wpm(self, now: Optional[float] = None) -> float:
        minutes = self.elapsed_seconds(now) / 60.0
        if minutes <= 0:
            return 0.0
        return (self.correct_keystrokes / WPM_WORD_LENGTH) / minutes

    def merged(self, reported: "TypingStats") -> "TypingStats":
        """Fold in a resent cumulative snapshot without lowering any counter."""
        return replace(
            self,
            total_keystrokes=max(self.total_keystrokes, reported.total_keystrokes),
            correct_keystrokes=max(self.correct_keystrokes, reported.correct_keystrokes),
            error_count=max(self.error_count, reported.error_count),
        )

    def as_payload(self, now: Optional[float] = None) -> Dict[str, object]:
        return {
            "phase": self.phase.value,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "totalKeystrokes": self.total_keystrokes,
            "correctKeystrokes": self.correct_keystrokes,
            "errorCount": self.error_count,
            "accuracy": round(self.accuracy, 2),
            "wpm": round(self.wpm(now), 2),
        }


def record_input(
    stats: TypingStats,
    new_input: str,
    correct_length: int,
    is_complete: bool,
    now: float,
) -> TypingStats:
    """Advance ``stats`` by one input event and return the new value.

    Each character appended to the previous input is one keystroke, correct
    when its position lies inside ``correct_length``. Shorter input, or input
    that does not extend the previous one, is treated as a deletion.
    """
    if stats.phase is Phase.FINISHED:
        return stats
    if stats.phase is Phase.IDLE:
        stats = replace(stats, phase=Phase.ACTIVE, start_time=now)
    if not isinstance(new_input, str):
        logger.debug("Ignoring non-text input %r", new_input)
        return stats

    previous = stats.last_input
    total = stats.total_keystrokes
    correct = stats.correct_keystrokes
    errors = stats.error_count
    if len(new_input) > len(previous) and new_input.startswith(previous):
        for position in range(len(previous), len(new_input)):
            total += 1
            if position < correct_length:
                correct += 1
            else:
                errors += 1

    stats = replace(
        stats,
        total_keystrokes=total,
        correct_keystrokes=correct,
        error_count=errors,
        last_input=new_input,
    )
    if is_complete:
        stats = replace(stats, phase=Phase.FINISHED, end_time=now)
    return stats


@dataclass(frozen=True)
class KeystrokeUpdate:
    """What one keystroke produced: the validation and the updated counters."""

    validation: ValidationResult
    stats: TypingStats
    is_correct: bool
    timestamp: float

    @property
    def accuracy(self) -> float:
        return self.stats.accuracy

    @property
    def wpm(self) -> float:
        return self.stats.wpm(self.timestamp)


class StatsTracker:
    """Owns the statistics of one attempt and validates each input event."""

    def __init__(self, validator: Validator = validate, clock: Clock = time.time) -> None:
        self._validator = validator
        self._clock = clock
        self._stats = TypingStats()

    @property
    def stats(self) -> TypingStats:
        return self._stats

    @property
    def phase(self) -> Phase:
        return self._stats.phase

    def update(self, target: str, new_input: str) -> KeystrokeUpdate:
        now = self._clock()
        validation = self._validator(target, new_input)
        self._stats = record_input(
            self._stats, new_input, validation.correct_length, validation.is_complete, now
        )
        return KeystrokeUpdate(
            validation=validation,
            stats=self._stats,
            is_correct=len(new_input) <= validation.correct_length,
            timestamp=now,
        )

    def sync(self, reported: TypingStats) -> TypingStats:
        """Merge counters resent by the reporting layer; never decrements."""
        self._stats = self._stats.merged(reported)
        return self._stats

    def snapshot(self) -> Dict[str, object]:
        return self._stats.as_payload(self._clock())

    def reset(self) -> None:
        self._stats = TypingStats()


@dataclass(frozen=True)
class WordStats:
    """Statistics of one completed (or abandoned) word in word mode."""

    word_index: int
    target: str
    expected_romaji: str
    actual_input: str
    is_completed: bool
    start_time: Optional[float]
    end_time: Optional[float]
    total_keystrokes: int
    correct_keystrokes: int
    error_count: int
    accuracy: float
    wpm: float
    elapsed_time: float

    @classmethod
    def from_stats(
        cls,
        word_index: int,
        target: str,
        expected_romaji: str,
        stats: TypingStats,
        now: float,
    ) -> "WordStats":
        return cls(
            word_index=word_index,
            target=target,
            expected_romaji=expected_romaji,
            actual_input=stats.last_input,
            is_completed=stats.phase is Phase.FINISHED,
            start_time=stats.start_time,
            end_time=stats.end_time,
            total_keystrokes=stats.total_keystrokes,
            correct_keystrokes=stats.correct_keystrokes,
            error_count=stats.error_count,
            accuracy=stats.accuracy,
            wpm=stats.wpm(now),
            elapsed_time=stats.elapsed_seconds(now),
        )
