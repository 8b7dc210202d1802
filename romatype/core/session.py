from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from romatype.core.engine import RomajiEngine
from romatype.core.reporter import ValidationResult
from romatype.core.stats import Clock, Phase, TypingStats, WordStats, record_input

logger = logging.getLogger(__name__)


class RaceMode(Enum):
    SENTENCE = "sentence"
    WORD = "word"


@dataclass(frozen=True)
class KeystrokeReport:
    """Everything the room broadcasts after one keystroke of a participant."""

    is_valid: bool
    correct_length: int
    is_complete: bool
    progress: float
    word_progress: float
    display_romaji: str
    next_expected_chars: Tuple[str, ...]
    accuracy: float
    wpm: float
    word_wpm: float
    total_keystrokes: int
    correct_keystrokes: int
    error_count: int
    word_index: int
    finished: bool

    def as_payload(self) -> Dict[str, object]:
        return {
            "isValid": self.is_valid,
            "correctLength": self.correct_length,
            "isComplete": self.is_complete,
            "progress": round(self.progress, 2),
            "wordProgress": round(self.word_progress, 2),
            "displayRomaji": self.display_romaji,
            "nextExpectedChars": list(self.next_expected_chars),
            "accuracy": round(self.accuracy, 2),
            "wpm": round(self.wpm, 2),
            "wordWpm": round(self.word_wpm, 2),
            "totalKeystrokes": self.total_keystrokes,
            "correctKeystrokes": self.correct_keystrokes,
            "errorCount": self.error_count,
            "currentWordIndex": self.word_index,
            "finished": self.finished,
        }


class TypingSession:
    """One participant's race over a list of targets.

    In word mode every target is its own attempt: its statistics start at the
    first keystroke on that word and are archived in ``completed_words`` when
    the word is typed in full. Sentence mode joins the targets into a single
    text typed as one attempt.

    Race-level figures add up all attempts; race WPM is measured from the
    first keystroke of the race.
    """

    def __init__(
        self,
        targets: Sequence[str],
        mode: RaceMode = RaceMode.WORD,
        engine: Optional[RomajiEngine] = None,
        clock: Clock = time.time,
    ) -> None:
        """Initialize a session; keystrokes must be fed in the order they were typed."""
        if mode is RaceMode.SENTENCE:
            self._targets = [" ".join(targets)] if targets else []
        else:
            self._targets = list(targets)
        self._mode = mode
        self._engine = engine or RomajiEngine()
        self._clock = clock
        self._index = 0
        self._current = TypingStats()
        self._completed: List[WordStats] = []
        self._race_start: Optional[float] = None
        self._race_end: Optional[float] = None
        self._last_report: Optional[KeystrokeReport] = None

    @property
    def mode(self) -> RaceMode:
        return self._mode

    @property
    def index(self) -> int:
        """Index of the current target (0-based)."""
        return self._index

    @property
    def total_targets(self) -> int:
        return len(self._targets)

    @property
    def completed_words(self) -> List[WordStats]:
        return list(self._completed)

    @property
    def current_stats(self) -> TypingStats:
        return self._current

    def current_target(self) -> str:
        """Return the text of the current target."""
        return self._targets[self._index]

    def is_complete(self) -> bool:
        return self._index >= len(self._targets)

    def expected_romaji(self) -> str:
        return self._engine.canonical_romaji(self.current_target())

    def input_text(self, new_input: str) -> KeystrokeReport:
        """Apply the participant's accumulated input for the current target."""
        if self.is_complete():
            return self._last_report or self._report(None, self._clock())

        now = self._clock()
        if self._race_start is None:
            self._race_start = now
        target = self.current_target()
        validation = self._engine.validate(target, new_input)
        self._current = record_input(
            self._current, new_input, validation.correct_length, validation.is_complete, now
        )

        if validation.is_complete:
            self._completed.append(
                WordStats.from_stats(
                    self._index, target, self._engine.canonical_romaji(target), self._current, now
                )
            )
            logger.debug("Target %d completed: %r", self._index, target)
            self._current = TypingStats()
            self._index += 1
            if self.is_complete():
                self._race_end = now
                logger.info(
                    "Race finished: %d targets, %.1f wpm, %.1f%% accuracy",
                    len(self._targets), self.aggregate_wpm(now), self.aggregate_accuracy(),
                )

        report = self._report(validation, now)
        self._last_report = report
        return report

    def race_stats(self) -> TypingStats:
        """Race-level totals: archived words plus the word in progress."""
        total = sum(w.total_keystrokes for w in self._completed) + self._current.total_keystrokes
        correct = sum(w.correct_keystrokes for w in self._completed) + self._current.correct_keystrokes
        errors = sum(w.error_count for w in self._completed) + self._current.error_count
        if self._race_start is None:
            phase = Phase.IDLE
        elif self._race_end is not None:
            phase = Phase.FINISHED
        else:
            phase = Phase.ACTIVE
        return TypingStats(
            phase=phase,
            start_time=self._race_start,
            end_time=self._race_end,
            total_keystrokes=total,
            correct_keystrokes=correct,
            error_count=errors,
            last_input=self._current.last_input,
        )

    def aggregate_accuracy(self) -> float:
        return self.race_stats().accuracy

    def aggregate_wpm(self, now: Optional[float] = None) -> float:
        return self.race_stats().wpm(self._clock() if now is None else now)

    def aggregate_errors(self) -> int:
        return self.race_stats().error_count

    def race_progress(self, word_progress: float = 0.0) -> float:
        if not self._targets:
            return 100.0
        if self.is_complete():
            return 100.0
        return (self._index + word_progress / 100.0) / len(self._targets) * 100.0

    def reset(self) -> None:
        """Start over: all counters and archived words are discarded."""
        self._index = 0
        self._current = TypingStats()
        self._completed = []
        self._race_start = None
        self._race_end = None
        self._last_report = None

    def _report(self, validation: Optional[ValidationResult], now: float) -> KeystrokeReport:
        race = self.race_stats()
        if validation is None:
            word_progress = 100.0 if self.is_complete() else 0.0
            return KeystrokeReport(
                is_valid=True,
                correct_length=0,
                is_complete=self.is_complete(),
                progress=self.race_progress(),
                word_progress=word_progress,
                display_romaji="",
                next_expected_chars=(),
                accuracy=race.accuracy,
                wpm=race.wpm(now),
                word_wpm=0.0,
                total_keystrokes=race.total_keystrokes,
                correct_keystrokes=race.correct_keystrokes,
                error_count=race.error_count,
                word_index=self._index,
                finished=self.is_complete(),
            )
        if validation.is_complete:
            word_wpm = self._completed[-1].wpm
            word_index = self._index - 1
        else:
            word_wpm = self._current.wpm(now)
            word_index = self._index
        return KeystrokeReport(
            is_valid=validation.is_valid,
            correct_length=validation.correct_length,
            is_complete=validation.is_complete,
            progress=self.race_progress(0.0 if validation.is_complete else validation.progress),
            word_progress=validation.progress,
            display_romaji=validation.display_romaji,
            next_expected_chars=validation.next_expected_chars,
            accuracy=race.accuracy,
            wpm=race.wpm(now),
            word_wpm=word_wpm,
            total_keystrokes=race.total_keystrokes,
            correct_keystrokes=race.correct_keystrokes,
            error_count=race.error_count,
            word_index=word_index,
            finished=self.is_complete(),
        )
