"""Tests for romatype.core.stats – keystroke statistics."""

from __future__ import annotations

import pytest

from romatype.core.reporter import validate
from romatype.core.stats import (
    Phase,
    StatsTracker,
    TypingStats,
    WordStats,
    record_input,
)


class FakeClock:
    """Manually advanced clock used instead of time.time."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


# ===========================================================================
# TypingStats – derived figures
# ===========================================================================

class TestTypingStats:
    def test_accuracy_and_wpm(self):
        stats = TypingStats(
            phase=Phase.ACTIVE, start_time=0.0, total_keystrokes=30, correct_keystrokes=25,
        )
        assert stats.accuracy == pytest.approx(83.333, abs=0.01)
        assert stats.wpm(60.0) == pytest.approx(5.0)

    def test_accuracy_without_keystrokes(self):
        assert TypingStats().accuracy == 100.0

    def test_wpm_without_elapsed_time(self):
        assert TypingStats().wpm(10.0) == 0.0
        stats = TypingStats(phase=Phase.ACTIVE, start_time=5.0, correct_keystrokes=3)
        assert stats.wpm(5.0) == 0.0

    def test_end_time_freezes_wpm(self):
        stats = TypingStats(
            phase=Phase.FINISHED, start_time=0.0, end_time=60.0, correct_keystrokes=10,
        )
        assert stats.wpm(600.0) == pytest.approx(2.0)
        assert stats.elapsed_seconds(600.0) == 60.0

    def test_merged_never_lowers(self):
        local = TypingStats(total_keystrokes=5, correct_keystrokes=4, error_count=1)
        reported = TypingStats(total_keystrokes=3, correct_keystrokes=3, error_count=2)
        merged = local.merged(reported)
        assert merged.total_keystrokes == 5
        assert merged.correct_keystrokes == 4
        assert merged.error_count == 2

    def test_payload(self):
        stats = TypingStats(phase=Phase.ACTIVE, start_time=0.0, total_keystrokes=3, correct_keystrokes=3)
        payload = stats.as_payload(now=60.0)
        assert payload["phase"] == "active"
        assert payload["accuracy"] == 100.0
        assert payload["wpm"] == 0.6


# ===========================================================================
# record_input – state transitions
# ===========================================================================

class TestRecordInput:
    def test_first_input_starts_attempt(self):
        stats = record_input(TypingStats(), "k", 1, False, 12.0)
        assert stats.phase is Phase.ACTIVE
        assert stats.start_time == 12.0
        assert stats.total_keystrokes == 1
        assert stats.correct_keystrokes == 1

    def test_wrong_keystroke_is_an_error(self):
        stats = record_input(TypingStats(), "k", 1, False, 0.0)
        stats = record_input(stats, "kx", 1, False, 1.0)
        assert stats.total_keystrokes == 2
        assert stats.error_count == 1

    def test_deletion_changes_nothing_but_input(self):
        stats = record_input(TypingStats(), "kx", 1, False, 0.0)
        after = record_input(stats, "k", 1, False, 1.0)
        assert after.total_keystrokes == stats.total_keystrokes
        assert after.error_count == stats.error_count
        assert after.last_input == "k"

    def test_non_append_edit_treated_as_deletion(self):
        stats = record_input(TypingStats(), "ka", 2, False, 0.0)
        after = record_input(stats, "ko", 1, False, 1.0)
        assert after.total_keystrokes == 2
        assert after.last_input == "ko"

    def test_paste_counts_each_character(self):
        stats = record_input(TypingStats(), "kixx", 2, False, 0.0)
        assert stats.total_keystrokes == 4
        assert stats.correct_keystrokes == 2
        assert stats.error_count == 2

    def test_completion_finishes(self):
        stats = record_input(TypingStats(), "ka", 2, True, 3.0)
        assert stats.phase is Phase.FINISHED
        assert stats.end_time == 3.0

    def test_finished_ignores_input(self):
        stats = record_input(TypingStats(), "ka", 2, True, 3.0)
        assert record_input(stats, "kax", 2, False, 4.0) is stats

    def test_non_text_input_ignored(self):
        stats = record_input(TypingStats(), None, 0, False, 1.0)  # type: ignore[arg-type]
        assert stats.phase is Phase.ACTIVE
        assert stats.total_keystrokes == 0

    def test_counters_monotonic(self):
        events = [("k", 1), ("kx", 1), ("k", 1), ("", 0), ("k", 1), ("ka", 2), ("kak", 3)]
        stats = TypingStats()
        previous = stats
        for i, (typed, correct) in enumerate(events):
            stats = record_input(stats, typed, correct, False, float(i))
            assert stats.total_keystrokes >= previous.total_keystrokes
            assert stats.correct_keystrokes >= previous.correct_keystrokes
            assert stats.error_count >= previous.error_count
            previous = stats


# ===========================================================================
# StatsTracker
# ===========================================================================

class TestStatsTracker:
    def test_tracks_a_word(self):
        clock = FakeClock()
        tracker = StatsTracker(clock=clock)
        tracker.update("し", "s")
        clock.now = 30.0
        tracker.update("し", "sh")
        clock.now = 60.0
        update = tracker.update("し", "shi")
        assert update.validation.is_complete
        assert update.is_correct
        assert tracker.phase is Phase.FINISHED
        assert update.accuracy == 100.0
        assert update.wpm == pytest.approx(0.6)

    def test_error_and_correction(self):
        tracker = StatsTracker(clock=FakeClock())
        tracker.update("か", "k")
        update = tracker.update("か", "kx")
        assert not update.is_correct
        tracker.update("か", "k")
        tracker.update("か", "ka")
        stats = tracker.stats
        assert stats.total_keystrokes == 3
        assert stats.correct_keystrokes == 2
        assert stats.error_count == 1
        assert stats.accuracy == pytest.approx(200 / 3)

    def test_custom_validator(self):
        calls = []

        def validator(target, typed):
            calls.append((target, typed))
            return validate(target, typed)

        tracker = StatsTracker(validator=validator, clock=FakeClock())
        tracker.update("か", "k")
        assert calls == [("か", "k")]

    def test_sync(self):
        tracker = StatsTracker(clock=FakeClock())
        tracker.update("か", "k")
        synced = tracker.sync(TypingStats(total_keystrokes=4, correct_keystrokes=0, error_count=3))
        assert synced.total_keystrokes == 4
        assert synced.correct_keystrokes == 1
        assert synced.error_count == 3

    def test_snapshot(self):
        clock = FakeClock()
        tracker = StatsTracker(clock=clock)
        tracker.update("か", "k")
        assert tracker.snapshot()["totalKeystrokes"] == 1

    def test_reset(self):
        tracker = StatsTracker(clock=FakeClock())
        tracker.update("か", "ka")
        tracker.reset()
        assert tracker.phase is Phase.IDLE
        assert tracker.stats == TypingStats()


# ===========================================================================
# WordStats
# ===========================================================================

class TestWordStats:
    def test_from_stats(self):
        stats = TypingStats(
            phase=Phase.FINISHED, start_time=0.0, end_time=30.0,
            total_keystrokes=6, correct_keystrokes=5, error_count=1, last_input="kippu",
        )
        ws = WordStats.from_stats(2, "きっぷ", "kippu", stats, now=40.0)
        assert ws.word_index == 2
        assert ws.is_completed
        assert ws.actual_input == "kippu"
        assert ws.elapsed_time == 30.0
        assert ws.wpm == pytest.approx(2.0)
        assert ws.accuracy == pytest.approx(500 / 6)
