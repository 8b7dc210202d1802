"""Tests for romatype.core.matcher – multi-pattern matching."""

from __future__ import annotations

import itertools

import pytest

from romatype.core.matcher import Matcher, MatchMode, shared_prefix_length
from romatype.core.patterns import PatternTable, RomajiStyle, default_table
from romatype.core.segmenter import segment


@pytest.fixture()
def matcher() -> Matcher:
    return Matcher()


def _match(matcher: Matcher, text: str, typed: str):
    return matcher.match(segment(text, matcher.table), typed)


# ===========================================================================
# Acceptance
# ===========================================================================

class TestAcceptance:
    def test_canonical_spelling_completes(self, matcher: Matcher):
        state = _match(matcher, "きっぷ", "kippu")
        assert state.is_complete
        assert state.is_valid
        assert state.used_patterns == ("ki", "ppu")

    def test_variant_spelling_completes(self, matcher: Matcher):
        state = _match(matcher, "しゃつ", "syatu")
        assert state.is_complete
        assert state.used_patterns == ("sya", "tu")

    def test_split_small_kana(self, matcher: Matcher):
        assert _match(matcher, "きっぷ", "kixtupu").is_complete

    def test_single_n_before_consonant(self, matcher: Matcher):
        state = _match(matcher, "こんにちは", "konnichiha")
        assert state.is_complete
        assert state.used_patterns == ("ko", "n", "ni", "chi", "ha")

    def test_double_n_before_consonant(self, matcher: Matcher):
        state = _match(matcher, "こんにちは", "konnnichiha")
        assert state.is_complete
        assert state.used_patterns == ("ko", "nn", "ni", "chi", "ha")

    def test_missing_n_does_not_complete(self, matcher: Matcher):
        state = _match(matcher, "こんにちは", "konichiha")
        assert not state.is_complete
        assert not state.is_valid
        assert state.correct_length == 3

    def test_consecutive_n(self, matcher: Matcher):
        state = _match(matcher, "んんな", "nnna")
        assert state.is_complete
        assert state.used_patterns == ("n", "n", "na")

    def test_consecutive_n_prefers_short_first(self, matcher: Matcher):
        state = _match(matcher, "んんな", "nnnna")
        assert state.is_complete
        assert state.used_patterns == ("n", "nn", "na")

    def test_two_single_n(self, matcher: Matcher):
        assert _match(matcher, "んん", "nn").is_complete

    def test_unknown_graphemes_match_literally(self, matcher: Matcher):
        assert _match(matcher, "ねこ cat", "neko cat").is_complete

    @pytest.mark.parametrize("text", ["きっぷ", "しゃつ", "こんにちは", "んん", "んんな", "うんん"])
    def test_every_combination_completes(self, matcher: Matcher, text: str):
        segments = segment(text)
        options = [matcher.candidates(s) for s in segments]
        for combo in itertools.product(*options):
            state = matcher.match(segments, "".join(combo))
            assert state.is_complete, combo


# ===========================================================================
# Partial input and divergence
# ===========================================================================

class TestPartialAndDivergence:
    def test_empty_input(self, matcher: Matcher):
        state = _match(matcher, "こんにちは", "")
        assert state.correct_length == 0
        assert state.is_valid
        assert not state.is_complete
        assert state.display_romaji == "konnichiha"

    def test_partial_segment(self, matcher: Matcher):
        state = _match(matcher, "し", "sh")
        assert state.is_valid
        assert state.correct_length == 2
        assert state.partial == "sh"
        assert state.pending_pattern == "shi"

    def test_divergence_counts_shared_prefix(self, matcher: Matcher):
        state = _match(matcher, "し", "sx")
        assert not state.is_valid
        assert state.correct_length == 1

    def test_divergence_at_segment_start(self, matcher: Matcher):
        state = _match(matcher, "か", "x")
        assert state.correct_length == 0
        assert state.display_romaji == "ka"

    def test_divergence_after_confirmed_segment(self, matcher: Matcher):
        state = _match(matcher, "ねこ", "nex")
        assert state.correct_length == 2
        assert state.segment_index == 1

    def test_overshoot(self, matcher: Matcher):
        state = _match(matcher, "し", "shix")
        assert state.correct_length == 3
        assert not state.is_valid
        assert not state.is_complete

    def test_correct_length_never_shrinks_while_typing(self, matcher: Matcher):
        typed = "kippuxyz"
        lengths = [_match(matcher, "きっぷ", typed[:i]).correct_length for i in range(len(typed) + 1)]
        assert lengths == sorted(lengths)
        assert lengths[-1] == 5


# ===========================================================================
# Display romaji
# ===========================================================================

class TestDisplayRomaji:
    def test_follows_typed_variant(self, matcher: Matcher):
        assert _match(matcher, "しお", "si").display_romaji == "sio"

    def test_pending_segment_shows_chosen_spelling(self, matcher: Matcher):
        assert _match(matcher, "し", "s").display_romaji == "shi"
        assert _match(matcher, "し", "c").display_romaji == "ci"

    def test_confirmed_n_stays_while_typing_next_grapheme(self, matcher: Matcher):
        for typed in ("kon", "konn", "konni"):
            state = _match(matcher, "こんにちは", typed)
            assert state.used_patterns[1] == "n", typed
            assert state.display_romaji == "konnichiha", typed

    def test_unknown_grapheme(self, matcher: Matcher):
        assert _match(matcher, "日", "").display_romaji == "日"


# ===========================================================================
# Next expected characters
# ===========================================================================

class TestNextExpected:
    def _next(self, matcher: Matcher, text: str, typed: str):
        segments = segment(text)
        return matcher.next_expected(segments, matcher.match(segments, typed), typed)

    def test_start_of_grapheme(self, matcher: Matcher):
        assert self._next(matcher, "し", "") == ("s", "c")

    def test_inside_grapheme(self, matcher: Matcher):
        assert self._next(matcher, "し", "s") == ("h", "i")

    def test_after_divergence(self, matcher: Matcher):
        assert self._next(matcher, "し", "sx") == ("h", "i")

    def test_sokuon(self, matcher: Matcher):
        assert self._next(matcher, "きっぷ", "ki") == ("p", "x", "l")

    def test_n_may_still_double(self, matcher: Matcher):
        assert self._next(matcher, "こんにちは", "kon") == ("n",)

    def test_second_n_after_confirmed_n(self, matcher: Matcher):
        assert self._next(matcher, "こんにちは", "konn") == ("i", "n")

    def test_complete(self, matcher: Matcher):
        assert self._next(matcher, "し", "shi") == ()


# ===========================================================================
# Modes and custom tables
# ===========================================================================

class TestModesAndTables:
    def test_strict_rejects_variant(self):
        strict = Matcher(mode=MatchMode.STRICT)
        state = _match(strict, "し", "si")
        assert not state.is_valid
        assert state.correct_length == 1

    def test_strict_accepts_canonical(self):
        strict = Matcher(mode=MatchMode.STRICT)
        assert _match(strict, "し", "shi").is_complete

    def test_strict_follows_style(self):
        strict = Matcher(default_table().with_style(RomajiStyle.KUNREI), MatchMode.STRICT)
        assert _match(strict, "し", "si").is_complete
        assert not _match(strict, "し", "shi").is_valid

    def test_injected_table(self):
        table = PatternTable({"A": ["x", "xy"]})
        m = Matcher(table)
        state = m.match(["A", "A"], "xyx")
        assert state.is_complete
        assert state.used_patterns == ("xy", "x")

    def test_candidates_unknown(self, matcher: Matcher):
        assert matcher.candidates("日") == ("日",)


class TestSharedPrefix:
    @pytest.mark.parametrize(
        "a, b, expected",
        [("shi", "sx", 1), ("", "abc", 0), ("abc", "abc", 3), ("ka", "xa", 0)],
    )
    def test_shared_prefix_length(self, a, b, expected):
        assert shared_prefix_length(a, b) == expected
