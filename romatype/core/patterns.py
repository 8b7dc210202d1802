"""Romanization pattern table: grapheme -> ordered romaji encodings.

Every entry lists the encodings a learner may type for one grapheme. The
first encoding is the canonical one and is what the display shows before the
learner commits to a variant.

The default table covers:
  * gojuon with dakuten/handakuten and the usual free variation
    (shi/si/ci, chi/ti, tsu/tu, fu/hu, ji/zi, ka/ca, n/nn/xn ...),
  * small kana typed on their own (xa/la, xtu/ltu, xya/lya ...),
  * yoon and foreign-sound digraphs, also accepted as base + small kana
    (kya or kixya),
  * sokuon in front of any doubling consonant (kka, cchi/tchi, xtuka ...),
  * punctuation and full-width digits,
  * katakana mirrors of all of the above.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

import yaml

logger = logging.getLogger(__name__)

MAX_GRAPHEME_LENGTH = 3

SOKUON = "っ"
_HIRAGANA_FIRST = 0x3041
_HIRAGANA_LAST = 0x3096
_KATAKANA_OFFSET = 0x60

# Letters that are doubled to spell a geminate consonant. "n" is excluded
# because "nn" is ん, "x"/"l" because they introduce small kana.
_DOUBLING_CONSONANTS = frozenset("bcdfghjkmpqrstvwyz")


class RomajiStyle(Enum):
    """Romanization convention used to pick the canonical spelling."""

    HEPBURN = "hepburn"
    KUNREI = "kunrei"
    NIHON = "nihon"


# ===== Single kana =====
_KANA: Dict[str, Tuple[str, ...]] = {
    "あ": ("a",), "い": ("i", "yi"), "う": ("u", "wu", "whu"), "え": ("e",), "お": ("o",),
    "か": ("ka", "ca"), "き": ("ki",), "く": ("ku", "cu", "qu"), "け": ("ke",), "こ": ("ko", "co"),
    "が": ("ga",), "ぎ": ("gi",), "ぐ": ("gu",), "げ": ("ge",), "ご": ("go",),
    "さ": ("sa",), "し": ("shi", "si", "ci"), "す": ("su",), "せ": ("se", "ce"), "そ": ("so",),
    "ざ": ("za",), "じ": ("ji", "zi"), "ず": ("zu",), "ぜ": ("ze",), "ぞ": ("zo",),
    "た": ("ta",), "ち": ("chi", "ti"), "つ": ("tsu", "tu"), "て": ("te",), "と": ("to",),
    "だ": ("da",), "ぢ": ("di", "ji", "zi"), "づ": ("du", "zu"), "で": ("de",), "ど": ("do",),
    "な": ("na",), "に": ("ni",), "ぬ": ("nu",), "ね": ("ne",), "の": ("no",),
    "は": ("ha",), "ひ": ("hi",), "ふ": ("fu", "hu"), "へ": ("he",), "ほ": ("ho",),
    "ば": ("ba",), "び": ("bi",), "ぶ": ("bu",), "べ": ("be",), "ぼ": ("bo",),
    "ぱ": ("pa",), "ぴ": ("pi",), "ぷ": ("pu",), "ぺ": ("pe",), "ぽ": ("po",),
    "ま": ("ma",), "み": ("mi",), "む": ("mu",), "め": ("me",), "も": ("mo",),
    "や": ("ya",), "ゆ": ("yu",), "よ": ("yo",),
    "ら": ("ra",), "り": ("ri",), "る": ("ru",), "れ": ("re",), "ろ": ("ro",),
    "わ": ("wa",), "ゐ": ("wi",), "ゑ": ("we",), "を": ("wo", "o"),
    "ん": ("n", "nn", "xn"),
    "ゔ": ("vu",),
}

_SMALL_KANA: Dict[str, Tuple[str, ...]] = {
    "ぁ": ("xa", "la"), "ぃ": ("xi", "li", "xyi", "lyi"), "ぅ": ("xu", "lu"),
    "ぇ": ("xe", "le", "xye", "lye"), "ぉ": ("xo", "lo"),
    "ゃ": ("xya", "lya"), "ゅ": ("xyu", "lyu"), "ょ": ("xyo", "lyo"),
    "ゎ": ("xwa", "lwa"), "ゕ": ("xka", "lka"), "ゖ": ("xke", "lke"),
    SOKUON: ("xtu", "ltu", "xtsu", "ltsu"),
}

# Onsets of the yoon rows; the vowel comes from the small kana.
_YOON_ONSETS: Dict[str, Tuple[str, ...]] = {
    "き": ("ky",), "ぎ": ("gy",), "し": ("sh", "sy"), "じ": ("j", "zy", "jy"),
    "ち": ("ch", "ty", "cy"), "ぢ": ("dy",), "に": ("ny",), "ひ": ("hy",),
    "び": ("by",), "ぴ": ("py",), "み": ("my",), "り": ("ry",),
}
_YOON_VOWELS = {"ゃ": "a", "ゅ": "u", "ょ": "o", "ぇ": "e"}

_FOREIGN: Dict[str, Tuple[str, ...]] = {
    "ふぁ": ("fa", "fwa"), "ふぃ": ("fi", "fyi"), "ふぇ": ("fe", "fye"), "ふぉ": ("fo", "fwo"),
    "ふゅ": ("fyu",),
    "てぃ": ("thi",), "てゅ": ("thu",), "でぃ": ("dhi",), "でゅ": ("dhu",),
    "とぅ": ("twu",), "どぅ": ("dwu",),
    "うぃ": ("wi", "whi"), "うぇ": ("we", "whe"), "うぉ": ("who",), "いぇ": ("ye",),
    "ゔぁ": ("va",), "ゔぃ": ("vi",), "ゔぇ": ("ve",), "ゔぉ": ("vo",),
    "つぁ": ("tsa",), "つぃ": ("tsi",), "つぇ": ("tse",), "つぉ": ("tso",),
    "くぁ": ("qa", "kwa", "qwa"), "ぐぁ": ("gwa",),
}

_PUNCTUATION: Dict[str, Tuple[str, ...]] = {
    "ー": ("-",), "、": (",",), "。": (".",), "！": ("!",), "？": ("?",),
    "「": ("[",), "」": ("]",), "・": ("/",), "～": ("~",),
    "　": (" ",), " ": (" ",),
}

# Spellings a convention prefers where the conventions disagree.
_STYLE_SPELLINGS: Dict[RomajiStyle, Dict[str, str]] = {
    RomajiStyle.HEPBURN: {
        "し": "shi", "ち": "chi", "つ": "tsu", "ふ": "fu", "じ": "ji",
        "しゃ": "sha", "しゅ": "shu", "しょ": "sho", "しぇ": "she",
        "ちゃ": "cha", "ちゅ": "chu", "ちょ": "cho", "ちぇ": "che",
        "じゃ": "ja", "じゅ": "ju", "じょ": "jo", "じぇ": "je",
    },
    RomajiStyle.KUNREI: {
        "し": "si", "ち": "ti", "つ": "tu", "ふ": "hu", "じ": "zi",
        "ぢ": "zi", "づ": "zu", "を": "o",
        "しゃ": "sya", "しゅ": "syu", "しょ": "syo", "しぇ": "sye",
        "ちゃ": "tya", "ちゅ": "tyu", "ちょ": "tyo", "ちぇ": "tye",
        "じゃ": "zya", "じゅ": "zyu", "じょ": "zyo", "じぇ": "zye",
    },
    RomajiStyle.NIHON: {
        "し": "si", "ち": "ti", "つ": "tu", "ふ": "hu", "じ": "zi",
        "ぢ": "di", "づ": "du", "を": "wo",
        "しゃ": "sya", "しゅ": "syu", "しょ": "syo", "しぇ": "sye",
        "ちゃ": "tya", "ちゅ": "tyu", "ちょ": "tyo", "ちぇ": "tye",
        "じゃ": "zya", "じゅ": "zyu", "じょ": "zyo", "じぇ": "zye",
    },
}


def to_katakana(text: str) -> str:
    """Shift hiragana code points into the katakana block; other characters pass through."""
    return "".join(
        chr(ord(c) + _KATAKANA_OFFSET) if _HIRAGANA_FIRST <= ord(c) <= _HIRAGANA_LAST else c
        for c in text
    )


def to_hiragana(text: str) -> str:
    """Inverse of :func:`to_katakana`."""
    first = _HIRAGANA_FIRST + _KATAKANA_OFFSET
    last = _HIRAGANA_LAST + _KATAKANA_OFFSET
    return "".join(
        chr(ord(c) - _KATAKANA_OFFSET) if first <= ord(c) <= last else c for c in text
    )


def _unique(items: Sequence[str]) -> Tuple[str, ...]:
    seen: List[str] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return tuple(seen)


def _split_spellings(first: str, second: str, table: Mapping[str, Sequence[str]]) -> List[str]:
    """Spellings of a digraph typed as its two kana one after the other (ki + xya)."""
    return [a + b for a in table[first] for b in table[second]]


def _digraph_entries(single: Mapping[str, Sequence[str]]) -> Dict[str, Tuple[str, ...]]:
    entries: Dict[str, Tuple[str, ...]] = {}
    for base, onsets in _YOON_ONSETS.items():
        for small, vowel in _YOON_VOWELS.items():
            combined = [onset + vowel for onset in onsets]
            entries[base + small] = _unique(combined + _split_spellings(base, small, single))
    for digraph, spellings in _FOREIGN.items():
        split = _split_spellings(digraph[0], digraph[1], single)
        entries[digraph] = _unique(list(spellings) + split)
    return entries


def _geminate_spellings(spellings: Sequence[str], sokuon: Sequence[str]) -> Tuple[str, ...]:
    doubled = [s[0] + s for s in spellings if s[0] in _DOUBLING_CONSONANTS]
    if not doubled:
        return ()
    tch = ["t" + s for s in spellings if s.startswith("ch")]
    explicit = [prefix + s for prefix in sokuon for s in spellings]
    return _unique(doubled + tch + explicit)


def _geminate_entries(kana: Mapping[str, Sequence[str]]) -> Dict[str, Tuple[str, ...]]:
    entries: Dict[str, Tuple[str, ...]] = {}
    sokuon = kana[SOKUON]
    for grapheme, spellings in kana.items():
        if grapheme.startswith(SOKUON) or len(grapheme) >= MAX_GRAPHEME_LENGTH:
            continue
        geminate = _geminate_spellings(spellings, sokuon)
        if geminate:
            entries[SOKUON + grapheme] = geminate
    return entries


def _build_default_entries() -> Dict[str, Tuple[str, ...]]:
    kana: Dict[str, Tuple[str, ...]] = {}
    kana.update(_KANA)
    kana.update(_SMALL_KANA)
    kana.update(_digraph_entries(kana))
    kana.update(_geminate_entries(kana))

    entries: Dict[str, Tuple[str, ...]] = dict(kana)
    for grapheme, spellings in kana.items():
        entries[to_katakana(grapheme)] = spellings
    entries.update(_PUNCTUATION)
    for digit in range(10):
        entries[chr(0xFF10 + digit)] = (str(digit),)
    return entries


class PatternTable(Mapping):
    """Immutable grapheme -> encodings mapping shared by the segmenter and matcher."""

    def __init__(self, entries: Mapping[str, Union[str, Sequence[str]]]) -> None:
        validated: Dict[str, Tuple[str, ...]] = {}
        for grapheme, spellings in entries.items():
            validated[grapheme] = _validate_entry(grapheme, spellings)
        self._entries = validated
        self._max_key_length = max((len(k) for k in validated), default=0)

    def __getitem__(self, grapheme: str) -> Tuple[str, ...]:
        return self._entries[grapheme]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"PatternTable({len(self._entries)} entries)"

    @property
    def max_key_length(self) -> int:
        return self._max_key_length

    def candidates(self, grapheme: str) -> Optional[Tuple[str, ...]]:
        return self._entries.get(grapheme)

    def canonical(self, grapheme: str) -> str:
        """Display encoding of a grapheme; unknown graphemes are their own encoding."""
        spellings = self._entries.get(grapheme)
        return spellings[0] if spellings else grapheme

    def merged(self, overrides: Mapping[str, Union[str, Sequence[str]]]) -> "PatternTable":
        """Return a new table with ``overrides`` replacing or adding entries."""
        entries: Dict[str, Union[str, Sequence[str]]] = dict(self._entries)
        entries.update(overrides)
        return PatternTable(entries)

    def with_style(self, style: RomajiStyle) -> "PatternTable":
        """Return a table whose canonical spellings follow ``style``.

        Only graphemes the conventions disagree on are reordered; the preferred
        spelling moves to the front and the rest keep their relative order.
        """
        reordered: Dict[str, Tuple[str, ...]] = {}
        for grapheme, spellings in self._entries.items():
            preferred = _preferred_spelling(grapheme, style)
            if preferred is not None and preferred in spellings and spellings[0] != preferred:
                rest = tuple(s for s in spellings if s != preferred)
                reordered[grapheme] = (preferred,) + rest
            else:
                reordered[grapheme] = spellings
        return PatternTable(reordered)


def _validate_entry(grapheme: object, spellings: object) -> Tuple[str, ...]:
    if not isinstance(grapheme, str) or not grapheme:
        raise ValueError(f"Invalid grapheme key: {grapheme!r}")
    if len(grapheme) > MAX_GRAPHEME_LENGTH:
        raise ValueError(
            f"Grapheme {grapheme!r} is longer than {MAX_GRAPHEME_LENGTH} characters"
        )
    if isinstance(spellings, str):
        spellings = (spellings,)
    if not isinstance(spellings, (list, tuple)) or not spellings:
        raise ValueError(f"{grapheme!r}: expected a non-empty list of encodings")
    result = []
    for spelling in spellings:
        if not isinstance(spelling, str) or not spelling:
            raise ValueError(f"{grapheme!r}: encodings must be non-empty strings")
        if not spelling.isascii() or spelling != spelling.lower():
            raise ValueError(f"{grapheme!r}: encoding {spelling!r} is not lowercase ASCII")
        result.append(spelling)
    return _unique(result)


def _preferred_spelling(grapheme: str, style: RomajiStyle) -> Optional[str]:
    spellings = _STYLE_SPELLINGS[style]
    base = to_hiragana(grapheme)
    geminate = base.startswith(SOKUON) and len(base) > 1
    if geminate:
        base = base[1:]
    preferred = spellings.get(base)
    if preferred is None:
        return None
    return preferred[0] + preferred if geminate else preferred


def load_pattern_overrides(path: Union[str, Path]) -> Dict[str, Tuple[str, ...]]:
    """Read a YAML mapping of ``grapheme: [encoding, ...]`` used to extend the table."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Pattern file not found: {path}")
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw is None:
        logger.warning("Pattern file %s is empty", path.name)
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path.name}: expected a mapping of grapheme to encodings")
    overrides: Dict[str, Tuple[str, ...]] = {}
    for grapheme, spellings in raw.items():
        try:
            overrides[str(grapheme)] = _validate_entry(str(grapheme), spellings)
        except ValueError as e:
            raise ValueError(f"{path.name}: {e}") from e
    logger.info("Loaded %d pattern overrides from %s", len(overrides), path)
    return overrides


_DEFAULT_TABLE: Optional[PatternTable] = None


def default_table() -> PatternTable:
    """Process-wide read-only table, built on first use."""
    global _DEFAULT_TABLE
    if _DEFAULT_TABLE is None:
        _DEFAULT_TABLE = PatternTable(_build_default_entries())
        logger.debug("Built default pattern table with %d entries", len(_DEFAULT_TABLE))
    return _DEFAULT_TABLE
