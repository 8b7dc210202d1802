from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml

from romatype.config import VOCABULARY_DIR

logger = logging.getLogger(__name__)

DIFFICULTIES = ("easy", "medium", "hard")
EASY_SENTENCE_LENGTH = 30


@dataclass(frozen=True)
class WordEntry:
    text: str
    reading: Optional[str] = None

    @property
    def target(self) -> str:
        """What the learner types against: the kana reading when the word has kanji."""
        return self.reading or self.text


@dataclass(frozen=True)
class WordList:
    key: str
    title: str
    language: str
    difficulty: str
    words: Tuple[WordEntry, ...]
    sentences: Tuple[str, ...] = ()


class VocabularyRepository:
    """Word lists and practice sentences loaded from ``*.yaml`` files."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = Path(base_dir) if base_dir is not None else VOCABULARY_DIR
        self._lists = self._load_lists()

    def all(self) -> List[WordList]:
        return list(self._lists.values())

    def get(self, key: str) -> WordList:
        return self._lists[key]

    def find(self, language: str, difficulty: Optional[str] = None) -> List[WordList]:
        return [
            wl for wl in self._lists.values()
            if wl.language == language and (difficulty is None or wl.difficulty == difficulty)
        ]

    def sample_words(
        self,
        language: str,
        difficulty: Optional[str] = None,
        count: int = 10,
        rng: Optional[random.Random] = None,
    ) -> List[WordEntry]:
        """Pick ``count`` distinct words; fewer when the lists are shorter."""
        rng = rng or random.Random()
        pool: List[WordEntry] = []
        for wl in self.find(language, difficulty):
            pool.extend(w for w in wl.words if w not in pool)
        if not pool:
            raise ValueError(f"No words for language={language!r} difficulty={difficulty!r}")
        return rng.sample(pool, min(max(count, 0), len(pool)))

    def sample_sentence(
        self,
        language: str,
        difficulty: str = "medium",
        rng: Optional[random.Random] = None,
    ) -> str:
        """Easy: the first 30 characters; medium: one sentence; hard: two joined by a space."""
        rng = rng or random.Random()
        sentences = [s for wl in self.find(language) for s in wl.sentences]
        if not sentences:
            raise ValueError(f"No sentences for language={language!r}")
        text = rng.choice(sentences)
        if difficulty == "easy":
            return text[:EASY_SENTENCE_LENGTH]
        if difficulty == "hard":
            return text + " " + rng.choice(sentences)
        return text

    def _load_lists(self) -> Dict[str, WordList]:
        base_dir = self._base_dir
        if not base_dir.exists():
            raise FileNotFoundError(f"Vocabulary directory not found: {base_dir}")

        lists: Dict[str, WordList] = {}

        def _sort_key(p: Path) -> tuple[str, int, str]:
            m = re.match(r"^([a-z]+)_(easy|medium|hard)", p.stem)
            if m:
                return (m.group(1), DIFFICULTIES.index(m.group(2)), p.stem)
            return ("~", 0, p.stem)

        for path in sorted(base_dir.glob("*.yaml"), key=_sort_key):
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
            if not raw or not isinstance(raw, dict):
                raise ValueError(f"{path.name}: expected YAML with 'title', 'language' and 'words'")
            title = raw.get("title")
            language = raw.get("language")
            difficulty = raw.get("difficulty", "medium")
            if not title or not isinstance(title, str):
                raise ValueError(f"{path.name}: missing or invalid 'title'")
            if not language or not isinstance(language, str):
                raise ValueError(f"{path.name}: missing or invalid 'language'")
            if difficulty not in DIFFICULTIES:
                raise ValueError(f"{path.name}: difficulty must be one of {', '.join(DIFFICULTIES)}")
            words = tuple(_parse_word(path.name, item) for item in raw.get("words") or [])
            sentences = tuple(
                str(s).strip() for s in raw.get("sentences") or [] if str(s).strip()
            )
            if not words and not sentences:
                raise ValueError(f"{path.name}: no 'words' or 'sentences'")
            key = path.stem
            lists[key] = WordList(
                key=key,
                title=title.strip(),
                language=language.strip().lower(),
                difficulty=difficulty,
                words=words,
                sentences=sentences,
            )

        if not lists:
            raise ValueError(f"No vocabulary files (*.yaml) found in {base_dir}")
        logger.debug("Loaded %d vocabulary lists from %s", len(lists), base_dir)
        return lists


def _parse_word(file_name: str, item: object) -> WordEntry:
    if isinstance(item, dict):
        text = str(item.get("word") or "").strip()
        reading = item.get("reading")
        if not text:
            raise ValueError(f"{file_name}: word entry without 'word': {item!r}")
        return WordEntry(text=text, reading=str(reading).strip() if reading else None)
    text = str(item).strip()
    if not text:
        raise ValueError(f"{file_name}: empty word entry")
    return WordEntry(text=text)
