from __future__ import annotations

import logging
import time
from typing import List, Optional

from romatype.config import EngineConfig
from romatype.core.matcher import Matcher, MatchMode, MatchState
from romatype.core.patterns import PatternTable, default_table, load_pattern_overrides
from romatype.core.reporter import ValidationResult, canonical_romaji, validate
from romatype.core.segmenter import segment
from romatype.core.stats import Clock, StatsTracker

logger = logging.getLogger(__name__)


class RomajiEngine:
    """Pattern table, romanization style and match mode bundled together.

    The engine holds no per-user state, so one instance can serve any number
    of participants; each participant gets its own tracker or session.
    """

    def __init__(self, table: Optional[PatternTable] = None, config: Optional[EngineConfig] = None) -> None:
        self._config = config or EngineConfig()
        base = table if table is not None else default_table()
        if self._config.pattern_overrides is not None:
            base = base.merged(load_pattern_overrides(self._config.pattern_overrides))
        self._table = base.with_style(self._config.romaji_style)
        self._matcher = Matcher(self._table, self._config.match_mode)
        logger.debug(
            "Engine ready: style=%s mode=%s entries=%d",
            self._config.romaji_style.value, self._config.match_mode.value, len(self._table),
        )

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def table(self) -> PatternTable:
        return self._table

    @property
    def mode(self) -> MatchMode:
        return self._config.match_mode

    def segment(self, text: str) -> List[str]:
        return segment(text, self._table)

    def match(self, text: str, user_input: str) -> MatchState:
        return self._matcher.match(self.segment(text), user_input)

    def validate(self, text: str, user_input: str) -> ValidationResult:
        return validate(text, user_input, table=self._table, mode=self.mode)

    def progress(self, text: str, user_input: str) -> float:
        return self.validate(text, user_input).progress

    def canonical_romaji(self, text: str) -> str:
        return canonical_romaji(text, table=self._table, mode=self.mode)

    def new_tracker(self, clock: Clock = time.time) -> StatsTracker:
        return StatsTracker(validator=self.validate, clock=clock)
