"""Command-line access to the romaji engine.

Usage:

    # Segments and canonical romaji of a text
    romatype romaji きっぷ

    # Validate typed input and print the payload sent to the room
    romatype check こんにちは konnn

    # Draw a word list for a race
    romatype words --language japanese --difficulty easy --count 5
"""

from __future__ import annotations

import argparse
import json
import logging
import random
import sys
from dataclasses import replace
from typing import List, Optional

from romatype.config import load_config
from romatype.core.engine import RomajiEngine
from romatype.core.matcher import MatchMode
from romatype.core.patterns import RomajiStyle
from romatype.core.vocabulary import DIFFICULTIES, VocabularyRepository

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _build_engine(args: argparse.Namespace) -> RomajiEngine:
    config = load_config(args.config)
    if args.style:
        config = replace(config, romaji_style=RomajiStyle(args.style))
    if args.strict:
        config = replace(config, match_mode=MatchMode.STRICT)
    return RomajiEngine(config=config)


def _print_json(payload: object) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def cmd_romaji(args: argparse.Namespace) -> int:
    engine = _build_engine(args)
    segments = engine.segment(args.text)
    _print_json({
        "text": args.text,
        "segments": segments,
        "candidates": [list(engine.table.candidates(s) or (s,)) for s in segments],
        "romaji": engine.canonical_romaji(args.text),
    })
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    engine = _build_engine(args)
    result = engine.validate(args.target, args.input)
    _print_json(result.as_payload())
    return 0 if result.is_valid else 1


def cmd_words(args: argparse.Namespace) -> int:
    try:
        repo = VocabularyRepository()
        rng = random.Random(args.seed)
        words = repo.sample_words(args.language, args.difficulty, args.count, rng=rng)
    except (FileNotFoundError, ValueError) as e:
        logger.error("%s", e)
        return 1
    engine = _build_engine(args)
    _print_json([
        {"word": w.text, "reading": w.reading, "romaji": engine.canonical_romaji(w.target)}
        for w in words
    ])
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        prog="romatype",
        description="Romaji transliteration and typing validation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("-c", "--config", help="Path to config.yaml (default: ~/.romatype/config.yaml)")
    parser.add_argument("--style", choices=[s.value for s in RomajiStyle],
                        help="Romanization used for the canonical spelling")
    parser.add_argument("--strict", action="store_true",
                        help="Accept only the canonical spelling of each grapheme")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    romaji_parser = subparsers.add_parser("romaji", help="Show segments and canonical romaji")
    romaji_parser.add_argument("text", help="Kana (or Latin) text")
    romaji_parser.set_defaults(func=cmd_romaji)

    check_parser = subparsers.add_parser("check", help="Validate typed input against a target")
    check_parser.add_argument("target", help="Target text")
    check_parser.add_argument("input", help="Romaji typed so far")
    check_parser.set_defaults(func=cmd_check)

    words_parser = subparsers.add_parser("words", help="Sample a word list")
    words_parser.add_argument("-l", "--language", default="japanese")
    words_parser.add_argument("-d", "--difficulty", choices=DIFFICULTIES, default=None)
    words_parser.add_argument("-n", "--count", type=int, default=10)
    words_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    words_parser.set_defaults(func=cmd_words)

    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    if not args.command:
        parser.print_help()
        return 2
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
