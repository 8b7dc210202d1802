"""Romaji transliteration and typing validation engine for classroom typing races."""

__version__ = "0.1.0"
