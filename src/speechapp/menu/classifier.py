"""
Keyword classifier for spoken menu choices.

Maps a recognized transcript onto one of the fixed menu options by substring
containment, testing options in menu order. The first option with a matching
keyword wins, so "12" selects option 1 and "dua satu" also selects option 1.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, Field

from speechapp.menu.script import FALLBACK_PREFIX, MENU_OPTIONS, MenuOption
from speechapp.voice.types import UtteranceTag

_NON_ALNUM_SPACE = re.compile(r"[^a-zA-Z0-9 ]")


class Classification(BaseModel):
    """Result of classifying one transcript."""

    normalized: str = Field(..., description="Transcript after normalization")
    option: MenuOption | None = Field(default=None, description="Matched option, None for fallback")
    speech: str = Field(..., description="Text to speak back")
    tag: UtteranceTag | None = Field(default=None, description="Utterance tag for the spoken text")

    @property
    def matched(self) -> bool:
        return self.option is not None


def normalize(transcript: str | None) -> str:
    """Keep ASCII letters, digits and spaces; trim; lower-case."""
    return _NON_ALNUM_SPACE.sub("", transcript or "").strip().lower()


def classify(
    transcript: str | None,
    options: tuple[MenuOption, ...] = MENU_OPTIONS,
) -> Classification:
    """
    Classify a transcript against the menu.

    Args:
        transcript: Best transcription returned by the recognizer.
        options: Menu options in priority order.

    Returns:
        The matched option and the text to speak. Unmatched input (including
        an empty transcript) yields the fallback echo tagged as a retry prompt.
    """
    cleaned = normalize(transcript)
    for option in options:
        if any(keyword in cleaned for keyword in option.keywords):
            return Classification(
                normalized=cleaned,
                option=option,
                speech=f"{cleaned}, {option.response}",
            )

    return Classification(
        normalized=cleaned,
        option=None,
        speech=f"{FALLBACK_PREFIX} {cleaned}",
        tag=UtteranceTag.RETRY_PROMPT,
    )
