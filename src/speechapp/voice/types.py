"""Shared types for the speech output and speech input services."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Union


class UtteranceTag(str, Enum):
    """Correlates a speak request with its completion notification."""

    GREETING = "greeting"
    MENU_PROMPT = "start_listening"
    RETRY_PROMPT = "retry_prompt"


class FlushPolicy(str, Enum):
    """What happens to queued/playing speech when a new utterance arrives."""

    FLUSH = "flush"
    ADD = "add"


class InitStatus(str, Enum):
    READY = "ready"
    FAILED = "failed"


class LocaleStatus(str, Enum):
    OK = "ok"
    MISSING_DATA = "missing_data"
    UNSUPPORTED = "unsupported"


class LanguageModel(str, Enum):
    """Recognition mode. Free-form imposes no grammar on the utterance."""

    FREE_FORM = "free_form"
    WEB_SEARCH = "web_search"


@dataclass(frozen=True)
class RecognitionSuccess:
    transcript: str
    avg_logprob: float | None = None
    no_speech_prob: float | None = None


@dataclass(frozen=True)
class RecognitionFailure:
    reason: str


RecognitionOutcome = Union[RecognitionSuccess, RecognitionFailure]


class UtteranceListener(Protocol):
    def on_utterance_start(self, tag: UtteranceTag | None) -> None: ...

    def on_utterance_done(self, tag: UtteranceTag | None) -> None: ...

    def on_utterance_error(self, tag: UtteranceTag | None) -> None: ...
