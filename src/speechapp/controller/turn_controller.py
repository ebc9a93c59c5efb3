"""
Voice-interaction turn controller.

Drives one request/response voice cycle per trigger press:

speak menu -> menu utterance done -> recognizer available? -> recognize
-> classify transcript -> speak response

Recognition only starts from the completion notification of the menu prompt
utterance, so the microphone never listens while the prompt is playing.
All methods run on the event loop; the trigger flag is the only guard
against overlapping turns.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from speechapp.controller.turn_state import TurnPhase, TurnState
from speechapp.io.surface import InstallTarget, PresentationSurface
from speechapp.menu.classifier import classify
from speechapp.menu.script import (
    MENU_PROMPT,
    NOT_DETECTED_MESSAGE,
    RECOGNITION_FAILED_TEXT,
    RECOGNITION_PROMPT,
    SYNTHESIS_FAILED_TEXT,
)
from speechapp.voice.stt import STTProvider
from speechapp.voice.tts import TTSProvider
from speechapp.voice.types import (
    FlushPolicy,
    LanguageModel,
    RecognitionFailure,
    RecognitionOutcome,
    RecognitionSuccess,
    UtteranceTag,
)

logger = logging.getLogger(__name__)


class TurnOutcome(str, Enum):
    """How a turn ended."""

    MATCHED = "matched"
    UNCLASSIFIED_INPUT = "unclassified_input"
    RECOGNITION_FAILURE = "recognition_failure"
    RECOGNIZER_UNAVAILABLE = "recognizer_unavailable"
    SYNTHESIS_ERROR = "synthesis_error"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class TurnRecord(BaseModel):
    """One finished turn."""

    outcome: TurnOutcome
    transcript: str | None = None
    option_number: int | None = None
    spoken: str | None = None
    detail: str | None = None
    finished_at: datetime = Field(default_factory=_now_utc)


class TurnController:
    def __init__(
        self,
        *,
        tts: TTSProvider,
        stt: STTProvider,
        surface: PresentationSurface,
        state: TurnState | None = None,
        locale: str = "id-ID",
        turn_log_path: str | Path | None = None,
    ) -> None:
        self._tts = tts
        self._stt = stt
        self._surface = surface
        self._state = state or TurnState()
        self._locale = locale
        self._turn_log_path = Path(turn_log_path) if turn_log_path else None

        self._turns: list[TurnRecord] = []
        self._recognition_task: asyncio.Task | None = None
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def state(self) -> TurnState:
        return self._state

    @property
    def turns(self) -> list[TurnRecord]:
        return list(self._turns)

    def start_turn(self) -> None:
        """Speak the menu and disable the trigger. No-op unless a turn may start."""
        if not self._state.can_start_turn:
            logger.debug(
                f"[VOICE][TURN] start ignored ready={self._state.synthesis_ready} "
                f"input_enabled={self._state.input_enabled}"
            )
            return

        self._idle.clear()
        self._set_displayed_text("")
        self._tts.speak(MENU_PROMPT, FlushPolicy.FLUSH, UtteranceTag.MENU_PROMPT)
        self._set_input_enabled(False)
        self._state.transition(TurnPhase.AWAITING_SYNTHESIS)
        logger.info("[VOICE][TURN] started")

    def on_synthesis_done(self, tag: UtteranceTag | None) -> None:
        if tag is not UtteranceTag.MENU_PROMPT or self._state.phase is not TurnPhase.AWAITING_SYNTHESIS:
            return

        if not self._stt.is_available():
            logger.warning("[VOICE][TURN] recognizer unavailable; trigger stays disabled")
            self._tts.speak(NOT_DETECTED_MESSAGE, FlushPolicy.FLUSH)
            self._surface.direct_install(InstallTarget.RECOGNIZER)
            self._state.transition(TurnPhase.BLOCKED)
            self._finish(TurnRecord(outcome=TurnOutcome.RECOGNIZER_UNAVAILABLE, spoken=NOT_DETECTED_MESSAGE))
            return

        self._state.transition(TurnPhase.AWAITING_RECOGNITION)
        self._recognition_task = asyncio.get_running_loop().create_task(self._recognize())

    def on_recognition_result(self, outcome: RecognitionOutcome) -> None:
        if self._state.phase is not TurnPhase.AWAITING_RECOGNITION:
            logger.debug(f"[VOICE][TURN] stray recognition result ignored phase={self._state.phase.value}")
            return

        if isinstance(outcome, RecognitionSuccess):
            self._set_displayed_text(outcome.transcript)
            classification = classify(outcome.transcript)
            self._tts.speak(classification.speech, FlushPolicy.FLUSH, classification.tag)
            record = TurnRecord(
                outcome=TurnOutcome.MATCHED if classification.matched else TurnOutcome.UNCLASSIFIED_INPUT,
                transcript=outcome.transcript,
                option_number=classification.option.number if classification.option else None,
                spoken=classification.speech,
            )
        else:
            self._set_displayed_text(RECOGNITION_FAILED_TEXT)
            record = TurnRecord(outcome=TurnOutcome.RECOGNITION_FAILURE, detail=outcome.reason)

        self._state.transition(TurnPhase.IDLE)
        self._set_input_enabled(True)
        self._finish(record)

    async def wait_idle(self) -> None:
        """Wait until the current turn (if any) has finished."""
        await self._idle.wait()

    # UtteranceListener

    def on_utterance_start(self, tag: UtteranceTag | None) -> None:
        pass

    def on_utterance_done(self, tag: UtteranceTag | None) -> None:
        self.on_synthesis_done(tag)

    def on_utterance_error(self, tag: UtteranceTag | None) -> None:
        logger.warning(f"[VOICE][TURN] utterance error tag={tag}")
        if tag is not UtteranceTag.MENU_PROMPT or self._state.phase is not TurnPhase.AWAITING_SYNTHESIS:
            return

        # The menu was never heard; end the turn and give the trigger back.
        self._set_displayed_text(SYNTHESIS_FAILED_TEXT)
        self._state.transition(TurnPhase.IDLE)
        self._set_input_enabled(True)
        self._finish(TurnRecord(outcome=TurnOutcome.SYNTHESIS_ERROR, detail="menu prompt could not be spoken"))

    async def _recognize(self) -> None:
        try:
            outcome = await self._stt.request_recognition(
                self._locale,
                LanguageModel.FREE_FORM,
                RECOGNITION_PROMPT,
            )
        except Exception as e:
            logger.warning(f"[VOICE][TURN] recognition raised: {e}", exc_info=True)
            outcome = RecognitionFailure(reason=str(e))
        self.on_recognition_result(outcome)

    def _set_displayed_text(self, text: str) -> None:
        self._state.displayed_text = text
        self._surface.set_text(text)

    def _set_input_enabled(self, enabled: bool) -> None:
        self._state.input_enabled = enabled
        self._surface.set_trigger_enabled(enabled)

    def _finish(self, record: TurnRecord) -> None:
        self._turns.append(record)
        logger.info(
            f"[VOICE][TURN] finished outcome={record.outcome.value} "
            f"option={record.option_number} transcript={record.transcript!r}"
        )
        self._log_turn(record)
        self._idle.set()

    def _log_turn(self, record: TurnRecord) -> None:
        if not self._turn_log_path:
            return
        self._turn_log_path.parent.mkdir(parents=True, exist_ok=True)
        with self._turn_log_path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record.model_dump(mode="json"), ensure_ascii=False) + "\n")
