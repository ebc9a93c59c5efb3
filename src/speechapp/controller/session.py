"""Speech session (glue layer).

Built once at startup. Owns the synthesis engine handle and the turn state,
brings the engine up (install check, init, voice locale, greeting) and wires
the turn controller in as the utterance listener.

It intentionally does NOT re-implement turn logic.
"""

from __future__ import annotations

import logging
from pathlib import Path

from speechapp.controller.turn_controller import TurnController
from speechapp.controller.turn_state import TurnPhase, TurnState
from speechapp.io.surface import InstallTarget, PresentationSurface
from speechapp.menu.script import GREETING
from speechapp.voice.stt import STTProvider
from speechapp.voice.tts import TTSProvider
from speechapp.voice.types import FlushPolicy, InitStatus, LocaleStatus, UtteranceTag

logger = logging.getLogger(__name__)


class SpeechSession:
    def __init__(
        self,
        *,
        tts: TTSProvider,
        stt: STTProvider,
        surface: PresentationSurface,
        engine: str = "piper",
        locale: str = "id-ID",
        speech_rate: float = 1.0,
        turn_log_path: str | Path | None = None,
    ) -> None:
        self._tts = tts
        self._surface = surface
        self._engine = engine
        self._locale = locale
        self._speech_rate = speech_rate

        self._state = TurnState()
        self._controller = TurnController(
            tts=tts,
            stt=stt,
            surface=surface,
            state=self._state,
            locale=locale,
            turn_log_path=turn_log_path,
        )
        self._tts.set_listener(self._controller)

    @property
    def state(self) -> TurnState:
        return self._state

    @property
    def controller(self) -> TurnController:
        return self._controller

    @property
    def is_blocked(self) -> bool:
        return self._state.phase is TurnPhase.BLOCKED

    async def open(self) -> bool:
        """
        Bring up speech synthesis and speak the greeting.

        Returns:
            True when synthesis is ready. On False the session stays inert:
            trigger presses are ignored and the menu text stays on screen.
        """
        if not self._tts.is_engine_installed(self._engine):
            logger.warning(f"[VOICE][TTS] engine not installed engine={self._engine}")
            self._surface.direct_install(InstallTarget.SPEECH_ENGINE)
            return False

        status = await self._tts.initialize(self._engine)
        if status is not InitStatus.READY:
            logger.warning("[VOICE][TTS] synthesis unavailable; session stays inert")
            return False

        self._state.mark_synthesis_ready()

        locale_status = self._tts.set_voice_locale(self._locale)
        if locale_status in (LocaleStatus.MISSING_DATA, LocaleStatus.UNSUPPORTED):
            logger.warning(f"[VOICE][TTS] voice data {locale_status.value} locale={self._locale}")
            self._surface.direct_install(InstallTarget.VOICE_DATA)

        self._tts.set_speech_rate(self._speech_rate)
        self._tts.speak(GREETING, FlushPolicy.FLUSH, UtteranceTag.GREETING)
        return True

    def press_trigger(self) -> None:
        self._controller.start_turn()

    async def wait_for_speech(self) -> None:
        await self._tts.wait_until_idle()

    async def close(self) -> None:
        """Let queued speech finish and detach the controller."""
        await self.wait_for_speech()
        self._tts.set_listener(None)
