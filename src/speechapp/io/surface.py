"""
Presentation surface contract.

The controller writes to exactly one text region and one trigger control,
and can direct the user to install a missing speech component.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

from speechapp.menu.script import MENU_PROMPT

logger = logging.getLogger(__name__)


class InstallTarget(str, Enum):
    """Components the user may be asked to install."""

    SPEECH_ENGINE = "speech_engine"
    VOICE_DATA = "voice_data"
    RECOGNIZER = "recognizer"

    @property
    def instructions(self) -> str:
        return _INSTALL_INSTRUCTIONS[self]


_INSTALL_INSTRUCTIONS = {
    InstallTarget.SPEECH_ENGINE: (
        "Install the Piper TTS binary (https://github.com/rhasspy/piper/releases) "
        "and set SPEECHAPP_TTS_ENGINE to its path."
    ),
    InstallTarget.VOICE_DATA: (
        "Download an Indonesian Piper voice (e.g. id_ID-news_tts-medium.onnx and its .onnx.json) "
        "from https://huggingface.co/rhasspy/piper-voices and set SPEECHAPP_PIPER_MODEL."
    ),
    InstallTarget.RECOGNIZER: (
        "Install speech recognition with: pip install -e '.[voice]' and connect a microphone."
    ),
}


class PresentationSurface(Protocol):
    def set_text(self, text: str) -> None: ...

    def set_trigger_enabled(self, enabled: bool) -> None: ...

    def direct_install(self, target: InstallTarget) -> None: ...


class TerminalSurface:
    """
    Terminal rendition of the single screen.

    The text region falls back to the menu while nothing has been recognized,
    and the trigger control is pressing Enter.
    """

    TRIGGER_LABEL = "Bicara"

    def __init__(self, *, placeholder: str = MENU_PROMPT) -> None:
        self._placeholder = placeholder
        self._text = ""
        self._trigger_enabled = True
        self.install_requests: list[InstallTarget] = []

    @property
    def text(self) -> str:
        return self._text or self._placeholder

    @property
    def trigger_enabled(self) -> bool:
        return self._trigger_enabled

    def set_text(self, text: str) -> None:
        self._text = text
        if text:
            print(f"\n{text}\n", flush=True)

    def set_trigger_enabled(self, enabled: bool) -> None:
        self._trigger_enabled = enabled
        logger.debug(f"trigger enabled={enabled}")

    def direct_install(self, target: InstallTarget) -> None:
        self.install_requests.append(target)
        logger.warning(f"Missing {target.value}: {target.instructions}")
        print(f"\n[Install] {target.instructions}\n", flush=True)

    def render(self) -> None:
        state = "Enter" if self._trigger_enabled else "disabled"
        print(f"\n{self.text}\n\n[{self.TRIGGER_LABEL}] ({state})", flush=True)
