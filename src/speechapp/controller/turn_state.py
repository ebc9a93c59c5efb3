"""
Turn state management.

Tracks what the screen shows, whether the trigger is enabled, whether the
synthesis engine is ready, and where the current turn stands.
"""

from enum import Enum


class TurnPhase(str, Enum):
    """Where the current voice turn stands."""

    IDLE = "idle"
    AWAITING_SYNTHESIS = "awaiting_synthesis"
    AWAITING_RECOGNITION = "awaiting_recognition"
    # Recognizer missing; the trigger is never re-enabled.
    BLOCKED = "blocked"


class TurnState:
    """
    Mutable state of one speech session.

    Invariant: `input_enabled` is False exactly while a turn is outstanding,
    from `start_turn` until its recognition outcome has been handled.
    """

    def __init__(self) -> None:
        self._displayed_text: str = ""
        self._input_enabled: bool = True
        self._synthesis_ready: bool = False
        self._phase: TurnPhase = TurnPhase.IDLE

    @property
    def displayed_text(self) -> str:
        """Text shown in the display region; empty shows the menu."""
        return self._displayed_text

    @displayed_text.setter
    def displayed_text(self, value: str) -> None:
        self._displayed_text = value

    @property
    def input_enabled(self) -> bool:
        """Whether the trigger control accepts presses."""
        return self._input_enabled

    @input_enabled.setter
    def input_enabled(self, value: bool) -> None:
        self._input_enabled = value

    @property
    def synthesis_ready(self) -> bool:
        """Whether the synthesis engine finished initializing."""
        return self._synthesis_ready

    def mark_synthesis_ready(self) -> None:
        self._synthesis_ready = True

    @property
    def phase(self) -> TurnPhase:
        return self._phase

    def transition(self, phase: TurnPhase) -> None:
        self._phase = phase

    @property
    def can_start_turn(self) -> bool:
        return self._synthesis_ready and self._input_enabled
