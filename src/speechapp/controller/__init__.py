"""
Controller module for sequencing voice turns.
"""

from speechapp.controller.session import SpeechSession
from speechapp.controller.turn_controller import TurnController, TurnOutcome, TurnRecord
from speechapp.controller.turn_state import TurnPhase, TurnState

__all__ = [
    "SpeechSession",
    "TurnController",
    "TurnOutcome",
    "TurnPhase",
    "TurnRecord",
    "TurnState",
]
