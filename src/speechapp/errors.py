"""Errors raised by the speech services.

None of these are fatal: the session and controller convert them into
statuses and outcomes that are reported through speech or the display.
"""


class SpeechAppError(RuntimeError):
    """Base class for speech service errors."""


class SynthesisInitFailure(SpeechAppError):
    """The speech synthesis engine is missing or could not be initialized."""


class RecognitionError(SpeechAppError):
    """Capturing or transcribing an utterance failed."""
