"""Local voice subsystem.

This package provides the two speech services the turn controller drives:

TTS (speak, tagged completion) -> controller -> STT (one utterance)

Both default implementations are offline: Piper for synthesis and
faster-whisper for recognition.
"""

from speechapp.voice.audio_io import AudioIO, AudioIOConfig
from speechapp.voice.stt import STTConfig, STTProvider, WhisperSTT
from speechapp.voice.tts import PiperTTS, TTSConfig, TTSProvider
from speechapp.voice.types import (
    FlushPolicy,
    InitStatus,
    LanguageModel,
    LocaleStatus,
    RecognitionFailure,
    RecognitionOutcome,
    RecognitionSuccess,
    UtteranceListener,
    UtteranceTag,
)

__all__ = [
    "AudioIO",
    "AudioIOConfig",
    "FlushPolicy",
    "InitStatus",
    "LanguageModel",
    "LocaleStatus",
    "PiperTTS",
    "RecognitionFailure",
    "RecognitionOutcome",
    "RecognitionSuccess",
    "STTConfig",
    "STTProvider",
    "TTSConfig",
    "TTSProvider",
    "UtteranceListener",
    "UtteranceTag",
    "WhisperSTT",
]
