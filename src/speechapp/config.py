"""
Application configuration using pydantic-settings.

Loads configuration from environment variables (prefix ``SPEECHAPP_``) and
.env files.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SPEECHAPP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Speech output (Piper)
    tts_engine: str = Field(
        default="piper",
        description="Path/name of the Piper TTS binary used as the synthesis engine",
    )
    piper_model: str | None = Field(
        default=None,
        description="Path to the Piper .onnx voice model",
    )
    piper_timeout_s: float = Field(
        default=60.0,
        description="Timeout in seconds per Piper synthesis chunk",
    )
    speech_rate: float = Field(
        default=1.0,
        gt=0.0,
        description="Speech rate applied before every utterance (1.0 is normal)",
    )

    # Speech input (faster-whisper)
    locale: str = Field(
        default="id-ID",
        description="Locale used for the voice and for recognition",
    )
    stt_model: str = Field(
        default="small",
        description="faster-whisper model size",
    )
    stt_device: Literal["cpu", "cuda", "auto"] = Field(
        default="cpu",
        description="Device used for transcription",
    )
    stt_compute_type: str | None = Field(
        default=None,
        description="faster-whisper compute type (e.g. int8, float16)",
    )
    listen_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description="How long the microphone listens for one answer",
    )
    min_avg_logprob: float = Field(
        default=-1.2,
        description="Transcripts at or below this average log-probability are rejected",
    )
    max_no_speech_prob: float = Field(
        default=0.9,
        description="Transcripts at or above this no-speech probability are rejected",
    )

    # Audio
    sample_rate: int = Field(
        default=16000,
        description="Microphone sample rate in Hz",
    )

    # Application
    artifacts_dir: str | None = Field(
        default=None,
        description="Directory for the turns.jsonl log (disabled when unset)",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
