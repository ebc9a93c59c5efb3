"""Speech-to-text (offline).

`WhisperSTT` captures one answer from the microphone and transcribes it with
`faster-whisper` if installed. Every problem along the way is reported as a
`RecognitionFailure` outcome rather than raised to the caller.
"""

from __future__ import annotations

import asyncio
import importlib.util
import logging
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from speechapp.errors import RecognitionError
from speechapp.voice.types import (
    LanguageModel,
    RecognitionFailure,
    RecognitionOutcome,
    RecognitionSuccess,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class STTConfig:
    model_size: str = "small"
    # Default to CPU to avoid hard crashes when CUDA/cuDNN aren't present.
    device: str = "cpu"  # cpu|cuda|auto
    compute_type: str | None = None  # e.g. int8, float16
    vad_filter: bool = True
    listen_seconds: float = 5.0
    min_transcript_chars: int = 1
    # Confidence heuristics (faster-whisper):
    min_avg_logprob: float = -1.2
    max_no_speech_prob: float = 0.9
    work_dir: str | None = None  # where captured WAVs go; temp dir when unset


class RecordingProtocol(Protocol):
    def has_input_device(self) -> bool: ...

    async def record(self, seconds: float) -> Any: ...

    def write_wav(self, wav_path: str | Path, audio: Any) -> Path: ...


class STTProvider:
    def is_available(self) -> bool:
        raise NotImplementedError

    async def request_recognition(
        self,
        locale: str,
        language_model: LanguageModel,
        prompt: str,
    ) -> RecognitionOutcome:
        raise NotImplementedError


class WhisperSTT(STTProvider):
    """faster-whisper wrapper with microphone capture."""

    def __init__(self, audio: RecordingProtocol, config: STTConfig | None = None) -> None:
        self._audio = audio
        self._config = config or STTConfig()
        self._model = None
        self._work_dir: Path | None = Path(self._config.work_dir) if self._config.work_dir else None

    @property
    def config(self) -> STTConfig:
        return self._config

    def is_available(self) -> bool:
        if not _whisper_installed():
            logger.info("[VOICE][STT] faster-whisper is not installed")
            return False
        return self._audio.has_input_device()

    def _load_model(self):
        if self._model is not None:
            return self._model

        try:
            from faster_whisper import WhisperModel  # type: ignore
        except ImportError as e:  # pragma: no cover
            raise RecognitionError(
                "faster-whisper is required for STT. Install with: pip install -e '.[voice]'"
            ) from e

        device = self._config.device
        if device == "auto":
            # Be conservative: prefer CPU unless user explicitly requests CUDA.
            device = "cpu"

        kwargs = {}
        if self._config.compute_type:
            kwargs["compute_type"] = self._config.compute_type

        try:
            self._model = WhisperModel(self._config.model_size, device=device, **kwargs)
        except Exception as e:  # pragma: no cover
            raise RecognitionError(f"could not load whisper model {self._config.model_size!r}: {e}") from e
        return self._model

    async def transcribe_file(self, wav_path: str | Path, *, language: str | None = None) -> RecognitionSuccess:
        wav_path = Path(wav_path)

        def _run() -> RecognitionSuccess:
            model = self._load_model()
            try:
                segments, info = model.transcribe(
                    str(wav_path),
                    language=language,
                    vad_filter=self._config.vad_filter,
                )
                text_parts = [s.text.strip() for s in segments if s.text]
            except Exception as e:
                raise RecognitionError(f"transcription failed: {e}") from e
            text = " ".join(t for t in text_parts if t).strip()
            return RecognitionSuccess(
                transcript=text,
                avg_logprob=getattr(info, "avg_logprob", None),
                no_speech_prob=getattr(info, "no_speech_prob", None),
            )

        return await asyncio.to_thread(_run)

    async def request_recognition(
        self,
        locale: str,
        language_model: LanguageModel,
        prompt: str,
    ) -> RecognitionOutcome:
        if language_model is not LanguageModel.FREE_FORM:
            logger.debug(f"[VOICE][STT] language_model={language_model.value} treated as free-form")

        print(f"\n[Voice] {prompt}", flush=True)
        try:
            audio = await self._audio.record(self._config.listen_seconds)
            if getattr(audio, "size", 0) == 0:
                return RecognitionFailure(reason="no_audio")

            ts = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
            wav_path = self._audio.write_wav(self._capture_dir() / f"answer_{ts}.wav", audio)
        except Exception as e:
            # sounddevice.PortAudioError derives from Exception only.
            logger.warning(f"[VOICE][STT] capture failed: {e}")
            return RecognitionFailure(reason=f"capture_failed: {e}")

        try:
            result = await self.transcribe_file(wav_path, language=_whisper_language(locale))
        except RecognitionError as e:
            logger.warning(f"[VOICE][STT] {e}")
            return RecognitionFailure(reason=str(e))
        finally:
            if not self._config.work_dir:
                Path(wav_path).unlink(missing_ok=True)

        return self._gate(result)

    def _gate(self, result: RecognitionSuccess) -> RecognitionOutcome:
        text = (result.transcript or "").strip()
        if len(text) < self._config.min_transcript_chars:
            return RecognitionFailure(reason="empty_transcript")

        if result.no_speech_prob is not None and result.no_speech_prob >= self._config.max_no_speech_prob:
            return RecognitionFailure(reason="no_speech")

        if result.avg_logprob is not None and result.avg_logprob <= self._config.min_avg_logprob:
            return RecognitionFailure(reason="low_confidence")

        logger.info(f"[VOICE][STT] transcript=\"{text}\"")
        return RecognitionSuccess(
            transcript=text,
            avg_logprob=result.avg_logprob,
            no_speech_prob=result.no_speech_prob,
        )

    def _capture_dir(self) -> Path:
        if self._work_dir is None:
            self._work_dir = Path(tempfile.mkdtemp(prefix="speechapp_stt_"))
        self._work_dir.mkdir(parents=True, exist_ok=True)
        return self._work_dir


def _whisper_installed() -> bool:
    return importlib.util.find_spec("faster_whisper") is not None


def _whisper_language(locale: str) -> str | None:
    """'id-ID' -> 'id'. Whisper takes bare language codes."""
    code = (locale or "").replace("_", "-").split("-")[0].strip().lower()
    return code or None
