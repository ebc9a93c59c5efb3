"""Text-to-speech (offline).

`TTSProvider` owns the utterance queue: every `speak` call becomes a task on
the running event loop that reports start/done/error to the registered
listener with the caller's tag. A FLUSH utterance cancels whatever is queued
or playing; cancelled utterances report nothing.

Default implementation uses `piper` via subprocess and plays the resulting
WAVs through `AudioIO`.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import re
import shutil
import subprocess
import tempfile
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Protocol

from speechapp.errors import SynthesisInitFailure
from speechapp.voice.types import (
    FlushPolicy,
    InitStatus,
    LocaleStatus,
    UtteranceListener,
    UtteranceTag,
)

logger = logging.getLogger(__name__)


class PlaybackProtocol(Protocol):
    async def play_wav(self, wav_path: str | Path) -> None: ...

    def stop_playback(self) -> None: ...


class TTSProvider:
    def __init__(self) -> None:
        self._listener: UtteranceListener | None = None
        self._pending: set[asyncio.Task] = set()
        self._tail: asyncio.Task | None = None
        self._ready = False
        self._speech_rate = 1.0

    @property
    def is_ready(self) -> bool:
        return self._ready

    def is_engine_installed(self, engine: str) -> bool:
        raise NotImplementedError

    async def initialize(self, engine: str) -> InitStatus:
        raise NotImplementedError

    def set_voice_locale(self, locale: str) -> LocaleStatus:
        raise NotImplementedError

    async def _render(self, text: str) -> None:
        """Synthesize and play `text`, returning when playback ends."""
        raise NotImplementedError

    def _stop_output(self) -> None:
        pass

    def set_listener(self, listener: UtteranceListener | None) -> None:
        self._listener = listener

    def set_speech_rate(self, rate: float) -> None:
        if rate <= 0:
            raise ValueError(f"speech rate must be positive, got {rate}")
        self._speech_rate = rate

    def speak(
        self,
        text: str,
        flush: FlushPolicy = FlushPolicy.FLUSH,
        tag: UtteranceTag | None = None,
    ) -> None:
        """Queue `text` for speech. Must be called from the event loop."""
        if not self._ready:
            logger.warning(f"[VOICE][TTS] speak ignored, engine not initialized tag={tag}")
            return

        if flush is FlushPolicy.FLUSH:
            self._flush()

        previous = self._tail
        task = asyncio.get_running_loop().create_task(self._utter(text, tag, previous))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        self._tail = task

    async def wait_until_idle(self) -> None:
        while self._pending:
            await asyncio.wait(set(self._pending))

    def _flush(self) -> None:
        current = asyncio.current_task()
        flushed = [t for t in self._pending if t is not current and not t.done()]
        for task in flushed:
            task.cancel()
        if flushed:
            logger.debug(f"[VOICE][TTS] flushed {len(flushed)} utterance(s)")
            self._stop_output()
        self._tail = None

    async def _utter(self, text: str, tag: UtteranceTag | None, previous: asyncio.Task | None) -> None:
        if previous is not None and not previous.done():
            await asyncio.wait({previous})

        self._notify("on_utterance_start", tag)
        try:
            await self._render(text)
        except asyncio.CancelledError:
            logger.debug(f"[VOICE][TTS] utterance cancelled tag={tag}")
            raise
        except Exception as e:
            logger.warning(f"[VOICE][TTS] utterance failed tag={tag}: {e}")
            self._notify("on_utterance_error", tag)
            return
        self._notify("on_utterance_done", tag)

    def _notify(self, event: str, tag: UtteranceTag | None) -> None:
        if self._listener is None:
            return
        getattr(self._listener, event)(tag)


@dataclass(frozen=True)
class TTSConfig:
    piper_bin: str = "piper"
    model_path: str | None = None  # path to *.onnx
    speaker_id: int | None = None
    max_chars_per_chunk: int = 350
    timeout_s: float = 60.0
    cache_dir: str | None = None  # defaults to a temporary directory


class PiperTTS(TTSProvider):
    def __init__(self, audio: PlaybackProtocol, config: TTSConfig | None = None) -> None:
        super().__init__()
        self._audio = audio
        self._config = config or TTSConfig()
        self._validated_piper_path: str | None = None
        self._cache_dir: Path | None = Path(self._config.cache_dir) if self._config.cache_dir else None

    @property
    def config(self) -> TTSConfig:
        return self._config

    def is_engine_installed(self, engine: str) -> bool:
        return shutil.which(engine) is not None

    async def initialize(self, engine: str) -> InitStatus:
        if engine != self._config.piper_bin:
            self._config = replace(self._config, piper_bin=engine)
            self._validated_piper_path = None

        try:
            await asyncio.to_thread(self._require_piper)
        except SynthesisInitFailure as e:
            logger.warning(f"[VOICE][TTS] init failed engine={engine}: {e}")
            self._ready = False
            return InitStatus.FAILED

        self._ready = True
        logger.info(f"[VOICE][TTS] init ok engine={self._validated_piper_path}")
        return InitStatus.READY

    def set_voice_locale(self, locale: str) -> LocaleStatus:
        model_path = self._config.model_path
        if not model_path or not Path(model_path).is_file():
            return LocaleStatus.MISSING_DATA

        voice_config = Path(f"{model_path}.json")
        if not voice_config.is_file():
            logger.debug(f"[VOICE][TTS] no voice config next to model, assuming locale={locale}")
            return LocaleStatus.OK

        try:
            data = json.loads(voice_config.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"[VOICE][TTS] unreadable voice config {voice_config}: {e}")
            return LocaleStatus.MISSING_DATA

        code = (data.get("language") or {}).get("code") or (data.get("espeak") or {}).get("voice") or ""
        if not code:
            return LocaleStatus.OK

        wanted = locale.replace("-", "_").lower().split("_")[0]
        have = str(code).replace("-", "_").lower().split("_")[0]
        if wanted != have:
            logger.info(f"[VOICE][TTS] voice language={code} does not match locale={locale}")
            return LocaleStatus.UNSUPPORTED
        return LocaleStatus.OK

    def _looks_like_piper_tts(self, piper_path: str) -> bool:
        try:
            r = subprocess.run(
                [piper_path, "--help"],
                check=False,
                text=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=5,
            )
        except (OSError, subprocess.SubprocessError):
            return False

        out = (r.stdout or "").lower()
        # Piper TTS CLI typically supports these flags.
        return ("--model" in out or "--output_file" in out) and "application options" not in out

    def _require_piper(self) -> str:
        if self._validated_piper_path:
            return self._validated_piper_path

        p = shutil.which(self._config.piper_bin)
        if not p:
            raise SynthesisInitFailure(
                f"piper CLI not found ({self._config.piper_bin}). Install piper and ensure it's on PATH, "
                "or set SPEECHAPP_TTS_ENGINE."
            )
        if not self._looks_like_piper_tts(p):
            raise SynthesisInitFailure(
                "Found a `piper` binary, but it does not look like the Piper TTS CLI "
                "(common on Linux: /usr/bin/piper is a GTK app). Set SPEECHAPP_TTS_ENGINE to the Piper TTS binary."
            )
        if not self._config.model_path:
            raise SynthesisInitFailure("Piper model path not configured. Set SPEECHAPP_PIPER_MODEL.")

        self._validated_piper_path = p
        return p

    def _chunk_text(self, text: str) -> list[str]:
        t = (text or "").strip()
        if not t:
            return []

        # Split on sentence-ish boundaries and line breaks, then re-pack into chunks.
        parts = [p.strip() for p in re.split(r"(?<=[.!?:])\s+|\n+", t) if p and p.strip()]
        chunks: list[str] = []
        current = ""
        for p in parts:
            if not current:
                current = p
                continue
            if len(current) + 1 + len(p) <= self._config.max_chars_per_chunk:
                current = current + " " + p
            else:
                chunks.append(current)
                current = p
        if current:
            chunks.append(current)

        # Hard-split anything still over the limit.
        out: list[str] = []
        limit = self._config.max_chars_per_chunk
        for c in chunks:
            out.extend(c[i : i + limit] for i in range(0, len(c), limit))
        return out

    def _length_scale(self) -> float:
        # Piper expresses speed as phoneme length, the inverse of rate.
        return round(1.0 / self._speech_rate, 3)

    def _wav_cache_dir(self) -> Path:
        if self._cache_dir is None:
            self._cache_dir = Path(tempfile.mkdtemp(prefix="speechapp_tts_"))
        self._cache_dir.mkdir(parents=True, exist_ok=True)
        return self._cache_dir

    async def synthesize_to_wavs(self, text: str, out_dir: str | Path, base_name: str) -> list[Path]:
        out_dir = Path(out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)

        piper_bin = self._require_piper()
        chunks = self._chunk_text(text)
        if not chunks:
            return []

        wavs: list[Path] = []
        for idx, chunk in enumerate(chunks):
            wav_path = out_dir / f"{base_name}_{idx:02d}.wav"
            cmd = [
                piper_bin,
                "--model",
                str(self._config.model_path),
                "--output_file",
                str(wav_path),
                "--length_scale",
                str(self._length_scale()),
            ]
            if self._config.speaker_id is not None:
                cmd += ["--speaker", str(self._config.speaker_id)]
            await asyncio.to_thread(self._run_piper, cmd, chunk)
            wavs.append(wav_path)

        return wavs

    def _run_piper(self, cmd: list[str], chunk: str) -> None:
        try:
            subprocess.run(
                cmd,
                input=chunk,
                text=True,
                check=True,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                timeout=self._config.timeout_s,
            )
        except subprocess.TimeoutExpired as e:
            raise RuntimeError(
                f"piper timed out after {self._config.timeout_s:.1f}s. model={self._config.model_path!s}."
            ) from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise RuntimeError(
                f"piper failed (exit={e.returncode}). model={self._config.model_path!s}. stderr={stderr or '<empty>'}"
            ) from e

    async def _render(self, text: str) -> None:
        cache_dir = self._wav_cache_dir()
        # Cache by (model + rate + text), so the menu prompt is only synthesized once.
        cache_key = hashlib.sha1(
            f"{self._config.model_path}\n{self._length_scale()}\n{text}".encode("utf-8")
        ).hexdigest()[:16]
        marker = cache_dir / f"{cache_key}.ok"
        if marker.exists():
            wavs = sorted(cache_dir.glob(f"{cache_key}_*.wav"))
        else:
            wavs = await self.synthesize_to_wavs(text, out_dir=cache_dir, base_name=cache_key)
            marker.touch()
            excerpt = text[:80].replace("\n", " ")
            logger.info(f"[VOICE][TTS] synthesized chunks={len(wavs)} text=\"{excerpt}\"")

        for wav in wavs:
            await self._audio.play_wav(wav)

    def _stop_output(self) -> None:
        self._audio.stop_playback()
