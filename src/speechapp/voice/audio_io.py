"""Audio capture + playback.

Hardware I/O only: this module knows nothing about menus, turns or prompts.

It provides:
- timed microphone capture for one spoken answer
- WAV saving/loading helpers
- speaker playback that can be stopped when speech is flushed
- input-device detection for recognizer availability
"""

from __future__ import annotations

import asyncio
import logging
import wave
from dataclasses import dataclass
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudioIOConfig:
    sample_rate: int = 16000
    channels: int = 1
    dtype: str = "int16"  # sounddevice dtype and WAV sample width
    playback_timeout_s: float = 60.0


class AudioIO:
    def __init__(self, config: AudioIOConfig | None = None) -> None:
        self._config = config or AudioIOConfig()
        self._recording_stream = None
        self._recording_frames: list[np.ndarray] = []

    @property
    def config(self) -> AudioIOConfig:
        return self._config

    def _require_sounddevice(self):
        try:
            import sounddevice as sd  # type: ignore

            return sd
        except Exception as e:  # pragma: no cover
            raise RuntimeError(
                "sounddevice is required for audio. Install Python deps with: pip install -e '.[voice]'. "
                "If you see 'PortAudio library not found', install PortAudio (Debian/Ubuntu: sudo apt-get install portaudio19-dev)."
            ) from e

    def has_input_device(self) -> bool:
        """True when sounddevice loads and reports a default input device."""
        try:
            sd = self._require_sounddevice()
            sd.query_devices(kind="input")
        except Exception as e:
            logger.info(f"[VOICE][AUDIO] no input device: {e}")
            return False
        return True

    async def start_recording(self) -> None:
        sd = self._require_sounddevice()
        self._recording_frames = []

        def callback(indata, frames, time, status):  # noqa: ANN001
            if status:
                logger.debug(f"Input status: {status}")
            self._recording_frames.append(indata.copy())

        self._recording_stream = sd.InputStream(
            samplerate=self._config.sample_rate,
            channels=self._config.channels,
            dtype=self._config.dtype,
            callback=callback,
        )

        await asyncio.to_thread(self._recording_stream.start)

    async def stop_recording(self) -> np.ndarray:
        """Stop mic capture and return audio as int16 numpy array [samples, channels]."""
        if self._recording_stream is None:
            return np.zeros((0, self._config.channels), dtype=np.int16)

        stream = self._recording_stream
        self._recording_stream = None

        await asyncio.to_thread(stream.stop)
        await asyncio.to_thread(stream.close)

        if not self._recording_frames:
            return np.zeros((0, self._config.channels), dtype=np.int16)

        return np.concatenate(self._recording_frames, axis=0)

    async def record(self, seconds: float) -> np.ndarray:
        """Capture `seconds` of microphone audio."""
        await self.start_recording()
        try:
            await asyncio.sleep(seconds)
        finally:
            audio = await self.stop_recording()
        return audio

    def write_wav(self, wav_path: str | Path, audio: np.ndarray) -> Path:
        """Write int16 PCM WAV."""
        wav_path = Path(wav_path)
        wav_path.parent.mkdir(parents=True, exist_ok=True)

        if audio.ndim == 1:
            audio = audio[:, None]

        audio_i16 = audio.astype(np.int16, copy=False)

        with wave.open(str(wav_path), "wb") as wf:
            wf.setnchannels(self._config.channels)
            wf.setsampwidth(2)  # int16
            wf.setframerate(self._config.sample_rate)
            wf.writeframes(audio_i16.tobytes())

        return wav_path

    def read_wav(self, wav_path: str | Path) -> tuple[np.ndarray, int]:
        wav_path = Path(wav_path)
        with wave.open(str(wav_path), "rb") as wf:
            sr = wf.getframerate()
            n_channels = wf.getnchannels()
            sampwidth = wf.getsampwidth()
            if sampwidth != 2:
                raise ValueError(f"Only 16-bit WAV supported, got sampwidth={sampwidth}")
            frames = wf.readframes(wf.getnframes())

        audio = np.frombuffer(frames, dtype=np.int16)
        return audio.reshape(-1, n_channels), sr

    async def play_wav(self, wav_path: str | Path) -> None:
        """Play a WAV file and wait until it finishes or is stopped."""
        sd = self._require_sounddevice()

        audio, sr = self.read_wav(wav_path)
        audio_f32 = audio.astype(np.float32) / 32768.0
        if audio_f32.shape[1] == 1:
            audio_f32 = audio_f32.squeeze(-1)

        sd.play(audio_f32, samplerate=sr, blocking=False)
        try:
            await asyncio.wait_for(asyncio.to_thread(sd.wait), timeout=self._config.playback_timeout_s)
        except asyncio.TimeoutError:
            logger.warning(f"[VOICE][AUDIO] playback timed out wav={wav_path}")
            sd.stop()
        except asyncio.CancelledError:
            sd.stop()
            raise

    def stop_playback(self) -> None:
        try:
            sd = self._require_sounddevice()
        except RuntimeError:
            return
        sd.stop()
