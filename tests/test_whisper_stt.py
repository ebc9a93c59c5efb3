from pathlib import Path

import numpy as np
import pytest

from speechapp.errors import RecognitionError
from speechapp.voice import stt as stt_module
from speechapp.voice.stt import STTConfig, WhisperSTT
from speechapp.voice.types import LanguageModel, RecognitionFailure, RecognitionSuccess


class FakeAudio:
    def __init__(self, *, audio=None, input_device: bool = True, error: Exception | None = None) -> None:
        self._audio = np.ones((1600, 1), dtype=np.int16) if audio is None else audio
        self._input_device = input_device
        self._error = error
        self.recorded: list[float] = []
        self.written: list[Path] = []

    def has_input_device(self) -> bool:
        return self._input_device

    async def record(self, seconds: float):
        self.recorded.append(seconds)
        if self._error is not None:
            raise self._error
        return self._audio

    def write_wav(self, wav_path, audio) -> Path:
        self.written.append(Path(wav_path))
        return Path(wav_path)


def _stt(audio: FakeAudio, tmp_path: Path, monkeypatch, result=None, error=None) -> WhisperSTT:
    stt = WhisperSTT(audio, STTConfig(listen_seconds=3.0, work_dir=str(tmp_path)))
    languages: list = []

    async def _fake_transcribe(wav_path, *, language=None):
        languages.append(language)
        if error is not None:
            raise error
        return result

    monkeypatch.setattr(stt, "transcribe_file", _fake_transcribe)
    stt.languages = languages  # type: ignore[attr-defined]
    return stt


async def _recognize(stt: WhisperSTT):
    return await stt.request_recognition("id-ID", LanguageModel.FREE_FORM, "Silahkan sebutkan nomor pilihan anda.")


@pytest.mark.asyncio
async def test_successful_transcript(tmp_path, monkeypatch, capsys):
    audio = FakeAudio()
    stt = _stt(audio, tmp_path, monkeypatch, result=RecognitionSuccess(transcript=" Nomor satu ", avg_logprob=-0.3))

    outcome = await _recognize(stt)

    assert outcome == RecognitionSuccess(transcript="Nomor satu", avg_logprob=-0.3, no_speech_prob=None)
    assert audio.recorded == [3.0]
    assert audio.written[0].parent == tmp_path
    assert stt.languages == ["id"]
    assert "Silahkan sebutkan nomor pilihan anda." in capsys.readouterr().out


@pytest.mark.asyncio
async def test_no_audio_is_failure(tmp_path, monkeypatch):
    audio = FakeAudio(audio=np.zeros((0, 1), dtype=np.int16))
    stt = _stt(audio, tmp_path, monkeypatch, result=RecognitionSuccess(transcript="satu"))

    outcome = await _recognize(stt)

    assert outcome == RecognitionFailure(reason="no_audio")
    assert stt.languages == []


@pytest.mark.asyncio
async def test_capture_error_is_failure(tmp_path, monkeypatch):
    audio = FakeAudio(error=RuntimeError("PortAudio library not found"))
    stt = _stt(audio, tmp_path, monkeypatch, result=RecognitionSuccess(transcript="satu"))

    outcome = await _recognize(stt)

    assert isinstance(outcome, RecognitionFailure)
    assert outcome.reason.startswith("capture_failed")


@pytest.mark.asyncio
async def test_transcription_error_is_failure(tmp_path, monkeypatch):
    stt = _stt(FakeAudio(), tmp_path, monkeypatch, error=RecognitionError("transcription failed: boom"))

    outcome = await _recognize(stt)

    assert outcome == RecognitionFailure(reason="transcription failed: boom")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("result", "reason"),
    [
        (RecognitionSuccess(transcript="   "), "empty_transcript"),
        (RecognitionSuccess(transcript="satu", no_speech_prob=0.95), "no_speech"),
        (RecognitionSuccess(transcript="satu", avg_logprob=-2.0), "low_confidence"),
    ],
)
async def test_confidence_gating(tmp_path, monkeypatch, result, reason):
    stt = _stt(FakeAudio(), tmp_path, monkeypatch, result=result)

    outcome = await _recognize(stt)

    assert outcome == RecognitionFailure(reason=reason)


def test_unavailable_without_faster_whisper(monkeypatch):
    monkeypatch.setattr(stt_module, "_whisper_installed", lambda: False)
    assert WhisperSTT(FakeAudio()).is_available() is False


def test_unavailable_without_input_device(monkeypatch):
    monkeypatch.setattr(stt_module, "_whisper_installed", lambda: True)
    assert WhisperSTT(FakeAudio(input_device=False)).is_available() is False


def test_available_with_model_and_microphone(monkeypatch):
    monkeypatch.setattr(stt_module, "_whisper_installed", lambda: True)
    assert WhisperSTT(FakeAudio()).is_available() is True


def test_whisper_language_from_locale():
    assert stt_module._whisper_language("id-ID") == "id"
    assert stt_module._whisper_language("en_US") == "en"
    assert stt_module._whisper_language("") is None


class DiskFullAudio(FakeAudio):
    def write_wav(self, wav_path, audio) -> Path:
        raise OSError(28, "No space left on device")


class WritingAudio(FakeAudio):
    def write_wav(self, wav_path, audio) -> Path:
        path = Path(wav_path)
        path.write_bytes(b"RIFF")
        self.written.append(path)
        return path


@pytest.mark.asyncio
async def test_wav_write_error_is_failure(tmp_path, monkeypatch):
    stt = _stt(DiskFullAudio(), tmp_path, monkeypatch, result=RecognitionSuccess(transcript="satu"))

    outcome = await _recognize(stt)

    assert isinstance(outcome, RecognitionFailure)
    assert outcome.reason.startswith("capture_failed")
    assert "No space left on device" in outcome.reason
    assert stt.languages == []


@pytest.mark.asyncio
async def test_temporary_capture_is_deleted_after_transcription(monkeypatch):
    audio = WritingAudio()
    stt = WhisperSTT(audio, STTConfig(listen_seconds=3.0))

    async def _fake_transcribe(wav_path, *, language=None):
        assert Path(wav_path).exists()
        return RecognitionSuccess(transcript="dua")

    monkeypatch.setattr(stt, "transcribe_file", _fake_transcribe)

    outcome = await _recognize(stt)

    assert outcome == RecognitionSuccess(transcript="dua")
    assert not audio.written[0].exists()


@pytest.mark.asyncio
async def test_capture_is_kept_in_configured_work_dir(tmp_path, monkeypatch):
    audio = WritingAudio()
    stt = _stt(audio, tmp_path, monkeypatch, result=RecognitionSuccess(transcript="dua"))

    await _recognize(stt)

    assert audio.written[0].exists()
    assert audio.written[0].parent == tmp_path
