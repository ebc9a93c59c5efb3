import pytest

from speechapp.config import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_cli_defaults_follow_environment(monkeypatch):
    monkeypatch.setenv("SPEECHAPP_TTS_ENGINE", "/tmp/piper")
    monkeypatch.setenv("SPEECHAPP_PIPER_MODEL", "/tmp/voice.onnx")
    monkeypatch.setenv("SPEECHAPP_STT_MODEL", "tiny")
    monkeypatch.setenv("SPEECHAPP_STT_DEVICE", "cpu")
    monkeypatch.setenv("SPEECHAPP_LISTEN_SECONDS", "7.5")

    from speechapp.main import build_parser

    args = build_parser().parse_args([])
    assert args.tts_engine == "/tmp/piper"
    assert args.piper_model == "/tmp/voice.onnx"
    assert args.stt_model == "tiny"
    assert args.stt_device == "cpu"
    assert args.listen_seconds == 7.5
    assert args.locale == "id-ID"


def test_cli_flags_override_environment(monkeypatch):
    monkeypatch.setenv("SPEECHAPP_STT_MODEL", "tiny")

    from speechapp.main import build_parser

    args = build_parser().parse_args(["--stt-model", "medium", "--speech-rate", "1.25"])
    assert args.stt_model == "medium"
    assert args.speech_rate == 1.25


def test_build_session_starts_inert(monkeypatch, tmp_path):
    monkeypatch.delenv("SPEECHAPP_PIPER_MODEL", raising=False)

    from speechapp.main import build_parser, build_session

    args = build_parser().parse_args(["--artifacts-dir", str(tmp_path)])
    session, surface = build_session(args)

    assert session.state.synthesis_ready is False
    assert session.state.input_enabled is True
    assert surface.trigger_enabled is True
