"""
Main entry point for the voice menu application.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from speechapp.config import get_settings
from speechapp.controller.session import SpeechSession
from speechapp.io.surface import TerminalSurface
from speechapp.voice.audio_io import AudioIO, AudioIOConfig
from speechapp.voice.stt import STTConfig, WhisperSTT
from speechapp.voice.tts import PiperTTS, TTSConfig


def setup_logging() -> None:
    """Configure application logging."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser. Defaults come from SPEECHAPP_* settings."""
    settings = get_settings()

    p = argparse.ArgumentParser(prog="speechapp", description="Speak the menu and answer a spoken choice")
    p.add_argument(
        "--tts-engine",
        default=settings.tts_engine,
        help="Path/name of the Piper TTS binary (default: SPEECHAPP_TTS_ENGINE or 'piper')",
    )
    p.add_argument(
        "--piper-model",
        default=settings.piper_model,
        help="Path to the Piper .onnx voice model (default: SPEECHAPP_PIPER_MODEL)",
    )
    p.add_argument(
        "--piper-timeout",
        type=float,
        default=settings.piper_timeout_s,
        help="Timeout (seconds) per Piper synthesis chunk",
    )
    p.add_argument(
        "--speech-rate",
        type=float,
        default=settings.speech_rate,
        help="Speech rate, 1.0 is normal",
    )
    p.add_argument("--locale", default=settings.locale, help="Voice and recognition locale")
    p.add_argument(
        "--stt-model",
        default=settings.stt_model,
        help="faster-whisper model size (default: SPEECHAPP_STT_MODEL or 'small')",
    )
    p.add_argument(
        "--stt-device",
        default=settings.stt_device,
        choices=["cpu", "cuda", "auto"],
        help="STT device (default: SPEECHAPP_STT_DEVICE or 'cpu')",
    )
    p.add_argument(
        "--listen-seconds",
        type=float,
        default=settings.listen_seconds,
        help="How long to listen for an answer",
    )
    p.add_argument("--sample-rate", type=int, default=settings.sample_rate)
    p.add_argument(
        "--artifacts-dir",
        default=settings.artifacts_dir,
        help="Write turns.jsonl here (default: SPEECHAPP_ARTIFACTS_DIR, disabled when unset)",
    )
    return p


def build_session(args: argparse.Namespace) -> tuple[SpeechSession, TerminalSurface]:
    settings = get_settings()

    audio = AudioIO(AudioIOConfig(sample_rate=args.sample_rate))
    tts = PiperTTS(
        audio,
        TTSConfig(
            piper_bin=args.tts_engine,
            model_path=args.piper_model,
            timeout_s=args.piper_timeout,
        ),
    )
    stt = WhisperSTT(
        audio,
        STTConfig(
            model_size=args.stt_model,
            device=args.stt_device,
            compute_type=settings.stt_compute_type,
            listen_seconds=args.listen_seconds,
            min_avg_logprob=settings.min_avg_logprob,
            max_no_speech_prob=settings.max_no_speech_prob,
        ),
    )
    surface = TerminalSurface()
    turn_log_path = Path(args.artifacts_dir) / "turns.jsonl" if args.artifacts_dir else None

    session = SpeechSession(
        tts=tts,
        stt=stt,
        surface=surface,
        engine=args.tts_engine,
        locale=args.locale,
        speech_rate=args.speech_rate,
        turn_log_path=turn_log_path,
    )
    return session, surface


async def run_app(argv: list[str] | None = None) -> None:
    """
    Run the voice menu until the user quits.

    Each Enter press is one trigger press. The loop ends on 'q', end of
    input, or when the recognizer turned out to be unavailable.
    """
    args = build_parser().parse_args(argv)
    logger = logging.getLogger(__name__)

    session, surface = build_session(args)

    logger.info("Opening speech session...")
    ready = await session.open()
    if not ready:
        logger.warning("Speech synthesis is not ready; the trigger will do nothing.")
    surface.render()

    while True:
        try:
            line = await asyncio.to_thread(input, "\n[Bicara] Press Enter to speak, q to quit... ")
        except EOFError:
            break
        if line.strip().lower() in {"q", "quit", "exit"}:
            break

        session.press_trigger()
        await session.controller.wait_idle()
        await session.wait_for_speech()
        if session.is_blocked:
            print("\nSpeech recognition is not available. Restart after installing it.")
            break
        surface.render()

    await session.close()


def main() -> None:
    """Main entry point for the application."""
    setup_logging()

    try:
        asyncio.run(run_app(sys.argv[1:]))
    except KeyboardInterrupt:
        print("\nSession terminated by user.")
        sys.exit(0)
    except Exception as e:
        logging.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
