#!/usr/bin/env python3
"""
Main entry point for the MockMate interview coach.
Allows running the package with: python -m mockmate
"""
import asyncio
import logging
import sys
import threading
from typing import Optional

from .config import get_config, Config
from .infrastructure.llm import GeminiRestClient
from .infrastructure.media.console import ConsoleMediaProvider
from .infrastructure.media.speech import SpeechPlayer
from .infrastructure.media.voice import VoiceMediaProvider
from .interview import (
    AnalysisService, InterviewConfig, InterviewOrchestrator, Notice, format_report
)
from .utils import setup_logging

logger = logging.getLogger("mockmate")


def print_notice(notice: Notice):
    icon = "⛔" if notice.blocking else "⚠️ "
    print(f"{icon} {notice.message}")


def _settle(future: asyncio.Future, result=None, error: Optional[BaseException] = None) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)


async def ask(prompt: str) -> str:
    """Read one line from stdin on a daemon thread; a pending read never holds up shutdown."""
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def read_line():
        try:
            line, error = input(prompt), None
        except Exception as e:  # EOFError when stdin closes
            line, error = None, e
        try:
            loop.call_soon_threadsafe(_settle, future, line, error)
        except RuntimeError:
            logger.debug("Event loop closed before input arrived")

    threading.Thread(target=read_line, name="stdin-reader", daemon=True).start()
    return await future


async def prompt_interview_config(defaults: InterviewConfig) -> InterviewConfig:
    """Setup phase: ask for role, level and focus (Enter keeps the default)."""
    print("\n🛠️  Interview setup")
    role = (await ask(f"   Job role [{defaults.job_role}]: ")).strip() or defaults.job_role
    level = (await ask(f"   Experience level [{defaults.experience_level}]: ")).strip() or defaults.experience_level
    focus = (await ask(f"   Focus area [{defaults.focus_area}]: ")).strip() or defaults.focus_area
    return InterviewConfig(job_role=role, experience_level=level, focus_area=focus)


async def run_live_session(orchestrator: InterviewOrchestrator, config: InterviewConfig) -> bool:
    """
    Run one live session in the terminal.

    Returns:
        False if the candidate quit before the interview completed
    """
    live = orchestrator.start_interview(config)
    provider: ConsoleMediaProvider = live.media  # type: ignore[assignment]

    async with live:
        mode = "speak or type your answer" if isinstance(provider, VoiceMediaProvider) else "answer by typing"
        print(f"\n🎙️  Starting interview - {mode}; an empty line submits")
        print("   (:replay repeats the question, :quit ends the session)")
        await live.start()

        while not live.is_complete:
            print(f"❓ Question {live.question_number}/{live.max_turns}")
            live.start_listening()
            if live.transcript:
                print(f"   (so far: \"{live.transcript}\")")

            while True:
                line = await ask("> ")
                command = line.strip()
                if command == ":quit":
                    return False
                if command == ":replay":
                    live.replay_question()
                    continue
                if not command:
                    heard = await provider.flush()
                    if heard:
                        print(f"   🗣️  \"{heard}\"")
                    break
                if not provider.feed_line(command):
                    print("   (not listening - line ignored)")

            print("🤔 Analyzing response...")
            turn = await live.submit_answer()
            if turn is not None:
                for point in turn.analysis:
                    print(f"   {point.category.value}: {point.score} - {point.feedback}")
                if turn.suggestion:
                    print(f"   💡 {turn.suggestion}")

    return True


async def run(orchestrator: InterviewOrchestrator, defaults: InterviewConfig):
    print("🎯 MockMate - practice interviews with instant feedback")
    orchestrator.start_setup()

    config = defaults
    while True:
        config = await prompt_interview_config(config)
        finished = await run_live_session(orchestrator, config)
        if not finished:
            print("👋 Session ended early.")
            orchestrator.restart()
            break

        report = orchestrator.report
        print("\n📝 Generating comprehensive report...")
        await orchestrator.fetch_summary()
        print("\n" + "=" * 50)
        print(format_report(report))
        print("=" * 50)

        again = (await ask("\n🔁 Start a new session? [y/N]: ")).strip().lower()
        orchestrator.restart()
        if again not in ("y", "yes"):
            break

    print(f"📈 Session metrics: {orchestrator.get_metrics()}")


def parse_args(argv, config: Config):
    """Apply --flag=value options on top of the loaded configuration."""
    role, level, focus = config.job_role, config.experience_level, config.focus_area
    use_tts = config.enable_tts
    use_voice = config.enable_voice
    camera_index: Optional[int] = config.camera_index

    for arg in argv:
        if arg.startswith("--role="):
            role = arg.split("=", 1)[1]
        elif arg.startswith("--level="):
            level = arg.split("=", 1)[1]
        elif arg.startswith("--focus="):
            focus = arg.split("=", 1)[1]
        elif arg in ("--tts", "--speech"):
            use_tts = True
        elif arg in ("--text", "--no-tts"):
            use_tts = False
        elif arg == "--voice":
            use_voice = True
        elif arg == "--typed":
            use_voice = False
        elif arg == "--no-camera":
            camera_index = None
        elif arg.startswith("--camera="):
            try:
                camera_index = int(arg.split("=", 1)[1])
            except ValueError:
                print("❌ Invalid camera index. Use --camera=0, --camera=1, ...")
                sys.exit(1)

    defaults = InterviewConfig(job_role=role, experience_level=level, focus_area=focus)
    return defaults, use_tts, use_voice, camera_index


def main():
    """Command-line interface for the interview coach."""
    config = get_config()
    log_file = setup_logging(config.log_file, config.log_level)

    defaults, use_tts, use_voice, camera_index = parse_args(sys.argv[1:], config)

    if not config.has_credentials:
        print("⚠️  No GEMINI_API_KEY or GOOGLE_CLOUD_PROJECT set - questions and scoring will fall back.")

    if use_tts:
        print(f"🔊 TTS Mode: questions are spoken with {config.tts_voice}")
    else:
        print("📝 Text Mode: questions are printed (use --tts to hear them)")
    if use_voice:
        print(f"🎤 Voice Mode: answers are recognized with Google Cloud Speech ({config.language_code})")
    print(f"📷 Camera: {'off' if camera_index is None else camera_index}")
    print(f"📝 Detailed logs: {log_file}")

    client = GeminiRestClient(
        api_key=config.api_key,
        project=config.google_cloud_project,
        location=config.vertex_location,
        model=config.model_name,
        credentials_json=config.google_application_credentials,
    )
    analysis_service = AnalysisService(client, max_turns=config.max_turns)
    speech_player = SpeechPlayer(voice=config.tts_voice, language_code=config.language_code) if use_tts else None

    def media_factory() -> ConsoleMediaProvider:
        if use_voice:
            return VoiceMediaProvider(camera_index=camera_index, speech_player=speech_player,
                                      device_index=config.mic_device, language_code=config.language_code)
        return ConsoleMediaProvider(camera_index=camera_index, speech_player=speech_player)

    orchestrator = InterviewOrchestrator(
        analysis_service,
        media_factory=media_factory,
        on_notice=print_notice,
        max_turns=config.max_turns,
    )

    try:
        asyncio.run(run(orchestrator, defaults))
    except (KeyboardInterrupt, EOFError):
        print("\n👋 Bye!")


if __name__ == "__main__":
    main()
