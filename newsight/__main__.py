"""
NewSight CLI

Subcommands:
    setup    Run the guided accessibility setup dialogue on the console
    news     Run the news command session on the console
    serve    Serve the HTTP gateway with uvicorn

Usage:
    python -m newsight setup --profile ~/.newsight/profile.json
    python -m newsight news --audio-dir ./clips
    python -m newsight serve --port 7080

Typed lines stand in for speech; spoken output is printed, and written as
.mp3 clips when --audio-dir is given.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from newsight.config import ConfigValidationError, NewsightConfig
from newsight.log_redaction import configure_logging

DEFAULT_PROFILE_PATH = Path.home() / ".newsight" / "profile.json"


def _print_feedback(text: str) -> None:
    print(f"NewSight: {text}")


def _profile_path(args: argparse.Namespace, cfg: NewsightConfig) -> Path:
    if args.profile:
        return Path(args.profile).expanduser()
    configured = cfg.get("profile").get("path")
    return Path(configured).expanduser() if configured else DEFAULT_PROFILE_PATH


async def _run_dialogue(args: argparse.Namespace, cfg: NewsightConfig, news: bool) -> int:
    from newsight.app.capture import ConsoleCapture
    from newsight.app.intent_classifier import IntentClassifier
    from newsight.app.news_session import NewsTurnController
    from newsight.app.playback import FileAudioChannel, SilentAudioChannel
    from newsight.app.profile_store import JsonFileProfileStore
    from newsight.app.session_manager import DialogueSessionManager
    from newsight.app.tts_client import SpeechSynthesisGateway
    from newsight.app.turn_controller import TurnController
    from newsight.clients import build_capabilities

    caps = build_capabilities(cfg)
    manager = DialogueSessionManager()
    session = manager.create(metadata={"mode": "news" if news else "setup"})
    channel = FileAudioChannel(args.audio_dir) if args.audio_dir else SilentAudioChannel()
    store = JsonFileProfileStore(_profile_path(args, cfg))
    common = dict(
        session=session,
        speech=SpeechSynthesisGateway(caps.speech),
        capture=ConsoleCapture(),
        classifier=IntentClassifier(caps.classifier),
        store=store,
        channel=channel,
        on_feedback=_print_feedback,
    )
    if news:
        controller = NewsTurnController(news=caps.news, simplifier=caps.simplifier,
                                        responder=caps.responder, **common)
    else:
        controller = TurnController(**common)

    try:
        final = await controller.run(max_capture_errors=args.max_capture_errors)
    except (KeyboardInterrupt, asyncio.CancelledError):
        controller.stop(reason="interrupted")
        final = controller.state
    finally:
        manager.close_all(reason="cli_exit")
        await caps.aclose()

    print(f"Session ended in state {final.value}")
    if not news:
        print(f"Profile saved to {store.path}")
    return 0


def cmd_setup(args: argparse.Namespace, cfg: NewsightConfig) -> int:
    """Run the guided setup dialogue."""
    return asyncio.run(_run_dialogue(args, cfg, news=False))


def cmd_news(args: argparse.Namespace, cfg: NewsightConfig) -> int:
    """Run the news command session until stopped."""
    return asyncio.run(_run_dialogue(args, cfg, news=True))


def cmd_serve(args: argparse.Namespace, cfg: NewsightConfig) -> int:
    """Serve the HTTP gateway."""
    import uvicorn

    from newsight.main import create_app

    server = cfg.get("server")
    uvicorn.run(
        create_app(config=cfg),
        host=args.host or server["host"],
        port=args.port or server["port"],
        reload=False,
    )
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="newsight",
        description="NewSight voice-first accessibility dialogue",
    )
    parser.add_argument("--config", default="", help="Path to JSON config file")
    parser.add_argument("--log-level", default="", help="Override logging.level")
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (("setup", "Run the guided setup dialogue"),
                            ("news", "Run the news command session")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--profile", default="", help="Profile JSON path")
        p.add_argument("--audio-dir", default="", help="Write spoken clips here")
        p.add_argument("--max-capture-errors", type=int, default=3)

    p_serve = sub.add_parser("serve", help="Serve the HTTP gateway")
    p_serve.add_argument("--host", default="")
    p_serve.add_argument("--port", type=int, default=0)

    args = parser.parse_args()

    try:
        cfg = NewsightConfig(config_path=args.config or None)
    except ConfigValidationError as e:
        print(f"CONFIG ERROR: {e}", file=sys.stderr)
        return 1
    configure_logging(args.log_level or cfg.get("logging").get("level", "INFO"))

    dispatch = {
        "setup": cmd_setup,
        "news": cmd_news,
        "serve": cmd_serve,
    }
    handler = dispatch.get(args.command)
    if not handler:
        parser.print_help()
        return 1
    return handler(args, cfg)


if __name__ == "__main__":
    sys.exit(main())
