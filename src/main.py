"""Clanker voice assistant daemon runner."""

import logging
import logging.handlers
import signal
import sys
import threading
from pathlib import Path

from config import load_config
from voice_daemon import build_daemon
from events import EventLogger, QueueEventPublisher

log = logging.getLogger("clanker-voice")

LOG_FILENAME = "voice-assistant.log"


def setup_logging(config: dict) -> None:
    """Configure root logger with console and rotating file handlers."""
    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    level = getattr(logging, config["log_level"].upper(), logging.INFO)
    if config.get("debug"):
        level = logging.DEBUG

    root = logging.getLogger()
    root.setLevel(level)

    # Console handler (stderr)
    console = logging.StreamHandler()
    console.setFormatter(fmt)
    root.addHandler(console)

    # Rotating file handler: the persistent event log
    log_dir = Path(config["state_dir"])
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.RotatingFileHandler(
        log_dir / LOG_FILENAME,
        maxBytes=1_000_000,
        backupCount=3,
    )
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)


def main() -> int:
    config = load_config()
    setup_logging(config)
    log.info("Starting voice assistant daemon...")

    publisher = QueueEventPublisher()
    event_logger = EventLogger(publisher.queue)
    event_logger.start()

    daemon = build_daemon(config, publisher=publisher)

    # Graceful shutdown
    stop_requested = threading.Event()

    def shutdown(signum, frame):
        log.info("Shutting down (signal %d)...", signum)
        stop_requested.set()

    signal.signal(signal.SIGTERM, shutdown)
    signal.signal(signal.SIGINT, shutdown)

    try:
        result = daemon.start()
        if not result.success:
            log.error("%s", result.error)
            return 1
        log.info(result.output)
        if not daemon.is_listening:
            # Another process owns the microphone
            return 0

        log.info("Wake words: %s", ", ".join(config["wake_words"]))
        log.info("User title: %s", config["user_title"])
        log.info("Microphone: %s", config.get("audio_device") or "default")
        log.info("Wake word timeout: %dms", config["wake_timeout_ms"])

        while not stop_requested.wait(1.0):
            if not daemon.is_listening:
                log.error("Listening stopped after a capture error; exiting")
                return 1
        return 0
    finally:
        daemon.close()
        event_logger.stop()
        log.info("Voice assistant daemon stopped.")


if __name__ == "__main__":
    sys.exit(main())
