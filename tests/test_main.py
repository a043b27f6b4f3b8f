"""Tests for the daemon runner."""

import logging
import sys
from pathlib import Path

# Add src to path so imports work
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import main


def test_setup_logging_writes_event_log(tmp_path):
    root = logging.getLogger()
    before = list(root.handlers)
    try:
        main.setup_logging({"log_level": "info", "state_dir": str(tmp_path / "state")})
        logging.getLogger("clanker-voice.test").info("wake word detected")
        for handler in root.handlers:
            handler.flush()
        text = (tmp_path / "state" / main.LOG_FILENAME).read_text()
        assert "wake word detected" in text
        assert "[INFO] clanker-voice.test" in text
    finally:
        for handler in root.handlers[:]:
            if handler not in before:
                root.removeHandler(handler)
                handler.close()


def test_main_returns_1_on_startup_failure(monkeypatch, tmp_path):
    from voice_daemon import ControlResult

    class FailingDaemon:
        is_listening = False

        def start(self):
            return ControlResult(False, error="no input device")

        def close(self):
            self.closed = True

    daemon = FailingDaemon()
    monkeypatch.setattr(main, "load_config", lambda: {
        "log_level": "INFO", "state_dir": str(tmp_path), "wake_words": [],
        "user_title": "sir", "wake_timeout_ms": 3000,
    })
    monkeypatch.setattr(main, "setup_logging", lambda config: None)
    monkeypatch.setattr(main.signal, "signal", lambda signum, handler: None)
    monkeypatch.setattr(main, "build_daemon", lambda config, publisher=None: daemon)

    assert main.main() == 1
    assert daemon.closed


def test_sigterm_stops_listening_daemon(monkeypatch, tmp_path):
    import signal

    from voice_daemon import ControlResult

    handlers = {}

    class ListeningDaemon:
        is_listening = False
        closed = False

        def start(self):
            self.is_listening = True
            # Termination arrives while listening
            handlers[signal.SIGTERM](signal.SIGTERM, None)
            return ControlResult(True, "Voice assistant background listener started")

        def close(self):
            self.closed = True
            self.is_listening = False

    daemon = ListeningDaemon()
    monkeypatch.setattr(main, "load_config", lambda: {
        "log_level": "INFO", "state_dir": str(tmp_path), "wake_words": ["hey clanker"],
        "user_title": "sir", "wake_timeout_ms": 3000,
    })
    monkeypatch.setattr(main, "setup_logging", lambda config: None)
    monkeypatch.setattr(main.signal, "signal", lambda signum, handler: handlers.setdefault(signum, handler))
    monkeypatch.setattr(main, "build_daemon", lambda config, publisher=None: daemon)

    assert main.main() == 0
    assert daemon.closed
    assert not daemon.is_listening
    assert set(handlers) == {signal.SIGTERM, signal.SIGINT}
