"""Configuration management for the Clanker voice assistant."""

import os
from dataclasses import dataclass
from pathlib import Path

# Project root is one level up from src/
PROJECT_ROOT = Path(__file__).parent.parent
ENV_FILE = PROJECT_ROOT / ".env"

DEFAULT_WAKE_WORDS = ("hey clanker", "hey jarvis", "clanker")


def _load_env_file(path: Path) -> None:
    """Load KEY=VALUE lines into os.environ without overriding existing vars."""
    if not path.exists():
        return
    with open(path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            key, _, value = line.partition("=")
            key, value = key.strip(), value.strip().strip("\"'")
            if key not in os.environ:
                os.environ[key] = value


def _env(name: str, default: str) -> str:
    return os.getenv(f"CLANKER_{name}", default)


def _env_bool(name: str, default: bool) -> bool:
    return _env(name, "true" if default else "false").lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: tuple) -> list[str]:
    raw = _env(name, ",".join(default))
    return [item.strip() for item in raw.split(",") if item.strip()]


def load_config(env_file: Path = ENV_FILE) -> dict:
    """Load configuration from environment variables and .env file."""
    _load_env_file(env_file)

    return {
        # Audio capture
        "audio_mode": _env("AUDIO_MODE", "mock"),  # "mock" or "hardware"
        "audio_device": os.getenv("CLANKER_AUDIO_DEVICE") or None,
        "audio_sample_rate": int(_env("AUDIO_SAMPLE_RATE", "16000")),
        "audio_channels": int(_env("AUDIO_CHANNELS", "1")),
        "audio_block_ms": int(_env("AUDIO_BLOCK_MS", "100")),
        # RMS below this is dropped at capture time (~2% of full scale)
        "audio_silence_threshold": int(_env("AUDIO_SILENCE_THRESHOLD", "655")),
        "audio_mock_input_file": os.getenv("CLANKER_AUDIO_MOCK_INPUT_FILE") or None,
        "audio_mock_realtime": _env_bool("AUDIO_MOCK_REALTIME", True),

        # Speech-to-text
        "stt_mode": _env("STT_MODE", "mock"),  # "mock", "elevenlabs" or "whisper"
        "stt_elevenlabs_api_key": os.getenv("ELEVENLABS_API_KEY", ""),
        "stt_elevenlabs_url": _env("STT_ELEVENLABS_URL", "https://api.elevenlabs.io"),
        "stt_elevenlabs_model": _env("STT_ELEVENLABS_MODEL", "scribe_v1"),
        "stt_timeout": float(_env("STT_TIMEOUT", "30")),
        "stt_whisper_model": _env("STT_WHISPER_MODEL", "base"),
        "stt_mock_response": _env("STT_MOCK_RESPONSE", ""),

        # Wake word
        "wake_mode": _env("WAKE_MODE", "transcript"),  # "transcript", "oww" or "mock"
        "wake_words": _env_list("WAKE_WORDS", DEFAULT_WAKE_WORDS),
        "wake_chunk_ms": int(_env("WAKE_CHUNK_MS", "2000")),
        "wake_timeout_ms": int(_env("WAKE_TIMEOUT_MS", "3000")),
        "wake_buffer_chunks": int(_env("WAKE_BUFFER_CHUNKS", "3")),
        "wake_model": _env("WAKE_MODEL", "hey_jarvis"),
        "wake_threshold": float(_env("WAKE_THRESHOLD", "0.5")),
        "wake_mock_trigger_after": int(_env("WAKE_MOCK_TRIGGER_AFTER", "2")),
        "language": _env("LANGUAGE", "en-US"),

        # User-facing behaviour
        "user_title": _env("USER_TITLE", "sir"),
        "notifications_enabled": _env_bool("NOTIFICATIONS_ENABLED", True),
        "notify_mode": _env("NOTIFY_MODE", "desktop"),  # "desktop" or "log"

        # Command execution
        "dispatch_mode": _env("DISPATCH_MODE", "shell"),  # "shell" or "mock"
        "dispatch_command": _env("DISPATCH_COMMAND", "clanker"),
        "dispatch_timeout": float(_env("DISPATCH_TIMEOUT", "300")),

        # State and logging
        "state_dir": str(Path(_env("STATE_DIR", "~/.clanker")).expanduser()),
        "log_level": _env("LOG_LEVEL", "INFO"),
        "debug": _env_bool("DEBUG", False),
        "daemon_join_timeout": float(_env("DAEMON_JOIN_TIMEOUT", "10")),
    }


@dataclass(frozen=True)
class WakeWordConfig:
    """Wake word settings, loaded once at startup and read-only afterwards."""

    wake_words: tuple[str, ...]
    timeout_ms: int = 3000
    chunk_ms: int = 2000
    language: str = "en-US"
    user_title: str = "sir"
    notifications_enabled: bool = True

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000

    @classmethod
    def from_config(cls, config: dict) -> "WakeWordConfig":
        words = config.get("wake_words") or DEFAULT_WAKE_WORDS
        return cls(
            wake_words=tuple(w.strip().lower() for w in words if w.strip()),
            timeout_ms=config.get("wake_timeout_ms", 3000),
            chunk_ms=config.get("wake_chunk_ms", 2000),
            language=config.get("language", "en-US"),
            user_title=config.get("user_title", "sir"),
            notifications_enabled=config.get("notifications_enabled", True),
        )
