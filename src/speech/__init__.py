"""Speech-to-text abstraction layer.

Provides a unified interface for:
- MockSTT (dev)
- ElevenLabsSTT (remote, default for production)
- WhisperSTT (local, offline)
"""

from speech.base import BaseSTT, TranscriptionError
from speech.mock_stt import MockSTT


def get_stt(config: dict) -> BaseSTT:
    """Factory: return the appropriate STT backend based on config."""
    mode = config.get("stt_mode", "mock")

    if mode == "elevenlabs":
        from speech.elevenlabs_stt import ElevenLabsSTT
        return ElevenLabsSTT(config)
    elif mode == "whisper":
        from speech.whisper_stt import WhisperSTT
        return WhisperSTT(config)
    else:
        return MockSTT(config)


__all__ = ["BaseSTT", "MockSTT", "TranscriptionError", "get_stt"]
