"""Wake word detection backends."""

from config import WakeWordConfig
from speech.base import BaseSTT
from wake.base import BaseWakeWord


def get_wake(config: dict, stt: BaseSTT | None = None) -> BaseWakeWord:
    """Create a wake word detector based on config.

    The default "transcript" mode scans chunks with the given STT backend.
    """
    mode = config.get("wake_mode", "transcript")
    if mode == "oww":
        from wake.oww_wake import OWWWakeWord

        return OWWWakeWord(config)
    elif mode == "mock":
        from wake.mock_wake import MockWakeWord

        return MockWakeWord(config)
    else:
        from wake.transcript_wake import TranscriptWakeWord

        if stt is None:
            raise ValueError("transcript wake mode requires an STT backend")
        return TranscriptWakeWord(
            stt, WakeWordConfig.from_config(config), debug=config.get("debug", False),
        )
