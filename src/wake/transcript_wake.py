"""Wake word detection by transcribing each chunk.

Every chunk costs one blocking speech-to-text round trip; a slow call
delays evaluation of the next chunk.
"""

import logging

from config import WakeWordConfig
from speech.base import BaseSTT, TranscriptionError
from wake.base import BaseWakeWord
from wake.matching import find_wake_phrase

log = logging.getLogger(__name__)


class TranscriptWakeWord(BaseWakeWord):
    """Detects configured wake phrases in STT output, tolerating misrecognitions."""

    def __init__(self, stt: BaseSTT, wake_config: WakeWordConfig, debug: bool = False):
        self._stt = stt
        self._config = wake_config
        self._debug = debug
        self.last_transcript: str | None = None
        log.info(
            "TranscriptWakeWord initialized: phrases=%s, language=%s",
            list(wake_config.wake_words), wake_config.language,
        )

    def detect(self, audio_chunk: bytes) -> bool:
        try:
            text = self._stt.transcribe(audio_chunk, self._config.language)
        except TranscriptionError as e:
            # Fail open: a failed scan is a missed wake word, not an error
            level = logging.WARNING if self._debug else logging.DEBUG
            log.log(level, "Wake word transcription failed: %s", e)
            return False
        except Exception:
            if self._debug:
                log.exception("Unexpected wake word detection error")
            return False

        self.last_transcript = text
        if not text:
            return False
        phrase = find_wake_phrase(text, self._config.wake_words)
        if phrase is not None:
            log.info("Wake word %r detected in %r", phrase, text)
            return True
        return False

    def reset(self) -> None:
        self.last_transcript = None
