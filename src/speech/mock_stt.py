"""Mock STT backend for local development.

Returns configurable canned responses, ignoring actual audio input.
"""

import logging

from speech.base import BaseSTT

log = logging.getLogger(__name__)


class MockSTT(BaseSTT):
    """Fake STT that returns a fixed string for development.

    ``stt_mock_response`` may hold several responses separated by "|";
    they are returned in turn, the last one repeating.
    """

    def __init__(self, config: dict):
        super().__init__(config)
        raw = config.get("stt_mock_response", "")
        self._responses = raw.split("|") if raw else [""]
        self._calls = 0

    def transcribe(self, audio: bytes, language: str = "en-US") -> str:
        """Return the next canned response, ignoring audio."""
        idx = min(self._calls, len(self._responses) - 1)
        self._calls += 1
        log.info("Mock transcribe called with %d bytes of audio", len(audio))
        return self._responses[idx]
