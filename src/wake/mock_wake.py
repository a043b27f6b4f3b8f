"""Scripted wake word detector for running the daemon without a backend."""

import logging

from wake.base import BaseWakeWord

log = logging.getLogger(__name__)


class MockWakeWord(BaseWakeWord):
    """Fires on the Nth idle chunk scanned since the last reset.

    The session resets the detector after every command, so each listening
    cycle waits ``wake_mock_trigger_after`` chunks (2 by default, about 4s
    of audio at the default chunk size) before arming again.
    """

    def __init__(self, config: dict):
        self._trigger_after = max(1, int(config.get("wake_mock_trigger_after", 2)))
        self._since_reset = 0
        self.chunks_scanned = 0
        self.detections = 0
        log.info("MockWakeWord will fire on idle chunk %d", self._trigger_after)

    def detect(self, audio_chunk: bytes) -> bool:
        self.chunks_scanned += 1
        self._since_reset += 1
        if self._since_reset < self._trigger_after:
            return False
        self._since_reset = 0
        self.detections += 1
        log.info("Mock wake word fired (%d byte chunk)", len(audio_chunk))
        return True

    def reset(self) -> None:
        self._since_reset = 0
