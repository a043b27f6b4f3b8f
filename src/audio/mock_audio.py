"""Mock audio backend for local development.

Streams silence, or the contents of a configured WAV file, in place of
a real microphone.
"""

import logging
import threading
from collections.abc import Generator
from pathlib import Path

from audio.base import BYTES_PER_SAMPLE, BaseAudio
from utils.wav import read_wav

log = logging.getLogger(__name__)


class MockAudio(BaseAudio):
    """File-based capture backend for development without hardware."""

    def __init__(self, config: dict):
        super().__init__(
            sample_rate=config.get("audio_sample_rate", 16000),
            channels=config.get("audio_channels", 1),
        )
        self._mock_input_file = config.get("audio_mock_input_file")
        self._realtime = config.get("audio_mock_realtime", False)
        self._stop = threading.Event()

    def _source(self) -> bytes | None:
        if not self._mock_input_file:
            return None
        path = Path(self._mock_input_file)
        if path.exists():
            log.info("Mock audio streaming from %s", path)
            return read_wav(path)
        log.warning("Mock input file not found: %s, streaming silence", path)
        return None

    def stream(self, block_ms: int = 100) -> Generator[bytes, None, None]:
        """Yield the mock input file once, then silence, until stop().

        With audio_mock_realtime unset, blocks are yielded instantly
        (keeps tests fast).
        """
        block_bytes = self.sample_rate * block_ms // 1000 * BYTES_PER_SAMPLE * self.channels
        silence = b"\x00" * block_bytes
        data = self._source() or b""
        pos = 0
        delay = block_ms / 1000 if self._realtime else 0
        self._stop.clear()
        log.info("Mock audio stream started (%dms blocks)", block_ms)
        try:
            while not self._stop.is_set():
                if pos < len(data):
                    block = data[pos:pos + block_bytes]
                    pos += block_bytes
                else:
                    block = silence
                yield block
                if delay:
                    self._stop.wait(delay)
        finally:
            log.info("Mock audio stream stopped.")

    def stop(self) -> None:
        self._stop.set()
