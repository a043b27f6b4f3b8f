"""Chunk segmenter: slices a continuous PCM stream into fixed-size windows.

The capture side pushes arbitrarily sized blocks with feed(); the
consumer pulls whole chunks with next_chunk(). Retained audio is capped
at a few chunks, so a slow consumer loses the oldest audio instead of
growing memory without bound.
"""

import logging
import threading
from collections.abc import Generator
from dataclasses import dataclass

from audio.base import BYTES_PER_SAMPLE, DEFAULT_CHANNELS, DEFAULT_SAMPLE_RATE
from utils.ring_buffer import RingBuffer

log = logging.getLogger(__name__)

DEFAULT_CHUNK_MS = 2000
DEFAULT_MAX_CHUNKS = 3


def chunk_size_bytes(
    chunk_ms: int = DEFAULT_CHUNK_MS,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    bytes_per_sample: int = BYTES_PER_SAMPLE,
    channels: int = DEFAULT_CHANNELS,
) -> int:
    """Bytes in chunk_ms of PCM audio (2000ms at 16kHz mono int16 = 64000)."""
    return sample_rate * chunk_ms // 1000 * bytes_per_sample * channels


@dataclass(frozen=True)
class AudioChunk:
    """A fixed-duration slice of PCM audio. Never mutated after creation."""

    data: bytes
    sample_rate: int = DEFAULT_SAMPLE_RATE
    index: int = 0

    def __len__(self) -> int:
        return len(self.data)

    @property
    def duration_ms(self) -> int:
        return len(self.data) * 1000 // (self.sample_rate * BYTES_PER_SAMPLE)


class ChunkSegmenter:
    """Turns pushed PCM blocks into a lazy, pull-based sequence of AudioChunks."""

    def __init__(
        self,
        chunk_bytes: int,
        max_chunks: int = DEFAULT_MAX_CHUNKS,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
    ):
        if chunk_bytes <= 0:
            raise ValueError("chunk_bytes must be positive")
        self._chunk_bytes = chunk_bytes
        self._sample_rate = sample_rate
        self._buffer = RingBuffer(chunk_bytes * max(max_chunks, 1))
        self._cond = threading.Condition()
        self._closed = False
        self._emitted = 0
        self._dropped = 0

    @classmethod
    def from_config(cls, config: dict) -> "ChunkSegmenter":
        sample_rate = config.get("audio_sample_rate", DEFAULT_SAMPLE_RATE)
        size = chunk_size_bytes(
            config.get("wake_chunk_ms", DEFAULT_CHUNK_MS),
            sample_rate,
            channels=config.get("audio_channels", DEFAULT_CHANNELS),
        )
        return cls(size, config.get("wake_buffer_chunks", DEFAULT_MAX_CHUNKS), sample_rate)

    @property
    def chunk_bytes(self) -> int:
        return self._chunk_bytes

    @property
    def capacity(self) -> int:
        return self._buffer.capacity

    @property
    def pending(self) -> int:
        """Bytes held but not yet emitted."""
        return len(self._buffer)

    @property
    def dropped(self) -> int:
        """Total bytes discarded because the consumer fell behind."""
        return self._dropped

    @property
    def closed(self) -> bool:
        return self._closed

    def feed(self, data: bytes) -> None:
        """Append captured audio. Called from the capture thread."""
        if not data:
            return
        with self._cond:
            if self._closed:
                return
            dropped = self._buffer.extend(data)
            if dropped:
                self._dropped += dropped
                log.debug("Segmenter overflow, dropped %d oldest bytes", dropped)
            if len(self._buffer) >= self._chunk_bytes:
                self._cond.notify()

    def pad_to_chunk(self) -> int:
        """Zero-fill a partial tail up to the next chunk boundary.

        Called when captured sound ends, so its last fraction of a chunk is
        emitted instead of waiting for more audio. Returns the padding added.
        """
        with self._cond:
            if self._closed:
                return 0
            tail = len(self._buffer) % self._chunk_bytes
            if not tail:
                return 0
            padding = self._chunk_bytes - tail
            dropped = self._buffer.extend(b"\x00" * padding)
            self._dropped += dropped
            self._cond.notify()
            log.debug("Padded %d byte tail with %d bytes of silence", tail, padding)
            return padding

    def next_chunk(self, timeout: float | None = None) -> AudioChunk | None:
        """Block until a full chunk is available.

        Returns None when the timeout elapses or the segmenter is closed.
        A short tail is never emitted.
        """
        with self._cond:
            ready = self._cond.wait_for(
                lambda: self._closed or len(self._buffer) >= self._chunk_bytes,
                timeout=timeout,
            )
            if not ready or self._closed:
                return None
            data = self._buffer.take(self._chunk_bytes)
            chunk = AudioChunk(data, self._sample_rate, self._emitted)
            self._emitted += 1
            return chunk

    def chunks(self) -> Generator[AudioChunk, None, None]:
        """Yield chunks until close(). The caller pulls n+1 only after n."""
        while True:
            chunk = self.next_chunk()
            if chunk is None:
                return
            yield chunk

    def reset(self) -> None:
        """Discard buffered audio and reopen for a new listening session."""
        with self._cond:
            self._buffer.clear()
            self._closed = False
            self._emitted = 0
            self._dropped = 0

    def close(self) -> None:
        """Wake any waiting consumer and stop accepting audio."""
        with self._cond:
            self._closed = True
            self._buffer.clear()
            self._cond.notify_all()
