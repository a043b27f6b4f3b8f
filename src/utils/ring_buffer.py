"""Bounded byte accumulator for streamed PCM audio."""

import threading


class RingBuffer:
    """Holds at most ``capacity`` bytes; the oldest bytes are evicted first.

    Thread-safe: one producer may extend() while a consumer calls take().
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._data = bytearray()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def extend(self, data: bytes) -> int:
        """Append bytes, evicting from the front past capacity.

        Returns the number of bytes dropped.
        """
        with self._lock:
            self._data.extend(data)
            overflow = len(self._data) - self._capacity
            if overflow > 0:
                del self._data[:overflow]
                return overflow
            return 0

    def take(self, n: int) -> bytes | None:
        """Remove and return the first n bytes, or None if fewer are held."""
        with self._lock:
            if len(self._data) < n:
                return None
            out = bytes(self._data[:n])
            del self._data[:n]
            return out

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
