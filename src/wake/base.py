"""Wake word detector interface."""

from abc import ABC, abstractmethod


class BaseWakeWord(ABC):
    """Decides, one fixed-size PCM chunk at a time, whether the wake word was said.

    The session calls detect() once per chunk while idle and reset() when
    a command cycle ends. detect() must not raise: a backend failure is
    reported as no detection.
    """

    @abstractmethod
    def detect(self, audio_chunk: bytes) -> bool:
        ...

    @abstractmethod
    def reset(self) -> None:
        """Forget per-cycle state (counters, last transcript, model buffers)."""
        ...

    def close(self) -> None:
        pass
