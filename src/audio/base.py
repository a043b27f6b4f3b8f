"""Abstract base class for all audio capture backends."""

from abc import ABC, abstractmethod
from collections.abc import Generator

# Preferred input format for speech-to-text
DEFAULT_SAMPLE_RATE = 16000
DEFAULT_CHANNELS = 1
BYTES_PER_SAMPLE = 2


class AudioDeviceError(RuntimeError):
    """The input device could not be acquired."""


class BaseAudio(ABC):
    """Common interface for mock and hardware capture backends.

    Audio data is raw PCM bytes (16-bit signed int16, little-endian).
    """

    def __init__(
        self,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        channels: int = DEFAULT_CHANNELS,
    ):
        self._sample_rate = sample_rate
        self._channels = channels

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def channels(self) -> int:
        return self._channels

    def open(self, block_ms: int = 100) -> None:
        """Acquire the input device so stream() can start reading.

        Raises AudioDeviceError when the device cannot be opened. Backends
        without a device to acquire need not override this.
        """

    @abstractmethod
    def stream(self, block_ms: int = 100) -> Generator[bytes, None, None]:
        """Yield PCM audio blocks continuously.

        Each block is at most block_ms milliseconds of audio. An empty block
        (b"") marks the end of a burst of sound when a silence gate is
        active. The generator returns once stop() is called; generator
        cleanup (close/break) releases the device.
        """
        ...

    @abstractmethod
    def stop(self) -> None:
        """Halt capture and release the device. Safe to call repeatedly."""
        ...

    def devices(self) -> list[str]:
        """List input devices. Override for real implementation."""
        return ["default"]

    def close(self) -> None:
        """Clean up resources. Override if needed."""
        self.stop()
