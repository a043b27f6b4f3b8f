"""Abstract base class for speech-to-text backends."""

from abc import ABC, abstractmethod


class TranscriptionError(Exception):
    """The transcription service failed or could not be reached."""


class BaseSTT(ABC):
    """Common interface for mock, local and remote STT backends.

    Input is raw PCM bytes (16-bit signed int16, little-endian).
    Output is the transcribed text string.
    """

    def __init__(self, config: dict):
        self._config = config
        self._sample_rate = config.get("audio_sample_rate", 16000)
        self._channels = config.get("audio_channels", 1)

    @abstractmethod
    def transcribe(self, audio: bytes, language: str = "en-US") -> str:
        """Transcribe raw PCM audio bytes to text.

        Args:
            audio: Raw PCM bytes (int16, little-endian, 16kHz mono).
            language: BCP 47 language tag, e.g. "en-US".

        Returns:
            Transcribed text string.

        Raises:
            TranscriptionError: on any backend or network failure.
        """
        ...

    def close(self) -> None:
        """Clean up resources. Override if needed."""
        pass


def language_code(language: str) -> str:
    """Primary subtag of a language tag: "en-US" -> "en"."""
    return language.split("-")[0].split("_")[0].lower() if language else "en"
