"""Whisper STT backend for offline use.

Uses faster-whisper for local speech-to-text transcription, avoiding a
network round trip per chunk. int8 quantization keeps it usable on CPU.
"""

import logging

from speech.base import BaseSTT, TranscriptionError, language_code
from utils.audio import pcm_to_float32

log = logging.getLogger(__name__)


class WhisperSTT(BaseSTT):
    """Speech-to-text using a local Whisper model via faster-whisper."""

    def __init__(self, config: dict):
        super().__init__(config)

        try:
            from faster_whisper import WhisperModel
        except ImportError:
            raise ImportError(
                "faster-whisper is required for WhisperSTT. "
                "Install with: pip install faster-whisper"
            )

        model_name = config.get("stt_whisper_model", "base")
        log.info("Loading Whisper model: %s", model_name)
        self._model = WhisperModel(model_name, device="cpu", compute_type="int8")

    def transcribe(self, audio: bytes, language: str = "en-US") -> str:
        """Transcribe raw PCM audio bytes using Whisper."""
        audio_array = pcm_to_float32(audio)

        log.debug("Transcribing %d samples with Whisper", len(audio_array))
        try:
            segments, _info = self._model.transcribe(
                audio_array,
                beam_size=5,
                language=language_code(language),
            )
            text = " ".join(seg.text.strip() for seg in segments).strip()
        except Exception as e:
            raise TranscriptionError(f"Whisper transcription failed: {e}") from e
        log.debug("Whisper transcription: %r", text)
        return text
