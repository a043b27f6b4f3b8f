"""ElevenLabs Scribe STT backend.

Sends WAV-encoded audio to the ElevenLabs speech-to-text REST API.
Each call is a blocking round trip, typically a second or more.
"""

from __future__ import annotations

import logging

from speech.base import BaseSTT, TranscriptionError, language_code
from utils.wav import encode_wav

log = logging.getLogger(__name__)


class ElevenLabsSTT(BaseSTT):
    """Remote speech-to-text via the ElevenLabs Scribe API.

    Uses httpx with xi-api-key header authentication.
    """

    def __init__(self, config: dict, client=None):
        super().__init__(config)
        import httpx

        self._httpx = httpx
        self._api_key = config.get("stt_elevenlabs_api_key", "")
        self._model = config.get("stt_elevenlabs_model", "scribe_v1")
        self._client = client or httpx.Client(
            base_url=config.get("stt_elevenlabs_url", "https://api.elevenlabs.io"),
            timeout=config.get("stt_timeout", 30.0),
        )
        if not self._api_key:
            log.warning("No ElevenLabs API key configured; transcription will fail")

    def transcribe(self, audio: bytes, language: str = "en-US") -> str:
        if not self._api_key:
            raise TranscriptionError(
                "ElevenLabs API key not found. Set ELEVENLABS_API_KEY."
            )

        wav = encode_wav(audio, self._sample_rate, self._channels)
        log.debug("Sending %d bytes of audio to ElevenLabs (%s)", len(wav), language)
        try:
            resp = self._client.post(
                "/v1/speech-to-text",
                headers={"xi-api-key": self._api_key},
                data={"model_id": self._model, "language_code": language_code(language)},
                files={"file": ("audio.wav", wav, "audio/wav")},
            )
        except self._httpx.HTTPError as e:
            raise TranscriptionError(f"ElevenLabs request failed: {e}") from e

        if resp.status_code >= 400:
            raise TranscriptionError(
                f"ElevenLabs STT error: {resp.status_code} - {resp.text}"
            )
        try:
            text = resp.json().get("text", "")
        except ValueError as e:
            raise TranscriptionError("ElevenLabs returned invalid JSON") from e

        log.debug("ElevenLabs transcription: %r", text)
        return text or ""

    def close(self) -> None:
        self._client.close()
