"""Wake word detection using openWakeWord.

A local keyword spotter: no network call per chunk, but only the
pretrained model names are recognised, not free-text phrases.
openWakeWord expects 16kHz mono int16 PCM in 1280-sample frames (80ms),
so a segmented chunk is scanned frame by frame.
"""

import logging

from wake.base import BaseWakeWord

log = logging.getLogger(__name__)

FRAME_SAMPLES = 1280


class OWWWakeWord(BaseWakeWord):
    """Wake word detection via openWakeWord."""

    def __init__(self, config: dict):
        import numpy as np
        from openwakeword.model import Model

        self._np = np
        self._wake_model = config.get("wake_model", "hey_jarvis")
        self._threshold = config.get("wake_threshold", 0.5)
        self._model = Model(wakeword_models=[self._wake_model])
        log.info(
            "OWWWakeWord initialized: model=%s, threshold=%.2f",
            self._wake_model,
            self._threshold,
        )

    def detect(self, audio_chunk: bytes) -> bool:
        audio = self._np.frombuffer(audio_chunk, dtype=self._np.int16)
        for start in range(0, len(audio) - FRAME_SAMPLES + 1, FRAME_SAMPLES):
            scores = self._model.predict(audio[start:start + FRAME_SAMPLES])
            score = scores.get(self._wake_model, 0.0)
            if score > self._threshold:
                log.info("Wake word detected (score=%.3f)", score)
                return True
        return False

    def reset(self) -> None:
        self._model.reset()

    def close(self) -> None:
        log.info("OWWWakeWord closed.")
