"""Shared audio utilities used across capture and wake backends."""

import numpy as np


def rms(chunk: bytes) -> float:
    """Compute RMS energy of a PCM int16 chunk."""
    samples = np.frombuffer(chunk, dtype=np.int16)
    if len(samples) == 0:
        return 0.0
    return float(np.sqrt(np.mean(samples.astype(np.float64) ** 2)))


def pcm_to_float32(pcm: bytes) -> np.ndarray:
    """Convert PCM int16 bytes to a float32 array normalized to [-1.0, 1.0]."""
    return np.frombuffer(pcm, dtype=np.int16).astype(np.float32) / 32768.0
