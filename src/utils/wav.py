"""WAV encode/decode helpers for 16-bit PCM."""

import io
import wave
from pathlib import Path

SAMPLE_WIDTH = 2  # 16-bit


def encode_wav(data: bytes, sample_rate: int = 16000, channels: int = 1) -> bytes:
    """Wrap raw PCM int16 bytes in a WAV container, in memory."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(SAMPLE_WIDTH)
        wf.setframerate(sample_rate)
        wf.writeframes(data)
    return buf.getvalue()


def read_wav(path: Path) -> bytes:
    """Read a WAV file and return raw PCM bytes."""
    with wave.open(str(path), "rb") as wf:
        return wf.readframes(wf.getnframes())

