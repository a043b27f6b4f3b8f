"""Hardware audio backend using sounddevice.

Captures audio from a real microphone. sounddevice is only needed when
running against a real input device.
"""

import logging
import queue
import sys
import threading
from collections.abc import Generator

from audio.base import AudioDeviceError, BaseAudio
from utils.audio import rms

log = logging.getLogger(__name__)


def _import_sounddevice():
    """Import sounddevice with aarch64 Python 3.11 find_library workaround.

    ctypes.util.find_library is broken on aarch64 Python <3.12.4; the
    ldconfig parser regex doesn't match the AArch64 tag format.
    See: https://github.com/python/cpython/issues/112417
    """
    import ctypes.util
    import platform

    if platform.machine() != "aarch64" or sys.version_info >= (3, 12, 4):
        import sounddevice

        return sounddevice

    _orig = ctypes.util.find_library

    def _patched(name):
        result = _orig(name)
        if result is None and name == "portaudio":
            return "libportaudio.so.2"
        return result

    ctypes.util.find_library = _patched
    try:
        import sounddevice

        return sounddevice
    finally:
        ctypes.util.find_library = _orig


class HardwareAudio(BaseAudio):
    """Microphone capture via sounddevice.

    Blocks quieter than ``audio_silence_threshold`` (RMS) are dropped
    before they leave the backend, so downstream consumers only see
    audio while someone is making noise. A threshold of 0 passes
    everything through.
    """

    def __init__(self, config: dict):
        super().__init__(
            sample_rate=config.get("audio_sample_rate", 16000),
            channels=config.get("audio_channels", 1),
        )
        self._silence_threshold = config.get("audio_silence_threshold", 0)
        self._stop = threading.Event()
        self._stream = None
        self._queue: queue.Queue[bytes] = queue.Queue()
        try:
            self._sd = _import_sounddevice()
        except (ImportError, OSError) as e:
            raise AudioDeviceError(
                "sounddevice is required for hardware audio mode. "
                "Install it with: pip install sounddevice\n"
                "On Linux, also ensure: sudo apt-get install libportaudio2"
            ) from e
        self._device = self._parse_device(config.get("audio_device"))

        # Validate device at startup, fail fast with a helpful message
        try:
            info = self._sd.query_devices(self._device, kind="input")
        except (self._sd.PortAudioError, ValueError) as e:
            try:
                all_devs = self._sd.query_devices()
                available = str(all_devs) if all_devs is not None else ""
            except Exception:
                available = "(unable to list devices)"

            raise AudioDeviceError(
                f"No usable audio input device (queried {self._device!r}): {e}\n"
                f"Available devices:\n{available}\n"
                "Set CLANKER_AUDIO_DEVICE to a valid device index or name."
            ) from e

        log.info(
            "HardwareAudio initialized: %dHz, %dch, device=%r (%s), silence gate=%d",
            self.sample_rate, self.channels, self._device, info["name"],
            self._silence_threshold,
        )

    @staticmethod
    def _parse_device(value):
        """Parse device config: None, integer index, or string name."""
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return value  # string name/substring for sounddevice

    def open(self, block_ms: int = 100) -> None:
        """Open and start the input stream. Idempotent while open."""
        if self._stream is not None:
            return
        block_samples = self.sample_rate * block_ms // 1000
        self._queue = queue.Queue()
        q = self._queue

        def callback(indata, frames, time_info, status):
            if status:
                if status.input_overflow:
                    log.debug("Stream status: %s", status)
                else:
                    log.warning("Stream status: %s", status)
            q.put(bytes(indata))

        stream = None
        try:
            stream = self._sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                blocksize=block_samples,
                latency="high",
                callback=callback,
                device=self._device,
            )
            stream.start()
        except Exception as e:
            if stream is not None:
                try:
                    stream.close()
                except Exception:
                    log.debug("Closing failed input stream", exc_info=True)
            raise AudioDeviceError(f"Cannot open audio input {self._device!r}: {e}") from e
        self._stream = stream
        log.info("Hardware audio stream started (%dms blocks)", block_ms)

    def stream(self, block_ms: int = 100) -> Generator[bytes, None, None]:
        """Yield non-silent PCM blocks from the microphone until stop().

        When the silence gate closes after sound, one empty block is
        yielded so the consumer can flush a partial chunk.
        """
        self.open(block_ms)
        self._stop.clear()
        q = self._queue
        in_sound = False
        try:
            while not self._stop.is_set():
                try:
                    block = q.get(timeout=0.5)
                except queue.Empty:
                    continue
                if self._silence_threshold and rms(block) < self._silence_threshold:
                    if in_sound:
                        in_sound = False
                        yield b""
                    continue
                in_sound = True
                yield block
        finally:
            self._release()

    def _release(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        finally:
            log.info("Hardware audio stream stopped.")

    def stop(self) -> None:
        self._stop.set()

    def devices(self) -> list[str]:
        return list_sounddevice_inputs(self._sd)

    def close(self) -> None:
        self.stop()
        self._release()
        log.info("HardwareAudio closed.")


def list_sounddevice_inputs(sd) -> list[str]:
    """Return "index: name" for each device with input channels."""
    return [
        f"{i}: {dev['name']}"
        for i, dev in enumerate(sd.query_devices())
        if dev.get("max_input_channels", 0) > 0
    ]
