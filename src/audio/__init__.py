"""Audio capture abstraction layer.

Provides a unified interface for microphone input on either:
- MockAudio: silence or a WAV file (for development)
- HardwareAudio: real microphone via sounddevice (for production)
"""

import logging

from audio.base import AudioDeviceError, BaseAudio
from audio.mock_audio import MockAudio

log = logging.getLogger(__name__)


def get_audio(config: dict) -> BaseAudio:
    """Factory: return the appropriate audio backend based on config.

    Raises AudioDeviceError if hardware capture cannot be set up.
    """
    mode = config.get("audio_mode", "mock")

    if mode == "hardware":
        from audio.hardware_audio import HardwareAudio
        return HardwareAudio(config)
    else:
        return MockAudio(config)


def list_input_devices(config: dict) -> list[str]:
    """Enumerate input devices without opening a stream."""
    if config.get("audio_mode", "mock") != "hardware":
        return ["default"]
    try:
        from audio.hardware_audio import _import_sounddevice, list_sounddevice_inputs

        devices = list_sounddevice_inputs(_import_sounddevice())
    except Exception:
        log.exception("Unable to query audio devices")
        return ["default"]
    return devices or ["default"]


__all__ = ["AudioDeviceError", "BaseAudio", "get_audio", "list_input_devices"]
