"""Always-on voice assistant daemon.

Two threads per listening session:
- capture: pulls blocks from the audio backend into the chunk segmenter
- session: pulls whole chunks from the segmenter and drives the
  CommandSession, one chunk at a time

A slow transcription on the session thread throttles chunk consumption;
the segmenter's bounded buffer absorbs (and eventually drops) audio
captured in the meantime.
"""

from __future__ import annotations

import logging
import os
import signal
import threading
from dataclasses import dataclass, field
from pathlib import Path

from audio import AudioDeviceError, BaseAudio, get_audio, list_input_devices
from audio.segmenter import ChunkSegmenter
from config import WakeWordConfig
from dispatch import BaseDispatcher, get_dispatcher
from events import DaemonError, EventPublisher, ListeningStarted, ListeningStopped, NullEventPublisher
from notify import BaseNotifier, get_notifier
from session import CommandSession, SessionState
from speech import BaseSTT, get_stt
from utils.pidfile import PidFile, pid_alive
from wake import BaseWakeWord, get_wake

log = logging.getLogger("clanker-voice.daemon")

PID_FILENAME = "voice-assistant.pid"

# Session thread wakes at least this often to notice stop requests
IDLE_POLL_SECONDS = 0.5


@dataclass
class ControlResult:
    """Outcome of a control operation (start/stop/status/ask/devices)."""

    success: bool
    output: str = ""
    error: str = ""
    data: dict = field(default_factory=dict)


class VoiceAssistantDaemon:
    """Explicitly constructed handle for one microphone listener.

    The PID file, not this object, decides whether a listener already
    exists, so a second daemon in another process is refused too.
    """

    def __init__(
        self,
        config: dict,
        wake: BaseWakeWord,
        stt: BaseSTT,
        dispatcher: BaseDispatcher,
        notifier: BaseNotifier,
        publisher: EventPublisher | None = None,
        pidfile: PidFile | None = None,
        audio_factory=get_audio,
    ):
        self._config = config
        self._wake_config = WakeWordConfig.from_config(config)
        self._wake = wake
        self._stt = stt
        self._dispatcher = dispatcher
        self._notifier = notifier
        self._publisher = publisher or NullEventPublisher()
        self._pidfile = pidfile or PidFile(Path(config.get("state_dir", ".")) / PID_FILENAME)
        self._audio_factory = audio_factory
        self._block_ms = config.get("audio_block_ms", 100)
        self._join_timeout = config.get("daemon_join_timeout", 10.0)

        self._segmenter = ChunkSegmenter.from_config(config)
        self._session = CommandSession(
            wake, stt, dispatcher, notifier, self._wake_config, self._publisher,
        )
        self._audio: BaseAudio | None = None
        self._lock = threading.RLock()
        self._stopping = threading.Event()
        self._listening = False
        self._capture_thread: threading.Thread | None = None
        self._session_thread: threading.Thread | None = None

    @property
    def is_listening(self) -> bool:
        return self._listening and not self._stopping.is_set()

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def session(self) -> CommandSession:
        return self._session

    @property
    def segmenter(self) -> ChunkSegmenter:
        return self._segmenter

    @property
    def pidfile(self) -> PidFile:
        return self._pidfile

    # -- Control surface --

    def start(self) -> ControlResult:
        """Acquire the microphone and start listening. No-op if already running."""
        with self._lock:
            if self.is_listening:
                return ControlResult(True, "Voice assistant already running", data={"running": True})
            if self._pidfile.is_alive() and not self._pidfile.owned_by_us():
                pid = self._pidfile.read()
                log.info("Voice assistant already running (PID %s)", pid)
                return ControlResult(
                    True, f"Voice assistant already running (PID {pid})",
                    data={"running": True, "pid": pid},
                )

            # Release anything left over from a failed capture
            self._teardown(publish=False)

            try:
                self._audio = self._audio_factory(self._config)
            except AudioDeviceError as e:
                log.error("Failed to acquire audio device: %s", e)
                return ControlResult(False, error=f"Failed to start voice assistant: {e}")
            except Exception as e:
                log.exception("Audio backend failed to start")
                return ControlResult(False, error=f"Failed to start voice assistant: {e}")

            try:
                self._audio.open(self._block_ms)
            except Exception as e:
                log.error("Failed to open audio device: %s", e)
                try:
                    self._audio.close()
                except Exception:
                    log.exception("Audio close failed")
                self._audio = None
                return ControlResult(False, error=f"Failed to start voice assistant: {e}")

            self._pidfile.write()
            self._segmenter.reset()
            self._stopping.clear()
            self._listening = True

            self._session_thread = threading.Thread(
                target=self._session_loop, name="voice-session", daemon=True,
            )
            self._capture_thread = threading.Thread(
                target=self._capture_loop, args=(self._audio,), name="voice-capture", daemon=True,
            )
            self._session_thread.start()
            self._capture_thread.start()

            self._publisher.publish(ListeningStarted())
            log.info(
                "Voice assistant listening (wake words: %s, timeout %dms)",
                ", ".join(self._wake_config.wake_words), self._wake_config.timeout_ms,
            )
            return ControlResult(
                True, "Voice assistant background listener started",
                data={"running": True, "pid": os.getpid()},
            )

    def stop(self) -> ControlResult:
        """Stop listening here, or signal the daemon recorded in the PID file."""
        with self._lock:
            if self._listening or self._capture_thread or self._session_thread:
                was_listening = self.is_listening
                self._teardown(publish=True)
                if was_listening:
                    return ControlResult(True, "Voice assistant stopped", data={"running": False})

            pid = self._pidfile.read()
            if pid is not None and pid != os.getpid() and pid_alive(pid):
                try:
                    os.kill(pid, signal.SIGTERM)
                except OSError as e:
                    log.error("Failed to stop daemon PID %d: %s", pid, e)
                    return ControlResult(False, error=f"Failed to stop daemon (PID {pid}): {e}")
                self._pidfile.remove()
                log.info("Sent SIGTERM to voice assistant daemon (PID %d)", pid)
                return ControlResult(
                    True, f"Voice assistant stopped (PID {pid})", data={"running": False},
                )

            if pid is not None:
                log.info("Removing stale PID file for %d", pid)
                self._pidfile.remove()
            return ControlResult(True, "Voice assistant is not running", data={"running": False})

    def status(self) -> ControlResult:
        running = self.is_listening or (
            self._pidfile.is_alive() and not self._pidfile.owned_by_us()
        )
        return ControlResult(
            True,
            "Voice assistant is running" if running else "Voice assistant is not running",
            data={"running": running, "state": self._session.state.value},
        )

    def ask(self, message: str | None) -> ControlResult:
        """Push a question to the user as a notification and speech."""
        if not message:
            return ControlResult(False, error="Message required for ask command")
        text = f"{self._wake_config.user_title}, {message}"
        try:
            self._notifier.notify("Clanker Assistant", text)
            self._notifier.speak(text)
        except Exception:
            log.debug("Ask notification failed", exc_info=True)
        return ControlResult(True, f"Asked user: {message}")

    def devices(self) -> ControlResult:
        try:
            if self._audio is not None:
                devices = self._audio.devices()
            else:
                devices = list_input_devices(self._config)
        except Exception as e:
            log.exception("Failed to list devices")
            return ControlResult(False, error=f"Failed to list devices: {e}")
        if not devices:
            return ControlResult(True, "No microphone devices found", data={"devices": []})
        return ControlResult(
            True,
            "Available microphone devices:\n" + "\n".join(devices),
            data={"devices": devices},
        )

    # -- Worker threads --

    def _capture_loop(self, audio: BaseAudio) -> None:
        error: Exception | None = None
        try:
            for block in audio.stream(self._block_ms):
                if self._stopping.is_set():
                    break
                if block:
                    self._segmenter.feed(block)
                else:
                    # Sound ended; release its partial chunk
                    self._segmenter.pad_to_chunk()
        except Exception as e:
            error = e
        if self._stopping.is_set():
            return

        if error is None:
            error = RuntimeError("audio stream ended unexpectedly")
        log.error("Audio capture failed: %s", error)
        self._publisher.publish(DaemonError(message=f"Recording error: {error}", exception=error))
        # Listening is over until someone calls start() again
        if self._pidfile.owned_by_us():
            self._pidfile.remove()
        self._stopping.set()
        self._segmenter.close()

    def _session_loop(self) -> None:
        log.info("Session loop started")
        while not self._stopping.is_set():
            budget = self._session.timeout_budget()
            chunk = self._segmenter.next_chunk(
                timeout=IDLE_POLL_SECONDS if budget is None else min(budget, IDLE_POLL_SECONDS),
            )
            if self._stopping.is_set() or (chunk is None and self._segmenter.closed):
                break
            try:
                if chunk is None:
                    self._session.poll_timeout()
                else:
                    self._session.handle_chunk(chunk)
            except Exception as e:
                log.exception("Session error (non-fatal)")
                self._publisher.publish(DaemonError(message=str(e), exception=e))
        log.info("Session loop stopped")

    # -- Shutdown --

    def _teardown(self, publish: bool) -> None:
        """Stop capture, join workers, release the session and the PID file."""
        was_listening = self._listening
        self._stopping.set()
        self._listening = False

        if self._audio is not None:
            try:
                self._audio.stop()
            except Exception:
                log.exception("Audio stop failed")
        self._segmenter.close()

        current = threading.current_thread()
        for thread in (self._capture_thread, self._session_thread):
            if thread is not None and thread is not current:
                thread.join(timeout=self._join_timeout)
                if thread.is_alive():
                    log.warning("%s did not exit within %.1fs", thread.name, self._join_timeout)
        self._capture_thread = None
        self._session_thread = None

        self._session.close()
        if self._audio is not None:
            try:
                self._audio.close()
            except Exception:
                log.exception("Audio close failed")
            self._audio = None

        if self._pidfile.owned_by_us():
            self._pidfile.remove()
        if publish and was_listening:
            self._publisher.publish(ListeningStopped())
            log.info("Voice assistant stopped listening")

    def close(self) -> None:
        """Stop listening in this process and release every backend.

        Unlike stop(), never signals a daemon owned by another process.
        """
        with self._lock:
            self._teardown(publish=True)
        for backend in (self._wake, self._stt, self._dispatcher):
            try:
                backend.close()
            except Exception:
                log.exception("Error closing %s", backend.__class__.__name__)


def build_daemon(config: dict, publisher: EventPublisher | None = None) -> VoiceAssistantDaemon:
    """Wire a daemon from config using the backend factories."""
    stt = get_stt(config)
    wake = get_wake(config, stt)
    return VoiceAssistantDaemon(
        config,
        wake=wake,
        stt=stt,
        dispatcher=get_dispatcher(config),
        notifier=get_notifier(config),
        publisher=publisher,
    )
