"""Command capture session: wake word → armed → processing → idle.

Owns the command audio buffer and the inactivity timer. Everything here
runs on the single session thread; the timer is a deadline that the
session loop polls between chunks, not a separate thread.
"""

from __future__ import annotations

import logging
import time
from enum import Enum

from audio.segmenter import AudioChunk
from config import WakeWordConfig
from dispatch.base import BaseDispatcher, DispatchResult
from events import (
    CommandExecuted,
    CommandFailed,
    CommandRecognized,
    DaemonError,
    EventPublisher,
    NullEventPublisher,
    ProcessingCommand,
    WakeWordDetected,
    WakeWordOnly,
)
from notify.base import BaseNotifier
from speech.base import BaseSTT, TranscriptionError
from wake.base import BaseWakeWord
from wake.matching import is_wake_word_only

log = logging.getLogger("clanker-voice.session")


class SessionState(Enum):
    IDLE = "idle"
    ARMED = "armed"
    PROCESSING = "processing"


class InactivityTimer:
    """A restartable deadline. Restarting replaces any pending expiry."""

    def __init__(self, timeout: float, clock=time.monotonic):
        self._timeout = timeout
        self._clock = clock
        self._deadline: float | None = None

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def active(self) -> bool:
        return self._deadline is not None

    def restart(self) -> None:
        self._deadline = self._clock() + self._timeout

    def cancel(self) -> None:
        self._deadline = None

    def remaining(self) -> float | None:
        """Seconds until expiry (0 once expired), or None when not running."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def expired(self) -> bool:
        return self._deadline is not None and self._clock() >= self._deadline


class CommandSession:
    """State machine for capturing and running one spoken command at a time.

    Idle: each chunk goes to the wake word detector.
    Armed: each chunk is buffered and restarts the inactivity timer (any
    audio counts, speech or not).
    Processing: the frozen buffer is transcribed and dispatched; chunks
    arriving meanwhile are dropped.

    Every path out of Processing clears the buffer and lands in Idle.
    """

    def __init__(
        self,
        wake: BaseWakeWord,
        stt: BaseSTT,
        dispatcher: BaseDispatcher,
        notifier: BaseNotifier,
        wake_config: WakeWordConfig,
        publisher: EventPublisher | None = None,
        clock=time.monotonic,
    ):
        self._wake = wake
        self._stt = stt
        self._dispatcher = dispatcher
        self._notifier = notifier
        self._config = wake_config
        self._publisher = publisher or NullEventPublisher()
        self._timer = InactivityTimer(wake_config.timeout_s, clock)
        self._state = SessionState.IDLE
        self._buffer: list[AudioChunk] = []
        self.last_transcript: str | None = None
        self.last_result: DispatchResult | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def buffer(self) -> tuple[AudioChunk, ...]:
        return tuple(self._buffer)

    @property
    def timer(self) -> InactivityTimer:
        return self._timer

    def timeout_budget(self) -> float | None:
        """How long the loop may wait for the next chunk before polling."""
        if self._state is SessionState.ARMED:
            return self._timer.remaining()
        return None

    def handle_chunk(self, chunk: AudioChunk) -> None:
        if self._state is SessionState.ARMED and self._timer.expired():
            # Timer ran out before this chunk arrived; it is not part of the command
            self.process()

        if self._state is SessionState.IDLE:
            if self._detect(chunk):
                self._arm()
        elif self._state is SessionState.ARMED:
            self._buffer.append(chunk)
            self._timer.restart()
            log.debug("Buffered command chunk %d (%d total)", chunk.index, len(self._buffer))
        else:
            log.debug("Dropping chunk %d while processing", chunk.index)

    def poll_timeout(self) -> bool:
        """Run the command if the inactivity timer has fired. Returns True if it did."""
        if self._state is SessionState.ARMED and self._timer.expired():
            self.process()
            return True
        return False

    def _detect(self, chunk: AudioChunk) -> bool:
        try:
            return self._wake.detect(chunk.data)
        except Exception:
            log.exception("Wake word detector error (treated as no detection)")
            return False

    def _arm(self) -> None:
        self._buffer.clear()
        self._state = SessionState.ARMED
        self._publisher.publish(WakeWordDetected())
        if self._config.notifications_enabled:
            self._notify("Listening...", f"Yes, {self._config.user_title}?")
        self._timer.restart()
        log.info("Wake word detected, capturing command (timeout %.1fs)", self._timer.timeout)

    def _notify(self, title: str, message: str) -> None:
        try:
            self._notifier.notify(title, message)
        except Exception:
            log.debug("Notification failed", exc_info=True)

    def process(self) -> None:
        """Transcribe the buffered command and dispatch it, then return to Idle."""
        self._timer.cancel()
        if self._state is not SessionState.ARMED:
            return
        if not self._buffer:
            log.info("Inactivity timeout with no command audio, back to idle")
            self._reset()
            return

        chunks = tuple(self._buffer)
        self._state = SessionState.PROCESSING
        self._publisher.publish(ProcessingCommand(chunks=len(chunks)))
        log.info("Processing command (%d chunks)", len(chunks))
        try:
            audio = b"".join(c.data for c in chunks)
            try:
                text = self._stt.transcribe(audio, self._config.language)
            except TranscriptionError as e:
                log.error("Command transcription failed: %s", e)
                self._publisher.publish(DaemonError(message=str(e), exception=e))
                return
            self.last_transcript = text
            self._run(text)
        except Exception as e:
            log.exception("Command processing error")
            self._publisher.publish(DaemonError(message=str(e), exception=e))
        finally:
            self._reset()

    def _run(self, text: str) -> None:
        command = (text or "").strip()
        if not command or is_wake_word_only(command, self._config.wake_words):
            log.info("Heard only the wake word (%r)", command)
            self._publisher.publish(WakeWordOnly(transcript=command))
            return

        self._publisher.publish(CommandRecognized(command=command))
        log.info("Command recognized: %r", command)
        try:
            result = self._dispatcher.dispatch(command)
        except Exception as e:
            log.exception("Dispatcher raised for %r", command)
            result = DispatchResult(command, error=str(e), ok=False)
        self.last_result = result
        if result.ok:
            self._publisher.publish(CommandExecuted(command=command, output=result.output))
        if result.error or not result.ok:
            self._publisher.publish(
                CommandFailed(command=command, error=result.error or "command failed"),
            )

    def _reset(self) -> None:
        self._buffer.clear()
        self._timer.cancel()
        self._state = SessionState.IDLE
        try:
            self._wake.reset()
        except Exception:
            log.exception("Wake word reset failed")

    def close(self) -> None:
        """Abandon any capture in progress."""
        self._reset()
