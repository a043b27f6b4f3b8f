"""Daemon events and the message-passing plumbing that carries them.

The session publishes events onto a queue; consumers (the event log,
tests, a UI) drain it on their own thread.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, Protocol

log = logging.getLogger("clanker-voice.events")


def _now() -> datetime:
    return datetime.now()


@dataclass(frozen=True)
class ListeningStarted:
    name: ClassVar[str] = "listening-started"
    occurred_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class ListeningStopped:
    name: ClassVar[str] = "listening-stopped"
    occurred_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class WakeWordDetected:
    name: ClassVar[str] = "wake-word-detected"
    occurred_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class ProcessingCommand:
    name: ClassVar[str] = "processing-command"
    chunks: int = 0
    occurred_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class WakeWordOnly:
    name: ClassVar[str] = "wake-word-only"
    transcript: str = ""
    occurred_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class CommandRecognized:
    name: ClassVar[str] = "command-recognized"
    command: str = ""
    occurred_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class CommandExecuted:
    name: ClassVar[str] = "command-executed"
    command: str = ""
    output: str = ""
    occurred_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class CommandFailed:
    name: ClassVar[str] = "command-error"
    command: str = ""
    error: str = ""
    occurred_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class DaemonError:
    name: ClassVar[str] = "error"
    message: str = ""
    exception: Exception | None = None
    occurred_at: datetime = field(default_factory=_now)


DaemonEvent = (
    ListeningStarted | ListeningStopped | WakeWordDetected | ProcessingCommand
    | WakeWordOnly | CommandRecognized | CommandExecuted | CommandFailed | DaemonError
)


class EventPublisher(Protocol):
    """Protocol for publishing daemon events."""

    def publish(self, event: DaemonEvent) -> None: ...


class QueueEventPublisher:
    """Event publisher that pushes events to a queue."""

    def __init__(self, event_queue: queue.Queue | None = None):
        self.queue = event_queue if event_queue is not None else queue.Queue()

    def publish(self, event: DaemonEvent) -> None:
        self.queue.put(event)


class NullEventPublisher:
    """Discards events."""

    def publish(self, event: DaemonEvent) -> None:
        pass


# Longer command output is not copied into the log
MAX_LOGGED_OUTPUT = 200


def describe(event: DaemonEvent) -> str:
    """One log line for an event."""
    if isinstance(event, WakeWordDetected):
        return "Wake word detected - listening for command..."
    if isinstance(event, ProcessingCommand):
        return f"Processing command ({event.chunks} chunks)..."
    if isinstance(event, CommandRecognized):
        return f'Command recognized: "{event.command}"'
    if isinstance(event, WakeWordOnly):
        return f"Wake word only, nothing to run ({event.transcript!r})"
    if isinstance(event, CommandExecuted):
        if event.output and len(event.output) < MAX_LOGGED_OUTPUT:
            return f"Command executed successfully. Output: {event.output.strip()}"
        return "Command executed successfully"
    if isinstance(event, CommandFailed):
        return f"Command error: {event.error.strip()}"
    if isinstance(event, DaemonError):
        return f"Error: {event.message}"
    if isinstance(event, ListeningStarted):
        return "Listening started"
    if isinstance(event, ListeningStopped):
        return "Listening stopped"
    return event.name


class EventLogger:
    """Drains an event queue on a background thread, logging each event."""

    def __init__(self, event_queue: queue.Queue, logger: logging.Logger | None = None):
        self._queue = event_queue
        self._log = logger or log
        self._running = threading.Event()
        self._thread: threading.Thread | None = None

    def handle(self, event: DaemonEvent) -> None:
        level = logging.ERROR if isinstance(event, (DaemonError, CommandFailed)) else logging.INFO
        self._log.log(level, "[%s] %s", event.name, describe(event))

    def drain(self) -> int:
        """Log everything currently queued. Returns the number of events."""
        count = 0
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                return count
            self.handle(event)
            count += 1

    def start(self) -> threading.Thread:
        self._running.set()

        def loop():
            while self._running.is_set():
                try:
                    event = self._queue.get(timeout=0.5)
                except queue.Empty:
                    continue
                self.handle(event)
            self.drain()

        self._thread = threading.Thread(target=loop, name="event-logger", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout: float = 2.0) -> None:
        self._running.clear()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
