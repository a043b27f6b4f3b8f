"""Tests for the command capture state machine."""

import queue
import sys
from pathlib import Path
from unittest.mock import MagicMock

# Add src to path so imports work
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from audio.segmenter import AudioChunk
from config import WakeWordConfig
from dispatch.base import DispatchResult
from events import (
    CommandExecuted,
    CommandFailed,
    CommandRecognized,
    DaemonError,
    ProcessingCommand,
    QueueEventPublisher,
    WakeWordDetected,
    WakeWordOnly,
)
from session import CommandSession, InactivityTimer, SessionState
from speech.base import TranscriptionError


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def _chunk(i=0, fill=b"\x01\x00"):
    return AudioChunk(fill * 16000, index=i)


def _wake(results=(True,)):
    """Wake detector returning the given results in turn, then False."""
    wake = MagicMock()
    seq = list(results)
    wake.detect.side_effect = lambda data: seq.pop(0) if seq else False
    return wake


def _stt(text="open my calendar"):
    stt = MagicMock()
    stt.transcribe.return_value = text
    return stt


def _dispatcher(result=None):
    dispatcher = MagicMock()
    dispatcher.dispatch.side_effect = lambda cmd: result or DispatchResult(cmd, output="done")
    return dispatcher


def _make_session(wake=None, stt=None, dispatcher=None, notifications=True, timeout_ms=3000):
    clock = FakeClock()
    publisher = QueueEventPublisher()
    notifier = MagicMock()
    config = WakeWordConfig(
        wake_words=("hey clanker", "hey jarvis"),
        timeout_ms=timeout_ms,
        user_title="sir",
        notifications_enabled=notifications,
    )
    session = CommandSession(
        wake or _wake(), stt or _stt(), dispatcher or _dispatcher(),
        notifier, config, publisher, clock=clock,
    )
    return session, clock, publisher, notifier


def _events(publisher):
    out = []
    while True:
        try:
            out.append(publisher.queue.get_nowait())
        except queue.Empty:
            return out


def _names(publisher):
    return [e.name for e in _events(publisher)]


def test_timer_restart_and_expiry():
    clock = FakeClock()
    timer = InactivityTimer(3.0, clock)
    assert not timer.active
    assert timer.remaining() is None
    timer.restart()
    clock.advance(2.0)
    assert timer.remaining() == 1.0
    timer.restart()
    clock.advance(2.5)
    assert not timer.expired()
    clock.advance(0.5)
    assert timer.expired()
    timer.cancel()
    assert not timer.expired()


def test_idle_chunk_goes_to_detector():
    wake = _wake(results=(False,))
    session, _, publisher, _ = _make_session(wake=wake)
    chunk = _chunk()
    session.handle_chunk(chunk)

    wake.detect.assert_called_once_with(chunk.data)
    assert session.state is SessionState.IDLE
    assert _events(publisher) == []


def test_one_detection_per_idle_chunk():
    wake = _wake(results=(False, False, False))
    session, *_ = _make_session(wake=wake)
    for i in range(3):
        session.handle_chunk(_chunk(i))
    assert wake.detect.call_count == 3


def test_wake_arms_session_and_notifies():
    session, _, publisher, notifier = _make_session()
    session.handle_chunk(_chunk())

    assert session.state is SessionState.ARMED
    assert session.buffer == ()
    assert session.timer.active
    assert isinstance(_events(publisher)[0], WakeWordDetected)
    notifier.notify.assert_called_once_with("Listening...", "Yes, sir?")


def test_notifications_can_be_disabled():
    session, _, _, notifier = _make_session(notifications=False)
    session.handle_chunk(_chunk())
    notifier.notify.assert_not_called()


def test_notifier_failure_is_swallowed():
    session, _, _, notifier = _make_session()
    notifier.notify.side_effect = OSError("no display")
    session.handle_chunk(_chunk())
    assert session.state is SessionState.ARMED


def test_armed_chunks_buffer_and_reset_timer():
    wake = _wake()
    session, clock, _, _ = _make_session(wake=wake)
    session.handle_chunk(_chunk(0))

    for i in range(1, 4):
        clock.advance(2.0)
        session.handle_chunk(_chunk(i))
        assert not session.poll_timeout()

    assert len(session.buffer) == 3
    assert session.timer.remaining() == 3.0
    # Detector is not consulted while armed
    assert wake.detect.call_count == 1


def test_timeout_processes_exactly_once_with_buffered_chunks():
    stt = _stt("open my calendar")
    session, clock, publisher, _ = _make_session(stt=stt)
    session.handle_chunk(_chunk(0))
    chunks = [_chunk(i, fill=bytes([i, 0])) for i in range(1, 4)]
    for c in chunks:
        session.handle_chunk(c)

    clock.advance(2.9)
    assert not session.poll_timeout()
    clock.advance(0.2)
    assert session.poll_timeout()
    assert not session.poll_timeout()

    stt.transcribe.assert_called_once_with(b"".join(c.data for c in chunks), "en-US")
    processing = [e for e in _events(publisher) if isinstance(e, ProcessingCommand)]
    assert len(processing) == 1
    assert processing[0].chunks == 3


def test_late_chunk_is_not_part_of_command():
    """A chunk arriving after the deadline triggers processing first."""
    stt = _stt("open my calendar")
    wake = _wake(results=(True, False))
    session, clock, _, _ = _make_session(stt=stt, wake=wake)
    session.handle_chunk(_chunk(0))
    first = _chunk(1)
    session.handle_chunk(first)
    clock.advance(3.5)
    session.handle_chunk(_chunk(2))

    stt.transcribe.assert_called_once_with(first.data, "en-US")
    assert session.state is SessionState.IDLE
    # The late chunk went back to wake word scanning
    assert wake.detect.call_count == 2


def test_full_cycle_dispatches_and_returns_to_idle():
    dispatcher = _dispatcher()
    session, clock, publisher, _ = _make_session(dispatcher=dispatcher)
    session.handle_chunk(_chunk(0))
    for i in range(1, 4):
        session.handle_chunk(_chunk(i))
    clock.advance(3.0)
    session.poll_timeout()

    dispatcher.dispatch.assert_called_once_with("open my calendar")
    assert session.state is SessionState.IDLE
    assert session.buffer == ()
    assert not session.timer.active
    assert _names(publisher) == [
        "wake-word-detected", "processing-command",
        "command-recognized", "command-executed",
    ]


def test_transcription_failure_returns_to_idle():
    stt = MagicMock()
    stt.transcribe.side_effect = TranscriptionError("network down")
    dispatcher = _dispatcher()
    session, clock, publisher, _ = _make_session(stt=stt, dispatcher=dispatcher)
    session.handle_chunk(_chunk(0))
    for i in range(1, 4):
        session.handle_chunk(_chunk(i))
    clock.advance(3.0)
    session.poll_timeout()

    assert session.state is SessionState.IDLE
    assert session.buffer == ()
    dispatcher.dispatch.assert_not_called()
    events = _events(publisher)
    assert isinstance(events[-1], DaemonError)
    assert "network down" in events[-1].message
    # No automatic retry
    assert stt.transcribe.call_count == 1


def test_unexpected_stt_error_also_returns_to_idle():
    stt = MagicMock()
    stt.transcribe.side_effect = RuntimeError("bug")
    session, clock, publisher, _ = _make_session(stt=stt)
    session.handle_chunk(_chunk(0))
    session.handle_chunk(_chunk(1))
    clock.advance(3.0)
    session.poll_timeout()
    assert session.state is SessionState.IDLE
    assert _names(publisher)[-1] == "error"


def test_wake_word_only_is_not_dispatched():
    dispatcher = _dispatcher()
    session, clock, publisher, _ = _make_session(stt=_stt("Hey Clanker..."), dispatcher=dispatcher)
    session.handle_chunk(_chunk(0))
    session.handle_chunk(_chunk(1))
    clock.advance(3.0)
    session.poll_timeout()

    dispatcher.dispatch.assert_not_called()
    events = _events(publisher)
    assert isinstance(events[-1], WakeWordOnly)
    assert not any(isinstance(e, CommandRecognized) for e in events)


def test_empty_transcript_is_not_dispatched():
    dispatcher = _dispatcher()
    session, clock, publisher, _ = _make_session(stt=_stt("   "), dispatcher=dispatcher)
    session.handle_chunk(_chunk(0))
    session.handle_chunk(_chunk(1))
    clock.advance(3.0)
    session.poll_timeout()
    dispatcher.dispatch.assert_not_called()
    assert _names(publisher)[-1] == "wake-word-only"


def test_dispatch_failure_emits_command_error():
    result = DispatchResult("open my calendar", error="exit 1", ok=False)
    session, clock, publisher, _ = _make_session(dispatcher=_dispatcher(result))
    session.handle_chunk(_chunk(0))
    session.handle_chunk(_chunk(1))
    clock.advance(3.0)
    session.poll_timeout()

    events = _events(publisher)
    assert isinstance(events[-1], CommandFailed)
    assert events[-1].error == "exit 1"
    assert not any(isinstance(e, CommandExecuted) for e in events)
    assert session.state is SessionState.IDLE


def test_dispatch_stderr_on_success_emits_both():
    result = DispatchResult("open my calendar", output="ok", error="warning")
    session, clock, publisher, _ = _make_session(dispatcher=_dispatcher(result))
    session.handle_chunk(_chunk(0))
    session.handle_chunk(_chunk(1))
    clock.advance(3.0)
    session.poll_timeout()
    assert _names(publisher)[-2:] == ["command-executed", "command-error"]


def test_dispatcher_exception_becomes_command_error():
    dispatcher = MagicMock()
    dispatcher.dispatch.side_effect = RuntimeError("crashed")
    session, clock, publisher, _ = _make_session(dispatcher=dispatcher)
    session.handle_chunk(_chunk(0))
    session.handle_chunk(_chunk(1))
    clock.advance(3.0)
    session.poll_timeout()
    events = _events(publisher)
    assert isinstance(events[-1], CommandFailed)
    assert session.state is SessionState.IDLE


def test_timeout_with_empty_buffer_goes_idle_silently():
    stt = _stt()
    session, clock, publisher, _ = _make_session(stt=stt)
    session.handle_chunk(_chunk(0))
    _events(publisher)
    clock.advance(3.0)
    assert session.poll_timeout()
    assert session.state is SessionState.IDLE
    stt.transcribe.assert_not_called()
    assert _events(publisher) == []


def test_timeout_budget():
    session, clock, _, _ = _make_session()
    assert session.timeout_budget() is None
    session.handle_chunk(_chunk(0))
    clock.advance(1.0)
    assert session.timeout_budget() == 2.0


def test_detector_exception_treated_as_no_wake():
    wake = MagicMock()
    wake.detect.side_effect = RuntimeError("bad model")
    session, *_ = _make_session(wake=wake)
    session.handle_chunk(_chunk())
    assert session.state is SessionState.IDLE


def test_wake_reset_after_processing():
    wake = _wake()
    session, clock, _, _ = _make_session(wake=wake)
    session.handle_chunk(_chunk(0))
    session.handle_chunk(_chunk(1))
    clock.advance(3.0)
    session.poll_timeout()
    wake.reset.assert_called()


def test_close_abandons_capture():
    session, *_ = _make_session()
    session.handle_chunk(_chunk(0))
    session.handle_chunk(_chunk(1))
    session.close()
    assert session.state is SessionState.IDLE
    assert session.buffer == ()
    assert not session.timer.active


def test_rearm_after_cycle():
    """After returning to Idle the next wake word is detected again."""
    wake = _wake(results=(True, True))
    session, clock, _, _ = _make_session(wake=wake)
    session.handle_chunk(_chunk(0))
    session.handle_chunk(_chunk(1))
    clock.advance(3.0)
    session.poll_timeout()
    session.handle_chunk(_chunk(2))
    assert session.state is SessionState.ARMED
    assert session.buffer == ()
