"""Tests for command dispatch."""

import subprocess
import sys
from pathlib import Path
from types import SimpleNamespace

# Add src to path so imports work
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dispatch import get_dispatcher
from dispatch.mock_dispatcher import MockDispatcher
from dispatch.shell_dispatcher import ShellDispatcher


def _fake_run(returncode=0, stdout="", stderr="", raises=None, calls=None):
    def run(args, **kwargs):
        if calls is not None:
            calls.append((args, kwargs))
        if raises is not None:
            raise raises
        return SimpleNamespace(returncode=returncode, stdout=stdout, stderr=stderr)
    return run


def test_args_keep_command_as_single_element():
    d = ShellDispatcher({"dispatch_command": "clanker"})
    cmd = 'say "hi"; rm -rf /'
    assert d.build_args(cmd) == ["clanker", "-p", cmd, "-y"]


def test_success_captures_stdout(monkeypatch):
    calls = []
    monkeypatch.setattr(subprocess, "run", _fake_run(stdout="done\n", calls=calls))
    result = ShellDispatcher({}).dispatch("open my calendar")
    assert result.ok
    assert result.output == "done\n"
    assert result.error == ""
    args, kwargs = calls[0]
    assert args == ["clanker", "-p", "open my calendar", "-y"]
    assert kwargs["capture_output"] is True
    assert "shell" not in kwargs


def test_nonzero_exit_is_failure(monkeypatch):
    monkeypatch.setattr(subprocess, "run", _fake_run(returncode=2, stderr="boom"))
    result = ShellDispatcher({}).dispatch("x")
    assert not result.ok
    assert result.error == "boom"


def test_nonzero_exit_without_stderr(monkeypatch):
    monkeypatch.setattr(subprocess, "run", _fake_run(returncode=3))
    result = ShellDispatcher({}).dispatch("x")
    assert result.error == "exited with status 3"


def test_missing_executable(monkeypatch):
    monkeypatch.setattr(subprocess, "run", _fake_run(raises=FileNotFoundError()))
    result = ShellDispatcher({"dispatch_command": "nope"}).dispatch("x")
    assert not result.ok
    assert "nope" in result.error


def test_timeout(monkeypatch):
    monkeypatch.setattr(
        subprocess, "run", _fake_run(raises=subprocess.TimeoutExpired("clanker", 5)),
    )
    result = ShellDispatcher({"dispatch_timeout": 5}).dispatch("x")
    assert not result.ok
    assert "timed out" in result.error


def test_mock_dispatcher_records():
    d = MockDispatcher({"dispatch_mock_output": "fine"})
    result = d.dispatch("turn on the lights")
    assert result.output == "fine"
    assert d.commands == ["turn on the lights"]


def test_factory():
    assert isinstance(get_dispatcher({}), ShellDispatcher)
    assert isinstance(get_dispatcher({"dispatch_mode": "mock"}), MockDispatcher)
