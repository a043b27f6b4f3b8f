"""Runs recognized commands through the clanker CLI in a subprocess."""

import logging
import subprocess

from dispatch.base import BaseDispatcher, DispatchResult

log = logging.getLogger(__name__)


class ShellDispatcher(BaseDispatcher):
    """Executes ``<dispatch_command> -p <command> -y`` and captures its output.

    The command text is passed as a single argv element, never through a
    shell, so quotes in the transcript cannot break out.
    """

    def __init__(self, config: dict):
        self._executable = config.get("dispatch_command", "clanker")
        self._timeout = config.get("dispatch_timeout", 300)

    def build_args(self, command: str) -> list[str]:
        return [self._executable, "-p", command, "-y"]

    def dispatch(self, command: str) -> DispatchResult:
        args = self.build_args(command)
        log.info("Dispatching command via %s", self._executable)
        try:
            proc = subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except FileNotFoundError:
            return DispatchResult(command, error=f"{self._executable}: command not found", ok=False)
        except subprocess.TimeoutExpired:
            return DispatchResult(
                command, error=f"Command timed out after {self._timeout}s", ok=False,
            )
        except OSError as e:
            return DispatchResult(command, error=str(e), ok=False)

        if proc.returncode != 0:
            error = proc.stderr or f"exited with status {proc.returncode}"
            return DispatchResult(command, output=proc.stdout, error=error, ok=False)
        return DispatchResult(command, output=proc.stdout, error=proc.stderr)
