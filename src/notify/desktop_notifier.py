"""Desktop notifications and spoken prompts via platform command-line tools."""

import logging
import shutil
import subprocess
import sys

from notify.base import BaseNotifier

log = logging.getLogger(__name__)


def _applescript_quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


class DesktopNotifier(BaseNotifier):
    """notify-send on Linux, osascript on macOS; say or espeak for speech.

    Failures are logged at debug level and otherwise ignored.
    """

    def __init__(self, config: dict | None = None, platform: str | None = None):
        self._platform = platform or sys.platform

    def notification_args(self, title: str, message: str) -> list[str] | None:
        if self._platform == "darwin":
            script = (
                f"display notification {_applescript_quote(message)} "
                f"with title {_applescript_quote(title)} sound name \"default\""
            )
            return ["osascript", "-e", script]
        if shutil.which("notify-send"):
            return ["notify-send", title, message]
        return None

    def speech_args(self, message: str) -> list[str] | None:
        for tool in ("say", "espeak-ng", "espeak"):
            if shutil.which(tool):
                return [tool, message]
        return None

    def _run(self, args: list[str] | None, what: str, wait: bool) -> None:
        if args is None:
            log.debug("No %s tool available", what)
            return
        try:
            if wait:
                subprocess.run(args, capture_output=True, timeout=30)
            else:
                subprocess.Popen(args, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except (OSError, subprocess.SubprocessError) as e:
            log.debug("%s failed: %s", what, e)

    def notify(self, title: str, message: str) -> None:
        log.info("[%s] %s", title, message)
        self._run(self.notification_args(title, message), "notification", wait=False)

    def speak(self, message: str) -> None:
        self._run(self.speech_args(message), "speech", wait=True)
