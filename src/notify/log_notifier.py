"""Notifier that only writes to the log (headless / development)."""

import logging

from notify.base import BaseNotifier

log = logging.getLogger(__name__)


class LogNotifier(BaseNotifier):
    def __init__(self, config: dict | None = None):
        self.sent: list[tuple[str, str]] = []

    def notify(self, title: str, message: str) -> None:
        self.sent.append((title, message))
        log.info("[%s] %s", title, message)

    def speak(self, message: str) -> None:
        log.info("(spoken) %s", message)
