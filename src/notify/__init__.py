"""User notifications: desktop or log-only output."""

from notify.base import BaseNotifier


def get_notifier(config: dict) -> BaseNotifier:
    if config.get("notify_mode", "desktop") == "log":
        from notify.log_notifier import LogNotifier

        return LogNotifier(config)
    from notify.desktop_notifier import DesktopNotifier

    return DesktopNotifier(config)


__all__ = ["BaseNotifier", "get_notifier"]
