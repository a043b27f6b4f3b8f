"""Abstract base class for user notification sinks."""

from abc import ABC, abstractmethod


class BaseNotifier(ABC):
    """Surfaces short messages to the user. Fire-and-forget: never raises."""

    @abstractmethod
    def notify(self, title: str, message: str) -> None:
        ...

    def speak(self, message: str) -> None:
        """Say the message aloud, where supported."""
        pass
