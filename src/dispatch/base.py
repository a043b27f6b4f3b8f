"""Abstract base class for command execution sinks."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of running one recognized command.

    ``ok`` is False when the command could not be run or exited non-zero.
    Captured stderr is kept even on success.
    """

    command: str
    output: str = ""
    error: str = ""
    ok: bool = True


class BaseDispatcher(ABC):
    """Hands a free-text command to something that executes it."""

    @abstractmethod
    def dispatch(self, command: str) -> DispatchResult:
        """Execute the command and report captured output. Never raises."""
        ...

    def close(self) -> None:
        """Clean up resources. Override if needed."""
        pass
