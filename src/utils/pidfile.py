"""PID-file liveness marker for the single listening daemon."""

import logging
import os
from pathlib import Path

log = logging.getLogger(__name__)


class PidFile:
    """A file holding the PID of the process that owns the microphone.

    The file is the source of truth across process restarts; a stale file
    (process gone) counts as not running.
    """

    def __init__(self, path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> int | None:
        try:
            return int(self._path.read_text().strip())
        except FileNotFoundError:
            return None
        except ValueError:
            log.warning("Ignoring malformed PID file %s", self._path)
            return None

    def write(self, pid: int | None = None) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(str(pid if pid is not None else os.getpid()))

    def remove(self) -> None:
        try:
            self._path.unlink()
        except FileNotFoundError:
            pass

    def is_alive(self) -> bool:
        """Probe the recorded PID with signal 0."""
        pid = self.read()
        if pid is None:
            return False
        return pid_alive(pid)

    def owned_by_us(self) -> bool:
        return self.read() == os.getpid()


def pid_alive(pid: int) -> bool:
    """Return True if a process with this PID exists."""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists, owned by another user
        return True
    except OSError:
        return False
    return True
