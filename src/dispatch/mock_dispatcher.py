"""Mock dispatcher for local development: records commands instead of running them."""

import logging

from dispatch.base import BaseDispatcher, DispatchResult

log = logging.getLogger(__name__)


class MockDispatcher(BaseDispatcher):
    def __init__(self, config: dict):
        self._output = config.get("dispatch_mock_output", "ok")
        self.commands: list[str] = []

    def dispatch(self, command: str) -> DispatchResult:
        log.info("Mock dispatch: %r", command)
        self.commands.append(command)
        return DispatchResult(command, output=self._output)
