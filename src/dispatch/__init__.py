"""Command dispatch: real or mock execution sink."""

from dispatch.base import BaseDispatcher, DispatchResult


def get_dispatcher(config: dict) -> BaseDispatcher:
    mode = config.get("dispatch_mode", "shell")
    if mode == "mock":
        from dispatch.mock_dispatcher import MockDispatcher

        return MockDispatcher(config)
    from dispatch.shell_dispatcher import ShellDispatcher

    return ShellDispatcher(config)


__all__ = ["BaseDispatcher", "DispatchResult", "get_dispatcher"]
