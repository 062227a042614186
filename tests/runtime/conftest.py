"""Shared fakes for runtime tests: a process runner that never spawns."""

from __future__ import annotations

from collections.abc import Callable, Sequence

import pytest

from toolcage.runtime.process import ProcessOutput

Handler = Callable[[list[str]], ProcessOutput]


class FakeRunner:
    """Records every command and answers from a queue or a handler.

    A queued (or handler-returned) exception instance is raised instead of
    returned.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.timeouts: list[float | None] = []
        self.handler: Handler | None = None
        self.default = ProcessOutput()
        self._queue: list[ProcessOutput | BaseException] = []

    def queue(self, *outputs: ProcessOutput | BaseException) -> None:
        self._queue.extend(outputs)

    async def run(self, args: Sequence[str], *, timeout: float | None = None) -> ProcessOutput:
        cmd = list(args)
        self.calls.append(cmd)
        self.timeouts.append(timeout)
        if self._queue:
            result = self._queue.pop(0)
        elif self.handler is not None:
            result = self.handler(cmd)
        else:
            result = self.default
        if isinstance(result, BaseException):
            raise result
        return result

    def commands(self, verb: str) -> list[list[str]]:
        """Recorded calls whose engine verb (second argv item) is *verb*."""
        return [cmd for cmd in self.calls if len(cmd) > 1 and cmd[1] == verb]


@pytest.fixture()
def fake_runner() -> FakeRunner:
    return FakeRunner()
