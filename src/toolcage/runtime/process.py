"""Process runner — the subprocess boundary to container engine CLIs.

Every engine call goes through a :class:`ProcessRunner` so runtimes and the
detector can be exercised against a fake that never spawns a process.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from toolcage.runtime.errors import SandboxError, SandboxTimeoutError

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


class ProcessOutput:
    """Captured output of one finished process."""

    __slots__ = ("returncode", "stdout", "stderr")

    def __init__(self, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def __repr__(self) -> str:
        return (
            f"ProcessOutput(returncode={self.returncode!r}, "
            f"stdout={self.stdout!r}, stderr={self.stderr!r})"
        )


@runtime_checkable
class ProcessRunner(Protocol):
    """Runs an external command and returns its captured output.

    A non-zero exit code is returned, not raised.  Implementations raise
    :class:`SandboxError` when the binary cannot be started and
    :class:`SandboxTimeoutError` when *timeout* expires.
    """

    async def run(self, args: Sequence[str], *, timeout: float | None = None) -> ProcessOutput:
        """Run *args* and wait for it to finish."""
        ...


class SubprocessRunner:
    """:class:`ProcessRunner` backed by :func:`asyncio.create_subprocess_exec`."""

    async def run(self, args: Sequence[str], *, timeout: float | None = None) -> ProcessOutput:
        logger.debug("Running %s", " ".join(args))
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise SandboxError(f"Failed to run {args[0]}: {exc}") from exc

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                proc.communicate(), timeout=timeout
            )
        except TimeoutError:
            _kill(proc)
            await proc.wait()
            raise SandboxTimeoutError(timeout or 0.0)
        except asyncio.CancelledError:
            _kill(proc)
            raise

        return ProcessOutput(
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=stdout_bytes.decode(errors="replace").strip() if stdout_bytes else "",
            stderr=stderr_bytes.decode(errors="replace").strip() if stderr_bytes else "",
        )


def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
