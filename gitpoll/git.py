"""Git operations collaborator.

The watchers depend only on this narrow surface:

    Git.clone(uri, destination)
    Git.checkout(destination, ref)
    Git.pull(destination)          fetch + reset to upstream
    Git.last_commit(destination)   → CommitDetails

All calls run ``git`` as an asyncio subprocess with ``shell=False`` and an
explicit timeout.  A timed-out or cancelled call kills the subprocess before
the exception propagates, so stopping a watcher never leaves a git process
behind.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path

from gitpoll.exceptions import CheckoutError, CloneError, CommitReadError, GitError, PullError
from gitpoll.logging import get_logger
from gitpoll.models import COMMIT_FORMAT, CommitDetails

log = get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    command: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Runs a command in a directory and captures its output."""

    def __init__(self, timeout: float = 300.0) -> None:
        self._timeout = timeout

    async def run(self, *command: str, cwd: Path | str | None = None) -> CommandResult:
        """Run *command* and return its result.

        Raises ``GitError`` if the command cannot be started or times out.
        A non-zero exit code is reported through ``CommandResult`` only.
        """
        argv = list(command)
        env = os.environ.copy()
        # Never block on a credential prompt.
        env["GIT_TERMINAL_PROMPT"] = "0"
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                stdin=asyncio.subprocess.DEVNULL,
                cwd=str(cwd) if cwd is not None else None,
                env=env,
            )
        except OSError as exc:
            raise GitError(f"Cannot run {argv[0]}: {exc}", command=argv) from exc

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                proc.communicate(), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            proc.kill()
            await proc.communicate()
            raise GitError(
                f"Command timed out after {self._timeout}s: {' '.join(argv)}",
                command=argv,
            )
        except asyncio.CancelledError:
            proc.kill()
            await asyncio.shield(proc.wait())
            raise

        return CommandResult(
            command=argv,
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=stdout_bytes.decode(errors="replace") if stdout_bytes else "",
            stderr=stderr_bytes.decode(errors="replace") if stderr_bytes else "",
        )


class Git:
    """Thin async wrapper around the ``git`` executable."""

    def __init__(self, runner: CommandRunner | None = None, binary: str = "git") -> None:
        self._runner = runner or CommandRunner()
        self._binary = binary

    async def clone(self, uri: str, destination: Path) -> None:
        await self._git(CloneError, "clone", "--quiet", uri, str(destination))

    async def checkout(self, destination: Path, ref: str) -> None:
        await self._git(CheckoutError, "checkout", "--quiet", ref, cwd=destination)

    async def pull(self, destination: Path) -> None:
        """Move the checkout to the tip of its upstream branch.

        Fetches, then hard-resets to ``@{upstream}``: a force-pushed upstream
        replaces the local history and no local-only commit is ever created.
        """
        await self._git(PullError, "fetch", "--quiet", cwd=destination)
        await self._git(PullError, "reset", "--quiet", "--hard", "@{upstream}", cwd=destination)

    async def last_commit(self, destination: Path) -> CommitDetails:
        """Return the most recent commit of the checkout at *destination*."""
        result = await self._git(
            CommitReadError, "log", f"--pretty={COMMIT_FORMAT}", "-n1", cwd=destination
        )
        return CommitDetails.parse(result.stdout)

    async def _git(
        self,
        error_cls: type[GitError],
        *args: str,
        cwd: Path | None = None,
    ) -> CommandResult:
        """Run ``git <args>``; raise *error_cls* on any failure."""
        try:
            result = await self._runner.run(self._binary, *args, cwd=cwd)
        except GitError as exc:
            raise error_cls(exc.message, command=exc.command, stderr=exc.stderr) from exc
        if not result.success:
            raise error_cls(
                f"git {args[0]} exited with status {result.returncode}: {result.stderr.strip()}",
                command=result.command,
                returncode=result.returncode,
                stderr=result.stderr,
            )
        log.debug("git_command_succeeded", command=args[0], cwd=str(cwd) if cwd else None)
        return result
