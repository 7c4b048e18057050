"""Installer runs: fetch -> wrap -> execute -> stream output -> outcome."""

import asyncio
import logging
import os
import re
import shutil
import signal
import tempfile
from collections.abc import Callable
from enum import Enum
from typing import Protocol

from pydantic import BaseModel

from scriptbay.config import SHELL, SUDO_PATH
from scriptbay.credentials import CredentialStore
from scriptbay.services.fetcher import FetchError, ScriptFetcher
from scriptbay.services.shim import KEEPALIVE_INTERVAL, build_wrapped_script

logger = logging.getLogger(__name__)

NO_CREDENTIAL = "No sudo password set. Please authenticate first."
RUN_FAILED = "Installation failed. Check output for details."
OVERSIZED_LINE = "[output line longer than 1 MiB; all or part of it was dropped]"

_SCRIPT_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+(/[A-Za-z0-9._-]+)*$")
_SCRIPT_NAME_MAX_LENGTH = 256
_LINE_LIMIT = 1024 * 1024  # longest single output line we buffer
_TERMINATE_GRACE = 5.0  # seconds between SIGTERM and SIGKILL on cancel


class RunState(str, Enum):
    """Lifecycle of one installer run."""

    idle = "idle"
    fetching = "fetching"
    wrapping = "wrapping"
    starting = "starting"
    streaming = "streaming"
    succeeded = "succeeded"
    failed = "failed"


class RunOutcome(BaseModel):
    """Terminal result of a run."""

    success: bool
    error: str | None = None


class OutputSink(Protocol):
    """Receives output lines in arrival order."""

    def emit(self, line: str) -> None: ...


class QueueSink:
    """Sink that pushes every line onto an asyncio queue."""

    def __init__(self, queue: asyncio.Queue) -> None:
        self.queue = queue

    def emit(self, line: str) -> None:
        self.queue.put_nowait(line)


def validate_script_name(name: str) -> None:
    """Validate a script reference before it reaches a URL or a shell.

    Raises ValueError if the name is invalid.
    """
    if not name:
        raise ValueError("Script name cannot be empty")
    if len(name) > _SCRIPT_NAME_MAX_LENGTH:
        raise ValueError(f"Script name exceeds {_SCRIPT_NAME_MAX_LENGTH} characters")
    if not _SCRIPT_NAME_PATTERN.match(name):
        raise ValueError(f"Invalid script name '{name}'")
    if any(part in (".", "..") for part in name.split("/")):
        raise ValueError(f"Invalid script name '{name}': relative path segments")


class InstallerRunner:
    """Runs named installer scripts with the cached sudo password."""

    def __init__(
        self,
        store: CredentialStore,
        fetcher: ScriptFetcher,
        sudo_path: str = SUDO_PATH,
        shell: str = SHELL,
        keepalive_interval: int = KEEPALIVE_INTERVAL,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.sudo_path = sudo_path
        self.shell = shell
        self.keepalive_interval = keepalive_interval

    async def run(
        self,
        script_name: str,
        sink: OutputSink,
        on_state: Callable[[RunState], None] | None = None,
    ) -> RunOutcome:
        """Run one script end to end. Never retries.

        Every expected failure comes back as ``RunOutcome(success=False)``.
        Cancelling the awaiting task terminates the child process.
        """

        def enter(state: RunState) -> None:
            logger.debug("Run %s -> %s", script_name, state.value)
            if on_state is not None:
                on_state(state)

        def fail(reason: str) -> RunOutcome:
            logger.warning("Run %s failed: %s", script_name, reason)
            enter(RunState.failed)
            return RunOutcome(success=False, error=reason)

        enter(RunState.idle)
        secret = self.store.get()
        if secret is None:
            return fail(NO_CREDENTIAL)
        try:
            validate_script_name(script_name)
        except ValueError as e:
            return fail(str(e))

        enter(RunState.fetching)
        _emit(sink, f"==> Fetching {self.fetcher.url_for(script_name)}...")
        try:
            body = await self.fetcher.fetch(script_name)
        except FetchError as e:
            return fail(str(e))

        workdir = tempfile.mkdtemp(prefix="scriptbay-")
        try:
            enter(RunState.wrapping)
            wrapped = build_wrapped_script(
                secret,
                body,
                sudo_path=self.sudo_path,
                tmp_root=workdir,
                keepalive_interval=self.keepalive_interval,
            )
            script_path = os.path.join(workdir, "install.sh")
            fd = os.open(script_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(wrapped)

            enter(RunState.starting)
            _emit(sink, "==> Running installation...")
            try:
                proc = await asyncio.create_subprocess_exec(
                    self.shell, script_path,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.STDOUT,
                    limit=_LINE_LIMIT,
                    start_new_session=True,
                )
            except OSError as e:
                return fail(f"Failed to run script: {e}")

            enter(RunState.streaming)
            logger.info("Run %s started (pid %d)", script_name, proc.pid)
            try:
                returncode = await _stream(proc, sink)
            except asyncio.CancelledError:
                logger.warning("Run %s cancelled, terminating pid %d", script_name, proc.pid)
                await _terminate(proc)
                raise
        finally:
            shutil.rmtree(workdir, ignore_errors=True)

        if returncode != 0:
            logger.info("Run %s exited with status %d", script_name, returncode)
            return fail(RUN_FAILED)

        _emit(sink, "")
        _emit(sink, "✅ Installation complete!")
        logger.info("Run %s completed", script_name)
        enter(RunState.succeeded)
        return RunOutcome(success=True)


def _emit(sink: OutputSink, line: str) -> None:
    """Forward a line; a broken sink must not stop the run."""
    try:
        sink.emit(line)
    except Exception:
        logger.debug("Dropping output line, sink failed", exc_info=True)


async def _stream(proc: asyncio.subprocess.Process, sink: OutputSink) -> int:
    """Forward merged output line by line, then reap the child."""
    assert proc.stdout is not None
    while True:
        try:
            raw = await proc.stdout.readline()
        except ValueError:
            # the reader discarded what it had buffered; any rest of the
            # line arrives as the next line
            _emit(sink, OVERSIZED_LINE)
            continue
        if not raw:
            break
        _emit(sink, raw.decode("utf-8", errors="replace").rstrip("\r\n"))
    return await proc.wait()


def _signal_group(proc: asyncio.subprocess.Process, sig: int) -> None:
    try:
        os.killpg(proc.pid, sig)
    except (ProcessLookupError, PermissionError):
        # group gone, or only root-owned members left
        pass


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    """SIGTERM the run's process group (the EXIT trap cleans up), SIGKILL if it lingers."""
    if proc.returncode is not None:
        return
    _signal_group(proc, signal.SIGTERM)
    try:
        await asyncio.wait_for(proc.wait(), timeout=_TERMINATE_GRACE)
    except asyncio.TimeoutError:
        _signal_group(proc, signal.SIGKILL)
        await proc.wait()
