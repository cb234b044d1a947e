"""Subprocess management: blocking helper calls and the streaming build run.

Provides:
  - run_command(): run a short command to completion, raise on non-zero exit
  - run_command_async(): the same without blocking the event loop
  - BuildLog: persistent log surface for a build's stderr (structlog + run log file)
  - spawn_streaming(): start a long-running command and return immediately
  - StreamingProcess: accumulates stdout, reports progress, resolves on exit
"""

from __future__ import annotations

import asyncio
import codecs
import subprocess
import time
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import IO

from dcup.errors import SubprocessFailed
from dcup.logger import logger
from dcup.types import ProcessResult
from dcup.utils import create_background_task

# Called with the complete stdout accumulated so far, after every chunk.
OnOutput = Callable[[str], None]

_READ_SIZE = 8192


def run_command(argv: Sequence[str], *, check: bool = True) -> ProcessResult:
    """Run *argv* to completion (blocking, so keep it short-lived).

    Raises SubprocessFailed on a non-zero exit when *check* is set, and
    always when the executable cannot be started.
    """
    start = time.monotonic()
    try:
        completed = subprocess.run(
            list(argv),
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise SubprocessFailed(argv, None, stderr=str(exc)) from exc

    result = ProcessResult(
        argv=list(argv),
        returncode=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr,
        duration_ms=(time.monotonic() - start) * 1000,
    )
    if check and not result.ok:
        raise SubprocessFailed(argv, result.returncode, result.stdout, result.stderr)
    return result


async def run_command_async(argv: Sequence[str], *, check: bool = True) -> ProcessResult:
    """Run a short command without blocking the event loop."""
    return await asyncio.to_thread(run_command, argv, check=check)


class BuildLog:
    """Log surface for a build's stderr.

    Every line goes to the structured logger and, when a directory is given,
    to a timestamped run log file that outlives the process.
    """

    def __init__(self, log_dir: Path | None = None, *, label: str = "build") -> None:
        self.label = label
        self.lines: list[str] = []
        self.path: Path | None = None
        self._fh: IO[str] | None = None
        if log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            ts = datetime.now(UTC).isoformat().replace(":", "-").replace(".", "-")
            self.path = log_dir / f"{label}-{ts}.log"

    def open(self, argv: Sequence[str]) -> None:
        if self.path is None:
            return
        self._fh = self.path.open("a", encoding="utf-8")
        self._fh.write(f"=== {self.label} ===\n")
        self._fh.write(f"Timestamp: {datetime.now(UTC).isoformat()}\n")
        self._fh.write(f"Command: {' '.join(argv)}\n\n")
        self._fh.flush()

    def write(self, line: str) -> None:
        self.lines.append(line)
        logger.debug(line, source=self.label)
        if self._fh is not None:
            self._fh.write(line + "\n")
            self._fh.flush()

    def close(self, returncode: int | None, duration_ms: float) -> None:
        if self._fh is None:
            return
        self._fh.write(f"\n=== Exit Code: {returncode} ({duration_ms:.0f}ms) ===\n")
        self._fh.close()
        self._fh = None


class StreamingProcess:
    """A running command whose output is collected until it exits.

    ``result`` is a future for the finished ProcessResult. Callers must parse
    the final stdout from it rather than from progress callbacks: a JSON
    payload can arrive split across several writes.
    """

    def __init__(
        self,
        proc: asyncio.subprocess.Process,
        argv: Sequence[str],
        *,
        on_output: OnOutput | None = None,
        log: BuildLog | None = None,
    ) -> None:
        self.proc = proc
        self.argv = list(argv)
        self._on_output = on_output
        self._log = log or BuildLog()
        self._stdout = bytearray()
        self._started = time.monotonic()
        self.result: asyncio.Future[ProcessResult] = create_background_task(
            self._run(), name=f"process-{self.argv[0]}"
        )

    @property
    def stdout(self) -> str:
        return self._stdout.decode(errors="replace")

    @property
    def log_path(self) -> Path | None:
        return self._log.path

    async def _read_stdout(self, stream: asyncio.StreamReader) -> None:
        while chunk := await stream.read(_READ_SIZE):
            self._stdout.extend(chunk)
            if self._on_output is None:
                continue
            try:
                self._on_output(self.stdout)
            except Exception:
                logger.exception("Output callback failed", command=self.argv[0])

    async def _read_stderr(self, stream: asyncio.StreamReader) -> str:
        buf: list[str] = []
        pending = ""
        # Chunks can end inside a multi-byte character
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while chunk := await stream.read(_READ_SIZE):
            text = pending + decoder.decode(chunk)
            *lines, pending = text.split("\n")
            for line in lines:
                buf.append(line)
                if line.strip():
                    self._log.write(line)
        pending += decoder.decode(b"", final=True)
        if pending:
            buf.append(pending)
            if pending.strip():
                self._log.write(pending)
        return "\n".join(buf)

    async def _run(self) -> ProcessResult:
        assert self.proc.stdout is not None
        assert self.proc.stderr is not None
        self._log.open(self.argv)
        _, stderr = await asyncio.gather(
            self._read_stdout(self.proc.stdout),
            self._read_stderr(self.proc.stderr),
        )
        returncode = await self.proc.wait()
        duration_ms = (time.monotonic() - self._started) * 1000
        self._log.close(returncode, duration_ms)
        logger.info(
            "Process exited",
            command=self.argv[0],
            exit_code=returncode,
            duration_ms=round(duration_ms),
        )
        return ProcessResult(
            argv=self.argv,
            returncode=returncode,
            stdout=self.stdout,
            stderr=stderr,
            duration_ms=duration_ms,
        )


async def spawn_streaming(
    argv: Sequence[str],
    *,
    on_output: OnOutput | None = None,
    log: BuildLog | None = None,
) -> StreamingProcess:
    """Start *argv* and return as soon as it is running.

    Raises SubprocessFailed if the executable cannot be started.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise SubprocessFailed(argv, None, stderr=str(exc)) from exc

    logger.info("Process started", command=argv[0], pid=proc.pid)
    return StreamingProcess(proc, argv, on_output=on_output, log=log)
