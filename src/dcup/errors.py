"""Error taxonomy for the up/down flows.

Every failure a flow can report derives from :class:`DcupError`. None of
them are retried; the CLI prints the message and exits non-zero.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dcup.documents import DocumentFailure
    from dcup.types import BuildResult


class DcupError(Exception):
    """Base class for reported lifecycle failures."""


class ConfigNotFound(DcupError):
    """No ancestor of the start path holds a devcontainer config file."""

    def __init__(self, start: str | Path, candidates: Sequence[str]) -> None:
        self.start = str(start)
        self.candidates = list(candidates)
        super().__init__(
            f"No devcontainer config ({', '.join(self.candidates)}) found in {self.start} "
            "or any parent directory"
        )


class RemotePathUnsupported(DcupError):
    """The start path already lives inside a remote session."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Cannot start a devcontainer from remote path {path}")


class BuildFailed(DcupError):
    """The build tool reported something other than success."""

    def __init__(self, result: BuildResult) -> None:
        self.result = result
        super().__init__(f"devcontainer up did not succeed: {result.payload}")


class MalformedOutput(DcupError):
    """Subprocess output could not be decoded into the expected record."""

    def __init__(self, raw: bytes | str, reason: str) -> None:
        self.raw = raw
        self.reason = reason
        text = raw.decode(errors="replace") if isinstance(raw, bytes) else raw
        preview = text[:200] + "..." if len(text) > 200 else text
        super().__init__(f"Malformed output ({reason}): {preview!r}")


class SubprocessFailed(DcupError):
    """A command exited non-zero or could not be started."""

    def __init__(
        self,
        argv: Sequence[str],
        returncode: int | None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        detail = (stderr or stdout).strip()
        status = "could not be started" if returncode is None else f"failed (exit {returncode})"
        super().__init__(f"{' '.join(self.argv)} {status}: {detail}")


class NotInDevcontainer(DcupError):
    """The invoking context does not belong to a container session."""

    def __init__(self, context: str | None) -> None:
        self.context = context
        super().__init__(f"Not inside a devcontainer session: {context or '<no context>'}")


class DocumentCleanupError(DcupError):
    """One or more documents could not be saved or closed."""

    def __init__(self, failures: Sequence[DocumentFailure]) -> None:
        self.failures = list(failures)
        lines = "; ".join(f"{f.path}: {f.error}" for f in self.failures)
        super().__init__(f"{len(self.failures)} document(s) failed to save/close: {lines}")


class UpInProgress(DcupError):
    """An up flow is already pending for this workspace root."""

    def __init__(self, root: Path) -> None:
        self.root = root
        super().__init__(f"devcontainer up already running for {root}")
