"""Data models for dcup."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

LOCAL_FOLDER_LABEL = "devcontainer.local_folder"


class BuildOutcome(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    OTHER = "other"

    @classmethod
    def from_wire(cls, value: str) -> BuildOutcome:
        """Map the tool's ``outcome`` string; anything unrecognised is OTHER."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class BuildInvocation:
    """Command line for one ``devcontainer up`` run."""

    argv: tuple[str, ...]
    workspace_root: Path

    @classmethod
    def assemble(
        cls,
        workspace_root: Path,
        *,
        cli_prefix: list[str],
        engine_path: str,
        dotfiles_repository: str | None = None,
    ) -> BuildInvocation:
        argv = [
            *cli_prefix,
            "up",
            f"--docker-path={engine_path}",
            f"--workspace-folder={workspace_root}",
        ]
        if dotfiles_repository:
            argv.append(f"--dotfiles-repository={dotfiles_repository}")
        return cls(argv=tuple(argv), workspace_root=workspace_root)


@dataclass(frozen=True)
class BuildResult:
    """Decoded ``devcontainer up`` result.

    Everything except ``outcome`` and ``payload`` is only meaningful when
    ``outcome`` is SUCCESS.
    """

    outcome: BuildOutcome
    container_id: str | None = None
    remote_user: str | None = None
    remote_workspace_folder: str | None = None
    payload: str = ""  # the JSON text as emitted, for error reports
    message: str | None = None
    description: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def succeeded(self) -> bool:
        return self.outcome is BuildOutcome.SUCCESS


# engine:user@host:path, optionally prefixed with "/" (TRAMP style)
_REMOTE_RE = re.compile(
    r"^/?(?P<engine>[A-Za-z][\w.-]*):(?:(?P<user>[^@:/]+)@)?(?P<host>[^:/@]+):(?P<path>.*)$"
)


@dataclass(frozen=True)
class RemoteAddress:
    """Address of a path inside a running container."""

    engine: str
    user: str
    host: str
    path: str

    def __str__(self) -> str:
        user = f"{self.user}@" if self.user else ""
        return f"{self.engine}:{user}{self.host}:{self.path}"

    @classmethod
    def parse(cls, value: str) -> RemoteAddress | None:
        """Parse ``engine:user@host:path``; None for anything else."""
        match = _REMOTE_RE.match(value)
        if match is None:
            return None
        return cls(
            engine=match["engine"],
            user=match["user"] or "",
            host=match["host"],
            path=match["path"] or "/",
        )


def is_remote_path(value: str | Path) -> bool:
    return RemoteAddress.parse(str(value)) is not None


@dataclass(frozen=True)
class RemoteSessionHandle:
    """A live binding between a workspace root and a running container."""

    engine: str
    user: str
    container_id: str
    remote_workspace_folder: str
    workspace_root: Path | None = None

    @property
    def address(self) -> RemoteAddress:
        return RemoteAddress(
            engine=self.engine,
            user=self.user,
            host=self.container_id,
            path=self.remote_workspace_folder,
        )

    def to_dict(self) -> dict[str, str | None]:
        return {
            "engine": self.engine,
            "user": self.user,
            "container_id": self.container_id,
            "remote_workspace_folder": self.remote_workspace_folder,
            "workspace_root": str(self.workspace_root) if self.workspace_root else None,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> RemoteSessionHandle:
        root = raw.get("workspace_root")
        return cls(
            engine=raw["engine"],
            user=raw["user"],
            container_id=raw["container_id"],
            remote_workspace_folder=raw["remote_workspace_folder"],
            workspace_root=Path(root) if root else None,
        )


@dataclass
class ProcessResult:
    """A finished subprocess."""

    argv: list[str]
    returncode: int | None
    stdout: str
    stderr: str
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.returncode == 0
