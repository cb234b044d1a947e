"""Find the workspace root that owns a devcontainer configuration."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from dcup.config import DEFAULT_CONFIG_FILES
from dcup.errors import ConfigNotFound, RemotePathUnsupported
from dcup.logger import logger
from dcup.types import is_remote_path


@dataclass(frozen=True)
class ConfigLocation:
    root: Path  # the workspace root
    config_file: Path


def locate_config(
    start: str | Path,
    candidates: Sequence[str] = DEFAULT_CONFIG_FILES,
) -> ConfigLocation:
    """Search *start* and its ancestors for the first existing config file.

    Candidates are tried in order within each directory, so a nested
    ``.devcontainer/devcontainer.json`` beats a flat ``.devcontainer.json``
    in the same directory, but a flat file in a closer directory beats a
    nested one further up.
    """
    if is_remote_path(start):
        raise RemotePathUnsupported(str(start))

    path = Path(start).expanduser().absolute()
    directory = path if path.is_dir() else path.parent

    for ancestor in (directory, *directory.parents):
        for name in candidates:
            config_file = ancestor / name
            if config_file.is_file():
                logger.debug("Found devcontainer config", root=str(ancestor), config=name)
                return ConfigLocation(root=ancestor, config_file=config_file)

    raise ConfigNotFound(start, candidates)


def find_workspace_root(
    start: str | Path,
    candidates: Sequence[str] = DEFAULT_CONFIG_FILES,
) -> Path:
    """Return the nearest directory at or above *start* holding a config file."""
    return locate_config(start, candidates).root
