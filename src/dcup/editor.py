"""Editor integration contract.

dcup does not implement remote file access or any UI. It drives an editor
through this small protocol; concrete editors come from plugins (see
:mod:`dcup.plugin`). A document's ``path`` is either a local filesystem path,
a remote address (``engine:user@host:path``), or None for buffers with no
backing file or directory.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable


@runtime_checkable
class Document(Protocol):
    """An open, possibly modified file or directory listing."""

    @property
    def path(self) -> str | None: ...

    def save(self) -> None: ...
    def close(self) -> None: ...


@runtime_checkable
class Editor(Protocol):
    """Editor contract implemented by built-ins and plugins."""

    name: str

    def documents(self) -> Iterable[Document]:
        """Currently open documents."""
        ...

    def open_browser(self, path: str) -> None:
        """Open a directory browser at a local path or remote address."""
        ...

    def release_remote(self, host: str) -> None:
        """Drop connection state for *host*. Must be a no-op when none exists."""
        ...


def is_valid_editor(candidate: object) -> bool:
    return all(
        [
            hasattr(candidate, "name"),
            callable(getattr(candidate, "documents", None)),
            callable(getattr(candidate, "open_browser", None)),
            callable(getattr(candidate, "release_remote", None)),
        ]
    )
