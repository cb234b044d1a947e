"""Session registry: which container a workspace root is bound to.

Populated by the binder on a successful ``up`` and consulted by ``down``,
so teardown does not depend on the user currently viewing a file inside
the container. Entries are keyed by the resolved workspace root; at most
one binding exists per root.

When given a file, the registry is persisted as JSON after every change
so separate CLI invocations share it.
"""

from __future__ import annotations

import json
from pathlib import Path

from dcup.documents import is_within
from dcup.logger import logger
from dcup.types import RemoteSessionHandle
from dcup.utils import write_json_atomic


class SessionRegistry:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._sessions: dict[Path, RemoteSessionHandle] = {}
        if path is not None:
            self._load(path)

    def _load(self, path: Path) -> None:
        if not path.exists():
            return
        try:
            raw = json.loads(path.read_text())
            for root, entry in raw.get("sessions", {}).items():
                self._sessions[Path(root)] = RemoteSessionHandle.from_dict(entry)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            # A corrupt file only loses bookkeeping; containers stay reachable by address
            logger.warning("Ignoring unreadable session registry", path=str(path), err=str(exc))
            self._sessions.clear()

    def _save(self) -> None:
        if self._path is None:
            return
        data = {
            "sessions": {
                str(root): handle.to_dict() for root, handle in self._sessions.items()
            }
        }
        write_json_atomic(self._path, data, indent=2)

    def register(self, root: Path, handle: RemoteSessionHandle) -> None:
        previous = self._sessions.get(root)
        if previous is not None and previous.container_id != handle.container_id:
            logger.warning(
                "Replacing existing session binding",
                root=str(root),
                old_container=previous.container_id,
                new_container=handle.container_id,
            )
        self._sessions[root] = handle
        self._save()

    def get(self, root: Path) -> RemoteSessionHandle | None:
        return self._sessions.get(root)

    def lookup(self, path: str | Path) -> RemoteSessionHandle | None:
        """Return the session whose workspace root contains *path*.

        The innermost root wins when registered roots are nested.
        """
        best: tuple[int, RemoteSessionHandle] | None = None
        for root, handle in self._sessions.items():
            if is_within(str(path), str(root)):
                depth = len(root.parts)
                if best is None or depth > best[0]:
                    best = (depth, handle)
        return best[1] if best else None

    def by_container(self, container_id: str) -> RemoteSessionHandle | None:
        for handle in self._sessions.values():
            if handle.container_id == container_id:
                return handle
        return None

    def discard_container(self, container_id: str) -> list[Path]:
        """Drop every binding to *container_id*; returns the roots removed."""
        roots = [r for r, h in self._sessions.items() if h.container_id == container_id]
        for root in roots:
            del self._sessions[root]
        if roots:
            self._save()
        return roots

    def sessions(self) -> dict[Path, RemoteSessionHandle]:
        return dict(self._sessions)
