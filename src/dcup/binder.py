"""Bind a successful build to an editor session, and release it again."""

from __future__ import annotations

from pathlib import Path

from dcup.editor import Editor
from dcup.errors import BuildFailed, MalformedOutput
from dcup.logger import logger
from dcup.registry import SessionRegistry
from dcup.types import BuildResult, RemoteSessionHandle


class SessionBinder:
    """Opens the container's workspace in the editor and tracks the binding."""

    def __init__(self, editor: Editor, engine: str, registry: SessionRegistry) -> None:
        self._editor = editor
        self._engine = engine
        self._registry = registry

    def bind(self, result: BuildResult, workspace_root: Path | None = None) -> RemoteSessionHandle:
        """Open a browser at the container's workspace folder.

        Raises BuildFailed, without touching the editor, unless the build
        succeeded, and MalformedOutput if a success lacks connection details.
        """
        if not result.succeeded:
            raise BuildFailed(result)
        missing = [
            name
            for name in ("container_id", "remote_user", "remote_workspace_folder")
            if getattr(result, name) is None
        ]
        if missing:
            raise MalformedOutput(result.payload, f"success without {', '.join(missing)}")

        handle = RemoteSessionHandle(
            engine=self._engine,
            user=result.remote_user,
            container_id=result.container_id,
            remote_workspace_folder=result.remote_workspace_folder,
            workspace_root=workspace_root,
        )
        self._editor.open_browser(str(handle.address))
        if workspace_root is not None:
            self._registry.register(workspace_root, handle)
        logger.info(
            "Session bound",
            container=handle.container_id,
            address=str(handle.address),
            root=str(workspace_root) if workspace_root else None,
        )
        return handle

    def release(self, container_id: str) -> None:
        """Drop remote connection state for *container_id*. Safe to repeat."""
        self._editor.release_remote(container_id)
        roots = self._registry.discard_container(container_id)
        logger.info("Session released", container=container_id, roots=[str(r) for r in roots])
