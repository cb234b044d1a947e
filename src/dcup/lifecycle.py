"""Lifecycle controller: brings devcontainer sessions up and tears them down.

Up:   locate config → assemble invocation → spawn build → (process exits)
      → parse → bind → close local documents under the workspace root
Down: identify host → save and close its documents → land on the local
      folder → release the remote connection → remove the container

Each run is computed fresh from the editor and the container engine; the
only state kept between runs is the session registry.

``start_up()`` returns as soon as the build process is running. The rest of
the flow runs as a background task whose outcome is ``UpOperation.result``;
if nobody awaits it, the flow still completes and failures are logged by
the task's done-callback.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from dcup.binder import SessionBinder
from dcup.config import Settings
from dcup.documents import (
    DocumentFailure,
    local_documents,
    raise_for_failures,
    remote_documents,
    save_and_close,
)
from dcup.editor import Editor
from dcup.errors import (
    DcupError,
    MalformedOutput,
    NotInDevcontainer,
    SubprocessFailed,
    UpInProgress,
)
from dcup.locator import find_workspace_root
from dcup.logger import logger
from dcup.parsing import parse_build_result, parse_container_labels
from dcup.process import (
    BuildLog,
    OnOutput,
    StreamingProcess,
    run_command_async,
    spawn_streaming,
)
from dcup.registry import SessionRegistry
from dcup.types import (
    LOCAL_FOLDER_LABEL,
    BuildInvocation,
    ProcessResult,
    RemoteAddress,
    RemoteSessionHandle,
)
from dcup.utils import create_background_task

SUPPORTED_ENGINES = ("docker", "podman")

Spawner = Callable[..., Awaitable[StreamingProcess]]
CommandRunner = Callable[[Sequence[str]], Awaitable[ProcessResult]]


class UpState(Enum):
    IDLE = "idle"
    LOCATE_CONFIG = "locate_config"
    INVOCATION_ASSEMBLED = "invocation_assembled"
    PROCESS_SPAWNED = "process_spawned"
    RESULT_RECEIVED = "result_received"
    BOUND = "bound"
    FAILED = "failed"


class DownState(Enum):
    IDLE = "idle"
    IDENTIFY_HOST = "identify_host"
    COLLECT_DOCUMENTS = "collect_documents"
    RELEASED = "released"
    REMOVED = "removed"
    REMOVAL_FAILED = "removal_failed"
    FAILED = "failed"


@dataclass
class UpOperation:
    """A spawned ``up`` flow. Await ``result`` for the bound session."""

    workspace_root: Path
    invocation: BuildInvocation
    process: StreamingProcess
    state: UpState = UpState.PROCESS_SPAWNED
    result: asyncio.Future[RemoteSessionHandle] | None = None
    cleanup_failures: list[DocumentFailure] = field(default_factory=list)

    def __await__(self):
        assert self.result is not None
        return self.result.__await__()


class LifecycleController:
    """Orchestrates up/down for one configuration and one editor."""

    def __init__(
        self,
        settings: Settings,
        editor: Editor,
        *,
        registry: SessionRegistry | None = None,
        spawn: Spawner = spawn_streaming,
        run: CommandRunner = run_command_async,
    ) -> None:
        self._settings = settings
        self._editor = editor
        self.registry = registry if registry is not None else SessionRegistry()
        self.binder = SessionBinder(editor, settings.container.engine, self.registry)
        self._spawn = spawn
        self._run = run
        self._pending: set[Path] = set()
        self.down_state = DownState.IDLE

    # ------------------------------------------------------------------
    # Up
    # ------------------------------------------------------------------

    def build_invocation(self, workspace_root: Path) -> BuildInvocation:
        container = self._settings.container
        return BuildInvocation.assemble(
            workspace_root,
            cli_prefix=container.cli_prefix,
            engine_path=container.engine_executable,
            dotfiles_repository=container.dotfiles_repository,
        )

    async def start_up(
        self, start: str | Path, *, on_output: OnOutput | None = None
    ) -> UpOperation:
        """Spawn ``devcontainer up`` for the workspace containing *start*.

        Raises ConfigNotFound / RemotePathUnsupported before anything is
        spawned, UpInProgress if this root already has a pending flow, and
        SubprocessFailed if the CLI cannot be started.
        """
        workspace_root = find_workspace_root(start, self._settings.container.config_files)
        if workspace_root in self._pending:
            raise UpInProgress(workspace_root)
        invocation = self.build_invocation(workspace_root)

        self._pending.add(workspace_root)
        try:
            process = await self._spawn(
                invocation.argv,
                on_output=on_output,
                log=BuildLog(self._settings.log_dir, label="devcontainer-up"),
            )
        except BaseException:
            self._pending.discard(workspace_root)
            raise

        op = UpOperation(workspace_root=workspace_root, invocation=invocation, process=process)
        op.result = create_background_task(
            self._finish_up(op), name=f"up-{workspace_root.name}"
        )
        logger.info("devcontainer up started", root=str(workspace_root))
        return op

    async def up(
        self, start: str | Path, *, on_output: OnOutput | None = None
    ) -> RemoteSessionHandle:
        """Run the whole up flow and wait for the session."""
        op = await self.start_up(start, on_output=on_output)
        return await op

    async def _finish_up(self, op: UpOperation) -> RemoteSessionHandle:
        root = op.workspace_root
        try:
            finished = await op.process.result
            op.state = UpState.RESULT_RECEIVED
            try:
                build = parse_build_result(finished.stdout)
            except MalformedOutput:
                if not finished.ok:
                    raise SubprocessFailed(
                        finished.argv, finished.returncode, finished.stdout, finished.stderr
                    ) from None
                raise

            handle = self.binder.bind(build, root)
            op.state = UpState.BOUND

            # The container's copy of the workspace replaces the local buffers
            op.cleanup_failures = save_and_close(local_documents(self._editor, str(root)))
            if op.cleanup_failures:
                logger.error(
                    "Some local documents stayed open",
                    root=str(root),
                    failed=[f.path for f in op.cleanup_failures],
                )
            return handle
        except DcupError as exc:
            op.state = UpState.FAILED
            logger.error("devcontainer up failed", root=str(root), err=str(exc))
            raise
        finally:
            self._pending.discard(root)

    # ------------------------------------------------------------------
    # Down
    # ------------------------------------------------------------------

    def _engine_cli(self, engine: str) -> str:
        container = self._settings.container
        return container.engine_executable if engine == container.engine else engine

    def identify_host(self, context: str | Path | None) -> tuple[str, str]:
        """Return ``(engine, container_id)`` for the invoking context.

        *context* is the current document's path: a remote address inside a
        container, or a local path under a workspace root with a registered
        session.
        """
        if context:
            address = RemoteAddress.parse(str(context))
            if address is not None:
                if address.engine in SUPPORTED_ENGINES:
                    return address.engine, address.host
            else:
                handle = self.registry.lookup(Path(context).expanduser().absolute())
                if handle is not None:
                    return handle.engine, handle.container_id
        raise NotInDevcontainer(str(context) if context else None)

    async def down(self, context: str | Path | None) -> str:
        """Tear down the session *context* belongs to and remove its container.

        Returns the engine's confirmation (the removed container id). Editor
        cleanup is not rolled back if removal fails.
        """
        self.down_state = DownState.IDENTIFY_HOST
        try:
            engine, host = self.identify_host(context)
        except NotInDevcontainer:
            self.down_state = DownState.FAILED
            raise
        cli = self._engine_cli(engine)
        logger.info("Tearing down devcontainer", container=host, engine=engine)

        try:
            self.down_state = DownState.COLLECT_DOCUMENTS
            # Unsaved work would be lost with the container, so stop here on failure
            raise_for_failures(save_and_close(remote_documents(self._editor, host)))

            inspected = await self._run([cli, "container", "inspect", host])
            local_folder = parse_container_labels(inspected.stdout)[LOCAL_FOLDER_LABEL]
            self._editor.open_browser(local_folder)
            self.binder.release(host)
            self.down_state = DownState.RELEASED
        except DcupError:
            self.down_state = DownState.FAILED
            raise

        try:
            removed = await self._run([cli, "rm", "-f", host])
        except SubprocessFailed as exc:
            self.down_state = DownState.REMOVAL_FAILED
            logger.error("Container removal failed", container=host, err=str(exc))
            raise

        self.down_state = DownState.REMOVED
        confirmation = removed.stdout.strip()
        logger.info("Container removed", container=confirmation or host)
        return confirmation
