"""Console editor plugin: drives an external command or prints addresses."""

from __future__ import annotations

from typing import Any

import pluggy

from dcup.config import Settings

from .editor import ConsoleEditor

hookimpl = pluggy.HookimplMarker("dcup")


class ConsoleEditorPlugin:
    """Plugin providing the console editor."""

    @hookimpl
    def dcup_editor(self, settings: Settings) -> Any | None:
        return ConsoleEditor(
            open_command=settings.editor.open_command,
            remote_prefix=settings.editor.remote_prefix,
        )
