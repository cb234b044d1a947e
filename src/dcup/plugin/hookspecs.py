"""Pluggy hook specifications for dcup plugins.

All hooks use the "dcup" namespace and are validated by pluggy at
registration time.
"""

from __future__ import annotations

from typing import Any

import pluggy

from dcup.config import Settings

hookspec = pluggy.HookspecMarker("dcup")


class DcupSpec:
    """Hook specifications for dcup plugins."""

    @hookspec
    def dcup_editor(self, settings: Settings) -> Any | None:
        """Provide an editor integration.

        Editor plugins return an object with:
            - name (str): editor identifier matched against ``[editor].name``
            - documents() -> Iterable[Document]
            - open_browser(path: str) -> None
            - release_remote(host: str) -> None

        Returns:
            Editor object, or None if this plugin doesn't provide one.
        """
