"""Editor for terminal use.

A terminal has no open documents, so document cleanup is a no-op. Opening a
browser either runs the configured command with the path appended (for
example ``emacsclient -n`` with ``remote_prefix = "/"`` to get TRAMP paths)
or prints the path for the user.
"""

from __future__ import annotations

import sys
from collections.abc import Iterable
from typing import TextIO

from dcup.editor import Document
from dcup.logger import logger
from dcup.process import run_command
from dcup.types import is_remote_path


class ConsoleEditor:
    name = "console"

    def __init__(
        self,
        open_command: list[str] | None = None,
        *,
        remote_prefix: str = "",
        stream: TextIO | None = None,
    ) -> None:
        self._open_command = open_command
        self._remote_prefix = remote_prefix
        self._stream = stream or sys.stdout
        self.opened: list[str] = []

    def documents(self) -> Iterable[Document]:
        return ()

    def open_browser(self, path: str) -> None:
        if is_remote_path(path):
            path = self._remote_prefix + path
        self.opened.append(path)
        if self._open_command:
            run_command([*self._open_command, path])
            logger.info("Opened in editor", path=path, command=self._open_command[0])
        else:
            print(path, file=self._stream)

    def release_remote(self, host: str) -> None:
        logger.debug("No remote connection state to release", host=host)
