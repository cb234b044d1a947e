"""Shared test fixtures for dcup."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import pytest

from dcup.errors import SubprocessFailed
from dcup.process import StreamingProcess
from dcup.types import ProcessResult

# ---------------------------------------------------------------------------
# Shared helpers (plain functions, importable by test files)
# ---------------------------------------------------------------------------

# Cached property names that must be set via __dict__ (not model_construct).
_CACHED_PROPERTY_NAMES = frozenset({"cache_dir", "log_dir", "registry_file"})


def make_settings(**overrides):
    """Create a Settings object with sensible defaults for testing.

    Accepts both model fields (container, editor, ...) and cached property
    overrides (log_dir, registry_file). Run logs and the registry file are
    off unless a test asks for them, so nothing is written under $HOME.

    Usage::

        s = make_settings(log_dir=tmp_path)
        s = make_settings(container=ContainerConfig(engine="docker"))
    """
    from dcup.config import (
        ContainerConfig,
        EditorConfig,
        LoggingConfig,
        Settings,
        StateConfig,
    )

    cached = {"log_dir": None, "registry_file": None}
    cached.update({k: overrides.pop(k) for k in list(overrides) if k in _CACHED_PROPERTY_NAMES})

    defaults = {
        "container": ContainerConfig(),
        "editor": EditorConfig(),
        "logging": LoggingConfig(),
        "state": StateConfig(),
    }
    defaults.update(overrides)
    s = Settings.model_construct(**defaults)

    for key, value in cached.items():
        s.__dict__[key] = value

    return s


class FakeDocument:
    """Editor document that records saves and closes."""

    def __init__(
        self,
        path: str | None,
        *,
        save_error: Exception | None = None,
        close_error: Exception | None = None,
    ) -> None:
        self._path = path
        self.save_error = save_error
        self.close_error = close_error
        self.saved = False
        self.closed = False

    @property
    def path(self) -> str | None:
        return self._path

    def save(self) -> None:
        if self.save_error is not None:
            raise self.save_error
        self.saved = True

    def close(self) -> None:
        if self.close_error is not None:
            raise self.close_error
        self.closed = True

    def __repr__(self) -> str:
        return f"FakeDocument({self._path!r})"


class FakeEditor:
    """In-memory editor: open documents, opened browsers, released hosts."""

    name = "fake"

    def __init__(self) -> None:
        self.docs: list[FakeDocument] = []
        self.opened: list[str] = []
        self.released: list[str] = []

    def open(self, path: str | None, **kwargs) -> FakeDocument:
        doc = FakeDocument(path, **kwargs)
        self.docs.append(doc)
        return doc

    def documents(self) -> list[FakeDocument]:
        return [d for d in self.docs if not d.closed]

    def open_browser(self, path: str) -> None:
        self.opened.append(path)

    def release_remote(self, host: str) -> None:
        self.released.append(host)


class FakeProcess:
    """Simulates asyncio.subprocess.Process for testing."""

    def __init__(self) -> None:
        self.stdin = None
        self.stdout = asyncio.StreamReader()
        self.stderr = asyncio.StreamReader()
        self._returncode: int | None = None
        self._wait_event = asyncio.Event()
        self.pid = 12345

    def emit_stdout(self, data: bytes) -> None:
        self.stdout.feed_data(data)

    def emit_stderr(self, data: bytes) -> None:
        self.stderr.feed_data(data)

    def close(self, code: int = 0) -> None:
        """Simulate process exit."""
        self._returncode = code
        self.stdout.feed_eof()
        self.stderr.feed_eof()
        self._wait_event.set()

    async def wait(self) -> int:
        await self._wait_event.wait()
        return self._returncode  # type: ignore[return-value]

    @property
    def returncode(self) -> int | None:
        return self._returncode


class FakeSpawner:
    """Stands in for ``spawn_streaming``; each call gets a fresh FakeProcess."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.procs: list[FakeProcess] = []
        self.error: Exception | None = None

    async def __call__(self, argv: Sequence[str], *, on_output=None, log=None) -> StreamingProcess:
        self.calls.append(list(argv))
        if self.error is not None:
            raise self.error
        proc = FakeProcess()
        self.procs.append(proc)
        return StreamingProcess(proc, argv, on_output=on_output, log=log)


class FakeRunner:
    """Stands in for ``run_command_async``, answering by subcommand."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.responses: dict[str, str | SubprocessFailed] = {}

    def respond(self, subcommand: str, result: str | SubprocessFailed) -> None:
        self.responses[subcommand] = result

    async def __call__(self, argv: Sequence[str]) -> ProcessResult:
        argv = list(argv)
        self.calls.append(argv)
        response = self.responses.get(argv[1], "")
        if isinstance(response, SubprocessFailed):
            raise response
        return ProcessResult(argv=argv, returncode=0, stdout=response, stderr="")


# ---------------------------------------------------------------------------
# Autouse fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch):
    """Each test starts from pure defaults, ignoring config.toml and .env."""
    monkeypatch.setattr("dcup.config._settings", make_settings())


# ---------------------------------------------------------------------------
# Reusable fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def editor() -> FakeEditor:
    return FakeEditor()


@pytest.fixture
def workspace(tmp_path):
    """A project with a nested devcontainer config."""
    root = tmp_path / "proj"
    (root / ".devcontainer").mkdir(parents=True)
    (root / ".devcontainer" / "devcontainer.json").write_text('{"image": "debian"}')
    (root / "src").mkdir()
    return root
