"""Tests for log level handling."""

from __future__ import annotations

import logging

import pytest

from dcup import logger as logger_module
from dcup.logger import set_level


@pytest.fixture
def root_level():
    root = logging.getLogger()
    previous = root.level
    yield root
    root.setLevel(previous)


class TestSetLevel:
    def test_applies_configured_level(self, root_level):
        set_level("debug")
        assert root_level.level == logging.DEBUG

    def test_unknown_name_ignored(self, root_level):
        set_level("WARNING")
        set_level("chatty")
        assert root_level.level == logging.WARNING


class TestInitialLevel:
    def test_dcup_variable_wins(self, monkeypatch):
        monkeypatch.setenv("DCUP_LOGGING__LEVEL", "error")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        assert logger_module._initial_level() == logging.ERROR

    def test_falls_back_to_log_level(self, monkeypatch):
        monkeypatch.delenv("DCUP_LOGGING__LEVEL", raising=False)
        monkeypatch.setenv("LOG_LEVEL", "warning")
        assert logger_module._initial_level() == logging.WARNING

    def test_default_info(self, monkeypatch):
        monkeypatch.delenv("DCUP_LOGGING__LEVEL", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert logger_module._initial_level() == logging.INFO
