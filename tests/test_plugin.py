"""Tests for editor plugin discovery."""

from __future__ import annotations

import pluggy
import pytest
from conftest import FakeEditor, make_settings

from dcup.config import EditorConfig
from dcup.plugin import UnknownEditorError, get_editor, get_plugin_manager
from dcup.plugin.hookspecs import DcupSpec
from dcup.plugins.console_editor import ConsoleEditorPlugin
from dcup.plugins.console_editor.editor import ConsoleEditor

hookimpl = pluggy.HookimplMarker("dcup")


class FakeEditorPlugin:
    @hookimpl
    def dcup_editor(self, settings):
        return FakeEditor()


class BrokenEditorPlugin:
    @hookimpl
    def dcup_editor(self, settings):
        return object()


def _pm(*plugins) -> pluggy.PluginManager:
    pm = pluggy.PluginManager("dcup")
    pm.add_hookspecs(DcupSpec)
    for plugin in plugins:
        pm.register(plugin)
    return pm


class TestGetEditor:
    def test_default_is_console(self):
        editor = get_editor(make_settings())
        assert isinstance(editor, ConsoleEditor)

    def test_console_receives_settings(self):
        settings = make_settings(editor=EditorConfig(remote_prefix="/"))
        editor = get_editor(settings, _pm(ConsoleEditorPlugin()))
        assert isinstance(editor, ConsoleEditor)
        assert editor._remote_prefix == "/"

    def test_third_party_editor(self):
        settings = make_settings(editor=EditorConfig(name="Fake"))
        editor = get_editor(settings, _pm(ConsoleEditorPlugin(), FakeEditorPlugin()))
        assert isinstance(editor, FakeEditor)

    def test_unknown_name_lists_available(self):
        settings = make_settings(editor=EditorConfig(name="vim"))
        with pytest.raises(UnknownEditorError, match="console"):
            get_editor(settings, _pm(ConsoleEditorPlugin()))

    def test_invalid_objects_skipped(self):
        settings = make_settings(editor=EditorConfig(name="fake"))
        editor = get_editor(settings, _pm(BrokenEditorPlugin(), FakeEditorPlugin()))
        assert isinstance(editor, FakeEditor)


class TestPluginManager:
    def test_builtin_registered(self):
        pm = get_plugin_manager()
        assert pm.get_plugin("builtin-console") is not None
