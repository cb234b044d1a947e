"""Plugin system for dcup.

Editor integrations are plugins: the built-in console editor ships with
dcup, others register through the ``dcup`` entry-point group.

Usage:
    from dcup.plugin import get_editor

    editor = get_editor(settings)
"""

from __future__ import annotations

import importlib

import pluggy

from dcup.config import Settings
from dcup.editor import Editor, is_valid_editor
from dcup.logger import logger
from dcup.plugin.hookspecs import DcupSpec

__all__ = [
    "UnknownEditorError",
    "get_editor",
    "get_plugin_manager",
]

# Static registry of built-in plugins: (module_path, class_name, plugin_key)
_BUILTIN_PLUGIN_SPECS: list[tuple[str, str, str]] = [
    ("dcup.plugins.console_editor", "ConsoleEditorPlugin", "console"),
]


class UnknownEditorError(LookupError):
    """No registered plugin provides the configured editor."""


def get_plugin_manager() -> pluggy.PluginManager:
    """Create a plugin manager with built-in and entry-point plugins."""
    pm = pluggy.PluginManager("dcup")
    pm.add_hookspecs(DcupSpec)

    for module_path, class_name, key in _BUILTIN_PLUGIN_SPECS:
        mod = importlib.import_module(module_path)
        pm.register(getattr(mod, class_name)(), name=f"builtin-{key}")

    discovered = pm.load_setuptools_entrypoints("dcup")
    if discovered:
        logger.info("Discovered third-party plugins", count=discovered)

    # Entry points may hand back plugin classes instead of instances
    for plugin in list(pm.get_plugins()):
        if isinstance(plugin, type):
            plugin_name = pm.get_name(plugin) or plugin.__name__
            pm.unregister(plugin=plugin)
            logger.warning("Unregistered invalid class-based plugin object", plugin=plugin_name)

    logger.debug("Plugin manager ready", plugins=[pm.get_name(p) for p in pm.get_plugins()])
    return pm


def get_editor(settings: Settings, pm: pluggy.PluginManager | None = None) -> Editor:
    """Return the editor named by ``[editor].name``."""
    pm = pm or get_plugin_manager()
    wanted = settings.editor.name.lower().strip()
    available: list[str] = []
    for candidate in pm.hook.dcup_editor(settings=settings):
        if candidate is None:
            continue
        if not is_valid_editor(candidate):
            logger.warning("Ignoring invalid editor object", editor_type=type(candidate).__name__)
            continue
        name = str(candidate.name).lower().strip()
        if name == wanted:
            return candidate
        available.append(name)
    msg = f"No editor plugin named {wanted!r} (available: {', '.join(sorted(available)) or 'none'})"
    raise UnknownEditorError(msg)
