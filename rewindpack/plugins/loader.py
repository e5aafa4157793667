"""Versioned plugin configuration loader.

Config files are JSON objects of the form::

    {
        "config_version": 1,
        "plugins": [
            {"entrypoint": "module:attribute", "options": {...}, "enabled": true}
        ]
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field
import importlib
import inspect
import json
from pathlib import Path
from typing import Any

from rewindpack.plugins.base import PLUGIN_API_VERSION, PLUGIN_CONFIG_VERSION
from rewindpack.plugins.exceptions import PluginConfigError, PluginLoadError
from rewindpack.plugins.manager import PluginManager

_SUPPORTED_ENTRY_KEYS = frozenset({"entrypoint", "options", "enabled"})


@dataclass(frozen=True, slots=True)
class PluginSpec:
    """One validated plugin entry from a config file."""

    index: int
    entrypoint: str
    options: dict[str, Any] = field(default_factory=dict)
    enabled: bool = True

    @property
    def module_name(self) -> str:
        return self.entrypoint.partition(":")[0]

    @property
    def attribute(self) -> str:
        return self.entrypoint.partition(":")[2]

    @classmethod
    def from_payload(cls, payload: Any, *, index: int) -> "PluginSpec":
        if not isinstance(payload, dict):
            raise PluginConfigError(f"Plugin entry #{index} must be a JSON object.")

        unknown = sorted(set(payload.keys()) - _SUPPORTED_ENTRY_KEYS)
        if unknown:
            raise PluginConfigError(
                f"Plugin entry #{index} contains unsupported keys: {', '.join(unknown)}"
            )

        enabled = payload.get("enabled", True)
        if not isinstance(enabled, bool):
            raise PluginConfigError(f"Plugin entry #{index} key 'enabled' must be boolean.")

        entrypoint = payload.get("entrypoint")
        if not isinstance(entrypoint, str) or ":" not in entrypoint:
            raise PluginConfigError(
                f"Plugin entry #{index} key 'entrypoint' must be 'module:attribute'."
            )

        options = payload.get("options", {})
        if not isinstance(options, dict):
            raise PluginConfigError(
                f"Plugin entry #{index} key 'options' must be a JSON object."
            )

        return cls(index=index, entrypoint=entrypoint, options=dict(options), enabled=enabled)


def load_plugin_manager_from_file(path: str | Path) -> PluginManager:
    """Load a plugin manager from JSON config."""
    config_path = Path(path)
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as error:
        raise PluginConfigError(f"Invalid plugin config JSON ({config_path}): {error}") from error

    return build_plugin_manager(raw, source=str(config_path))


def build_plugin_manager(raw: Any, *, source: str = "<memory>") -> PluginManager:
    """Build a plugin manager from an already-decoded config object."""
    if not isinstance(raw, dict):
        raise PluginConfigError(f"Plugin config must be a JSON object ({source}).")

    version = raw.get("config_version")
    if version != PLUGIN_CONFIG_VERSION:
        raise PluginConfigError(
            "Unsupported plugin config version "
            f"{version!r}; expected {PLUGIN_CONFIG_VERSION}."
        )

    entries = raw.get("plugins")
    if not isinstance(entries, list):
        raise PluginConfigError("Plugin config key 'plugins' must be a JSON array.")

    specs = [PluginSpec.from_payload(entry, index=index) for index, entry in enumerate(entries, start=1)]
    plugins = tuple(instantiate_plugin(spec) for spec in specs if spec.enabled)
    return PluginManager(plugins=plugins)


def instantiate_plugin(spec: PluginSpec) -> object:
    """Import, construct and version-check the plugin described by ``spec``."""
    target = _resolve_target(spec)

    if inspect.isclass(target) or callable(target):
        try:
            plugin = target(**spec.options)
        except Exception as error:
            raise PluginLoadError(
                f"Plugin entry #{spec.index} failed to instantiate '{spec.entrypoint}' "
                f"with options {sorted(spec.options.keys())}: {error}"
            ) from error
    elif spec.options:
        raise PluginLoadError(
            f"Plugin entry #{spec.index} uses non-callable '{spec.entrypoint}' "
            "and cannot accept options."
        )
    else:
        plugin = target

    declared = str(getattr(plugin, "api_version", PLUGIN_API_VERSION))
    if _major(declared) != _major(PLUGIN_API_VERSION):
        raise PluginLoadError(
            f"Plugin entry #{spec.index} '{spec.entrypoint}' declares unsupported api_version "
            f"{declared!r}; supported major version is {_major(PLUGIN_API_VERSION)}."
        )
    return plugin


def _resolve_target(spec: PluginSpec) -> object:
    try:
        module = importlib.import_module(spec.module_name)
    except Exception as error:
        raise PluginLoadError(
            f"Plugin entry #{spec.index} failed to import module '{spec.module_name}': {error}"
        ) from error

    try:
        return getattr(module, spec.attribute)
    except AttributeError as error:
        raise PluginLoadError(
            f"Plugin entry #{spec.index} could not find attribute "
            f"'{spec.attribute}' in '{spec.module_name}'."
        ) from error


def _major(version: str) -> str:
    return version.split(".", 1)[0]
