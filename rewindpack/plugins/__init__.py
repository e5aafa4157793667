"""Plugin subsystem for RewindKit lifecycle extensions."""

from rewindpack.plugins.base import (
    PLUGIN_API_VERSION,
    PLUGIN_CONFIG_ENV_VAR,
    PLUGIN_CONFIG_VERSION,
    DiffEndEvent,
    DiffStartEvent,
    LifecyclePlugin,
    ReplayEndEvent,
    ReplayStartEvent,
    SnapshotCleanupEvent,
    SnapshotSaveEvent,
)
from rewindpack.plugins.exceptions import PluginConfigError, PluginError, PluginLoadError
from rewindpack.plugins.loader import (
    PluginSpec,
    build_plugin_manager,
    load_plugin_manager_from_file,
)
from rewindpack.plugins.manager import PluginDiagnostic, PluginManager
from rewindpack.plugins.reference import LifecycleTracePlugin
from rewindpack.plugins.runtime import (
    get_active_plugin_manager,
    reset_plugin_runtime_cache,
    use_plugin_manager,
    use_plugins_from_config,
)

__all__ = [
    "PLUGIN_API_VERSION",
    "PLUGIN_CONFIG_VERSION",
    "PLUGIN_CONFIG_ENV_VAR",
    "PluginError",
    "PluginConfigError",
    "PluginLoadError",
    "ReplayStartEvent",
    "ReplayEndEvent",
    "DiffStartEvent",
    "DiffEndEvent",
    "SnapshotSaveEvent",
    "SnapshotCleanupEvent",
    "LifecyclePlugin",
    "PluginDiagnostic",
    "PluginManager",
    "PluginSpec",
    "LifecycleTracePlugin",
    "build_plugin_manager",
    "load_plugin_manager_from_file",
    "get_active_plugin_manager",
    "use_plugin_manager",
    "use_plugins_from_config",
    "reset_plugin_runtime_cache",
]
