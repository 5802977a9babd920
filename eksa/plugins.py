"""Collaborator resolution.

Provider, bootstrapper, cluster manager and addon manager are supplied
by a factory referenced as ``package.module:callable``.  The factory is
called with the loaded :class:`~eksa.cluster.loader.ClusterConfig` and
returns a :class:`Dependencies`.

The reference comes from ``--plugin`` or the ``EKSA_PLUGIN`` env var.
"""

from __future__ import annotations

import importlib
import logging
import os
from dataclasses import dataclass
from typing import Callable, Optional

from eksa.cluster.loader import ClusterConfig
from eksa.errors import PluginError
from eksa.workflows.interfaces import (
    AddonManager,
    Bootstrapper,
    ClusterManager,
    Provider,
)

logger = logging.getLogger(__name__)

PLUGIN_ENV = "EKSA_PLUGIN"


@dataclass
class Dependencies:
    """The collaborator set one workflow run is wired with."""

    provider: Provider
    bootstrapper: Bootstrapper
    cluster_manager: ClusterManager
    addon_manager: AddonManager


DependencyFactory = Callable[[ClusterConfig], Dependencies]


def resolve_factory(ref: str) -> DependencyFactory:
    """Import ``module:attr`` and return the callable it names."""
    module_name, sep, attr = ref.partition(":")
    if not sep or not module_name or not attr:
        raise PluginError(f"plugin reference must look like 'module:factory', got {ref!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise PluginError(f"cannot import plugin module {module_name!r}: {exc}") from exc
    factory = getattr(module, attr, None)
    if not callable(factory):
        raise PluginError(f"plugin {ref!r} is not callable")
    return factory


def load_dependencies(cluster_config: ClusterConfig, ref: Optional[str] = None) -> Dependencies:
    """Build the collaborator set for *cluster_config*.

    Raises:
        PluginError: no reference configured, import failure, or the
            factory returned objects missing required operations.
    """
    ref = ref or os.environ.get(PLUGIN_ENV, "")
    if not ref:
        raise PluginError(f"no plugin configured; pass --plugin or set {PLUGIN_ENV}")

    deps = resolve_factory(ref)(cluster_config)
    if not isinstance(deps, Dependencies):
        raise PluginError(f"plugin {ref!r} returned {type(deps).__name__}, expected Dependencies")

    checks = (
        ("provider", deps.provider, Provider),
        ("bootstrapper", deps.bootstrapper, Bootstrapper),
        ("cluster_manager", deps.cluster_manager, ClusterManager),
        ("addon_manager", deps.addon_manager, AddonManager),
    )
    for field_name, obj, proto in checks:
        if not isinstance(obj, proto):
            raise PluginError(
                f"plugin {ref!r}: {field_name} does not implement {proto.__name__}"
            )

    logger.info("Loaded plugin %s (provider=%s)", ref, deps.provider.name())
    return deps
