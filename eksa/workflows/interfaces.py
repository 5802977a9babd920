"""Capability sets the workflows depend on.

Concrete providers (vSphere, Docker, ...), the bootstrapper, the
cluster manager and the addon manager are supplied by the surrounding
system.  Production and test implementations are interchangeable
behind these protocols; any object with matching methods qualifies.

Every operation signals failure by raising.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from eksa.cluster.models import Cluster, ClusterSpec, KubeObject
from eksa.validations.runner import Validation


@runtime_checkable
class Provider(Protocol):
    """Infrastructure-specific plugin."""

    def name(self) -> str:
        ...

    def bootstrap_cluster_opts(self) -> Dict[str, Any]:
        """Extra options for creating the bootstrap cluster (e.g. extra mounts)."""
        ...

    def bootstrap_setup(self, cluster_config: KubeObject, cluster: Cluster) -> None:
        ...

    def setup_and_validate_create_cluster(self, cluster_spec: ClusterSpec) -> None:
        ...

    def datacenter_config(self) -> KubeObject:
        ...

    def machine_configs(self) -> List[KubeObject]:
        ...


@runtime_checkable
class Bootstrapper(Protocol):
    """Creates and deletes the temporary bootstrap cluster."""

    def create_bootstrap_cluster(self, cluster_spec: ClusterSpec, **opts: Any) -> Cluster:
        ...

    def delete_bootstrap_cluster(self, cluster: Cluster, force: bool = False) -> None:
        ...


@runtime_checkable
class ClusterManager(Protocol):
    """Drives cluster-api and eksa components on a cluster."""

    def install_capi(self, cluster_spec: ClusterSpec, cluster: Cluster, provider: Provider) -> None:
        ...

    def create_workload_cluster(
        self, management_cluster: Cluster, cluster_spec: ClusterSpec, provider: Provider,
    ) -> Cluster:
        ...

    def install_networking(self, cluster: Cluster, cluster_spec: ClusterSpec) -> None:
        ...

    def install_storage_class(self, cluster: Cluster, provider: Provider) -> None:
        ...

    def install_machine_health_checks(self, cluster: Cluster, provider: Provider) -> None:
        ...

    def move_capi(self, from_cluster: Cluster, to_cluster: Cluster) -> None:
        ...

    def install_custom_components(self, cluster_spec: ClusterSpec, cluster: Cluster) -> None:
        ...

    def create_eksa_resources(
        self,
        cluster: Cluster,
        cluster_spec: ClusterSpec,
        datacenter_config: KubeObject,
        machine_configs: List[KubeObject],
    ) -> None:
        ...

    def resume_eksa_controller_reconcile(
        self, cluster: Cluster, cluster_spec: ClusterSpec, provider: Provider,
    ) -> None:
        ...

    def save_logs(self, cluster: Optional[Cluster]) -> None:
        ...


@runtime_checkable
class AddonManager(Protocol):
    """Installs the GitOps toolkit and contributes its own validations."""

    def install_gitops(
        self,
        cluster: Cluster,
        cluster_spec: ClusterSpec,
        datacenter_config: KubeObject,
        machine_configs: List[KubeObject],
    ) -> None:
        ...

    def validations(self, cluster_spec: ClusterSpec) -> List[Validation]:
        ...


@runtime_checkable
class Writer(Protocol):
    """Persists named artifacts (see :class:`eksa.filewriter.FileWriter`)."""

    def write(self, name: str, content: str | bytes) -> Path:
        ...
