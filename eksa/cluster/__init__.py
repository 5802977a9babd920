"""Cluster configuration models, loading, and write-back."""

from eksa.cluster.loader import ClusterConfig, load_bundles, load_cluster_config
from eksa.cluster.marshaller import cluster_config_filename, write_cluster_config
from eksa.cluster.models import (
    API_VERSION,
    EKSA_SYSTEM_NAMESPACE,
    PAUSED_ANNOTATION,
    Cluster,
    ClusterSpec,
    ComponentBundle,
    KubeObject,
    Manifest,
    ObjectMeta,
    VersionsBundle,
)

__all__ = [
    "API_VERSION",
    "EKSA_SYSTEM_NAMESPACE",
    "PAUSED_ANNOTATION",
    "Cluster",
    "ClusterConfig",
    "ClusterSpec",
    "ComponentBundle",
    "KubeObject",
    "Manifest",
    "ObjectMeta",
    "VersionsBundle",
    "cluster_config_filename",
    "load_bundles",
    "load_cluster_config",
    "write_cluster_config",
]
