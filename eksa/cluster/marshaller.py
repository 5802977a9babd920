"""Write-back of the final, resolved cluster configuration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from eksa.cluster.models import ClusterSpec, KubeObject
from eksa.filewriter import FileWriter

logger = logging.getLogger(__name__)


def cluster_config_filename(cluster_name: str) -> str:
    return f"{cluster_name}-eks-a-cluster.yaml"


def marshal_cluster_config(
    cluster_spec: ClusterSpec,
    datacenter_config: Optional[KubeObject],
    machine_configs: Sequence[KubeObject],
) -> str:
    """Render cluster, datacenter and machine objects as one YAML stream.

    Documents are emitted in that order, separated by ``---``.
    """
    docs: List[Dict[str, Any]] = [cluster_spec.cluster.to_manifest()]
    if datacenter_config is not None:
        docs.append(datacenter_config.to_manifest())
    docs.extend(m.to_manifest() for m in machine_configs)
    return yaml.safe_dump_all(docs, default_flow_style=False, sort_keys=False)


def write_cluster_config(
    cluster_spec: ClusterSpec,
    datacenter_config: Optional[KubeObject],
    machine_configs: Sequence[KubeObject],
    writer: FileWriter,
) -> Path:
    """Persist the resolved cluster config keyed by cluster name."""
    content = marshal_cluster_config(cluster_spec, datacenter_config, machine_configs)
    path = writer.write(cluster_config_filename(cluster_spec.name), content)
    logger.info("Cluster config written to %s", path)
    return path
