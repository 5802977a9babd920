"""Cluster config YAML loading.

A cluster config file is a multi-document YAML stream::

    apiVersion: anywhere.eks.amazonaws.com/v1alpha1
    kind: Cluster
    metadata: {name: dev}
    spec:
      datacenterRef: {kind: VSphereDatacenterConfig, name: dev}
      ...
    ---
    kind: VSphereDatacenterConfig
    ...
    ---
    kind: VSphereMachineConfig
    ...

- :func:`load_cluster_config` parses it into a :class:`ClusterConfig`
- :func:`load_bundles` parses an optional versions bundle override
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from eksa.cluster.models import ClusterSpec, KubeObject, VersionsBundle
from eksa.errors import EksaError

CLUSTER_KIND = "Cluster"
MACHINE_CONFIG_SUFFIX = "MachineConfig"


@dataclass
class ClusterConfig:
    """Everything read from one cluster config file."""

    spec: ClusterSpec
    datacenter_config: Optional[KubeObject] = None
    machine_configs: List[KubeObject] = field(default_factory=list)


def _parse_object(doc: Dict[str, Any], path: Path) -> KubeObject:
    try:
        return KubeObject.model_validate(doc)
    except PydanticValidationError as exc:
        raise EksaError(f"invalid object in {path}: {exc}") from exc


def load_bundles(path: str | Path) -> VersionsBundle:
    """Load a versions bundle override YAML file."""
    path = Path(path)
    if not path.is_file():
        raise EksaError(f"bundles file not found: {path}")
    with open(path, encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    try:
        return VersionsBundle.model_validate(raw)
    except PydanticValidationError as exc:
        raise EksaError(f"invalid bundles file {path}: {exc}") from exc


def load_cluster_config(
    path: str | Path,
    *,
    bundles: Optional[VersionsBundle] = None,
) -> ClusterConfig:
    """Load and validate a cluster config file.

    Raises :class:`EksaError` when the file is missing, has no ``Cluster``
    document, or the datacenter config it references is absent.
    """
    path = Path(path)
    if not path.is_file():
        raise EksaError(f"cluster config not found: {path}")

    with open(path, encoding="utf-8") as fh:
        try:
            docs = [d for d in yaml.safe_load_all(fh) if d]
        except yaml.YAMLError as exc:
            raise EksaError(f"unable to parse {path}: {exc}") from exc

    cluster: Optional[KubeObject] = None
    others: List[KubeObject] = []
    for doc in docs:
        if not isinstance(doc, dict):
            raise EksaError(f"unexpected document in {path}: {doc!r}")
        obj = _parse_object(doc, path)
        if obj.kind == CLUSTER_KIND:
            if cluster is not None:
                raise EksaError(f"more than one {CLUSTER_KIND} object in {path}")
            cluster = obj
        else:
            others.append(obj)

    if cluster is None:
        raise EksaError(f"no {CLUSTER_KIND} object found in {path}")

    spec = ClusterSpec(cluster=cluster, versions_bundle=bundles or VersionsBundle())

    ref = spec.datacenter_ref
    datacenter: Optional[KubeObject] = None
    if ref:
        for obj in others:
            if obj.kind == ref.get("kind") and obj.name == ref.get("name"):
                datacenter = obj
                break
        if datacenter is None:
            raise EksaError(
                f"datacenter config {ref.get('kind')}/{ref.get('name')} "
                f"referenced by cluster {spec.name} not found in {path}"
            )

    machines = [o for o in others if o.kind.endswith(MACHINE_CONFIG_SUFFIX)]
    return ClusterConfig(spec=spec, datacenter_config=datacenter, machine_configs=machines)
