"""Pydantic models for cluster configuration and cluster handles.

Defines the data structures for:
- Kubernetes-style configuration objects (Cluster, datacenter and machine configs)
- The versioned component bundle a cluster is built from
- The resolved cluster specification handed to every workflow task
- Lightweight handles to running clusters (bootstrap / workload)
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field

#: API group/version of every eksa custom resource.
API_VERSION: str = "anywhere.eks.amazonaws.com/v1alpha1"

#: Annotation that stops the eksa controller from reconciling an object.
PAUSED_ANNOTATION: str = "anywhere.eks.amazonaws.com/paused"

#: Namespace the lifecycle controllers and eksa objects live in.
EKSA_SYSTEM_NAMESPACE: str = "eksa-system"


# ---------------------------------------------------------------------------
# Kubernetes-style objects
# ---------------------------------------------------------------------------


class ObjectMeta(BaseModel):
    """Subset of Kubernetes object metadata that eksa cares about."""

    name: str
    namespace: Optional[str] = None
    annotations: Dict[str, str] = Field(default_factory=dict)


class KubeObject(BaseModel):
    """A ``apiVersion``/``kind``/``metadata``/``spec`` document.

    Used for the ``Cluster`` object itself and for the provider's
    datacenter and machine configs.  ``spec`` is kept as a free-form
    mapping because its schema belongs to the provider.
    """

    model_config = ConfigDict(populate_by_name=True)

    api_version: str = Field(default=API_VERSION, alias="apiVersion")
    kind: str
    metadata: ObjectMeta
    spec: Dict[str, Any] = Field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def paused(self) -> bool:
        return self.metadata.annotations.get(PAUSED_ANNOTATION) == "true"

    def pause_reconcile(self) -> None:
        """Annotate the object so the controller leaves it alone."""
        self.metadata.annotations[PAUSED_ANNOTATION] = "true"

    def to_manifest(self) -> Dict[str, Any]:
        """Return the object as a plain dict in manifest key order."""
        meta: Dict[str, Any] = {"name": self.metadata.name}
        if self.metadata.namespace:
            meta["namespace"] = self.metadata.namespace
        if self.metadata.annotations:
            meta["annotations"] = dict(self.metadata.annotations)
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": meta,
            "spec": self.spec,
        }


# ---------------------------------------------------------------------------
# Versions bundle
# ---------------------------------------------------------------------------


def split_image(uri: str) -> Tuple[str, str]:
    """Split ``registry/org/name:tag`` into ``(registry/org/name, tag)``.

    A colon inside the registry host (``host:5000/name``) is not a tag.
    """
    last = uri.rsplit("/", 1)[-1]
    if ":" not in last:
        return uri, ""
    name, _, tag = uri.rpartition(":")
    return name, tag


def image_repository(uri: str) -> str:
    """Return the repository an image lives in (path without the image name)."""
    name, _ = split_image(uri)
    return posixpath.dirname(name)


def image_tag(uri: str) -> str:
    _, tag = split_image(uri)
    return tag


class Manifest(BaseModel):
    """A YAML manifest referenced by URI: local path, ``file://`` or ``http(s)://``."""

    uri: str

    @property
    def filename(self) -> str:
        return posixpath.basename(urlparse(self.uri).path)


class ComponentBundle(BaseModel):
    """Version, container images and install manifests of one lifecycle component."""

    version: str
    images: Dict[str, str] = Field(default_factory=dict)
    components: Optional[Manifest] = None
    metadata: Optional[Manifest] = None

    def image(self, role: str) -> str:
        return self.images.get(role, "")


_ECR = "public.ecr.aws/eks-anywhere"
_GITHUB = "https://github.com"


def _component(
    path: str,
    version: str,
    *roles: str,
    release: Optional[str] = None,
    components: Optional[str] = None,
) -> ComponentBundle:
    images = {role: f"{_ECR}/{path}/{role.replace('_', '-')}:{version}" for role in roles}
    bundle = ComponentBundle(version=version, images=images)
    if release and components:
        base = f"{_GITHUB}/{release}/releases/download/{version}"
        bundle.components = Manifest(uri=f"{base}/{components}")
        bundle.metadata = Manifest(uri=f"{base}/metadata.yaml")
    return bundle


class VersionsBundle(BaseModel):
    """Pinned versions of everything installed on bootstrap and workload clusters."""

    kube_version: str = "1.21"
    cert_manager: ComponentBundle = Field(
        default_factory=lambda: _component(
            "jetstack", "v1.1.0", "controller", "cainjector", "webhook",
        ),
    )
    cluster_api: ComponentBundle = Field(
        default_factory=lambda: _component(
            "kubernetes-sigs/cluster-api", "v0.3.19", "controller", "kube_proxy",
            release="kubernetes-sigs/cluster-api", components="core-components.yaml",
        ),
    )
    bootstrap: ComponentBundle = Field(
        default_factory=lambda: _component(
            "kubernetes-sigs/cluster-api/bootstrap", "v0.3.19", "controller", "kube_proxy",
            release="kubernetes-sigs/cluster-api", components="bootstrap-components.yaml",
        ),
    )
    control_plane: ComponentBundle = Field(
        default_factory=lambda: _component(
            "kubernetes-sigs/cluster-api/control-plane", "v0.3.19", "controller", "kube_proxy",
            release="kubernetes-sigs/cluster-api",
            components="control-plane-components.yaml",
        ),
    )
    external_etcd_bootstrap: ComponentBundle = Field(
        default_factory=lambda: _component(
            "mrajashree/etcdadm-bootstrap-provider", "v0.1.0", "controller", "kube_proxy",
            release="mrajashree/etcdadm-bootstrap-provider",
            components="bootstrap-components.yaml",
        ),
    )
    external_etcd_controller: ComponentBundle = Field(
        default_factory=lambda: _component(
            "mrajashree/etcdadm-controller", "v0.1.0", "controller", "kube_proxy",
            release="mrajashree/etcdadm-controller", components="bootstrap-components.yaml",
        ),
    )


# ---------------------------------------------------------------------------
# Cluster specification
# ---------------------------------------------------------------------------


class ClusterSpec(BaseModel):
    """Desired cluster configuration plus the bundle it is built from."""

    cluster: KubeObject
    versions_bundle: VersionsBundle = Field(default_factory=VersionsBundle)

    @property
    def name(self) -> str:
        return self.cluster.name

    @property
    def kubernetes_version(self) -> str:
        return str(
            self.cluster.spec.get("kubernetesVersion") or self.versions_bundle.kube_version
        )

    @property
    def datacenter_ref(self) -> Dict[str, str]:
        return dict(self.cluster.spec.get("datacenterRef") or {})

    @property
    def external_etcd(self) -> bool:
        return bool(self.cluster.spec.get("externalEtcdConfiguration"))

    def pause_reconcile(self) -> None:
        self.cluster.pause_reconcile()


# ---------------------------------------------------------------------------
# Cluster handle
# ---------------------------------------------------------------------------


@dataclass
class Cluster:
    """Handle to a running cluster: its name and how to reach it."""

    name: str
    kubeconfig_file: str = ""
