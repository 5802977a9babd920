"""clusterctl CLI wrapper.

Builds the clusterctl configuration file from the versions bundle, lays
down the local overrides repository it points at, and runs
``clusterctl init`` / ``move`` / ``get kubeconfig`` as subprocesses.

Overrides layout (under ``<cluster>/generated/overrides``)::

    cluster-api/<version>/core-components.yaml, metadata.yaml
    bootstrap-kubeadm/<version>/bootstrap-components.yaml, metadata.yaml
    control-plane-kubeadm/<version>/control-plane-components.yaml, metadata.yaml
    bootstrap-etcdadm-*/<version>/...      (external etcd only)
    <provider folder>/...                  (provider infrastructure bundle)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from eksa.cluster.manifests import load_manifest
from eksa.cluster.models import (
    EKSA_SYSTEM_NAMESPACE,
    Cluster,
    ClusterSpec,
    Manifest,
    image_repository,
    image_tag,
)
from eksa.errors import EksaError, ExecutableError
from eksa.executables.executable import Executable
from eksa.filewriter import GENERATED_DIR, FileWriter
from eksa.render.renderer import render_template

logger = logging.getLogger(__name__)

CLUSTERCTL_BINARY = "clusterctl"
CLUSTERCTL_CONFIG_FILE = "clusterctl_tmp.yaml"
OVERRIDES_DIR = f"{GENERATED_DIR}/overrides"

CLUSTERCTL_CONFIG_TEMPLATE = """\
providers:
  - name: "cluster-api"
    url: "${dir}/cluster-api/${ClusterApiVersion}/core-components.yaml"
    type: "CoreProvider"
  - name: "kubeadm"
    url: "${dir}/bootstrap-kubeadm/${BootstrapVersion}/bootstrap-components.yaml"
    type: "BootstrapProvider"
  - name: "kubeadm"
    url: "${dir}/control-plane-kubeadm/${ControlPlaneVersion}/control-plane-components.yaml"
    type: "ControlPlaneProvider"
  - name: "etcdadm-bootstrap"
    url: "${dir}/bootstrap-etcdadm-bootstrap/${EtcdadmBootstrapVersion}/bootstrap-components.yaml"
    type: "BootstrapProvider"
  - name: "etcdadm-controller"
    url: "${dir}/bootstrap-etcdadm-controller/${EtcdadmControllerVersion}/bootstrap-components.yaml"
    type: "BootstrapProvider"
${InfrastructureProviders}
images:
  cert-manager/cert-manager-cainjector:
    repository: ${CertManagerInjectorRepository}
    tag: ${CertManagerInjectorTag}
  cert-manager/cert-manager-controller:
    repository: ${CertManagerControllerRepository}
    tag: ${CertManagerControllerTag}
  cert-manager/cert-manager-webhook:
    repository: ${CertManagerWebhookRepository}
    tag: ${CertManagerWebhookTag}
  cluster-api/cluster-api-controller:
    repository: ${ClusterApiControllerRepository}
    tag: ${ClusterApiControllerTag}
  cluster-api/kube-rbac-proxy:
    repository: ${ClusterApiKubeRbacProxyRepository}
    tag: ${ClusterApiKubeRbacProxyTag}
  bootstrap-kubeadm/kubeadm-bootstrap-controller:
    repository: ${KubeadmBootstrapControllerRepository}
    tag: ${KubeadmBootstrapControllerTag}
  bootstrap-kubeadm/kube-rbac-proxy:
    repository: ${KubeadmBootstrapKubeRbacProxyRepository}
    tag: ${KubeadmBootstrapKubeRbacProxyTag}
  control-plane-kubeadm/kubeadm-control-plane-controller:
    repository: ${KubeadmControlPlaneControllerRepository}
    tag: ${KubeadmControlPlaneControllerTag}
  control-plane-kubeadm/kube-rbac-proxy:
    repository: ${KubeadmControlPlaneKubeRbacProxyRepository}
    tag: ${KubeadmControlPlaneKubeRbacProxyTag}
  bootstrap-etcdadm-bootstrap/etcdadm-bootstrap-provider:
    repository: ${EtcdadmBootstrapProviderRepository}
    tag: ${EtcdadmBootstrapProviderTag}
  bootstrap-etcdadm-controller/etcdadm-controller:
    repository: ${EtcdadmControllerRepository}
    tag: ${EtcdadmControllerTag}
"""


@dataclass
class InfrastructureBundle:
    """Provider manifests written to ``<overrides>/<folder_name>/<manifest filename>``.

    ``folder_name`` includes the version, e.g. ``infrastructure-vsphere/v0.7.8``.
    """

    folder_name: str
    manifests: List[Manifest] = field(default_factory=list)


class ClusterctlProvider(Protocol):
    """What clusterctl needs to know about an infrastructure provider."""

    def name(self) -> str:
        ...

    def version(self, cluster_spec: ClusterSpec) -> str:
        ...

    def env_map(self) -> Dict[str, str]:
        ...

    def infrastructure_bundle(self, cluster_spec: ClusterSpec) -> Optional[InfrastructureBundle]:
        ...


# (folder, versions bundle attribute, components file name)
_CORE_COMPONENTS: Tuple[Tuple[str, str, str], ...] = (
    ("bootstrap-kubeadm", "bootstrap", "bootstrap-components.yaml"),
    ("cluster-api", "cluster_api", "core-components.yaml"),
    ("control-plane-kubeadm", "control_plane", "control-plane-components.yaml"),
)
_ETCD_COMPONENTS: Tuple[Tuple[str, str, str], ...] = (
    ("bootstrap-etcdadm-bootstrap", "external_etcd_bootstrap", "bootstrap-components.yaml"),
    ("bootstrap-etcdadm-controller", "external_etcd_controller", "bootstrap-components.yaml"),
)
_METADATA_FILE = "metadata.yaml"
_INFRASTRUCTURE_COMPONENTS_FILE = "infrastructure-components.yaml"


@dataclass
class ClusterctlConfiguration:
    """Provider versions and config file passed to ``clusterctl init``."""

    config_file: str
    core_version: str
    bootstrap_version: str
    control_plane_version: str
    etcdadm_bootstrap_version: str
    etcdadm_controller_version: str


def _image_data(prefix: str, uri: str) -> Dict[str, str]:
    return {
        f"{prefix}Repository": image_repository(uri),
        f"{prefix}Tag": image_tag(uri),
    }


def _infrastructure_entry(
    provider_name: str, overrides_dir: str, infra: Optional[InfrastructureBundle],
) -> str:
    if infra is None:
        return ""
    return (
        f'  - name: "{provider_name}"\n'
        f'    url: "{overrides_dir}/{infra.folder_name}/{_INFRASTRUCTURE_COMPONENTS_FILE}"\n'
        f'    type: "InfrastructureProvider"\n'
    )


class Clusterctl:
    """Runs clusterctl against bootstrap and workload clusters."""

    def __init__(self, writer: FileWriter, executable: Optional[Executable] = None) -> None:
        self.writer = writer
        self.executable = executable or Executable(CLUSTERCTL_BINARY)

    def build_config(
        self, cluster_spec: ClusterSpec, provider: ClusterctlProvider,
    ) -> ClusterctlConfiguration:
        """Write the clusterctl config for *cluster_spec* and the overrides it points at."""
        bundle = cluster_spec.versions_bundle
        overrides_dir = str((self.writer.root / OVERRIDES_DIR).resolve())
        infra = provider.infrastructure_bundle(cluster_spec)
        data: Dict[str, str] = {
            "dir": overrides_dir,
            "InfrastructureProviders": _infrastructure_entry(provider.name(), overrides_dir, infra),
            "ClusterApiVersion": bundle.cluster_api.version,
            "BootstrapVersion": bundle.bootstrap.version,
            "ControlPlaneVersion": bundle.control_plane.version,
            "EtcdadmBootstrapVersion": bundle.external_etcd_bootstrap.version,
            "EtcdadmControllerVersion": bundle.external_etcd_controller.version,
        }
        data.update(_image_data("CertManagerInjector", bundle.cert_manager.image("cainjector")))
        data.update(_image_data("CertManagerController", bundle.cert_manager.image("controller")))
        data.update(_image_data("CertManagerWebhook", bundle.cert_manager.image("webhook")))
        data.update(_image_data("ClusterApiController", bundle.cluster_api.image("controller")))
        data.update(_image_data("ClusterApiKubeRbacProxy", bundle.cluster_api.image("kube_proxy")))
        data.update(_image_data("KubeadmBootstrapController", bundle.bootstrap.image("controller")))
        data.update(_image_data("KubeadmBootstrapKubeRbacProxy", bundle.bootstrap.image("kube_proxy")))
        data.update(_image_data("KubeadmControlPlaneController", bundle.control_plane.image("controller")))
        data.update(
            _image_data("KubeadmControlPlaneKubeRbacProxy", bundle.control_plane.image("kube_proxy")),
        )
        data.update(
            _image_data("EtcdadmBootstrapProvider", bundle.external_etcd_bootstrap.image("controller")),
        )
        data.update(
            _image_data("EtcdadmController", bundle.external_etcd_controller.image("controller")),
        )

        try:
            content = render_template(
                CLUSTERCTL_CONFIG_TEMPLATE, data, required_keys=frozenset({"dir"}),
            )
            path: Path = self.writer.write(CLUSTERCTL_CONFIG_FILE, content)
        except (OSError, ValueError) as exc:
            raise EksaError(f"error generating configuration file for clusterctl: {exc}") from exc
        self.write_overrides_layer(cluster_spec, infra)

        return ClusterctlConfiguration(
            config_file=str(path),
            core_version=f"cluster-api:{bundle.cluster_api.version}",
            bootstrap_version=f"kubeadm:{bundle.bootstrap.version}",
            control_plane_version=f"kubeadm:{bundle.control_plane.version}",
            etcdadm_bootstrap_version=f"etcdadm-bootstrap:{bundle.external_etcd_bootstrap.version}",
            etcdadm_controller_version=f"etcdadm-controller:{bundle.external_etcd_controller.version}",
        )

    def write_overrides_layer(
        self, cluster_spec: ClusterSpec, infra: Optional[InfrastructureBundle] = None,
    ) -> Path:
        """Write every manifest the clusterctl config references; return the overrides root.

        The etcdadm folders are only written for clusters with external etcd.
        """
        bundle = cluster_spec.versions_bundle
        components = _CORE_COMPONENTS
        if cluster_spec.external_etcd:
            components = components + _ETCD_COMPONENTS

        for folder, attr, components_file in components:
            component = getattr(bundle, attr)
            if component.components is None or component.metadata is None:
                raise EksaError(
                    f"versions bundle has no manifests for {folder} {component.version}"
                )
            self._write_folder(
                f"{folder}/{component.version}",
                [(components_file, component.components), (_METADATA_FILE, component.metadata)],
            )

        if infra is not None:
            self._write_folder(infra.folder_name, [(m.filename, m) for m in infra.manifests])
        return self.writer.root / OVERRIDES_DIR

    def _write_folder(self, folder: str, manifests: Sequence[Tuple[str, Manifest]]) -> None:
        target = f"{OVERRIDES_DIR}/{folder}"
        try:
            (self.writer.root / target).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise EksaError(f"error creating overrides folder {target}: {exc}") from exc
        for filename, manifest in manifests:
            content = load_manifest(manifest)
            try:
                self.writer.write(f"{target}/{filename}", content)
            except OSError as exc:
                raise EksaError(
                    f"error generating file for infrastructure bundle {filename}: {exc}"
                ) from exc
        logger.debug("Wrote clusterctl overrides %s", target)

    def init_infrastructure(
        self,
        cluster_spec: ClusterSpec,
        cluster: Optional[Cluster],
        provider: ClusterctlProvider,
    ) -> None:
        """Install cluster-api core, kubeadm and provider components on *cluster*."""
        if cluster is None:
            raise EksaError("invalid cluster (None)")
        if not cluster.name:
            raise EksaError(f"invalid cluster name '{cluster.name}'")

        config = self.build_config(cluster_spec, provider)
        params = [
            "init",
            "--core", config.core_version,
            "--bootstrap", config.bootstrap_version,
            "--control-plane", config.control_plane_version,
            "--infrastructure", f"{provider.name()}:{provider.version(cluster_spec)}",
            "--config", config.config_file,
        ]
        if cluster_spec.external_etcd:
            params += [
                "--bootstrap", config.etcdadm_bootstrap_version,
                "--bootstrap", config.etcdadm_controller_version,
            ]
        if cluster.kubeconfig_file:
            params += ["--kubeconfig", cluster.kubeconfig_file]

        try:
            self.executable.execute(*params, env=provider.env_map())
        except ExecutableError as exc:
            raise EksaError(f"error executing init: {exc}") from exc

    def move_management(self, from_cluster: Cluster, to_cluster: Cluster) -> None:
        """Move cluster-api objects from *from_cluster* to *to_cluster*."""
        params = [
            "move",
            "--to-kubeconfig", to_cluster.kubeconfig_file,
            "--namespace", EKSA_SYSTEM_NAMESPACE,
        ]
        if from_cluster.kubeconfig_file:
            params += ["--kubeconfig", from_cluster.kubeconfig_file]
        try:
            self.executable.execute(*params)
        except ExecutableError as exc:
            raise EksaError(f"failed moving management cluster: {exc}") from exc

    def get_workload_kubeconfig(self, cluster_name: str, cluster: Cluster) -> str:
        """Return the kubeconfig of workload cluster *cluster_name* managed by *cluster*."""
        try:
            result = self.executable.execute(
                "get", "kubeconfig", cluster_name,
                "--kubeconfig", cluster.kubeconfig_file,
                "--namespace", EKSA_SYSTEM_NAMESPACE,
            )
        except ExecutableError as exc:
            raise EksaError(f"error executing get kubeconfig: {exc}") from exc
        return result.stdout
