"""Tests for cluster config loading, models and write-back."""

from __future__ import annotations

import textwrap

import pytest
import yaml

from eksa.cluster.loader import load_bundles, load_cluster_config
from eksa.cluster.marshaller import (
    cluster_config_filename,
    marshal_cluster_config,
    write_cluster_config,
)
from eksa.cluster.models import (
    API_VERSION,
    PAUSED_ANNOTATION,
    KubeObject,
    ObjectMeta,
    VersionsBundle,
    image_repository,
    image_tag,
    split_image,
)
from eksa.errors import EksaError
from eksa.filewriter import FileWriter

CLUSTER_YAML = textwrap.dedent(
    """\
    apiVersion: anywhere.eks.amazonaws.com/v1alpha1
    kind: Cluster
    metadata:
      name: dev
    spec:
      kubernetesVersion: "1.20"
      controlPlaneConfiguration:
        count: 3
      datacenterRef:
        kind: VSphereDatacenterConfig
        name: dc1
      externalEtcdConfiguration:
        count: 3
    ---
    apiVersion: anywhere.eks.amazonaws.com/v1alpha1
    kind: VSphereDatacenterConfig
    metadata:
      name: dc1
    spec:
      datacenter: SDDC-Datacenter
      server: vcenter.example.com
    ---
    apiVersion: anywhere.eks.amazonaws.com/v1alpha1
    kind: VSphereMachineConfig
    metadata:
      name: dev-cp
    spec:
      numCPUs: 2
    ---
    apiVersion: anywhere.eks.amazonaws.com/v1alpha1
    kind: VSphereMachineConfig
    metadata:
      name: dev-worker
    spec:
      numCPUs: 4
    """
)


@pytest.fixture
def cluster_file(tmp_path):
    p = tmp_path / "dev.yaml"
    p.write_text(CLUSTER_YAML)
    return p


# ── Images ──────────────────────────────────────────────────────────────


class TestImages:
    def test_split(self):
        assert split_image("public.ecr.aws/org/name:v1") == ("public.ecr.aws/org/name", "v1")

    def test_split_no_tag(self):
        assert split_image("public.ecr.aws/org/name") == ("public.ecr.aws/org/name", "")

    def test_registry_port_not_a_tag(self):
        assert split_image("localhost:5000/name") == ("localhost:5000/name", "")

    def test_repository_and_tag(self):
        uri = "public.ecr.aws/eks-anywhere/jetstack/controller:v1.1.0"
        assert image_repository(uri) == "public.ecr.aws/eks-anywhere/jetstack"
        assert image_tag(uri) == "v1.1.0"


class TestVersionsBundle:
    def test_defaults(self):
        b = VersionsBundle()
        assert b.cluster_api.version
        assert b.cert_manager.image("webhook").endswith(f":{b.cert_manager.version}")
        assert b.bootstrap.image("missing") == ""


# ── KubeObject ──────────────────────────────────────────────────────────


class TestKubeObject:
    def test_alias_and_default_api_version(self):
        obj = KubeObject(kind="X", metadata=ObjectMeta(name="a"))
        assert obj.api_version == API_VERSION
        parsed = KubeObject.model_validate(
            {"apiVersion": "v1", "kind": "X", "metadata": {"name": "a"}},
        )
        assert parsed.api_version == "v1"

    def test_pause_reconcile(self):
        obj = KubeObject(kind="X", metadata=ObjectMeta(name="a"))
        assert obj.paused is False
        obj.pause_reconcile()
        assert obj.paused is True
        assert obj.to_manifest()["metadata"]["annotations"] == {PAUSED_ANNOTATION: "true"}

    def test_manifest_omits_empty_metadata(self):
        m = KubeObject(kind="X", metadata=ObjectMeta(name="a")).to_manifest()
        assert m["metadata"] == {"name": "a"}
        assert list(m) == ["apiVersion", "kind", "metadata", "spec"]


# ── Loader ──────────────────────────────────────────────────────────────


class TestLoadClusterConfig:
    def test_loads_everything(self, cluster_file):
        cfg = load_cluster_config(cluster_file)
        assert cfg.spec.name == "dev"
        assert cfg.spec.kubernetes_version == "1.20"
        assert cfg.spec.external_etcd is True
        assert cfg.datacenter_config.kind == "VSphereDatacenterConfig"
        assert cfg.datacenter_config.spec["server"] == "vcenter.example.com"
        assert [m.name for m in cfg.machine_configs] == ["dev-cp", "dev-worker"]

    def test_bundles_attached(self, cluster_file):
        bundle = VersionsBundle(kube_version="1.19")
        cfg = load_cluster_config(cluster_file, bundles=bundle)
        assert cfg.spec.versions_bundle is bundle

    def test_missing_file(self, tmp_path):
        with pytest.raises(EksaError, match="not found"):
            load_cluster_config(tmp_path / "nope.yaml")

    def test_no_cluster_document(self, tmp_path):
        p = tmp_path / "c.yaml"
        p.write_text("kind: VSphereDatacenterConfig\nmetadata: {name: dc1}\n")
        with pytest.raises(EksaError, match="no Cluster object"):
            load_cluster_config(p)

    def test_two_cluster_documents(self, tmp_path):
        doc = "kind: Cluster\nmetadata: {name: a}\n"
        p = tmp_path / "c.yaml"
        p.write_text(doc + "---\n" + doc)
        with pytest.raises(EksaError, match="more than one"):
            load_cluster_config(p)

    def test_datacenter_reference_missing(self, tmp_path):
        p = tmp_path / "c.yaml"
        p.write_text(
            "kind: Cluster\nmetadata: {name: a}\n"
            "spec:\n  datacenterRef: {kind: DockerDatacenterConfig, name: a}\n"
        )
        with pytest.raises(EksaError, match="DockerDatacenterConfig/a"):
            load_cluster_config(p)

    def test_invalid_object(self, tmp_path):
        p = tmp_path / "c.yaml"
        p.write_text("kind: Cluster\n")
        with pytest.raises(EksaError, match="invalid object"):
            load_cluster_config(p)

    def test_bad_yaml(self, tmp_path):
        p = tmp_path / "c.yaml"
        p.write_text("kind: [unclosed\n")
        with pytest.raises(EksaError, match="unable to parse"):
            load_cluster_config(p)


class TestLoadBundles:
    def test_override(self, tmp_path):
        p = tmp_path / "bundles.yaml"
        p.write_text("kube_version: '1.22'\ncluster_api:\n  version: v1.0.0\n")
        b = load_bundles(p)
        assert b.kube_version == "1.22"
        assert b.cluster_api.version == "v1.0.0"
        assert b.bootstrap.version == VersionsBundle().bootstrap.version

    def test_missing(self, tmp_path):
        with pytest.raises(EksaError):
            load_bundles(tmp_path / "missing.yaml")


# ── Marshaller ──────────────────────────────────────────────────────────


class TestMarshaller:
    def test_filename(self):
        assert cluster_config_filename("dev") == "dev-eks-a-cluster.yaml"

    def test_round_trips_loaded_config(self, cluster_file):
        cfg = load_cluster_config(cluster_file)
        docs = list(
            yaml.safe_load_all(
                marshal_cluster_config(cfg.spec, cfg.datacenter_config, cfg.machine_configs),
            )
        )
        assert [d["kind"] for d in docs] == [
            "Cluster", "VSphereDatacenterConfig", "VSphereMachineConfig", "VSphereMachineConfig",
        ]
        assert docs[0]["spec"]["controlPlaneConfiguration"]["count"] == 3

    def test_without_datacenter(self, cluster_file):
        cfg = load_cluster_config(cluster_file)
        docs = list(yaml.safe_load_all(marshal_cluster_config(cfg.spec, None, [])))
        assert len(docs) == 1

    def test_write(self, cluster_file, tmp_path):
        cfg = load_cluster_config(cluster_file)
        writer = FileWriter.for_cluster("dev", tmp_path / "out")
        path = write_cluster_config(cfg.spec, cfg.datacenter_config, cfg.machine_configs, writer)
        assert path == tmp_path / "out" / "dev" / "dev-eks-a-cluster.yaml"
        assert "kind: Cluster" in path.read_text()


# ── FileWriter ──────────────────────────────────────────────────────────


class TestFileWriter:
    def test_creates_parents(self, tmp_path):
        w = FileWriter(tmp_path / "root")
        p = w.write("generated/a.txt", "hello")
        assert p.read_text() == "hello"

    def test_bytes(self, tmp_path):
        p = FileWriter(tmp_path).write("b.bin", b"\x00\x01")
        assert p.read_bytes() == b"\x00\x01"

    def test_with_dir(self, tmp_path):
        w = FileWriter(tmp_path).with_dir("sub")
        assert w.root == tmp_path / "sub"
        assert w.write("x", "y") == tmp_path / "sub" / "x"
