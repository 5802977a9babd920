"""Tests for eksa.executables: subprocess wrapper and clusterctl."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional
from unittest.mock import MagicMock, patch

import pytest
import requests
import yaml

from eksa.cluster.manifests import load_manifest
from eksa.cluster.models import Cluster, Manifest
from eksa.errors import EksaError, ExecutableError
from eksa.executables.clusterctl import CLUSTERCTL_CONFIG_FILE, Clusterctl, InfrastructureBundle
from eksa.executables.executable import ExecResult, Executable
from eksa.filewriter import FileWriter
from fakes import make_spec


def _completed(stdout: str = "", stderr: str = "", rc: int = 0):
    cp = MagicMock()
    cp.returncode = rc
    cp.stdout = stdout
    cp.stderr = stderr
    return cp


# ── Executable ──────────────────────────────────────────────────────────


class TestExecutable:
    @patch("eksa.executables.executable.subprocess.run")
    def test_run_captures_output(self, mock_run):
        mock_run.return_value = _completed(stdout=" out \n", stderr="warn\n")
        r = Executable("kubectl").run("get", "pods")
        assert r.command == "kubectl get pods"
        assert r.stdout == "out"
        assert r.stderr == "warn"
        assert r.success is True

    @patch("eksa.executables.executable.subprocess.run")
    def test_env_layered(self, mock_run, monkeypatch):
        monkeypatch.setenv("HOME_MARKER", "1")
        mock_run.return_value = _completed()
        Executable("clusterctl").run("version", env={"VSPHERE_USERNAME": "admin"})
        env_used = mock_run.call_args.kwargs["env"]
        assert env_used["VSPHERE_USERNAME"] == "admin"
        assert env_used["HOME_MARKER"] == "1"

    @patch("eksa.executables.executable.subprocess.run", side_effect=FileNotFoundError)
    def test_missing_binary(self, _mock_run):
        r = Executable("nope").run("x")
        assert r.returncode == 127
        assert "not found" in r.stderr

    @patch("eksa.executables.executable.subprocess.run")
    def test_execute_raises(self, mock_run):
        mock_run.return_value = _completed(stderr="boom", rc=3)
        with pytest.raises(ExecutableError) as exc_info:
            Executable("clusterctl").execute("init")
        assert exc_info.value.returncode == 3
        assert exc_info.value.stderr == "boom"
        assert "clusterctl init" in str(exc_info.value)


# ── Clusterctl ──────────────────────────────────────────────────────────

_BUNDLE_COMPONENTS = (
    "cluster_api",
    "bootstrap",
    "control_plane",
    "external_etcd_bootstrap",
    "external_etcd_controller",
)


class _Provider:
    def __init__(self, bundle: Optional[InfrastructureBundle] = None) -> None:
        self.bundle = bundle

    def name(self) -> str:
        return "vsphere"

    def version(self, cluster_spec) -> str:
        return "v0.7.8"

    def env_map(self):
        return {"VSPHERE_PASSWORD": "secret"}

    def infrastructure_bundle(self, cluster_spec):
        return self.bundle


@pytest.fixture
def spec(tmp_path):
    """Cluster spec whose bundle manifests are local files."""
    s = make_spec()
    src = tmp_path / "manifests"
    for attr in _BUNDLE_COMPONENTS:
        (src / attr).mkdir(parents=True)
        comp = src / attr / "components.yaml"
        comp.write_text(f"# {attr} components\n")
        meta = src / attr / "metadata.yaml"
        meta.write_text(f"# {attr} metadata\n")
        component = getattr(s.versions_bundle, attr)
        component.components = Manifest(uri=str(comp))
        component.metadata = Manifest(uri=f"file://{meta}")
    return s


@pytest.fixture
def executable():
    exe = MagicMock(spec=Executable)
    exe.execute.return_value = ExecResult(command="clusterctl", returncode=0, stdout="kubeconfig-data")
    return exe


@pytest.fixture
def clusterctl(tmp_path, executable):
    return Clusterctl(FileWriter(tmp_path / "dev"), executable=executable)


class TestBuildConfig:
    def test_writes_rendered_config(self, clusterctl, spec, tmp_path):
        cfg = clusterctl.build_config(spec, _Provider())
        path = tmp_path / "dev" / CLUSTERCTL_CONFIG_FILE
        assert cfg.config_file == str(path)
        content = path.read_text()
        assert "${" not in content
        parsed = yaml.safe_load(content)
        bundle = spec.versions_bundle
        core = parsed["providers"][0]
        assert core["url"].startswith(str((tmp_path / "dev" / "generated" / "overrides").resolve()))
        assert bundle.cluster_api.version in core["url"]
        assert len(parsed["providers"]) == 5
        webhook = parsed["images"]["cert-manager/cert-manager-webhook"]
        assert webhook["tag"] == bundle.cert_manager.version

    def test_versions(self, clusterctl, spec):
        bundle = spec.versions_bundle
        cfg = clusterctl.build_config(spec, _Provider())
        assert cfg.core_version == f"cluster-api:{bundle.cluster_api.version}"
        assert cfg.bootstrap_version == f"kubeadm:{bundle.bootstrap.version}"
        assert cfg.control_plane_version == f"kubeadm:{bundle.control_plane.version}"
        assert cfg.etcdadm_bootstrap_version.startswith("etcdadm-bootstrap:")

    def test_infrastructure_provider_entry(self, clusterctl, spec, tmp_path):
        infra_file = tmp_path / "infrastructure-components.yaml"
        infra_file.write_text("# vsphere\n")
        bundle = InfrastructureBundle(
            folder_name="infrastructure-vsphere/v0.7.8",
            manifests=[Manifest(uri=str(infra_file))],
        )
        cfg = clusterctl.build_config(spec, _Provider(bundle))
        parsed = yaml.safe_load(Path(cfg.config_file).read_text())
        infra = parsed["providers"][-1]
        assert infra["name"] == "vsphere"
        assert infra["type"] == "InfrastructureProvider"
        written = (
            tmp_path / "dev" / "generated" / "overrides" / "infrastructure-vsphere" / "v0.7.8"
            / "infrastructure-components.yaml"
        )
        assert infra["url"] == str(written.resolve())
        assert written.read_text() == "# vsphere\n"


class TestOverridesLayer:
    def _overrides(self, tmp_path):
        return tmp_path / "dev" / "generated" / "overrides"

    def test_every_config_url_is_backed_by_a_file(self, clusterctl, spec, tmp_path):
        clusterctl.init_infrastructure(spec, Cluster(name="dev-kind"), _Provider())
        overrides = self._overrides(tmp_path)
        bundle = spec.versions_bundle
        assert (overrides / "cluster-api" / bundle.cluster_api.version).is_dir()

        parsed = yaml.safe_load((tmp_path / "dev" / CLUSTERCTL_CONFIG_FILE).read_text())
        kubeadm_urls = [p["url"] for p in parsed["providers"] if "etcdadm" not in p["name"]]
        for url in kubeadm_urls:
            assert os.path.isfile(url), url
            assert os.path.isfile(os.path.join(os.path.dirname(url), "metadata.yaml"))

    def test_manifest_content_copied(self, clusterctl, spec, tmp_path):
        clusterctl.init_infrastructure(spec, Cluster(name="dev-kind"), _Provider())
        folder = self._overrides(tmp_path) / "control-plane-kubeadm" / "v0.3.19"
        assert (folder / "control-plane-components.yaml").read_text() == "# control_plane components\n"
        assert (folder / "metadata.yaml").read_text() == "# control_plane metadata\n"

    def test_etcdadm_only_with_external_etcd(self, clusterctl, spec, tmp_path):
        clusterctl.init_infrastructure(spec, Cluster(name="dev-kind"), _Provider())
        overrides = self._overrides(tmp_path)
        assert not (overrides / "bootstrap-etcdadm-bootstrap").exists()
        assert not (overrides / "bootstrap-etcdadm-controller").exists()

        spec.cluster.spec["externalEtcdConfiguration"] = {"count": 3}
        clusterctl.init_infrastructure(spec, Cluster(name="dev-kind"), _Provider())
        assert (overrides / "bootstrap-etcdadm-bootstrap" / "v0.1.0" / "bootstrap-components.yaml").is_file()
        assert (overrides / "bootstrap-etcdadm-controller" / "v0.1.0" / "metadata.yaml").is_file()

    def test_missing_manifest_fails_before_init(self, clusterctl, spec, executable):
        spec.versions_bundle.bootstrap.components = None
        with pytest.raises(EksaError, match="no manifests for bootstrap-kubeadm"):
            clusterctl.init_infrastructure(spec, Cluster(name="dev-kind"), _Provider())
        executable.execute.assert_not_called()

    def test_unreadable_manifest(self, clusterctl, spec, tmp_path, executable):
        spec.versions_bundle.cluster_api.components = Manifest(uri=str(tmp_path / "gone.yaml"))
        with pytest.raises(EksaError, match="can't load manifest"):
            clusterctl.init_infrastructure(spec, Cluster(name="dev-kind"), _Provider())
        executable.execute.assert_not_called()


class TestLoadManifest:
    @patch("eksa.cluster.manifests.requests.get")
    def test_http(self, mock_get):
        mock_get.return_value = MagicMock(content=b"kind: List\n")
        uri = "https://github.com/kubernetes-sigs/cluster-api/releases/download/v0.3.19/metadata.yaml"
        assert load_manifest(Manifest(uri=uri)) == b"kind: List\n"
        mock_get.assert_called_once_with(uri, timeout=30)

    @patch("eksa.cluster.manifests.requests.get")
    def test_http_error(self, mock_get):
        mock_get.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError("404")
        with pytest.raises(EksaError, match="can't load manifest"):
            load_manifest(Manifest(uri="https://example.invalid/x.yaml"))

    def test_default_bundle_points_at_releases(self):
        bundle = make_spec().versions_bundle
        assert bundle.cluster_api.components.filename == "core-components.yaml"
        assert bundle.cluster_api.metadata.uri.endswith("/v0.3.19/metadata.yaml")
        assert bundle.cert_manager.components is None


class TestInitInfrastructure:
    def test_params(self, clusterctl, spec, executable):
        clusterctl.init_infrastructure(spec, Cluster(name="kind", kubeconfig_file="k.kubeconfig"), _Provider())
        args = executable.execute.call_args.args
        assert args[0] == "init"
        i = args.index("--infrastructure")
        assert args[i:i + 2] == ("--infrastructure", "vsphere:v0.7.8")
        assert args[-2:] == ("--kubeconfig", "k.kubeconfig")
        assert list(args).count("--bootstrap") == 1
        assert executable.execute.call_args.kwargs["env"] == {"VSPHERE_PASSWORD": "secret"}

    def test_external_etcd_adds_bootstrap_providers(self, clusterctl, spec, executable):
        spec.cluster.spec["externalEtcdConfiguration"] = {"count": 3}
        clusterctl.init_infrastructure(spec, Cluster(name="kind"), _Provider())
        args = list(executable.execute.call_args.args)
        assert args.count("--bootstrap") == 3
        assert "--kubeconfig" not in args

    def test_rejects_missing_cluster(self, clusterctl, spec, executable):
        with pytest.raises(EksaError, match="invalid cluster"):
            clusterctl.init_infrastructure(spec, None, _Provider())
        with pytest.raises(EksaError, match="invalid cluster name"):
            clusterctl.init_infrastructure(spec, Cluster(name=""), _Provider())
        executable.execute.assert_not_called()

    def test_failure_wrapped(self, clusterctl, spec, executable):
        executable.execute.side_effect = ExecutableError("clusterctl init", 1, "nope")
        with pytest.raises(EksaError, match="error executing init"):
            clusterctl.init_infrastructure(spec, Cluster(name="kind"), _Provider())


class TestMoveManagement:
    def test_params(self, clusterctl, executable):
        clusterctl.move_management(
            Cluster(name="kind", kubeconfig_file="from.kubeconfig"),
            Cluster(name="dev", kubeconfig_file="to.kubeconfig"),
        )
        executable.execute.assert_called_once_with(
            "move", "--to-kubeconfig", "to.kubeconfig", "--namespace", "eksa-system",
            "--kubeconfig", "from.kubeconfig",
        )

    def test_without_source_kubeconfig(self, clusterctl, executable):
        clusterctl.move_management(Cluster(name="kind"), Cluster(name="dev", kubeconfig_file="to"))
        assert "--kubeconfig" not in executable.execute.call_args.args

    def test_failure_wrapped(self, clusterctl, executable):
        executable.execute.side_effect = ExecutableError("clusterctl move", 1)
        with pytest.raises(EksaError, match="failed moving management cluster"):
            clusterctl.move_management(Cluster(name="a"), Cluster(name="b"))


class TestGetWorkloadKubeconfig:
    def test_returns_stdout(self, clusterctl, executable):
        out = clusterctl.get_workload_kubeconfig("dev", Cluster(name="kind", kubeconfig_file="k"))
        assert out == "kubeconfig-data"
        executable.execute.assert_called_once_with(
            "get", "kubeconfig", "dev", "--kubeconfig", "k", "--namespace", "eksa-system",
        )
