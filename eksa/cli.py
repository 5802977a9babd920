"""CLI entry point for eksa, built on cli-core-yo.

Provides ``create``, ``validate`` and ``runs`` commands.

Usage::

    python -m eksa --help
    python -m eksa create -f dev.yaml --plugin my_plugins.vsphere:build
    python -m eksa create -f dev.yaml --force-cleanup
    python -m eksa validate -f dev.yaml
    python -m eksa runs --cluster dev --last
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import typer
from cli_core_yo import output
from cli_core_yo.app import create_app
from cli_core_yo.runtime import _reset, initialize
from cli_core_yo.spec import CliSpec, XdgSpec

from eksa import ui
from eksa.errors import EksaError, ValidationError

# Exit codes
EXIT_SUCCESS = 0
EXIT_VALIDATION_FAILURE = 1
EXIT_CREATE_FAILURE = 2
EXIT_CONFIG_ERROR = 4

logger = logging.getLogger(__name__)

# ── App specification ────────────────────────────────────────────────────────

spec = CliSpec(
    prog_name="eksa",
    app_display_name="EKS Anywhere",
    dist_name="eksa-lifecycle",
    root_help="Create and manage EKS Anywhere Kubernetes clusters.",
    xdg=XdgSpec(app_dir_name="eksa"),
)

app = create_app(spec)


@app.callback()
def _root_callback(
    json_flag: bool = typer.Option(
        False, "--json", "-j", help="Output as JSON."
    ),
) -> None:
    """EKS Anywhere cluster lifecycle control plane."""
    _reset()
    debug = os.environ.get("CLI_CORE_YO_DEBUG") == "1"
    xdg_paths = app._cli_core_yo_xdg_paths  # type: ignore[attr-defined]
    initialize(spec, xdg_paths, json_mode=json_flag, debug=debug)


def _enable_debug() -> None:
    logging.basicConfig(level=logging.DEBUG)
    logging.getLogger("eksa").setLevel(logging.DEBUG)


def _prepare(filename: str, plugin: Optional[str], bundles_override: Optional[str]):
    """Load the cluster config and collaborators; raise EksaError on failure."""
    from eksa.cluster.loader import load_bundles, load_cluster_config
    from eksa.plugins import load_dependencies

    bundles = load_bundles(bundles_override) if bundles_override else None
    cluster_config = load_cluster_config(filename, bundles=bundles)
    deps = load_dependencies(cluster_config, plugin)
    return cluster_config, deps


# ── Workflow drivers (return exit codes) ─────────────────────────────────────


def run_create(
    filename: str,
    *,
    force_cleanup: bool = False,
    plugin: Optional[str] = None,
    bundles_override: Optional[str] = None,
    output_dir: str = ".",
) -> int:
    """Create a cluster and persist a run record; return an ``EXIT_*`` code."""
    from eksa.filewriter import FileWriter
    from eksa.state.models import RunRecord
    from eksa.state.store import write_run_record
    from eksa.workflows.create import Create

    try:
        cluster_config, deps = _prepare(filename, plugin, bundles_override)
    except EksaError as exc:
        logger.error("%s", exc)
        ui.fail(str(exc))
        return EXIT_CONFIG_ERROR

    cluster_spec = cluster_config.spec
    writer = FileWriter.for_cluster(cluster_spec.name, output_dir)
    workflow = Create(
        deps.bootstrapper, deps.provider, deps.cluster_manager, deps.addon_manager, writer,
    )
    record = RunRecord(
        workflow="create",
        cluster_name=cluster_spec.name,
        provider=deps.provider.name(),
    )

    ui.phase("CREATE")
    rc = EXIT_SUCCESS
    try:
        workflow.run(cluster_spec, force_cleanup=force_cleanup)
    except ValidationError as exc:
        rc = EXIT_VALIDATION_FAILURE
        record.error = str(exc)
        ui.validation_table(exc.failed)
    except Exception as exc:
        rc = EXIT_CREATE_FAILURE
        record.error = str(exc)
        logger.error("Cluster creation failed: %s", exc)

    record.success = rc == EXIT_SUCCESS
    if workflow.runner is not None:
        record.tasks = list(workflow.runner.history)
    ctx = workflow.command_context
    if ctx is not None:
        if ctx.bootstrap_cluster is not None:
            record.bootstrap_cluster = ctx.bootstrap_cluster.name
        if ctx.workload_cluster is not None:
            record.workload_cluster = ctx.workload_cluster.name
            record.kubeconfig_file = ctx.workload_cluster.kubeconfig_file

    try:
        write_run_record(record)
    except OSError as exc:
        logger.warning("Unable to write run record: %s", exc)

    ui.run_summary(record)
    return rc


def run_validate(
    filename: str,
    *,
    plugin: Optional[str] = None,
    bundles_override: Optional[str] = None,
    output_dir: str = ".",
) -> int:
    """Run pre-flight validations only; return an ``EXIT_*`` code."""
    from eksa.filewriter import FileWriter
    from eksa.workflows.validate import Validate

    try:
        cluster_config, deps = _prepare(filename, plugin, bundles_override)
    except EksaError as exc:
        logger.error("%s", exc)
        ui.fail(str(exc))
        return EXIT_CONFIG_ERROR

    cluster_spec = cluster_config.spec
    workflow = Validate(
        deps.bootstrapper,
        deps.provider,
        deps.cluster_manager,
        deps.addon_manager,
        FileWriter.for_cluster(cluster_spec.name, output_dir),
    )
    ui.phase("VALIDATE")
    try:
        workflow.run(cluster_spec)
    except ValidationError as exc:
        ui.validation_table(exc.failed)
        return EXIT_VALIDATION_FAILURE
    except Exception as exc:
        ui.fail(str(exc))
        return EXIT_VALIDATION_FAILURE
    ui.ok("All validations passed")
    return EXIT_SUCCESS


# ── create command ───────────────────────────────────────────────────────────


@app.command()
def create(
    filename: str = typer.Option(
        ..., "--filename", "-f", help="Cluster config YAML file.",
    ),
    force_cleanup: bool = typer.Option(
        False,
        "--force-cleanup",
        help="Delete a leftover bootstrap cluster from a previous failed run first.",
    ),
    plugin: Optional[str] = typer.Option(
        None,
        "--plugin",
        help="Collaborator factory as module:callable. Defaults to EKSA_PLUGIN.",
    ),
    bundles_override: Optional[str] = typer.Option(
        None, "--bundles-override", help="Versions bundle YAML override.",
    ),
    output_dir: str = typer.Option(
        ".", "--output-dir", help="Directory the <cluster-name>/ artifacts go under.",
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
) -> None:
    """Create a workload cluster.

    Environment variables:
      EKSA_PLUGIN        Default collaborator factory reference.
      XDG_CONFIG_HOME    Base directory for run records (<base>/eksa/).
    """
    if debug:
        _enable_debug()

    output.action(f"Creating cluster from {Path(filename).name} ...")
    rc = run_create(
        filename,
        force_cleanup=force_cleanup,
        plugin=plugin,
        bundles_override=bundles_override,
        output_dir=output_dir,
    )
    raise typer.Exit(rc)


# ── validate command ─────────────────────────────────────────────────────────


@app.command()
def validate(
    filename: str = typer.Option(
        ..., "--filename", "-f", help="Cluster config YAML file.",
    ),
    plugin: Optional[str] = typer.Option(
        None, "--plugin", help="Collaborator factory as module:callable.",
    ),
    bundles_override: Optional[str] = typer.Option(
        None, "--bundles-override", help="Versions bundle YAML override.",
    ),
    output_dir: str = typer.Option(
        ".", "--output-dir", help="Directory the <cluster-name>/ artifacts go under.",
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
) -> None:
    """Run create pre-flight validations only (no cluster mutation).

    Exits 0 on success, 1 on validation failure.
    """
    if debug:
        _enable_debug()

    output.action(f"Validating {Path(filename).name} ...")
    rc = run_validate(
        filename,
        plugin=plugin,
        bundles_override=bundles_override,
        output_dir=output_dir,
    )
    raise typer.Exit(rc)


# ── runs command ─────────────────────────────────────────────────────────────


@app.command()
def runs(
    cluster: Optional[str] = typer.Option(
        None, "--cluster", "-c", help="Only show runs for this cluster.",
    ),
    last: bool = typer.Option(False, "--last", help="Print only the most recent record."),
) -> None:
    """List create runs recorded under the eksa config directory.

    Exit codes: 0 = records found, 4 = no records.
    """
    from eksa.state.store import list_run_records

    records = list_run_records(cluster)
    if not records:
        output.warn("No run records found.")
        raise typer.Exit(EXIT_CONFIG_ERROR)

    if last:
        output.detail(records[-1].to_sorted_json())
        raise typer.Exit(EXIT_SUCCESS)

    for record in records:
        status = "ok" if record.success else "failed"
        output.detail(f"{record.run_id}  {record.cluster_name}  {record.workflow}  {status}")
        if record.bootstrap_cluster:
            output.warn(f"  bootstrap cluster left behind: {record.bootstrap_cluster}")
    raise typer.Exit(EXIT_SUCCESS)


# ── Entry point ──────────────────────────────────────────────────────────────


def main() -> int:
    """Run the CLI and return an exit code."""
    try:
        app()
        return 0
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 0


if __name__ == "__main__":
    sys.exit(main())
