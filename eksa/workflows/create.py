"""Create-cluster workflow.

The workflow is a chain of tasks run by :class:`~eksa.task.TaskRunner`::

    setup-validate
      -> bootstrap-cluster-init        (fail: delete-kind-cluster / end)
      -> workload-cluster-init         (fail: end)
      -> capi-management-move          (fail: end)
      -> eksa-components-install       (fail: end)
      -> addon-manager-install         (fail: warning only)
      -> write-cluster-config          (fail: still deletes bootstrap)
      -> delete-bootstrap-cluster

Each task decides its own successor from the outcome it just produced.
A failed workload cluster stage leaves the bootstrap cluster in place;
``Create.run(..., force_cleanup=True)`` removes it on the next attempt.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

from eksa import ui
from eksa.cluster.marshaller import write_cluster_config
from eksa.cluster.models import Cluster, ClusterSpec
from eksa.errors import ValidationError
from eksa.filewriter import GENERATED_DIR
from eksa.task.context import CommandContext
from eksa.task.runner import Task, TaskRunner
from eksa.validations.models import ValidationReport, ValidationResult
from eksa.validations.runner import Validation, ValidationRunner
from eksa.workflows.interfaces import (
    AddonManager,
    Bootstrapper,
    ClusterManager,
    Provider,
    Writer,
)

logger = logging.getLogger(__name__)

VALIDATION_REPORT_FILE = f"{GENERATED_DIR}/validation-report.json"


def _attempt(command_context: CommandContext, operation: Callable[..., Any], *args: Any) -> bool:
    """Call *operation*; on failure record the error and return False."""
    try:
        operation(*args)
    except Exception as exc:
        command_context.set_error(exc)
        return False
    return True


# ---------------------------------------------------------------------------
# Workflow entry point
# ---------------------------------------------------------------------------


class Create:
    """Creates a workload cluster through a temporary bootstrap cluster."""

    def __init__(
        self,
        bootstrapper: Bootstrapper,
        provider: Provider,
        cluster_manager: ClusterManager,
        addon_manager: AddonManager,
        writer: Writer,
    ) -> None:
        self.bootstrapper = bootstrapper
        self.provider = provider
        self.cluster_manager = cluster_manager
        self.addon_manager = addon_manager
        self.writer = writer
        self.command_context: Optional[CommandContext] = None
        self.runner: Optional[TaskRunner] = None

    def run(self, cluster_spec: ClusterSpec, force_cleanup: bool = False) -> None:
        """Run the create chain.

        Raises the first error captured during the run.  With
        *force_cleanup*, a stale bootstrap cluster named after the cluster
        is deleted first; failing to delete it aborts before any task runs.
        """
        if force_cleanup:
            logger.info("Deleting leftover bootstrap cluster for %s", cluster_spec.name)
            self.bootstrapper.delete_bootstrap_cluster(Cluster(name=cluster_spec.name), False)

        self.command_context = CommandContext(
            cluster_spec=cluster_spec,
            provider=self.provider,
            bootstrapper=self.bootstrapper,
            cluster_manager=self.cluster_manager,
            addon_manager=self.addon_manager,
            writer=self.writer,
            rollback=False,
        )
        self.runner = TaskRunner(SetAndValidateTask())
        err = self.runner.run_task(self.command_context)
        if err is not None:
            raise err


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class SetAndValidateTask(Task):
    """Runs provider and addon-manager pre-flight validations as one gate."""

    name = "setup-validate"

    def run(self, command_context: CommandContext) -> Optional[Task]:
        logger.info("Performing setup and validations")
        spec = command_context.cluster_spec
        runner = ValidationRunner(cluster_name=spec.name)
        runner.register(*self.provider_validations(command_context))
        try:
            runner.register(*command_context.addon_manager.validations(spec))
        except Exception as exc:
            command_context.set_error(exc)
            return None

        try:
            runner.run()
        except ValidationError as exc:
            command_context.set_error(exc)
            return None
        finally:
            if runner.report is not None:
                _write_validation_report(command_context, runner.report)
        return self.on_success()

    def on_success(self) -> Optional[Task]:
        return CreateBootstrapClusterTask()

    @staticmethod
    def provider_validations(command_context: CommandContext) -> List[Validation]:
        provider = command_context.provider
        spec = command_context.cluster_spec

        def _provider_setup() -> ValidationResult:
            name = f"{provider.name()} Provider setup is valid"
            try:
                provider.setup_and_validate_create_cluster(spec)
            except Exception as exc:
                return ValidationResult.from_error(name, exc)
            return ValidationResult.from_error(name, None)

        return [_provider_setup]


def _write_validation_report(command_context: CommandContext, report: ValidationReport) -> None:
    try:
        command_context.writer.write(VALIDATION_REPORT_FILE, report.to_sorted_json() + "\n")
    except Exception as exc:
        logger.warning("Unable to write validation report: %s", exc)


class CreateBootstrapClusterTask(Task):
    """Creates the bootstrap cluster and installs cluster-api on it."""

    name = "bootstrap-cluster-init"

    def run(self, command_context: CommandContext) -> Optional[Task]:
        logger.info("Creating new bootstrap cluster")
        ctx = command_context
        try:
            opts = ctx.provider.bootstrap_cluster_opts() or {}
        except Exception as exc:
            ctx.set_error(exc)
            return None

        try:
            bootstrap_cluster = ctx.bootstrapper.create_bootstrap_cluster(ctx.cluster_spec, **opts)
        except Exception as exc:
            ctx.set_error(exc)
            return DeleteKindClusterTask()
        ctx.bootstrap_cluster = bootstrap_cluster

        logger.info("Installing cluster-api providers on bootstrap cluster")
        if not _attempt(
            ctx, ctx.cluster_manager.install_capi, ctx.cluster_spec, bootstrap_cluster, ctx.provider,
        ):
            return DeleteKindClusterTask()

        logger.info("Provider specific setup")
        if not _attempt(ctx, ctx.provider.bootstrap_setup, ctx.cluster_spec.cluster, bootstrap_cluster):
            return DeleteKindClusterTask()

        return CreateWorkloadClusterTask()


class DeleteKindClusterTask(Task):
    """Cleanup after a failed bootstrap stage."""

    name = "delete-kind-cluster"

    def run(self, command_context: CommandContext) -> Optional[Task]:
        cluster = command_context.bootstrap_cluster
        if cluster is None:
            logger.info("Bootstrap cluster information missing - skipping delete kind cluster")
            return None
        if _attempt(command_context, command_context.bootstrapper.delete_bootstrap_cluster, cluster, False):
            command_context.clear_bootstrap_cluster()
        return None


class CreateWorkloadClusterTask(Task):
    """Provisions the workload cluster through the bootstrap cluster."""

    name = "workload-cluster-init"

    def run(self, command_context: CommandContext) -> Optional[Task]:
        ctx = command_context
        manager = ctx.cluster_manager

        logger.info("Creating new workload cluster")
        try:
            workload_cluster = manager.create_workload_cluster(
                ctx.bootstrap_cluster, ctx.cluster_spec, ctx.provider,
            )
        except Exception as exc:
            ctx.set_error(exc)
            return None
        ctx.workload_cluster = workload_cluster

        logger.info("Installing networking on workload cluster")
        if not _attempt(ctx, manager.install_networking, workload_cluster, ctx.cluster_spec):
            return None

        logger.info("Installing storage class on workload cluster")
        if not _attempt(ctx, manager.install_storage_class, workload_cluster, ctx.provider):
            return None

        logger.info("Installing cluster-api providers on workload cluster")
        if not _attempt(ctx, manager.install_capi, ctx.cluster_spec, workload_cluster, ctx.provider):
            return None

        logger.debug("Installing machine health checks on bootstrap cluster")
        if not _attempt(ctx, manager.install_machine_health_checks, ctx.bootstrap_cluster, ctx.provider):
            return None

        return MoveClusterManagementTask()


class MoveClusterManagementTask(Task):
    name = "capi-management-move"

    def run(self, command_context: CommandContext) -> Optional[Task]:
        logger.info("Moving cluster management from bootstrap to workload cluster")
        ctx = command_context
        if not _attempt(ctx, ctx.cluster_manager.move_capi, ctx.bootstrap_cluster, ctx.workload_cluster):
            return None
        return InstallEksaComponentsTask()


class InstallEksaComponentsTask(Task):
    """Installs the eksa CRDs/controller and creates the eksa objects."""

    name = "eksa-components-install"

    def run(self, command_context: CommandContext) -> Optional[Task]:
        ctx = command_context
        manager = ctx.cluster_manager

        logger.info("Installing EKS-A custom components (CRD and controller) on workload cluster")
        if not _attempt(ctx, manager.install_custom_components, ctx.cluster_spec, ctx.workload_cluster):
            return None

        logger.info("Creating EKS-A CRDs instances on workload cluster")
        try:
            datacenter_config = ctx.provider.datacenter_config()
            machine_configs = ctx.provider.machine_configs()
        except Exception as exc:
            ctx.set_error(exc)
            return None

        # create-webhook validation is skipped while objects are paused
        ctx.cluster_spec.pause_reconcile()
        datacenter_config.pause_reconcile()

        if not _attempt(
            ctx,
            manager.create_eksa_resources,
            ctx.workload_cluster,
            ctx.cluster_spec,
            datacenter_config,
            machine_configs,
        ):
            return None

        if not _attempt(
            ctx,
            manager.resume_eksa_controller_reconcile,
            ctx.workload_cluster,
            ctx.cluster_spec,
            ctx.provider,
        ):
            return None

        return InstallAddonManagerTask()


class InstallAddonManagerTask(Task):
    """Installs GitOps; a failure here is downgraded to a warning."""

    name = "addon-manager-install"

    def run(self, command_context: CommandContext) -> Optional[Task]:
        logger.info("Installing AddonManager and GitOps Toolkit on workload cluster")
        ctx = command_context
        try:
            ctx.addon_manager.install_gitops(
                ctx.workload_cluster,
                ctx.cluster_spec,
                ctx.provider.datacenter_config(),
                ctx.provider.machine_configs(),
            )
        except Exception as exc:
            logger.warning(
                "Error when installing GitOps toolkits on workload cluster; "
                "EKS-A will continue with cluster creation, but GitOps will not be enabled: %s",
                exc,
            )
            ui.warn("GitOps toolkit install failed; continuing without GitOps")
        return WriteClusterConfigTask()


class WriteClusterConfigTask(Task):
    name = "write-cluster-config"

    def run(self, command_context: CommandContext) -> Optional[Task]:
        logger.info("Writing cluster config file")
        ctx = command_context
        try:
            write_cluster_config(
                ctx.cluster_spec,
                ctx.provider.datacenter_config(),
                ctx.provider.machine_configs(),
                ctx.writer,
            )
        except Exception as exc:
            ctx.set_error(exc)
        return DeleteBootstrapClusterTask()


class DeleteBootstrapClusterTask(Task):
    """Final stage: tears down the bootstrap cluster."""

    name = "delete-bootstrap-cluster"

    def run(self, command_context: CommandContext) -> Optional[Task]:
        logger.info("Deleting bootstrap cluster")
        ctx = command_context
        if ctx.bootstrap_cluster is not None and _attempt(
            ctx, ctx.bootstrapper.delete_bootstrap_cluster, ctx.bootstrap_cluster, False,
        ):
            ctx.clear_bootstrap_cluster()
        if ctx.original_error is None:
            logger.info("Cluster created!")
            ui.ok("Cluster created!")
        return None
