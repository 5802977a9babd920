"""Validate-only workflow: the create pre-flight gate, without mutation."""

from __future__ import annotations

from typing import Optional

from eksa.cluster.models import ClusterSpec
from eksa.task.context import CommandContext
from eksa.task.runner import Task, TaskRunner
from eksa.workflows.create import SetAndValidateTask
from eksa.workflows.interfaces import (
    AddonManager,
    Bootstrapper,
    ClusterManager,
    Provider,
    Writer,
)


class ValidateOnlyTask(SetAndValidateTask):
    name = "validate-only"

    def on_success(self) -> Optional[Task]:
        return None


class Validate:
    """Runs provider and addon-manager validations for a cluster spec."""

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

    def run(self, cluster_spec: ClusterSpec) -> None:
        """Raise the aggregated validation error if any check fails."""
        self.command_context = CommandContext(
            cluster_spec=cluster_spec,
            provider=self.provider,
            bootstrapper=self.bootstrapper,
            cluster_manager=self.cluster_manager,
            addon_manager=self.addon_manager,
            writer=self.writer,
        )
        self.runner = TaskRunner(ValidateOnlyTask())
        err = self.runner.run_task(self.command_context)
        if err is not None:
            raise err
