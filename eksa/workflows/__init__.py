"""Cluster lifecycle workflows built on the task-chain engine."""

from eksa.workflows.create import (
    Create,
    CreateBootstrapClusterTask,
    CreateWorkloadClusterTask,
    DeleteBootstrapClusterTask,
    DeleteKindClusterTask,
    InstallAddonManagerTask,
    InstallEksaComponentsTask,
    MoveClusterManagementTask,
    SetAndValidateTask,
    WriteClusterConfigTask,
)
from eksa.workflows.validate import Validate, ValidateOnlyTask

__all__ = [
    "Create",
    "CreateBootstrapClusterTask",
    "CreateWorkloadClusterTask",
    "DeleteBootstrapClusterTask",
    "DeleteKindClusterTask",
    "InstallAddonManagerTask",
    "InstallEksaComponentsTask",
    "MoveClusterManagementTask",
    "SetAndValidateTask",
    "Validate",
    "ValidateOnlyTask",
    "WriteClusterConfigTask",
]
