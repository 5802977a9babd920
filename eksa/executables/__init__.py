"""Wrappers around external lifecycle CLIs."""

from eksa.executables.clusterctl import (
    CLUSTERCTL_CONFIG_FILE,
    Clusterctl,
    ClusterctlConfiguration,
    InfrastructureBundle,
)
from eksa.executables.executable import Executable, ExecResult

__all__ = [
    "CLUSTERCTL_CONFIG_FILE",
    "Clusterctl",
    "ClusterctlConfiguration",
    "ExecResult",
    "Executable",
    "InfrastructureBundle",
]
