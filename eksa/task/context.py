"""Execution context shared by every task of one workflow run.

One :class:`CommandContext` is created per run and handed by reference
to each task.  It carries the cluster specification, the collaborator
handles, the bootstrap/workload cluster handles and the error state.

Error capture is "first error wins": the first error passed to
:meth:`CommandContext.set_error` becomes :attr:`original_error`; later
errors (usually from cleanup) are kept in :attr:`secondary_errors` and
logged, never replacing the root cause.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from eksa.errors import ContextContractError

if TYPE_CHECKING:
    from eksa.cluster.models import Cluster, ClusterSpec
    from eksa.workflows.interfaces import (
        AddonManager,
        Bootstrapper,
        ClusterManager,
        Provider,
        Writer,
    )

logger = logging.getLogger(__name__)


class CommandContext:
    """Mutable per-run state threaded through a task chain."""

    def __init__(
        self,
        *,
        cluster_spec: "ClusterSpec",
        provider: "Provider",
        bootstrapper: "Bootstrapper",
        cluster_manager: "ClusterManager",
        addon_manager: "AddonManager",
        writer: "Writer",
        rollback: bool = False,
    ) -> None:
        self.cluster_spec = cluster_spec
        self.provider = provider
        self.bootstrapper = bootstrapper
        self.cluster_manager = cluster_manager
        self.addon_manager = addon_manager
        self.writer = writer
        self.rollback = rollback

        self._bootstrap_cluster: Optional["Cluster"] = None
        self._bootstrap_assigned = False
        self._workload_cluster: Optional["Cluster"] = None
        self._original_error: Optional[BaseException] = None
        self.secondary_errors: List[BaseException] = []

    # -- error state --------------------------------------------------------

    @property
    def original_error(self) -> Optional[BaseException]:
        return self._original_error

    @property
    def failed(self) -> bool:
        return self._original_error is not None

    def set_error(self, err: BaseException) -> None:
        """Record a failure; only the first one becomes the original error."""
        if self._original_error is None:
            self._original_error = err
            logger.debug("Captured original error: %s", err)
            return
        self.secondary_errors.append(err)
        logger.warning(
            "Additional error after original failure (%s): %s",
            self._original_error,
            err,
        )

    # -- cluster handles ----------------------------------------------------

    @property
    def bootstrap_cluster(self) -> Optional["Cluster"]:
        return self._bootstrap_cluster

    @bootstrap_cluster.setter
    def bootstrap_cluster(self, cluster: "Cluster") -> None:
        if self._bootstrap_assigned:
            raise ContextContractError("bootstrap cluster can only be set once per run")
        self._bootstrap_cluster = cluster
        self._bootstrap_assigned = True

    def clear_bootstrap_cluster(self) -> None:
        """Forget the bootstrap cluster once it has been deleted.

        The handle stays spent: a cleared context still refuses a new one.
        """
        self._bootstrap_cluster = None

    @property
    def workload_cluster(self) -> Optional["Cluster"]:
        return self._workload_cluster

    @workload_cluster.setter
    def workload_cluster(self, cluster: "Cluster") -> None:
        if self._workload_cluster is not None:
            raise ContextContractError(
                f"workload cluster already set to {self._workload_cluster.name!r}"
            )
        if not self._bootstrap_assigned:
            raise ContextContractError(
                "workload cluster cannot be set before the bootstrap cluster"
            )
        self._workload_cluster = cluster
