"""Task chain executor.

A :class:`Task` performs one stage against the shared
:class:`~eksa.task.context.CommandContext` and returns the next task to
run, or ``None`` to end the chain.  Transition knowledge lives entirely
in the tasks; :class:`TaskRunner` only loops, so any workflow (create,
delete, upgrade) can reuse it.
"""

from __future__ import annotations

import abc
import logging
from typing import List, Optional

from eksa.task.context import CommandContext

logger = logging.getLogger(__name__)


class Task(abc.ABC):
    """One stage of a workflow.

    Tasks hold no working state; everything lives in the context.
    """

    name: str = ""

    @abc.abstractmethod
    def run(self, command_context: CommandContext) -> Optional["Task"]:
        """Perform the stage and return its successor (``None`` ends the chain)."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class TaskRunner:
    """Runs a task chain to completion.

    Tasks run strictly one after another.  The runner imposes no
    timeouts; collaborators own their timeout and retry policy.
    """

    def __init__(self, task: Task) -> None:
        self.task = task
        self.history: List[str] = []

    def run_task(self, command_context: CommandContext) -> Optional[BaseException]:
        """Run the chain and return the context's original error, if any.

        On failure the cluster manager is asked to collect diagnostic
        logs; a failure there is logged and never masks the original error.
        """
        current: Optional[Task] = self.task
        while current is not None:
            self.history.append(current.name)
            logger.debug("Task start: %s", current.name)
            successor = current.run(command_context)
            logger.debug(
                "Task finished: %s -> %s",
                current.name,
                successor.name if successor is not None else "(end)",
            )
            current = successor

        err = command_context.original_error
        if err is not None:
            self._collect_logs(command_context)
        return err

    @staticmethod
    def _collect_logs(command_context: CommandContext) -> None:
        try:
            command_context.cluster_manager.save_logs(command_context.bootstrap_cluster)
        except Exception as exc:
            logger.warning("Failed to collect diagnostic logs: %s", exc)
