"""Generic task-chain engine and its execution context."""

from eksa.task.context import CommandContext
from eksa.task.runner import Task, TaskRunner

__all__ = ["CommandContext", "Task", "TaskRunner"]
