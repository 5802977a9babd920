"""Exception hierarchy for the eksa control plane."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence

if TYPE_CHECKING:
    from eksa.validations.models import ValidationResult


class EksaError(Exception):
    """Base class for every recoverable eksa failure."""


class ValidationError(EksaError):
    """One or more pre-flight validations failed.

    The message names every failed validation so the operator sees the
    whole picture from a single run.
    """

    def __init__(self, failed: Sequence["ValidationResult"]) -> None:
        self.failed: List["ValidationResult"] = list(failed)
        summary = "; ".join(f"{r.name}: {r.error}" for r in self.failed)
        super().__init__(f"validations failed: {summary}")

    @property
    def failed_names(self) -> List[str]:
        return [r.name for r in self.failed]


class ContextContractError(RuntimeError):
    """A task broke the execution context contract (programming error)."""


class ExecutableError(EksaError):
    """An external CLI exited non-zero or could not be started."""

    def __init__(self, command: str, returncode: int, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"{command} failed (rc={returncode}): {stderr or '(no stderr)'}"
        )


class PluginError(EksaError):
    """The collaborator factory reference could not be resolved."""
