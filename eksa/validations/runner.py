"""Pre-flight validation runner.

Validations are independent named checks.  The runner executes every
registered validation (no short-circuit), then aggregates the failures
into a single :class:`~eksa.errors.ValidationError`.  It is a barrier:
:meth:`ValidationRunner.run` returns only once every check completed.

A validation is any zero-argument callable returning a
:class:`ValidationResult`; :func:`validation` adapts a plain check that
raises on failure.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

from eksa.errors import ValidationError
from eksa.validations.models import ValidationReport, ValidationResult

logger = logging.getLogger(__name__)

Validation = Callable[[], ValidationResult]


def validation(name: str, check: Callable[[], object]) -> Validation:
    """Wrap *check* as a named validation; any exception it raises is a failure."""

    def _run() -> ValidationResult:
        try:
            check()
        except Exception as exc:
            return ValidationResult.from_error(name, exc)
        return ValidationResult.from_error(name, None)

    return _run


class ValidationRunner:
    """Collects validations and runs them all as one gate."""

    def __init__(self, *, max_workers: int = 1, cluster_name: Optional[str] = None) -> None:
        self.max_workers = max(1, max_workers)
        self.cluster_name = cluster_name
        self._validations: List[Validation] = []
        self.report: Optional[ValidationReport] = None

    def register(self, *validations: Validation) -> None:
        self._validations.extend(validations)

    def __len__(self) -> int:
        return len(self._validations)

    def _execute(self, index: int, check: Validation) -> ValidationResult:
        try:
            result = check()
        except Exception as exc:
            # A validation that blows up instead of reporting still fails by name.
            name = getattr(check, "__name__", f"validation-{index}")
            return ValidationResult.from_error(name, exc)
        if not isinstance(result, ValidationResult):
            name = getattr(check, "__name__", f"validation-{index}")
            return ValidationResult.from_error(
                name,
                TypeError(f"validation returned {type(result).__name__}, not a ValidationResult"),
            )
        return result

    def run(self) -> ValidationReport:
        """Execute every validation and return the report.

        Raises:
            ValidationError: naming every failed validation, if any failed.
        """
        if self.max_workers == 1:
            results = [self._execute(i, v) for i, v in enumerate(self._validations)]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                futures = [
                    pool.submit(self._execute, i, v)
                    for i, v in enumerate(self._validations)
                ]
                results = [f.result() for f in futures]

        report = ValidationReport(cluster_name=self.cluster_name, results=results)
        self.report = report

        for res in results:
            if res.passed:
                logger.info("  [PASS] %s", res.name)
            else:
                logger.error("  [FAIL] %s: %s", res.name, res.error)

        if not report.passed:
            raise ValidationError(report.failed_results)

        logger.info("Validations passed: %d checks OK.", len(results))
        return report
