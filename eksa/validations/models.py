"""Validation result and report models.

A :class:`ValidationReport` serialises to sorted-key JSON::

    {
      "cluster_name": "dev",
      "results": [
        {"error": "", "name": "vsphere Provider setup is valid", "status": "PASS"}
      ],
      "run_id": "YYYYMMDDHHMMSS"
    }
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class ValidationStatus(str, Enum):
    """Outcome of a single validation."""

    PASS = "PASS"
    FAIL = "FAIL"


class ValidationResult(BaseModel):
    """Named outcome of one pre-flight check.

    Attributes:
        name: Human-readable check name, e.g. ``vsphere Provider setup is valid``.
        status: PASS or FAIL.
        error: Failure cause; empty when status is PASS.
    """

    name: str
    status: ValidationStatus = ValidationStatus.PASS
    error: str = ""

    @property
    def passed(self) -> bool:
        return self.status == ValidationStatus.PASS

    @classmethod
    def from_error(cls, name: str, err: Optional[BaseException]) -> "ValidationResult":
        """Build a result from a check's raised (or absent) exception."""
        if err is None:
            return cls(name=name)
        return cls(name=name, status=ValidationStatus.FAIL, error=str(err) or type(err).__name__)


class ValidationReport(BaseModel):
    """Aggregate of every validation executed by one runner."""

    run_id: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S"),
    )
    cluster_name: Optional[str] = None
    results: List[ValidationResult] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        """True when **no** result has FAIL status."""
        return not any(r.status == ValidationStatus.FAIL for r in self.results)

    @property
    def failed_results(self) -> List[ValidationResult]:
        return [r for r in self.results if r.status == ValidationStatus.FAIL]

    def to_sorted_json(self, indent: int = 2) -> str:
        """Serialise with sorted keys for deterministic output."""
        return json.dumps(
            self.model_dump(mode="json"),
            indent=indent,
            sort_keys=True,
        )
