"""Pre-flight validation framework."""

from eksa.validations.models import (
    ValidationReport,
    ValidationResult,
    ValidationStatus,
)
from eksa.validations.runner import Validation, ValidationRunner, validation

__all__ = [
    "Validation",
    "ValidationReport",
    "ValidationResult",
    "ValidationRunner",
    "ValidationStatus",
    "validation",
]
