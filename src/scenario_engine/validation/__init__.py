"""Static validation of scenario rule documents."""

from scenario_engine.validation.validator import (
    Severity,
    ValidationIssue,
    has_errors,
    validate_rules,
)

__all__ = [
    "Severity",
    "ValidationIssue",
    "has_errors",
    "validate_rules",
]
