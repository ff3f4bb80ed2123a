"""Validation module for checking rule and override data."""

from staffcal.validation.validator import (
    RuleSetValidator,
    ValidationError,
    ValidationErrorType,
    ValidationResult,
)

__all__ = [
    "RuleSetValidator",
    "ValidationError",
    "ValidationErrorType",
    "ValidationResult",
]
