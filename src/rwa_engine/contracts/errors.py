"""
Error handling contracts for the RWA engine.

Provides structured error representation using the Result pattern:
- CalculationError: Immutable error details for a single issue
- ErrorCollector: Mixin giving result containers severity filters

Degenerate inputs (missing fields, empty selections, zero exposure) are
reported as CalculationError values on the returned result instead of
being raised, so a whole portfolio can be processed in one pass.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from rwa_engine.domain.enums import ErrorCategory, ErrorSeverity


@dataclass(frozen=True)
class CalculationError:
    """
    Immutable representation of a calculation error or warning.

    Attributes:
        code: Unique error code (e.g., "DQ001", "OPT003")
        message: Human-readable description of the issue
        severity: Error severity level (WARNING, ERROR, CRITICAL)
        category: Error category for filtering
        counterparty_reference: Optional id of the affected counterparty
        field_name: Optional name of the problematic field
        expected_value: Optional description of expected value/format
        actual_value: Optional actual value that caused the error
    """

    code: str
    message: str
    severity: ErrorSeverity
    category: ErrorCategory
    counterparty_reference: str | None = None
    field_name: str | None = None
    expected_value: str | None = None
    actual_value: str | None = None

    def __str__(self) -> str:
        """Human-readable error representation."""
        parts = [f"[{self.code}] {self.severity.value.upper()}: {self.message}"]

        if self.counterparty_reference:
            parts.append(f"Counterparty: {self.counterparty_reference}")
        if self.field_name:
            parts.append(f"Field: {self.field_name}")

        return " | ".join(parts)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "counterparty_reference": self.counterparty_reference,
            "field_name": self.field_name,
            "expected_value": self.expected_value,
            "actual_value": self.actual_value,
        }


class ErrorCollector:
    """
    Severity helpers for result containers carrying an `errors` attribute.
    """

    errors: Iterable[CalculationError]

    @property
    def has_errors(self) -> bool:
        """Check if any errors (not warnings) occurred."""
        return any(
            e.severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
            for e in self.errors
        )

    @property
    def warnings(self) -> list[CalculationError]:
        """Get only warning-level issues."""
        return [e for e in self.errors if e.severity == ErrorSeverity.WARNING]

    def errors_by_code(self, code: str) -> list[CalculationError]:
        """Filter errors by code."""
        return [e for e in self.errors if e.code == code]


# =============================================================================
# ERROR CODE CONSTANTS
# =============================================================================

# Data quality error codes
ERROR_MISSING_FIELD = "DQ001"
ERROR_INVALID_VALUE = "DQ002"
ERROR_MISSING_COUNTERPARTY = "DQ003"

# Adjustment error codes
ERROR_UNKNOWN_COUNTERPARTY = "ADJ001"
ERROR_EMPTY_SELECTION = "ADJ002"
ERROR_ZERO_BASELINE = "ADJ003"

# Optimizer error codes
ERROR_TARGET_NOT_BELOW_CURRENT = "OPT001"
ERROR_INVALID_TARGET = "OPT002"
ERROR_TARGET_NOT_REACHED = "OPT003"
ERROR_ZERO_EXPOSURE = "OPT004"


# =============================================================================
# ERROR FACTORY FUNCTIONS
# =============================================================================


def missing_field_warning(
    field_name: str,
    default: float,
    counterparty_reference: str | None = None,
) -> CalculationError:
    """Create a warning for a missing field replaced by its default."""
    return CalculationError(
        code=ERROR_MISSING_FIELD,
        message=f"Field '{field_name}' is missing or not a number, using default {default}",
        severity=ErrorSeverity.WARNING,
        category=ErrorCategory.DATA_QUALITY,
        counterparty_reference=counterparty_reference,
        field_name=field_name,
        expected_value="finite number",
    )


def invalid_value_error(
    field_name: str,
    actual_value: str,
    expected_value: str,
    counterparty_reference: str | None = None,
) -> CalculationError:
    """Create an invalid value error."""
    return CalculationError(
        code=ERROR_INVALID_VALUE,
        message=f"Invalid value for '{field_name}': expected {expected_value}, got {actual_value}",
        severity=ErrorSeverity.ERROR,
        category=ErrorCategory.DATA_QUALITY,
        counterparty_reference=counterparty_reference,
        field_name=field_name,
        expected_value=expected_value,
        actual_value=actual_value,
    )


def adjustment_warning(
    code: str,
    message: str,
    counterparty_reference: str | None = None,
) -> CalculationError:
    """Create an adjustment-related warning."""
    return CalculationError(
        code=code,
        message=message,
        severity=ErrorSeverity.WARNING,
        category=ErrorCategory.ADJUSTMENT,
        counterparty_reference=counterparty_reference,
    )


def optimization_error(
    code: str,
    message: str,
    counterparty_reference: str | None = None,
    severity: ErrorSeverity = ErrorSeverity.WARNING,
) -> CalculationError:
    """Create an optimizer diagnostic."""
    return CalculationError(
        code=code,
        message=message,
        severity=severity,
        category=ErrorCategory.OPTIMIZATION,
        counterparty_reference=counterparty_reference,
    )
