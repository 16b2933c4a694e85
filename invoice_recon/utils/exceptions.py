"""
Custom Exceptions Module.

This module defines all custom exceptions used throughout the invoice
reconciliation system. Extraction and matching are total over well-typed
input, so exceptions here signal contract violations and setup problems,
never noisy data.

Exception Hierarchy:
    InvoiceReconError (base)
    ├── ConfigurationError
    ├── ExtractionError
    └── ReconciliationError
        └── ContractViolationError
            ├── EmptyInvoiceBatchError
            ├── InvalidRecordBatchError
            └── MissingInvoiceIdError
"""


class InvoiceReconError(Exception):
    """
    Base exception for all invoice reconciliation errors.

    All custom exceptions in this system inherit from this class,
    allowing for easy catching of all system-specific errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(InvoiceReconError):
    """Raised when the settings file is missing or unreadable."""
    pass


class ExtractionError(InvoiceReconError):
    """
    Raised when the extractor is called with something that is not text.

    Example:
        >>> raise ExtractionError("raw_text must be a string", {"type": "bytes"})
    """
    pass


# =============================================================================
# RECONCILIATION ERRORS
# =============================================================================

class ReconciliationError(InvoiceReconError):
    """Base exception for reconciliation errors."""
    pass


class ContractViolationError(ReconciliationError):
    """Raised when the engine is invoked with inputs that break its contract."""
    pass


class EmptyInvoiceBatchError(ContractViolationError):
    """Raised when reconcile() receives no invoices."""

    def __init__(self):
        super().__init__("No invoices supplied for reconciliation")


class InvalidRecordBatchError(ContractViolationError):
    """Raised when payment records are not a list or tuple."""

    def __init__(self, received_type: str):
        message = "payment_records must be a list of PaymentRecord"
        details = {"received_type": received_type}
        super().__init__(message, details)


class MissingInvoiceIdError(ContractViolationError):
    """Raised when an invoice in the batch carries no id."""

    def __init__(self, position: int, invoice_number: str = None):
        message = f"Invoice at position {position} has no id"
        details = {"position": position, "invoice_number": invoice_number}
        super().__init__(message, details)


__all__ = [
    'InvoiceReconError',
    'ConfigurationError',
    'ExtractionError',
    'ReconciliationError',
    'ContractViolationError',
    'EmptyInvoiceBatchError',
    'InvalidRecordBatchError',
    'MissingInvoiceIdError',
]
