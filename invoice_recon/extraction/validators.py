"""
Draft Validators Module.

This module provides consistency checks for extracted drafts:
    - Required fields were actually found in the text
    - Subtotal + tax agrees with the total
    - Line items add up to the subtotal or total
    - Due date does not precede the invoice date
    - Currency looks like an ISO code

Validation never modifies a draft and never raises; findings are
reported as messages for the caller to surface.

Author: Finance Automation Team
"""

import re
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from dateutil import parser as date_parser

from config import get_config
from invoice_recon.utils.logger import get_logger
from .draft import InvoiceDraft

# Initialize module logger
logger = get_logger(__name__)


class ValidationResult:
    """
    Contains the result of validation checks.

    Attributes:
        is_valid: False once any error was recorded
        errors: List of error messages
        warnings: List of warning messages
    """

    def __init__(self):
        self.is_valid = True
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def add_error(self, message: str) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(message)

    @property
    def all_messages(self) -> List[str]:
        """Errors followed by warnings."""
        return self.errors + self.warnings

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'is_valid': self.is_valid,
            'errors': self.errors,
            'warnings': self.warnings,
        }


class DateChecker:
    """
    Parses raw textual dates for cross-field checks.

    Dates stay in their raw form on the draft; parsing here is only used
    to compare them.
    """

    def parse(self, date_str: Optional[str]) -> Optional[datetime]:
        """
        Parse a raw date string with dateutil's fuzzy parser.

        Args:
            date_str: Raw date text.

        Returns:
            Parsed datetime or None.
        """
        if not date_str:
            return None
        try:
            return date_parser.parse(date_str, dayfirst=False, fuzzy=True)
        except (ValueError, OverflowError):
            return None

    def is_due_after_invoice(
        self,
        invoice_date: Optional[str],
        due_date: Optional[str]
    ) -> Tuple[bool, str]:
        """
        Check if due date is after or equal to invoice date.

        Args:
            invoice_date: Invoice date string.
            due_date: Payment due date string.

        Returns:
            Tuple of (is_valid, message).
        """
        inv_parsed = self.parse(invoice_date)
        due_parsed = self.parse(due_date)

        if inv_parsed is None or due_parsed is None:
            return True, "Could not validate date relationship"

        if due_parsed < inv_parsed:
            return False, f"Due date {due_date} is before invoice date {invoice_date}"

        return True, "Valid date relationship"


class DraftValidator:
    """
    Cross-field validation for extracted invoice drafts.

    Example:
        >>> validator = DraftValidator()
        >>> result = validator.validate(draft)
        >>> print(result.is_valid, result.warnings)
    """

    _CURRENCY_CODE = re.compile(r'^[A-Z]{3}$')

    def __init__(self) -> None:
        """Initialize the draft validator."""
        self.required_fields = get_config(
            "validation.required_fields",
            ["invoice_number", "total_amount"]
        )
        self.total_tolerance = Decimal(str(get_config("validation.total_tolerance", "0.01")))
        self.date_checker = DateChecker()

        logger.debug(f"DraftValidator initialized (required: {self.required_fields})")

    def validate(self, draft: InvoiceDraft) -> ValidationResult:
        """
        Validate a draft without modifying it.

        Args:
            draft: Extracted invoice draft.

        Returns:
            ValidationResult with errors and warnings.
        """
        result = ValidationResult()

        for field_name in self.required_fields:
            if field_name not in draft.extracted_fields:
                result.add_error(f"Required field missing: {field_name}")

        self._check_totals(draft, result)
        self._check_line_items(draft, result)

        is_valid, message = self.date_checker.is_due_after_invoice(
            draft.invoice_date,
            draft.due_date
        )
        if not is_valid:
            result.add_warning(message)

        if not self._CURRENCY_CODE.match(draft.currency or ''):
            result.add_warning(f"Unrecognized currency code: {draft.currency!r}")

        logger.debug(
            f"Validated {draft.invoice_number}: "
            f"{len(result.errors)} errors, {len(result.warnings)} warnings"
        )
        return result

    def _check_totals(self, draft: InvoiceDraft, result: ValidationResult) -> None:
        # Only meaningful when all three amounts came from the text
        if not {'subtotal', 'tax', 'total_amount'} <= set(draft.extracted_fields):
            return

        expected = draft.subtotal + draft.tax
        if abs(expected - draft.total_amount) > self.total_tolerance:
            result.add_warning(
                f"Subtotal {draft.subtotal} + tax {draft.tax} = {expected} "
                f"does not equal total {draft.total_amount}"
            )

    def _check_line_items(self, draft: InvoiceDraft, result: ValidationResult) -> None:
        if not draft.line_items:
            return

        items_total = draft.line_items_total
        for target in (draft.subtotal, draft.total_amount):
            if abs(items_total - target) <= self.total_tolerance:
                return

        result.add_warning(
            f"Line items sum to {items_total}, matching neither "
            f"subtotal {draft.subtotal} nor total {draft.total_amount}"
        )
