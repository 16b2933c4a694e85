"""
Invoice Draft Data Classes.

This module defines the data structures produced by the field extractor,
providing a standardized format for extracted invoice fields.

Author: Finance Automation Team
"""

import json
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from invoice_recon.normalizers import normalize_amount

UNKNOWN_VENDOR = "Unknown Vendor"
ANCHOR_FIELDS = ('invoice_number', 'vendor_name', 'invoice_date', 'total_amount')


def decimal_to_str(value: Optional[Decimal]) -> Optional[str]:
    """Render a Decimal for JSON output, keeping None as None."""
    return None if value is None else str(value)


@dataclass
class LineItem:
    """
    A single tabular row found in the invoice body.

    Attributes:
        description: Row label text
        quantity: Units billed (defaults to 1)
        unit_price: Price per unit (defaults to the row amount)
        amount: Row total, always within the retained bound
    """
    description: str
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'description': self.description,
            'quantity': decimal_to_str(self.quantity),
            'unit_price': decimal_to_str(self.unit_price),
            'amount': decimal_to_str(self.amount),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LineItem':
        return cls(
            description=data.get('description', ''),
            quantity=normalize_amount(data.get('quantity')) or Decimal("1"),
            unit_price=normalize_amount(data.get('unit_price')),
            amount=normalize_amount(data.get('amount')),
        )


@dataclass
class InvoiceDraft:
    """
    Represents the result of extracting fields from raw invoice text.

    Every field is populated: unmatched fields carry their documented
    default, so a draft is usable even when OCR output was partial.

    Attributes:
        invoice_number: Invoice identifier or a generated placeholder
        vendor_name: Seller name or "Unknown Vendor"
        invoice_date: Issue date in raw textual form
        due_date: Payment due date in raw textual form
        subtotal: Amount before tax (see fallback chain in FieldExtractor)
        tax: Tax amount, zero when absent
        total_amount: Amount due, never None
        currency: 3-letter currency code
        line_items: Rows found by the line item extractor
        confidence: Share of anchor fields found, 0-100
        extracted_fields: Names of fields found in the text rather than defaulted
        warnings: Validation warnings, empty unless validation ran

    Example:
        >>> draft = FieldExtractor().extract(text)
        >>> print(draft.to_json())
    """
    invoice_number: str
    vendor_name: str = UNKNOWN_VENDOR
    invoice_date: Optional[str] = None
    due_date: Optional[str] = None
    subtotal: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    currency: str = "USD"
    line_items: List[LineItem] = field(default_factory=list)
    confidence: int = 0
    extracted_fields: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def line_items_total(self) -> Decimal:
        """Sum of all retained line item amounts."""
        return sum((item.amount for item in self.line_items), Decimal("0"))

    def add_warning(self, warning: str) -> None:
        """Add a warning message."""
        self.warnings.append(warning)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary format.

        Returns:
            Dictionary with decimals rendered as strings.
        """
        return {
            'invoice_number': self.invoice_number,
            'vendor_name': self.vendor_name,
            'invoice_date': self.invoice_date,
            'due_date': self.due_date,
            'subtotal': decimal_to_str(self.subtotal),
            'tax': decimal_to_str(self.tax),
            'total_amount': decimal_to_str(self.total_amount),
            'currency': self.currency,
            'line_items': [item.to_dict() for item in self.line_items],
            'confidence': self.confidence,
            'extracted_fields': list(self.extracted_fields),
            'warnings': list(self.warnings),
        }

    def to_json(self, indent: int = 2) -> str:
        """
        Convert to JSON string.

        Args:
            indent: JSON indentation level.

        Returns:
            JSON string representation.
        """
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def __repr__(self) -> str:
        return (
            f"InvoiceDraft("
            f"invoice={self.invoice_number}, "
            f"vendor={self.vendor_name}, "
            f"total={self.total_amount} {self.currency}, "
            f"confidence={self.confidence}%)"
        )
