"""
Reconciliation Data Classes.

This module defines the inputs and outputs of a reconciliation run:
invoices, payment register records, per-invoice match results and the
run summary.

Author: Finance Automation Team
"""

import json
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Hashable, List, NamedTuple, Optional, Sequence, Tuple

from invoice_recon.extraction.draft import InvoiceDraft, LineItem, decimal_to_str
from invoice_recon.normalizers import AmountNormalizer, normalize_amount


def _json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    return value


class MatchStatus(str, Enum):
    """Outcome of matching one invoice."""
    MATCHED = "matched"
    MISMATCH = "mismatch"
    MISSING = "missing"
    DUPLICATE = "duplicate"


@dataclass
class Invoice:
    """
    A persisted invoice as supplied by the caller.

    Amount fields may hold raw values ("$1,200.00", 1200, None); the
    engine normalizes them, so callers can pass stored rows unchanged.

    Attributes:
        id: Opaque identifier, required
        invoice_number: Invoice identifier as extracted or edited
        vendor_name: Seller name
        total_amount: Amount due (raw or Decimal)
    """
    id: Hashable
    invoice_number: Optional[str] = None
    vendor_name: Optional[str] = None
    total_amount: Any = None
    invoice_date: Optional[str] = None
    due_date: Optional[str] = None
    subtotal: Any = None
    tax: Any = None
    currency: str = "USD"
    line_items: List[LineItem] = field(default_factory=list)
    confidence: int = 0

    @classmethod
    def from_draft(cls, draft: InvoiceDraft, invoice_id: Hashable) -> 'Invoice':
        """
        Build an invoice from an extractor draft.

        Args:
            draft: Output of FieldExtractor.extract().
            invoice_id: Identifier assigned by the persistence layer.

        Returns:
            Invoice carrying every draft field.
        """
        return cls(
            id=invoice_id,
            invoice_number=draft.invoice_number,
            vendor_name=draft.vendor_name,
            total_amount=draft.total_amount,
            invoice_date=draft.invoice_date,
            due_date=draft.due_date,
            subtotal=draft.subtotal,
            tax=draft.tax,
            currency=draft.currency,
            line_items=list(draft.line_items),
            confidence=draft.confidence,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Invoice':
        """
        Create Invoice from dictionary.

        Args:
            data: Dictionary with invoice data.

        Returns:
            Invoice instance.
        """
        return cls(
            id=data.get('id'),
            invoice_number=data.get('invoice_number'),
            vendor_name=data.get('vendor_name'),
            total_amount=data.get('total_amount'),
            invoice_date=data.get('invoice_date'),
            due_date=data.get('due_date'),
            subtotal=data.get('subtotal'),
            tax=data.get('tax'),
            currency=data.get('currency') or "USD",
            line_items=[LineItem.from_dict(item) for item in data.get('line_items') or []],
            confidence=data.get('confidence') or 0,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return {
            'id': self.id,
            'invoice_number': self.invoice_number,
            'vendor_name': self.vendor_name,
            'total_amount': _json_value(self.total_amount),
            'invoice_date': self.invoice_date,
            'due_date': self.due_date,
            'subtotal': _json_value(self.subtotal),
            'tax': _json_value(self.tax),
            'currency': self.currency,
            'line_items': [item.to_dict() for item in self.line_items],
            'confidence': self.confidence,
        }


@dataclass(frozen=True)
class PaymentRecord:
    """
    One row of the externally supplied payment register.

    Records belong to the caller and are never modified by the engine.

    Attributes:
        id: Opaque identifier
        vendor_name: Payee name as written in the register
        expected_amount: Amount expected to be invoiced (raw or Decimal)
        due_date: Due date in raw textual form
        reference_number: Register reference, often the invoice number
        status: Register payment status
    """
    id: Hashable
    vendor_name: str = ""
    expected_amount: Any = None
    due_date: Optional[str] = None
    reference_number: Optional[str] = None
    status: str = "unpaid"

    # Register column aliases, checked in order after the canonical name
    VENDOR_KEYS = ('vendor_name', 'vendor', 'company', 'name')
    AMOUNT_KEYS = ('expected_amount', 'amount', 'total')
    DUE_DATE_KEYS = ('due_date', 'due', 'date')
    REFERENCE_KEYS = ('reference_number', 'ref', 'invoice_number', 'invoice_no')

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PaymentRecord':
        """
        Create a PaymentRecord from an already-deserialized register row.

        Keys are matched case-insensitively with whitespace read as "_",
        and the usual column aliases are accepted ("Vendor", "Amount",
        "Ref", ...). Rows without an id get a generated UUID.

        Args:
            data: Register row.

        Returns:
            PaymentRecord instance.
        """
        row = {'_'.join(str(key).lower().split()): value for key, value in data.items()}

        def first(keys: Sequence[str]) -> Any:
            for key in keys:
                if row.get(key) not in (None, ''):
                    return row[key]
            return None

        return cls(
            id=row.get('id') if row.get('id') is not None else str(uuid.uuid4()),
            vendor_name=first(cls.VENDOR_KEYS) or "",
            expected_amount=first(cls.AMOUNT_KEYS),
            due_date=first(cls.DUE_DATE_KEYS),
            reference_number=first(cls.REFERENCE_KEYS),
            status=first(('status',)) or "unpaid",
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return {
            'id': self.id,
            'vendor_name': self.vendor_name,
            'expected_amount': _json_value(self.expected_amount),
            'due_date': self.due_date,
            'reference_number': self.reference_number,
            'status': self.status,
        }


@dataclass(frozen=True)
class Suggestion:
    """An alternative payment record offered for a non-matched invoice."""
    record: PaymentRecord
    reason: str
    confidence: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'record': self.record.to_dict(),
            'reason': self.reason,
            'confidence': self.confidence,
        }


@dataclass(frozen=True)
class MatchResult:
    """
    The outcome of reconciling one invoice in one run.

    Results are immutable; a later manual decision by the caller is a new
    result, not an edit of this one.

    Attributes:
        invoice_id: Id of the reconciled invoice
        record_id: Id of the claimed payment record, if any
        match_status: matched, mismatch, missing or duplicate
        discrepancy: Absolute amount difference (>= 0)
        flag_reason: Human-readable explanation, None when matched
        confidence_score: 0-100
        suggestions: Up to three alternatives for non-matched results
    """
    invoice_id: Hashable
    record_id: Optional[Hashable]
    match_status: MatchStatus
    discrepancy: Decimal = Decimal("0")
    flag_reason: Optional[str] = None
    confidence_score: int = 0
    suggestions: Tuple[Suggestion, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return {
            'invoice_id': self.invoice_id,
            'record_id': self.record_id,
            'match_status': self.match_status.value,
            'discrepancy': decimal_to_str(self.discrepancy),
            'flag_reason': self.flag_reason,
            'confidence_score': self.confidence_score,
            'suggestions': [s.to_dict() for s in self.suggestions],
        }


@dataclass(frozen=True)
class ReconciliationSummary:
    """
    Aggregate view of one run.

    Amount totals cover every invoice and every register record, not only
    matched pairs, so the two figures can be compared for audit.
    """
    total_invoices: int = 0
    matched: int = 0
    mismatched: int = 0
    missing_invoices: int = 0
    duplicate: int = 0
    missing_records: int = 0
    total_amount_invoiced: Decimal = Decimal("0")
    total_amount_expected: Decimal = Decimal("0")

    @classmethod
    def from_results(
        cls,
        results: Sequence[MatchResult],
        invoices: Sequence[Invoice],
        payment_records: Sequence[PaymentRecord],
        missing_records: Sequence[PaymentRecord],
        amount_normalizer: Optional[AmountNormalizer] = None
    ) -> 'ReconciliationSummary':
        """
        Project a summary from run inputs and outputs.

        Args:
            results: One MatchResult per invoice.
            invoices: The reconciled invoices.
            payment_records: The full register.
            missing_records: Register records left unclaimed.
            amount_normalizer: Parses raw totals; defaults to the configured one.

        Returns:
            ReconciliationSummary instance.
        """
        normalize = amount_normalizer.normalize if amount_normalizer else normalize_amount

        def count(status: MatchStatus) -> int:
            return sum(1 for r in results if r.match_status == status)

        return cls(
            total_invoices=len(invoices),
            matched=count(MatchStatus.MATCHED),
            mismatched=count(MatchStatus.MISMATCH),
            missing_invoices=count(MatchStatus.MISSING),
            duplicate=count(MatchStatus.DUPLICATE),
            missing_records=len(missing_records),
            total_amount_invoiced=sum(
                (normalize(inv.total_amount) for inv in invoices), Decimal("0")
            ),
            total_amount_expected=sum(
                (normalize(rec.expected_amount) for rec in payment_records), Decimal("0")
            ),
        )

    @property
    def match_rate(self) -> float:
        """Share of invoices matched, 0-100."""
        if not self.total_invoices:
            return 0.0
        return self.matched / self.total_invoices * 100

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return {
            'total_invoices': self.total_invoices,
            'matched': self.matched,
            'mismatched': self.mismatched,
            'missing_invoices': self.missing_invoices,
            'duplicate': self.duplicate,
            'missing_records': self.missing_records,
            'total_amount_invoiced': decimal_to_str(self.total_amount_invoiced),
            'total_amount_expected': decimal_to_str(self.total_amount_expected),
            'match_rate': self.match_rate,
        }


class ReconciliationReport(NamedTuple):
    """Everything one reconcile() call returns; unpacks as a triple."""
    results: List[MatchResult]
    summary: ReconciliationSummary
    missing_records: List[PaymentRecord]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'results': [r.to_dict() for r in self.results],
            'summary': self.summary.to_dict(),
            'missing_records': [r.to_dict() for r in self.missing_records],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)
