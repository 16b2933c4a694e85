"""
Reconciliation Engine Module.

This module provides the ReconciliationEngine class that matches a batch
of invoices against a payment register.

Pipeline:
    1. Duplicate pre-pass over invoice numbers (case-insensitive)
    2. Per invoice, in input order:
         fuzzy vendor search → amount comparison → combined score →
         greedy claim of the best unused record
    3. Post-pass: register records nobody claimed
    4. Summary projection

Assignment is greedy: once a record is claimed, matched or mismatched, no
later invoice in the same run can take it. Input order therefore decides
ties and contested records.

Author: Finance Automation Team
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Hashable, List, Optional, Sequence, Set

from config import get_config
from invoice_recon.normalizers import AmountNormalizer, VendorNormalizer
from invoice_recon.utils.exceptions import (
    EmptyInvoiceBatchError,
    InvalidRecordBatchError,
    MissingInvoiceIdError,
)
from invoice_recon.utils.logger import get_logger
from .fuzzy_index import FuzzyVendorIndex, VendorSearch
from .matching import (
    ScoredCandidate,
    amount_match,
    combined_score,
    score_to_confidence,
)
from .models import (
    Invoice,
    MatchResult,
    MatchStatus,
    PaymentRecord,
    ReconciliationReport,
    ReconciliationSummary,
    Suggestion,
)

# Initialize module logger
logger = get_logger(__name__)

IndexFactory = Callable[[Sequence[PaymentRecord], VendorNormalizer], VendorSearch]


def _money(amount: Decimal) -> str:
    """Format an amount to cents, rounding halves up."""
    return str(amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class ReconciliationEngine:
    """
    Matches invoices to payment register records.

    The engine holds configuration only; all per-run state lives inside
    reconcile(), so one engine can serve concurrent runs.

    Attributes:
        vendor_weight / amount_weight: Combined score weights
        vendor_match_cutoff: Vendor distance below which a name counts as matching
        amount_tolerance: Relative amount tolerance
        max_candidates: Vendor candidates scored per invoice
        max_suggestions: Alternatives attached to non-matched results
        matched_confidence_floor: Minimum confidence of a matched result

    Example:
        >>> engine = ReconciliationEngine()
        >>> results, summary, missing_records = engine.reconcile(invoices, records)
        >>> print(summary.matched, summary.mismatched)
    """

    def __init__(
        self,
        vendor_normalizer: Optional[VendorNormalizer] = None,
        amount_normalizer: Optional[AmountNormalizer] = None,
        index_factory: Optional[IndexFactory] = None
    ) -> None:
        """
        Initialize the engine.

        Args:
            vendor_normalizer: Normalizer applied to both sides of every comparison.
            amount_normalizer: Parser for raw invoice and register amounts.
            index_factory: Builds the per-run VendorSearch from the register.
                           Defaults to FuzzyVendorIndex.
        """
        self.vendor_normalizer = vendor_normalizer or VendorNormalizer()
        self.amount_normalizer = amount_normalizer or AmountNormalizer()
        self.index_factory = index_factory or (
            lambda records, normalizer: FuzzyVendorIndex(records, normalizer=normalizer)
        )

        self.vendor_weight = float(get_config("reconciliation.weights.vendor", 0.6))
        self.amount_weight = float(get_config("reconciliation.weights.amount", 0.4))
        self.vendor_match_cutoff = float(get_config("reconciliation.vendor_match_cutoff", 0.3))
        self.amount_tolerance = Decimal(str(get_config("reconciliation.amount_tolerance", "0.01")))
        self.max_candidates = int(get_config("reconciliation.max_candidates", 10))
        self.max_suggestions = int(get_config("reconciliation.max_suggestions", 3))
        self.matched_confidence_floor = int(
            get_config("reconciliation.matched_confidence_floor", 70)
        )
        self.amount_suggestion_confidence = int(
            get_config("reconciliation.amount_suggestion_confidence", 50)
        )

        logger.debug("ReconciliationEngine initialized")

    def reconcile(
        self,
        invoices: Sequence[Invoice],
        payment_records: Sequence[PaymentRecord]
    ) -> ReconciliationReport:
        """
        Reconcile a batch of invoices against the payment register.

        Every invoice yields exactly one MatchResult, in input order.

        Args:
            invoices: Invoices to reconcile; order is significant.
            payment_records: Register records (list or tuple).

        Returns:
            ReconciliationReport(results, summary, missing_records).

        Raises:
            InvalidRecordBatchError: payment_records is not a list or tuple.
            EmptyInvoiceBatchError: No invoices were supplied.
            MissingInvoiceIdError: An invoice has no id.
        """
        self._check_contract(invoices, payment_records)

        logger.info(
            f"Reconciling {len(invoices)} invoices against "
            f"{len(payment_records)} payment records"
        )

        used_record_ids: Set[Hashable] = set()
        duplicates = self._find_duplicates(invoices)
        index = self.index_factory(payment_records, self.vendor_normalizer)

        results = []
        for position, invoice in enumerate(invoices):
            if position in duplicates:
                result = self._duplicate_result(invoice)
            else:
                result = self._match_invoice(invoice, payment_records, index, used_record_ids)
            logger.debug(
                f"Invoice {invoice.id}: {result.match_status.value} "
                f"(record={result.record_id}, confidence={result.confidence_score})"
            )
            results.append(result)

        missing_records = [r for r in payment_records if r.id not in used_record_ids]
        summary = ReconciliationSummary.from_results(
            results, invoices, payment_records, missing_records, self.amount_normalizer
        )

        logger.info(
            f"Reconciliation complete: {summary.matched} matched, "
            f"{summary.mismatched} mismatched, {summary.missing_invoices} missing, "
            f"{summary.duplicate} duplicate, {summary.missing_records} unclaimed records"
        )

        return ReconciliationReport(results, summary, missing_records)

    # ------------------------------------------------------------------
    # Contract and pre-pass
    # ------------------------------------------------------------------

    @staticmethod
    def _check_contract(
        invoices: Sequence[Invoice],
        payment_records: Sequence[PaymentRecord]
    ) -> None:
        if not isinstance(payment_records, (list, tuple)):
            raise InvalidRecordBatchError(type(payment_records).__name__)
        if not invoices:
            raise EmptyInvoiceBatchError()
        for position, invoice in enumerate(invoices):
            if invoice.id is None:
                raise MissingInvoiceIdError(position, invoice.invoice_number)

    @staticmethod
    def _find_duplicates(invoices: Sequence[Invoice]) -> Set[int]:
        """
        Mark every repeat of an invoice number after its first occurrence.

        Returns:
            Positions of duplicate invoices.
        """
        invoice_numbers_seen: Set[str] = set()
        duplicates: Set[int] = set()

        for position, invoice in enumerate(invoices):
            key = (invoice.invoice_number or '').strip().lower()
            if not key:
                continue
            if key in invoice_numbers_seen:
                duplicates.add(position)
            else:
                invoice_numbers_seen.add(key)

        if duplicates:
            logger.info(f"Found {len(duplicates)} duplicate invoice numbers")
        return duplicates

    @staticmethod
    def _duplicate_result(invoice: Invoice) -> MatchResult:
        return MatchResult(
            invoice_id=invoice.id,
            record_id=None,
            match_status=MatchStatus.DUPLICATE,
            discrepancy=Decimal("0"),
            flag_reason=f"Duplicate invoice number: {invoice.invoice_number}",
            confidence_score=100,
        )

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def _match_invoice(
        self,
        invoice: Invoice,
        payment_records: Sequence[PaymentRecord],
        index: VendorSearch,
        used_record_ids: Set[Hashable]
    ) -> MatchResult:
        invoice_amount = self.amount_normalizer.normalize(invoice.total_amount)
        vendor_matches = index.search(self.vendor_normalizer.normalize(invoice.vendor_name))

        if not vendor_matches:
            return self._no_vendor_result(invoice, invoice_amount, payment_records, used_record_ids)

        candidates = [
            self._score(invoice_amount, match.record, match.score, used_record_ids)
            for match in vendor_matches[:self.max_candidates]
        ]

        best = None
        for candidate in candidates:
            if candidate.is_used:
                continue
            if best is None or candidate.combined_score < best.combined_score:
                best = candidate

        if best is None:
            return MatchResult(
                invoice_id=invoice.id,
                record_id=None,
                match_status=MatchStatus.MISSING,
                discrepancy=invoice_amount,
                flag_reason=(
                    f"All potential matching records already used. "
                    f"Vendor: {invoice.vendor_name}"
                ),
                confidence_score=0,
                suggestions=tuple(
                    Suggestion(
                        record=c.record,
                        reason=(
                            f"Fuzzy vendor match ({c.confidence}%) - "
                            f"Already linked to another invoice"
                        ),
                        confidence=c.confidence,
                    )
                    for c in candidates[:self.max_suggestions]
                ),
            )

        # Claimed whether matched or mismatched
        used_record_ids.add(best.record.id)

        if best.amount.match and best.vendor_score < self.vendor_match_cutoff:
            return MatchResult(
                invoice_id=invoice.id,
                record_id=best.record.id,
                match_status=MatchStatus.MATCHED,
                discrepancy=best.amount.discrepancy,
                flag_reason=None,
                confidence_score=max(best.confidence, self.matched_confidence_floor),
            )

        reasons = []
        if not best.amount.match:
            record_amount = self.amount_normalizer.normalize(best.record.expected_amount)
            reasons.append(
                f"Amount mismatch: Invoice ${_money(invoice_amount)} vs "
                f"Expected ${_money(record_amount)} ({best.amount.percent_diff}% difference)"
            )
        if best.vendor_score >= self.vendor_match_cutoff:
            reasons.append(
                f"Vendor name fuzzy match confidence: "
                f"{score_to_confidence(best.vendor_score)}%"
            )

        alternatives = [c for c in candidates if c.record.id != best.record.id]
        return MatchResult(
            invoice_id=invoice.id,
            record_id=best.record.id,
            match_status=MatchStatus.MISMATCH,
            discrepancy=best.amount.discrepancy,
            flag_reason="; ".join(reasons),
            confidence_score=best.confidence,
            suggestions=tuple(
                Suggestion(
                    record=c.record,
                    reason=f"Alternative fuzzy match ({c.confidence}% confidence)",
                    confidence=c.confidence,
                )
                for c in alternatives[:self.max_suggestions]
            ),
        )

    def _score(
        self,
        invoice_amount: Decimal,
        record: PaymentRecord,
        vendor_score: float,
        used_record_ids: Set[Hashable]
    ) -> ScoredCandidate:
        amount = amount_match(
            invoice_amount,
            self.amount_normalizer.normalize(record.expected_amount),
            self.amount_tolerance,
        )
        score = combined_score(vendor_score, amount, self.vendor_weight, self.amount_weight)
        return ScoredCandidate(
            record=record,
            amount=amount,
            vendor_score=vendor_score,
            combined_score=score,
            confidence=score_to_confidence(score),
            is_used=record.id in used_record_ids,
        )

    def _no_vendor_result(
        self,
        invoice: Invoice,
        invoice_amount: Decimal,
        payment_records: Sequence[PaymentRecord],
        used_record_ids: Set[Hashable]
    ) -> MatchResult:
        suggestions: List[Suggestion] = []
        for record in payment_records:
            if len(suggestions) >= self.max_suggestions:
                break
            if record.id in used_record_ids:
                continue
            record_amount = self.amount_normalizer.normalize(record.expected_amount)
            if amount_match(invoice_amount, record_amount, self.amount_tolerance).match:
                suggestions.append(Suggestion(
                    record=record,
                    reason="Matching amount",
                    confidence=self.amount_suggestion_confidence,
                ))

        return MatchResult(
            invoice_id=invoice.id,
            record_id=None,
            match_status=MatchStatus.MISSING,
            discrepancy=invoice_amount,
            flag_reason=(
                f"No matching vendor found in payment register for: {invoice.vendor_name}"
            ),
            confidence_score=0,
            suggestions=tuple(suggestions),
        )


_default_engine: Optional[ReconciliationEngine] = None


def reconcile(
    invoices: Sequence[Invoice],
    payment_records: Sequence[PaymentRecord]
) -> ReconciliationReport:
    """
    Reconcile with a shared default ReconciliationEngine.

    Args:
        invoices: Invoices to reconcile.
        payment_records: Register records.

    Returns:
        ReconciliationReport(results, summary, missing_records).
    """
    global _default_engine
    if _default_engine is None:
        _default_engine = ReconciliationEngine()
    return _default_engine.reconcile(invoices, payment_records)
