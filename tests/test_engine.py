"""
Tests for the reconciliation engine.

Most tests pin vendor distances with a static index so that outcomes do
not depend on the similarity library; the end-to-end tests at the top
use the real rapidfuzz index.
"""

from decimal import Decimal

import pytest

from invoice_recon.extraction import FieldExtractor
from invoice_recon.normalizers import AmountNormalizer
from invoice_recon.reconciliation import (
    Invoice,
    MatchStatus,
    PaymentRecord,
    ReconciliationEngine,
    ReconciliationReport,
    reconcile,
)
from invoice_recon.utils.exceptions import (
    ContractViolationError,
    EmptyInvoiceBatchError,
    InvalidRecordBatchError,
    MissingInvoiceIdError,
)

from conftest import make_invoice, make_record


class TestEndToEnd:
    """Reconciliation with the default fuzzy index."""

    def test_matched(self):
        """Same vendor after normalization and equal amounts match."""
        results, summary, missing = ReconciliationEngine().reconcile(
            [make_invoice(1, vendor="Acme Corp", total="100")],
            [make_record("r1", vendor="ACME CORPORATION", amount="100")],
        )

        [result] = results
        assert result.match_status == MatchStatus.MATCHED
        assert result.record_id == "r1"
        assert result.discrepancy == Decimal("0")
        assert result.flag_reason is None
        assert result.confidence_score == 100
        assert missing == []
        assert summary.matched == 1

    def test_amount_mismatch(self):
        """A matching vendor with a different amount is a mismatch."""
        results, _, missing = ReconciliationEngine().reconcile(
            [make_invoice(1, vendor="Acme Corp", total="100")],
            [make_record("r1", vendor="ACME CORPORATION", amount="50")],
        )

        [result] = results
        assert result.match_status == MatchStatus.MISMATCH
        assert result.record_id == "r1"
        assert result.discrepancy == Decimal("50")
        assert result.flag_reason == (
            "Amount mismatch: Invoice $100.00 vs Expected $50.00 (50% difference)"
        )
        assert result.confidence_score == 80
        assert missing == []

    def test_unknown_vendor(self):
        """No similar vendor leaves the invoice missing."""
        results, _, missing = ReconciliationEngine().reconcile(
            [make_invoice(1, vendor="Zeta Logistics", total="100")],
            [make_record("r1", vendor="Acme", amount="100")],
        )

        [result] = results
        assert result.match_status == MatchStatus.MISSING
        assert result.record_id is None
        assert result.discrepancy == Decimal("100")
        assert result.confidence_score == 0
        assert result.flag_reason == (
            "No matching vendor found in payment register for: Zeta Logistics"
        )
        assert [r.id for r in missing] == ["r1"]

    def test_batch(self):
        """Several vendors reconcile independently."""
        invoices = [
            make_invoice(1, vendor="Acme Corp", total="100"),
            make_invoice(2, vendor="Globex Inc", total="250"),
            make_invoice(3, vendor="Initech LLC", total="75"),
        ]
        records = [
            make_record("r1", vendor="Initech", amount="80"),
            make_record("r2", vendor="ACME CORPORATION", amount="100.00"),
            make_record("r3", vendor="Globex Incorporated", amount="250"),
            make_record("r4", vendor="Umbrella", amount="10"),
        ]
        results, summary, missing = ReconciliationEngine().reconcile(invoices, records)

        assert [(r.invoice_id, r.record_id, r.match_status) for r in results] == [
            (1, "r2", MatchStatus.MATCHED),
            (2, "r3", MatchStatus.MATCHED),
            (3, "r1", MatchStatus.MISMATCH),
        ]
        assert [r.id for r in missing] == ["r4"]
        assert summary.total_amount_invoiced == Decimal("425")
        assert summary.total_amount_expected == Decimal("440")

    def test_extracted_draft(self, sample_text):
        """A draft from the extractor reconciles against the register."""
        draft = FieldExtractor().extract(sample_text)
        invoice = Invoice.from_draft(draft, invoice_id="inv-1")

        results, _, _ = ReconciliationEngine().reconcile(
            [invoice],
            [PaymentRecord(id="r1", vendor_name="Acme Supplies Ltd", expected_amount="$132.00")],
        )

        assert results[0].match_status == MatchStatus.MATCHED
        assert results[0].record_id == "r1"

    def test_raw_amounts_normalized(self):
        """Raw currency strings on either side are parsed."""
        results, _, _ = ReconciliationEngine().reconcile(
            [make_invoice(1, total="$1,200.00")],
            [make_record("r1", amount="USD 1200")],
        )
        assert results[0].match_status == MatchStatus.MATCHED

    def test_summary_totals_use_engine_normalizer(self):
        """Summary totals are parsed with the engine's amount normalizer."""
        engine = ReconciliationEngine(
            amount_normalizer=AmountNormalizer(european_decimal_comma=True)
        )
        results, summary, _ = engine.reconcile(
            [make_invoice(1, total="1.234,56")],
            [make_record("r1", amount="1.234,56")],
        )

        assert results[0].match_status == MatchStatus.MATCHED
        assert summary.total_amount_invoiced == Decimal("1234.56")
        assert summary.total_amount_expected == Decimal("1234.56")

    def test_mismatch_amounts_round_half_up(self):
        """Flag amounts are rounded to cents with halves going up."""
        [result], _, _ = ReconciliationEngine().reconcile(
            [make_invoice(1, total="100.125")],
            [make_record("r1", amount="50")],
        )

        assert result.match_status == MatchStatus.MISMATCH
        assert result.flag_reason.startswith(
            "Amount mismatch: Invoice $100.13 vs Expected $50.00"
        )

    def test_module_shortcut(self):
        """reconcile() returns a report that unpacks as a triple."""
        report = reconcile([make_invoice(1)], [make_record("r1")])

        assert isinstance(report, ReconciliationReport)
        assert report.results[0].match_status == MatchStatus.MATCHED


class TestDuplicates:
    """Repeated invoice numbers."""

    def test_repeat_is_duplicate(self):
        """Later repeats are duplicates; the first occurrence is reconciled."""
        invoices = [
            make_invoice(1, number="INV-1"),
            make_invoice(2, number=" inv-1 "),
        ]
        results, summary, _ = ReconciliationEngine().reconcile(invoices, [make_record("r1")])

        assert results[0].match_status == MatchStatus.MATCHED
        assert results[1].match_status == MatchStatus.DUPLICATE
        assert results[1].record_id is None
        assert results[1].discrepancy == Decimal("0")
        assert results[1].confidence_score == 100
        assert results[1].flag_reason == "Duplicate invoice number:  inv-1 "
        assert summary.duplicate == 1

    def test_duplicate_claims_nothing(self):
        """A duplicate does not consume a register record."""
        invoices = [
            make_invoice(1, number="A", vendor="Globex", total="5"),
            make_invoice(2, number="A", vendor="Acme Corp", total="100"),
        ]
        records = [make_record("r1", vendor="Acme", amount="100")]
        _, _, missing = ReconciliationEngine().reconcile(invoices, records)

        assert [r.id for r in missing] == ["r1"]

    def test_empty_numbers_never_duplicate(self):
        """Blank or absent invoice numbers are not compared."""
        invoices = [
            make_invoice(1, number=""),
            make_invoice(2, number=""),
            Invoice(id=3, invoice_number=None, vendor_name="Acme", total_amount="100"),
        ]
        results, _, _ = ReconciliationEngine().reconcile(invoices, [make_record("r1")])

        assert MatchStatus.DUPLICATE not in [r.match_status for r in results]


class TestAssignment:
    """Candidate choice and greedy claiming."""

    def test_lowest_combined_score_wins(self, static_index_factory):
        """A slightly worse vendor with the right amount beats a wrong amount."""
        records = [make_record("r1", amount="50"), make_record("r2", amount="100")]
        engine = ReconciliationEngine(index_factory=static_index_factory({"r1": 0.1, "r2": 0.2}))

        [result], _, _ = engine.reconcile([make_invoice(1, total="100")], records)

        assert result.record_id == "r2"
        assert result.match_status == MatchStatus.MATCHED
        assert result.confidence_score == 88

    def test_first_candidate_wins_ties(self, static_index_factory):
        """Equal combined scores resolve to the earlier candidate."""
        records = [make_record("r1"), make_record("r2")]
        engine = ReconciliationEngine(index_factory=static_index_factory({"r2": 0.1, "r1": 0.1}))

        [result], _, _ = engine.reconcile([make_invoice(1)], records)
        assert result.record_id == "r2"

    def test_matched_record_is_used(self):
        """A second invoice cannot claim a record already matched."""
        invoices = [make_invoice(1), make_invoice(2)]
        results, _, _ = ReconciliationEngine().reconcile(invoices, [make_record("r1")])

        assert results[0].match_status == MatchStatus.MATCHED
        second = results[1]
        assert second.match_status == MatchStatus.MISSING
        assert second.record_id is None
        assert second.flag_reason == (
            "All potential matching records already used. Vendor: Acme Corp"
        )
        assert [s.record.id for s in second.suggestions] == ["r1"]
        assert second.suggestions[0].reason == (
            "Fuzzy vendor match (100%) - Already linked to another invoice"
        )
        assert second.suggestions[0].confidence == 100

    def test_mismatch_also_claims(self):
        """Assignment is greedy: a mismatched record is gone for later invoices."""
        invoices = [make_invoice(1, total="500"), make_invoice(2, total="100")]
        results, _, _ = ReconciliationEngine().reconcile(invoices, [make_record("r1", amount="100")])

        assert results[0].match_status == MatchStatus.MISMATCH
        assert results[0].record_id == "r1"
        assert results[0].flag_reason.endswith("(80% difference)")
        assert results[1].match_status == MatchStatus.MISSING

    def test_records_claimed_at_most_once(self):
        """No record id appears on two results."""
        invoices = [make_invoice(i, total="100") for i in range(1, 6)]
        records = [make_record(f"r{i}") for i in range(1, 4)]
        results, _, _ = ReconciliationEngine().reconcile(invoices, records)

        claimed = [r.record_id for r in results if r.record_id is not None]
        assert len(claimed) == len(set(claimed)) == 3

    def test_only_first_candidates_considered(self, static_index_factory):
        """Candidates past the configured limit are never scored."""
        records = [make_record(f"r{i}") for i in range(12)]
        scores = {f"r{i}": 0.1 for i in range(12)}
        engine = ReconciliationEngine(index_factory=static_index_factory(scores))

        invoices = [make_invoice(i, total="100") for i in range(11)]
        results, _, missing = engine.reconcile(invoices, records)

        assert [r.record_id for r in results[:10]] == [f"r{i}" for i in range(10)]
        assert results[10].match_status == MatchStatus.MISSING
        assert [r.id for r in missing] == ["r10", "r11"]


class TestFlags:
    """Mismatch reasons and suggestions."""

    def test_fuzzy_vendor_reason(self, static_index_factory):
        """A loose vendor match with the right amount is a mismatch."""
        engine = ReconciliationEngine(index_factory=static_index_factory({"r1": 0.35}))
        [result], _, _ = engine.reconcile([make_invoice(1)], [make_record("r1")])

        assert result.match_status == MatchStatus.MISMATCH
        assert result.flag_reason == "Vendor name fuzzy match confidence: 65%"
        assert result.discrepancy == Decimal("0")
        assert result.confidence_score == 79

    def test_both_reasons(self, static_index_factory):
        """Amount and vendor reasons are joined with '; '."""
        engine = ReconciliationEngine(index_factory=static_index_factory({"r1": 0.35}))
        [result], _, _ = engine.reconcile(
            [make_invoice(1, total="100")], [make_record("r1", amount="50")]
        )

        assert result.flag_reason == (
            "Amount mismatch: Invoice $100.00 vs Expected $50.00 (50% difference); "
            "Vendor name fuzzy match confidence: 65%"
        )
        assert result.confidence_score == 59

    def test_mismatch_alternatives(self, static_index_factory):
        """Other candidates are offered, at most three, excluding the claimed one."""
        records = [make_record(f"r{i}", amount="50") for i in range(5)]
        scores = {f"r{i}": 0.1 * i for i in range(5)}
        engine = ReconciliationEngine(index_factory=static_index_factory(scores))

        [result], _, _ = engine.reconcile([make_invoice(1, total="100")], records)

        assert result.record_id == "r0"
        assert [s.record.id for s in result.suggestions] == ["r1", "r2", "r3"]
        assert result.suggestions[0].reason == "Alternative fuzzy match (74% confidence)"

    def test_amount_suggestions_for_unknown_vendor(self):
        """Unclaimed records with a matching amount are suggested."""
        records = [
            make_record("r1", vendor="Acme", amount="100"),
            make_record("r2", vendor="Globex", amount="40"),
            make_record("r3", vendor="Initech", amount="100.50"),
        ]
        [result], _, _ = ReconciliationEngine().reconcile(
            [make_invoice(1, vendor="Zeta Logistics", total="100")], records
        )

        assert [s.record.id for s in result.suggestions] == ["r1", "r3"]
        assert all(s.reason == "Matching amount" for s in result.suggestions)
        assert all(s.confidence == 50 for s in result.suggestions)

    def test_used_records_not_suggested_by_amount(self):
        """Amount suggestions skip records already claimed."""
        invoices = [
            make_invoice(1, vendor="Acme", total="100"),
            make_invoice(2, vendor="Zeta Logistics", total="100"),
        ]
        results, _, _ = ReconciliationEngine().reconcile(
            invoices, [make_record("r1", vendor="Acme", amount="100")]
        )
        assert results[1].suggestions == ()

    def test_matched_has_no_suggestions(self):
        """Matched results carry no alternatives."""
        [result], _, _ = ReconciliationEngine().reconcile([make_invoice(1)], [make_record("r1")])
        assert result.suggestions == ()

    def test_confidence_floor(self, use_config, static_index_factory):
        """Matched results never drop below the configured floor."""
        use_config(
            "reconciliation:\n"
            "  weights:\n"
            "    vendor: 2.0\n"
            "    amount: 0.4\n"
        )
        engine = ReconciliationEngine(index_factory=static_index_factory({"r1": 0.29}))
        [result], _, _ = engine.reconcile([make_invoice(1)], [make_record("r1")])

        assert result.match_status == MatchStatus.MATCHED
        assert result.confidence_score == 70


class TestReport:
    """Post-pass and summary."""

    def test_missing_records_cover_unclaimed(self):
        """Every unclaimed record is reported once, in register order."""
        invoices = [make_invoice(1, vendor="Globex", total="10")]
        records = [
            make_record("r1", vendor="Acme"),
            make_record("r2", vendor="Globex", amount="10"),
            make_record("r3", vendor="Initech"),
        ]
        results, _, missing = ReconciliationEngine().reconcile(invoices, records)

        claimed = {r.record_id for r in results}
        assert [r.id for r in missing] == ["r1", "r3"]
        assert {r.id for r in records} == claimed | {r.id for r in missing}

    def test_summary(self):
        """Counts per status and amount totals over all inputs."""
        invoices = [
            make_invoice(1, number="A", total="100"),
            make_invoice(2, number="B", total="300"),
            make_invoice(3, number="A", total="100"),
            make_invoice(4, number="C", vendor="Zeta Logistics", total="20"),
        ]
        records = [
            make_record("r1", amount="100"),
            make_record("r2", amount="200"),
            make_record("r3", vendor="Umbrella", amount="5"),
        ]
        report = ReconciliationEngine().reconcile(invoices, records)
        summary = report.summary

        assert summary.total_invoices == 4
        assert summary.matched == 1
        assert summary.mismatched == 1
        assert summary.duplicate == 1
        assert summary.missing_invoices == 1
        assert summary.missing_records == 1
        assert summary.total_amount_invoiced == Decimal("520")
        assert summary.total_amount_expected == Decimal("305")
        assert summary.match_rate == 25.0

    def test_one_result_per_invoice(self):
        """Results line up with invoices by position."""
        invoices = [make_invoice(i, vendor=v) for i, v in enumerate(["Acme", "Globex", "Acme"])]
        results, _, _ = ReconciliationEngine().reconcile(invoices, [make_record("r1")])

        assert [r.invoice_id for r in results] == [0, 1, 2]

    def test_deterministic(self):
        """The same inputs give the same report."""
        invoices = [make_invoice(i, total=str(100 + i)) for i in range(4)]
        records = [make_record(f"r{i}", amount=str(100 + i)) for i in range(4)]

        first = ReconciliationEngine().reconcile(invoices, records)
        second = ReconciliationEngine().reconcile(invoices, records)
        assert first == second

    def test_report_to_dict(self):
        """The report serializes with string amounts and status values."""
        report = ReconciliationEngine().reconcile([make_invoice(1)], [make_record("r1")])
        data = report.to_dict()

        assert data['results'][0]['match_status'] == "matched"
        assert Decimal(data['results'][0]['discrepancy']) == 0
        assert data['summary']['total_amount_invoiced'] == "100.00"

    def test_records_not_modified(self):
        """Register records come back unchanged."""
        record = make_record("r1")
        snapshot = record.to_dict()
        ReconciliationEngine().reconcile([make_invoice(1)], [record])
        assert record.to_dict() == snapshot


class TestContract:
    """Invalid calls fail fast."""

    def test_empty_invoices(self):
        """An empty batch is rejected."""
        with pytest.raises(EmptyInvoiceBatchError):
            ReconciliationEngine().reconcile([], [make_record("r1")])

    @pytest.mark.parametrize("records", [None, "r1", {"r1": 1}, (r for r in [])])
    def test_records_must_be_sequence(self, records):
        """Payment records must be a list or tuple."""
        with pytest.raises(InvalidRecordBatchError):
            ReconciliationEngine().reconcile([make_invoice(1)], records)

    def test_invoice_without_id(self):
        """Invoices need an id."""
        with pytest.raises(MissingInvoiceIdError) as exc_info:
            ReconciliationEngine().reconcile(
                [make_invoice(1), Invoice(id=None, invoice_number="X")], []
            )
        assert exc_info.value.details["position"] == 1

    def test_errors_share_base(self):
        """Contract violations can be caught together."""
        with pytest.raises(ContractViolationError):
            ReconciliationEngine().reconcile([], [])

    def test_empty_register(self):
        """An empty register is valid; every invoice is missing."""
        results, summary, missing = ReconciliationEngine().reconcile((make_invoice(1),), ())

        assert results[0].match_status == MatchStatus.MISSING
        assert missing == []
        assert summary.total_amount_expected == Decimal("0")
