"""
Field Extractor Module.

This module provides the FieldExtractor class that turns raw OCR text into
an InvoiceDraft using ordered regex pattern lists.

Approach:
    Each field has a priority-ordered pattern list (see patterns.py). The
    first pattern producing a non-empty capture wins. Missing fields
    degrade to documented defaults instead of raising, because OCR text
    is inherently noisy and a partial draft is still useful.

Defaults:
    invoice_number  → generated placeholder ("INV-<epoch ms>")
    vendor_name     → "Unknown Vendor"
    currency        → ISO code, else mapped symbol, else "USD"
    subtotal        → subtotal, else total - tax, else total, else 0
    tax             → tax, else 0
    total_amount    → total, else subtotal, else 0

Author: Finance Automation Team
"""

from decimal import Decimal
from typing import Callable, Dict, Optional

from config import get_config
from invoice_recon.normalizers import AmountNormalizer
from invoice_recon.utils.exceptions import ExtractionError
from invoice_recon.utils.helpers import generate_placeholder_number, round_half_up
from invoice_recon.utils.logger import get_logger
from .draft import ANCHOR_FIELDS, InvoiceDraft, UNKNOWN_VENDOR
from .line_items import LineItemExtractor
from .patterns import FIELD_PATTERNS, extract_field
from .validators import DraftValidator

# Initialize module logger
logger = get_logger(__name__)

ZERO = Decimal("0")


class FieldExtractor:
    """
    Pattern-priority invoice field extractor.

    Attributes:
        line_item_extractor: Extractor for tabular rows
        amount_normalizer: Parser for captured amounts
        currency_symbols: Symbol to ISO code mapping
        validator: Optional DraftValidator whose warnings are copied
                   onto each draft

    Example:
        >>> extractor = FieldExtractor()
        >>> draft = extractor.extract(ocr_text)
        >>> print(draft.invoice_number, draft.total_amount, draft.confidence)
    """

    CURRENCY_SYMBOLS = {'$': 'USD', '€': 'EUR', '£': 'GBP', '₹': 'INR', '¥': 'JPY'}

    def __init__(
        self,
        line_item_extractor: Optional[LineItemExtractor] = None,
        amount_normalizer: Optional[AmountNormalizer] = None,
        placeholder_factory: Optional[Callable[[], str]] = None,
        validate: bool = False
    ) -> None:
        """
        Initialize the field extractor.

        Args:
            line_item_extractor: Custom line item extractor.
            amount_normalizer: Custom amount parser.
            placeholder_factory: Callable producing the fallback invoice number.
            validate: Run DraftValidator and record its warnings on the draft.
        """
        self.amount_normalizer = amount_normalizer or AmountNormalizer()
        self.line_item_extractor = line_item_extractor or LineItemExtractor(
            amount_normalizer=self.amount_normalizer
        )

        self.default_vendor = get_config("extraction.default_vendor", UNKNOWN_VENDOR)
        self.default_currency = get_config("extraction.default_currency", "USD")
        self.currency_symbols: Dict[str, str] = get_config(
            "extraction.currency_symbols",
            self.CURRENCY_SYMBOLS
        )

        prefix = get_config("extraction.placeholder_prefix", "INV-")
        self.placeholder_factory = placeholder_factory or (
            lambda: generate_placeholder_number(prefix)
        )

        self.validator = DraftValidator() if validate else None

        logger.debug("FieldExtractor initialized")

    def extract(self, raw_text: Optional[str]) -> InvoiceDraft:
        """
        Extract invoice fields from raw text.

        Never fails for text input: every field that cannot be found is
        filled with its default.

        Args:
            raw_text: OCR output. None is treated as empty text.

        Returns:
            Fully populated InvoiceDraft.

        Raises:
            ExtractionError: If raw_text is neither a string nor None.
        """
        if raw_text is None:
            raw_text = ''
        if not isinstance(raw_text, str):
            raise ExtractionError(
                "raw_text must be a string",
                {"type": type(raw_text).__name__}
            )

        fields = {
            name: extract_field(raw_text, patterns)
            for name, patterns in FIELD_PATTERNS.items()
        }
        for name, value in fields.items():
            if value is not None:
                logger.debug(f"Matched {name}: {value!r}")

        total = self.amount_normalizer.parse(fields['total'])
        subtotal = self.amount_normalizer.parse(fields['subtotal'])
        tax = self.amount_normalizer.parse(fields['tax'])

        # Zero counts as "absent" throughout the chain
        derived_subtotal = total - tax if total and tax else None

        found = {
            'invoice_number': fields['invoice_number'],
            'vendor_name': fields['vendor_name'],
            'invoice_date': fields['invoice_date'],
            'due_date': fields['due_date'],
            'subtotal': subtotal,
            'tax': tax,
            'total_amount': total,
            'currency': fields['currency'],
        }
        extracted_fields = [name for name, value in found.items() if value]
        matched_anchors = sum(1 for name in ANCHOR_FIELDS if found[name])

        draft = InvoiceDraft(
            invoice_number=fields['invoice_number'] or self.placeholder_factory(),
            vendor_name=fields['vendor_name'] or self.default_vendor,
            invoice_date=fields['invoice_date'],
            due_date=fields['due_date'],
            subtotal=subtotal or derived_subtotal or total or ZERO,
            tax=tax or ZERO,
            total_amount=total or subtotal or ZERO,
            currency=self._resolve_currency(fields['currency']),
            line_items=self.line_item_extractor.extract(raw_text),
            confidence=round_half_up(100 * matched_anchors / len(ANCHOR_FIELDS)),
            extracted_fields=extracted_fields,
        )

        if self.validator is not None:
            for warning in self.validator.validate(draft).all_messages:
                draft.add_warning(warning)

        logger.info(
            f"Extracted invoice {draft.invoice_number}: "
            f"{matched_anchors}/{len(ANCHOR_FIELDS)} anchors, "
            f"{len(draft.line_items)} line items, "
            f"confidence {draft.confidence}%"
        )
        return draft

    def _resolve_currency(self, captured: Optional[str]) -> str:
        """
        Map a captured currency token to an ISO code.

        Args:
            captured: ISO code or symbol from the currency patterns.

        Returns:
            Uppercased code, mapped symbol, or the default currency.
        """
        if not captured:
            return self.default_currency
        if captured in self.currency_symbols:
            return self.currency_symbols[captured]
        return captured.upper()


_default_extractor: Optional[FieldExtractor] = None


def extract(raw_text: Optional[str]) -> InvoiceDraft:
    """
    Extract an InvoiceDraft with a shared default FieldExtractor.

    Args:
        raw_text: OCR output.

    Returns:
        Fully populated InvoiceDraft.
    """
    global _default_extractor
    if _default_extractor is None:
        _default_extractor = FieldExtractor()
    return _default_extractor.extract(raw_text)
