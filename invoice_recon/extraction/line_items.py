"""
Line Item Extractor Module.

Finds tabular rows ("Widget   2   $5.00   $10.00") in raw invoice text using
column-spacing heuristics. This is not a layout parser: rows that do not
fit the shape are skipped, and rows whose amount falls outside the
plausible bound are dropped to keep stray numbers out.

Author: Finance Automation Team
"""

from decimal import Decimal
from typing import List, Optional

from config import get_config
from invoice_recon.normalizers import AmountNormalizer
from invoice_recon.utils.logger import get_logger
from .draft import LineItem
from .patterns import LINE_ITEM_PATTERN

# Initialize module logger
logger = get_logger(__name__)

DEFAULT_MAX_AMOUNT = Decimal("1000000")


class LineItemExtractor:
    """
    Scans raw text for line item rows.

    Row shape, per physical line:
        description (3-40 chars), 2+ spaces, quantity, space(s),
        optional "$" + unit price, space(s), optional "$" + amount

    Attributes:
        max_amount: Exclusive upper bound on a retained row amount

    Example:
        >>> extractor = LineItemExtractor()
        >>> items = extractor.extract("Consulting hours   10   $150.00   $1,500.00")
        >>> items[0].amount
        Decimal('1500.00')
    """

    def __init__(
        self,
        amount_normalizer: Optional[AmountNormalizer] = None,
        max_amount: Optional[Decimal] = None
    ) -> None:
        self.amount_normalizer = amount_normalizer or AmountNormalizer()
        if max_amount is None:
            max_amount = get_config("extraction.line_items.max_amount", DEFAULT_MAX_AMOUNT)
        self.max_amount = Decimal(str(max_amount))

    def extract(self, raw_text: str) -> List[LineItem]:
        """
        Extract line items from raw text.

        Args:
            raw_text: Full OCR text.

        Returns:
            Retained rows in document order.
        """
        if not raw_text:
            return []

        text = raw_text.replace('\r\n', '\n').replace('\r', '\n')
        items = []

        for match in LINE_ITEM_PATTERN.finditer(text):
            amount = self.amount_normalizer.parse(match.group(4))

            if not self._within_bounds(amount):
                logger.debug(f"Skipping row outside amount bound: {match.group(0).strip()!r}")
                continue

            quantity = self.amount_normalizer.parse(match.group(2)) or Decimal("1")
            unit_price = self.amount_normalizer.parse(match.group(3)) or amount

            items.append(LineItem(
                description=match.group(1).strip(),
                quantity=quantity,
                unit_price=unit_price,
                amount=amount,
            ))

        logger.debug(f"Found {len(items)} line items")
        return items

    def _within_bounds(self, amount: Optional[Decimal]) -> bool:
        return amount is not None and Decimal("0") < amount < self.max_amount
