"""
Amount Normalizer Module.

Parses heterogeneous currency text ("$1,234.50", "USD 99", " 12.00 ")
and raw numbers into Decimal values.

Author: Finance Automation Team
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from config import get_config
from invoice_recon.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

ZERO = Decimal("0")


class AmountNormalizer:
    """
    Normalizes currency/amount values to Decimal.

    Handles currency symbols, ISO currency codes, thousands separators
    and stray whitespace. Only the leading numeric part of the cleaned
    text is read, so trailing OCR noise ("12.50 due") does not spoil
    the value.

    Attributes:
        european_decimal_comma: Read "1.234,56" as 1234.56

    Example:
        >>> normalizer = AmountNormalizer()
        >>> normalizer.normalize("$1,234.50")
        Decimal('1234.50')
        >>> normalizer.normalize(None)
        Decimal('0')
        >>> normalizer.parse("n/a") is None
        True
    """

    # Currency symbols and codes to remove
    CURRENCY_SYMBOLS = ['$', '€', '£', '¥', '₹', '₽', '₩', '₺', '₫', '₴', '₦', '฿']
    CURRENCY_CODES = ['USD', 'EUR', 'GBP', 'JPY', 'INR', 'CAD', 'AUD', 'CNY', 'CHF', 'SGD']

    _CODE_PATTERN = re.compile(
        r'\b(?:' + '|'.join(CURRENCY_CODES) + r')\b',
        re.IGNORECASE
    )
    _NUMERIC_PREFIX = re.compile(r'[-+]?(?:\d+(?:\.\d*)?|\.\d+)')

    def __init__(self, european_decimal_comma: Optional[bool] = None) -> None:
        """
        Initialize the amount normalizer.

        Args:
            european_decimal_comma: Override for the configured comma handling.
        """
        if european_decimal_comma is None:
            european_decimal_comma = get_config(
                "normalization.amount.european_decimal_comma",
                False
            )
        self.european_decimal_comma = bool(european_decimal_comma)

    def normalize(self, value: Any) -> Decimal:
        """
        Normalize an amount to Decimal, failing closed to zero.

        Args:
            value: String, int, float, Decimal or None.

        Returns:
            Parsed Decimal, or Decimal("0") if nothing numeric was found.
        """
        parsed = self.parse(value)
        return parsed if parsed is not None else ZERO

    def parse(self, value: Any) -> Optional[Decimal]:
        """
        Parse an amount to Decimal.

        Unlike normalize(), unparseable input yields None so callers can
        tell "absent" from zero.

        Args:
            value: String, int, float, Decimal or None.

        Returns:
            Parsed Decimal or None.
        """
        if value is None or isinstance(value, bool):
            return None

        if isinstance(value, Decimal):
            return value if value.is_finite() else None

        if isinstance(value, (int, float)):
            # str() keeps the shortest repr, avoiding binary float artifacts
            return self._to_decimal(str(value))

        if not isinstance(value, str):
            return None

        cleaned = self._clean_amount_string(value)
        if not cleaned:
            return None

        match = self._NUMERIC_PREFIX.match(cleaned)
        if not match:
            logger.debug(f"Could not parse amount: {value!r}")
            return None

        return self._to_decimal(match.group(0))

    def _clean_amount_string(self, amount_str: str) -> str:
        """
        Strip symbols, codes, separators and whitespace.

        Args:
            amount_str: Raw amount string.

        Returns:
            Cleaned amount string.
        """
        for symbol in self.CURRENCY_SYMBOLS:
            amount_str = amount_str.replace(symbol, '')

        amount_str = self._CODE_PATTERN.sub('', amount_str)
        amount_str = ''.join(amount_str.split())

        if self.european_decimal_comma:
            amount_str = self._handle_european_format(amount_str)

        return amount_str.replace(',', '')

    @staticmethod
    def _handle_european_format(amount_str: str) -> str:
        """
        Convert European format (comma decimal) to US format (dot decimal).

        Args:
            amount_str: Amount string.

        Returns:
            Amount string in US format.
        """
        if amount_str.count(',') != 1:
            return amount_str

        comma_pos = amount_str.rfind(',')
        dot_pos = amount_str.rfind('.')

        # Comma after the last dot with at most two digits behind it
        if comma_pos > dot_pos:
            after_comma = amount_str[comma_pos + 1:]
            if 0 < len(after_comma) <= 2 and after_comma.isdigit():
                amount_str = amount_str.replace('.', '').replace(',', '.')

        return amount_str

    @staticmethod
    def _to_decimal(text: str) -> Optional[Decimal]:
        try:
            value = Decimal(text)
        except InvalidOperation:
            return None
        return value if value.is_finite() else None


_default_normalizer: Optional[AmountNormalizer] = None


def normalize_amount(value: Any) -> Decimal:
    """
    Module-level shortcut for AmountNormalizer().normalize(value).

    Example:
        >>> normalize_amount("$1,234.50")
        Decimal('1234.50')
    """
    global _default_normalizer
    if _default_normalizer is None:
        _default_normalizer = AmountNormalizer()
    return _default_normalizer.normalize(value)
