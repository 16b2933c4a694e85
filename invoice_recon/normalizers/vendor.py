"""
Vendor Normalizer Module.

Canonicalizes vendor names so "Acme Corp." and "ACME CORPORATION"
compare equal. The same normalizer must be applied to invoice and
payment-register names alike.

Author: Finance Automation Team
"""

import re
from typing import Iterable, Optional

from config import get_config
from invoice_recon.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


class VendorNormalizer:
    """
    Normalizes vendor names for comparison.

    Steps:
        1. Lower-case
        2. Remove legal-entity tokens as whole words (with trailing period)
        3. Remove everything except a-z, 0-9 and whitespace
        4. Collapse whitespace and trim

    The steps repeat until the name stops changing, so the result is
    already a fixed point: normalize(normalize(x)) == normalize(x).

    Example:
        >>> normalizer = VendorNormalizer()
        >>> normalizer.normalize("Acme Corp.")
        'acme'
        >>> normalizer.normalize("ACME CORPORATION")
        'acme'
        >>> normalizer.normalize("Globex Pvt. Ltd.")
        'globex'
    """

    LEGAL_SUFFIXES = [
        'ltd', 'limited', 'inc', 'incorporated', 'llc', 'corp',
        'corporation', 'co', 'company', 'pvt', 'private'
    ]

    _NON_ALNUM = re.compile(r'[^a-z0-9\s]')
    _WHITESPACE = re.compile(r'\s+')

    def __init__(self, legal_suffixes: Optional[Iterable[str]] = None) -> None:
        """
        Initialize the vendor normalizer.

        Args:
            legal_suffixes: Tokens to strip. Defaults to configuration.
        """
        if legal_suffixes is None:
            legal_suffixes = get_config(
                "normalization.vendor.legal_suffixes",
                self.LEGAL_SUFFIXES
            )
        self.legal_suffixes = [s.lower() for s in legal_suffixes]

        alternation = '|'.join(re.escape(s) for s in self.legal_suffixes)
        self._suffix_pattern = re.compile(rf'\b(?:{alternation})\b\.?')

        logger.debug(f"VendorNormalizer initialized ({len(self.legal_suffixes)} legal tokens)")

    def normalize(self, name: Optional[str]) -> str:
        """
        Normalize a vendor name.

        Args:
            name: Vendor name, possibly empty or None.

        Returns:
            Canonical name, or "" for empty input.
        """
        if not name:
            return ""

        previous = None
        current = str(name)
        while current != previous:
            previous = current
            current = self._single_pass(current)
        return current

    def _single_pass(self, name: str) -> str:
        name = name.lower()
        if self.legal_suffixes:
            name = self._suffix_pattern.sub('', name)
        name = self._NON_ALNUM.sub('', name)
        return self._WHITESPACE.sub(' ', name).strip()


_default_normalizer: Optional[VendorNormalizer] = None


def normalize_vendor(name: Optional[str]) -> str:
    """
    Module-level shortcut for VendorNormalizer().normalize(name).

    Example:
        >>> normalize_vendor("Initech, Inc.")
        'initech'
    """
    global _default_normalizer
    if _default_normalizer is None:
        _default_normalizer = VendorNormalizer()
    return _default_normalizer.normalize(name)
