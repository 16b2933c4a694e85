"""
Extraction Pattern Lists.

Each logical invoice field has an ordered list of (regex, group) pairs,
most specific first. The extractor walks a list top to bottom against the
full text and keeps the first non-empty capture.

Author: Finance Automation Team
"""

import re
from typing import Dict, List, NamedTuple, Optional, Pattern, Sequence


class FieldPattern(NamedTuple):
    """A compiled pattern and the capture group holding the field value."""
    regex: Pattern
    group: int = 1


def _p(pattern: str, flags: int = re.IGNORECASE, group: int = 1) -> FieldPattern:
    return FieldPattern(re.compile(pattern, flags), group)


# Shared fragments
_NUMERIC_DATE = r'\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4}'
_WORDY_DATE = r'[A-Za-z]+\s+\d{1,2},?\s+\d{4}'
_AMOUNT = r'([\d,]+\.?\d{0,2})'

INVOICE_NUMBER_PATTERNS: List[FieldPattern] = [
    _p(r'invoice\s*(?:#|no\.?|number|num\.?)[:\s]*([A-Z0-9\-/]+)'),
    _p(r'inv\s*[#:]?\s*([A-Z0-9\-/]+)'),
    _p(r'bill\s*(?:#|no\.?)[:\s]*([A-Z0-9\-/]+)'),
    _p(r'#\s*([A-Z0-9\-]{4,20})'),
]

VENDOR_NAME_PATTERNS: List[FieldPattern] = [
    _p(r"(?:from|bill\s*from|billed\s*by|company)[:\s]+([A-Za-z0-9\s&.,'\-]+?)(?:\n|ltd|inc|llc|corp)"),
    # Capitalized line ending in a company-style word; case-sensitive
    _p(r"^([A-Z][A-Za-z0-9\s&.,'\-]{2,40}(?:Ltd|Inc|LLC|Corp|Co\.|Services|Solutions|Group))",
       flags=re.MULTILINE),
]

INVOICE_DATE_PATTERNS: List[FieldPattern] = [
    _p(rf'(?:invoice\s*date|date\s*of\s*issue|issued?)[:\s]*({_NUMERIC_DATE})'),
    _p(rf'(?:invoice\s*date|date)[:\s]*({_WORDY_DATE})'),
    _p(r'(\d{1,2}[/\-.]\d{1,2}[/\-.]\d{4})', flags=0),
    _p(r'([A-Za-z]+ \d{1,2},? \d{4})', flags=0),
]

DUE_DATE_PATTERNS: List[FieldPattern] = [
    _p(rf'(?:due\s*date|payment\s*due|pay\s*by)[:\s]*({_NUMERIC_DATE})'),
    _p(rf'(?:due\s*date|payment\s*due|pay\s*by)[:\s]*({_WORDY_DATE})'),
]

TOTAL_PATTERNS: List[FieldPattern] = [
    _p(r'(?:total\s*(?:amount\s*)?due|grand\s*total|amount\s*due|total)[:\s]*\$?\s*' + _AMOUNT),
    _p(r'total[:\s]*(?:USD|EUR|GBP|INR)?\s*' + _AMOUNT),
]

SUBTOTAL_PATTERNS: List[FieldPattern] = [
    _p(r'(?:subtotal|sub\s*total)[:\s]*\$?\s*' + _AMOUNT),
    _p(r'(?:net\s*amount|net)[:\s]*\$?\s*' + _AMOUNT),
]

TAX_PATTERNS: List[FieldPattern] = [
    _p(r'(?:tax|vat|gst|hst)[:\s]*(?:\d+%\s*)?\$?\s*' + _AMOUNT),
    _p(r'(?:sales\s*tax|service\s*tax)[:\s]*\$?\s*' + _AMOUNT),
]

CURRENCY_PATTERNS: List[FieldPattern] = [
    _p(r'\b(USD|EUR|GBP|INR|CAD|AUD|JPY|CNY|CHF|SGD)\b'),
    _p(r'(\$|€|£|₹|¥)', flags=0),
]

# Field name -> ordered pattern list
FIELD_PATTERNS: Dict[str, List[FieldPattern]] = {
    'invoice_number': INVOICE_NUMBER_PATTERNS,
    'vendor_name': VENDOR_NAME_PATTERNS,
    'invoice_date': INVOICE_DATE_PATTERNS,
    'due_date': DUE_DATE_PATTERNS,
    'total': TOTAL_PATTERNS,
    'subtotal': SUBTOTAL_PATTERNS,
    'tax': TAX_PATTERNS,
    'currency': CURRENCY_PATTERNS,
}

# Description, quantity, unit price, amount; one physical line per row
LINE_ITEM_PATTERN: Pattern = re.compile(
    r'^(.{3,40}?)[ \t]{2,}(\d+(?:\.\d+)?)[ \t]+\$?([\d,.]+)[ \t]+\$?([\d,.]+)[ \t]*$',
    re.MULTILINE
)


def extract_field(text: str, patterns: Sequence[FieldPattern]) -> Optional[str]:
    """
    Return the first non-empty capture from an ordered pattern list.

    Patterns are tried in order and the search stops at the first success;
    a later pattern is never consulted once an earlier one has produced a
    value, even if the later match would be "better".

    Args:
        text: Full raw text.
        patterns: Ordered (regex, group) pairs.

    Returns:
        Stripped captured value, or None when no pattern yields one.

    Example:
        >>> extract_field("Invoice No: A-17", INVOICE_NUMBER_PATTERNS)
        'A-17'
    """
    for regex, group in patterns:
        match = regex.search(text)
        if match:
            value = match.group(group)
            if value and value.strip():
                return value.strip()
    return None
