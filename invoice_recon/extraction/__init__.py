"""
Extraction Module for the Invoice Reconciliation System.

This module turns raw OCR text into structured invoice drafts:
    - Pattern-priority header field extraction
    - Heuristic line item detection
    - Cross-field draft validation

Author: Finance Automation Team
"""

from .draft import InvoiceDraft, LineItem, UNKNOWN_VENDOR
from .field_extractor import FieldExtractor, extract
from .line_items import LineItemExtractor
from .patterns import FieldPattern, FIELD_PATTERNS, extract_field
from .validators import DraftValidator, ValidationResult

__all__ = [
    'InvoiceDraft',
    'LineItem',
    'UNKNOWN_VENDOR',
    'FieldExtractor',
    'extract',
    'LineItemExtractor',
    'FieldPattern',
    'FIELD_PATTERNS',
    'extract_field',
    'DraftValidator',
    'ValidationResult'
]
