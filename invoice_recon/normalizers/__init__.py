"""
Normalization Module for the Invoice Reconciliation System.

This module provides functionality for:
    - Amount/currency normalization to Decimal
    - Vendor name canonicalization for fuzzy comparison

Author: Finance Automation Team
"""

from .amount import AmountNormalizer, normalize_amount
from .vendor import VendorNormalizer, normalize_vendor

__all__ = [
    'AmountNormalizer',
    'VendorNormalizer',
    'normalize_amount',
    'normalize_vendor'
]
