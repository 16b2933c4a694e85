"""
Reconciliation Module for the Invoice Reconciliation System.

This module matches invoice batches against a payment register:
    - Fuzzy vendor index over register names
    - Relative-tolerance amount matching
    - Greedy one-to-one assignment with explainable flags
    - Run summary and unclaimed register records

Author: Finance Automation Team
"""

from .engine import ReconciliationEngine, reconcile
from .fuzzy_index import FuzzyVendorIndex, VendorCandidate, VendorSearch
from .matching import AmountMatch, ScoredCandidate, amount_match
from .models import (
    Invoice,
    MatchResult,
    MatchStatus,
    PaymentRecord,
    ReconciliationReport,
    ReconciliationSummary,
    Suggestion,
)

__all__ = [
    'ReconciliationEngine',
    'reconcile',
    'FuzzyVendorIndex',
    'VendorCandidate',
    'VendorSearch',
    'AmountMatch',
    'ScoredCandidate',
    'amount_match',
    'Invoice',
    'MatchResult',
    'MatchStatus',
    'PaymentRecord',
    'ReconciliationReport',
    'ReconciliationSummary',
    'Suggestion'
]
