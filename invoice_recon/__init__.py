"""
Invoice Reconciliation System - Core Package.

This package turns noisy OCR text into structured invoice drafts and
reconciles invoice batches against a payment register. Each subpackage
has a single responsibility and performs no I/O.

Modules:
    - normalizers: Amount and vendor-name canonicalization
    - extraction: Pattern-priority field extraction and line items
    - reconciliation: Fuzzy vendor index and the matching engine
    - utils: Logging, exceptions and shared helpers

Architecture:
    Raw Text → Field Extractor → InvoiceDraft
    Invoices + Payment Records → Reconciliation Engine → Report
"""

__version__ = "1.0.0"
__author__ = "Finance Automation Team"

__all__ = [
    'normalizers',
    'extraction',
    'reconciliation',
    'utils'
]
