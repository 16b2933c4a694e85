"""
Utility Module for the Invoice Reconciliation System.

This module provides common utilities used across all other modules:
    - Logging configuration
    - Custom exceptions
    - Rounding and identifier helpers
"""

from .logger import setup_logger, set_level, get_logger
from .helpers import round_half_up, generate_placeholder_number, generate_timestamp

__all__ = [
    'setup_logger',
    'set_level',
    'get_logger',
    'round_half_up',
    'generate_placeholder_number',
    'generate_timestamp'
]
