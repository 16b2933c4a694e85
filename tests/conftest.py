"""
Pytest configuration and shared fixtures.

The configuration manager is a process-wide singleton, so every test
starts and ends with a fresh instance.
"""

import logging
from typing import Dict, List

import pytest

from config import ConfigurationManager
from invoice_recon.reconciliation import Invoice, PaymentRecord, VendorCandidate
from invoice_recon.utils.logger import ROOT_LOGGER_NAME


SAMPLE_INVOICE_TEXT = """ACME Supplies Inc
Invoice Number: INV-2024-001
Invoice Date: 01/15/2024
Due Date: 02/14/2024

Widget A        2    $50.00    $100.00
Service fee     1    $20.00    $20.00

Net Amount: $120.00
Tax: $12.00
Total Due: $132.00
"""


@pytest.fixture(autouse=True)
def fresh_config():
    """Reset the configuration singleton around every test."""
    ConfigurationManager.reset()
    yield
    ConfigurationManager.reset()


@pytest.fixture
def use_config(tmp_path):
    """Factory that loads a custom YAML settings file for the current test."""
    def _use(yaml_text: str) -> ConfigurationManager:
        path = tmp_path / "settings.yaml"
        path.write_text(yaml_text, encoding="utf-8")
        ConfigurationManager.reset()
        return ConfigurationManager(str(path))
    return _use


@pytest.fixture
def sample_text() -> str:
    return SAMPLE_INVOICE_TEXT


def make_invoice(invoice_id, vendor="Acme Corp", total="100.00", number=None) -> Invoice:
    return Invoice(
        id=invoice_id,
        invoice_number=number if number is not None else f"N-{invoice_id}",
        vendor_name=vendor,
        total_amount=total,
    )


def make_record(record_id, vendor="ACME CORPORATION", amount="100.00") -> PaymentRecord:
    return PaymentRecord(
        id=record_id,
        vendor_name=vendor,
        expected_amount=amount,
    )


class StaticIndex:
    """
    VendorSearch stub returning fixed vendor scores in a fixed order.

    Lets engine tests pin vendor distances without depending on the
    similarity library.
    """

    def __init__(self, records, scores: Dict[object, float]):
        by_id = {r.id: r for r in records}
        self._candidates: List[VendorCandidate] = [
            VendorCandidate(record=by_id[record_id], score=score)
            for record_id, score in scores.items()
        ]

    def search(self, query: str) -> List[VendorCandidate]:
        return list(self._candidates) if query else []


@pytest.fixture
def static_index_factory():
    """Build an index_factory for ReconciliationEngine from {record_id: score}."""
    def _factory(scores: Dict[object, float]):
        return lambda records, normalizer: StaticIndex(records, scores)
    return _factory


@pytest.fixture
def clean_root_logger():
    """Close handlers added to the package logger during a test."""
    yield
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)

