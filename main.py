#!/usr/bin/env python3
"""
Invoice Extraction & Reconciliation - Main Entry Point.

This is the command-line driver for the reconciliation system. It reads
OCR text or JSON batches from disk, runs the core, and writes JSON.

Usage:
    Command Line:
        python main.py extract --input invoice.txt --output draft.json
        python main.py reconcile --invoices invoices.json --register register.json

    Python:
        from main import run_extraction, run_reconciliation
        draft = run_extraction("invoice.txt")

Author: Finance Automation Team
Version: 1.0.0
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import ConfigurationManager
from invoice_recon.utils.exceptions import InvoiceReconError
from invoice_recon.utils.helpers import generate_timestamp
from invoice_recon.utils.logger import get_logger, set_level, setup_logger_from_config


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        argv: Argument list, defaults to sys.argv[1:].

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Invoice Extraction & Payment Reconciliation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Extract fields from OCR text:
        python main.py extract --input invoice.txt --validate

    Reconcile invoices against a payment register:
        python main.py reconcile --invoices invoices.json --register register.json -o report.json
        """
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log errors"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    extract_parser = subparsers.add_parser("extract", help="Extract an invoice draft from OCR text")
    extract_parser.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        help="Text file containing OCR output"
    )
    extract_parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output JSON file (default: stdout)"
    )
    extract_parser.add_argument(
        "--validate",
        action="store_true",
        help="Attach cross-field validation warnings to the draft"
    )

    reconcile_parser = subparsers.add_parser("reconcile", help="Reconcile invoices against a register")
    reconcile_parser.add_argument(
        "--invoices",
        type=str,
        required=True,
        help="JSON file with a list of invoice objects"
    )
    reconcile_parser.add_argument(
        "--register",
        type=str,
        required=True,
        help="JSON file with a list of payment record objects"
    )
    reconcile_parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output JSON file (default: stdout)"
    )

    return parser.parse_args(argv)


def initialize_system(args: argparse.Namespace) -> ConfigurationManager:
    """
    Initialize configuration and logging.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Initialized configuration manager.
    """
    config = ConfigurationManager(args.config)
    logger = setup_logger_from_config()

    if args.debug:
        set_level(logging.DEBUG)
    elif args.quiet:
        set_level(logging.ERROR)

    logger.info(f"invoice-recon {config.get('project.version', '1.0.0')}: {args.command}")
    return config


def _load_json_list(path: str, label: str) -> List[Dict[str, Any]]:
    """
    Load a JSON file that must contain a list of objects.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the content is not a list of objects.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"{label} file not found: {file_path}")

    with open(file_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ValueError(f"{label} file must contain a JSON list of objects: {file_path}")
    return data


def _write_output(payload: Dict[str, Any], output_path: Optional[str]) -> None:
    text = json.dumps(payload, indent=2, ensure_ascii=False, default=str)
    if output_path is None:
        print(text)
        return

    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text + "\n", encoding='utf-8')
    get_logger(__name__).info(f"Wrote {out}")


def run_extraction(input_path: str, validate: bool = False) -> Dict[str, Any]:
    """
    Extract an invoice draft from an OCR text file.

    Args:
        input_path: Path to the text file.
        validate: Attach validation warnings.

    Returns:
        Draft as a dictionary.

    Example:
        >>> draft = run_extraction("invoice.txt")
        >>> print(draft['invoice_number'])
    """
    from invoice_recon.extraction import FieldExtractor

    file_path = Path(input_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Input file not found: {file_path}")

    raw_text = file_path.read_text(encoding='utf-8', errors='replace')
    draft = FieldExtractor(validate=validate).extract(raw_text)
    return draft.to_dict()


def run_reconciliation(invoices_path: str, register_path: str) -> Dict[str, Any]:
    """
    Reconcile invoices from one JSON file against records from another.

    Args:
        invoices_path: JSON list of invoice objects.
        register_path: JSON list of payment record objects.

    Returns:
        Report as a dictionary, stamped with generation time.
    """
    from invoice_recon.reconciliation import Invoice, PaymentRecord, ReconciliationEngine

    invoices = [Invoice.from_dict(row) for row in _load_json_list(invoices_path, "Invoices")]
    records = [PaymentRecord.from_dict(row) for row in _load_json_list(register_path, "Register")]

    report = ReconciliationEngine().reconcile(invoices, records)

    payload = report.to_dict()
    payload['generated_at'] = generate_timestamp("%Y-%m-%dT%H:%M:%S")
    return payload


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    try:
        args = parse_arguments(argv)
        initialize_system(args)

        if args.command == "extract":
            payload = run_extraction(args.input, validate=args.validate)
        else:
            payload = run_reconciliation(args.invoices, args.register)

        _write_output(payload, args.output)
        return 0

    except (FileNotFoundError, ValueError, InvoiceReconError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
