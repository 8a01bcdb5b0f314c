#!/usr/bin/env python3
"""
Sentinel Content Template Builder - Main Application
===================================================

Command-line entry point. For each requested customer it builds one ARM
deployment template from the content repository:

    <root>/Shared/Artifacts/            shared library (connector-gated)
    <root>/Customers/<name>/config.yaml customer settings
    <root>/Customers/<name>/Rules/      customer rules
    <root>/Customers/<name>/Artifacts/  customer artifacts

and writes it to <output-dir>/<name>.json. A customer whose build hits a fatal
error gets no template; the other customers are still built and the exit code
reports the failure.

Usage Examples:
    # Build one customer
    python main.py -r /path/to/content -c contoso

    # Build every customer with a diagnostics report
    python main.py -r /path/to/content --report diagnostics.json --log-level DEBUG
"""

import argparse
import json
import logging
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

import config
from generators.template_assembler import TemplateAssembler, BuildResult
from models.errors import BuildError
from parsers.config_loader import FileConfigStore
from parsers.file_store import FileDocumentStore
from validators.security_validator import SecurityValidator
from utils import setup_logging, create_logger, log_function_timing

logger = create_logger(__name__)


class BuildSession:
    """
    One CLI run: builds each requested customer and writes the results.

    Attributes:
        args: Parsed command-line arguments
        results: Per-customer outcome, used for the summary and report
    """

    def __init__(self, args: argparse.Namespace):
        self.args = args
        self.start_time = datetime.now()
        self.document_store = FileDocumentStore(args.root)
        self.config_store = FileConfigStore(args.root)
        self.results: Dict[str, Dict[str, Any]] = {}

    @log_function_timing
    def run(self) -> int:
        """
        Build every requested customer.

        Returns:
            int: 0 when every build succeeded, 1 otherwise
        """
        is_valid, error_msg = SecurityValidator.validate_directory_path(self.args.root)
        if not is_valid:
            logger.error(f"Invalid content root: {error_msg}")
            return 1

        customers = self.args.customer or self._discover_customers()
        if not customers:
            logger.error(f"No customers found under {Path(self.args.root) / config.CUSTOMERS_DIRECTORY}")
            return 1

        failures = 0
        for customer in customers:
            if not self._build_customer(customer):
                failures += 1

        if self.args.report:
            self._save_report()

        if not self.args.quiet:
            self._display_summary()

        return 1 if failures else 0

    def _build_customer(self, customer: str) -> bool:
        assembler = TemplateAssembler(self.document_store, self.config_store)
        try:
            result = assembler.build(customer)
        except BuildError as e:
            logger.error(f"Build for '{customer}' failed: {e}")
            self.results[customer] = {
                'status': 'failed',
                'error': str(e),
                'diagnostics': [d.to_dict() for d in assembler.diagnostics.records],
            }
            return False

        output_path = self._output_path(customer)
        is_valid, error_msg = SecurityValidator.validate_output_path(output_path)
        if not is_valid:
            logger.error(f"Cannot write template for '{customer}': {error_msg}")
            self.results[customer] = {'status': 'failed', 'error': error_msg}
            return False

        try:
            result.template.save_to_file(output_path)
        except (OSError, ValueError) as e:
            logger.error(f"Cannot write template for '{customer}': {str(e)}")
            self.results[customer] = {'status': 'failed', 'error': str(e)}
            return False

        logger.info(f"Template for '{customer}' saved to {output_path}")
        self.results[customer] = self._describe(result, output_path)
        return True

    def _discover_customers(self) -> List[str]:
        customers_root = Path(self.args.root) / config.CUSTOMERS_DIRECTORY
        if not customers_root.is_dir():
            return []
        return sorted(p.name for p in customers_root.iterdir()
                      if p.is_dir() and not p.name.startswith('.'))

    def _output_path(self, customer: str) -> str:
        output_dir = Path(self.args.output_dir or Path(self.args.root) / config.DEFAULT_OUTPUT_DIRECTORY)
        return str(output_dir / f"{SecurityValidator.sanitize_filename(customer)}.json")

    @staticmethod
    def _describe(result: BuildResult, output_path: str) -> Dict[str, Any]:
        return {
            'status': 'succeeded',
            'template_file': output_path,
            'resource_count': result.template.get_resource_count(),
            'resource_types': result.template.get_type_summary(),
            'statistics': result.statistics,
            'diagnostics': [d.to_dict() for d in result.diagnostics.records],
        }

    def _save_report(self) -> None:
        report = {
            'application': f"{config.APPLICATION_NAME} v{config.VERSION}",
            'start_time': self.start_time.isoformat(),
            'end_time': datetime.now().isoformat(),
            'customers': self.results,
        }
        report_path = self.args.report
        try:
            with open(report_path, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2, default=str, ensure_ascii=False)
            logger.info(f"Build report saved to {report_path}")
        except OSError as e:
            logger.warning(f"Failed to save build report: {str(e)}")

    def _display_summary(self) -> None:
        duration = datetime.now() - self.start_time

        print("\n" + "=" * 60)
        print("TEMPLATE BUILD SUMMARY")
        print("=" * 60)
        print(f"Duration: {duration.total_seconds():.1f} seconds")
        for customer, outcome in self.results.items():
            if outcome['status'] == 'succeeded':
                print(f"  ✓ {customer}: {outcome['resource_count']} resources -> {outcome['template_file']}")
                warnings = sum(1 for d in outcome['diagnostics'] if d['severity'] == 'warning')
                if warnings:
                    print(f"      {warnings} warnings (run with --log-level DEBUG or --report for details)")
            else:
                print(f"  ✗ {customer}: {outcome['error']}")
        print("=" * 60)


def setup_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=f"{config.APPLICATION_NAME} v{config.VERSION}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py -r ./content -c contoso
  python main.py -r ./content -c contoso -c fabrikam -o ./out
  python main.py -r ./content --report build_report.json
        """
    )

    parser.add_argument(
        "-r", "--root",
        type=str,
        default=".",
        help="Root of the content repository (default: current directory)"
    )
    parser.add_argument(
        "-c", "--customer",
        action="append",
        help="Customer to build; repeat for several (default: every customer under Customers/)"
    )
    parser.add_argument(
        "-o", "--output-dir",
        type=str,
        help=f"Directory for generated templates (default: <root>/{config.DEFAULT_OUTPUT_DIRECTORY})"
    )
    parser.add_argument(
        "--report",
        type=str,
        help="Path to save a JSON report of build statistics and diagnostics"
    )

    logging_group = parser.add_argument_group('Logging Options')
    logging_group.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging verbosity level (default: INFO)"
    )
    logging_group.add_argument(
        "--log-file",
        type=str,
        help="Path to save log output to file (in addition to console)"
    )
    logging_group.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all output except errors"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"{config.APPLICATION_NAME} v{config.VERSION}"
    )
    return parser


def main(argv: List[str] = None) -> int:
    """
    Main application entry point.

    Returns:
        int: Exit code (0 for success, non-zero for error)
    """
    try:
        args = setup_argument_parser().parse_args(argv)

        log_level = "ERROR" if args.quiet else args.log_level
        setup_logging(log_level, args.log_file, enable_colors=True)

        if not args.quiet:
            print(config.get_banner())

        return BuildSession(args).run()

    except KeyboardInterrupt:
        print("\n\nBuild interrupted by user.")
        return 130

    except Exception as e:
        if logger.isEnabledFor(logging.DEBUG):
            logger.error(f"Unexpected error: {str(e)}\n{traceback.format_exc()}")
        else:
            print(f"\nError: {str(e)}")
            print("Run with --log-level DEBUG for detailed error information")
        return 1


if __name__ == "__main__":
    sys.exit(main())
