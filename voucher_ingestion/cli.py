"""
voucher-import: reconcile VEH.TXT / VCH.TXT (or CSV / XLSX) listings into a company.

Dry run is the default; nothing is written unless --commit is given.

Usage:
    voucher-import SOURCE --company-id N [options]
    python -m voucher_ingestion SOURCE --company-id N [options]

Examples:
    # Preview what an import of an old listing folder would do
    voucher-import /mnt/old/DATA --company-id 1

    # Import for real, without creating unknown vehicles
    voucher-import /mnt/old/DATA --company-id 1 --commit --no-create-vehicles

    # Inspect a single listing (row count, columns, sample) and exit
    voucher-import /mnt/old/DATA/VCH.TXT --company-id 1 --inspect-only

Exit status: 0 clean, 1 the import reported errors, 2 setup failure.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from voucher_ingestion.domain.types import ImportOptions, SourceFormat


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="voucher-import",
        description="Import vehicle and voucher listings into a company.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "source",
        type=Path,
        help="Listing file, or directory holding VEH.TXT / VCH.TXT (or vehicles/vouchers .csv/.xlsx).",
    )
    parser.add_argument(
        "--company-id",
        required=True,
        type=int,
        help="Company that receives the records.",
    )
    parser.add_argument(
        "--format",
        dest="source_format",
        choices=[f.value for f in SourceFormat],
        default=SourceFormat.LEGACY.value,
        help="Listing format (default: legacy).",
    )
    parser.add_argument(
        "--commit",
        action="store_true",
        help="Write the import. Without it the run is a dry run.",
    )
    parser.add_argument(
        "--no-create-vehicles",
        action="store_true",
        help="Skip vouchers whose vehicle does not exist instead of creating it.",
    )
    parser.add_argument(
        "--encoding",
        default=None,
        help="Text encoding of the listings (default: utf-8).",
    )
    parser.add_argument(
        "--inspect-only",
        action="store_true",
        help="Inspect the source file (row count, columns, sample rows) and exit.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Ledger settings YAML (default: VOUCHER_LEDGER_CONFIG or packaged defaults).",
    )
    parser.add_argument(
        "--db-url",
        default=None,
        help="Database URL (default: from settings).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Emit debug-level structured logs on stderr.",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    # Lazy imports so we fail fast on args first
    from voucher_config import get_active_settings
    from voucher_kernel.db.engine import create_tables, get_session, init_engine_from_url
    from voucher_kernel.exceptions import VoucherLedgerError
    from voucher_kernel.logging_config import configure_logging
    from voucher_ingestion.services.import_service import ImportService

    configure_logging(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        settings = get_active_settings(args.config)
    except (OSError, ValueError) as e:
        print(f"ERROR: Failed to load settings: {e}", file=sys.stderr)
        return 2

    adapter_options = {"encoding": args.encoding} if args.encoding else {}
    options = ImportOptions(
        source=args.source.resolve(),
        company_id=args.company_id,
        dry_run=not args.commit,
        create_missing_vehicles=not args.no_create_vehicles,
        source_format=SourceFormat(args.source_format),
        adapter_options=adapter_options,
    )

    try:
        init_engine_from_url(args.db_url or settings.database_url, echo=settings.echo)
        create_tables()
    except Exception as e:
        print(f"ERROR: Database init failed: {e}", file=sys.stderr)
        return 2

    session = get_session()
    try:
        service = ImportService.from_settings(session, settings)

        if args.inspect_only:
            if not options.source.is_file():
                print(f"ERROR: --inspect-only needs a file: {options.source}", file=sys.stderr)
                return 2
            inspection = service.inspect_source(options.source, options.source_format, adapter_options)
            print(f"Rows: {inspection.row_count}")
            print(f"Columns: {list(inspection.columns)}")
            print("Sample (first 3):")
            for i, row in enumerate(inspection.sample_rows[:3], 1):
                print(f"  {i}: {row}")
            return 0

        try:
            result = service.run(options)
        except (VoucherLedgerError, ValueError) as e:
            session.rollback()
            print(f"ERROR: {e}", file=sys.stderr)
            return 2

        if options.dry_run:
            session.rollback()
        else:
            session.commit()
        print(result.summary())
        return 0 if result.ok else 1
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
