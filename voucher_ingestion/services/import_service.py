"""
Import service: read listings -> map -> reconcile against storage.

Responsibility:
    Brings vehicles and vouchers from old listings into a company without
    ever overwriting what is already there.  Parsing is delegated to a
    SourceAdapter chosen by source format; row typing to the mapping
    engine; every write goes through the kernel services.

Architecture position:
    Ingestion > Services.  Uses kernel services and selectors; never
    touches ORM rows directly.  Flushes only; the caller commits.

Invariants enforced:
    - An existing voucher number is never overwritten: duplicates (stored
      or earlier in the same run) are skipped with a warning.
    - Vehicles are matched case-insensitively and created at most once.
    - The company counter is advanced once, after all records, to the
      highest inserted number (never lowered).
    - dry_run performs the same matching and validation with zero writes
      and reports what a real run would insert.

Failure modes:
    - CompanyNotFoundError for an unknown company (nothing is read).
    - Per-record problems land in ImportResult.errors / warnings and the
      run continues.
    - Storage failures (SQLAlchemyError) propagate; the caller rolls back.

Uses structured logging (LogContext, get_logger("ingestion.*")).
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import chain
from pathlib import Path
from typing import Any, Iterable, Sequence
from uuid import uuid4

from sqlalchemy.orm import Session

from voucher_kernel.exceptions import (
    InactiveVehicleError,
    VoucherLedgerError,
    VoucherNumberConflictError,
)
from voucher_kernel.logging_config import LogContext, get_logger
from voucher_kernel.models import normalize_code
from voucher_kernel.selectors.voucher_selector import VoucherSelector
from voucher_kernel.services.company_service import CompanyService
from voucher_kernel.services.sequence_service import SequenceService
from voucher_kernel.services.vehicle_service import VehicleService, clean_vehicle_code
from voucher_kernel.services.voucher_service import (
    DEFAULT_RETRY_ATTEMPTS,
    VoucherService,
    validate_amount,
    validate_voucher_number,
)

from voucher_config.schema import DEFAULT_LEGACY_DATE_FORMATS, LedgerSettings
from voucher_ingestion.adapters.base import SourceAdapter, SourceInspection
from voucher_ingestion.adapters.csv_adapter import CsvSourceAdapter
from voucher_ingestion.adapters.legacy_text_adapter import LegacyTextAdapter
from voucher_ingestion.adapters.xlsx_adapter import XlsxSourceAdapter
from voucher_ingestion.domain.types import (
    ImportOptions,
    ImportResult,
    ParsedVoucherLine,
    SourceFormat,
)
from voucher_ingestion.mapping.engine import MappedRecords, map_records

logger = get_logger("ingestion.import_service")


def _default_adapters() -> dict[str, SourceAdapter]:
    return {
        SourceFormat.LEGACY.value: LegacyTextAdapter(),
        SourceFormat.CSV.value: CsvSourceAdapter(),
        SourceFormat.XLSX.value: XlsxSourceAdapter(),
    }


@dataclass(frozen=True)
class _VehicleRef:
    """A vehicle known to this run; vehicle_id is None when only planned (dry run)."""

    vehicle_id: int | None
    code: str
    is_active: bool = True


def _find_listing(directory: Path, name: str) -> Path | None:
    """Listing file in directory, matched case-insensitively."""
    exact = directory / name
    if exact.is_file():
        return exact
    if not directory.is_dir():
        return None
    wanted = name.casefold()
    for candidate in sorted(directory.iterdir()):
        if candidate.is_file() and candidate.name.casefold() == wanted:
            return candidate
    return None


class ImportService:
    """Reconciling importer for vehicle and voucher listings."""

    def __init__(
        self,
        session: Session,
        adapters: dict[str, SourceAdapter] | None = None,
        date_formats: Sequence[str] = DEFAULT_LEGACY_DATE_FORMATS,
        sequence_service: SequenceService | None = None,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
    ):
        self._session = session
        self._adapters = adapters if adapters is not None else _default_adapters()
        self._date_formats = tuple(date_formats)
        self._sequence = sequence_service or SequenceService(session)
        self._companies = CompanyService(session, self._sequence)
        self._vehicles = VehicleService(session)
        self._vouchers = VoucherService(session, self._sequence, retry_attempts)
        self._voucher_selector = VoucherSelector(session)

    @classmethod
    def from_settings(cls, session: Session, settings: LedgerSettings) -> ImportService:
        return cls(
            session,
            date_formats=settings.legacy_date_formats,
            retry_attempts=settings.voucher_number_retry_attempts,
        )

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def _adapter(self, source_format: SourceFormat | str) -> SourceAdapter:
        key = source_format.value if isinstance(source_format, SourceFormat) else str(source_format)
        adapter = self._adapters.get(key)
        if adapter is None:
            raise ValueError(f"No adapter for source_format {key!r}")
        return adapter

    def inspect_source(
        self,
        source_path: Path,
        source_format: SourceFormat | str = SourceFormat.LEGACY,
        options: dict[str, Any] | None = None,
    ) -> SourceInspection:
        """Preview one listing file: row count, columns, sample data."""
        return self._adapter(source_format).inspect(Path(source_path), options or {})

    def resolve_listings(self, source: Path, adapter: SourceAdapter) -> tuple[list[Path], list[str]]:
        """
        Files to read for source, plus warnings for listings that are absent.

        A file is read on its own.  A directory is searched for the
        adapter's listing names (vehicles first).
        """
        if source.is_file():
            return [source], []
        files: list[Path] = []
        warnings: list[str] = []
        for name in adapter.listing_names:
            found = _find_listing(source, name)
            if found is None:
                warnings.append(f"{name} not found at {source / name}")
            else:
                files.append(found)
        return files, warnings

    def read_source(self, options: ImportOptions) -> tuple[MappedRecords, list[str]]:
        """Mapped records from every listing of the source, plus listing warnings."""
        adapter = self._adapter(options.source_format)
        files, warnings = self.resolve_listings(Path(options.source), adapter)
        rows = chain.from_iterable(
            adapter.read(path, dict(options.adapter_options)) for path in files
        )
        mapped = map_records(rows, self._date_formats)
        logger.info(
            "import_source_read",
            extra={
                "source": str(options.source),
                "source_format": str(getattr(options.source_format, "value", options.source_format)),
                "files": [p.name for p in files],
                "vehicles": len(mapped.vehicle_codes),
                "vouchers": len(mapped.voucher_lines),
                "mapping_errors": len(mapped.errors),
            },
        )
        return mapped, warnings

    # -------------------------------------------------------------------------
    # Import
    # -------------------------------------------------------------------------

    def run(self, options: ImportOptions) -> ImportResult:
        """Read the source and reconcile it into options.company_id."""
        self._companies.get_company(options.company_id)
        mapped, listing_warnings = self.read_source(options)
        result = self.import_records(
            options.company_id,
            mapped.vehicle_codes,
            mapped.voucher_lines,
            dry_run=options.dry_run,
            create_missing_vehicles=options.create_missing_vehicles,
        )
        result.warnings[:0] = listing_warnings
        result.errors[:0] = list(mapped.errors)
        return result

    def import_records(
        self,
        company_id: int,
        vehicle_codes: Iterable[str],
        voucher_lines: Iterable[ParsedVoucherLine],
        dry_run: bool = True,
        create_missing_vehicles: bool = True,
    ) -> ImportResult:
        """
        Reconcile already-parsed records into a company.

        Vehicle codes are processed first, then vouchers in the given order.

        Raises:
            CompanyNotFoundError: unknown company.
        """
        company = self._companies.get_company(company_id)
        start_number = company.last_voucher_number
        vehicle_codes = list(vehicle_codes)
        voucher_lines = list(voucher_lines)
        result = ImportResult(
            vehicles_parsed=len(vehicle_codes),
            vouchers_parsed=len(voucher_lines),
            dry_run=dry_run,
        )

        with LogContext.bind(company_id=company_id, batch_id=uuid4().hex[:12]):
            logger.info(
                "import_started",
                extra={
                    "dry_run": dry_run,
                    "create_missing_vehicles": create_missing_vehicles,
                    "vehicles": len(vehicle_codes),
                    "vouchers": len(voucher_lines),
                },
            )

            known: dict[str, _VehicleRef | None] = {}
            for code in vehicle_codes:
                first_seen = normalize_code(code) not in known
                ref = self._resolve_vehicle(
                    company_id, code, known, result, dry_run, create_missing_vehicles,
                )
                if first_seen and ref is None and not create_missing_vehicles:
                    result.warnings.append(f"Vehicle '{code.strip()}' not found (not created)")

            taken = self._voucher_selector.existing_numbers(company_id)
            max_number = start_number
            for line in voucher_lines:
                if self._import_voucher(
                    company_id, line, known, taken, result, dry_run, create_missing_vehicles,
                ):
                    max_number = max(max_number, line.voucher_number)

            advanced = False
            if not dry_run and max_number > start_number:
                advanced = self._sequence.advance(company_id, max_number)

            logger.info(
                "import_completed",
                extra={
                    "dry_run": dry_run,
                    "vehicles_inserted": result.vehicles_inserted,
                    "vouchers_inserted": result.vouchers_inserted,
                    "warnings": len(result.warnings),
                    "errors": len(result.errors),
                    "sequence_advanced_to": max_number if advanced else None,
                },
            )
        return result

    def _resolve_vehicle(
        self,
        company_id: int,
        code: str,
        known: dict[str, _VehicleRef | None],
        result: ImportResult,
        dry_run: bool,
        create_missing: bool,
    ) -> _VehicleRef | None:
        """Existing, created (or planned) vehicle for code; None when unavailable."""
        key = normalize_code(code)
        if key in known:
            return known[key]

        existing = self._vehicles.find_by_code(company_id, code)
        if existing is not None:
            ref: _VehicleRef | None = _VehicleRef(existing.id, existing.code, existing.is_active)
        elif not create_missing:
            ref = None
        else:
            ref = self._create_vehicle(company_id, code, result, dry_run)
        known[key] = ref
        return ref

    def _create_vehicle(
        self,
        company_id: int,
        code: str,
        result: ImportResult,
        dry_run: bool,
    ) -> _VehicleRef | None:
        try:
            if dry_run:
                ref = _VehicleRef(None, clean_vehicle_code(code))
            else:
                vehicle = self._vehicles.create_vehicle(company_id, code)
                ref = _VehicleRef(vehicle.id, vehicle.code)
        except VoucherLedgerError as exc:
            result.errors.append(f"Vehicle '{code}': {exc}")
            logger.warning(
                "import_vehicle_rejected",
                extra={"code": code, "error_code": exc.code},
            )
            return None
        result.vehicles_inserted += 1
        logger.debug("import_vehicle_created", extra={"code": ref.code, "dry_run": dry_run})
        return ref

    def _import_voucher(
        self,
        company_id: int,
        line: ParsedVoucherLine,
        known: dict[str, _VehicleRef | None],
        taken: set[int],
        result: ImportResult,
        dry_run: bool,
        create_missing: bool,
    ) -> bool:
        """Insert (or, in a dry run, validate) one voucher. True when counted as inserted."""
        ref = self._resolve_vehicle(
            company_id, line.vehicle_code, known, result, dry_run, create_missing,
        )
        if ref is None:
            result.warnings.append(
                f"Missing vehicle '{line.vehicle_code}' for voucher {line.voucher_number} "
                f"on {line.voucher_date.isoformat()}"
            )
            return False

        if line.voucher_number in taken:
            self._skip_duplicate(line, result)
            return False

        try:
            validate_voucher_number(line.voucher_number)
            validate_amount(line.amount)
            if not ref.is_active:
                raise InactiveVehicleError(ref.vehicle_id, ref.code)
            if not dry_run:
                self._vouchers.create_voucher(
                    company_id,
                    ref.vehicle_id,
                    line.voucher_date,
                    line.amount,
                    line.side,
                    narration=line.narration,
                    voucher_number=line.voucher_number,
                    advance_sequence=False,
                )
        except VoucherNumberConflictError:
            taken.add(line.voucher_number)
            self._skip_duplicate(line, result)
            return False
        except VoucherLedgerError as exc:
            where = f" ({line.source})" if line.source else ""
            result.errors.append(f"Voucher {line.voucher_number}{where}: {exc}")
            logger.warning(
                "import_voucher_rejected",
                extra={"voucher_number": line.voucher_number, "error_code": exc.code},
            )
            return False

        taken.add(line.voucher_number)
        result.vouchers_inserted += 1
        return True

    @staticmethod
    def _skip_duplicate(line: ParsedVoucherLine, result: ImportResult) -> None:
        result.warnings.append(f"Duplicate voucher number {line.voucher_number} (skipped)")
        logger.info(
            "import_duplicate_voucher_skipped",
            extra={"voucher_number": line.voucher_number},
        )
