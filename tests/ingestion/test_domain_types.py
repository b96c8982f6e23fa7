"""Tests for the importer's value types."""

from datetime import date
from decimal import Decimal

from voucher_kernel.domain.dtos import Side
from voucher_ingestion.domain import ImportOptions, ImportResult, ParsedVoucherLine, SourceFormat


class TestImportOptions:
    def test_defaults_to_dry_run(self):
        options = ImportOptions(source="/data", company_id=1)
        assert options.dry_run is True
        assert options.create_missing_vehicles is True
        assert options.source_format is SourceFormat.LEGACY
        assert options.adapter_options == {}


class TestParsedVoucherLine:
    def test_describe(self):
        line = ParsedVoucherLine(101, date(2024, 3, 5), "UP-1", Decimal("10"), Side.DEBIT)
        assert line.describe() == "voucher 101 on 2024-03-05"


class TestImportResult:
    def test_summary_dry_run_with_warnings(self):
        result = ImportResult(
            vehicles_parsed=2,
            vehicles_inserted=1,
            vouchers_parsed=3,
            vouchers_inserted=2,
            warnings=["Duplicate voucher number 7 (skipped)"],
        )
        assert result.ok
        assert str(result) == "\n".join(
            [
                "Vehicles: parsed 2, inserted 1",
                "Vouchers: parsed 3, inserted 2",
                "Dry run: nothing was written",
                "Warnings (1):",
                " - Duplicate voucher number 7 (skipped)",
            ]
        )

    def test_errors_make_result_not_ok(self):
        result = ImportResult(dry_run=False, errors=["Voucher 5: bad"])
        assert not result.ok
        summary = result.summary()
        assert "Dry run" not in summary
        assert summary.endswith("Errors (1):\n - Voucher 5: bad")
