"""
Tests for ImportService: reconciling listings into a company without
overwriting stored vouchers.
"""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import func, select

from voucher_kernel.domain.dtos import Side
from voucher_kernel.exceptions import CompanyNotFoundError
from voucher_kernel.models import Vehicle, Voucher
from voucher_ingestion.domain import ImportOptions, ParsedVoucherLine, SourceFormat
from voucher_ingestion.services import ImportService

VEHICLES = """\
VEHICLE NUMBER LIST                         PAGE NO 1
==========================================
S.No   Vehicle Number
   1   UP-25AB-1234
   2   MH12-ZZ-0001
"""

VOUCHERS = """\
CASH VOUCHER LIST                           PAGE NO 1
==========================================
V. No.  Date        A/C Name          Amount  D/C
   101  05-03-2024  UP-25AB-1234    1,250.00  D
   102  05-03-2024  MH12-ZZ-0001       40.50  C
   103  06/03/24    KA-01-9999         300     D
"""


@pytest.fixture
def listing_dir(tmp_path) -> Path:
    (tmp_path / "VEH.TXT").write_text(VEHICLES, encoding="utf-8")
    (tmp_path / "VCH.TXT").write_text(VOUCHERS, encoding="utf-8")
    return tmp_path


@pytest.fixture
def import_service(session, sequence_service) -> ImportService:
    return ImportService(session, sequence_service=sequence_service)


def count(session, model, company_id) -> int:
    return session.execute(
        select(func.count(model.id)).where(model.company_id == company_id)
    ).scalar_one()


def line(number: int, code: str = "UP-1", amount: str = "10", side: Side = Side.DEBIT,
         day: date = date(2024, 3, 5)) -> ParsedVoucherLine:
    return ParsedVoucherLine(number, day, code, Decimal(amount), side)


class TestImportFromListings:
    def test_commit_imports_everything(self, session, import_service, sequence_service, company, listing_dir):
        result = import_service.run(ImportOptions(listing_dir, company.id, dry_run=False))

        assert result.ok, result.summary()
        assert result.warnings == []
        assert (result.vehicles_parsed, result.vehicles_inserted) == (2, 3)
        assert (result.vouchers_parsed, result.vouchers_inserted) == (3, 3)
        assert count(session, Vehicle, company.id) == 3
        assert count(session, Voucher, company.id) == 3
        assert sequence_service.current_value(company.id) == 103

        stored = session.execute(
            select(Voucher).where(Voucher.voucher_number == 102)
        ).scalar_one()
        assert stored.amount == Decimal("40.50")
        assert stored.side == "C"
        assert stored.voucher_date == date(2024, 3, 5)

    def test_dry_run_writes_nothing_but_reports_the_same(
        self, session, import_service, sequence_service, company, listing_dir,
    ):
        result = import_service.run(ImportOptions(listing_dir, company.id))

        assert result.dry_run is True
        assert (result.vehicles_inserted, result.vouchers_inserted) == (3, 3)
        assert count(session, Vehicle, company.id) == 0
        assert count(session, Voucher, company.id) == 0
        assert sequence_service.current_value(company.id) == 0

    def test_single_listing_file(self, session, import_service, company, listing_dir):
        result = import_service.run(
            ImportOptions(listing_dir / "VEH.TXT", company.id, dry_run=False)
        )
        assert (result.vehicles_inserted, result.vouchers_parsed) == (2, 0)
        assert count(session, Vehicle, company.id) == 2

    def test_missing_listing_is_a_warning(self, import_service, company, tmp_path):
        (tmp_path / "VCH.TXT").write_text(VOUCHERS, encoding="utf-8")
        result = import_service.run(ImportOptions(tmp_path, company.id))
        assert result.warnings[0] == f"VEH.TXT not found at {tmp_path / 'VEH.TXT'}"
        assert result.vouchers_inserted == 3

    def test_listing_names_are_case_insensitive(self, import_service, company, tmp_path):
        (tmp_path / "veh.txt").write_text(VEHICLES, encoding="utf-8")
        (tmp_path / "Vch.Txt").write_text(VOUCHERS, encoding="utf-8")
        result = import_service.run(ImportOptions(tmp_path, company.id))
        assert result.warnings == []
        assert result.vouchers_inserted == 3

    def test_csv_source(self, session, import_service, company, tmp_path):
        (tmp_path / "vouchers.csv").write_text(
            "Voucher No,Date,Vehicle Number,Amount,D/C,Narration\n"
            "7,2024-03-05,UP-1,100,D,diesel\n"
            "8,2024-03-06,UP-1,40,C,\n",
            encoding="utf-8",
        )
        result = import_service.run(
            ImportOptions(tmp_path, company.id, dry_run=False, source_format=SourceFormat.CSV)
        )
        assert result.warnings == ["vehicles.csv not found at " + str(tmp_path / "vehicles.csv")]
        assert result.vouchers_inserted == 2
        narrations = session.execute(
            select(Voucher.narration).order_by(Voucher.voucher_number)
        ).scalars().all()
        assert narrations == ["diesel", ""]

    def test_mapping_errors_are_reported(self, import_service, company, tmp_path):
        (tmp_path / "vouchers.csv").write_text(
            "Voucher No,Date,Vehicle Number,Amount,D/C\n"
            "7,not a date,UP-1,100,D\n",
            encoding="utf-8",
        )
        result = import_service.run(
            ImportOptions(tmp_path / "vouchers.csv", company.id, source_format="csv")
        )
        assert result.errors == ["vouchers.csv:2: unrecognised date 'not a date'"]
        assert not result.ok

    def test_unknown_company(self, import_service, listing_dir):
        with pytest.raises(CompanyNotFoundError):
            import_service.run(ImportOptions(listing_dir, 999))

    def test_unknown_format(self, import_service, company, listing_dir):
        with pytest.raises(ValueError):
            import_service.run(ImportOptions(listing_dir, company.id, source_format="dbf"))


class TestReconciliation:
    def test_existing_voucher_number_is_skipped(
        self, session, import_service, sequence_service, company, make_vehicle, post_voucher,
    ):
        vehicle = make_vehicle("UP-1")
        post_voucher(vehicle, "D", "999", date(2024, 1, 1), voucher_number=101)
        assert sequence_service.current_value(company.id) == 101

        result = import_service.import_records(
            company.id, [], [line(101, amount="5")], dry_run=False,
        )

        assert result.vouchers_inserted == 0
        assert result.warnings == ["Duplicate voucher number 101 (skipped)"]
        assert sequence_service.current_value(company.id) == 101
        stored = session.execute(select(Voucher).where(Voucher.voucher_number == 101)).scalar_one()
        assert stored.amount == Decimal("999.00")

    def test_duplicates_within_one_run(self, import_service, company, make_vehicle):
        make_vehicle("UP-1")
        result = import_service.import_records(
            company.id, [], [line(7), line(7, amount="20"), line(8)], dry_run=False,
        )
        assert result.vouchers_inserted == 2
        assert result.warnings == ["Duplicate voucher number 7 (skipped)"]

    def test_counter_advances_once_to_highest(
        self, import_service, sequence_service, company, make_vehicle, captured_logs,
    ):
        make_vehicle("UP-1")
        import_service.import_records(
            company.id, [], [line(40), line(12), line(25)], dry_run=False,
        )
        assert sequence_service.current_value(company.id) == 40
        advanced = [r for r in captured_logs() if r["message"] == "sequence_advanced"]
        assert [r["value"] for r in advanced] == [40]

    def test_counter_never_lowered(self, import_service, sequence_service, company, make_vehicle, post_voucher):
        vehicle = make_vehicle("UP-1")
        post_voucher(vehicle, "D", "1", date(2024, 1, 1), voucher_number=500)
        import_service.import_records(company.id, [], [line(3)], dry_run=False)
        assert sequence_service.current_value(company.id) == 500

    def test_existing_vehicle_matched_case_insensitively(
        self, session, import_service, company, make_vehicle,
    ):
        vehicle = make_vehicle("up-25ab-1234")
        result = import_service.import_records(
            company.id, ["UP-25AB-1234"], [line(1, code="UP-25AB-1234")], dry_run=False,
        )
        assert result.vehicles_inserted == 0
        assert count(session, Vehicle, company.id) == 1
        owner = session.execute(select(Voucher.vehicle_id)).scalar_one()
        assert owner == vehicle.id

    def test_no_create_warns_for_missing_vehicles(self, session, import_service, company):
        result = import_service.import_records(
            company.id,
            ["UP-1"],
            [line(5, code="UP-1"), line(6, code="MH-2", day=date(2024, 3, 9))],
            dry_run=False,
            create_missing_vehicles=False,
        )
        assert result.warnings == [
            "Vehicle 'UP-1' not found (not created)",
            "Missing vehicle 'UP-1' for voucher 5 on 2024-03-05",
            "Missing vehicle 'MH-2' for voucher 6 on 2024-03-09",
        ]
        assert result.vouchers_inserted == 0
        assert count(session, Vehicle, company.id) == 0

    def test_invalid_voucher_is_an_error_and_run_continues(
        self, import_service, company, make_vehicle, captured_logs,
    ):
        make_vehicle("UP-1")
        bad = ParsedVoucherLine(9, date(2024, 3, 5), "UP-1", Decimal("0"), Side.DEBIT, source="VCH.TXT:7")
        result = import_service.import_records(company.id, [], [bad, line(10)], dry_run=False)

        assert result.vouchers_inserted == 1
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Voucher 9 (VCH.TXT:7): Invalid amount")
        assert any(r["message"] == "import_voucher_rejected" for r in captured_logs())

    def test_oversized_amounts_are_isolated(self, session, import_service, sequence_service, company, make_vehicle):
        make_vehicle("UP-1")
        result = import_service.import_records(
            company.id,
            [],
            [line(1, amount="1e30"), line(2, amount="12345678901234567890"), line(3)],
            dry_run=False,
        )

        assert result.vouchers_inserted == 1
        assert len(result.errors) == 2
        assert result.errors[0].startswith("Voucher 1: Invalid amount")
        assert all("too large" in e for e in result.errors)
        assert count(session, Voucher, company.id) == 1
        assert sequence_service.current_value(company.id) == 3

    def test_oversized_voucher_number_is_isolated(
        self, session, import_service, sequence_service, company, make_vehicle,
    ):
        make_vehicle("UP-1")
        result = import_service.import_records(
            company.id, [], [line(10**20), line(2)], dry_run=False,
        )

        assert result.vouchers_inserted == 1
        assert result.errors == [f"Voucher {10**20}: Voucher number {10**20} is too large"]
        assert count(session, Voucher, company.id) == 1
        assert sequence_service.current_value(company.id) == 2

    def test_repeated_missing_code_warns_once(self, import_service, company):
        result = import_service.import_records(
            company.id, ["UP-1", "up-1", " UP-1 "], [], create_missing_vehicles=False,
        )
        assert result.warnings == ["Vehicle 'UP-1' not found (not created)"]

    def test_inactive_vehicle_rejected(self, import_service, vehicle_service, company, make_vehicle):
        vehicle = make_vehicle("UP-1")
        vehicle_service.deactivate(vehicle.id)
        result = import_service.import_records(company.id, [], [line(1)], dry_run=True)
        assert result.vouchers_inserted == 0
        assert "inactive" in result.errors[0]

    def test_invalid_vehicle_code_in_dry_run(self, import_service, company):
        result = import_service.import_records(company.id, ["X" * 60], [], dry_run=True)
        assert result.vehicles_inserted == 0
        assert result.errors[0].startswith("Vehicle '" + "X" * 60 + "'")

    def test_dry_run_still_detects_in_run_duplicates(self, import_service, company):
        result = import_service.import_records(company.id, [], [line(1), line(1)])
        assert (result.vehicles_inserted, result.vouchers_inserted) == (1, 1)
        assert result.warnings == ["Duplicate voucher number 1 (skipped)"]

    def test_import_logs_batch_context(self, import_service, company, captured_logs):
        import_service.import_records(company.id, [], [])
        records = [r for r in captured_logs() if r["message"] in ("import_started", "import_completed")]
        assert len(records) == 2
        assert records[0]["company_id"] == str(company.id)
        assert records[0]["batch_id"] == records[1]["batch_id"]


class TestInspection:
    def test_inspect_source(self, import_service, listing_dir):
        inspection = import_service.inspect_source(listing_dir / "VCH.TXT")
        assert inspection.row_count == 3
