"""Tests for the CSV and XLSX source adapters."""

from datetime import date, datetime
from pathlib import Path

import openpyxl
import pytest

from voucher_ingestion.adapters import CsvSourceAdapter, SourceAdapter, XlsxSourceAdapter


def strip_source(rows):
    return [{k: v for k, v in row.items() if not k.startswith("_")} for row in rows]


class TestCsvSourceAdapter:
    """CSV adapter: read and inspect with delimiter, encoding, has_header, skip_rows."""

    def test_read_with_header_yields_dicts(self, tmp_path):
        path = tmp_path / "vouchers.csv"
        path.write_text("Voucher No,Date,Vehicle Number\n1,05-03-2024,UP-1\n2,06-03-2024,UP-2\n")
        rows = list(CsvSourceAdapter().read(path, {}))
        assert strip_source(rows) == [
            {"Voucher No": "1", "Date": "05-03-2024", "Vehicle Number": "UP-1"},
            {"Voucher No": "2", "Date": "06-03-2024", "Vehicle Number": "UP-2"},
        ]
        assert [r["_source_line"] for r in rows] == [2, 3]
        assert rows[0]["_source_file"] == "vouchers.csv"

    def test_bom_is_stripped(self, tmp_path):
        path = tmp_path / "vehicles.csv"
        path.write_bytes("\ufeffcode\nUP-1\n".encode("utf-8"))
        assert strip_source(CsvSourceAdapter().read(path, {})) == [{"code": "UP-1"}]

    def test_blank_rows_skipped(self, tmp_path):
        path = tmp_path / "vehicles.csv"
        path.write_text("code,narration\nUP-1,a\n,\n\nUP-2,b\n")
        assert [r["code"] for r in CsvSourceAdapter().read(path, {})] == ["UP-1", "UP-2"]

    def test_skip_rows_and_delimiter(self, tmp_path):
        path = tmp_path / "vouchers.csv"
        path.write_text("exported 2024\n# comment\nh1;h2\n1;2\n")
        rows = list(CsvSourceAdapter().read(path, {"skip_rows": 2, "delimiter": ";"}))
        assert strip_source(rows) == [{"h1": "1", "h2": "2"}]
        assert rows[0]["_source_line"] == 4

    def test_headerless_needs_columns(self, tmp_path):
        path = tmp_path / "vehicles.csv"
        path.write_text("UP-1,Truck\n")
        with pytest.raises(ValueError):
            list(CsvSourceAdapter().read(path, {"has_header": False}))
        rows = list(CsvSourceAdapter().read(path, {"has_header": False, "columns": ["code", "narration"]}))
        assert strip_source(rows) == [{"code": "UP-1", "narration": "Truck"}]

    def test_inspect(self, tmp_path):
        path = tmp_path / "vehicles.csv"
        path.write_text("x,y\n1,2\n3,4\n5,6\n")
        inspection = CsvSourceAdapter().inspect(path, {})
        assert inspection.row_count == 3
        assert inspection.columns == ("x", "y")
        assert len(inspection.sample_rows) == 3
        assert inspection.detected_delimiter == ","

    def test_satisfies_protocol(self):
        assert isinstance(CsvSourceAdapter(), SourceAdapter)


class TestXlsxSourceAdapter:
    @pytest.fixture
    def workbook_path(self, tmp_path) -> Path:
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Vouchers"
        ws.append(["Exported from the office PC"])
        ws.append(["V. No.", "Date", "A/C Name", "Amount", "D/C"])
        ws.append([101, datetime(2024, 3, 5), "UP-25AB-1234", 1250.5, "D"])
        ws.append([None, None, None, None, None])
        ws.append([102, datetime(2024, 3, 6), " MH12-0001 ", 40.0, "C"])
        other = wb.create_sheet("Vehicles")
        other.append(["Vehicle Number"])
        other.append(["UP-25AB-1234"])
        path = tmp_path / "vouchers.xlsx"
        wb.save(path)
        return path

    def test_reads_rows_with_skip(self, workbook_path):
        rows = list(XlsxSourceAdapter().read(workbook_path, {"skip_rows": 1}))
        assert strip_source(rows) == [
            {"V. No.": 101, "Date": date(2024, 3, 5), "A/C Name": "UP-25AB-1234", "Amount": 1250.5, "D/C": "D"},
            {"V. No.": 102, "Date": date(2024, 3, 6), "A/C Name": "MH12-0001", "Amount": 40, "D/C": "C"},
        ]
        assert rows[0]["_source_line"] == 3

    def test_sheet_by_name_and_index(self, workbook_path):
        by_name = list(XlsxSourceAdapter().read(workbook_path, {"sheet": "Vehicles"}))
        by_index = list(XlsxSourceAdapter().read(workbook_path, {"sheet": 1}))
        assert strip_source(by_name) == strip_source(by_index) == [{"Vehicle Number": "UP-25AB-1234"}]

    def test_inspect(self, workbook_path):
        inspection = XlsxSourceAdapter().inspect(workbook_path, {"skip_rows": 1})
        assert inspection.row_count == 2
        assert inspection.columns == ("V. No.", "Date", "A/C Name", "Amount", "D/C")

    def test_satisfies_protocol(self):
        assert isinstance(XlsxSourceAdapter(), SourceAdapter)
