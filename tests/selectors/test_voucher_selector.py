"""Tests for VoucherSelector reads used by reports and the importer."""

from datetime import date
from decimal import Decimal

import pytest

from voucher_kernel.exceptions import VoucherNotFoundError
from voucher_kernel.selectors.voucher_selector import VoucherSelector


@pytest.fixture
def selector(session):
    return VoucherSelector(session)


class TestLookups:
    def test_get_and_find_by_number(self, selector, company, make_vehicle, post_voucher):
        record = post_voucher(make_vehicle("UP-1"), "D", "12.34", date(2024, 1, 1))
        assert selector.get(record.id) == record
        assert selector.find_by_number(company.id, record.voucher_number) == record
        assert selector.find_by_number(company.id, 999) is None

    def test_get_unknown(self, selector, engine):
        with pytest.raises(VoucherNotFoundError):
            selector.get(1)

    def test_existing_numbers_are_per_company(
        self, selector, company, make_company, make_vehicle, post_voucher,
    ):
        other = make_company()
        post_voucher(make_vehicle("UP-1"), "D", "1", date(2024, 1, 1), voucher_number=7)
        post_voucher(make_vehicle("UP-1", company_id=other.id), "D", "1", date(2024, 1, 1), voucher_number=8)
        assert selector.existing_numbers(company.id) == {7}


class TestDayBookSource:
    def test_ordered_by_date_then_number(self, selector, company, make_vehicle, post_voucher):
        vehicle = make_vehicle("UP-1")
        post_voucher(vehicle, "D", "1", date(2024, 1, 2), voucher_number=3)
        post_voucher(vehicle, "D", "1", date(2024, 1, 1), voucher_number=9)
        post_voucher(vehicle, "D", "1", date(2024, 1, 2), voucher_number=1)

        rows = selector.day_book_page(company.id, date(2024, 1, 1), date(2024, 1, 31), 10, 0)
        assert [r.voucher.voucher_number for r in rows] == [9, 1, 3]
        assert {r.vehicle_code for r in rows} == {"UP-1"}

    def test_paging_and_range(self, selector, company, make_vehicle, post_voucher):
        vehicle = make_vehicle("UP-1")
        for day in range(1, 6):
            post_voucher(vehicle, "D", "1", date(2024, 1, day))
        page = selector.day_book_page(company.id, date(2024, 1, 2), date(2024, 1, 4), 2, 1)
        assert [r.voucher.voucher_date for r in page] == [date(2024, 1, 3), date(2024, 1, 4)]
        assert selector.count_in_range(company.id, date(2024, 1, 2), date(2024, 1, 4)) == 3

    def test_daily_totals_skip_empty_days(self, selector, company, make_vehicle, post_voucher):
        vehicle = make_vehicle("UP-1")
        post_voucher(vehicle, "D", "100", date(2024, 3, 14))
        post_voucher(vehicle, "C", "30", date(2024, 3, 14))
        post_voucher(vehicle, "C", "5", date(2024, 3, 16))

        totals = selector.daily_totals(company.id, date(2024, 3, 14), date(2024, 3, 16))

        assert [t.day for t in totals] == [date(2024, 3, 14), date(2024, 3, 16)]
        assert totals[0].total_debits == Decimal("100.00")
        assert totals[0].total_credits == Decimal("30.00")
        assert totals[0].voucher_count == 2
        assert totals[1].total_debits == Decimal("0.00")


class TestVehicleActivity:
    def test_last_date_and_last_credit(self, selector, company, make_vehicle, post_voucher):
        vehicle = make_vehicle("UP-1")
        idle = make_vehicle("IDLE-1")
        post_voucher(vehicle, "C", "100", date(2024, 1, 1))
        post_voucher(vehicle, "C", "250", date(2024, 2, 1))
        post_voucher(vehicle, "D", "900", date(2024, 3, 1))

        activity = selector.vehicle_activity(company.id)

        assert idle.id not in activity
        assert activity[vehicle.id].last_voucher_date == date(2024, 3, 1)
        assert activity[vehicle.id].last_credit_minor == 25000

    def test_no_credit_means_zero(self, selector, company, make_vehicle, post_voucher):
        vehicle = make_vehicle("UP-1")
        post_voucher(vehicle, "D", "50", date(2024, 1, 1))
        assert selector.vehicle_activity(company.id)[vehicle.id].last_credit_minor == 0

    def test_iter_vouchers_filters(self, selector, company, make_vehicle, post_voucher):
        first = make_vehicle("UP-1")
        second = make_vehicle("UP-2")
        post_voucher(first, "D", "1", date(2024, 1, 5))
        post_voucher(second, "D", "2", date(2024, 1, 1))
        post_voucher(first, "C", "3", date(2024, 1, 1))

        records = list(selector.iter_vouchers(company.id, vehicle_id=first.id))
        assert [r.voucher_date for r in records] == [date(2024, 1, 1), date(2024, 1, 5)]
        assert len(list(selector.iter_vouchers(company.id, end=date(2024, 1, 1)))) == 2
