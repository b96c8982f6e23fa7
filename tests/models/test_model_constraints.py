"""
Storage-level constraints on companies, vehicles and vouchers.

The services validate first; these tests make sure the schema would still
refuse bad rows written around them.
"""

from datetime import date

import pytest
from sqlalchemy.exc import IntegrityError

from voucher_kernel.models import Company, Vehicle, Voucher, normalize_code


def _voucher(company, vehicle, number, amount_minor=100, side="D"):
    return Voucher(
        company_id=company.id,
        vehicle_id=vehicle.id,
        voucher_number=number,
        voucher_date=date(2024, 3, 1),
        amount_minor=amount_minor,
        side=side,
        narration="",
    )


class TestNormalizeCode:
    def test_case_and_whitespace_insensitive(self):
        assert normalize_code("  up-25c-1234 ") == "UP-25C-1234"


class TestVoucherConstraints:
    def test_duplicate_number_rejected(self, session, company, make_vehicle):
        vehicle = make_vehicle("UP-25C-1234")
        session.add(_voucher(company, vehicle, 1))
        session.flush()
        session.add(_voucher(company, vehicle, 1))
        with pytest.raises(IntegrityError):
            session.flush()

    def test_non_positive_amount_rejected(self, session, company, make_vehicle):
        vehicle = make_vehicle("UP-25C-1234")
        session.add(_voucher(company, vehicle, 1, amount_minor=0))
        with pytest.raises(IntegrityError):
            session.flush()

    def test_side_outside_d_c_rejected(self, session, company, make_vehicle):
        vehicle = make_vehicle("UP-25C-1234")
        session.add(_voucher(company, vehicle, 1, side="X"))
        with pytest.raises(IntegrityError):
            session.flush()

    def test_same_number_allowed_in_other_company(self, session, make_company, vehicle_service):
        first = make_company("First")
        second = make_company("Second")
        v1 = vehicle_service.create_vehicle(first.id, "AAA-1")
        v2 = vehicle_service.create_vehicle(second.id, "AAA-1")
        session.add_all([_voucher(first, v1, 5), _voucher(second, v2, 5)])
        session.flush()

    def test_foreign_keys_enforced(self, session, company):
        session.add(
            Voucher(
                company_id=company.id,
                vehicle_id=424242,
                voucher_number=1,
                voucher_date=date(2024, 3, 1),
                amount_minor=100,
                side="D",
            )
        )
        with pytest.raises(IntegrityError):
            session.flush()


class TestVehicleConstraints:
    def test_code_key_unique_per_company(self, session, company):
        session.add(Vehicle(company_id=company.id, code="ab-1", code_key="AB-1", narration=""))
        session.flush()
        session.add(Vehicle(company_id=company.id, code="AB-1", code_key="AB-1", narration=""))
        with pytest.raises(IntegrityError):
            session.flush()


class TestCompanyConstraints:
    def test_counter_cannot_go_negative(self, session):
        session.add(Company(name="Negative", last_voucher_number=-1))
        with pytest.raises(IntegrityError):
            session.flush()
