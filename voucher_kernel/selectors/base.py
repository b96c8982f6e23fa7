"""
Module: voucher_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain/.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only access: selectors accept a Session from the caller but never
      call session.add(), session.delete(), session.commit(), or
      session.flush().
    - DTO return convention: selectors return frozen dataclasses or plain
      values, never ORM instances.
    - Not found is not empty: an unknown company or vehicle raises, a real
      one with no vouchers yields zero / empty.
"""

from abc import ABC

from sqlalchemy.orm import Session

from voucher_kernel.exceptions import CompanyNotFoundError, VehicleNotFoundError
from voucher_kernel.models import Company, Vehicle


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only
        queries, and return DTOs or computed results.
    """

    def __init__(self, session: Session):
        self.session = session

    def _require_company(self, company_id: int) -> Company:
        company = self.session.get(Company, company_id)
        if company is None:
            raise CompanyNotFoundError(company_id)
        return company

    def _require_vehicle(self, vehicle_id: int) -> Vehicle:
        vehicle = self.session.get(Vehicle, vehicle_id)
        if vehicle is None:
            raise VehicleNotFoundError(vehicle_id)
        return vehicle
