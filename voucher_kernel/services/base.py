"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for every
    write-side service.  All concrete services receive a SQLAlchemy
    ``Session`` that they use via ``session.flush()`` -- never
    ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's transaction
      and never commit.  Multi-row operations (merge, company wipe) run
      inside a SAVEPOINT and roll only that savepoint back on failure.
"""

from abc import ABC

from sqlalchemy.orm import Session

from voucher_kernel.exceptions import CompanyNotFoundError, VehicleNotFoundError
from voucher_kernel.models import Company, Vehicle


class BaseService(ABC):
    """
    Abstract base class for all kernel services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide report queries; those belong in selectors/.
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
