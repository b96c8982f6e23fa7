"""
Typed Exception Hierarchy for the Voucher Kernel.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from VoucherLedgerError:

    VoucherLedgerError (base)
    |
    +-- ValidationError
    |   +-- InvalidAmountError
    |   +-- InvalidSideError
    |   +-- InvalidPageError
    |   +-- InvalidDateRangeError
    |   +-- InvalidReportParameterError
    |   +-- InvalidMergeError
    |   +-- InvalidVehicleCodeError
    |   +-- InactiveVehicleError
    |
    +-- ConflictError
    |   +-- VoucherNumberConflictError      (retryable)
    |   +-- VehicleCodeConflictError
    |   +-- CompanyNameConflictError
    |
    +-- NotFoundError
    |   +-- CompanyNotFoundError
    |   +-- VehicleNotFoundError
    |   +-- VoucherNotFoundError
    |
    +-- TransactionFailedError
    |
    +-- DataIntegrityError
    |
    +-- ReportError
        +-- ReportCancelledError
        +-- ReportIncompleteError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                          | When Raised
-------------|-------------------------------|------------------------------------
Validation   | INVALID_AMOUNT                | Amount <= 0 or too many decimals
             | INVALID_SIDE                  | Side is not D or C
             | INVALID_PAGE                  | Page size <= 0 or negative offset
             | INVALID_DATE_RANGE            | start > end
             | INVALID_REPORT_PARAMETER      | Aging days <= 0, minimum < 0, ...
             | INVALID_MERGE                 | Same vehicle / cross-company merge
             | INVALID_VEHICLE_CODE          | Empty or over-long vehicle code
             | VEHICLE_INACTIVE              | Posting to a deactivated vehicle
-------------|-------------------------------|------------------------------------
Conflict     | VOUCHER_NUMBER_CONFLICT       | (company, number) already taken
             | VEHICLE_CODE_CONFLICT         | Code already used in the company
             | COMPANY_NAME_CONFLICT         | Company name already used
-------------|-------------------------------|------------------------------------
Not found    | COMPANY_NOT_FOUND             | Company id absent
             | VEHICLE_NOT_FOUND             | Vehicle id/code absent
             | VOUCHER_NOT_FOUND             | Voucher id absent
-------------|-------------------------------|------------------------------------
Transaction  | TRANSACTION_FAILED            | Merge / wipe rolled back
-------------|-------------------------------|------------------------------------
Integrity    | DATA_INTEGRITY                | Stored row of unexpected shape
-------------|-------------------------------|------------------------------------
Report       | REPORT_CANCELLED              | Cooperative cancellation observed
             | REPORT_INCOMPLETE             | Stream ended on a storage failure

===============================================================================
HANDLING PATTERNS
===============================================================================

1. RETRY ON NUMBER CONFLICT (allocation is advisory, storage arbitrates):

    try:
        voucher = voucher_service.create_voucher(...)
    except VoucherNumberConflictError as e:
        # Someone else committed e.voucher_number first; peek again.
        ...

2. NOT FOUND IS NOT EMPTY:

    balance_selector.balance(vehicle_id)   # Decimal("0.00") for a real vehicle
                                           # with no vouchers, VehicleNotFoundError
                                           # for an unknown id

3. TRANSACTIONAL FAILURES ARE NEVER SWALLOWED:

    except TransactionFailedError as e:
        if e.requires_manual_reconciliation:
            alert_operator(e)
"""


class VoucherLedgerError(Exception):
    """
    Base exception for all voucher kernel errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "VOUCHER_LEDGER_ERROR"


# Validation errors


class ValidationError(VoucherLedgerError):
    """Bad input rejected before any write."""

    code: str = "VALIDATION_ERROR"


class InvalidAmountError(ValidationError):
    """Voucher amount is not a positive value with allowed precision."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, amount: object, reason: str = "amount must be greater than zero"):
        self.amount = str(amount)
        self.reason = reason
        super().__init__(f"Invalid amount {amount!r}: {reason}")


class InvalidSideError(ValidationError):
    """Side is neither Debit nor Credit."""

    code: str = "INVALID_SIDE"

    def __init__(self, side: object):
        self.side = str(side)
        super().__init__(f"Invalid side {side!r}: expected 'D' or 'C'")


class InvalidPageError(ValidationError):
    """Page request with non-positive size or negative offset."""

    code: str = "INVALID_PAGE"

    def __init__(self, size: int, offset: int):
        self.size = size
        self.offset = offset
        super().__init__(
            f"Invalid page request: size={size}, offset={offset} "
            "(size must be > 0 and offset >= 0)"
        )


class InvalidDateRangeError(ValidationError):
    """Inclusive date range whose start is after its end."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, start_date: object, end_date: object):
        self.start_date = str(start_date)
        self.end_date = str(end_date)
        super().__init__(f"Invalid date range: {start_date} is after {end_date}")


class InvalidReportParameterError(ValidationError):
    """Report parameter outside its allowed domain."""

    code: str = "INVALID_REPORT_PARAMETER"

    def __init__(self, parameter: str, value: object, reason: str):
        self.parameter = parameter
        self.value = str(value)
        self.reason = reason
        super().__init__(f"Invalid {parameter}={value!r}: {reason}")


class InvalidMergeError(ValidationError):
    """Merge request that can never succeed."""

    code: str = "INVALID_MERGE"

    def __init__(self, source_vehicle_id: int, target_vehicle_id: int, reason: str):
        self.source_vehicle_id = source_vehicle_id
        self.target_vehicle_id = target_vehicle_id
        self.reason = reason
        super().__init__(
            f"Cannot merge vehicle {source_vehicle_id} into {target_vehicle_id}: {reason}"
        )


class InvalidVehicleCodeError(ValidationError):
    """Vehicle code is empty or too long."""

    code: str = "INVALID_VEHICLE_CODE"

    def __init__(self, vehicle_code: str, reason: str):
        self.vehicle_code = vehicle_code
        self.reason = reason
        super().__init__(f"Invalid vehicle code {vehicle_code!r}: {reason}")


class InactiveVehicleError(ValidationError):
    """Posting attempted against a deactivated vehicle."""

    code: str = "VEHICLE_INACTIVE"

    def __init__(self, vehicle_id: int, vehicle_code: str):
        self.vehicle_id = vehicle_id
        self.vehicle_code = vehicle_code
        super().__init__(f"Vehicle {vehicle_code} ({vehicle_id}) is inactive")


# Conflict errors


class ConflictError(VoucherLedgerError):
    """A uniqueness rule rejected the write; the caller decides what to do."""

    code: str = "CONFLICT"


class VoucherNumberConflictError(ConflictError):
    """Voucher number already taken for the company.

    Retryable: allocate a fresh number and try again.
    """

    code: str = "VOUCHER_NUMBER_CONFLICT"
    retryable: bool = True

    def __init__(self, company_id: int, voucher_number: int):
        self.company_id = company_id
        self.voucher_number = voucher_number
        super().__init__(
            f"Voucher number {voucher_number} already exists for company {company_id}"
        )


class VehicleCodeConflictError(ConflictError):
    """Vehicle code (case-insensitive) already used within the company."""

    code: str = "VEHICLE_CODE_CONFLICT"

    def __init__(self, company_id: int, vehicle_code: str):
        self.company_id = company_id
        self.vehicle_code = vehicle_code
        super().__init__(
            f"Vehicle code {vehicle_code!r} already exists for company {company_id}"
        )


class CompanyNameConflictError(ConflictError):
    """Company name already used."""

    code: str = "COMPANY_NAME_CONFLICT"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Company {name!r} already exists")


# Not-found errors


class NotFoundError(VoucherLedgerError):
    """Referenced entity does not exist (distinct from an empty result)."""

    code: str = "NOT_FOUND"


class CompanyNotFoundError(NotFoundError):
    """Company with given id was not found."""

    code: str = "COMPANY_NOT_FOUND"

    def __init__(self, company_id: int):
        self.company_id = company_id
        super().__init__(f"Company not found: {company_id}")


class VehicleNotFoundError(NotFoundError):
    """Vehicle with given id (or code) was not found."""

    code: str = "VEHICLE_NOT_FOUND"

    def __init__(self, vehicle_ref: int | str):
        self.vehicle_ref = vehicle_ref
        super().__init__(f"Vehicle not found: {vehicle_ref}")


class VoucherNotFoundError(NotFoundError):
    """Voucher with given id was not found."""

    code: str = "VOUCHER_NOT_FOUND"

    def __init__(self, voucher_id: int):
        self.voucher_id = voucher_id
        super().__init__(f"Voucher not found: {voucher_id}")


# Transactional errors


class TransactionFailedError(VoucherLedgerError):
    """
    A multi-row atomic operation failed and was rolled back.

    If the rollback itself failed, `rollback_error` is set and
    `requires_manual_reconciliation` is True.
    """

    code: str = "TRANSACTION_FAILED"

    def __init__(
        self,
        operation: str,
        original_error: BaseException,
        rollback_error: BaseException | None = None,
    ):
        self.operation = operation
        self.original_error = f"{type(original_error).__name__}: {original_error}"
        self.rollback_error = (
            f"{type(rollback_error).__name__}: {rollback_error}"
            if rollback_error is not None
            else None
        )
        self.requires_manual_reconciliation = rollback_error is not None
        message = f"{operation} failed and was rolled back: {self.original_error}"
        if rollback_error is not None:
            message = (
                f"{operation} failed: {self.original_error}; rollback also failed "
                f"({self.rollback_error}); manual reconciliation is required"
            )
        super().__init__(message)


# Data integrity


class DataIntegrityError(VoucherLedgerError):
    """A stored row does not have the shape the engine requires."""

    code: str = "DATA_INTEGRITY"

    def __init__(self, entity: str, entity_id: object, reason: str):
        self.entity = entity
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Malformed {entity} row {entity_id}: {reason}")


# Reporting


class ReportError(VoucherLedgerError):
    """Base exception for report generation errors."""

    code: str = "REPORT_ERROR"


class ReportCancelledError(ReportError):
    """Report generation observed a cancellation request."""

    code: str = "REPORT_CANCELLED"

    def __init__(self, report: str, processed: int = 0):
        self.report = report
        self.processed = processed
        super().__init__(f"{report} cancelled after {processed} rows")


class ReportIncompleteError(ReportError):
    """A streamed report terminated before its last batch."""

    code: str = "REPORT_INCOMPLETE"

    def __init__(self, report: str, processed: int, total: int, reason: str):
        self.report = report
        self.processed = processed
        self.total = total
        self.reason = reason
        super().__init__(
            f"{report} incomplete: {processed} of {total} rows processed ({reason})"
        )
