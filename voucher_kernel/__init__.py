"""
Voucher Kernel

A per-vehicle running-balance ledger for voucher bookkeeping:
- Advisory voucher-number allocation with a storage-side SetIfGreater
- Exact decimal balances derived from vouchers (never stored)
- Paginated vehicle ledgers with page-independent running balances
- Atomic vehicle merge and company data wipe
"""

__version__ = "0.1.0"
