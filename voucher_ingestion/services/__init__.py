"""Ingestion services."""

from voucher_ingestion.services.import_service import ImportService

__all__ = ["ImportService"]
