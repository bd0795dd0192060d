"""
Platform Exceptions

Errors raised by the repository and surfaced by the HTTP layer.
"""


class ClinicPlatformError(Exception):
    """Base class for platform errors."""

    status_code = 500


class RepositoryError(ClinicPlatformError):
    """Raised when the clinic database cannot serve a read or write."""


class InventoryItemNotFoundError(ClinicPlatformError):
    """Raised when a (clinic, sku) pair has no inventory row."""

    status_code = 404

    def __init__(self, clinic_id: str, sku: str):
        super().__init__(f"Inventory item {sku} not found for clinic {clinic_id}")
        self.clinic_id = clinic_id
        self.sku = sku


class InvoiceNotFoundError(ClinicPlatformError):
    """Raised when an invoice id does not exist."""

    status_code = 404

    def __init__(self, invoice_id: str):
        super().__init__(f"Invoice {invoice_id} not found")
        self.invoice_id = invoice_id
