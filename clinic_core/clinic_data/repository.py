"""
Clinic Repository Interface

CRUD contract the agents and HTTP layer depend on. Implementations may raise
RepositoryError (or any exception) on failure; agents let read failures
propagate.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from .models import (
    Appointment,
    Case,
    Clinic,
    Doctor,
    InventoryItem,
    Invoice,
    Patient,
    PurchaseOrder,
    Service,
)


class ClinicRepository(ABC):
    """Async repository over one clinic database."""

    # Clinics

    @abstractmethod
    async def get_clinic(self, clinic_id: str) -> Optional[Clinic]:
        raise NotImplementedError

    @abstractmethod
    async def get_all_clinics(self) -> list[Clinic]:
        raise NotImplementedError

    @abstractmethod
    async def upsert_clinic(self, clinic: Clinic) -> Clinic:
        raise NotImplementedError

    @abstractmethod
    async def update_clinic(self, clinic_id: str, **fields: Any) -> Optional[Clinic]:
        """Set the given fields, creating the clinic when it does not exist."""
        raise NotImplementedError

    # Doctors and services

    @abstractmethod
    async def add_doctor(self, doctor: Doctor) -> None:
        """Insert a doctor, replacing any doctor with the same id."""
        raise NotImplementedError

    @abstractmethod
    async def get_doctors_by_clinic(self, clinic_id: str) -> list[Doctor]:
        raise NotImplementedError

    @abstractmethod
    async def add_service(self, service: Service) -> None:
        """Insert a service, replacing any service with the same id."""
        raise NotImplementedError

    @abstractmethod
    async def get_services_by_clinic(self, clinic_id: str) -> list[Service]:
        raise NotImplementedError

    # Patients

    @abstractmethod
    async def add_patient(self, patient: Patient) -> None:
        raise NotImplementedError

    @abstractmethod
    async def get_patients_by_clinic(self, clinic_id: str) -> list[Patient]:
        """Patients of a clinic, newest first."""
        raise NotImplementedError

    # Appointments

    @abstractmethod
    async def add_appointment(self, appointment: Appointment) -> None:
        raise NotImplementedError

    @abstractmethod
    async def get_appointments_by_clinic(self, clinic_id: str) -> list[Appointment]:
        raise NotImplementedError

    @abstractmethod
    async def set_appointment_status(
        self, clinic_id: str, appointment_id: str, status: str
    ) -> bool:
        raise NotImplementedError

    # Cases

    @abstractmethod
    async def add_case(self, case: Case) -> None:
        raise NotImplementedError

    @abstractmethod
    async def get_cases_by_clinic(self, clinic_id: str) -> list[Case]:
        raise NotImplementedError

    # Invoices

    @abstractmethod
    async def add_invoice(self, invoice: Invoice) -> None:
        raise NotImplementedError

    @abstractmethod
    async def get_invoice(self, invoice_id: str) -> Optional[Invoice]:
        raise NotImplementedError

    @abstractmethod
    async def get_invoices_by_clinic(self, clinic_id: str) -> list[Invoice]:
        raise NotImplementedError

    @abstractmethod
    async def set_invoice_paid(self, invoice_id: str) -> bool:
        raise NotImplementedError

    # Inventory

    @abstractmethod
    async def add_inventory(
        self,
        clinic_id: str,
        sku: str,
        quantity: int,
        name: Optional[str] = None,
        unit_price: Optional[float] = None,
    ) -> InventoryItem:
        """Insert a stock line, or increase quantity of an existing (clinic_id, sku)."""
        raise NotImplementedError

    @abstractmethod
    async def get_inventory_by_clinic(self, clinic_id: str) -> list[InventoryItem]:
        raise NotImplementedError

    @abstractmethod
    async def decrement_inventory(self, clinic_id: str, sku: str, amount: int = 1) -> bool:
        """Decrease quantity, never below zero. False when the item does not exist."""
        raise NotImplementedError

    # Purchase orders

    @abstractmethod
    async def add_purchase_order(self, purchase_order: PurchaseOrder) -> None:
        raise NotImplementedError

    @abstractmethod
    async def get_purchase_orders_by_clinic(self, clinic_id: str) -> list[PurchaseOrder]:
        raise NotImplementedError
