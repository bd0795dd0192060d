"""
Pytest Configuration and Shared Fixtures

In-memory clinic repository, fixed clock and deterministic ids so agent
reports can be asserted exactly.
"""

from datetime import datetime, timezone
from typing import Any, Optional
from unittest.mock import Mock

import pytest

from clinic_core.clinic_data.models import (
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
from clinic_core.clinic_data.repository import ClinicRepository
from clinic_core.config import ClinicPlatformConfig

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


class InMemoryClinicRepository(ClinicRepository):
    """Dict/list backed repository; lists come back in insertion order."""

    def __init__(self):
        self.clinics: dict[str, Clinic] = {}
        self.doctors: dict[str, Doctor] = {}
        self.services: dict[str, Service] = {}
        self.patients: list[Patient] = []
        self.appointments: list[Appointment] = []
        self.cases: list[Case] = []
        self.invoices: list[Invoice] = []
        self.inventory: dict[tuple[str, str], InventoryItem] = {}
        self.purchase_orders: list[PurchaseOrder] = []

    async def get_clinic(self, clinic_id: str) -> Optional[Clinic]:
        return self.clinics.get(clinic_id)

    async def get_all_clinics(self) -> list[Clinic]:
        return list(self.clinics.values())

    async def upsert_clinic(self, clinic: Clinic) -> Clinic:
        self.clinics[clinic.id] = clinic
        return clinic

    async def update_clinic(self, clinic_id: str, **fields: Any) -> Optional[Clinic]:
        current = self.clinics.get(clinic_id) or Clinic(id=clinic_id)
        self.clinics[clinic_id] = current.model_copy(update=fields)
        return self.clinics[clinic_id]

    async def add_doctor(self, doctor: Doctor) -> None:
        self.doctors[doctor.id] = doctor

    async def get_doctors_by_clinic(self, clinic_id: str) -> list[Doctor]:
        return [d for d in self.doctors.values() if d.clinic_id == clinic_id]

    async def add_service(self, service: Service) -> None:
        self.services[service.id] = service

    async def get_services_by_clinic(self, clinic_id: str) -> list[Service]:
        return [s for s in self.services.values() if s.clinic_id == clinic_id]

    async def add_patient(self, patient: Patient) -> None:
        self.patients.append(patient)

    async def get_patients_by_clinic(self, clinic_id: str) -> list[Patient]:
        return [p for p in self.patients if p.clinic_id == clinic_id]

    async def add_appointment(self, appointment: Appointment) -> None:
        self.appointments.append(appointment)

    async def get_appointments_by_clinic(self, clinic_id: str) -> list[Appointment]:
        return [a for a in self.appointments if a.clinic_id == clinic_id]

    async def set_appointment_status(self, clinic_id: str, appointment_id: str, status: str) -> bool:
        for index, appointment in enumerate(self.appointments):
            if appointment.clinic_id == clinic_id and appointment.id == appointment_id:
                self.appointments[index] = appointment.model_copy(update={"status": status})
                return True
        return False

    async def add_case(self, case: Case) -> None:
        self.cases.append(case)

    async def get_cases_by_clinic(self, clinic_id: str) -> list[Case]:
        return [c for c in self.cases if c.clinic_id == clinic_id]

    async def add_invoice(self, invoice: Invoice) -> None:
        self.invoices.append(invoice)

    async def get_invoice(self, invoice_id: str) -> Optional[Invoice]:
        return next((i for i in self.invoices if i.id == invoice_id), None)

    async def get_invoices_by_clinic(self, clinic_id: str) -> list[Invoice]:
        return [i for i in self.invoices if i.clinic_id == clinic_id]

    async def set_invoice_paid(self, invoice_id: str) -> bool:
        for index, invoice in enumerate(self.invoices):
            if invoice.id == invoice_id:
                self.invoices[index] = invoice.model_copy(update={"paid": True})
                return True
        return False

    async def add_inventory(
        self,
        clinic_id: str,
        sku: str,
        quantity: int,
        name: Optional[str] = None,
        unit_price: Optional[float] = None,
    ) -> InventoryItem:
        key = (clinic_id, sku)
        current = self.inventory.get(key)
        if current is None:
            item = InventoryItem(
                clinic_id=clinic_id, sku=sku, name=name, quantity=quantity, unit_price=unit_price
            )
        else:
            item = current.model_copy(
                update={
                    "quantity": current.quantity + quantity,
                    "name": name if name is not None else current.name,
                    "unit_price": unit_price if unit_price is not None else current.unit_price,
                }
            )
        self.inventory[key] = item
        return item

    async def get_inventory_by_clinic(self, clinic_id: str) -> list[InventoryItem]:
        return [i for (cid, _), i in self.inventory.items() if cid == clinic_id]

    async def decrement_inventory(self, clinic_id: str, sku: str, amount: int = 1) -> bool:
        key = (clinic_id, sku)
        current = self.inventory.get(key)
        if current is None:
            return False
        self.inventory[key] = current.model_copy(
            update={"quantity": max(0, current.quantity - amount)}
        )
        return True

    async def add_purchase_order(self, purchase_order: PurchaseOrder) -> None:
        self.purchase_orders.append(purchase_order)

    async def get_purchase_orders_by_clinic(self, clinic_id: str) -> list[PurchaseOrder]:
        return [po for po in self.purchase_orders if po.clinic_id == clinic_id]


class SequentialIdGenerator:
    """Ids like ``case-1``, ``case-2``, counted per prefix."""

    def __init__(self):
        self.counters: dict[str, int] = {}

    def new_id(self, prefix: str) -> str:
        self.counters[prefix] = self.counters.get(prefix, 0) + 1
        return f"{prefix}-{self.counters[prefix]}"


@pytest.fixture
def repository():
    return InMemoryClinicRepository()


@pytest.fixture
def clock():
    """Clock frozen at NOW."""
    return lambda: NOW


@pytest.fixture
def id_generator():
    return SequentialIdGenerator()


@pytest.fixture
def config():
    return ClinicPlatformConfig(_env_file=None, enable_scheduler=False)


@pytest.fixture
def logger():
    """Structured logger double; bind() returns the same mock."""
    log = Mock()
    log.bind = Mock(return_value=log)
    return log


@pytest.fixture
def agent_kwargs(clock, id_generator, config, logger):
    """Collaborators shared by every agent under test."""
    return {"clock": clock, "id_generator": id_generator, "config": config, "logger": logger}


@pytest.fixture
def clinic(repository):
    """A registered clinic without WhatsApp."""
    clinic = Clinic(id="clinic-1", owner_name="Dr. Rivera", email="owner@example.com", created_at=NOW)
    repository.clinics[clinic.id] = clinic
    return clinic
