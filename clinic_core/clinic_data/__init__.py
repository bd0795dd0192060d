"""
Clinic Data Module

Entities, the repository contract, and its MongoDB implementation.
"""

from .db_service import MongoClinicRepository
from .models import (
    Appointment,
    AppointmentStatus,
    Case,
    CaseStatus,
    Clinic,
    Doctor,
    InventoryItem,
    Invoice,
    Patient,
    PurchaseOrder,
    PurchaseOrderStatus,
    Service,
)
from .repository import ClinicRepository

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "Case",
    "CaseStatus",
    "Clinic",
    "ClinicRepository",
    "Doctor",
    "InventoryItem",
    "Invoice",
    "MongoClinicRepository",
    "Patient",
    "PurchaseOrder",
    "PurchaseOrderStatus",
    "Service",
]
