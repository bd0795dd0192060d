"""
Clinic Data Models

Entities stored per clinic. Every entity except Clinic is scoped by clinic_id.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from ..shared_services.clock import parse_timestamp, utc_now


class AppointmentStatus(str, Enum):
    """Appointment lifecycle status."""

    BOOKED = "booked"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class CaseStatus(str, Enum):
    """Treatment case status."""

    CREATED = "created"
    READY = "ready"
    COMPLETED = "completed"


class PurchaseOrderStatus(str, Enum):
    """Purchase order status."""

    CREATED = "created"


class Clinic(BaseModel):
    """A tenant of the platform."""

    id: str = Field(..., description="Unique clinic identifier")
    owner_user_id: Optional[str] = Field(default=None)
    owner_name: Optional[str] = Field(default=None)
    email: Optional[str] = Field(default=None)
    active: bool = Field(default=True)
    whatsapp: Optional[str] = Field(default=None, description="WhatsApp number for notifications")
    working_hours: Optional[Any] = Field(default=None, description="Opening hours, free-form")
    created_at: datetime = Field(default_factory=utc_now)


class Doctor(BaseModel):
    """Practitioner listed in a clinic's registry."""

    id: str
    clinic_id: str
    name: str = Field(default="")
    meta: Any = Field(default_factory=dict, description="Free-form details such as specialty")


class Service(BaseModel):
    """Billable service offered by a clinic."""

    id: str
    clinic_id: str
    name: str = Field(default="")
    price: float = Field(default=0, ge=0)


class Patient(BaseModel):
    """Patient registered at a clinic."""

    id: str
    clinic_id: str
    name: str
    phone: str
    email: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)


class Appointment(BaseModel):
    """
    Booked appointment.

    ``date`` and ``time`` are kept as entered; ``scheduled_at`` combines them.
    """

    id: str
    clinic_id: str
    patient_name: Optional[str] = Field(default=None)
    phone: Optional[str] = Field(default=None)
    email: Optional[str] = Field(default=None)
    date: Optional[str] = Field(default=None, description="ISO date or datetime")
    time: Optional[str] = Field(default=None, description="HH:MM, ignored when date has a time part")
    status: str = Field(default=AppointmentStatus.BOOKED.value)
    patient: Optional[Any] = Field(default=None, description="Patient reference")
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def scheduled_at(self) -> Optional[datetime]:
        """
        Scheduled time in UTC, or None when the date cannot be parsed.

        A time that does not combine with the date is ignored and the date
        alone is used.
        """
        if not self.date:
            return None
        value = self.date.strip()
        if "T" not in value and self.time:
            combined = parse_timestamp(f"{value}T{self.time.strip()}")
            if combined is not None:
                return combined
        return parse_timestamp(value)


class Case(BaseModel):
    """Treatment record derived from an appointment."""

    id: str
    clinic_id: str
    appointment_id: Optional[str] = Field(default=None)
    patient: Optional[Any] = Field(default=None)
    status: str = Field(default=CaseStatus.READY.value)
    created_at: datetime = Field(default_factory=utc_now)


class Invoice(BaseModel):
    """Invoice raised for a case."""

    id: str
    clinic_id: str
    case_id: Optional[str] = Field(default=None)
    amount: Optional[float] = Field(default=0.0)
    paid: bool = Field(default=False)
    created_at: Optional[datetime] = Field(default_factory=utc_now)


class InventoryItem(BaseModel):
    """Stock line, unique per (clinic_id, sku)."""

    clinic_id: str
    sku: str
    name: Optional[str] = Field(default=None)
    quantity: int = Field(default=0, ge=0)
    unit_price: Optional[float] = Field(default=None)


class PurchaseOrder(BaseModel):
    """Reorder created by the inventory agent."""

    id: str
    clinic_id: str
    sku: str
    quantity: int
    status: str = Field(default=PurchaseOrderStatus.CREATED.value)
    created_at: datetime = Field(default_factory=utc_now)
