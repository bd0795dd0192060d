"""
Clinic Data API Schemas

Request bodies for the clinic data endpoints. Field names are camelCase on
the wire.
"""

from typing import Any, Optional

from pydantic import EmailStr, Field

from ..agent_orchestration.base_agent import CamelModel


class ClinicRequest(CamelModel):
    """Body carrying only the clinic id."""

    clinic_id: str = Field(..., min_length=1)


class StartTrialRequest(ClinicRequest):
    """Onboard a clinic."""

    email: EmailStr
    owner_name: Optional[str] = None
    owner_user_id: Optional[str] = None


class SetWhatsAppRequest(ClinicRequest):
    number: str = Field(..., min_length=1, description="WhatsApp number for notifications")


class SetHoursRequest(ClinicRequest):
    hours: Any = Field(..., description="Opening hours, stored as given")


class DoctorInput(CamelModel):
    id: str = Field(..., min_length=1)
    name: Optional[str] = None
    meta: Optional[Any] = None


class AddDoctorRequest(ClinicRequest):
    doctor: DoctorInput


class ServiceInput(CamelModel):
    id: str = Field(..., min_length=1)
    name: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)


class AddServiceRequest(ClinicRequest):
    service: ServiceInput


class PatientInput(CamelModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    email: Optional[str] = None


class AddPatientRequest(ClinicRequest):
    patient: PatientInput


class AppointmentInput(CamelModel):
    patient_name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    date: str = Field(..., min_length=1, description="ISO date or datetime")
    time: Optional[str] = Field(default=None, description="HH:MM")
    email: Optional[str] = None


class BookAppointmentRequest(ClinicRequest):
    appointment: AppointmentInput


class CancelAppointmentRequest(ClinicRequest):
    appointment_id: str = Field(..., min_length=1)


class InventoryItemInput(CamelModel):
    sku: str = Field(..., min_length=1)
    name: Optional[str] = None
    qty: int = Field(default=0, ge=0)
    unit_price: Optional[float] = Field(default=None, ge=0)


class AddInventoryItemRequest(ClinicRequest):
    item: InventoryItemInput


class DecrementInventoryRequest(ClinicRequest):
    sku: str = Field(..., min_length=1)
    amount: int = Field(default=1, ge=1)


class CreateInvoiceRequest(ClinicRequest):
    case_id: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)


class PayInvoiceRequest(CamelModel):
    invoice_id: str = Field(..., min_length=1)


class BookRequest(ClinicRequest):
    """Quick booking that triggers the agent chain."""

    patient: dict[str, Any] = Field(..., description="Patient reference, usually name and phone")
