"""
Clinic Data API Router

REST API endpoints for onboarding, the doctor and service registry,
patients, appointments, inventory and billing, plus the quick booking
endpoint that runs the agent chain.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from structlog import get_logger

from ..agent_execution.chains import run_booking_chain
from ..agent_execution.dependencies import (
    AgentRuntime,
    get_clock,
    get_id_generator,
    get_repository,
)
from ..exceptions import InventoryItemNotFoundError, InvoiceNotFoundError
from ..shared_services.clock import Clock, IdGenerator
from .models import (
    Appointment,
    AppointmentStatus,
    Clinic,
    Doctor,
    Invoice,
    Patient,
    Service,
)
from .repository import ClinicRepository
from .schema import (
    AddDoctorRequest,
    AddInventoryItemRequest,
    AddPatientRequest,
    AddServiceRequest,
    BookAppointmentRequest,
    BookRequest,
    CancelAppointmentRequest,
    CreateInvoiceRequest,
    DecrementInventoryRequest,
    PayInvoiceRequest,
    SetHoursRequest,
    SetWhatsAppRequest,
    StartTrialRequest,
)

logger = get_logger()

router = APIRouter(prefix="/api", tags=["Clinic Data"])


def _dump(items: list[Any]) -> list[dict[str, Any]]:
    return [item.model_dump(mode="json") for item in items]


# Onboarding


@router.post("/start-trial", summary="Start clinic trial")
async def start_trial(
    request: StartTrialRequest,
    repository: ClinicRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
) -> dict[str, Any]:
    """Create or replace a clinic record."""
    logger.info("starting_trial", clinic_id=request.clinic_id)

    clinic = await repository.upsert_clinic(
        Clinic(
            id=request.clinic_id,
            owner_user_id=request.owner_user_id,
            owner_name=request.owner_name,
            email=request.email,
            active=True,
            created_at=clock(),
        )
    )
    return {"ok": True, "clinic": clinic.model_dump(mode="json")}


@router.post("/set-whatsapp", summary="Set WhatsApp number")
async def set_whatsapp(
    request: SetWhatsAppRequest,
    repository: ClinicRepository = Depends(get_repository),
) -> dict[str, Any]:
    await repository.update_clinic(request.clinic_id, whatsapp=request.number)
    return {"ok": True, "whatsapp": request.number}


@router.post("/set-hours", summary="Set working hours")
async def set_hours(
    request: SetHoursRequest,
    repository: ClinicRepository = Depends(get_repository),
) -> dict[str, Any]:
    await repository.update_clinic(request.clinic_id, working_hours=request.hours)
    return {"ok": True}


# Doctors and services


@router.post("/add-doctor", summary="Register doctor")
async def add_doctor(
    request: AddDoctorRequest,
    repository: ClinicRepository = Depends(get_repository),
) -> dict[str, Any]:
    """Insert a doctor or replace the one with the same id."""
    doctor = request.doctor
    await repository.add_doctor(
        Doctor(
            id=doctor.id,
            clinic_id=request.clinic_id,
            name=doctor.name or "",
            meta=doctor.meta or {},
        )
    )
    doctors = await repository.get_doctors_by_clinic(request.clinic_id)
    return {"ok": True, "doctors": _dump(doctors)}


@router.post("/add-service", summary="Register service")
async def add_service(
    request: AddServiceRequest,
    repository: ClinicRepository = Depends(get_repository),
) -> dict[str, Any]:
    """Insert a service or replace the one with the same id."""
    service = request.service
    await repository.add_service(
        Service(
            id=service.id,
            clinic_id=request.clinic_id,
            name=service.name or "",
            price=service.price or 0,
        )
    )
    services = await repository.get_services_by_clinic(request.clinic_id)
    return {"ok": True, "services": _dump(services)}


# Patients


@router.post("/add-patient", summary="Register patient")
async def add_patient(
    request: AddPatientRequest,
    repository: ClinicRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
    id_generator: IdGenerator = Depends(get_id_generator),
) -> dict[str, Any]:
    await repository.add_patient(
        Patient(
            id=id_generator.new_id("pat"),
            clinic_id=request.clinic_id,
            name=request.patient.name,
            phone=request.patient.phone,
            email=request.patient.email,
            created_at=clock(),
        )
    )
    patients = await repository.get_patients_by_clinic(request.clinic_id)
    return {"ok": True, "patients": _dump(patients)}


@router.get("/patients/{clinic_id}", summary="List patients")
async def list_patients(
    clinic_id: str,
    repository: ClinicRepository = Depends(get_repository),
) -> dict[str, Any]:
    patients = await repository.get_patients_by_clinic(clinic_id)
    return {"ok": True, "patients": _dump(patients)}


# Appointments


@router.post("/book-appointment", summary="Book appointment")
async def book_appointment(
    request: BookAppointmentRequest,
    repository: ClinicRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
    id_generator: IdGenerator = Depends(get_id_generator),
) -> dict[str, Any]:
    """Store an appointment without running any agent."""
    appointment = request.appointment
    await repository.add_appointment(
        Appointment(
            id=id_generator.new_id("appt"),
            clinic_id=request.clinic_id,
            patient_name=appointment.patient_name,
            phone=appointment.phone,
            email=appointment.email,
            date=appointment.date,
            time=appointment.time,
            status=AppointmentStatus.BOOKED.value,
            created_at=clock(),
        )
    )
    appointments = await repository.get_appointments_by_clinic(request.clinic_id)
    return {"ok": True, "appointments": _dump(appointments)}


@router.get("/appointments/{clinic_id}", summary="List appointments")
async def list_appointments(
    clinic_id: str,
    repository: ClinicRepository = Depends(get_repository),
) -> dict[str, Any]:
    appointments = await repository.get_appointments_by_clinic(clinic_id)
    return {"ok": True, "appointments": _dump(appointments)}


@router.post("/cancel-appointment", summary="Cancel appointment")
async def cancel_appointment(
    request: CancelAppointmentRequest,
    repository: ClinicRepository = Depends(get_repository),
) -> dict[str, Any]:
    updated = await repository.set_appointment_status(
        request.clinic_id, request.appointment_id, AppointmentStatus.CANCELLED.value
    )
    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Appointment '{request.appointment_id}' not found",
        )

    logger.info(
        "appointment_cancelled",
        clinic_id=request.clinic_id,
        appointment_id=request.appointment_id,
    )
    return {"ok": True}


# Inventory


@router.post("/add-inventory-item", summary="Add inventory stock")
async def add_inventory_item(
    request: AddInventoryItemRequest,
    repository: ClinicRepository = Depends(get_repository),
) -> dict[str, Any]:
    """Insert an item or add to the quantity of an existing sku."""
    item = request.item
    await repository.add_inventory(
        request.clinic_id,
        item.sku,
        item.qty,
        name=item.name,
        unit_price=item.unit_price,
    )
    inventory = await repository.get_inventory_by_clinic(request.clinic_id)
    return {"ok": True, "inventory": _dump(inventory)}


@router.post("/add-inventory", summary="Add inventory stock (legacy)")
async def add_inventory(
    request: AddInventoryItemRequest,
    repository: ClinicRepository = Depends(get_repository),
) -> dict[str, Any]:
    """Alias of /add-inventory-item that only acknowledges."""
    item = request.item
    await repository.add_inventory(
        request.clinic_id,
        item.sku,
        item.qty,
        name=item.name,
        unit_price=item.unit_price,
    )
    return {"ok": True}


@router.get("/inventory/{clinic_id}", summary="List inventory")
async def list_inventory(
    clinic_id: str,
    repository: ClinicRepository = Depends(get_repository),
) -> dict[str, Any]:
    inventory = await repository.get_inventory_by_clinic(clinic_id)
    return {"ok": True, "inventory": _dump(inventory)}


@router.post("/decrement-inventory", summary="Use inventory stock")
async def decrement_inventory(
    request: DecrementInventoryRequest,
    repository: ClinicRepository = Depends(get_repository),
) -> dict[str, Any]:
    found = await repository.decrement_inventory(request.clinic_id, request.sku, request.amount)
    if not found:
        raise InventoryItemNotFoundError(request.clinic_id, request.sku)
    return {"ok": True}


@router.get("/purchase-orders/{clinic_id}", summary="List purchase orders")
async def list_purchase_orders(
    clinic_id: str,
    repository: ClinicRepository = Depends(get_repository),
) -> dict[str, Any]:
    """Purchase orders raised by the inventory agent."""
    purchase_orders = await repository.get_purchase_orders_by_clinic(clinic_id)
    return {"ok": True, "purchaseOrders": _dump(purchase_orders)}


# Billing


@router.post("/invoice", summary="Create invoice")
async def create_invoice(
    request: CreateInvoiceRequest,
    repository: ClinicRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
    id_generator: IdGenerator = Depends(get_id_generator),
) -> dict[str, Any]:
    invoice = Invoice(
        id=id_generator.new_id("inv"),
        clinic_id=request.clinic_id,
        case_id=request.case_id,
        amount=request.amount,
        paid=False,
        created_at=clock(),
    )
    await repository.add_invoice(invoice)

    logger.info("invoice_created", clinic_id=request.clinic_id, invoice_id=invoice.id)
    return {"ok": True, "invoice": invoice.model_dump(mode="json")}


@router.post("/pay", summary="Mark invoice paid")
async def pay_invoice(
    request: PayInvoiceRequest,
    repository: ClinicRepository = Depends(get_repository),
) -> dict[str, Any]:
    invoice = await repository.get_invoice(request.invoice_id)
    if invoice is None:
        raise InvoiceNotFoundError(request.invoice_id)

    await repository.set_invoice_paid(request.invoice_id)

    logger.info("invoice_paid", clinic_id=invoice.clinic_id, invoice_id=invoice.id)
    return {"ok": True, "invoice": invoice.model_copy(update={"paid": True}).model_dump(mode="json")}


# Reporting


@router.get("/dashboard/{clinic_id}", summary="Clinic dashboard")
async def dashboard(
    clinic_id: str,
    repository: ClinicRepository = Depends(get_repository),
) -> dict[str, Any]:
    """Clinic record with its appointments, cases and invoices."""
    clinic = await repository.get_clinic(clinic_id)
    appointments = await repository.get_appointments_by_clinic(clinic_id)
    cases = await repository.get_cases_by_clinic(clinic_id)
    invoices = await repository.get_invoices_by_clinic(clinic_id)

    return {
        "clinic": clinic.model_dump(mode="json") if clinic else {},
        "appointments": _dump(appointments),
        "cases": _dump(cases),
        "invoices": _dump(invoices),
    }


@router.get("/reports/monthly/{clinic_id}", summary="Monthly revenue report")
async def monthly_report(
    clinic_id: str,
    repository: ClinicRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
) -> dict[str, Any]:
    """Invoiced total across all invoices of the clinic."""
    invoices = await repository.get_invoices_by_clinic(clinic_id)
    return {
        "month": clock().isoformat(),
        "revenue": sum(i.amount or 0 for i in invoices),
        "invoicesCount": len(invoices),
    }


# Quick booking


@router.post("/book", summary="Book and run agents")
async def book(
    request: BookRequest,
    runtime: AgentRuntime = Depends(),
) -> dict[str, Any]:
    """
    Store a booking made now, then run the post-booking agent chain.

    Agent failures are reported per agent and never fail the booking.
    """
    repository, clock = runtime.repository, runtime.clock
    appointment_id = runtime.id_generator.new_id("appt")
    patient_name = request.patient.get("name")

    await repository.add_appointment(
        Appointment(
            id=appointment_id,
            clinic_id=request.clinic_id,
            patient_name=patient_name,
            phone=request.patient.get("phone"),
            date=clock().isoformat(),
            status=AppointmentStatus.BOOKED.value,
            patient=request.patient,
            created_at=clock(),
        )
    )
    logger.info("appointment_booked", clinic_id=request.clinic_id, appointment_id=appointment_id)

    results = await run_booking_chain(
        request.clinic_id,
        repository,
        runtime.audit_service,
        config=runtime.config,
        clock=clock,
        id_generator=runtime.id_generator,
    )

    clinic = await repository.get_clinic(request.clinic_id)
    if clinic and clinic.whatsapp:
        logger.info(
            "whatsapp_confirmation_logged",
            clinic_id=request.clinic_id,
            whatsapp=clinic.whatsapp,
            message=f"Appointment confirmed for {patient_name}",
        )

    return {
        "ok": True,
        "appt": {"id": appointment_id},
        "agents": {agent_type: result.status.value for agent_type, result in results.items()},
    }
