"""
Clinic Database Service

MongoDB implementation of the clinic repository. One collection per entity,
every document keyed by clinic_id.
"""

from functools import wraps
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, IndexModel
from pymongo.errors import PyMongoError
from structlog import get_logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config import get_config
from ..exceptions import RepositoryError
from ..shared_services.clock import utc_now
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
from .repository import ClinicRepository

logger = get_logger()

# Projection that hides Mongo's internal key from model construction
_NO_ID = {"_id": 0}


def _wrap_errors(func):
    """Re-raise driver errors as RepositoryError."""

    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except PyMongoError as e:
            logger.error("repository_operation_failed", operation=func.__name__, error=str(e))
            raise RepositoryError(f"{func.__name__} failed: {e}") from e

    return wrapper


class MongoClinicRepository(ClinicRepository):
    """
    Clinic repository backed by MongoDB (motor).

    Documents are the pydantic models' ``model_dump()``.
    """

    def __init__(self, db: Optional[AsyncIOMotorDatabase] = None):
        """
        Initialize clinic database service.

        Args:
            db: Optional database instance. If not provided, creates new connection.
        """
        config = get_config()
        if db is None:
            client = AsyncIOMotorClient(config.mongo_db_url, tz_aware=True)
            self.db = client[config.mongo_db_name]
        else:
            self.db = db

        self.clinics = self.db["clinics"]
        self.doctors = self.db["doctors"]
        self.services = self.db["services"]
        self.patients = self.db["patients"]
        self.appointments = self.db["appointments"]
        self.cases = self.db["cases"]
        self.invoices = self.db["invoices"]
        self.inventory = self.db["inventory"]
        self.purchase_orders = self.db["purchase_orders"]

    async def wait_until_available(self, attempts: Optional[int] = None) -> None:
        """
        Ping the server, retrying with exponential backoff.

        Args:
            attempts: Maximum attempts (uses config default if not provided)
        """
        attempts = attempts or get_config().repository_connect_attempts

        @retry(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(PyMongoError),
            reraise=True,
        )
        async def _ping():
            await self.db.command("ping")

        await _ping()
        logger.info("clinic_database_available", database=self.db.name)

    async def ensure_indexes(self) -> None:
        """Create necessary indexes for clinic collections."""
        await self.clinics.create_indexes([IndexModel([("id", ASCENDING)], unique=True)])
        for collection in (self.doctors, self.services):
            await collection.create_indexes(
                [
                    IndexModel([("id", ASCENDING)], unique=True),
                    IndexModel([("clinic_id", ASCENDING)]),
                ]
            )
        await self.patients.create_indexes(
            [
                IndexModel([("id", ASCENDING)], unique=True),
                IndexModel([("clinic_id", ASCENDING), ("created_at", DESCENDING)]),
            ]
        )
        await self.appointments.create_indexes(
            [
                IndexModel([("id", ASCENDING)], unique=True),
                IndexModel([("clinic_id", ASCENDING), ("date", DESCENDING)]),
            ]
        )
        await self.cases.create_indexes(
            [
                IndexModel([("id", ASCENDING)], unique=True),
                IndexModel([("clinic_id", ASCENDING), ("appointment_id", ASCENDING)]),
            ]
        )
        await self.invoices.create_indexes(
            [
                IndexModel([("id", ASCENDING)], unique=True),
                IndexModel([("clinic_id", ASCENDING), ("created_at", DESCENDING)]),
            ]
        )
        await self.inventory.create_indexes(
            [IndexModel([("clinic_id", ASCENDING), ("sku", ASCENDING)], unique=True)]
        )
        await self.purchase_orders.create_indexes(
            [
                IndexModel([("id", ASCENDING)], unique=True),
                IndexModel([("clinic_id", ASCENDING), ("created_at", DESCENDING)]),
            ]
        )

    # Clinics

    @_wrap_errors
    async def get_clinic(self, clinic_id: str) -> Optional[Clinic]:
        clinic_dict = await self.clinics.find_one({"id": clinic_id}, _NO_ID)
        if clinic_dict:
            return Clinic(**clinic_dict)
        return None

    @_wrap_errors
    async def get_all_clinics(self) -> list[Clinic]:
        cursor = self.clinics.find({}, _NO_ID).sort("created_at", ASCENDING)
        return [Clinic(**doc) async for doc in cursor]

    @_wrap_errors
    async def upsert_clinic(self, clinic: Clinic) -> Clinic:
        await self.clinics.replace_one({"id": clinic.id}, clinic.model_dump(), upsert=True)
        return clinic

    @_wrap_errors
    async def update_clinic(self, clinic_id: str, **fields: Any) -> Optional[Clinic]:
        defaults = Clinic(id=clinic_id).model_dump()
        on_insert = {k: v for k, v in defaults.items() if k not in fields and k != "id"}

        result = await self.clinics.find_one_and_update(
            {"id": clinic_id},
            {"$set": fields, "$setOnInsert": on_insert},
            upsert=True,
            return_document=True,
            projection=_NO_ID,
        )
        if result:
            return Clinic(**result)
        return None

    # Doctors and services

    @_wrap_errors
    async def add_doctor(self, doctor: Doctor) -> None:
        await self.doctors.replace_one({"id": doctor.id}, doctor.model_dump(), upsert=True)

    @_wrap_errors
    async def get_doctors_by_clinic(self, clinic_id: str) -> list[Doctor]:
        cursor = self.doctors.find({"clinic_id": clinic_id}, _NO_ID)
        return [Doctor(**doc) async for doc in cursor]

    @_wrap_errors
    async def add_service(self, service: Service) -> None:
        await self.services.replace_one({"id": service.id}, service.model_dump(), upsert=True)

    @_wrap_errors
    async def get_services_by_clinic(self, clinic_id: str) -> list[Service]:
        cursor = self.services.find({"clinic_id": clinic_id}, _NO_ID)
        return [Service(**doc) async for doc in cursor]

    # Patients

    @_wrap_errors
    async def add_patient(self, patient: Patient) -> None:
        await self.patients.insert_one(patient.model_dump())

    @_wrap_errors
    async def get_patients_by_clinic(self, clinic_id: str) -> list[Patient]:
        cursor = self.patients.find({"clinic_id": clinic_id}, _NO_ID).sort("created_at", DESCENDING)
        return [Patient(**doc) async for doc in cursor]

    # Appointments

    @_wrap_errors
    async def add_appointment(self, appointment: Appointment) -> None:
        await self.appointments.insert_one(appointment.model_dump())

    @_wrap_errors
    async def get_appointments_by_clinic(self, clinic_id: str) -> list[Appointment]:
        cursor = self.appointments.find({"clinic_id": clinic_id}, _NO_ID).sort(
            [("date", DESCENDING), ("time", DESCENDING)]
        )
        return [Appointment(**doc) async for doc in cursor]

    @_wrap_errors
    async def set_appointment_status(
        self, clinic_id: str, appointment_id: str, status: str
    ) -> bool:
        result = await self.appointments.update_one(
            {"clinic_id": clinic_id, "id": appointment_id}, {"$set": {"status": status}}
        )
        return result.matched_count > 0

    # Cases

    @_wrap_errors
    async def add_case(self, case: Case) -> None:
        await self.cases.insert_one(case.model_dump())

    @_wrap_errors
    async def get_cases_by_clinic(self, clinic_id: str) -> list[Case]:
        cursor = self.cases.find({"clinic_id": clinic_id}, _NO_ID).sort("created_at", DESCENDING)
        return [Case(**doc) async for doc in cursor]

    # Invoices

    @_wrap_errors
    async def add_invoice(self, invoice: Invoice) -> None:
        await self.invoices.insert_one(invoice.model_dump())

    @_wrap_errors
    async def get_invoice(self, invoice_id: str) -> Optional[Invoice]:
        invoice_dict = await self.invoices.find_one({"id": invoice_id}, _NO_ID)
        if invoice_dict:
            return Invoice(**invoice_dict)
        return None

    @_wrap_errors
    async def get_invoices_by_clinic(self, clinic_id: str) -> list[Invoice]:
        cursor = self.invoices.find({"clinic_id": clinic_id}, _NO_ID).sort("created_at", DESCENDING)
        return [Invoice(**doc) async for doc in cursor]

    @_wrap_errors
    async def set_invoice_paid(self, invoice_id: str) -> bool:
        result = await self.invoices.update_one({"id": invoice_id}, {"$set": {"paid": True}})
        return result.matched_count > 0

    # Inventory

    @_wrap_errors
    async def add_inventory(
        self,
        clinic_id: str,
        sku: str,
        quantity: int,
        name: Optional[str] = None,
        unit_price: Optional[float] = None,
    ) -> InventoryItem:
        update: dict[str, Any] = {"$inc": {"quantity": quantity}}
        details = {k: v for k, v in {"name": name, "unit_price": unit_price}.items() if v is not None}
        if details:
            update["$set"] = details

        result = await self.inventory.find_one_and_update(
            {"clinic_id": clinic_id, "sku": sku},
            update,
            upsert=True,
            return_document=True,
            projection=_NO_ID,
        )
        return InventoryItem(**result)

    @_wrap_errors
    async def get_inventory_by_clinic(self, clinic_id: str) -> list[InventoryItem]:
        cursor = self.inventory.find({"clinic_id": clinic_id}, _NO_ID).sort("sku", ASCENDING)
        return [InventoryItem(**doc) async for doc in cursor]

    @_wrap_errors
    async def decrement_inventory(self, clinic_id: str, sku: str, amount: int = 1) -> bool:
        # Aggregation pipeline update clamps at zero atomically
        result = await self.inventory.update_one(
            {"clinic_id": clinic_id, "sku": sku},
            [{"$set": {"quantity": {"$max": [0, {"$subtract": ["$quantity", amount]}]}}}],
        )
        return result.matched_count > 0

    # Purchase orders

    @_wrap_errors
    async def add_purchase_order(self, purchase_order: PurchaseOrder) -> None:
        await self.purchase_orders.insert_one(purchase_order.model_dump())

    @_wrap_errors
    async def get_purchase_orders_by_clinic(self, clinic_id: str) -> list[PurchaseOrder]:
        cursor = self.purchase_orders.find({"clinic_id": clinic_id}, _NO_ID).sort(
            "created_at", DESCENDING
        )
        return [PurchaseOrder(**doc) async for doc in cursor]
