"""HTTP tests for the clinic data and agent execution endpoints."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from clinic_core.agent_execution.dependencies import get_clock, get_id_generator
from clinic_core.agent_orchestration import AgentAuditLog
from clinic_core.api_gateway.main import create_app
from clinic_core.clinic_data.models import Appointment, Invoice

from conftest import NOW


@pytest.fixture
def app(repository, config, clock, id_generator):
    # Lifespan is not entered: TestClient is used without a context manager
    app = create_app(config)
    app.state.repository = repository
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_id_generator] = lambda: id_generator
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


# Platform


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_ping(client):
    assert client.get("/ping").json() == {"message": "pong"}


# Agent execution


def test_missing_clinic_id_is_rejected(client):
    response = client.post("/api/agents/run-appointment", json={})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request"


def test_run_revenue(client, repository):
    repository.invoices.append(Invoice(id="i1", clinic_id="clinic-1", amount=100, created_at=NOW))

    response = client.post("/api/agents/run-revenue", json={"clinicId": "clinic-1"})

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["data"]["agent"] == "Revenue Agent"
    assert body["data"]["analysis"]["totalAmount"] == "100.00"
    assert body["data"]["notified"][0]["invoiceId"] == "i1"


def test_agent_failure_is_reported_in_data(client, repository, monkeypatch):
    async def broken(clinic_id):
        raise RuntimeError("database down")

    monkeypatch.setattr(repository, "get_inventory_by_clinic", broken)

    response = client.post("/api/agents/run-inventory", json={"clinicId": "clinic-1"})

    assert response.status_code == 200
    assert response.json()["data"] == {
        "agent": "InventoryAgent",
        "status": "error",
        "error": "database down",
    }


@pytest.mark.parametrize("path", ["/api/agents/run-all", "/api/agents/run"])
def test_run_all_executes_every_agent(client, repository, path):
    repository.appointments.append(Appointment(id="a1", clinic_id="clinic-1", date="2025-03-11"))
    client.post("/api/add-inventory-item", json={"clinicId": "clinic-1", "item": {"sku": "gloves", "qty": 2}})
    response = client.post(path, json={"clinicId": "clinic-1"})

    data = response.json()["data"]
    assert list(data) == ["appointment", "revenue", "case", "inventory"]
    assert data["case"]["casesCreated"][0]["appointmentId"] == "a1"
    assert data["inventory"]["purchaseOrders"][0]["sku"] == "gloves"
    assert len(repository.cases) == 1
    assert len(repository.purchase_orders) == 1

    orders = client.get("/api/purchase-orders/clinic-1").json()["purchaseOrders"]
    assert [(po["sku"], po["quantity"]) for po in orders] == [("gloves", 100)]


def test_agents_use_app_config(app, client):
    app.state.config = app.state.config.model_copy(update={"weekly_slot_capacity": 80})

    response = client.post("/api/agents/run-appointment", json={"clinicId": "clinic-1"})

    analysis = response.json()["data"]["analysis"]
    assert analysis["totalSlots"] == 80
    assert analysis["availableSlots"] == 80


def test_run_all_uses_injected_clock_and_ids(client, repository):
    repository.appointments.append(Appointment(id="a1", clinic_id="clinic-1", date="2025-03-11"))
    client.post("/api/add-inventory-item", json={"clinicId": "clinic-1", "item": {"sku": "gloves", "qty": 2}})

    data = client.post("/api/agents/run-all", json={"clinicId": "clinic-1"}).json()["data"]

    assert data["appointment"]["appointments"]["upcoming"] == 1
    assert data["case"]["casesCreated"][0]["caseId"] == "case-1"
    assert data["inventory"]["purchaseOrders"][0]["poId"] == "po-1"


def test_book_chain_uses_app_config(app, client, repository):
    app.state.config = app.state.config.model_copy(update={"reorder_quantity": 250})
    client.post("/api/add-inventory-item", json={"clinicId": "clinic-1", "item": {"sku": "gloves", "qty": 1}})

    client.post("/api/book", json={"clinicId": "clinic-1", "patient": {"name": "Ana"}})

    assert [(po.id, po.quantity) for po in repository.purchase_orders] == [("po-1", 250)]


def test_command_endpoint(client):
    response = client.post(
        "/api/agents/command", json={"clinicId": "clinic-1", "command": "do something weird"}
    )

    data = response.json()["data"]
    assert data["status"] == "Unknown"
    assert len(data["availableCommands"]) == 7


def test_command_run_all_agents_does_not_run_agents(client, repository):
    repository.appointments.append(Appointment(id="a1", clinic_id="clinic-1", date="2025-03-11"))

    response = client.post(
        "/api/agents/command", json={"clinicId": "clinic-1", "command": "Run all agents"}
    )

    assert response.json()["data"]["message"] == "All agents executed successfully"
    assert repository.cases == []


def test_executions_unavailable_without_audit_service(client):
    assert client.get("/api/agents/executions").status_code == 503


def test_executions_lists_audit_logs(app, client):
    log = AgentAuditLog(
        log_id="exec-1",
        clinic_id="clinic-1",
        agent_type="revenue",
        agent_version="1.0.0",
        status="success",
        trigger="manual",
        execution_time_ms=3.5,
        executed_at=NOW,
    )
    audit_service = AsyncMock()
    audit_service.list_logs.return_value = [log]
    audit_service.count_logs.return_value = 1
    app.state.audit_service = audit_service

    response = client.get("/api/agents/executions", params={"clinicId": "clinic-1", "agentType": "revenue"})

    data = response.json()["data"]
    assert data["total"] == 1
    assert data["executions"][0]["log_id"] == "exec-1"
    audit_service.list_logs.assert_awaited_once_with(
        clinic_id="clinic-1", agent_type="revenue", status=None, skip=0, limit=50
    )


# Clinic data


def test_start_trial_and_settings(client, repository):
    response = client.post(
        "/api/start-trial",
        json={"clinicId": "clinic-1", "ownerName": "Dr. Rivera", "email": "owner@example.com"},
    )
    assert response.json()["clinic"]["active"] is True

    client.post("/api/set-whatsapp", json={"clinicId": "clinic-1", "number": "+15550001111"})
    client.post("/api/set-hours", json={"clinicId": "clinic-1", "hours": {"mon": "9-17"}})

    clinic = repository.clinics["clinic-1"]
    assert clinic.owner_name == "Dr. Rivera"
    assert clinic.whatsapp == "+15550001111"
    assert clinic.working_hours == {"mon": "9-17"}


def test_start_trial_requires_valid_email(client):
    response = client.post("/api/start-trial", json={"clinicId": "clinic-1", "email": "nope"})

    assert response.status_code == 400


def test_doctors_are_replaced_by_id(client, repository):
    client.post(
        "/api/add-doctor",
        json={"clinicId": "clinic-1", "doctor": {"id": "d1", "name": "Dr. Lee"}},
    )
    response = client.post(
        "/api/add-doctor",
        json={"clinicId": "clinic-1", "doctor": {"id": "d1", "name": "Dr. Lee", "meta": {"specialty": "ortho"}}},
    )

    doctors = response.json()["doctors"]
    assert response.json()["ok"] is True
    assert doctors == [{"id": "d1", "clinic_id": "clinic-1", "name": "Dr. Lee", "meta": {"specialty": "ortho"}}]
    assert list(repository.doctors) == ["d1"]


def test_doctor_requires_id(client):
    response = client.post("/api/add-doctor", json={"clinicId": "clinic-1", "doctor": {"name": "Dr. Lee"}})

    assert response.status_code == 400


def test_services_default_name_and_price(client):
    client.post(
        "/api/add-service",
        json={"clinicId": "clinic-1", "service": {"id": "s1", "name": "Cleaning", "price": 80}},
    )
    response = client.post("/api/add-service", json={"clinicId": "clinic-1", "service": {"id": "s2"}})

    services = response.json()["services"]
    assert [(s["id"], s["name"], s["price"]) for s in services] == [("s1", "Cleaning", 80), ("s2", "", 0)]


def test_add_inventory_alias_only_acknowledges(client):
    response = client.post(
        "/api/add-inventory", json={"clinicId": "clinic-1", "item": {"sku": "gloves", "qty": 6}}
    )

    assert response.json() == {"ok": True}
    assert client.get("/api/inventory/clinic-1").json()["inventory"][0]["quantity"] == 6


def test_add_inventory_alias_requires_sku(client):
    response = client.post("/api/add-inventory", json={"clinicId": "clinic-1", "item": {"qty": 6}})

    assert response.status_code == 400


def test_patients(client):
    response = client.post(
        "/api/add-patient",
        json={"clinicId": "clinic-1", "patient": {"name": "Ana", "phone": "555-0100"}},
    )
    assert response.json()["patients"][0]["id"] == "pat-1"

    patients = client.get("/api/patients/clinic-1").json()["patients"]
    assert [p["name"] for p in patients] == ["Ana"]


def test_book_and_cancel_appointment(client, repository):
    response = client.post(
        "/api/book-appointment",
        json={
            "clinicId": "clinic-1",
            "appointment": {"patientName": "Ana", "phone": "555-0100", "date": "2025-03-12", "time": "10:00"},
        },
    )
    appointment = response.json()["appointments"][0]
    assert appointment["id"] == "appt-1"
    assert appointment["status"] == "booked"
    assert repository.cases == []

    cancel = client.post(
        "/api/cancel-appointment", json={"clinicId": "clinic-1", "appointmentId": "appt-1"}
    )
    assert cancel.json() == {"ok": True}
    assert repository.appointments[0].status == "cancelled"


def test_cancel_unknown_appointment(client):
    response = client.post(
        "/api/cancel-appointment", json={"clinicId": "clinic-1", "appointmentId": "missing"}
    )

    assert response.status_code == 404


def test_inventory_add_and_decrement(client):
    for qty in (3, 4):
        client.post(
            "/api/add-inventory-item",
            json={"clinicId": "clinic-1", "item": {"sku": "gloves", "name": "Gloves", "qty": qty}},
        )
    assert client.get("/api/inventory/clinic-1").json()["inventory"][0]["quantity"] == 7

    response = client.post(
        "/api/decrement-inventory", json={"clinicId": "clinic-1", "sku": "gloves", "amount": 10}
    )
    assert response.json() == {"ok": True}
    assert client.get("/api/inventory/clinic-1").json()["inventory"][0]["quantity"] == 0


def test_decrement_unknown_item(client):
    response = client.post("/api/decrement-inventory", json={"clinicId": "clinic-1", "sku": "none"})

    assert response.status_code == 404
    assert "none" in response.json()["error"]


def test_invoice_and_payment(client, repository):
    invoice = client.post(
        "/api/invoice", json={"clinicId": "clinic-1", "caseId": "case-1", "amount": 120}
    ).json()["invoice"]
    assert invoice["id"] == "inv-1"
    assert invoice["paid"] is False

    paid = client.post("/api/pay", json={"invoiceId": "inv-1"}).json()["invoice"]
    assert paid["paid"] is True
    assert repository.invoices[0].paid is True


def test_pay_unknown_invoice(client):
    assert client.post("/api/pay", json={"invoiceId": "missing"}).status_code == 404


def test_invoice_amount_must_be_positive(client):
    response = client.post("/api/invoice", json={"clinicId": "clinic-1", "caseId": "c1", "amount": 0})

    assert response.status_code == 400


def test_dashboard_and_monthly_report(client, repository, clinic):
    repository.invoices.extend(
        [
            Invoice(id="i1", clinic_id="clinic-1", amount=100, paid=True),
            Invoice(id="i2", clinic_id="clinic-1", amount=50),
        ]
    )

    dashboard = client.get("/api/dashboard/clinic-1").json()
    assert dashboard["clinic"]["id"] == "clinic-1"
    assert len(dashboard["invoices"]) == 2

    report = client.get("/api/reports/monthly/clinic-1").json()
    assert report == {"month": NOW.isoformat(), "revenue": 150, "invoicesCount": 2}


def test_dashboard_unknown_clinic(client):
    assert client.get("/api/dashboard/unknown").json()["clinic"] == {}


def test_book_runs_agent_chain(client, repository, clinic):
    response = client.post(
        "/api/book", json={"clinicId": "clinic-1", "patient": {"name": "Ana", "phone": "555-0100"}}
    )

    body = response.json()
    assert body["appt"] == {"id": "appt-1"}
    assert list(body["agents"]) == ["appointment", "case", "inventory", "revenue"]
    assert set(body["agents"].values()) == {"success"}
    assert [c.appointment_id for c in repository.cases] == ["appt-1"]
    assert repository.appointments[0].patient == {"name": "Ana", "phone": "555-0100"}


def test_book_survives_agent_failure(client, repository, monkeypatch):
    async def broken(clinic_id):
        raise RuntimeError("inventory offline")

    monkeypatch.setattr(repository, "get_inventory_by_clinic", broken)

    response = client.post("/api/book", json={"clinicId": "clinic-1", "patient": {"name": "Ana"}})

    assert response.status_code == 200
    assert response.json()["agents"]["inventory"] == "failed"
    assert response.json()["agents"]["revenue"] == "success"
