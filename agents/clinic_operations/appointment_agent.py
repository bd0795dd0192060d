"""
Appointment Agent

Monitors appointment slots for a clinic: upcoming vs completed split,
occupancy against the weekly slot capacity, and the busiest hour of day.
"""

from collections import Counter
from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from clinic_core.agent_orchestration.base_agent import AgentReport, BaseAgent, CamelModel
from clinic_core.clinic_data.models import Appointment


# Report Models


class SlotAnalysis(CamelModel):
    """Occupancy against the assumed weekly capacity."""

    total_slots: int
    booked_slots: int
    available_slots: int = Field(..., description="May be negative when overbooked")
    occupancy_rate: str = Field(..., description="Percentage with 2 decimals, e.g. '25.00%'")
    recommendation: str
    peak_time: str
    action: str = Field(default="Monitoring slots for optimal booking suggestions")


class AppointmentEntry(CamelModel):
    """One appointment as shown in the report."""

    id: str
    patient_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    status: str
    patient: Optional[Any] = None
    created_at: Optional[datetime] = None
    type: str = Field(..., description="upcoming or completed")


class AppointmentSummary(CamelModel):
    """Appointment counts and listing."""

    total: int
    upcoming: int
    completed: int
    data: list[AppointmentEntry] = Field(default_factory=list)


class AppointmentReport(AgentReport):
    """Output from appointment agent."""

    analysis: SlotAnalysis
    appointments: AppointmentSummary


# Agent Implementation


class AppointmentAgent(BaseAgent[AppointmentReport]):
    """
    Appointment Agent.

    Read-only: partitions appointments by scheduled time and reports slot
    occupancy. Appointments whose date cannot be parsed count as completed.
    """

    agent_type = "appointment"
    agent_name = "Appointment Agent"

    async def _run_internal(self, clinic_id: str) -> AppointmentReport:
        """Execute appointment analysis."""
        appointments = await self.repository.get_appointments_by_clinic(clinic_id)
        now = self.clock()

        entries = []
        upcoming = 0
        for appointment in appointments:
            is_upcoming = self._is_upcoming(appointment, now)
            upcoming += is_upcoming
            entries.append(
                AppointmentEntry(
                    id=appointment.id,
                    patient_name=appointment.patient_name,
                    phone=appointment.phone,
                    email=appointment.email,
                    date=appointment.date,
                    time=appointment.time,
                    status=appointment.status,
                    patient=appointment.patient,
                    created_at=appointment.created_at,
                    type="upcoming" if is_upcoming else "completed",
                )
            )

        analysis = self.analyze_slots(appointments)
        self.logger.info(
            "appointment_analysis",
            clinic_id=clinic_id,
            booked_slots=analysis.booked_slots,
            occupancy_rate=analysis.occupancy_rate,
            peak_time=analysis.peak_time,
        )

        return AppointmentReport(
            agent=self.agent_name,
            timestamp=now,
            clinic_id=clinic_id,
            next_run=self._next_run(now),
            analysis=analysis,
            appointments=AppointmentSummary(
                total=len(appointments),
                upcoming=upcoming,
                completed=len(appointments) - upcoming,
                data=entries,
            ),
        )

    @staticmethod
    def _is_upcoming(appointment: Appointment, now: datetime) -> bool:
        scheduled_at = appointment.scheduled_at
        return scheduled_at is not None and scheduled_at >= now

    def analyze_slots(self, appointments: list[Appointment]) -> SlotAnalysis:
        """Occupancy of the weekly capacity; available slots are not clamped at zero."""
        total_slots = self.config.weekly_slot_capacity
        booked_slots = len(appointments)
        available_slots = total_slots - booked_slots
        occupancy_rate = booked_slots / total_slots * 100

        if available_slots > self.config.good_availability_threshold:
            recommendation = "Good availability"
        else:
            recommendation = "Getting full, consider adding slots"

        return SlotAnalysis(
            total_slots=total_slots,
            booked_slots=booked_slots,
            available_slots=available_slots,
            occupancy_rate=f"{occupancy_rate:.2f}%",
            recommendation=recommendation,
            peak_time=self.identify_peak_time(appointments),
        )

    @staticmethod
    def identify_peak_time(appointments: list[Appointment]) -> str:
        """
        Busiest hour of day.

        Ties go to the earliest hour. Appointments without a parseable
        schedule are not bucketed.
        """
        hours = Counter(
            a.scheduled_at.hour for a in appointments if a.scheduled_at is not None
        )
        if not hours:
            return "No data"

        hour, count = max(hours.items(), key=lambda item: (item[1], -item[0]))
        return f"{hour}:00 ({count} appointments)"
