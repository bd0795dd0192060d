"""
Case Agent

Creates treatment cases for appointments that do not have one yet and
reports treatment completion over existing cases.
"""

from typing import Any, Optional

from pydantic import Field

from clinic_core.agent_orchestration.base_agent import AgentReport, BaseAgent, CamelModel
from clinic_core.clinic_data.models import Appointment, Case, CaseStatus


# Report Models


class CreatedCase(CamelModel):
    """Case created during this run."""

    case_id: str
    appointment_id: str
    patient: Optional[Any] = None
    status: str = Field(default=CaseStatus.CREATED.value)


class TreatmentStatus(CamelModel):
    """Status of one existing case."""

    case_id: str
    patient: Optional[Any] = None
    status: str


class TreatmentVerification(CamelModel):
    """Completion snapshot over cases that existed before the run."""

    total_cases: int
    completed_treatments: int
    pending_treatments: int
    treatment_status: list[TreatmentStatus] = Field(default_factory=list)


class CaseReport(AgentReport):
    """Output from case agent."""

    cases_created: list[CreatedCase] = Field(default_factory=list)
    treatment_verification: TreatmentVerification


# Agent Implementation


class CaseAgent(BaseAgent[CaseReport]):
    """
    Case Agent.

    Keeps at most one case per appointment by skipping appointments already
    referenced by a case. A failed insert is logged and skipped; the
    remaining appointments are still processed.
    """

    agent_type = "case"
    agent_name = "Case Agent"

    async def _run_internal(self, clinic_id: str) -> CaseReport:
        """Execute case creation and treatment verification."""
        appointments = await self.repository.get_appointments_by_clinic(clinic_id)
        existing_cases = await self.repository.get_cases_by_clinic(clinic_id)
        now = self.clock()

        created = await self.create_cases_from_appointments(clinic_id, appointments, existing_cases)
        verification = self.verify_treatments(existing_cases)

        self.logger.info("cases_created", clinic_id=clinic_id, count=len(created))

        return CaseReport(
            agent=self.agent_name,
            timestamp=now,
            clinic_id=clinic_id,
            next_run=self._next_run(now),
            cases_created=created,
            treatment_verification=verification,
        )

    async def create_cases_from_appointments(
        self,
        clinic_id: str,
        appointments: list[Appointment],
        existing_cases: list[Case],
    ) -> list[CreatedCase]:
        """Insert a case for every appointment not yet covered by one."""
        covered = {c.appointment_id for c in existing_cases if c.appointment_id}
        created = []

        for appointment in appointments:
            if appointment.id in covered:
                continue

            case_id = self.id_generator.new_id("case")
            try:
                await self.repository.add_case(
                    Case(
                        id=case_id,
                        clinic_id=clinic_id,
                        appointment_id=appointment.id,
                        patient=appointment.patient,
                        status=CaseStatus.CREATED.value,
                        created_at=self.clock(),
                    )
                )
            except Exception as e:
                self.logger.error(
                    "case_creation_failed",
                    clinic_id=clinic_id,
                    appointment_id=appointment.id,
                    error=str(e),
                )
                continue

            # Same appointment listed twice in one snapshot still gets one case
            covered.add(appointment.id)
            created.append(
                CreatedCase(
                    case_id=case_id,
                    appointment_id=appointment.id,
                    patient=appointment.patient,
                )
            )
            self.logger.info("case_created", case_id=case_id, appointment_id=appointment.id)

        return created

    @staticmethod
    def verify_treatments(cases: list[Case]) -> TreatmentVerification:
        completed = sum(1 for c in cases if c.status == CaseStatus.COMPLETED.value)
        return TreatmentVerification(
            total_cases=len(cases),
            completed_treatments=completed,
            pending_treatments=len(cases) - completed,
            treatment_status=[
                TreatmentStatus(case_id=c.id, patient=c.patient, status=c.status) for c in cases
            ],
        )
