"""
Agent Chains

Fixed multi-agent sequences triggered by the HTTP layer. Each agent runs
through ``execute`` so one failing agent does not stop the chain.
"""

from typing import Optional

from agents.clinic_operations import (
    AGENT_REGISTRY,
    AppointmentAgent,
    CaseAgent,
    InventoryAgent,
    RevenueAgent,
)

from ..agent_orchestration.audit import AgentAuditService
from ..agent_orchestration.base_agent import AgentResult, AgentTrigger, BaseAgent
from ..clinic_data.repository import ClinicRepository
from ..config import ClinicPlatformConfig
from ..shared_services.clock import Clock, IdGenerator

# Order used by the run-all endpoints
RUN_ALL_ORDER: list[type[BaseAgent]] = [AppointmentAgent, RevenueAgent, CaseAgent, InventoryAgent]

# Order used after a booking
BOOKING_CHAIN_ORDER: list[type[BaseAgent]] = [AppointmentAgent, CaseAgent, InventoryAgent, RevenueAgent]


def build_agent(
    agent_type: str,
    repository: ClinicRepository,
    config: Optional[ClinicPlatformConfig] = None,
    clock: Optional[Clock] = None,
    id_generator: Optional[IdGenerator] = None,
) -> BaseAgent:
    """
    Instantiate a registered agent.

    Raises:
        KeyError: Unknown agent type
    """
    return AGENT_REGISTRY[agent_type](
        repository, clock=clock, id_generator=id_generator, config=config
    )


async def _run_sequence(
    sequence: list[type[BaseAgent]],
    clinic_id: str,
    repository: ClinicRepository,
    trigger: AgentTrigger,
    audit_service: Optional[AgentAuditService],
    config: Optional[ClinicPlatformConfig],
    clock: Optional[Clock],
    id_generator: Optional[IdGenerator],
) -> dict[str, AgentResult]:
    results: dict[str, AgentResult] = {}
    for agent_cls in sequence:
        agent = agent_cls(repository, clock=clock, id_generator=id_generator, config=config)
        results[agent.agent_type] = await agent.execute(
            clinic_id, trigger=trigger, audit_service=audit_service
        )
    return results


async def run_all_agents(
    clinic_id: str,
    repository: ClinicRepository,
    audit_service: Optional[AgentAuditService] = None,
    config: Optional[ClinicPlatformConfig] = None,
    clock: Optional[Clock] = None,
    id_generator: Optional[IdGenerator] = None,
) -> dict[str, AgentResult]:
    """Run the four domain agents for real, one after another."""
    return await _run_sequence(
        RUN_ALL_ORDER,
        clinic_id,
        repository,
        AgentTrigger.MANUAL,
        audit_service,
        config,
        clock,
        id_generator,
    )


async def run_booking_chain(
    clinic_id: str,
    repository: ClinicRepository,
    audit_service: Optional[AgentAuditService] = None,
    config: Optional[ClinicPlatformConfig] = None,
    clock: Optional[Clock] = None,
    id_generator: Optional[IdGenerator] = None,
) -> dict[str, AgentResult]:
    """Agent chain that follows a new booking."""
    return await _run_sequence(
        BOOKING_CHAIN_ORDER,
        clinic_id,
        repository,
        AgentTrigger.BOOKING,
        audit_service,
        config,
        clock,
        id_generator,
    )
