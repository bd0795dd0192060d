"""
Agent Execution API Router

REST API endpoints for running clinic agents, dispatching command center
commands and reading the execution history.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import Field
from structlog import get_logger

from agents.clinic_operations import AICommandCenter

from ..agent_orchestration.audit import AgentAuditService
from ..agent_orchestration.base_agent import CamelModel
from .chains import build_agent, run_all_agents
from .dependencies import AgentRuntime, get_audit_service

logger = get_logger()

router = APIRouter(prefix="/api/agents", tags=["Agent Execution"])


# Request models


class AgentRunRequest(CamelModel):
    """Run request for a single clinic."""

    clinic_id: str = Field(..., min_length=1, description="Clinic to run the agent for")


class CommandRequest(CamelModel):
    """Free-text command for the command center."""

    clinic_id: str = Field(..., min_length=1)
    command: str = Field(..., min_length=1, description="e.g. 'reduce cancellations'")


async def _run_single(
    agent_type: str,
    request: AgentRunRequest,
    runtime: AgentRuntime,
) -> dict[str, Any]:
    logger.info("executing_agent", agent_type=agent_type, clinic_id=request.clinic_id)

    agent = build_agent(
        agent_type,
        runtime.repository,
        config=runtime.config,
        clock=runtime.clock,
        id_generator=runtime.id_generator,
    )
    result = await agent.execute(request.clinic_id, audit_service=runtime.audit_service)

    return {"ok": True, "data": result.to_payload()}


# Single agent endpoints


@router.post(
    "/run-appointment",
    summary="Run Appointment Agent",
    description="Analyze slot occupancy and peak booking time for a clinic",
)
async def run_appointment_agent(
    request: AgentRunRequest,
    runtime: AgentRuntime = Depends(),
) -> dict[str, Any]:
    return await _run_single("appointment", request, runtime)


@router.post(
    "/run-revenue",
    summary="Run Revenue Agent",
    description="Summarize billing and log reminders for unpaid invoices",
)
async def run_revenue_agent(
    request: AgentRunRequest,
    runtime: AgentRuntime = Depends(),
) -> dict[str, Any]:
    return await _run_single("revenue", request, runtime)


@router.post(
    "/run-case",
    summary="Run Case Agent",
    description="Create missing cases from appointments and report treatment progress",
)
async def run_case_agent(
    request: AgentRunRequest,
    runtime: AgentRuntime = Depends(),
) -> dict[str, Any]:
    return await _run_single("case", request, runtime)


@router.post(
    "/run-inventory",
    summary="Run Inventory Agent",
    description="Detect low stock and create purchase orders",
)
async def run_inventory_agent(
    request: AgentRunRequest,
    runtime: AgentRuntime = Depends(),
) -> dict[str, Any]:
    return await _run_single("inventory", request, runtime)


# Multi-agent endpoints


async def _run_all(request: AgentRunRequest, runtime: AgentRuntime) -> dict[str, Any]:
    logger.info("executing_all_agents", clinic_id=request.clinic_id)

    results = await run_all_agents(
        request.clinic_id,
        runtime.repository,
        runtime.audit_service,
        config=runtime.config,
        clock=runtime.clock,
        id_generator=runtime.id_generator,
    )

    return {
        "ok": True,
        "data": {agent_type: result.to_payload() for agent_type, result in results.items()},
    }


@router.post(
    "/run-all",
    summary="Run All Agents",
    description="Run appointment, revenue, case and inventory agents in sequence",
)
async def run_all(
    request: AgentRunRequest,
    runtime: AgentRuntime = Depends(),
) -> dict[str, Any]:
    return await _run_all(request, runtime)


@router.post(
    "/run",
    summary="Run All Agents (legacy)",
    description="Alias of /run-all kept for older clients",
)
async def run_all_legacy(
    request: AgentRunRequest,
    runtime: AgentRuntime = Depends(),
) -> dict[str, Any]:
    return await _run_all(request, runtime)


# Command center


@router.post(
    "/command",
    summary="Execute Command",
    description="Dispatch a free-text command to the AI command center",
)
async def execute_command(
    request: CommandRequest,
    runtime: AgentRuntime = Depends(),
) -> dict[str, Any]:
    logger.info("executing_command", clinic_id=request.clinic_id, command=request.command)

    command_center = AICommandCenter(runtime.repository, clock=runtime.clock, config=runtime.config)
    result = await command_center.execute(request.clinic_id, request.command)

    return {"ok": True, "data": result.to_payload()}


# Agent Audit and History Endpoints


@router.get(
    "/executions",
    summary="List Agent Executions",
    description="List agent executions with filtering, newest first",
)
async def list_agent_executions(
    clinic_id: Optional[str] = Query(None, alias="clinicId", description="Filter by clinic"),
    agent_type: Optional[str] = Query(None, alias="agentType", description="Filter by agent type"),
    execution_status: Optional[str] = Query(None, alias="status", description="Filter by status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    audit_service: Optional[AgentAuditService] = Depends(get_audit_service),
) -> dict[str, Any]:
    """List agent execution history."""
    if audit_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Audit logging not available",
        )

    logs = await audit_service.list_logs(
        clinic_id=clinic_id,
        agent_type=agent_type,
        status=execution_status,
        skip=skip,
        limit=limit,
    )

    total = await audit_service.count_logs(
        clinic_id=clinic_id,
        agent_type=agent_type,
        status=execution_status,
    )

    return {
        "ok": True,
        "data": {
            "executions": [log.model_dump(mode="json") for log in logs],
            "total": total,
            "skip": skip,
            "limit": limit,
        },
    }
