"""
Clinic Operations Agents

Rule-based agents that summarize one clinic's appointments, revenue, cases
and inventory, plus the natural-language command center.
"""

from .appointment_agent import AppointmentAgent, AppointmentReport
from .case_agent import CaseAgent, CaseReport
from .command_center import AICommandCenter, CommandResult, CommandRoute
from .inventory_agent import InventoryAgent, InventoryReport
from .revenue_agent import RevenueAgent, RevenueReport

# Agent type -> agent class, in booking-chain order
AGENT_REGISTRY = {
    AppointmentAgent.agent_type: AppointmentAgent,
    CaseAgent.agent_type: CaseAgent,
    InventoryAgent.agent_type: InventoryAgent,
    RevenueAgent.agent_type: RevenueAgent,
}

__all__ = [
    "AGENT_REGISTRY",
    "AICommandCenter",
    "AppointmentAgent",
    "AppointmentReport",
    "CaseAgent",
    "CaseReport",
    "CommandResult",
    "CommandRoute",
    "InventoryAgent",
    "InventoryReport",
    "RevenueAgent",
    "RevenueReport",
]
