"""
Agent Orchestration Module

Core framework for clinic agent execution and audit logging.
"""

from .audit import AgentAuditLog, AgentAuditService
from .base_agent import (
    AgentReport,
    AgentResult,
    AgentStatus,
    AgentTrigger,
    BaseAgent,
    CamelModel,
)

__all__ = [
    "AgentAuditLog",
    "AgentAuditService",
    "AgentReport",
    "AgentResult",
    "AgentStatus",
    "AgentTrigger",
    "BaseAgent",
    "CamelModel",
]
