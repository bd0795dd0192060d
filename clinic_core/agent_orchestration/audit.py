"""
Agent Audit Logging

Audit trail of every agent execution, stored in the clinic database.
"""

from datetime import datetime
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, Field
from pymongo import ASCENDING, DESCENDING, IndexModel

from ..shared_services.clock import utc_now


class AgentAuditLog(BaseModel):
    """Agent execution audit log entry."""

    log_id: str = Field(..., description="Unique log identifier (same as execution_id)")
    clinic_id: str = Field(..., description="Clinic the agent ran for")

    # Agent information
    agent_type: str
    agent_version: str
    status: str  # success, failed
    trigger: str  # manual, booking, scheduled

    # Metrics
    execution_time_ms: float
    error: Optional[str] = Field(default=None)

    executed_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def from_result(cls, result: Any) -> "AgentAuditLog":
        """Build a log entry from an AgentResult."""
        return cls(
            log_id=result.execution_id,
            clinic_id=result.clinic_id,
            agent_type=result.agent_type,
            agent_version=result.agent_version,
            status=result.status.value,
            trigger=result.trigger.value,
            execution_time_ms=result.execution_time_ms,
            error=result.error,
            executed_at=result.started_at,
        )


class AgentAuditService:
    """Service for managing agent audit logs."""

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize audit service.

        Args:
            db: Clinic database
        """
        self.collection = db["agent_audit_logs"]

    async def ensure_indexes(self) -> None:
        """Create indexes for audit log collection."""
        indexes = [
            IndexModel([("log_id", ASCENDING)], unique=True),
            IndexModel([("clinic_id", ASCENDING), ("executed_at", DESCENDING)]),
            IndexModel([("agent_type", ASCENDING), ("executed_at", DESCENDING)]),
            IndexModel([("status", ASCENDING), ("executed_at", DESCENDING)]),
        ]

        await self.collection.create_indexes(indexes)

    async def create_log(self, audit_log: AgentAuditLog) -> str:
        """
        Create audit log entry.

        Args:
            audit_log: Audit log data

        Returns:
            Log ID
        """
        await self.collection.insert_one(audit_log.model_dump())
        return audit_log.log_id

    @staticmethod
    def _build_query(
        clinic_id: Optional[str] = None,
        agent_type: Optional[str] = None,
        status: Optional[str] = None,
    ) -> dict[str, Any]:
        query: dict[str, Any] = {}
        if clinic_id:
            query["clinic_id"] = clinic_id
        if agent_type:
            query["agent_type"] = agent_type
        if status:
            query["status"] = status
        return query

    async def list_logs(
        self,
        clinic_id: Optional[str] = None,
        agent_type: Optional[str] = None,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[AgentAuditLog]:
        """
        List audit logs with filtering, newest first.

        Args:
            clinic_id: Filter by clinic
            agent_type: Filter by agent type
            status: Filter by status
            skip: Number of records to skip
            limit: Maximum records to return

        Returns:
            List of audit logs
        """
        query = self._build_query(clinic_id, agent_type, status)
        cursor = (
            self.collection.find(query, {"_id": 0})
            .sort("executed_at", DESCENDING)
            .skip(skip)
            .limit(limit)
        )

        logs = []
        async for log_dict in cursor:
            logs.append(AgentAuditLog(**log_dict))

        return logs

    async def count_logs(
        self,
        clinic_id: Optional[str] = None,
        agent_type: Optional[str] = None,
        status: Optional[str] = None,
    ) -> int:
        """Count audit logs matching the filters."""
        return await self.collection.count_documents(
            self._build_query(clinic_id, agent_type, status)
        )
