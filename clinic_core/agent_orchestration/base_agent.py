"""
Base Agent Class

Foundation for all clinic agents with:
- Standardized run interface (one clinic per run)
- Injected repository, logger, clock and id generator
- Run-level error propagation plus a non-raising execute wrapper
- Audit logging of executions
"""

import time
import traceback
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Generic, Optional, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from structlog import get_logger

from ..clinic_data.repository import ClinicRepository
from ..config import ClinicPlatformConfig, get_config
from ..shared_services.clock import Clock, IdGenerator, UUIDIdGenerator, utc_now
from .audit import AgentAuditLog, AgentAuditService


class CamelModel(BaseModel):
    """Report model serialized with camelCase keys for frontend consumers."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict using camelCase aliases."""
        return self.model_dump(by_alias=True, mode="json")


class AgentReport(CamelModel):
    """Fields shared by every agent report."""

    agent: str
    timestamp: datetime
    clinic_id: str
    next_run: datetime


# Type variable for agent report
ReportType = TypeVar("ReportType", bound=AgentReport)


class AgentStatus(str, Enum):
    """Agent execution status."""

    SUCCESS = "success"
    FAILED = "failed"


class AgentTrigger(str, Enum):
    """What started an agent execution."""

    MANUAL = "manual"
    BOOKING = "booking"
    SCHEDULED = "scheduled"


class AgentResult(BaseModel, Generic[ReportType]):
    """
    Standardized agent execution result.

    Contains the report or the error, plus execution metadata.
    """

    execution_id: str = Field(default_factory=lambda: str(uuid4()))
    agent_type: str
    agent_name: str
    agent_class: str = Field(default="", description="Implementing class name, e.g. InventoryAgent")
    agent_version: str = Field(default="1.0.0")
    status: AgentStatus
    clinic_id: str
    trigger: AgentTrigger = Field(default=AgentTrigger.MANUAL)

    output: Optional[ReportType] = Field(default=None)

    error: Optional[str] = Field(default=None)
    error_details: Optional[dict[str, Any]] = Field(default=None)

    execution_time_ms: float
    started_at: datetime
    completed_at: datetime

    def is_successful(self) -> bool:
        """Check if agent execution was successful."""
        return self.status == AgentStatus.SUCCESS

    def to_payload(self) -> dict[str, Any]:
        """
        Report payload on success, error marker on failure.

        Matches what the HTTP layer has always returned under ``data``.
        """
        if self.output is not None:
            return self.output.to_payload()
        return {"agent": self.agent_class or self.agent_name, "status": "error", "error": self.error}


class BaseAgent(ABC, Generic[ReportType]):
    """
    Base class for all clinic agents.

    Subclasses set ``agent_type`` / ``agent_name`` and implement
    ``_run_internal``. Agents keep no state between runs; everything they
    report comes from the repository snapshot read during the run.
    """

    agent_type: str = ""
    agent_name: str = ""

    def __init__(
        self,
        repository: ClinicRepository,
        logger: Optional[Any] = None,
        clock: Optional[Clock] = None,
        id_generator: Optional[IdGenerator] = None,
        config: Optional[ClinicPlatformConfig] = None,
        agent_version: str = "1.0.0",
    ):
        """
        Initialize base agent.

        Args:
            repository: Clinic data access
            logger: Structured logger (module logger bound to agent type if not provided)
            clock: Returns the current aware UTC time
            id_generator: Produces ids for entities the agent creates
            config: Platform configuration (uses cached config if not provided)
            agent_version: Agent version
        """
        self.repository = repository
        self.agent_version = agent_version
        self.clock = clock or utc_now
        self.id_generator = id_generator or UUIDIdGenerator()
        self.config = config or get_config()

        base_logger = logger if logger is not None else get_logger()
        self.logger = base_logger.bind(agent_type=self.agent_type, agent_version=agent_version)

    async def run(self, clinic_id: str) -> ReportType:
        """
        Run the agent for one clinic.

        Args:
            clinic_id: Clinic identifier

        Returns:
            Agent report

        Raises:
            Exception: Any repository or analysis failure, unchanged
        """
        log = self.logger.bind(clinic_id=clinic_id)
        log.info("agent_run_started")

        try:
            report = await self._run_internal(clinic_id)
        except Exception as e:
            log.error("agent_run_error", error=str(e))
            raise

        log.info("agent_run_completed")
        return report

    async def execute(
        self,
        clinic_id: str,
        trigger: AgentTrigger = AgentTrigger.MANUAL,
        audit_service: Optional[AgentAuditService] = None,
    ) -> AgentResult[ReportType]:
        """
        Run the agent and wrap the outcome; never raises.

        Used by callers that must keep going after a failure (HTTP handlers,
        the booking chain, the daily scheduler).

        Args:
            clinic_id: Clinic identifier
            trigger: What started this execution
            audit_service: Optional audit trail sink

        Returns:
            Agent execution result
        """
        execution_id = str(uuid4())
        started_at = self.clock()
        start_time = time.perf_counter()

        try:
            report = await self.run(clinic_id)
            result = AgentResult(
                execution_id=execution_id,
                agent_type=self.agent_type,
                agent_name=self.agent_name,
                agent_class=type(self).__name__,
                agent_version=self.agent_version,
                status=AgentStatus.SUCCESS,
                clinic_id=clinic_id,
                trigger=trigger,
                output=report,
                execution_time_ms=(time.perf_counter() - start_time) * 1000,
                started_at=started_at,
                completed_at=self.clock(),
            )
        except Exception as e:
            result = AgentResult(
                execution_id=execution_id,
                agent_type=self.agent_type,
                agent_name=self.agent_name,
                agent_class=type(self).__name__,
                agent_version=self.agent_version,
                status=AgentStatus.FAILED,
                clinic_id=clinic_id,
                trigger=trigger,
                error=str(e),
                error_details={"traceback": traceback.format_exc()},
                execution_time_ms=(time.perf_counter() - start_time) * 1000,
                started_at=started_at,
                completed_at=self.clock(),
            )

        if audit_service is not None and self.config.enable_audit_logging:
            try:
                await audit_service.create_log(AgentAuditLog.from_result(result))
            except Exception as e:
                self.logger.error("audit_logging_failed", clinic_id=clinic_id, error=str(e))

        return result

    @abstractmethod
    async def _run_internal(self, clinic_id: str) -> ReportType:
        """
        Internal run logic implemented by each agent.

        Args:
            clinic_id: Clinic identifier

        Returns:
            Agent report
        """
        pass

    def _next_run(self, now: datetime) -> datetime:
        """When the next daily run is expected."""
        return now + timedelta(hours=self.config.agent_next_run_hours)

    def get_description(self) -> str:
        """
        Get agent description.

        Returns:
            Agent description
        """
        return f"{self.agent_name} v{self.agent_version}"
