"""
Daily Agent Scheduler

Runs each agent type once a day across all clinics using APScheduler cron
triggers. Clinics are processed one after another; a failing clinic is
logged and the loop moves on to the next one.
"""

from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from structlog import get_logger

from agents.clinic_operations import AGENT_REGISTRY

from ..agent_orchestration.audit import AgentAuditService
from ..agent_orchestration.base_agent import AgentResult, AgentTrigger, BaseAgent
from ..clinic_data.repository import ClinicRepository
from ..config import ClinicPlatformConfig, get_config

logger = get_logger()


class AgentScheduler:
    """Registers one daily cron job per agent type."""

    def __init__(
        self,
        repository: ClinicRepository,
        audit_service: Optional[AgentAuditService] = None,
        config: Optional[ClinicPlatformConfig] = None,
        scheduler: Optional[AsyncIOScheduler] = None,
        agent_registry: Optional[dict[str, type[BaseAgent]]] = None,
    ):
        self.repository = repository
        self.audit_service = audit_service
        self.config = config or get_config()
        self.agent_registry = agent_registry or AGENT_REGISTRY
        self.scheduler = scheduler or AsyncIOScheduler(timezone=self.config.scheduler_timezone)

    def register_jobs(self) -> None:
        """Add (or replace) the daily job of every agent type."""
        for agent_type, crontab in self.config.get_agent_crons().items():
            self.scheduler.add_job(
                self.run_for_all_clinics,
                CronTrigger.from_crontab(crontab, timezone=self.config.scheduler_timezone),
                args=[agent_type],
                id=f"daily_{agent_type}_agent",
                name=f"Daily {agent_type} agent run",
                replace_existing=True,
                coalesce=True,
                max_instances=1,
            )
            logger.info("agent_job_registered", agent_type=agent_type, crontab=crontab)

    def start(self) -> None:
        self.register_jobs()
        self.scheduler.start()
        logger.info("agent_scheduler_started", jobs=len(self.scheduler.get_jobs()))

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("agent_scheduler_stopped")

    async def run_for_all_clinics(self, agent_type: str) -> list[AgentResult]:
        """
        Run one agent type for every clinic, sequentially.

        Args:
            agent_type: Key in the agent registry

        Returns:
            One result per clinic, failed ones included
        """
        logger.info("scheduled_agent_run_started", agent_type=agent_type)
        agent_cls = self.agent_registry[agent_type]

        try:
            clinics = await self.repository.get_all_clinics()
        except Exception as e:
            logger.error("scheduled_agent_run_aborted", agent_type=agent_type, error=str(e))
            return []

        results = []
        for clinic in clinics:
            agent = agent_cls(self.repository, config=self.config)
            result = await agent.execute(
                clinic.id, trigger=AgentTrigger.SCHEDULED, audit_service=self.audit_service
            )
            if not result.is_successful():
                logger.error(
                    "scheduled_agent_run_failed",
                    agent_type=agent_type,
                    clinic_id=clinic.id,
                    error=result.error,
                )
            results.append(result)

        logger.info(
            "scheduled_agent_run_completed",
            agent_type=agent_type,
            clinics=len(clinics),
            failed=sum(1 for r in results if not r.is_successful()),
        )
        return results
