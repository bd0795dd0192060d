"""
Request Dependencies

FastAPI dependencies resolving the shared repository, audit service,
platform config, clock and id generator from application state.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from ..agent_orchestration.audit import AgentAuditService
from ..clinic_data.repository import ClinicRepository
from ..config import ClinicPlatformConfig, get_config
from ..shared_services.clock import Clock, IdGenerator, UUIDIdGenerator, utc_now


def get_repository(request: Request) -> ClinicRepository:
    """Clinic repository created at startup."""
    repository = getattr(request.app.state, "repository", None)
    if repository is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Clinic database not initialized",
        )
    return repository


def get_audit_service(request: Request) -> Optional[AgentAuditService]:
    """Audit service, or None when audit logging is not configured."""
    return getattr(request.app.state, "audit_service", None)


def get_platform_config(request: Request) -> ClinicPlatformConfig:
    """Config the app was created with, falling back to the cached settings."""
    return getattr(request.app.state, "config", None) or get_config()


def get_clock() -> Clock:
    return utc_now


def get_id_generator() -> IdGenerator:
    return UUIDIdGenerator()


class AgentRuntime:
    """Collaborators handed to every agent built for a request."""

    def __init__(
        self,
        repository: ClinicRepository = Depends(get_repository),
        audit_service: Optional[AgentAuditService] = Depends(get_audit_service),
        config: ClinicPlatformConfig = Depends(get_platform_config),
        clock: Clock = Depends(get_clock),
        id_generator: IdGenerator = Depends(get_id_generator),
    ):
        self.repository = repository
        self.audit_service = audit_service
        self.config = config
        self.clock = clock
        self.id_generator = id_generator
