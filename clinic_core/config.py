"""
Platform Configuration Management

Centralizes all configuration for the clinic agents platform.
Supports multiple environments (local, dev, prod) loaded from the environment
or a .env file.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Supported deployment environments."""

    LOCAL = "local"
    DEV = "dev"
    PROD = "prod"


class ClinicPlatformConfig(BaseSettings):
    """
    Platform-wide configuration settings.

    Loads from environment variables with .env file support.
    Agent business thresholds live here so they can be tuned per deployment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Environment = Field(default=Environment.LOCAL)

    # Clinic database
    mongo_db_url: str = Field(default="mongodb://localhost:27017")
    mongo_db_name: str = Field(default="clinic_agents")
    repository_connect_attempts: int = Field(default=5, ge=1)

    # Logging
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)

    # Appointment Agent
    weekly_slot_capacity: int = Field(default=40, description="8 slots per day, 5 days")
    good_availability_threshold: int = Field(default=10)

    # Revenue Agent
    unpaid_escalation_count: int = Field(default=5)

    # Inventory Agent
    low_stock_threshold: int = Field(default=5)
    critical_low_stock_count: int = Field(default=3)
    reorder_quantity: int = Field(default=100)

    # Agent Execution
    agent_next_run_hours: int = Field(default=24)
    enable_audit_logging: bool = Field(default=True)

    # Daily scheduler (crontab expressions)
    enable_scheduler: bool = Field(default=True)
    scheduler_timezone: str = Field(default="UTC")
    appointment_agent_cron: str = Field(default="0 7 * * *")
    revenue_agent_cron: str = Field(default="5 7 * * *")
    case_agent_cron: str = Field(default="10 7 * * *")
    inventory_agent_cron: str = Field(default="15 7 * * *")

    # CORS Configuration
    allowed_origins: str = Field(default="http://localhost:3000,http://localhost:8000")

    @field_validator(
        "weekly_slot_capacity",
        "low_stock_threshold",
        "reorder_quantity",
        "agent_next_run_hours",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Capacities, thresholds and quantities must be positive."""
        if v <= 0:
            raise ValueError("value must be greater than zero")
        return v

    @field_validator(
        "good_availability_threshold",
        "unpaid_escalation_count",
        "critical_low_stock_count",
    )
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        """Recommendation cut-offs cannot be negative."""
        if v < 0:
            raise ValueError("value must not be negative")
        return v

    @field_validator(
        "appointment_agent_cron",
        "revenue_agent_cron",
        "case_agent_cron",
        "inventory_agent_cron",
    )
    @classmethod
    def validate_crontab(cls, v: str) -> str:
        """Ensure schedule strings are five-field crontab expressions."""
        if len(v.split()) != 5:
            raise ValueError(f"Invalid crontab expression: {v!r}")
        return v.strip()

    def get_allowed_origins_list(self) -> list[str]:
        """Parse CORS allowed origins into a list."""
        if self.environment == Environment.LOCAL:
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",")]

    def get_agent_crons(self) -> dict[str, str]:
        """Crontab expression per agent type, in daily trigger order."""
        return {
            "appointment": self.appointment_agent_cron,
            "revenue": self.revenue_agent_cron,
            "case": self.case_agent_cron,
            "inventory": self.inventory_agent_cron,
        }

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PROD

    @property
    def is_local(self) -> bool:
        """Check if running in local development environment."""
        return self.environment == Environment.LOCAL


@lru_cache()
def get_config() -> ClinicPlatformConfig:
    """
    Get cached platform configuration.

    Uses lru_cache to ensure config is loaded only once.
    """
    return ClinicPlatformConfig()
