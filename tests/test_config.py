"""Tests for platform configuration."""

import pytest
from pydantic import ValidationError

from clinic_core.config import ClinicPlatformConfig, Environment


def test_defaults():
    config = ClinicPlatformConfig(_env_file=None)

    assert config.weekly_slot_capacity == 40
    assert config.good_availability_threshold == 10
    assert config.low_stock_threshold == 5
    assert config.critical_low_stock_count == 3
    assert config.reorder_quantity == 100
    assert config.unpaid_escalation_count == 5
    assert config.agent_next_run_hours == 24


def test_agent_crons():
    config = ClinicPlatformConfig(_env_file=None)

    assert config.get_agent_crons() == {
        "appointment": "0 7 * * *",
        "revenue": "5 7 * * *",
        "case": "10 7 * * *",
        "inventory": "15 7 * * *",
    }


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("WEEKLY_SLOT_CAPACITY", "60")
    monkeypatch.setenv("LOW_STOCK_THRESHOLD", "8")

    config = ClinicPlatformConfig(_env_file=None)

    assert config.weekly_slot_capacity == 60
    assert config.low_stock_threshold == 8


def test_capacity_must_be_positive():
    with pytest.raises(ValidationError):
        ClinicPlatformConfig(_env_file=None, weekly_slot_capacity=0)


def test_invalid_crontab_rejected():
    with pytest.raises(ValidationError):
        ClinicPlatformConfig(_env_file=None, revenue_agent_cron="every morning")


def test_allowed_origins():
    local = ClinicPlatformConfig(_env_file=None, environment=Environment.LOCAL)
    prod = ClinicPlatformConfig(
        _env_file=None,
        environment=Environment.PROD,
        allowed_origins="https://app.example.com, https://admin.example.com",
    )

    assert local.get_allowed_origins_list() == ["*"]
    assert prod.get_allowed_origins_list() == ["https://app.example.com", "https://admin.example.com"]
    assert prod.is_production
