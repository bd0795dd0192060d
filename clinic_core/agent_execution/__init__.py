"""Agent execution: HTTP endpoints, agent chains and the daily scheduler."""

from .chains import BOOKING_CHAIN_ORDER, RUN_ALL_ORDER, build_agent, run_all_agents, run_booking_chain
from .scheduler import AgentScheduler

__all__ = [
    "AgentScheduler",
    "BOOKING_CHAIN_ORDER",
    "RUN_ALL_ORDER",
    "build_agent",
    "run_all_agents",
    "run_booking_chain",
]
