"""
Shared Services Module

Common services used across the platform: clock and identifier providers.
"""

from .clock import Clock, IdGenerator, UUIDIdGenerator, as_utc, parse_timestamp, utc_now

__all__ = [
    "Clock",
    "IdGenerator",
    "UUIDIdGenerator",
    "as_utc",
    "parse_timestamp",
    "utc_now",
]
