"""
Clinic Core

Platform core for the clinic agents service: configuration, clinic data,
agent orchestration and the HTTP gateway.
"""

__version__ = "0.1.0"
