"""
Clinic Agents

Rule-based agents operating on one clinic's data.
"""
