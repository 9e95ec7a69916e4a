"""
Job Orchestration Service

Validates listing video requests, routes them to a render provider and
reports normalized job status.
"""

from .jobs import JobOrchestrator

__all__ = ["JobOrchestrator"]
