"""
Orchestrators for RoadSafe.

This module contains the orchestrator that coordinates
the flow between ports and adapters.
"""
from .orchestrator import Orchestrator

__all__ = ["Orchestrator"]
