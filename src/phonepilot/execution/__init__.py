"""
Action execution.

Runs a decoded action list step by step against the action host,
stopping at the first failure.
"""

from phonepilot.execution.engine import EngineState, ExecutionEngine

__all__ = ["EngineState", "ExecutionEngine"]
