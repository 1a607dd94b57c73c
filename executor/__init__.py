"""
Executor Module

Dispatches accepted decisions to the chain collaborator and tracks them
to a terminal outcome, feeding failures back into the risk gate.
"""

from .tracker import ExecutionTracker, TrackedExecution

__all__ = ["ExecutionTracker", "TrackedExecution"]
