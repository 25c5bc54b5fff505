"""Synced-operation orchestration components."""

from .locks import KeyedLocks
from .orchestrator import SyncOptions, SyncOrchestrator
from .outcome import Outcome, OutcomeStatus

__all__ = [
    "KeyedLocks",
    "Outcome",
    "OutcomeStatus",
    "SyncOptions",
    "SyncOrchestrator",
]
