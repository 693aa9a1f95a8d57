"""Report and match alert stores."""

from petmatch.store.base import MatchAlertStore, ReportStore, check_transition
from petmatch.store.memory import InMemoryMatchAlertStore, InMemoryReportStore

__all__ = [
    "MatchAlertStore",
    "ReportStore",
    "check_transition",
    "InMemoryMatchAlertStore",
    "InMemoryReportStore",
]
