"""Age based retention for OpenSearch indexes."""

from .config import CleanerSettings, Rule, ServiceConfig, SummaryReportSpec, load_rules, load_settings
from .engine import RetentionEngine
from .models import DeletionOutcome, EventKind, IndexRef, RetentionEvent, ServiceRunResult
from .outcome import NotificationColor, NotificationPayload, aggregate
from .sizes import format_size
from .summary import summarize

__version__ = "0.1.0"

__all__ = [
    "CleanerSettings",
    "DeletionOutcome",
    "EventKind",
    "IndexRef",
    "NotificationColor",
    "NotificationPayload",
    "RetentionEngine",
    "RetentionEvent",
    "Rule",
    "ServiceConfig",
    "ServiceRunResult",
    "SummaryReportSpec",
    "aggregate",
    "format_size",
    "load_rules",
    "load_settings",
    "summarize",
]
