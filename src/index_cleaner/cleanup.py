from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Protocol, Sequence, Tuple

from .config import CleanerSettings, ServiceConfig, load_rules
from .engine import EventHook, RetentionEngine, utc_today
from .logger import get_logger
from .models import IndexRef, ServiceRunResult
from .outcome import NotificationPayload, aggregate
from .summary import summarize

log = get_logger(__name__)


class IndexService(Protocol):
    def list_indexes(self, project: str, service: str) -> List[IndexRef]: ...

    def delete_index(self, project: str, service: str, index_name: str) -> None: ...


class Notifier(Protocol):
    def send(self, payload: NotificationPayload) -> bool: ...


@dataclass
class CleanupReport:
    project: str
    dry_run: bool
    results: List[Tuple[str, ServiceRunResult]] = field(default_factory=list)
    payload: Optional[NotificationPayload] = None
    notified: bool = False

    @property
    def failure_count(self) -> int:
        return sum(r.failure_count for _, r in self.results)

    def to_dict(self) -> dict[str, object]:
        return {
            "project": self.project,
            "dry_run": self.dry_run,
            "failure_count": self.failure_count,
            "notified": self.notified,
            "services": [r.to_dict() for _, r in self.results],
        }


def cleanup_service(
    client: IndexService,
    project: str,
    service_cfg: ServiceConfig,
    dry_run: bool,
    today: Optional[date] = None,
    on_event: Optional[EventHook] = None,
) -> ServiceRunResult:
    """List, summarize, then apply rules for one service. ListError propagates."""
    name = service_cfg.service
    indices = client.list_indexes(project, name)
    report_rows = summarize(indices, service_cfg.summary_reports)

    def delete(index_name: str) -> None:
        client.delete_index(project, name, index_name)

    engine = RetentionEngine(today=today, on_event=on_event)
    result = engine.run(name, indices, service_cfg.rules, dry_run=dry_run, delete_fn=delete)
    result.report_rows = report_rows
    return result


def run_services(
    client: IndexService,
    project: str,
    services: Sequence[ServiceConfig],
    dry_run: bool,
    today: Optional[date] = None,
    on_event: Optional[EventHook] = None,
) -> List[Tuple[str, ServiceRunResult]]:
    today = today or utc_today()
    results: List[Tuple[str, ServiceRunResult]] = []
    for service_cfg in services:
        log.info("Processing service %s%s", service_cfg.service, " [dry-run]" if dry_run else "")
        results.append(
            (service_cfg.service, cleanup_service(client, project, service_cfg, dry_run, today, on_event))
        )
    return results


def run_cleanup(
    settings: CleanerSettings,
    client: Optional[IndexService] = None,
    notifier: Optional[Notifier] = None,
    today: Optional[date] = None,
    on_event: Optional[EventHook] = None,
) -> CleanupReport:
    """
    Run every configured service and, outside dry-run, send one notification.

    The rules file is loaded before any service is touched, so a ConfigError
    leaves the index service untouched.
    """
    services = load_rules(settings.rules_file)

    own_client = client is None
    if client is None:
        from .aiven_client import AivenClient

        client = AivenClient(settings.api_token, base_url=settings.api_url)
    try:
        results = run_services(client, settings.project, services, settings.dry_run, today, on_event)
    finally:
        if own_client:
            client.close()  # type: ignore[attr-defined]

    report = CleanupReport(project=settings.project, dry_run=settings.dry_run, results=results)
    report.payload = aggregate(results, project=settings.project, title_link=settings.title_link)

    if settings.notifications_enabled:
        own_notifier = notifier is None
        if notifier is None:
            from .notifier import WebhookNotifier

            notifier = WebhookNotifier(settings.webhook_url)
        try:
            report.notified = notifier.send(report.payload)
        finally:
            if own_notifier:
                notifier.close()  # type: ignore[attr-defined]
    return report
