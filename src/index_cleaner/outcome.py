"""Merge per-service results into one webhook notification."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .models import ServiceRunResult

OK_MARK = ":white_check_mark:"
FAIL_MARK = ":x:"
WARN_MARK = ":warning:"
NOTHING_FOUND = "Not found any old indices by pre-defined rules."


class NotificationColor(Enum):
    ok = "#2EB67D"
    alert = "#E01E5A"


@dataclass(frozen=True)
class NotificationPayload:
    color: NotificationColor
    title: str
    body: str
    title_link: Optional[str] = None

    def to_webhook_json(self) -> Dict[str, Any]:
        """Slack-compatible attachment envelope."""
        return {
            "attachments": [
                {
                    "color": self.color.value,
                    "text": self.body,
                    "title": self.title,
                    "title_link": self.title_link,
                }
            ]
        }


def _report_block(service: str, rows: Sequence[Tuple[str, str]]) -> str:
    lines = "\n".join(f"{name}: {size}" for name, size in rows)
    return f"Summary for {service} (pre-cleanup):\n{lines}\n"


def aggregate(
    results: Sequence[Tuple[str, ServiceRunResult]],
    project: str = "",
    title_link: Optional[str] = None,
) -> NotificationPayload:
    status_lines: List[str] = []
    detail_lines: List[str] = []
    report_blocks: List[str] = []
    has_failures = False

    for service, result in results:
        if result.failure_count > 0:
            has_failures = True
        mark = OK_MARK if result.failure_count == 0 else FAIL_MARK
        status_lines.append(f"{result.summary_message} - {mark}")

        for outcome in result.deletions:
            if outcome.succeeded:
                detail_lines.append(
                    f"{OK_MARK} - {outcome.index_name} ({service}) - size: {outcome.size_bytes} bytes"
                )
            else:
                detail_lines.append(f"{FAIL_MARK} - {outcome.index_name} ({service})")
        for name, reason in result.skipped:
            detail_lines.append(f"{WARN_MARK} - {name} ({service}) - skipped: {reason}")

        if result.report_rows:
            report_blocks.append(_report_block(service, result.report_rows))

    body = "\n".join(status_lines)
    if report_blocks:
        body += "\n\n" + "\n".join(report_blocks)
    if detail_lines:
        body += "\n\nDetails:\n\n" + "\n".join(detail_lines)
    else:
        body += "\n\n" + NOTHING_FOUND

    return NotificationPayload(
        color=NotificationColor.alert if has_failures else NotificationColor.ok,
        title=f"{project} - Opensearch index cleanup",
        body=body,
        title_link=title_link or None,
    )
