from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Callable, Optional, Sequence, Set, cast

from .config import Rule
from .dates import age_days, extract_date_token
from .exceptions import DateParseError, DeleteError
from .logger import get_logger, log_extra
from .models import DeletionOutcome, EventKind, IndexRef, RetentionEvent, ServiceRunResult
from .patterns import match_indices
from .sizes import format_size

log = get_logger(__name__)

PROTECTED_PREFIX = "."

DeleteFn = Callable[[str], None]
EventHook = Callable[[RetentionEvent], None]


def utc_today() -> date:
    return datetime.now(tz=timezone.utc).date()


def summary_message(service: str, deleted_bytes: int, remaining_bytes: int) -> str:
    return (
        f"Cleanup finished for {service} service: {format_size(deleted_bytes)} data has been deleted. "
        f"(Remaining data size: {format_size(remaining_bytes)})"
    )


class RetentionEngine:
    """
    Applies ordered retention rules to the indices of one service.

    Rules are evaluated top to bottom and the first rule that selects an
    index claims it. Names starting with "." are never touched. Deletion
    failures and unparseable dates are recorded on the result; they never
    abort the run.
    """

    def __init__(self, today: Optional[date] = None, on_event: Optional[EventHook] = None) -> None:
        self.today = today or utc_today()
        self.on_event = on_event

    def _emit(self, result: ServiceRunResult, event: RetentionEvent) -> None:
        result.events.append(event)
        if self.on_event is not None:
            self.on_event(event)

    def run(
        self,
        service: str,
        indices: Sequence[IndexRef],
        rules: Sequence[Rule],
        dry_run: bool,
        delete_fn: Optional[DeleteFn] = None,
    ) -> ServiceRunResult:
        if not dry_run and delete_fn is None:
            raise ValueError("delete_fn is required unless dry_run is set")

        result = ServiceRunResult(service=service)
        full_size = sum(index.size_bytes for index in indices)
        claimed: Set[str] = set()
        undated: Set[str] = set()

        for rule in rules:
            for index in match_indices(indices, rule.index_pattern):
                name = index.name
                if name in claimed:
                    log.info(
                        "Index %s was already selected by an earlier rule",
                        name,
                        extra=log_extra(event="skipped_duplicate", service=service, index=name),
                    )
                    self._emit(result, RetentionEvent(EventKind.skipped_duplicate, service, name, index.size_bytes))
                    continue
                if name.startswith(PROTECTED_PREFIX):
                    log.info(
                        "Index %s is protected",
                        name,
                        extra=log_extra(event="skipped_protected", service=service, index=name),
                    )
                    self._emit(result, RetentionEvent(EventKind.skipped_protected, service, name, index.size_bytes))
                    continue

                try:
                    age = age_days(rule.date_pattern, extract_date_token(name, rule.date_pattern), self.today)
                except DateParseError as e:
                    if name in undated:
                        continue
                    undated.add(name)
                    log.warning(
                        "Skipping index %s: %s",
                        name,
                        e,
                        extra=log_extra(event="date_parse_failed", service=service, index=name),
                    )
                    result.skipped.append((name, str(e)))
                    self._emit(
                        result, RetentionEvent(EventKind.date_parse_failed, service, name, index.size_bytes, str(e))
                    )
                    continue

                if age <= rule.age_threshold:
                    continue

                self._emit(
                    result,
                    RetentionEvent(EventKind.matched, service, name, index.size_bytes, f"age={age}d"),
                )
                claimed.add(name)
                result.total_deleted_bytes += index.size_bytes
                result.deletions.append(self._delete(result, index, dry_run, delete_fn))

        # a later rule may still have selected an index an earlier rule could not date
        result.skipped = [(name, reason) for name, reason in result.skipped if name not in claimed]
        result.total_remaining_bytes = full_size - result.total_deleted_bytes
        result.summary_message = summary_message(service, result.total_deleted_bytes, result.total_remaining_bytes)
        log.info("%s", result.summary_message, extra=log_extra(event="service_finished", service=service))
        return result

    def _delete(
        self,
        result: ServiceRunResult,
        index: IndexRef,
        dry_run: bool,
        delete_fn: Optional[DeleteFn],
    ) -> DeletionOutcome:
        service = result.service
        name = index.name
        if dry_run:
            log.info(
                "Deleting index %s with size %d bytes (dry-run)",
                name,
                index.size_bytes,
                extra=log_extra(event="dry_run_deleted", service=service, index=name, size=index.size_bytes),
            )
            self._emit(result, RetentionEvent(EventKind.dry_run_deleted, service, name, index.size_bytes))
            return DeletionOutcome(name, index.size_bytes, True)

        log.info(
            "Deleting index %s with size %d bytes",
            name,
            index.size_bytes,
            extra=log_extra(event="deleting", service=service, index=name, size=index.size_bytes),
        )
        try:
            cast(DeleteFn, delete_fn)(name)
        except DeleteError as e:
            log.warning("Delete failed: %s", e, extra=log_extra(event="delete_failed", service=service, index=name))
            result.failure_count += 1
            self._emit(result, RetentionEvent(EventKind.delete_failed, service, name, index.size_bytes, str(e)))
            return DeletionOutcome(name, index.size_bytes, False)
        self._emit(result, RetentionEvent(EventKind.deleted, service, name, index.size_bytes))
        return DeletionOutcome(name, index.size_bytes, True)
