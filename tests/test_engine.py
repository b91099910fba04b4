from __future__ import annotations

from datetime import date

import pytest

from index_cleaner.config import Rule
from index_cleaner.engine import RetentionEngine
from index_cleaner.exceptions import DeleteError
from index_cleaner.models import DeletionOutcome, EventKind, IndexRef


def never_called(name: str) -> None:
    raise AssertionError(f"delete_fn must not be called in dry-run (got {name})")


class Recorder:
    def __init__(self, failing=()):
        self.calls = []
        self.failing = set(failing)

    def __call__(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failing:
            raise DeleteError(name, "HTTP 503")


def test_selects_only_old_indices(log_indices, today):
    rec = Recorder()
    res = RetentionEngine(today=today).run(
        "os-logs", log_indices, [Rule(index_pattern="logs-*", age_threshold=30)], dry_run=False, delete_fn=rec
    )
    assert res.deletions == [DeletionOutcome("logs-2023.01.01", 1024, True)]
    assert rec.calls == ["logs-2023.01.01"]
    assert res.total_deleted_bytes == 1024
    assert res.total_remaining_bytes == 2048 + 512
    assert res.failure_count == 0
    assert res.summary_message == (
        "Cleanup finished for os-logs service: 1KiB data has been deleted. (Remaining data size: 2KiB)"
    )


def test_protected_indices_are_never_deleted(today):
    indices = [IndexRef(".kibana-2020.01.01", 10), IndexRef("app-2020.01.01", 20)]
    events = []
    res = RetentionEngine(today=today, on_event=events.append).run(
        "svc", indices, [Rule(index_pattern="*", age_threshold=1)], dry_run=True
    )
    assert res.deleted_names == ["app-2020.01.01"]
    assert [e.kind for e in events if e.index_name == ".kibana-2020.01.01"] == [EventKind.skipped_protected]


def test_first_matching_rule_wins(today):
    indices = [IndexRef("logs-app-2023.01.01", 100)]
    rules = [
        Rule(index_pattern="logs-*", age_threshold=30),
        Rule(index_pattern="logs-app-*", age_threshold=1),
    ]
    rec = Recorder()
    res = RetentionEngine(today=today).run("svc", indices, rules, dry_run=False, delete_fn=rec)
    assert res.deleted_names == ["logs-app-2023.01.01"]
    assert rec.calls == ["logs-app-2023.01.01"]
    assert res.total_deleted_bytes == 100
    assert EventKind.skipped_duplicate in [e.kind for e in res.events]


def test_index_not_selected_stays_open_for_later_rules(today):
    indices = [IndexRef("logs-app-2024.06.10", 100)]
    rules = [
        Rule(index_pattern="logs-*", age_threshold=30),
        Rule(index_pattern="logs-app-*", age_threshold=1),
    ]
    res = RetentionEngine(today=today).run("svc", indices, rules, dry_run=True)
    assert res.deleted_names == ["logs-app-2024.06.10"]


def test_custom_date_pattern_width(today):
    indices = [IndexRef("audit-2023-11", 10), IndexRef("audit-2024-06", 20), IndexRef("daily-20240101", 30)]
    rules = [
        Rule(index_pattern="audit-*", age_threshold=90, date_pattern="%Y-%m"),
        Rule(index_pattern="daily-*", age_threshold=30, date_pattern="%Y%m%d"),
    ]
    res = RetentionEngine(today=today).run("svc", indices, rules, dry_run=True)
    assert res.deleted_names == ["audit-2023-11", "daily-20240101"]
    assert res.skipped == []


def test_unparseable_date_is_recorded_and_run_continues(today):
    indices = [IndexRef("logs-current", 5), IndexRef("logs-2023.01.01", 7)]
    events = []
    res = RetentionEngine(today=today, on_event=events.append).run(
        "svc", indices, [Rule(index_pattern="logs-*", age_threshold=30)], dry_run=True
    )
    assert res.deleted_names == ["logs-2023.01.01"]
    assert [name for name, _ in res.skipped] == ["logs-current"]
    assert res.total_deleted_bytes == 7
    assert res.total_remaining_bytes == 5
    assert res.failure_count == 0
    assert EventKind.date_parse_failed in [e.kind for e in events]


def test_failed_delete_is_counted_but_marked(today):
    indices = [IndexRef("logs-2023.01.01", 1000), IndexRef("logs-2023.02.01", 500)]
    rec = Recorder(failing={"logs-2023.01.01"})
    res = RetentionEngine(today=today).run(
        "svc", indices, [Rule(index_pattern="logs-*", age_threshold=30)], dry_run=False, delete_fn=rec
    )
    assert res.deletions == [
        DeletionOutcome("logs-2023.01.01", 1000, False),
        DeletionOutcome("logs-2023.02.01", 500, True),
    ]
    assert res.failure_count == 1
    assert res.total_deleted_bytes == 1500
    assert res.total_remaining_bytes == 0
    assert rec.calls == ["logs-2023.01.01", "logs-2023.02.01"]


def test_failed_delete_is_not_retried_by_later_rules(today):
    indices = [IndexRef("logs-2023.01.01", 1000)]
    rules = [Rule(index_pattern="logs-*", age_threshold=30), Rule(index_pattern="*", age_threshold=1)]
    rec = Recorder(failing={"logs-2023.01.01"})
    res = RetentionEngine(today=today).run("svc", indices, rules, dry_run=False, delete_fn=rec)
    assert rec.calls == ["logs-2023.01.01"]
    assert len(res.deletions) == 1


def test_dry_run_matches_real_run_accounting(today):
    indices = [
        IndexRef("logs-2023.01.01", 1024),
        IndexRef("logs-2024.06.14", 10),
        IndexRef("metrics-2022.01.01", 4096),
    ]
    rules = [Rule(index_pattern="logs-*", age_threshold=30), Rule(index_pattern="metrics-*", age_threshold=365)]
    dry = RetentionEngine(today=today).run("svc", indices, rules, dry_run=True, delete_fn=never_called)
    real = RetentionEngine(today=today).run("svc", indices, rules, dry_run=False, delete_fn=Recorder())
    assert dry.deletions == real.deletions
    assert all(d.succeeded for d in dry.deletions)
    assert dry.total_deleted_bytes == real.total_deleted_bytes == 1024 + 4096
    assert dry.total_remaining_bytes == real.total_remaining_bytes == 10


def test_threshold_is_strictly_greater(today):
    indices = [IndexRef("logs-2024.05.16", 1), IndexRef("logs-2024.05.15", 2)]
    res = RetentionEngine(today=today).run(
        "svc", indices, [Rule(index_pattern="logs-*", age_threshold=30)], dry_run=True
    )
    assert res.deleted_names == ["logs-2024.05.15"]


def test_no_rules_or_indices(today):
    res = RetentionEngine(today=today).run("svc", [], [], dry_run=True)
    assert res.deletions == []
    assert res.total_deleted_bytes == 0
    assert res.total_remaining_bytes == 0
    assert "0B data has been deleted" in res.summary_message


def test_delete_fn_required_outside_dry_run(today):
    with pytest.raises(ValueError):
        RetentionEngine(today=today).run("svc", [], [], dry_run=False)


def test_default_reference_date_is_today():
    assert RetentionEngine().today == RetentionEngine(today=None).today
    assert isinstance(RetentionEngine().today, date)


def test_unparseable_index_recorded_once_across_rules(today):
    events = []
    rules = [Rule(index_pattern="logs-*", age_threshold=30), Rule(index_pattern="*", age_threshold=7)]
    res = RetentionEngine(today=today, on_event=events.append).run(
        "svc", [IndexRef("logs-current", 5)], rules, dry_run=True
    )
    assert [name for name, _ in res.skipped] == ["logs-current"]
    assert [e.kind for e in events] == [EventKind.date_parse_failed]
    assert res.deletions == []
