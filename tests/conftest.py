from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Dict, List, Set

import pytest

from index_cleaner.exceptions import DeleteError, ListError
from index_cleaner.models import IndexRef

RULES_YAML = """
- service: os-logs
  rules:
    - index_pattern: "logs-*"
      age_threshold: 30
    - index_pattern: "audit-*"
      age_threshold: 90
      date_pattern: "%Y-%m"
  summary_reports:
    - pattern: "logs-*"
      name: "Application logs"
    - pattern: "metrics-*"
      name: "Metrics"
- service: os-search
  rules:
    - index_pattern: "*"
      age_threshold: 7
  summary_reports: []
"""


class FakeIndexService:
    """In-memory stand-in for the Aiven index endpoints."""

    def __init__(
        self,
        indexes: Dict[str, List[IndexRef]],
        failing_deletes: Set[str] | None = None,
        unreachable: Set[str] | None = None,
    ) -> None:
        self.indexes = indexes
        self.failing_deletes = failing_deletes or set()
        self.unreachable = unreachable or set()
        self.listed: List[str] = []
        self.deleted: List[tuple[str, str, str]] = []

    def list_indexes(self, project: str, service: str) -> List[IndexRef]:
        self.listed.append(service)
        if service in self.unreachable:
            raise ListError(service, "connection refused")
        return list(self.indexes.get(service, []))

    def delete_index(self, project: str, service: str, index_name: str) -> None:
        self.deleted.append((project, service, index_name))
        if index_name in self.failing_deletes:
            raise DeleteError(index_name, "HTTP 500")


class FakeNotifier:
    def __init__(self, ok: bool = True) -> None:
        self.ok = ok
        self.payloads: list = []

    def send(self, payload) -> bool:
        self.payloads.append(payload)
        return self.ok


@pytest.fixture()
def today() -> date:
    return date(2024, 6, 15)


@pytest.fixture()
def rules_path(tmp_path: Path) -> Path:
    path = tmp_path / "rules.yaml"
    path.write_text(RULES_YAML.strip(), encoding="utf-8")
    return path


@pytest.fixture()
def log_indices() -> List[IndexRef]:
    return [
        IndexRef("logs-2023.01.01", 1024),
        IndexRef("logs-2024.06.01", 2048),
        IndexRef(".kibana", 512),
    ]


@pytest.fixture()
def fake_service() -> FakeIndexService:
    return FakeIndexService(
        {
            "os-logs": [
                IndexRef("logs-2023.01.01", 1024),
                IndexRef("logs-2024.06.01", 2048),
                IndexRef("audit-2023-11", 4096),
                IndexRef("metrics-2024.06.14", 100),
                IndexRef(".kibana_1", 512),
            ],
            "os-search": [
                IndexRef("products-2024.06.01", 300),
                IndexRef("products-2024.06.14", 200),
            ],
        }
    )


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for key in (
        "CLEANUP_DRY_RUN",
        "AIVEN_API_TOKEN",
        "AIVEN_PROJECT",
        "AIVEN_API_URL",
        "RULES_FILE",
        "NOTIFICATION_WEBHOOK_URL",
        "NOTIFICATION_TITLE_LINK",
        "LOG_FORMAT",
    ):
        monkeypatch.delenv(key, raising=False)
    # keep a developer's .env out of the tests
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def fake_notifier() -> FakeNotifier:
    return FakeNotifier()
