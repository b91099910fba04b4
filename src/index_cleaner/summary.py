from __future__ import annotations

from typing import List, Sequence, Tuple

from .config import SummaryReportSpec
from .models import IndexRef
from .patterns import match_indices
from .sizes import format_size


def summarize(indices: Sequence[IndexRef], report_specs: Sequence[SummaryReportSpec]) -> List[Tuple[str, str]]:
    """One (name, formatted size) row per report spec, in declared order."""
    rows: List[Tuple[str, str]] = []
    for spec in report_specs:
        total = sum(index.size_bytes for index in match_indices(indices, spec.pattern))
        rows.append((spec.name, format_size(total)))
    return rows
