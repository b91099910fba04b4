from __future__ import annotations

import fnmatch
import re
from functools import lru_cache
from typing import Iterable, List, Pattern

from .exceptions import ConfigError
from .models import IndexRef


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> Pattern[str]:
    """Translate a shell glob into a regex anchored over the whole index name."""
    if not isinstance(pattern, str) or not pattern:
        raise ConfigError(f"invalid index pattern: {pattern!r}")
    try:
        return re.compile(fnmatch.translate(pattern))
    except re.error as e:
        raise ConfigError(f"invalid index pattern {pattern!r}: {e}") from e


def match_indices(indices: Iterable[IndexRef], pattern: str) -> List[IndexRef]:
    rx = compile_pattern(pattern)
    return [index for index in indices if rx.match(index.name)]
