#!/usr/bin/env python3
"""
Eligibility - decides which fetched bottles still need a readiness pass.

Applied in memory after a page is fetched so the paging query stays a plain
id-ordered scan.
"""

from typing import Any, Iterable, List, Tuple

from core.readiness.models import BackfillMode


def is_missing_readiness(bottle: Any) -> bool:
    return (
        getattr(bottle, 'readiness_score', None) is None
        or getattr(bottle, 'readiness_status', None) is None
        or getattr(bottle, 'readiness_updated_at', None) is None
    )


def is_eligible(bottle: Any, mode: BackfillMode, current_version: int) -> bool:
    mode = BackfillMode(mode)
    if mode is BackfillMode.FORCE_ALL:
        return True
    if is_missing_readiness(bottle):
        return True
    if mode is BackfillMode.STALE_OR_MISSING:
        return getattr(bottle, 'readiness_version', None) != current_version
    return False


def partition_eligible(
    bottles: Iterable[Any],
    mode: BackfillMode,
    current_version: int
) -> Tuple[List[Any], List[Any]]:
    """Split bottles into (eligible, ineligible), preserving order."""
    eligible, ineligible = [], []
    for bottle in bottles:
        if is_eligible(bottle, mode, current_version):
            eligible.append(bottle)
        else:
            ineligible.append(bottle)
    return eligible, ineligible
