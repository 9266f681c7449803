#!/usr/bin/env python3
"""
Readiness Scoring - deterministic drink-readiness estimate for a bottle.

Pure function of wine facts, an optional structural profile and the current
year. It never raises: inputs it cannot use degrade to the Unknown result.

Bands by style (age = current_year - vintage, never negative):
- Sparkling: <1 -> 80 InWindow, <=5 -> 85 InWindow, else 60 PastPeak
- White/Rose: <1 -> 75 InWindow, <=3 -> 85 Peak, <=7 -> 70 InWindow, else 55 PastPeak
- Red: aging tier thresholds decide TooYoung/Approaching/Peak/InWindow/PastPeak
"""

import datetime
from typing import Optional, Tuple

from core.readiness.aging import TIER_THRESHOLDS, classify_aging_potential
from core.readiness.models import (
    Confidence,
    ReadinessStatus,
    ScoringResult,
    StructureProfile,
    WineColor,
    WineFacts,
)

MIN_VINTAGE = 1900
UNKNOWN_SCORE = 50
MIN_WINDOW_SPAN = 5

# (age predicate, score, status, window length in years, reason)
SPARKLING_BANDS = (
    (lambda age: age < 1, 80, ReadinessStatus.IN_WINDOW, 5, 'Sparkling wines are best enjoyed young'),
    (lambda age: age <= 5, 85, ReadinessStatus.IN_WINDOW, 5, 'Still within optimal drinking window'),
    (lambda age: True, 60, ReadinessStatus.PAST_PEAK, 5, 'May have lost freshness'),
)

WHITE_ROSE_BANDS = (
    (lambda age: age < 1, 75, ReadinessStatus.IN_WINDOW, 3, 'Typically ready soon after release'),
    (lambda age: age <= 3, 85, ReadinessStatus.PEAK, 3, 'At peak freshness'),
    (lambda age: age <= 7, 70, ReadinessStatus.IN_WINDOW, 7, 'Still drinking well'),
    (lambda age: True, 55, ReadinessStatus.PAST_PEAK, 7, 'May have oxidized'),
)


def current_year() -> int:
    return datetime.date.today().year


def unknown_result(reason: str) -> ScoringResult:
    return ScoringResult(
        score=UNKNOWN_SCORE,
        status=ReadinessStatus.UNKNOWN,
        confidence=Confidence.LOW,
        reasons=(reason,),
    )


def _score_banded(vintage: int, age: int, bands) -> Tuple[int, ReadinessStatus, int, int, str]:
    for matches, score, status, window_years, reason in bands:
        if matches(age):
            return score, status, vintage, vintage + window_years, reason
    raise AssertionError("band table must end with a catch-all")


def _score_red(
    wine: WineFacts,
    profile: Optional[StructureProfile],
    vintage: int,
    age: int
) -> ScoringResult:
    tier, confidence, reasons = classify_aging_potential(wine, profile)
    t = TIER_THRESHOLDS[tier]

    if age < t.hold_until:
        score, status, reason = 40, ReadinessStatus.TOO_YOUNG, 'Still developing, needs more time'
    elif age < t.peak_start:
        score, status, reason = 65, ReadinessStatus.APPROACHING, 'Approaching drinking window'
    elif age <= t.peak_end:
        score, status, reason = 90, ReadinessStatus.PEAK, 'At peak maturity'
    elif age <= t.max_age:
        score, status, reason = 75, ReadinessStatus.IN_WINDOW, 'Still within drinking window'
    else:
        score, status, reason = 50, ReadinessStatus.PAST_PEAK, 'May be past prime'

    reasons.append(reason)
    return ScoringResult(
        score=score,
        status=status,
        confidence=confidence,
        window_start=vintage + t.hold_until,
        window_end=vintage + t.max_age,
        reasons=tuple(reasons),
        aging_potential=tier,
    )


def _clamp_window(result: ScoringResult) -> ScoringResult:
    start, end = result.window_start, result.window_end
    if start is None or end is None or start <= end:
        return result
    return ScoringResult(
        score=result.score,
        status=result.status,
        confidence=Confidence.LOW,
        window_start=start,
        window_end=start + MIN_WINDOW_SPAN,
        reasons=result.reasons + ('Drink window adjusted for consistency',),
        aging_potential=result.aging_potential,
    )


def score_readiness(
    wine: WineFacts,
    profile: Optional[StructureProfile] = None,
    year: Optional[int] = None
) -> ScoringResult:
    """Compute the readiness score, status and drink window for a bottle.

    Args:
        wine: Normalized facts of the bottle's wine
        profile: Optional structural profile (only used for reds)
        year: The "current year"; read from the clock once if omitted.
            Batch callers pass one value for the whole run.

    Returns:
        ScoringResult; status Unknown when the vintage is missing or implausible
    """
    if year is None:
        year = current_year()

    vintage = wine.vintage
    if vintage is None:
        return unknown_result('Invalid or missing vintage: no vintage recorded')
    if not isinstance(vintage, int) or vintage < MIN_VINTAGE or vintage > year + 1:
        return unknown_result(f'Invalid or missing vintage: {vintage} is outside {MIN_VINTAGE}-{year + 1}')

    age = max(0, year - vintage)

    if wine.color is WineColor.SPARKLING:
        score, status, start, end, reason = _score_banded(vintage, age, SPARKLING_BANDS)
        result = ScoringResult(score, status, Confidence.HIGH, start, end, (reason,))
    elif wine.color in (WineColor.WHITE, WineColor.ROSE):
        score, status, start, end, reason = _score_banded(vintage, age, WHITE_ROSE_BANDS)
        result = ScoringResult(score, status, Confidence.MEDIUM, start, end, (reason,))
    else:
        result = _score_red(wine, profile, vintage, age)

    return _clamp_window(result)

