#!/usr/bin/env python3
"""
Aging Potential - Tiering of red wines by how slowly they mature.

A structural profile gives a high-confidence tier. Without one we fall back
to a small region/grape keyword heuristic, which is deliberately coarse and
replaceable: only the tier thresholds below are load-bearing.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from core.readiness.models import AgingPotential, Confidence, StructureProfile, WineFacts


HIGH_STRUCTURE_MIN = 18
LOW_STRUCTURE_MAX = 12

AGE_WORTHY_REGIONS = ('bordeaux', 'barolo', 'barbaresco', 'brunello', 'rioja', 'hermitage')
AGE_WORTHY_GRAPES = ('cabernet', 'nebbiolo', 'syrah', 'tempranillo', 'mourvedre')
EARLY_DRINKING_GRAPES = ('pinot noir', 'gamay', 'dolcetto', 'grenache')


@dataclass(frozen=True)
class AgingThresholds:
    """Ages (years since vintage) that bound each drinking phase."""
    hold_until: int
    peak_start: int
    peak_end: int
    max_age: int


TIER_THRESHOLDS = {
    AgingPotential.HIGH: AgingThresholds(hold_until=4, peak_start=6, peak_end=15, max_age=25),
    AgingPotential.MEDIUM: AgingThresholds(hold_until=2, peak_start=3, peak_end=8, max_age=15),
    AgingPotential.LOW: AgingThresholds(hold_until=1, peak_start=2, peak_end=5, max_age=8),
}


def tier_from_profile(profile: StructureProfile) -> Tuple[AgingPotential, Confidence, str]:
    structure = profile.structure_score
    reason = (
        f"Structure score: {structure} (body {profile.body}, tannin {profile.tannin}, "
        f"acidity {profile.acidity}, oak {profile.oak}, power {profile.power})"
    )
    if structure >= HIGH_STRUCTURE_MIN:
        return AgingPotential.HIGH, Confidence.HIGH, reason
    if structure <= LOW_STRUCTURE_MAX:
        return AgingPotential.LOW, Confidence.HIGH, reason
    return AgingPotential.MEDIUM, Confidence.MEDIUM, reason


def tier_from_heuristics(wine: WineFacts) -> Tuple[AgingPotential, List[str]]:
    region = f"{wine.region} {wine.country}".lower()
    grapes = ' '.join(wine.grapes).lower()

    if any(r in region for r in AGE_WORTHY_REGIONS) or any(g in grapes for g in AGE_WORTHY_GRAPES):
        tier, reasons = AgingPotential.HIGH, ['Classic aging region/grape']
    elif any(g in grapes for g in EARLY_DRINKING_GRAPES):
        tier, reasons = AgingPotential.LOW, ['Typically enjoyed younger']
    else:
        tier, reasons = AgingPotential.MEDIUM, []

    reasons.append('No wine profile available (heuristic estimate)')
    return tier, reasons


def classify_aging_potential(
    wine: WineFacts,
    profile: Optional[StructureProfile]
) -> Tuple[AgingPotential, Confidence, List[str]]:
    """Derive the aging-potential tier for a red wine.

    Returns:
        Tuple of (tier, confidence, reasons)
    """
    if profile is not None:
        tier, confidence, reason = tier_from_profile(profile)
        return tier, confidence, [reason]

    tier, reasons = tier_from_heuristics(wine)
    return tier, Confidence.LOW, reasons
