#!/usr/bin/env python3
"""
Readiness Module - deterministic drink-readiness scoring.

Public API:
- score_readiness: the scoring function
- partition_eligible / is_eligible: backfill eligibility filter
- ScoringResult and the closed enums used by both

Modules:
- models.py: Input/result types and enums
- aging.py: Aging-potential tiers for red wines
- scoring.py: Style bands and the scoring entry points
- eligibility.py: Per-mode eligibility checks
"""

from core.readiness.models import (
    READINESS_VERSION,
    AgingPotential,
    BackfillMode,
    Confidence,
    ReadinessStatus,
    ScoringResult,
    StructureProfile,
    WineColor,
    WineFacts,
)
from core.readiness.scoring import score_readiness
from core.readiness.eligibility import is_eligible, partition_eligible

__all__ = [
    'READINESS_VERSION',
    'AgingPotential',
    'BackfillMode',
    'Confidence',
    'ReadinessStatus',
    'ScoringResult',
    'StructureProfile',
    'WineColor',
    'WineFacts',
    'score_readiness',
    'is_eligible',
    'partition_eligible',
]
