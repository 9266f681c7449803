#!/usr/bin/env python3
"""
Readiness Models - Closed types for readiness scoring inputs and results.

The scoring function only ever sees these types. Raw database values
(free-text colors, JSON profiles) are normalized here so the scoring
branches stay exhaustive.
"""

import math
import unicodedata
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Tuple


READINESS_VERSION = 2


class WineColor(str, Enum):
    RED = "red"
    WHITE = "white"
    ROSE = "rose"
    SPARKLING = "sparkling"

    @classmethod
    def parse(cls, value: Optional[str]) -> "WineColor":
        """Map a free-text color/style to a WineColor.

        Matching is case- and accent-insensitive and by substring, so
        "Sparkling Rosé" is sparkling and "Dry White" is white. Anything
        unrecognized is treated as red.
        """
        if not value:
            return cls.RED
        text = unicodedata.normalize('NFKD', str(value))
        text = ''.join(c for c in text if not unicodedata.combining(c)).lower()

        # Sparkling wins over white/rose: a sparkling rose ages like sparkling
        if cls.SPARKLING.value in text:
            return cls.SPARKLING
        if cls.WHITE.value in text:
            return cls.WHITE
        if cls.ROSE.value in text:
            return cls.ROSE
        return cls.RED


class ReadinessStatus(str, Enum):
    TOO_YOUNG = "TooYoung"
    APPROACHING = "Approaching"
    IN_WINDOW = "InWindow"
    PEAK = "Peak"
    PAST_PEAK = "PastPeak"
    UNKNOWN = "Unknown"


class Confidence(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AgingPotential(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class BackfillMode(str, Enum):
    MISSING_ONLY = "missing_only"
    STALE_OR_MISSING = "stale_or_missing"
    FORCE_ALL = "force_all"


PROFILE_DEFAULTS = {
    'body': 3,
    'tannin': 3,
    'acidity': 3,
    'oak': 2,
    'power': 3,
}


def _bounded(value: Any, default: int, scale: int = 5) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return default
    value = int(round(value))
    if scale == 10:
        # 1-10 folds onto 1-5 in pairs: 1-2 -> 1, ..., 9-10 -> 5
        value = (max(1, min(10, value)) + 1) // 2
    return max(1, min(5, value))


@dataclass(frozen=True)
class StructureProfile:
    """Structural profile of a wine, each axis on a 1-5 scale."""
    body: int = 3
    tannin: int = 3
    acidity: int = 3
    oak: int = 2
    power: int = 3

    @property
    def structure_score(self) -> int:
        return self.body + self.tannin + self.acidity + self.oak + self.power

    @classmethod
    def from_mapping(cls, raw: Optional[Mapping[str, Any]]) -> Optional["StructureProfile"]:
        """Build a profile from the AI-authored JSON blob stored on a wine.

        Returns None when there is no usable profile at all. Missing or
        non-numeric axes fall back to PROFILE_DEFAULTS. Power is always read on
        the 1-10 scale the profile generator emits.
        """
        if not isinstance(raw, Mapping):
            return None
        if not any(key in raw for key in PROFILE_DEFAULTS):
            return None

        return cls(
            body=_bounded(raw.get('body'), PROFILE_DEFAULTS['body']),
            tannin=_bounded(raw.get('tannin'), PROFILE_DEFAULTS['tannin']),
            acidity=_bounded(raw.get('acidity'), PROFILE_DEFAULTS['acidity']),
            oak=_bounded(raw.get('oak'), PROFILE_DEFAULTS['oak']),
            power=_bounded(raw.get('power'), PROFILE_DEFAULTS['power'], scale=10),
        )


@dataclass(frozen=True)
class WineFacts:
    """Read-only facts about a wine that drive scoring."""
    vintage: Optional[int]
    color: WineColor = WineColor.RED
    region: str = ""
    country: str = ""
    grapes: Tuple[str, ...] = ()
    name: str = ""

    @classmethod
    def build(
        cls,
        vintage: Any,
        color: Optional[str],
        region: Optional[str] = None,
        country: Optional[str] = None,
        grapes: Any = None,
        name: Optional[str] = None
    ) -> "WineFacts":
        if isinstance(grapes, str):
            grape_list: Sequence[str] = [g.strip() for g in grapes.split(',') if g.strip()]
        elif isinstance(grapes, (list, tuple)):
            grape_list = [str(g) for g in grapes if g]
        else:
            grape_list = []

        if isinstance(vintage, bool):
            vintage = None
        elif isinstance(vintage, str):
            vintage = int(vintage) if vintage.strip().isdigit() else None
        elif isinstance(vintage, float):
            vintage = int(vintage)

        return cls(
            vintage=vintage,
            color=WineColor.parse(color),
            region=region or "",
            country=country or "",
            grapes=tuple(grape_list),
            name=name or "",
        )

    @classmethod
    def from_row(cls, wine: Any) -> "WineFacts":
        """Build facts from a wine row (or anything with the same attributes)."""
        return cls.build(
            vintage=getattr(wine, 'vintage', None),
            color=getattr(wine, 'color', None),
            region=getattr(wine, 'region', None),
            country=getattr(wine, 'country', None),
            grapes=getattr(wine, 'grapes', None),
            name=getattr(wine, 'wine_name', None),
        )


@dataclass(frozen=True)
class ScoringResult:
    """Deterministic readiness estimate for a single bottle."""
    score: int
    status: ReadinessStatus
    confidence: Confidence
    window_start: Optional[int] = None
    window_end: Optional[int] = None
    reasons: Tuple[str, ...] = field(default_factory=tuple)
    aging_potential: Optional[AgingPotential] = None

    def as_bottle_fields(self) -> dict:
        """Readiness columns as written onto a bottle row."""
        return {
            'readiness_score': self.score,
            'readiness_status': self.status.value,
            'drink_window_start': self.window_start,
            'drink_window_end': self.window_end,
            'readiness_confidence': self.confidence.value,
            'readiness_reasons': list(self.reasons),
        }
