"""
Fallback Fertilizer Selector - rule-based prediction used when the ML backend
is unavailable or intentionally bypassed.

Rules are an explicit ordered table: the first crop group that contains the
crop wins, then the first branch in that group whose condition holds. The
last group matches every crop, so every input resolves to exactly one
catalog fertilizer.

Confidence is a fixed configured constant, not a computed quantity.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple, Any

from agricure.services.recommendation_rules import (
    RecommendationConfig,
    DEFAULT_RECOMMENDATION_CONFIG,
)

logger = logging.getLogger(__name__)

# Crop type ids (see data/fertilizer_catalog.json)
RICE = 0
WHEAT = 1
BARLEY = 3
BAJRA = 5
SUGARCANE = 10
COTTON = 11
MOONG = 13
ONION = 15

Condition = Callable[[float, float, float], bool]


@dataclass(frozen=True)
class FertilizerChoice:
    """A fertilizer prediction, from the ML backend or the fallback rules."""
    fertilizer: str
    confidence: float
    source: str = "fallback"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fertilizer": self.fertilizer,
            "confidence": self.confidence,
            "source": self.source,
        }


@dataclass(frozen=True)
class CropRule:
    """
    One crop group of the decision table.

    crop_ids=None matches any crop. branches are (rule_id, condition,
    fertilizer) evaluated in order; default applies when none match.
    """
    name: str
    crop_ids: Optional[FrozenSet[int]]
    branches: Tuple[Tuple[str, Condition, str], ...]
    default: str

    def matches(self, crop_type_id: Optional[int]) -> bool:
        return self.crop_ids is None or crop_type_id in self.crop_ids

    def resolve(self, n: float, p: float, k: float) -> Tuple[str, str]:
        """Return (rule_id, fertilizer) for the first branch that holds."""
        for rule_id, condition, fertilizer in self.branches:
            if condition(n, p, k):
                return rule_id, fertilizer
        return f"{self.name}:default", self.default


FALLBACK_RULES: List[CropRule] = [
    CropRule(
        name="rice_bajra",
        crop_ids=frozenset({RICE, BAJRA}),
        branches=(
            ("rice_bajra:n_lt_50", lambda n, p, k: n < 50, "Urea"),
            ("rice_bajra:p_lt_30", lambda n, p, k: p < 30, "DAP"),
        ),
        default="TSP",
    ),
    CropRule(
        name="wheat",
        crop_ids=frozenset({WHEAT}),
        branches=(
            ("wheat:p_lt_20", lambda n, p, k: p < 20, "DAP"),
            ("wheat:n_lt_30", lambda n, p, k: n < 30, "28-28"),
        ),
        default="20-20",
    ),
    CropRule(
        name="sugarcane",
        crop_ids=frozenset({SUGARCANE}),
        branches=(
            ("sugarcane:k_lt_30", lambda n, p, k: k < 30, "Potassium sulfate"),
            ("sugarcane:n_gt_100", lambda n, p, k: n > 100, "DAP"),
        ),
        default="14-35-14",
    ),
    CropRule(
        # Bajra is listed here too but is always claimed by rice_bajra first
        name="bajra_moong_onion",
        crop_ids=frozenset({BAJRA, MOONG, ONION}),
        branches=(
            ("bajra_moong_onion:p_gt_30", lambda n, p, k: p > 30, "14-14-14"),
            ("bajra_moong_onion:k_lt_20", lambda n, p, k: k < 20, "10-26-26"),
        ),
        default="TSP",
    ),
    CropRule(
        name="barley",
        crop_ids=frozenset({BARLEY}),
        branches=(),
        default="15-15-15",
    ),
    CropRule(
        name="cotton",
        crop_ids=frozenset({COTTON}),
        branches=(
            ("cotton:n_gt_80", lambda n, p, k: n > 80, "Urea"),
        ),
        default="DAP",
    ),
    CropRule(
        name="generic",
        crop_ids=None,
        branches=(
            ("generic:all_lt_20", lambda n, p, k: n < 20 and p < 20 and k < 20, "17-17-17"),
            ("generic:n_lt_15", lambda n, p, k: n < 15, "Urea"),
            ("generic:p_lt_15", lambda n, p, k: p < 15, "DAP"),
            ("generic:k_lt_15", lambda n, p, k: k < 15, "Potassium sulfate"),
        ),
        default="14-14-14",
    ),
]


def match_rule(
    crop_type_id: Optional[int],
    nitrogen: float,
    phosphorus: float,
    potassium: float,
    rules: Optional[List[CropRule]] = None,
) -> Tuple[str, str]:
    """
    Find the rule that fires for the inputs.

    Returns:
        Tuple of (rule_id, fertilizer name)
    """
    for crop_rule in rules or FALLBACK_RULES:
        if crop_rule.matches(crop_type_id):
            return crop_rule.resolve(nitrogen, phosphorus, potassium)
    # Unreachable with the default table, whose last group matches all crops
    return "generic:default", "14-14-14"


def select_fertilizer(
    crop_type_id: Optional[int],
    nitrogen: float,
    phosphorus: float,
    potassium: float,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> FertilizerChoice:
    """
    Pick a fertilizer with the fallback decision table.

    Args:
        crop_type_id: Crop type id; None or unknown ids use the generic rule
        nitrogen: Soil N in mg/kg
        phosphorus: Soil P in mg/kg
        potassium: Soil K in mg/kg
        config: Business constants (fixed fallback confidence)

    Returns:
        FertilizerChoice with source="fallback"
    """
    rule_id, fertilizer = match_rule(crop_type_id, nitrogen, phosphorus, potassium)
    logger.info(
        f"[Fallback] crop={crop_type_id} N={nitrogen} P={phosphorus} K={potassium} "
        f"-> {fertilizer} ({rule_id})"
    )
    return FertilizerChoice(
        fertilizer=fertilizer,
        confidence=config.fallback_confidence,
        source="fallback",
    )
