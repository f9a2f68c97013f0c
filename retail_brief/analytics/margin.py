"""
Weighted Margin Aggregator

Revenue-weighted average margin over the sales facts of one run.

Weighting by revenue keeps a few high-volume, low-price SKUs from masking the
margin of high-value items. The coverage percent states what share of period
revenue the average actually represents, so a figure built from a sliver of
sales is labelled as such rather than silently presented.
"""

import math
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Union

import structlog

from retail_brief.config import MarginSettings, get_settings
from retail_brief.facts.builder import require_collection, round_half_up
from retail_brief.facts.models import SalesFact

logger = structlog.get_logger(__name__)


class MarginConfidence(str, Enum):
    """Trust annotation on the weighted margin. Never blocks display."""
    HIGH = "high"
    PARTIAL = "partial"
    NONE = "none"


@dataclass(frozen=True)
class MarginResult:
    """Weighted margin summary, or an explicit unavailable result"""
    average_margin_percent: Optional[float]
    total_revenue: float
    revenue_with_margin: float
    total_margin_dollars: float
    sku_count_with_margin: int
    coverage_percent: int
    confidence: MarginConfidence
    reason: Optional[str] = None

    @property
    def is_available(self) -> bool:
        return self.average_margin_percent is not None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["confidence"] = self.confidence.value
        return data


def compute_weighted_margin(
    sales_facts: Union[Mapping, Iterable[SalesFact]],
    settings: Optional[MarginSettings] = None,
) -> MarginResult:
    """
    Compute the revenue-weighted average margin percent.

    Args:
        sales_facts: SalesFact table (mapping keyed by SKU) or iterable of facts
        settings: Override margin settings

    Returns:
        MarginResult. average_margin_percent is None when no SKU has a
        computable margin or the result is not a finite number.
    """
    settings = settings or get_settings().margin
    facts = require_collection(
        sales_facts.values() if isinstance(sales_facts, Mapping) else sales_facts,
        "sales_facts",
        SalesFact,
    )

    total_revenue = 0.0
    revenue_with_margin = 0.0
    total_margin_dollars = 0.0
    sku_count_with_margin = 0

    for fact in facts:
        if math.isfinite(fact.revenue) and fact.revenue > 0:
            total_revenue += fact.revenue
        else:
            continue

        if fact.unit_margin is None or not math.isfinite(fact.unit_margin):
            continue
        contribution = fact.unit_margin * fact.units_sold
        if not math.isfinite(contribution):
            continue

        revenue_with_margin += fact.revenue
        total_margin_dollars += contribution
        sku_count_with_margin += 1

    coverage_percent = 0
    if total_revenue > 0:
        coverage_percent = min(100, max(0, round_half_up(revenue_with_margin / total_revenue * 100)))

    def unavailable(reason: str) -> MarginResult:
        logger.info("Weighted margin unavailable", reason=reason, facts=len(facts))
        return MarginResult(
            average_margin_percent=None,
            total_revenue=round(total_revenue, 2),
            revenue_with_margin=round(revenue_with_margin, 2),
            total_margin_dollars=round(total_margin_dollars, 2),
            sku_count_with_margin=sku_count_with_margin,
            coverage_percent=coverage_percent,
            confidence=MarginConfidence.NONE,
            reason=reason,
        )

    if not facts:
        return unavailable("No sales in period")
    if sku_count_with_margin == 0:
        return unavailable(f"No sales with cost data in period (0 of {len(facts)} SKUs have a computable margin)")
    if sku_count_with_margin < settings.min_skus_with_margin:
        return unavailable(
            f"Insufficient data ({sku_count_with_margin} SKUs with valid margin, "
            f"need {settings.min_skus_with_margin})"
        )
    if revenue_with_margin <= 0:
        return unavailable("No revenue with margin data in period")

    average = total_margin_dollars / revenue_with_margin * 100
    if not math.isfinite(average):
        return unavailable("Margin calculation resulted in invalid value")

    confidence = (
        MarginConfidence.HIGH
        if coverage_percent >= settings.high_confidence_coverage
        else MarginConfidence.PARTIAL
    )

    result = MarginResult(
        average_margin_percent=round(average, 2),
        total_revenue=round(total_revenue, 2),
        revenue_with_margin=round(revenue_with_margin, 2),
        total_margin_dollars=round(total_margin_dollars, 2),
        sku_count_with_margin=sku_count_with_margin,
        coverage_percent=coverage_percent,
        confidence=confidence,
    )
    logger.info(
        "Weighted margin computed",
        average_margin_percent=result.average_margin_percent,
        coverage_percent=coverage_percent,
        confidence=confidence.value,
    )
    return result
