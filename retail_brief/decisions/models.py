"""
Decision Models
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class DecisionType(str, Enum):
    """Mutually exclusive actions a SKU can be classified into"""
    REORDER_NOW = "REORDER_NOW"
    HOLD_LINE = "HOLD_LINE"
    DISCOUNT_SLOW = "DISCOUNT_SLOW"
    DEPRIORITIZE = "DEPRIORITIZE"  # single-SKU classification only


class Timeframe(str, Enum):
    """When an action should be taken"""
    TODAY = "TODAY"
    THIS_WEEK = "THIS_WEEK"
    ONGOING = "ONGOING"


@dataclass(frozen=True)
class Decision:
    """One explainable action for one SKU"""
    type: DecisionType
    sku: str
    display_name: str
    reason_text: str
    action_text: str
    dollar_impact: int  # 0 when unknown, see has_financial_data
    has_financial_data: bool
    urgency_rank: int
    timeframe: Timeframe
    impact_label: Optional[str] = None
    metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def available_quantity(self) -> float:
        return self.metrics.get("available_quantity") or 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "sku": self.sku,
            "display_name": self.display_name,
            "reason_text": self.reason_text,
            "action_text": self.action_text,
            "dollar_impact": self.dollar_impact,
            "has_financial_data": self.has_financial_data,
            "urgency_rank": self.urgency_rank,
            "timeframe": self.timeframe.value,
            "impact_label": self.impact_label,
            "metrics": dict(self.metrics),
        }


@dataclass(frozen=True)
class SkuClassification:
    """Classification of a single SKU"""
    sku: Optional[str]
    decision: Optional[DecisionType]
    display_name: Optional[str] = None
    excluded: bool = False
    exclusion_reason: Optional[str] = None


@dataclass
class ClassificationSummary:
    """Decisions grouped by type"""
    by_type: Dict[DecisionType, List[Decision]]
    total_inventory_facts: int

    @property
    def counts(self) -> Dict[str, int]:
        return {decision_type.value: len(items) for decision_type, items in self.by_type.items()}
