"""
Decision Classifier

Turns the two fact tables into a ranked list of explainable decisions.

Three rule passes run in priority order and a SKU keeps the first decision it
earns:

1. REORDER_NOW   - fast mover with little stock left (needs both facts)
2. HOLD_LINE     - high-margin seller, do not discount (sales fact)
3. DISCOUNT_SLOW - slow mover sitting on stock (inventory fact)

Every threshold comes from DecisionThresholds. A rule whose operands are not
finite skips the SKU instead of guessing.
"""

import math
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog

from retail_brief.config import DecisionThresholds, get_settings
from retail_brief.facts.builder import FactBuilder, round_half_up
from retail_brief.facts.models import (
    FactTables,
    InventoryFact,
    InventoryRow,
    SalesFact,
    VelocityRow,
)
from .models import (
    ClassificationSummary,
    Decision,
    DecisionType,
    SkuClassification,
    Timeframe,
)

logger = structlog.get_logger(__name__)

URGENCY_CRITICAL = 3
URGENCY_HIGH = 2
URGENCY_MEDIUM = 1
URGENCY_NONE = 0


def _is_finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def format_quantity(quantity: float) -> str:
    if float(quantity).is_integer():
        return f"{int(quantity):,}"
    return f"{quantity:,.2f}"


def _require_fact_table(table: Any, name: str, fact_type: type) -> Mapping:
    if table is None:
        raise TypeError(f"{name} is required")
    if not isinstance(table, Mapping):
        raise TypeError(f"{name} must be a mapping keyed by SKU, got {type(table).__name__}")
    for sku, fact in table.items():
        if not isinstance(fact, fact_type):
            raise TypeError(f"{name}[{sku!r}] must be {fact_type.__name__}, got {type(fact).__name__}")
    return table


def sort_decisions(decisions: List[Decision]) -> List[Decision]:
    """Urgency first, then dollar impact, then SKU for a total order"""
    return sorted(decisions, key=lambda d: (-d.urgency_rank, -d.dollar_impact, d.sku))


class DecisionClassifier:
    """
    Rule-based SKU classifier over split fact tables.

    Example:
        classifier = DecisionClassifier()
        decisions = classifier.classify(tables.sales_facts, tables.inventory_facts)
    """

    def __init__(self, thresholds: Optional[DecisionThresholds] = None):
        self.thresholds = thresholds or get_settings().thresholds

    @property
    def _horizon_suffix(self) -> str:
        days = self.thresholds.impact_horizon_days
        return "/week" if days == 7 else f" per {days} days"

    def classify(
        self,
        sales_facts: Mapping[str, SalesFact],
        inventory_facts: Mapping[str, InventoryFact],
    ) -> List[Decision]:
        """
        Classify SKUs into ranked decisions.

        Args:
            sales_facts: SalesFact table keyed by SKU
            inventory_facts: InventoryFact table keyed by SKU

        Returns:
            Decisions sorted by urgency, then dollar impact; at most one per SKU
        """
        sales = _require_fact_table(sales_facts, "sales_facts", SalesFact)
        inventory = _require_fact_table(inventory_facts, "inventory_facts", InventoryFact)

        decided: Dict[str, Decision] = {}

        for sku, inventory_fact in inventory.items():
            decision = self._reorder_now(inventory_fact, sales.get(sku))
            if decision is not None:
                decided[sku] = decision

        for sku, sales_fact in sales.items():
            if sku in decided:
                continue
            decision = self._hold_line(sales_fact, inventory.get(sku))
            if decision is not None:
                decided[sku] = decision

        for sku, inventory_fact in inventory.items():
            if sku in decided:
                continue
            decision = self._discount_slow(inventory_fact)
            if decision is not None:
                decided[sku] = decision

        decisions = sort_decisions(list(decided.values()))

        logger.info(
            "Classification complete",
            decisions=len(decisions),
            reorder_now=sum(1 for d in decisions if d.type == DecisionType.REORDER_NOW),
            hold_line=sum(1 for d in decisions if d.type == DecisionType.HOLD_LINE),
            discount_slow=sum(1 for d in decisions if d.type == DecisionType.DISCOUNT_SLOW),
        )
        return decisions

    def _reorder_now(
        self,
        inventory_fact: InventoryFact,
        sales_fact: Optional[SalesFact],
    ) -> Optional[Decision]:
        """High velocity and low coverage; needs a sale to price the risk"""
        if sales_fact is None:
            return None

        velocity = inventory_fact.velocity
        coverage = inventory_fact.days_of_coverage
        if not _is_finite(velocity) or velocity < self.thresholds.high_velocity_threshold:
            return None
        if coverage is None or not math.isfinite(coverage) or coverage > self.thresholds.low_stock_days:
            return None

        is_critical = coverage <= self.thresholds.critical_stock_days
        average_price = sales_fact.average_sale_price

        weekly_revenue = None
        if average_price is not None:
            weekly_revenue = average_price * velocity * self.thresholds.impact_horizon_days
        has_financial_data = _is_finite(weekly_revenue) and weekly_revenue > 0
        dollar_impact = round_half_up(weekly_revenue) if has_financial_data else 0

        return Decision(
            type=DecisionType.REORDER_NOW,
            sku=inventory_fact.sku,
            display_name=inventory_fact.display_name,
            reason_text=f"Selling {velocity:.1f}/day, only {coverage} days of stock",
            action_text="Reorder immediately" if is_critical else "Place reorder this week",
            dollar_impact=dollar_impact,
            has_financial_data=has_financial_data,
            urgency_rank=URGENCY_CRITICAL if is_critical else URGENCY_HIGH,
            timeframe=Timeframe.TODAY if is_critical else Timeframe.THIS_WEEK,
            impact_label=f"${dollar_impact:,}{self._horizon_suffix} at risk" if has_financial_data else None,
            metrics={
                "available_quantity": inventory_fact.available_quantity,
                "velocity": velocity,
                "days_of_coverage": coverage,
                "units_sold": sales_fact.units_sold,
                "average_sale_price": round(average_price, 2) if average_price is not None else None,
            },
        )

    def _hold_line(
        self,
        sales_fact: SalesFact,
        inventory_fact: Optional[InventoryFact],
    ) -> Optional[Decision]:
        """High margin seller: protect the price"""
        margin_percent = sales_fact.margin_percent
        unit_margin = sales_fact.unit_margin
        if not _is_finite(margin_percent) or not _is_finite(unit_margin):
            return None
        if margin_percent < self.thresholds.high_margin_threshold:
            return None

        velocity = 0.0
        if inventory_fact is not None and _is_finite(inventory_fact.velocity):
            velocity = inventory_fact.velocity

        weekly_profit = unit_margin * velocity * self.thresholds.impact_horizon_days
        has_financial_data = math.isfinite(weekly_profit) and weekly_profit > 0
        dollar_impact = round_half_up(weekly_profit) if has_financial_data else 0

        metrics = {
            "margin_percent": margin_percent,
            "unit_margin": unit_margin,
            "units_sold": sales_fact.units_sold,
            "revenue": sales_fact.revenue,
            "velocity": velocity,
        }
        if inventory_fact is not None:
            metrics["available_quantity"] = inventory_fact.available_quantity

        return Decision(
            type=DecisionType.HOLD_LINE,
            sku=sales_fact.sku,
            display_name=sales_fact.display_name,
            reason_text=f"{margin_percent:.0f}% margin, sold {sales_fact.units_sold:,} units",
            action_text="Do not discount - protect margin",
            dollar_impact=dollar_impact,
            has_financial_data=has_financial_data,
            urgency_rank=URGENCY_NONE,
            timeframe=Timeframe.ONGOING,
            impact_label=f"${dollar_impact:,}{self._horizon_suffix} at full margin" if has_financial_data else None,
            metrics=metrics,
        )

    def _discount_slow(self, inventory_fact: InventoryFact) -> Optional[Decision]:
        """Slow mover with enough stock to be worth moving"""
        if not inventory_fact.is_slow_mover:
            return None
        quantity = inventory_fact.available_quantity
        if quantity < self.thresholds.min_stock_for_discount:
            return None

        # Capital at risk is the cost basis of what is sitting, not lost profit
        capital_at_risk = None
        if _is_finite(inventory_fact.unit_cost) and inventory_fact.unit_cost > 0:
            capital_at_risk = inventory_fact.unit_cost * quantity
        has_financial_data = _is_finite(capital_at_risk) and capital_at_risk > 0
        dollar_impact = round_half_up(capital_at_risk) if has_financial_data else 0

        units = format_quantity(quantity)
        if inventory_fact.days_since_last_sale is not None:
            reason = f"No sale in {inventory_fact.days_since_last_sale} days, {units} units sitting"
        elif inventory_fact.velocity is not None:
            reason = f"{units} units, velocity {inventory_fact.velocity:.2f}/day"
        else:
            reason = f"{units} units, no usable sales velocity"

        if has_financial_data:
            action = "Consider a 15-20% discount to move inventory"
            label = f"${dollar_impact:,} capital at risk"
        else:
            action = f"Consider a 15-20% discount to move {units} units (cost unknown)"
            label = f"{units} units (cost unknown)"

        return Decision(
            type=DecisionType.DISCOUNT_SLOW,
            sku=inventory_fact.sku,
            display_name=inventory_fact.display_name,
            reason_text=reason,
            action_text=action,
            dollar_impact=dollar_impact,
            has_financial_data=has_financial_data,
            urgency_rank=URGENCY_MEDIUM,
            timeframe=Timeframe.THIS_WEEK,
            impact_label=label,
            metrics={
                "available_quantity": quantity,
                "velocity": inventory_fact.velocity,
                "days_since_last_sale": inventory_fact.days_since_last_sale,
                "unit_cost": inventory_fact.unit_cost,
            },
        )

    def classify_all(self, tables: FactTables) -> ClassificationSummary:
        """Classify a fact table set and group the decisions by type"""
        decisions = self.classify(tables.sales_facts, tables.inventory_facts)
        by_type = {
            decision_type: [d for d in decisions if d.type == decision_type]
            for decision_type in DecisionType
        }
        return ClassificationSummary(
            by_type=by_type,
            total_inventory_facts=len(tables.inventory_facts),
        )

    def classify_sku(
        self,
        inventory_row: InventoryRow,
        velocity_row: Optional[VelocityRow] = None,
        as_of: Optional[datetime] = None,
    ) -> SkuClassification:
        """
        Classify one SKU in isolation.

        Returns DEPRIORITIZE when the SKU passes the fact gates but no rule
        fires, and excluded=True with the reason code when it fails a gate.
        """
        if not isinstance(inventory_row, InventoryRow):
            raise TypeError(f"inventory_row must be InventoryRow, got {type(inventory_row).__name__}")

        tables = FactBuilder(thresholds=self.thresholds).build(
            [inventory_row],
            [velocity_row] if velocity_row is not None else [],
            as_of=as_of,
        )
        if not tables.inventory_facts:
            reason = next(iter(tables.exclusion_reasons), None)
            return SkuClassification(sku=inventory_row.sku, decision=None, excluded=True, exclusion_reason=reason)

        inventory_fact = next(iter(tables.inventory_facts.values()))
        decisions = self.classify(tables.sales_facts, tables.inventory_facts)
        decision_type = decisions[0].type if decisions else DecisionType.DEPRIORITIZE
        return SkuClassification(
            sku=inventory_fact.sku,
            decision=decision_type,
            display_name=inventory_fact.display_name,
        )


def classify(
    sales_facts: Mapping[str, SalesFact],
    inventory_facts: Mapping[str, InventoryFact],
    thresholds: Optional[DecisionThresholds] = None,
) -> List[Decision]:
    """
    Convenience function to classify fact tables.

    Args:
        sales_facts: SalesFact table keyed by SKU
        inventory_facts: InventoryFact table keyed by SKU
        thresholds: Override decision thresholds

    Returns:
        Ordered decision list
    """
    return DecisionClassifier(thresholds=thresholds).classify(sales_facts, inventory_facts)
