"""
Executive Brief Generator

Cuts the ranked decision list down to a bounded brief, splits impact into
quantified dollars and unquantified units, and carries the fact layer's
exclusion diagnostics through unchanged so "no actions" can be told apart
from "most data was rejected".
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import structlog

from retail_brief.analytics.margin import MarginResult
from retail_brief.config import get_settings
from retail_brief.decisions.classifier import format_quantity
from retail_brief.decisions.models import Decision, DecisionType
from retail_brief.facts.builder import require_collection
from retail_brief.facts.models import FactCounts

logger = structlog.get_logger(__name__)

MAX_BRIEF_ACTIONS = 3
NO_ACTIONS_HEADLINE = "No high-confidence actions this period."


@dataclass(frozen=True)
class ImpactBuckets:
    """Dollar impact we can quantify versus stock we cannot price"""
    quantified_impact: int
    unquantified_units: float
    actions_with_cost_data: int
    total_actions: int

    @property
    def coverage_label(self) -> str:
        return f"{self.actions_with_cost_data} of {self.total_actions} actions have cost data"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quantified_impact": self.quantified_impact,
            "unquantified_units": self.unquantified_units,
            "actions_with_cost_data": self.actions_with_cost_data,
            "total_actions": self.total_actions,
            "coverage_label": self.coverage_label,
        }


@dataclass(frozen=True)
class BriefDiagnostics:
    """Operator-facing counts explaining what the brief left out"""
    excluded_count: int
    exclusion_reasons: Dict[str, int]
    sales_fact_count: int
    inventory_fact_count: int
    decisions_total: int
    suppressed_decisions: int
    unactioned_inventory: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "excluded_count": self.excluded_count,
            "exclusion_reasons": dict(self.exclusion_reasons),
            "sales_fact_count": self.sales_fact_count,
            "inventory_fact_count": self.inventory_fact_count,
            "decisions_total": self.decisions_total,
            "suppressed_decisions": self.suppressed_decisions,
            "unactioned_inventory": self.unactioned_inventory,
        }


@dataclass(frozen=True)
class ExecutiveBrief:
    """Bounded, ranked summary of recommended actions"""
    headline: str
    actions: List[Decision]
    impact_buckets: ImpactBuckets
    margin_summary: MarginResult
    diagnostics: BriefDiagnostics
    summary: Dict[str, int] = field(default_factory=dict)
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headline": self.headline,
            "actions": [action.to_dict() for action in self.actions],
            "impact_buckets": self.impact_buckets.to_dict(),
            "margin_summary": self.margin_summary.to_dict(),
            "diagnostics": self.diagnostics.to_dict(),
            "summary": dict(self.summary),
            "generated_at": self.generated_at.isoformat(),
        }


class BriefGenerator:
    """
    Builds the executive brief from an ordered decision list.

    Example:
        generator = BriefGenerator()
        brief = generator.generate(decisions, tables.counts, margin)
    """

    def __init__(self, max_actions: Optional[int] = None):
        if max_actions is None:
            max_actions = get_settings().brief.max_actions
        if not isinstance(max_actions, int) or isinstance(max_actions, bool) or max_actions < 0:
            raise ValueError(f"max_actions must be a non-negative integer, got {max_actions!r}")
        self.max_actions = min(max_actions, MAX_BRIEF_ACTIONS)

    def generate(
        self,
        decisions: Iterable[Decision],
        fact_counts: FactCounts,
        margin_summary: MarginResult,
    ) -> ExecutiveBrief:
        """
        Generate the executive brief.

        Args:
            decisions: Decisions already ordered by the classifier
            fact_counts: Fact layer counts and exclusion diagnostics
            margin_summary: Weighted margin result, passed through as-is

        Returns:
            ExecutiveBrief with at most max_actions actions
        """
        ranked = require_collection(decisions, "decisions", Decision)
        if not isinstance(fact_counts, FactCounts):
            raise TypeError(f"fact_counts must be FactCounts, got {type(fact_counts).__name__}")
        if not isinstance(margin_summary, MarginResult):
            raise TypeError(f"margin_summary must be MarginResult, got {type(margin_summary).__name__}")

        actions = ranked[: self.max_actions]
        buckets = self._impact_buckets(actions)

        diagnostics = BriefDiagnostics(
            excluded_count=fact_counts.excluded_count,
            exclusion_reasons=dict(fact_counts.exclusion_reasons),
            sales_fact_count=fact_counts.sales_facts,
            inventory_fact_count=fact_counts.inventory_facts,
            decisions_total=len(ranked),
            suppressed_decisions=len(ranked) - len(actions),
            unactioned_inventory=len(fact_counts.inventory_skus - {action.sku for action in actions}),
        )

        summary = {
            decision_type.value: sum(1 for d in ranked if d.type == decision_type)
            for decision_type in (DecisionType.REORDER_NOW, DecisionType.HOLD_LINE, DecisionType.DISCOUNT_SLOW)
        }

        brief = ExecutiveBrief(
            headline=self._headline(actions, buckets),
            actions=actions,
            impact_buckets=buckets,
            margin_summary=margin_summary,
            diagnostics=diagnostics,
            summary=summary,
        )

        logger.info(
            "Executive brief generated",
            actions=len(actions),
            suppressed=diagnostics.suppressed_decisions,
            excluded=diagnostics.excluded_count,
            quantified_impact=buckets.quantified_impact,
        )
        return brief

    def _impact_buckets(self, actions: List[Decision]) -> ImpactBuckets:
        quantified = [a for a in actions if a.has_financial_data]
        unquantified = [a for a in actions if not a.has_financial_data]
        return ImpactBuckets(
            quantified_impact=sum(a.dollar_impact for a in quantified),
            unquantified_units=sum(a.available_quantity for a in unquantified),
            actions_with_cost_data=len(quantified),
            total_actions=len(actions),
        )

    def _headline(self, actions: List[Decision], buckets: ImpactBuckets) -> str:
        if not actions:
            return NO_ACTIONS_HEADLINE

        if len(actions) == 1:
            action = actions[0]
            return f"{action.display_name}: {action.impact_label or action.reason_text}"

        headline = f"{len(actions)} actions identified."
        if buckets.quantified_impact > 0:
            headline += f" ${buckets.quantified_impact:,} at stake."
        if buckets.unquantified_units > 0:
            headline += f" {format_quantity(buckets.unquantified_units)} units with unknown cost."
        return headline


def generate_brief(
    decisions: Iterable[Decision],
    fact_counts: FactCounts,
    margin_summary: MarginResult,
    max_actions: Optional[int] = None,
) -> ExecutiveBrief:
    """
    Convenience function to generate an executive brief.

    Args:
        decisions: Ordered decisions
        fact_counts: Fact layer counts (FactTables.counts)
        margin_summary: Weighted margin result
        max_actions: Override the action bound (never above 3)

    Returns:
        ExecutiveBrief
    """
    return BriefGenerator(max_actions=max_actions).generate(decisions, fact_counts, margin_summary)
