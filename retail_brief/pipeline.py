"""
Action Brief Pipeline

Orchestrates one synchronous analysis run over an in-memory snapshot:

1. Adapt raw inputs to canonical rows (if needed)
2. Build sales and inventory fact tables
3. Compute the revenue-weighted margin
4. Classify SKUs into ranked decisions
5. Generate the executive brief

Nothing is cached between runs; every call builds fresh facts.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Union

import polars as pl
import structlog

from retail_brief.analytics.margin import MarginResult, compute_weighted_margin
from retail_brief.config import DecisionThresholds, Settings, get_settings
from retail_brief.decisions.classifier import DecisionClassifier
from retail_brief.decisions.models import Decision
from retail_brief.facts.builder import FactBuilder, require_collection
from retail_brief.facts.models import FactTables, InventoryRow, VelocityRow
from retail_brief.ingestion.adapters import (
    inventory_rows_from_frame,
    inventory_rows_from_records,
    velocity_rows_from_frame,
    velocity_rows_from_records,
)
from retail_brief.reporting.brief import BriefGenerator, ExecutiveBrief

logger = structlog.get_logger(__name__)

RowsInput = Union[pl.DataFrame, Iterable[Any]]


@dataclass
class PipelineResult:
    """Everything produced by one run"""
    facts: FactTables
    margin: MarginResult
    decisions: List[Decision]
    brief: ExecutiveBrief
    started_at: datetime
    completed_at: datetime
    duration_seconds: float


def _adapt(rows: Any, name: str, row_type: type, from_frame, from_records) -> List[Any]:
    if isinstance(rows, pl.DataFrame):
        return from_frame(rows)
    items = require_collection(rows, name)
    if items and all(isinstance(item, Mapping) for item in items):
        return from_records(items)
    return require_collection(items, name, row_type)


def _adapt_period_sales(period_sales: Any) -> Any:
    """Adapt raw per-SKU sales records; the builder rejects anything else"""
    if not isinstance(period_sales, Mapping):
        return period_sales
    adapted = {}
    for sku, sales in period_sales.items():
        if isinstance(sales, Mapping):
            sales = velocity_rows_from_records([{"sku": sku, **sales}])[0]
        adapted[sku] = sales
    return adapted


class ActionBriefPipeline:
    """
    End-to-end fact -> decision -> brief pipeline.

    Example:
        pipeline = ActionBriefPipeline()
        result = pipeline.run(inventory_records, velocity_records)
        print(result.brief.headline)
    """

    def __init__(
        self,
        thresholds: Optional[DecisionThresholds] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.thresholds = thresholds or self.settings.thresholds
        self.builder = FactBuilder(thresholds=self.thresholds, identity=self.settings.identity)
        self.classifier = DecisionClassifier(thresholds=self.thresholds)
        self.generator = BriefGenerator(max_actions=self.settings.brief.max_actions)

    def run(
        self,
        inventory: RowsInput,
        velocity: Optional[RowsInput] = None,
        as_of: Optional[datetime] = None,
        period_sales: Optional[Mapping[str, Any]] = None,
    ) -> PipelineResult:
        """
        Run the full analysis.

        Args:
            inventory: InventoryRow list, raw inventory dicts, or a DataFrame
            velocity: VelocityRow list, raw velocity dicts, or a DataFrame
            as_of: Reference instant for recency calculations
            period_sales: Optional per-SKU sales overrides, as VelocityRow
                values or raw velocity dicts

        Returns:
            PipelineResult with facts, margin, decisions and brief
        """
        started_at = datetime.now(timezone.utc)

        inventory_rows = _adapt(
            inventory, "inventory", InventoryRow, inventory_rows_from_frame, inventory_rows_from_records
        )
        velocity_rows = _adapt(
            velocity if velocity is not None else [],
            "velocity",
            VelocityRow,
            velocity_rows_from_frame,
            velocity_rows_from_records,
        )

        logger.info(
            "Starting action brief run",
            inventory_rows=len(inventory_rows),
            velocity_rows=len(velocity_rows),
        )

        facts = self.builder.build(
            inventory_rows,
            velocity_rows,
            as_of=as_of,
            period_sales=_adapt_period_sales(period_sales),
        )
        margin = compute_weighted_margin(facts.sales_facts, settings=self.settings.margin)
        decisions = self.classifier.classify(facts.sales_facts, facts.inventory_facts)
        brief = self.generator.generate(decisions, facts.counts, margin)

        completed_at = datetime.now(timezone.utc)
        duration = (completed_at - started_at).total_seconds()

        logger.info(
            "Action brief run complete",
            headline=brief.headline,
            decisions=len(decisions),
            duration_seconds=duration,
        )

        return PipelineResult(
            facts=facts,
            margin=margin,
            decisions=decisions,
            brief=brief,
            started_at=started_at,
            completed_at=completed_at,
            duration_seconds=duration,
        )


def run_action_brief(
    inventory: RowsInput,
    velocity: Optional[RowsInput] = None,
    as_of: Optional[datetime] = None,
    settings: Optional[Settings] = None,
) -> ExecutiveBrief:
    """
    Convenience function returning only the executive brief.

    Args:
        inventory: Inventory rows, records, or DataFrame
        velocity: Velocity rows, records, or DataFrame
        as_of: Reference instant for recency calculations
        settings: Override application settings

    Returns:
        ExecutiveBrief
    """
    return ActionBriefPipeline(settings=settings).run(inventory, velocity, as_of=as_of).brief
