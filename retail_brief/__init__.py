"""
Retail Action Brief

Fact layer and decision classification engine that turns per-SKU inventory
and sales records into a short, explainable list of business actions.
"""
from .analytics import MarginResult, compute_weighted_margin
from .config import configure_logging
from .decisions import Decision, DecisionClassifier, DecisionType, classify
from .facts import FactTables, InventoryFact, InventoryRow, SalesFact, VelocityRow, build_facts
from .pipeline import ActionBriefPipeline, PipelineResult, run_action_brief
from .reporting import ExecutiveBrief, generate_brief

__version__ = "1.0.0"

__all__ = [
    "MarginResult",
    "compute_weighted_margin",
    "configure_logging",
    "Decision",
    "DecisionClassifier",
    "DecisionType",
    "classify",
    "FactTables",
    "InventoryFact",
    "InventoryRow",
    "SalesFact",
    "VelocityRow",
    "build_facts",
    "ActionBriefPipeline",
    "PipelineResult",
    "run_action_brief",
    "ExecutiveBrief",
    "generate_brief",
]
