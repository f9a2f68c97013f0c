"""
Fact Layer Module
"""
from .builder import ExclusionReason, FactBuilder, build_facts, resolve_identity
from .models import (
    FactCounts,
    FactTables,
    InventoryFact,
    InventoryRow,
    SalesFact,
    VelocityRow,
)

__all__ = [
    "ExclusionReason",
    "FactBuilder",
    "build_facts",
    "resolve_identity",
    "FactCounts",
    "FactTables",
    "InventoryFact",
    "InventoryRow",
    "SalesFact",
    "VelocityRow",
]
