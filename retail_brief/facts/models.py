"""
Fact Layer Models

Canonical input rows and the two fact schemas built from them:
- InventoryRow / VelocityRow: one normalized record per SKU from each provider
- SalesFact: a SKU that sold at least one unit in the analysis period
- InventoryFact: any currently sellable SKU, sold or not

Facts are frozen, request-scoped value objects. A field that could not be
computed from finite operands is None, never a default number.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, Optional, Union


@dataclass(frozen=True)
class InventoryRow:
    """Canonical inventory snapshot row"""
    sku: Optional[str]
    product_name: Optional[str] = None
    variant_name: Optional[str] = None
    available_quantity: Optional[float] = None
    unit_cost: Optional[float] = None
    retail_price: Optional[float] = None


@dataclass(frozen=True)
class VelocityRow:
    """Canonical sales velocity row"""
    sku: Optional[str]
    units_sold_in_period: Optional[float] = None
    revenue_in_period: Optional[float] = None
    daily_velocity: Optional[float] = None
    last_sold_at: Optional[Union[str, datetime]] = None


@dataclass(frozen=True)
class SalesFact:
    """SKU with positive unit sales in the analysis period"""
    sku: str
    product_name: str
    variant_name: str
    units_sold: int
    revenue: float
    unit_cost: Optional[float] = None
    unit_margin: Optional[float] = None
    margin_percent: Optional[float] = None

    @property
    def display_name(self) -> str:
        return f"{self.product_name} ({self.variant_name})"

    @property
    def average_sale_price(self) -> Optional[float]:
        """Revenue per unit sold, None when revenue is unknown"""
        if self.units_sold <= 0 or self.revenue <= 0:
            return None
        return self.revenue / self.units_sold


@dataclass(frozen=True)
class InventoryFact:
    """Currently sellable SKU, independent of sales"""
    sku: str
    product_name: str
    variant_name: str
    available_quantity: float
    velocity: Optional[float]
    is_slow_mover: bool
    unit_cost: Optional[float] = None
    retail_price: Optional[float] = None
    unit_margin: Optional[float] = None
    days_of_coverage: Optional[int] = None
    days_since_last_sale: Optional[int] = None

    @property
    def display_name(self) -> str:
        return f"{self.product_name} ({self.variant_name})"


@dataclass(frozen=True)
class FactCounts:
    """Fact layer statistics carried through to the brief diagnostics"""
    sales_facts: int
    inventory_facts: int
    excluded_count: int
    exclusion_reasons: Dict[str, int] = field(default_factory=dict)
    inventory_skus: FrozenSet[str] = frozenset()


@dataclass
class FactTables:
    """Result of one fact-building run"""
    sales_facts: Dict[str, SalesFact] = field(default_factory=dict)
    inventory_facts: Dict[str, InventoryFact] = field(default_factory=dict)
    excluded_count: int = 0
    exclusion_reasons: Dict[str, int] = field(default_factory=dict)

    @property
    def counts(self) -> FactCounts:
        return FactCounts(
            sales_facts=len(self.sales_facts),
            inventory_facts=len(self.inventory_facts),
            excluded_count=self.excluded_count,
            exclusion_reasons=dict(self.exclusion_reasons),
            inventory_skus=frozenset(self.inventory_facts),
        )
