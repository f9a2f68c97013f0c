"""
Test Suite Configuration
"""
from datetime import datetime, timezone
from typing import List

import pytest

from retail_brief.config import DecisionThresholds, Settings
from retail_brief.facts.models import InventoryFact, InventoryRow, SalesFact, VelocityRow


AS_OF = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def as_of() -> datetime:
    """Fixed reference instant for recency calculations"""
    return AS_OF


@pytest.fixture
def thresholds() -> DecisionThresholds:
    """Default decision thresholds, independent of the environment"""
    return DecisionThresholds(
        high_velocity_threshold=0.5,
        low_velocity_threshold=0.1,
        high_margin_threshold=50,
        low_stock_days=10,
        critical_stock_days=5,
        min_stock_for_discount=5,
        slow_mover_days=14,
        impact_horizon_days=7,
    )


@pytest.fixture
def test_settings(thresholds) -> Settings:
    """Create test settings"""
    return Settings(thresholds=thresholds)


@pytest.fixture
def widget_row() -> InventoryRow:
    """Fast-moving widget with little stock left"""
    return InventoryRow(
        sku="A1",
        product_name="Widget",
        variant_name="28G",
        available_quantity=15,
        unit_cost=10,
        retail_price=25,
    )


@pytest.fixture
def widget_velocity() -> VelocityRow:
    """Widget sold 20 units for $500 at 2 units/day"""
    return VelocityRow(
        sku="A1",
        units_sold_in_period=20,
        revenue_in_period=500,
        daily_velocity=2.0,
    )


@pytest.fixture
def sample_inventory_rows(widget_row) -> List[InventoryRow]:
    """Mixed snapshot: reorder, hold-line, dead stock, and rejects"""
    return [
        widget_row,
        InventoryRow(sku="B2", product_name="Gizmo", variant_name="Large",
                     available_quantity=100, unit_cost=5, retail_price=20),
        InventoryRow(sku="C3", product_name="Doohickey", variant_name="Blue",
                     available_quantity=30, unit_cost=4, retail_price=9),
        InventoryRow(sku="D4", product_name="Gadget", variant_name="Mini",
                     available_quantity=12, unit_cost=None, retail_price=15),
        InventoryRow(sku="", product_name="Nameless", variant_name="X", available_quantity=3),
        InventoryRow(sku="E5", product_name="Unknown", variant_name="1 G", available_quantity=8),
        InventoryRow(sku="F6", product_name="Thing", variant_name="Small", available_quantity=-2),
    ]


@pytest.fixture
def sample_velocity_rows(widget_velocity) -> List[VelocityRow]:
    """Velocity metrics matching sample_inventory_rows"""
    return [
        widget_velocity,
        VelocityRow(sku="B2", units_sold_in_period=30, revenue_in_period=600, daily_velocity=1.0),
        VelocityRow(sku="C3", units_sold_in_period=None, daily_velocity=0.05,
                    last_sold_at="2025-05-01T00:00:00Z"),
    ]


def make_sales_fact(sku: str, units_sold: int, revenue: float, unit_cost=None, **kwargs) -> SalesFact:
    """SalesFact with margins derived the way the builder derives them"""
    unit_margin = None
    margin_percent = None
    if unit_cost is not None and revenue > 0:
        average_price = revenue / units_sold
        unit_margin = round(average_price - unit_cost, 2)
        margin_percent = round(unit_margin / average_price * 100, 2)
    values = dict(
        sku=sku,
        product_name=kwargs.pop("product_name", f"Product {sku}"),
        variant_name=kwargs.pop("variant_name", "Each"),
        units_sold=units_sold,
        revenue=revenue,
        unit_cost=unit_cost,
        unit_margin=unit_margin,
        margin_percent=margin_percent,
    )
    values.update(kwargs)
    return SalesFact(**values)


def make_inventory_fact(sku: str, available_quantity: float, velocity=0.0, **kwargs) -> InventoryFact:
    """InventoryFact with coverage derived from quantity and velocity"""
    days_of_coverage = kwargs.pop("days_of_coverage", None)
    if days_of_coverage is None and velocity and available_quantity > 0:
        days_of_coverage = int(available_quantity / velocity + 0.5)
    values = dict(
        sku=sku,
        product_name=kwargs.pop("product_name", f"Product {sku}"),
        variant_name=kwargs.pop("variant_name", "Each"),
        available_quantity=available_quantity,
        velocity=velocity,
        is_slow_mover=kwargs.pop("is_slow_mover", velocity is not None and velocity < 0.1),
        days_of_coverage=days_of_coverage,
    )
    values.update(kwargs)
    return InventoryFact(**values)


@pytest.fixture
def sales_fact_factory():
    """Factory for SalesFact objects"""
    return make_sales_fact


@pytest.fixture
def inventory_fact_factory():
    """Factory for InventoryFact objects"""
    return make_inventory_fact
