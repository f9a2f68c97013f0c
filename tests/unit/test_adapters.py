"""
Unit Tests - Boundary Adapters
"""
from datetime import date, datetime

import polars as pl
import pytest

from retail_brief.facts.models import InventoryRow, VelocityRow
from retail_brief.ingestion.adapters import (
    inventory_rows_from_frame,
    inventory_rows_from_records,
    to_number,
    to_text,
    to_timestamp,
    velocity_rows_from_frame,
    velocity_rows_from_records,
)


class TestCoercion:
    """Tests for scalar coercion helpers"""

    @pytest.mark.parametrize("raw,expected", [
        (12, 12.0),
        (3.5, 3.5),
        ("$1,250.00", 1250.0),
        (" 42 ", 42.0),
        ("€9.99", 9.99),
    ])
    def test_to_number(self, raw, expected):
        assert to_number(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "N/A", "abc", True, [1]])
    def test_to_number_unparseable(self, raw):
        """Garbage becomes None, never zero"""
        assert to_number(raw) is None

    def test_to_text(self):
        assert to_text("  A1 ") == "A1"
        assert to_text(1234) == "1234"
        assert to_text(1234.0) == "1234"
        assert to_text("   ") is None
        assert to_text(1.5) is None

    def test_to_timestamp(self):
        assert to_timestamp("2025-06-01T00:00:00Z") == "2025-06-01T00:00:00Z"
        assert to_timestamp(date(2025, 6, 1)) == datetime(2025, 6, 1)
        assert to_timestamp("") is None


class TestRecordAdapters:
    """Tests for dict record adaptation"""

    def test_canonical_names(self):
        rows = inventory_rows_from_records([{
            "sku": "A1",
            "product_name": "Widget",
            "variant_name": "28G",
            "available_quantity": 15,
            "unit_cost": 10,
            "retail_price": 25,
        }])

        assert rows == [InventoryRow(sku="A1", product_name="Widget", variant_name="28G",
                                     available_quantity=15.0, unit_cost=10.0, retail_price=25.0)]

    def test_alias_names_and_nested_pricing(self):
        """Camel-case names and nested pricing blocks are recognized"""
        rows = inventory_rows_from_records([{
            "SKU": "B2",
            "strain": "Blue Dream (3.5 G)",
            "availableQuantity": "7",
            "pricing": {"cost": "$12.50", "retail": "$30"},
        }])

        row = rows[0]
        assert row.sku == "B2"
        assert row.product_name == "Blue Dream (3.5 G)"
        assert row.variant_name is None
        assert row.available_quantity == 7.0
        assert row.unit_cost == 12.5
        assert row.retail_price == 30.0

    def test_first_non_empty_alias_wins(self):
        """Blank preferred fields fall through to later aliases"""
        rows = inventory_rows_from_records([{"sku": "C3", "product_name": " ", "name": "Gizmo", "quantity": 1}])

        assert rows[0].product_name == "Gizmo"

    def test_unparseable_quantity_left_for_gates(self):
        rows = inventory_rows_from_records([{"sku": "D4", "name": "Gizmo", "unit": "L", "quantity": "lots"}])

        assert rows[0].available_quantity is None

    def test_velocity_records(self):
        rows = velocity_rows_from_records([{
            "sku": "A1",
            "unitsSoldInPeriod": 20,
            "revenueInPeriod": "$500.00",
            "dailyVelocity": 2,
            "lastSoldAt": "2025-06-10T08:00:00Z",
        }])

        assert rows == [VelocityRow(sku="A1", units_sold_in_period=20.0, revenue_in_period=500.0,
                                    daily_velocity=2.0, last_sold_at="2025-06-10T08:00:00Z")]

    def test_rejects_non_mapping_records(self):
        with pytest.raises(TypeError):
            inventory_rows_from_records([("A1", "Widget")])

    def test_rejects_single_record(self):
        """A lone dict is not a collection of records"""
        with pytest.raises(TypeError):
            velocity_rows_from_records({"sku": "A1"})


class TestFrameAdapters:
    """Tests for polars DataFrame adaptation"""

    def test_inventory_frame_with_currency_text(self):
        df = pl.DataFrame({
            "variant_sku": ["A1", "B2"],
            "name": ["Widget", "Gizmo"],
            "unit": ["28G", "Large"],
            "quantity_on_hand": [15, 100],
            "cost": ["$10.00", "N/A"],
            "price": [25.0, 20.0],
        })

        rows = inventory_rows_from_frame(df)

        assert rows[0] == InventoryRow(sku="A1", product_name="Widget", variant_name="28G",
                                       available_quantity=15.0, unit_cost=10.0, retail_price=25.0)
        assert rows[1].unit_cost is None
        assert rows[1].available_quantity == 100.0

    def test_missing_columns_are_none(self):
        df = pl.DataFrame({"sku": ["A1"], "product_name": ["Widget"], "available_quantity": [3]})

        row = inventory_rows_from_frame(df)[0]

        assert row.variant_name is None
        assert row.unit_cost is None
        assert row.retail_price is None

    def test_numeric_sku_becomes_text(self):
        df = pl.DataFrame({"sku": [1001], "product_name": ["Widget (1 G)"], "available_quantity": [3]})

        assert inventory_rows_from_frame(df)[0].sku == "1001"

    def test_float_sku_matches_record_path(self):
        """Float identifiers render the same way as in dict records"""
        df = pl.DataFrame({
            "sku": [1001.0, None, 12.5],
            "product_name": ["Widget (1 G)", "Widget (2 G)", "Widget (3 G)"],
            "available_quantity": [3, 4, 5],
        })

        skus = [row.sku for row in inventory_rows_from_frame(df)]

        assert skus == ["1001", None, None]
        assert skus[0] == inventory_rows_from_records([{"sku": 1001.0}])[0].sku

    def test_velocity_frame_with_dates(self):
        df = pl.DataFrame({
            "sku": ["A1"],
            "units_sold": [20],
            "total_revenue": [500.0],
            "avg_daily": [2.0],
            "last_sold_at": [date(2025, 6, 1)],
        })

        row = velocity_rows_from_frame(df)[0]

        assert row.units_sold_in_period == 20.0
        assert row.revenue_in_period == 500.0
        assert row.daily_velocity == 2.0
        assert row.last_sold_at == datetime(2025, 6, 1)

    def test_rejects_non_frame(self):
        with pytest.raises(TypeError):
            inventory_rows_from_frame([{"sku": "A1"}])
