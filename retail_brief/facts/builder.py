"""
Fact Builder

Validates canonical inventory rows (plus optional velocity rows) into the two
fact tables. Rows that fail an identity or quantity gate are excluded and
counted, never defaulted:

1. SKU present and non-empty                      -> no_sku
2. Product + variant name resolvable              -> no_identity
3. Names are not placeholders ("missing", ...)    -> no_identity
4. Available quantity present, finite and >= 0    -> invalid_quantity

Derived numbers (margin, coverage, recency) are computed only from finite
operands. When an operand is missing the derived field is None; the fact
itself survives.
"""

import math
import re
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog

from retail_brief.config import DecisionThresholds, IdentitySettings, get_settings
from .models import (
    FactTables,
    InventoryFact,
    InventoryRow,
    SalesFact,
    VelocityRow,
)

logger = structlog.get_logger(__name__)

# "Blue Dream (3.5 G)" -> ("Blue Dream", "3.5 G")
TRAILING_PARENTHETICAL = re.compile(r"^(.+?)\s*\(([^()]+)\)\s*$")

SECONDS_PER_DAY = 86400


class ExclusionReason(str, Enum):
    """Coarse reason codes for rows left out of the fact tables"""
    NO_SKU = "no_sku"
    NO_IDENTITY = "no_identity"
    INVALID_QUANTITY = "invalid_quantity"
    DUPLICATE_SKU = "duplicate_sku"


def require_collection(value: Any, name: str, item_type: Optional[type] = None) -> List[Any]:
    """
    Materialize a caller-supplied collection, failing loudly on misuse.

    Strings, bytes and mappings are rejected: they are iterable but never a
    collection of rows.

    Raises:
        TypeError: value is absent, not a collection, or holds the wrong type
    """
    if value is None:
        raise TypeError(f"{name} is required")
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
        raise TypeError(f"{name} must be a collection, got {type(value).__name__}")

    items = list(value)
    if item_type is not None:
        for index, item in enumerate(items):
            if not isinstance(item, item_type):
                raise TypeError(
                    f"{name}[{index}] must be {item_type.__name__}, got {type(item).__name__}"
                )
    return items


def finite_number(value: Any) -> Optional[float]:
    """Return value as a float if it is a finite real number, else None"""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return None
    number = float(value)
    if not math.isfinite(number):
        return None
    return number


def round_half_up(value: float) -> int:
    """Nearest integer with halves rounded up (7.5 -> 8)"""
    return int(math.floor(value + 0.5))


def _clean_name(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def resolve_identity(
    product_name: Any,
    variant_name: Any,
    sentinels: Sequence[str] = ("missing", "unknown"),
) -> Optional[Tuple[str, str]]:
    """
    Resolve the human-readable (product, variant) identity of a row.

    When the variant is missing or a placeholder, a trailing parenthetical in
    the product name supplies it: "Widget (28G)" -> ("Widget", "28G").

    Returns:
        (product, variant), or None if no real identity can be resolved
    """
    product = _clean_name(product_name)
    variant = _clean_name(variant_name)
    if product is None:
        return None

    if variant is None or variant.lower() in sentinels:
        match = TRAILING_PARENTHETICAL.match(product)
        if not match:
            return None
        product, variant = match.group(1).strip(), match.group(2).strip()

    if not product or not variant:
        return None
    if product.lower() in sentinels or variant.lower() in sentinels:
        return None
    return product, variant


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string or datetime into an aware UTC datetime"""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class FactBuilder:
    """
    Builds SalesFact and InventoryFact tables for one analysis run.

    Example:
        builder = FactBuilder()
        tables = builder.build(inventory_rows, velocity_rows)
        tables.excluded_count, tables.exclusion_reasons
    """

    def __init__(
        self,
        thresholds: Optional[DecisionThresholds] = None,
        identity: Optional[IdentitySettings] = None,
    ):
        self.thresholds = thresholds or get_settings().thresholds
        self.identity = identity or get_settings().identity

    def build(
        self,
        inventory_rows: Iterable[InventoryRow],
        velocity_rows: Optional[Iterable[VelocityRow]] = None,
        as_of: Optional[datetime] = None,
        period_sales: Optional[Mapping[str, VelocityRow]] = None,
    ) -> FactTables:
        """
        Build both fact tables.

        Args:
            inventory_rows: Canonical inventory rows, one per SKU
            velocity_rows: Canonical velocity rows; SKUs without one have
                velocity 0 and no sales
            as_of: Reference instant for days-since-last-sale (default: now)
            period_sales: Optional per-SKU overrides for units sold and
                revenue in the period; ignored for a SKU unless it reports
                at least one unit sold

        Raises:
            TypeError: inputs are not collections of canonical rows

        Returns:
            FactTables with exclusion diagnostics
        """
        rows = require_collection(inventory_rows, "inventory_rows", InventoryRow)
        velocity_list = require_collection(
            velocity_rows if velocity_rows is not None else (), "velocity_rows", VelocityRow
        )
        if period_sales is not None:
            if not isinstance(period_sales, Mapping):
                raise TypeError(f"period_sales must be a mapping, got {type(period_sales).__name__}")
            for sku, sales_row in period_sales.items():
                if not isinstance(sales_row, VelocityRow):
                    raise TypeError(
                        f"period_sales[{sku!r}] must be VelocityRow, got {type(sales_row).__name__}"
                    )

        as_of = parse_timestamp(as_of) if as_of is not None else datetime.now(timezone.utc)
        if as_of is None:
            raise TypeError("as_of must be a datetime or ISO-8601 string")

        velocity_map = self._index_velocity(velocity_list)
        tables = FactTables()

        for row in rows:
            reason = self._add_row(tables, row, velocity_map, period_sales or {}, as_of)
            if reason is not None:
                tables.excluded_count += 1
                tables.exclusion_reasons[reason.value] = tables.exclusion_reasons.get(reason.value, 0) + 1
                logger.debug("Excluded inventory row", sku=row.sku, reason=reason.value)

        logger.info(
            "Fact tables built",
            sales_facts=len(tables.sales_facts),
            inventory_facts=len(tables.inventory_facts),
            excluded=tables.excluded_count,
            exclusion_reasons=tables.exclusion_reasons,
        )
        return tables

    def _index_velocity(self, velocity_rows: List[VelocityRow]) -> Dict[str, VelocityRow]:
        index: Dict[str, VelocityRow] = {}
        for row in velocity_rows:
            sku = _clean_name(row.sku)
            if sku is not None and sku not in index:
                index[sku] = row
        return index

    def _add_row(
        self,
        tables: FactTables,
        row: InventoryRow,
        velocity_map: Mapping[str, VelocityRow],
        period_sales: Mapping[str, VelocityRow],
        as_of: datetime,
    ) -> Optional[ExclusionReason]:
        """Add facts for one row; return the exclusion reason if it fails a gate"""
        sku = _clean_name(row.sku)
        if sku is None:
            return ExclusionReason.NO_SKU

        identity = resolve_identity(row.product_name, row.variant_name, self.identity.sentinel_names)
        if identity is None:
            return ExclusionReason.NO_IDENTITY

        quantity = finite_number(row.available_quantity)
        if quantity is None or quantity < 0:
            return ExclusionReason.INVALID_QUANTITY

        if sku in tables.inventory_facts:
            return ExclusionReason.DUPLICATE_SKU

        velocity_row = velocity_map.get(sku)
        tables.inventory_facts[sku] = self._inventory_fact(sku, identity, quantity, row, velocity_row, as_of)

        # An override only replaces the provider's totals when it reports a sale
        sales_row = velocity_row
        override = period_sales.get(sku)
        if override is not None:
            override_units = finite_number(override.units_sold_in_period)
            if override_units is not None and override_units > 0:
                sales_row = override
        if sales_row is not None:
            sales_fact = self._sales_fact(sku, identity, row, sales_row)
            if sales_fact is not None:
                tables.sales_facts[sku] = sales_fact

        return None

    def _inventory_fact(
        self,
        sku: str,
        identity: Tuple[str, str],
        quantity: float,
        row: InventoryRow,
        velocity_row: Optional[VelocityRow],
        as_of: datetime,
    ) -> InventoryFact:
        unit_cost = _positive(row.unit_cost)
        retail_price = _positive(row.retail_price)

        unit_margin = None
        if unit_cost is not None and retail_price is not None and retail_price > unit_cost:
            unit_margin = _finite_or_none(round(retail_price - unit_cost, 2))

        # No velocity row means the provider saw no sales: a measured zero.
        if velocity_row is None:
            velocity = 0.0
        else:
            velocity = finite_number(velocity_row.daily_velocity)
            if velocity is not None and velocity < 0:
                velocity = None

        days_of_coverage = None
        if velocity is not None and velocity > 0 and quantity > 0:
            ratio = quantity / velocity
            if math.isfinite(ratio):
                days_of_coverage = round_half_up(ratio)

        days_since_last_sale = None
        if velocity_row is not None:
            last_sold_at = parse_timestamp(velocity_row.last_sold_at)
            if last_sold_at is not None:
                elapsed = (as_of - last_sold_at).total_seconds()
                if elapsed >= 0:
                    days_since_last_sale = int(elapsed // SECONDS_PER_DAY)

        is_slow_mover = (
            (velocity is not None and velocity < self.thresholds.low_velocity_threshold)
            or (days_since_last_sale is not None and days_since_last_sale >= self.thresholds.slow_mover_days)
        )

        return InventoryFact(
            sku=sku,
            product_name=identity[0],
            variant_name=identity[1],
            available_quantity=quantity,
            velocity=velocity,
            is_slow_mover=is_slow_mover,
            unit_cost=unit_cost,
            retail_price=retail_price,
            unit_margin=unit_margin,
            days_of_coverage=days_of_coverage,
            days_since_last_sale=days_since_last_sale,
        )

    def _sales_fact(
        self,
        sku: str,
        identity: Tuple[str, str],
        row: InventoryRow,
        sales_row: VelocityRow,
    ) -> Optional[SalesFact]:
        units = finite_number(sales_row.units_sold_in_period)
        if units is None or units <= 0 or not units.is_integer():
            return None
        units_sold = int(units)

        unit_cost = _positive(row.unit_cost)
        retail_price = _positive(row.retail_price)

        revenue = finite_number(sales_row.revenue_in_period)
        if revenue is None or revenue < 0:
            # Revenue unknown: derive from list price, else leave it at zero so
            # no margin can be computed from it.
            revenue = _finite_or_none(units_sold * retail_price) if retail_price is not None else None
            revenue = revenue if revenue is not None else 0.0

        unit_margin = None
        margin_percent = None
        if unit_cost is not None and revenue > 0:
            average_price = revenue / units_sold
            unit_margin = _finite_or_none(round(average_price - unit_cost, 2))
            if unit_margin is not None:
                margin_percent = _finite_or_none(round(unit_margin / average_price * 100, 2))

        return SalesFact(
            sku=sku,
            product_name=identity[0],
            variant_name=identity[1],
            units_sold=units_sold,
            revenue=revenue,
            unit_cost=unit_cost,
            unit_margin=unit_margin,
            margin_percent=margin_percent,
        )


def _positive(value: Any) -> Optional[float]:
    number = finite_number(value)
    if number is None or number <= 0:
        return None
    return number


def _finite_or_none(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


def build_facts(
    inventory_rows: Iterable[InventoryRow],
    velocity_rows: Optional[Iterable[VelocityRow]] = None,
    as_of: Optional[datetime] = None,
    period_sales: Optional[Mapping[str, VelocityRow]] = None,
    thresholds: Optional[DecisionThresholds] = None,
) -> FactTables:
    """
    Convenience function to build fact tables.

    Args:
        inventory_rows: Canonical inventory rows
        velocity_rows: Canonical velocity rows
        as_of: Reference instant for recency calculations
        period_sales: Optional per-SKU sales overrides
        thresholds: Override decision thresholds

    Returns:
        FactTables
    """
    return FactBuilder(thresholds=thresholds).build(
        inventory_rows,
        velocity_rows,
        as_of=as_of,
        period_sales=period_sales,
    )
