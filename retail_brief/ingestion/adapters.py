"""
Boundary Adapters

Normalizes heterogeneous upstream shapes into the canonical InventoryRow and
VelocityRow records, so the fact builder only ever sees one shape.

Upstream sources disagree on field names (product_name vs. strain vs. name,
quantity vs. availableQuantity, nested pricing.cost, ...). Each canonical
field has an ordered alias list; the first alias holding a non-empty value
wins. Numeric text such as "$1,250.00" is parsed here; anything unparseable
becomes None and is left for the fact builder's gates to judge.

Supports both plain records (list of dicts) and polars DataFrames.
"""

import re
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

import polars as pl
import structlog

from retail_brief.facts.builder import require_collection
from retail_brief.facts.models import InventoryRow, VelocityRow

logger = structlog.get_logger(__name__)

CURRENCY_CHARS = r"[$€£¥,]"

INVENTORY_ALIASES: Dict[str, List[str]] = {
    "sku": ["sku", "SKU", "variant_sku"],
    "product_name": ["product_name", "productName", "strain", "name"],
    "variant_name": ["variant_name", "variantName", "unit"],
    "available_quantity": ["available_quantity", "availableQuantity", "quantity", "quantity_on_hand"],
    "unit_cost": ["unit_cost", "unitCost", "pricing.cost", "cost"],
    "retail_price": ["retail_price", "retailPrice", "pricing.retail", "retail", "price"],
}

VELOCITY_ALIASES: Dict[str, List[str]] = {
    "sku": ["sku", "SKU", "variant_sku"],
    "units_sold_in_period": ["units_sold_in_period", "unitsSoldInPeriod", "units_sold", "total_sold", "quantity_sold"],
    "revenue_in_period": ["revenue_in_period", "revenueInPeriod", "revenue", "total_revenue"],
    "daily_velocity": ["daily_velocity", "dailyVelocity", "avg_daily", "avgDaily"],
    "last_sold_at": ["last_sold_at", "lastSoldAt"],
}

TEXT_FIELDS = {"sku", "product_name", "variant_name"}
TIMESTAMP_FIELDS = {"last_sold_at"}


def _lookup(record: Mapping, alias: str) -> Any:
    """Resolve a possibly dotted alias ("pricing.cost") in a record"""
    value: Any = record
    for part in alias.split("."):
        if not isinstance(value, Mapping) or part not in value:
            return None
        value = value[part]
    return value


def _first_present(record: Mapping, aliases: List[str]) -> Any:
    for alias in aliases:
        value = _lookup(record, alias)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def to_number(value: Any) -> Optional[float]:
    """Coerce numbers and numeric text ("$1,250.00") to float"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, str):
        cleaned = re.sub(CURRENCY_CHARS, "", value).strip()
        if not cleaned:
            return None
        try:
            return float(Decimal(cleaned))
        except (InvalidOperation, ValueError):
            return None
    return None


def to_text(value: Any) -> Optional[str]:
    """Coerce identifiers and names to trimmed text"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        # barcodes loaded as floats
        return str(int(value))
    return None


def to_timestamp(value: Any) -> Optional[Any]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _normalize_record(record: Mapping, aliases: Dict[str, List[str]]) -> Dict[str, Any]:
    normalized: Dict[str, Any] = {}
    for canonical, names in aliases.items():
        raw = _first_present(record, names)
        if canonical in TEXT_FIELDS:
            normalized[canonical] = to_text(raw)
        elif canonical in TIMESTAMP_FIELDS:
            normalized[canonical] = to_timestamp(raw)
        else:
            normalized[canonical] = to_number(raw)
    return normalized


def inventory_rows_from_records(records: Iterable[Mapping]) -> List[InventoryRow]:
    """
    Map raw inventory records to canonical rows.

    Args:
        records: Upstream inventory dicts in any supported shape

    Returns:
        One InventoryRow per record, in input order
    """
    items = require_collection(records, "records", Mapping)
    rows = [InventoryRow(**_normalize_record(record, INVENTORY_ALIASES)) for record in items]
    logger.debug("Adapted inventory records", rows=len(rows))
    return rows


def velocity_rows_from_records(records: Iterable[Mapping]) -> List[VelocityRow]:
    """
    Map raw velocity metrics to canonical rows.

    Args:
        records: Upstream velocity dicts in any supported shape

    Returns:
        One VelocityRow per record, in input order
    """
    items = require_collection(records, "records", Mapping)
    rows = [VelocityRow(**_normalize_record(record, VELOCITY_ALIASES)) for record in items]
    logger.debug("Adapted velocity records", rows=len(rows))
    return rows


def _resolve_column(columns: List[str], aliases: List[str]) -> Optional[str]:
    for alias in aliases:
        if alias in columns:
            return alias
    return None


def _numeric_expr(df: pl.DataFrame, column: str) -> pl.Expr:
    """Float column, stripping currency symbols from text columns"""
    if df.schema[column].is_numeric():
        return pl.col(column).cast(pl.Float64)
    return (
        pl.col(column)
        .cast(pl.Utf8)
        .str.replace_all(CURRENCY_CHARS, "")
        .str.strip_chars()
        .cast(pl.Float64, strict=False)
    )


def _text_expr(df: pl.DataFrame, column: str) -> pl.Expr:
    """Trimmed text column; float identifiers render like integers ("1001")"""
    if df.schema[column].is_float():
        value = pl.col(column)
        return (
            pl.when(value == value.floor())
            .then(value.cast(pl.Int64, strict=False).cast(pl.Utf8))
            .otherwise(None)
        )
    return pl.col(column).cast(pl.Utf8).str.strip_chars()


def _timestamp_expr(df: pl.DataFrame, column: str) -> pl.Expr:
    if df.schema[column] in (pl.Datetime, pl.Date):
        return pl.col(column)
    return _text_expr(df, column)


def _select_canonical(df: pl.DataFrame, aliases: Dict[str, List[str]]) -> List[Dict[str, Any]]:
    if not isinstance(df, pl.DataFrame):
        raise TypeError(f"df must be a polars DataFrame, got {type(df).__name__}")

    exprs = []
    for canonical, names in aliases.items():
        column = _resolve_column(df.columns, names)
        if column is None:
            exprs.append(pl.lit(None).alias(canonical))
        elif canonical in TEXT_FIELDS:
            exprs.append(_text_expr(df, column).alias(canonical))
        elif canonical in TIMESTAMP_FIELDS:
            exprs.append(_timestamp_expr(df, column).alias(canonical))
        else:
            exprs.append(_numeric_expr(df, column).alias(canonical))

    records = df.select(exprs).to_dicts()
    for record in records:
        for canonical in aliases:
            if canonical in TEXT_FIELDS:
                record[canonical] = to_text(record[canonical])
            elif canonical in TIMESTAMP_FIELDS:
                record[canonical] = to_timestamp(record[canonical])
    return records


def inventory_rows_from_frame(df: pl.DataFrame) -> List[InventoryRow]:
    """
    Map an inventory snapshot DataFrame (e.g. a CSV export) to canonical rows.

    Args:
        df: Polars DataFrame with any supported column names

    Returns:
        One InventoryRow per DataFrame row
    """
    rows = [InventoryRow(**record) for record in _select_canonical(df, INVENTORY_ALIASES)]
    logger.info("Adapted inventory frame", rows=len(rows), columns=len(df.columns))
    return rows


def velocity_rows_from_frame(df: pl.DataFrame) -> List[VelocityRow]:
    """
    Map a velocity metrics DataFrame to canonical rows.

    Args:
        df: Polars DataFrame with any supported column names

    Returns:
        One VelocityRow per DataFrame row
    """
    rows = [VelocityRow(**record) for record in _select_canonical(df, VELOCITY_ALIASES)]
    logger.info("Adapted velocity frame", rows=len(rows), columns=len(df.columns))
    return rows
