"""
Data Ingestion Module
"""
from .adapters import (
    inventory_rows_from_frame,
    inventory_rows_from_records,
    velocity_rows_from_frame,
    velocity_rows_from_records,
)

__all__ = [
    "inventory_rows_from_frame",
    "inventory_rows_from_records",
    "velocity_rows_from_frame",
    "velocity_rows_from_records",
]
