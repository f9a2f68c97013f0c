"""
Analytics Module
"""
from .margin import MarginConfidence, MarginResult, compute_weighted_margin

__all__ = [
    "MarginConfidence",
    "MarginResult",
    "compute_weighted_margin",
]
