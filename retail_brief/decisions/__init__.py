"""
Decision Classification Module
"""
from .classifier import DecisionClassifier, classify, sort_decisions
from .models import (
    ClassificationSummary,
    Decision,
    DecisionType,
    SkuClassification,
    Timeframe,
)

__all__ = [
    "DecisionClassifier",
    "classify",
    "sort_decisions",
    "ClassificationSummary",
    "Decision",
    "DecisionType",
    "SkuClassification",
    "Timeframe",
]
