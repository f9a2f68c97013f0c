"""
Reporting Module
"""
from .brief import (
    NO_ACTIONS_HEADLINE,
    BriefDiagnostics,
    BriefGenerator,
    ExecutiveBrief,
    ImpactBuckets,
    generate_brief,
)

__all__ = [
    "NO_ACTIONS_HEADLINE",
    "BriefDiagnostics",
    "BriefGenerator",
    "ExecutiveBrief",
    "ImpactBuckets",
    "generate_brief",
]
