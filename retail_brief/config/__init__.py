"""
Retail Action Brief
Configuration Module
"""
from .logging import configure_logging
from .settings import (
    BriefSettings,
    DecisionThresholds,
    IdentitySettings,
    MarginSettings,
    Settings,
    get_settings,
)

__all__ = [
    "configure_logging",
    "BriefSettings",
    "DecisionThresholds",
    "IdentitySettings",
    "MarginSettings",
    "Settings",
    "get_settings",
]
