"""
Utility module for EQ Editor.

Contains helper functions used by both Core and GUI.
"""

from .formatting import (
    format_frequency,
    format_db,
    format_q,
    format_bandwidth,
    format_band,
)

__all__ = [
    "format_frequency",
    "format_db",
    "format_q",
    "format_bandwidth",
    "format_band",
]
