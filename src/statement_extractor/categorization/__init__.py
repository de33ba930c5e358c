"""Transaction category hints.

Rule-based and local (no network calls); used only when INFER_CATEGORIES is
enabled.
"""

from .rules import categorize

__all__ = ["categorize"]
