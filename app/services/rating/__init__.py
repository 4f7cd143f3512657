"""
Premium rating: fee schedule, jurisdiction taxes, required coverages.
"""

from .rate_tables import CoverageTemplate, RatingConfig, DEFAULT_RATING_CONFIG
from .rating_engine import RatingEngine, get_rating_engine, to_cents

__all__ = [
    "CoverageTemplate",
    "RatingConfig",
    "DEFAULT_RATING_CONFIG",
    "RatingEngine",
    "get_rating_engine",
    "to_cents",
]
