"""Scraper utilities for data normalization and retry policy."""

from .normalizer import (
    EXCLUDED_NAME_PATTERNS,
    NAME_ANNOTATIONS,
    NameNormalizer,
    PriceParser,
    clean_availability,
)
from .retry import TRANSIENT_FETCH_ERRORS, fetch_retrying


__all__ = [
    # Normalization
    "PriceParser",
    "NameNormalizer",
    "clean_availability",
    "EXCLUDED_NAME_PATTERNS",
    "NAME_ANNOTATIONS",
    # Retry policy
    "TRANSIENT_FETCH_ERRORS",
    "fetch_retrying",
]
