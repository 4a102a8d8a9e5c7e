"""Data normalization utilities for price parsing and title cleanup."""

import math
import re
from typing import Iterable, Optional

import structlog

from aragog.core.exceptions import MalformedPriceError

logger = structlog.get_logger(__name__)


# Titles matching any of these are never published (pre-orders, promo
# bundles, expansion combos).
EXCLUDED_NAME_PATTERNS = ("preventa", "promo", "expansi")

# Language/condition annotations removed verbatim before the generic
# parenthesis sweep.
NAME_ANNOTATIONS = ("(castellano)", "(inglés)", "(seminuevo)")

_PARENTHESIZED = re.compile(r"\([^)]*\)")


class PriceParser:
    """Comma-decimal price parsing as used by Spanish shops.

    Handles formats such as:
    - "12,50 €" -> 12.5
    - "19,99€" -> 19.99
    - "7,00 €/ud" -> 7.0

    Thousands separators are not understood: "1.234,50 €" is rejected and
    "1.234 €" parses as 1.234.
    """

    @staticmethod
    def parse(text: str) -> float:
        """Parse a price string into a float.

        Args:
            text: Raw price text from the page

        Returns:
            Price value

        Raises:
            MalformedPriceError: If no numeric token can be found
        """
        if not text or not text.strip():
            raise MalformedPriceError(text or "")

        # Everything after the first whitespace is a currency/unit suffix
        token = text.split(maxsplit=1)[0]
        token = "".join(c for c in token if c.isascii())
        token = token.replace(",", ".")

        if not any(c.isdigit() for c in token):
            raise MalformedPriceError(text)

        try:
            value = float(token)
        except ValueError:
            raise MalformedPriceError(text) from None

        if not math.isfinite(value):
            raise MalformedPriceError(text)
        return value

    @classmethod
    def parse_optional(cls, text: Optional[str]) -> Optional[float]:
        """Parse a price that may legitimately be absent."""
        if text is None:
            return None
        return cls.parse(text)


class NameNormalizer:
    """Blocklist filtering and cleanup of offer titles.

    The blocklist is coarse on purpose: a legitimate title containing
    "promo" is dropped too.
    """

    def __init__(
        self,
        exclusions: Iterable[str] = EXCLUDED_NAME_PATTERNS,
        annotations: Iterable[str] = NAME_ANNOTATIONS,
    ):
        self._exclusions = [
            (pattern, re.compile(re.escape(pattern), re.IGNORECASE))
            for pattern in exclusions
        ]
        self._annotations = [
            re.compile(re.escape(annotation), re.IGNORECASE) for annotation in annotations
        ]

    @staticmethod
    def is_truncated(name: str) -> bool:
        """Check whether a listing cut the title short with an ellipsis."""
        return "..." in name or "…" in name

    def excluded_by(self, name: str) -> Optional[str]:
        """Return the exclusion pattern a name matches, if any."""
        for pattern, regex in self._exclusions:
            if regex.search(name):
                return pattern
        return None

    def clean(self, name: str) -> str:
        """Strip annotations and any parenthesized text, collapse whitespace."""
        result = name
        for regex in self._annotations:
            result = regex.sub("", result)
        result = _PARENTHESIZED.sub("", result)
        return " ".join(result.split())

    def normalize(self, name: str) -> Optional[str]:
        """Normalize a title, or return None if the offer must be dropped.

        Exclusion runs before cleanup, so an excluded name is never cleaned.

        Args:
            name: Raw title text

        Returns:
            Cleaned title, or None when excluded (or empty after cleanup)
        """
        pattern = self.excluded_by(name)
        if pattern is not None:
            logger.info("name_excluded", name=name, pattern=pattern)
            return None

        cleaned = self.clean(name)
        if not cleaned:
            logger.info("name_empty_after_cleanup", name=name)
            return None
        return cleaned


def clean_availability(text: Optional[str]) -> Optional[str]:
    """Reduce availability text to letters, digits and single spaces.

    Args:
        text: Raw availability text, e.g. "  ¡En stock! "

    Returns:
        Cleaned text ("En stock"), or None if nothing is left
    """
    if not text:
        return None
    kept = "".join(c if (c.isalnum() or c.isspace()) else " " for c in text)
    cleaned = " ".join(kept.split())
    return cleaned or None
