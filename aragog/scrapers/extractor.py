"""Field extraction from one catalog listing fragment."""

from typing import Optional

from bs4 import Tag

from aragog.scrapers.models import (
    Extracted,
    ExtractionResult,
    Filtered,
    Missing,
    RawEntry,
    ShopSelectorSet,
)


class EntryExtractor:
    """Pull a RawEntry out of a listing fragment using a shop's selectors.

    Field policy:
    - name: required. Shops that render empty placeholder fragments get
      ``Filtered("empty_fragment")``; elsewhere a missing name is
      ``Missing("name")``.
    - link: required (``Missing("link")``)
    - price: required (``Missing("price")``)
    - regular price and availability: optional
    """

    def __init__(self, selectors: ShopSelectorSet, empty_name_is_error: bool = True):
        self.selectors = selectors
        self.empty_name_is_error = empty_name_is_error

    def extract(self, fragment: Tag) -> ExtractionResult:
        """Extract the raw fields of one entry.

        Args:
            fragment: Element matched by the shop's entry selector

        Returns:
            Extracted, Filtered or Missing
        """
        name = self._name(fragment)
        if not name:
            if self.empty_name_is_error:
                return Missing("name", "name element not found or empty")
            return Filtered("empty_fragment")

        link = self._link(fragment)
        if not link:
            return Missing("link", f"no link for {name!r}")

        price = self._text(fragment, self.selectors.price)
        if price is None:
            return Missing("price", f"no price for {name!r}")

        return Extracted(
            RawEntry(
                name_text=name,
                link_href=link,
                price_text=price,
                regular_price_text=self._text(fragment, self.selectors.regular_price),
                availability_text=self._availability(fragment),
            )
        )

    def _name(self, fragment: Tag) -> Optional[str]:
        element = fragment.select_one(self.selectors.name)
        if element is None:
            return None
        if self.selectors.name_first_text_only:
            text = next(element.stripped_strings, "")
        else:
            text = element.get_text()
        return text.strip() or None

    def _link(self, fragment: Tag) -> Optional[str]:
        element = fragment.select_one(self.selectors.link)
        if element is None:
            return None
        href = element.get("href")
        if not href or not href.strip():
            return None
        return href.strip()

    @staticmethod
    def _text(fragment: Tag, selector: Optional[str]) -> Optional[str]:
        if not selector:
            return None
        element = fragment.select_one(selector)
        if element is None:
            return None
        return element.get_text().strip()

    def _availability(self, fragment: Tag) -> Optional[str]:
        """Availability from status flags first, then from the stock tag text."""
        scope = self.selectors.availability_flag_scope
        if scope and self.selectors.availability_flags:
            for element in fragment.select(scope):
                classes = set(element.get("class") or [])
                for tokens, label in self.selectors.availability_flags:
                    if classes == set(tokens.split()):
                        return label

        return self._text(fragment, self.selectors.availability)
