"""Data structures shared by the extraction, pagination and publishing stages."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class Offer:
    """Normalized offer handed to the publisher."""

    name: str
    url: str
    normal_price: float
    offer_price: float
    availability: str
    shop_name: str

    def __post_init__(self):
        """Validate data after initialization."""
        if not self.name:
            raise ValueError("name is required")
        if not self.url:
            raise ValueError("url is required")
        if not self.shop_name:
            raise ValueError("shop_name is required")

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class RawEntry:
    """Strings pulled out of one listing fragment, before parsing."""

    name_text: Optional[str] = None
    link_href: Optional[str] = None
    price_text: Optional[str] = None
    regular_price_text: Optional[str] = None
    availability_text: Optional[str] = None


@dataclass(frozen=True)
class ShopSelectorSet:
    """CSS selectors and static markup rules for one shop.

    ``availability_flags`` pairs a space separated class list with the label
    to use when an element inside ``availability_flag_scope`` carries exactly
    those classes (e.g. ``("product-flag agotado", "Agotado")``).

    ``detail_name`` locates the full product name on a product page; when set,
    truncated listing names are recovered from there instead of published.
    """

    entry: str
    name: str
    link: str
    price: str
    regular_price: Optional[str] = None
    availability: Optional[str] = None
    next_page: str = "a.next"
    availability_flag_scope: Optional[str] = None
    availability_flags: Tuple[Tuple[str, str], ...] = ()
    default_availability: str = "Available"
    name_first_text_only: bool = False
    detail_name: Optional[str] = None


# ---------------------------------------------------------------------------
# Extraction results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Extracted:
    """A fragment yielded a usable entry."""

    entry: RawEntry


@dataclass(frozen=True)
class Filtered:
    """The entry was dropped by policy (not an error)."""

    reason: str


@dataclass(frozen=True)
class Missing:
    """A required field was absent or unusable; the entry is dropped."""

    field: str
    detail: str = ""


ExtractionResult = Union[Extracted, Filtered, Missing]


# ---------------------------------------------------------------------------
# Crawl bookkeeping
# ---------------------------------------------------------------------------


class CrawlState(str, Enum):
    IDLE = "idle"
    FETCHING_PAGE = "fetching_page"
    EXTRACTING_ENTRIES = "extracting_entries"
    PUBLISHING = "publishing"
    NEXT_PAGE = "next_page"
    DONE = "done"
    ABORTED = "aborted"


class PublishOutcome(str, Enum):
    SUCCESS = "success"
    AMBIGUOUS_MATCH = "ambiguous_match"
    TIMEOUT = "timeout"
    FAILURE = "failure"


@dataclass
class CrawlCursor:
    """Position of one crawl invocation."""

    current_url: str
    page_limit: int
    pages_fetched: int = 0
    consecutive_failures: int = 0


@dataclass
class CrawlReport:
    """Statistics for one crawl, returned on success and attached to CrawlError."""

    shop_slug: str
    state: CrawlState = CrawlState.IDLE
    pages_fetched: int = 0
    entries_seen: int = 0
    filtered: int = 0
    dropped: int = 0
    outcomes: Dict[PublishOutcome, int] = field(
        default_factory=lambda: {outcome: 0 for outcome in PublishOutcome}
    )

    @property
    def offers_published(self) -> int:
        """Offers handed to the backend, whatever the response."""
        return sum(self.outcomes.values())

    @property
    def publish_failures(self) -> int:
        return self.outcomes[PublishOutcome.TIMEOUT] + self.outcomes[PublishOutcome.FAILURE]

    def as_log_fields(self) -> Dict[str, object]:
        return {
            "state": self.state.value,
            "pages_fetched": self.pages_fetched,
            "entries_seen": self.entries_seen,
            "filtered": self.filtered,
            "dropped": self.dropped,
            "offers_published": self.offers_published,
            "publish_failures": self.publish_failures,
        }
