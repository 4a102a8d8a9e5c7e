"""Pytest configuration and shared fixtures.

HTTP never leaves the process: shop pages and the backend collector are both
served by an ``httpx.MockTransport``.
"""

import json
from typing import Dict, List, Optional, Union

import httpx
import pytest
import pytest_asyncio
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from aragog.config import Settings
from aragog.scrapers.factory import AdapterFactory
from aragog.scrapers.register_adapters import register_all_adapters


BACKEND_URL = "http://backend.test"
FAKE_TRACEPARENT = "00-0af7651916cd43dd8448eb211c80319c-b7ad6b7169203331-01"

PageResponse = Union[str, int, Exception]


# ============================================================================
# FAKE SERVERS
# ============================================================================

class FakeShop:
    """Serves listing and product pages by URL.

    A page value is either HTML (200), a status code, an exception to raise,
    or a list of those consumed one per request (the last one sticks).
    """

    def __init__(self, pages: Optional[Dict[str, Union[PageResponse, List[PageResponse]]]] = None):
        self.pages = dict(pages or {})
        self.requests: List[str] = []

    def respond(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)

        value = self.pages.get(url, 404)
        if isinstance(value, list):
            value = value.pop(0) if len(value) > 1 else value[0]

        if isinstance(value, Exception):
            raise value
        if isinstance(value, int):
            return httpx.Response(value, text="")
        return httpx.Response(200, text=value, headers={"Content-Type": "text/html; charset=utf-8"})


class RecordingBackend:
    """Backend collector that records every message and answers with queued statuses."""

    def __init__(self, statuses: Optional[List[int]] = None):
        self.statuses = list(statuses or [])
        self.messages: List[dict] = []
        self.requests: List[httpx.Request] = []

    def respond(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.messages.append(json.loads(request.content))
        status = self.statuses.pop(0) if self.statuses else 200
        return httpx.Response(status, text="")

    @property
    def names(self) -> List[str]:
        return [m["body"]["name"] for m in self.messages]


class FakeInjector:
    """Trace context producer returning a fixed carrier."""

    def __init__(self):
        self.calls = 0

    def inject_current_context(self) -> Dict[str, str]:
        self.calls += 1
        return {"traceparent": FAKE_TRACEPARENT}


def build_transport(shop: FakeShop, backend: RecordingBackend) -> httpx.MockTransport:
    """Route POSTs to the backend and everything else to the shop."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return backend.respond(request)
        return shop.respond(request)

    return httpx.MockTransport(handler)


# ============================================================================
# HTML BUILDERS
# ============================================================================

def listing_page(entries: List[str], next_href: Optional[str] = None) -> str:
    """Wrap entry fragments into a listing page, with an optional next link."""
    next_link = f'<a class="next" rel="next" href="{next_href}">Siguiente</a>' if next_href else ""
    return (
        "<html><body>"
        f'<div id="js-product-list">{"".join(entries)}</div>'
        f'<nav class="pagination">{next_link}</nav>'
        "</body></html>"
    )


def dungeonmarvels_entry(
    name: Optional[str],
    href: Optional[str],
    price: Optional[str],
    regular_price: Optional[str] = None,
    stock: Optional[str] = None,
) -> str:
    thumbnail = (
        f'<div class="thumbnail-container"><a class="thumbnail" href="{href}"><img src="x.jpg"></a></div>'
        if href is not None
        else '<div class="thumbnail-container"></div>'
    )
    title = f'<h2 class="product-title"><a href="{href or ""}">{name}</a></h2>' if name is not None else ""
    regular = f'<span class="regular-price">{regular_price}</span>' if regular_price else ""
    current = f'<span class="price">{price}</span>' if price is not None else ""
    tag = f'<div class="stock-product"><span class="stock-tag">{stock}</span></div>' if stock else ""
    return f'<div class="product-container">{thumbnail}{title}{regular}{current}{tag}</div>'


def dracotienda_entry(
    name: Optional[str],
    href: Optional[str],
    price: Optional[str],
    regular_price: Optional[str] = None,
    subtitle: str = "",
) -> str:
    link = f'<a href="{href}"><img src="x.jpg"></a>' if href is not None else ""
    title = (
        f'<h2 class="productName">{name}<small>{subtitle}</small></h2>'
        if name is not None
        else '<h2 class="productName"></h2>'
    )
    regular = f'<span class="regular-price">{regular_price}</span>' if regular_price else ""
    current = f'<span class="price">{price}</span>' if price is not None else ""
    return f'<div class="laberProduct-container">{link}{title}{regular}{current}</div>'


def jugamosotra_entry(
    name: Optional[str],
    href: Optional[str],
    price: Optional[str],
    regular_price: Optional[str] = None,
    sold_out: bool = False,
) -> str:
    title = f'<h3 class="product-title"><a href="{href or ""}">{name}</a></h3>' if name is not None else ""
    regular = f'<span class="regular-price">{regular_price}</span>' if regular_price else ""
    current = f'<span class="price">{price}</span>' if price is not None else ""
    flags = '<ul class="product-flags"><li class="product-flag agotado">Agotado</li></ul>' if sold_out else (
        '<ul class="product-flags"><li class="product-flag new">Nuevo</li></ul>'
    )
    return (
        '<div class="thumbnail-container">'
        f"{title}"
        f'<div class="product-price-and-shipping">{regular}{current}</div>'
        f"{flags}"
        "</div>"
    )


def product_page(name: str) -> str:
    return f"<html><body><h1 class=\"h1\" itemprop=\"name\">{name}</h1></body></html>"


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Settings pointing at the fake backend, with no waiting between attempts."""
    return Settings(
        BACKEND_URL=BACKEND_URL,
        BACKEND_ENDPOINT="offer",
        TELEMETRY_EXPORTER="none",
        FETCH_BACKOFF_SECONDS=0,
        DETAIL_FETCH_DELAY_SECONDS=0,
        FETCH_TIMEOUT_SECONDS=5,
        PUBLISH_TIMEOUT_SECONDS=5,
    )


@pytest.fixture
def fake_shop() -> FakeShop:
    return FakeShop()


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def injector() -> FakeInjector:
    return FakeInjector()


@pytest.fixture
def transport(fake_shop: FakeShop, backend: RecordingBackend) -> httpx.MockTransport:
    return build_transport(fake_shop, backend)


@pytest_asyncio.fixture
async def client(transport: httpx.MockTransport):
    """HTTP client wired to the fake shop and backend."""
    async with httpx.AsyncClient(transport=transport, follow_redirects=True) as http_client:
        yield http_client


@pytest.fixture
def factory(test_settings: Settings) -> AdapterFactory:
    """Adapter factory with every shop registered."""
    return register_all_adapters(AdapterFactory(test_settings))


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def tracer(span_exporter: InMemorySpanExporter):
    """Tracer recording finished spans into ``span_exporter``."""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return provider.get_tracer("aragog-test")


@pytest.fixture
def make_adapter(factory: AdapterFactory, client: httpx.AsyncClient, injector: FakeInjector, tracer):
    """Build a configured adapter for a shop slug."""

    def _make(shop_slug: str):
        adapter = factory.create_adapter(shop_slug, client, injector=injector, tracer=tracer)
        assert adapter is not None
        return adapter

    return _make
