"""Offer publication to the backend collector.

Each offer is wrapped together with the serialized trace context of the
publishing span so the collector can continue the trace:

    {
      "trace_context": {"traceparent": "00-...-...-01"},
      "body": {
        "name": "Catan",
        "url": "https://shop.example/catan",
        "normal_price": 29.99,
        "offer_price": 19.99,
        "availability": "En stock",
        "shop_name": "DungeonMarvels"
      }
    }

Delivery is best effort: every response is classified and logged, nothing
is retried and nothing is raised to the crawl.
"""

from typing import Dict, FrozenSet, Iterable, Optional

import httpx
import structlog
from opentelemetry import trace
from pydantic import BaseModel, Field

from aragog.config import BackendConfig
from aragog.scrapers.models import Offer, PublishOutcome
from aragog.telemetry import OpenTelemetryInjector, TraceContextInjector


# The collector answers 515 when it received the offer but could not match
# it to a known product.
DEFAULT_AMBIGUOUS_STATUSES: FrozenSet[int] = frozenset({515})

# Generous so that backend cold starts do not count as failures
DEFAULT_PUBLISH_TIMEOUT = 600.0


# ---------------------------------------------------------------------------
# Wire schema
# ---------------------------------------------------------------------------


class OfferBody(BaseModel):
    """Offer as sent to the collector."""

    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    normal_price: float
    offer_price: float
    availability: str
    shop_name: str = Field(..., min_length=1)


class OfferMessage(BaseModel):
    """Offer plus the trace carrier it travels with."""

    trace_context: Dict[str, str] = Field(default_factory=dict)
    body: OfferBody

    @classmethod
    def wrap(cls, offer: Offer, trace_context: Dict[str, str]) -> "OfferMessage":
        return cls(trace_context=dict(trace_context), body=OfferBody(**offer.to_dict()))


# ---------------------------------------------------------------------------
# Publisher
# ---------------------------------------------------------------------------


class Publisher:
    """POST offers to ``{server_address}/{post_endpoint}`` and classify the reply."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        backend: BackendConfig,
        injector: Optional[TraceContextInjector] = None,
        ambiguous_statuses: Iterable[int] = DEFAULT_AMBIGUOUS_STATUSES,
        timeout: float = DEFAULT_PUBLISH_TIMEOUT,
        tracer: Optional[trace.Tracer] = None,
        logger=None,
    ):
        self.client = client
        self.backend = backend
        self.injector = injector or OpenTelemetryInjector()
        self.ambiguous_statuses = frozenset(ambiguous_statuses)
        self.timeout = timeout
        self.tracer = tracer or trace.get_tracer(__name__)
        self.logger = logger or structlog.get_logger(__name__)

    async def publish(
        self, offer: Offer, trace_carrier: Optional[Dict[str, str]] = None
    ) -> PublishOutcome:
        """Send one offer to the backend.

        Args:
            offer: Normalized offer
            trace_carrier: Serialized trace context. When omitted, a fresh
                carrier is injected from inside the ``offer.publish`` span.

        Returns:
            PublishOutcome classifying the response
        """
        with self.tracer.start_as_current_span(
            "offer.publish",
            attributes={"shop": offer.shop_name, "error_detail": "OK"},
        ) as span:
            carrier = trace_carrier
            if carrier is None:
                carrier = self.injector.inject_current_context()
            message = OfferMessage.wrap(offer, carrier)

            try:
                response = await self.client.post(
                    self.backend.post_url,
                    json=message.model_dump(),
                    headers={"Content-Type": "application/json"},
                    timeout=self.timeout,
                )
            except httpx.HTTPError as e:
                span.set_attribute("error_detail", type(e).__name__)
                self.logger.error(
                    "offer_publish_failed",
                    url=self.backend.post_url,
                    error=str(e) or type(e).__name__,
                    offer=offer.to_dict(),
                )
                return PublishOutcome.FAILURE

            return self._classify(response.status_code, offer, span)

    def _classify(self, status: int, offer: Offer, span: trace.Span) -> PublishOutcome:
        if status == 200:
            self.logger.info("offer_published", name=offer.name, shop=offer.shop_name)
            return PublishOutcome.SUCCESS

        if status in self.ambiguous_statuses:
            self.logger.warning("offer_unmatched", status=status, offer=offer.to_dict())
            return PublishOutcome.AMBIGUOUS_MATCH

        if status == 408:
            span.set_attribute("error_detail", "HttpTimeout")
            self.logger.error("offer_publish_timeout", status=status, offer=offer.to_dict())
            return PublishOutcome.TIMEOUT

        span.set_attribute("error_detail", f"HttpStatus{status}")
        self.logger.error("offer_publish_rejected", status=status, offer=offer.to_dict())
        return PublishOutcome.FAILURE
