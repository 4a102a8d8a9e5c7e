"""Factory for creating and managing shop adapter instances."""

from typing import Dict, Optional, Type

import httpx
import structlog
from opentelemetry import trace

from aragog.config import Settings, settings as default_settings
from aragog.scrapers.base import BaseShopAdapter
from aragog.scrapers.fetcher import RetryingFetcher
from aragog.scrapers.publisher import Publisher
from aragog.telemetry import TraceContextInjector


logger = structlog.get_logger(__name__)


class AdapterFactory:
    """Factory for creating and configuring adapter instances.

    Wires each adapter with a fetcher and a publisher built from settings.
    """

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize the adapter factory.

        Args:
            settings: Settings used to configure adapters, the global
                settings if omitted
        """
        self.settings = settings or default_settings

        # Registry of adapter classes
        self._adapter_registry: Dict[str, Type[BaseShopAdapter]] = {}

    def register_adapter(self, shop_slug: str, adapter_class: Type[BaseShopAdapter]) -> None:
        """Register an adapter class for a shop.

        Args:
            shop_slug: Shop slug identifier (e.g., "dracotienda")
            adapter_class: Adapter class (must inherit from BaseShopAdapter)
        """
        if not issubclass(adapter_class, BaseShopAdapter):
            raise ValueError(f"Adapter class must inherit from BaseShopAdapter: {adapter_class}")

        self._adapter_registry[shop_slug] = adapter_class
        logger.debug("adapter_registered", shop_slug=shop_slug, adapter_class=adapter_class.__name__)

    def create_adapter(
        self,
        shop_slug: str,
        client: httpx.AsyncClient,
        injector: Optional[TraceContextInjector] = None,
        tracer: Optional[trace.Tracer] = None,
    ) -> Optional[BaseShopAdapter]:
        """Create and configure an adapter instance.

        Args:
            shop_slug: Shop slug identifier
            client: HTTP client owned by the caller, used for both fetching
                and publishing
            injector: Trace context producer, OpenTelemetry if omitted
            tracer: Tracer shared by the adapter and its publisher, the
                global one if omitted

        Returns:
            Configured adapter instance, or None if not registered
        """
        adapter_class = self._adapter_registry.get(shop_slug)
        if not adapter_class:
            logger.warning("adapter_not_found", shop_slug=shop_slug)
            return None

        fetcher = RetryingFetcher(
            client,
            max_attempts=self.settings.FETCH_MAX_ATTEMPTS,
            backoff_seconds=self.settings.FETCH_BACKOFF_SECONDS,
            timeout=self.settings.FETCH_TIMEOUT_SECONDS,
            logger=structlog.get_logger("aragog.scrapers.fetcher").bind(adapter=shop_slug),
        )
        publisher = Publisher(
            client,
            self.settings.backend_config(),
            injector=injector,
            ambiguous_statuses=self.settings.get_ambiguous_statuses(),
            timeout=self.settings.PUBLISH_TIMEOUT_SECONDS,
            tracer=tracer,
            logger=structlog.get_logger("aragog.scrapers.publisher").bind(adapter=shop_slug),
        )
        adapter = adapter_class(
            fetcher,
            publisher,
            detail_fetch_delay=self.settings.DETAIL_FETCH_DELAY_SECONDS,
            tracer=tracer,
        )

        logger.info("adapter_created", shop_slug=shop_slug)
        return adapter

    def get_registered_shops(self) -> list[str]:
        """Get list of registered shop slugs.

        Returns:
            List of shop slug strings
        """
        return list(self._adapter_registry.keys())

