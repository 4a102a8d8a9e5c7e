"""Tests for the adapter factory, the concurrent runner and the CLI."""

import pytest

from aragog import cli
from aragog.scrapers.adapters import DracotiendaAdapter, DungeonMarvelsAdapter, JugamosotraAdapter
from aragog.scrapers.factory import AdapterFactory
from aragog.scrapers.register_adapters import register_all_adapters
from aragog.runner import ShopResult, print_summary, run_shops

from conftest import (
    dracotienda_entry,
    dungeonmarvels_entry,
    jugamosotra_entry,
    listing_page,
)


# ============================================================================
# FACTORY
# ============================================================================

class TestAdapterFactory:
    """Test adapter registration and wiring."""

    def test_all_shops_registered(self, factory):
        assert sorted(factory.get_registered_shops()) == ["dracotienda", "dungeonmarvels", "jugamosotra"]
        assert "amazon" not in factory.get_registered_shops()

    def test_register_all_fills_given_factory(self, test_settings):
        factory = AdapterFactory(test_settings)

        assert register_all_adapters(factory) is factory
        assert len(factory.get_registered_shops()) == 3
        assert AdapterFactory(test_settings).get_registered_shops() == []

    async def test_create_adapter_uses_settings(self, factory, client, test_settings):
        adapter = factory.create_adapter("jugamosotra", client)

        assert isinstance(adapter, JugamosotraAdapter)
        assert adapter.fetcher.backoff_seconds == 0
        assert adapter.fetcher.max_attempts == test_settings.FETCH_MAX_ATTEMPTS
        assert adapter.publisher.backend.post_url == "http://backend.test/offer"
        assert adapter.publisher.ambiguous_statuses == frozenset({515})
        assert adapter.detail_fetch_delay == 0

    async def test_unknown_shop(self, factory, client):
        assert factory.create_adapter("amazon", client) is None

    def test_rejects_non_adapter(self, test_settings):
        with pytest.raises(ValueError):
            AdapterFactory(test_settings).register_adapter("bogus", dict)

    def test_shop_identity(self):
        assert (DracotiendaAdapter.shop_name, DracotiendaAdapter.page_size) == ("Dracotienda", 24)
        assert (DungeonMarvelsAdapter.shop_name, DungeonMarvelsAdapter.page_size) == ("DungeonMarvels", 24)
        assert (JugamosotraAdapter.shop_name, JugamosotraAdapter.page_size) == ("JugamosOtra", 80)


# ============================================================================
# RUNNER
# ============================================================================

class TestRunShops:
    """Test that shops crawl independently and report separately."""

    async def test_one_abort_does_not_affect_others(self, test_settings, transport, fake_shop, backend, injector):
        fake_shop.pages[DracotiendaAdapter.start_url] = listing_page(
            [dracotienda_entry("Wingspan", "https://dracotienda.com/wingspan.html", "45,00 €")]
        )
        fake_shop.pages[DungeonMarvelsAdapter.start_url] = listing_page(
            [dungeonmarvels_entry("Catan", "https://dungeonmarvels.com/catan.html", "19,99 €")]
        )
        fake_shop.pages[JugamosotraAdapter.start_url] = [503]

        results = await run_shops(
            ["dracotienda", "dungeonmarvels", "jugamosotra"],
            item_limit=10,
            settings=test_settings,
            injector=injector,
            transport=transport,
        )

        by_shop = {r.shop_slug: r for r in results}
        assert [r.shop_slug for r in results] == ["dracotienda", "dungeonmarvels", "jugamosotra"]
        assert by_shop["dracotienda"].offers_published == 1
        assert by_shop["dungeonmarvels"].offers_published == 1
        assert not by_shop["dracotienda"].aborted
        assert by_shop["jugamosotra"].aborted
        assert "jugamosotra" in by_shop["jugamosotra"].error
        assert sorted(backend.names) == ["Catan", "Wingspan"]

    async def test_unknown_shop_is_reported(self, test_settings, transport, injector):
        results = await run_shops(["amazon"], settings=test_settings, injector=injector, transport=transport)

        assert results[0].error == "unknown shop"
        assert not results[0].aborted

    async def test_publish_failures_reported(self, test_settings, transport, fake_shop, backend, injector):
        fake_shop.pages[JugamosotraAdapter.start_url] = listing_page(
            [
                jugamosotra_entry("Catan", "https://jugamosotra.com/es/1-catan.html", "30,00 €"),
                jugamosotra_entry("Azul", "https://jugamosotra.com/es/2-azul.html", "25,00 €"),
            ]
        )
        backend.statuses = [408, 200]

        [result] = await run_shops(
            ["jugamosotra"], settings=test_settings, injector=injector, transport=transport
        )

        assert result.offers_published == 2
        assert result.publish_failures == 1
        assert result.pages_fetched == 1
        assert result.error is None

    def test_print_summary(self, capsys):
        print_summary(
            [
                ShopResult("dracotienda", 12, 0, 1, 3.2),
                ShopResult("jugamosotra", 0, 0, 0, 15.0, error="Crawl aborted", aborted=True),
            ]
        )

        out = capsys.readouterr().out
        assert "dracotienda" in out
        assert "aborted" in out
        assert "jugamosotra: Crawl aborted" in out


# ============================================================================
# CLI
# ============================================================================

class TestCli:
    """Test argument handling and exit status."""

    def test_defaults(self):
        args = cli.parse_args([])
        assert args.limit == 70
        assert args.shops is None

    def test_resolve_shops(self):
        assert cli.resolve_shops(None) == ["dracotienda", "jugamosotra", "dungeonmarvels"]
        assert cli.resolve_shops(["all"]) == ["dracotienda", "jugamosotra", "dungeonmarvels"]
        assert cli.resolve_shops(["jugamosotra", "jugamosotra"]) == ["jugamosotra"]

        with pytest.raises(ValueError):
            cli.resolve_shops(["amazon"])

    def test_unknown_shop_exit_code(self, capsys):
        assert cli.main(["--shop", "amazon"]) == 2
        assert "amazon" in capsys.readouterr().err

    @pytest.mark.parametrize("aborted, expected", [(False, 0), (True, 1)])
    def test_exit_code_reflects_aborts(self, monkeypatch, aborted, expected):
        calls = {}

        async def fake_run_shops(shops, item_limit, settings):
            calls["shops"] = shops
            calls["item_limit"] = item_limit
            return [ShopResult("dracotienda", 0, 0, 1, 0.1, aborted=aborted)]

        monkeypatch.setattr(cli, "run_shops", fake_run_shops)
        monkeypatch.setattr(cli, "init_telemetry", lambda settings: None)
        monkeypatch.setattr(cli, "shutdown_telemetry", lambda: calls.setdefault("shutdown", True))

        assert cli.main(["--shop", "dracotienda", "--limit", "200"]) == expected
        assert calls == {"shops": ["dracotienda"], "item_limit": 200, "shutdown": True}
