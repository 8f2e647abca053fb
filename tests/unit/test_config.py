"""Unit tests for settings loading and application."""

import json

import pytest
from pydantic import ValidationError

from dexrouter.config import RouterSettings, apply_settings, load_settings
from dexrouter.engine import Engine
from dexrouter.errors import Unauthorized
from dexrouter.models.venue import VenueId
from tests.helpers import ALICE, OPERATOR, TKA, TKB, TKC, WETH

ROUTER = "0x" + "a0" * 20
FACTORY = "0x" + "f0" * 20


def _settings_data():
    return {
        "wrappedNative": WETH,
        "defaultVenue": "UNISWAP_V3",
        "maxRouteDepth": 4,
        "deadlineBuffer": 60,
        "operators": [OPERATOR],
        "venues": [
            {"venue": "UNISWAP_V3", "router": ROUTER, "factory": FACTORY, "candidates": [500]},
            {"venue": 0, "router": ROUTER, "factory": FACTORY},
        ],
        "pinnedPools": [{"venue": "BALANCER", "tokenA": TKA, "tokenB": TKB, "pool": "0xid"}],
        "routes": [
            {
                "tokenIn": TKA,
                "tokenOut": TKC,
                "withReverse": True,
                "hops": [
                    {"tokenIn": TKA, "tokenOut": WETH, "venue": "UNISWAP_V2"},
                    {"tokenIn": WETH, "tokenOut": TKC, "venue": 2, "composite": True},
                ],
            }
        ],
    }


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "DEXROUTER_CONFIG",
        "DEXROUTER_MAX_ROUTE_DEPTH",
        "DEXROUTER_DEADLINE_BUFFER",
        "DEXROUTER_DEFAULT_VENUE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "router.json"
    path.write_text(json.dumps(_settings_data()))
    return path


class TestRouterSettings:
    def test_defaults(self):
        settings = load_settings()
        assert settings.default_venue is VenueId.UNISWAP_V2
        assert settings.implicit_fallback is True
        assert settings.venues == []

    def test_aliases_and_tags(self):
        settings = RouterSettings.model_validate(_settings_data())
        assert settings.default_venue is VenueId.UNISWAP_V3
        assert settings.venues[1].venue is VenueId.UNISWAP_V2
        assert settings.routes[0].hops[1].descriptor().is_composite

    def test_field_names_are_accepted(self):
        settings = RouterSettings(default_venue="ambient", max_route_depth=2)
        assert settings.default_venue is VenueId.AMBIENT

    @pytest.mark.parametrize(
        "override",
        [
            {"defaultVenue": "curve"},
            {"maxRouteDepth": 0},
            {"wrappedNative": "0x1234"},
            {"venues": [{"venue": 0}]},
        ],
    )
    def test_invalid(self, override):
        with pytest.raises(ValidationError):
            RouterSettings.model_validate({**_settings_data(), **override})


class TestLoadSettings:
    def test_from_path(self, config_file):
        assert load_settings(config_file).deadline_buffer == 60

    def test_from_env_path(self, config_file, monkeypatch):
        monkeypatch.setenv("DEXROUTER_CONFIG", str(config_file))
        assert load_settings().max_route_depth == 4

    def test_env_overrides_file(self, config_file, monkeypatch):
        """DEXROUTER_* variables win over the same field in the file."""
        monkeypatch.setenv("DEXROUTER_MAX_ROUTE_DEPTH", "7")
        monkeypatch.setenv("DEXROUTER_DEFAULT_VENUE", "balancer")
        settings = load_settings(config_file)
        assert settings.max_route_depth == 7
        assert settings.default_venue is VenueId.BALANCER
        assert settings.deadline_buffer == 60

    def test_bad_override(self, monkeypatch):
        monkeypatch.setenv("DEXROUTER_DEADLINE_BUFFER", "soon")
        with pytest.raises(ValidationError):
            load_settings()


class TestApplySettings:
    def test_engine_from_settings(self, chain):
        engine = Engine.from_settings(chain, RouterSettings.model_validate(_settings_data()))
        registry = engine.registry

        assert registry.default_venue is VenueId.UNISWAP_V3
        assert registry.max_route_depth == 4
        assert registry.deadline_buffer == 60
        assert set(registry.configured_venues()) == {VenueId.UNISWAP_V3, VenueId.UNISWAP_V2}
        assert registry.candidates_for(VenueId.UNISWAP_V3) == (500,)
        assert registry.endpoints_for(0).factory == FACTORY
        assert registry.pinned_pool(VenueId.BALANCER, TKB, TKA) == "0xid"
        assert engine.route_store.has_route(TKA, TKC)
        assert engine.route_store.has_route(TKC, TKA)

    def test_requires_operator(self, chain):
        settings = RouterSettings.model_validate({**_settings_data(), "operators": []})
        with pytest.raises(ValueError):
            Engine.from_settings(chain, settings)

    def test_non_operator_cannot_apply(self, engine):
        with pytest.raises(Unauthorized):
            apply_settings(
                RouterSettings.model_validate(_settings_data()),
                engine.registry,
                engine.route_store,
                ALICE,
            )
