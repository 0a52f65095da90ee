"""
Test suite for dependency injection container.

Tests factory functions for service creation and configuration.
Verifies TurnService wiring, shared clients and settings propagation.

System role: Verification of DI container
"""

from unittest.mock import AsyncMock, patch

import pytest

from threadchat.api.deps import get_persona_service, get_turn_service
from threadchat.api.deps.dependencies import ServiceCache
from threadchat.application.services import PersonaService, TurnService
from threadchat.configs.conversation import IngestionSettings, PersonaSettings, RunSettings
from threadchat.configs.kintone import KintoneSettings
from threadchat.configs.openai import OpenAISettings
from threadchat.configs.settings import Settings


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Provide settings with test credentials."""
    return Settings(
        kintone=KintoneSettings(domain="example.cybozu.com", chat_app_id="10", document_app_id="20"),
        openai=OpenAISettings(api_key="sk-test"),
        run=RunSettings(request_timeout_seconds=42.0),
        personas=PersonaSettings(directory=str(tmp_path / "personas")),
        ingestion=IngestionSettings(skip_duplicates=True),
    )


@pytest.fixture
def cache(settings: Settings) -> ServiceCache:
    return ServiceCache(settings)


class TestGetTurnService:
    """Test suite for get_turn_service factory."""

    def test_returns_turn_service(self, cache: ServiceCache) -> None:
        with patch("threadchat.api.deps.dependencies.get_service_cache", return_value=cache):
            service = get_turn_service()

        assert isinstance(service, TurnService)
        assert service.request_timeout_seconds == 42.0

    def test_locks_are_shared_between_requests(self, cache: ServiceCache) -> None:
        with patch("threadchat.api.deps.dependencies.get_service_cache", return_value=cache):
            first = get_turn_service()
            second = get_turn_service()

        assert first is not second
        assert first.locks is second.locks

    def test_settings_reach_pipeline(self, cache: ServiceCache) -> None:
        with patch("threadchat.api.deps.dependencies.get_service_cache", return_value=cache):
            service = get_turn_service()

        assert service.ingestion._skip_duplicates is True


class TestServiceCache:
    """Test suite for ServiceCache."""

    def test_clients_are_cached(self, cache: ServiceCache) -> None:
        assert cache.kintone_client is cache.kintone_client
        assert cache.gateway is cache.gateway
        assert cache.resolver.default == "gpt-4o-mini"

    def test_persona_service_uses_configured_directory(self, cache: ServiceCache, tmp_path) -> None:
        with patch("threadchat.api.deps.dependencies.get_service_cache", return_value=cache):
            service = get_persona_service()

        assert isinstance(service, PersonaService)
        service.update("p", "x", {})
        assert (tmp_path / "personas" / "p.json").is_file()

    def test_gateway_requires_api_key(self, settings: Settings) -> None:
        cache = ServiceCache(settings.model_copy(update={"openai": OpenAISettings(api_key=None)}))

        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            _ = cache.gateway

    @pytest.mark.asyncio
    async def test_aclose_releases_clients(self, cache: ServiceCache) -> None:
        kintone_client = cache.kintone_client
        gateway = cache.gateway

        with patch.object(kintone_client, "aclose", AsyncMock()) as kintone_close, patch.object(
            gateway, "aclose", AsyncMock()
        ) as gateway_close:
            await cache.aclose()

        kintone_close.assert_awaited_once()
        gateway_close.assert_awaited_once()
        assert cache.kintone_client is not kintone_client
