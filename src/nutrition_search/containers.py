"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from nutrition_search.adapters.cnf_store import CnfDataStore
from nutrition_search.adapters.fdc_client import HttpxFdcClient
from nutrition_search.adapters.off_client import HttpxOffClient
from nutrition_search.config import Settings, is_configured, parse_data_types
from nutrition_search.services.cnf import CnfProvider
from nutrition_search.services.fdc import DEFAULT_DATA_TYPES, FdcProvider
from nutrition_search.services.off import OffProvider
from nutrition_search.services.search import CombinedSearchService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    fdc_provider: FdcProvider
    cnf_provider: CnfProvider
    off_provider: OffProvider
    search_service: CombinedSearchService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    timeout = resolved_settings.provider_timeout_seconds

    fdc_client: HttpxFdcClient | None = None
    if is_configured(resolved_settings.fdc_api_key):
        fdc_client = HttpxFdcClient.create(
            api_key=str(resolved_settings.fdc_api_key).strip(),
            base_url=resolved_settings.fdc_base_url,
            timeout=timeout,
        )
    off_client = HttpxOffClient.create(
        base_url=resolved_settings.off_base_url,
        user_agent=resolved_settings.off_user_agent,
        timeout=timeout,
    )
    cnf_store = CnfDataStore(
        data_dir=Path(resolved_settings.cnf_data_dir),
        encoding=resolved_settings.cnf_encoding,
    )

    fdc_provider = FdcProvider(
        client=fdc_client,
        data_types=parse_data_types(resolved_settings.fdc_data_types)
        or list(DEFAULT_DATA_TYPES),
    )
    cnf_provider = CnfProvider(store=cnf_store)
    off_provider = OffProvider(client=off_client)
    search_service = CombinedSearchService(
        usda=fdc_provider,
        cnf=cnf_provider,
        off=off_provider,
        timeout_seconds=timeout,
    )

    async def close_resources() -> None:
        if fdc_client is not None:
            await fdc_client.close()
        await off_client.close()

    return AppContainer(
        settings=resolved_settings,
        fdc_provider=fdc_provider,
        cnf_provider=cnf_provider,
        off_provider=off_provider,
        search_service=search_service,
        close_resources=close_resources,
    )
