"""HTTP client factory for the OpenPLZ lookup service."""

import httpx

from plz_resolver.settings import Settings


def create_lookup_client(settings: Settings) -> httpx.AsyncClient:
    """
    Build an AsyncClient pointed at the locality lookup service.

    The base URL is the country root (e.g. ``https://openplzapi.org/de``);
    request paths are relative to it.
    """
    return httpx.AsyncClient(
        base_url=settings.lookup_service_url,
        timeout=settings.api_timeout,
        headers={"Accept": "application/json"},
    )
