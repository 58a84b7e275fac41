"""
Locality lookup client for the OpenPLZ ``Localities`` endpoint.

A single query method filters either by locality name or by postal code and
returns the matching ``{name, postalCode}`` rows. Non-success responses are
reported as ``None``; transport failures raise ``LookupApiError``.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from plz_resolver.http_client import create_lookup_client
from plz_resolver.models import LocalityRecord
from plz_resolver.settings import Settings

logger = logging.getLogger(__name__)

LOCALITIES_PATH = "/Localities"

_RECORDS = TypeAdapter(list[LocalityRecord])


class LookupApiError(RuntimeError):
    """Represents failures when communicating with the lookup service."""


def _build_filter(name: str | None, postal_code: str | None) -> dict[str, str]:
    """Turn the keyword arguments into exactly one query parameter."""
    params: dict[str, str] = {}
    if name is not None and name.strip():
        params["name"] = name.strip()
    if postal_code is not None and postal_code.strip():
        params["postalCode"] = postal_code.strip()
    if len(params) != 1:
        raise ValueError("Exactly one of name or postal_code must be a non-empty string.")
    return params


@dataclass(slots=True)
class LocalityLookupClient:
    """Typed wrapper around the shared AsyncClient."""

    _client: httpx.AsyncClient

    @classmethod
    def from_settings(cls, settings: Settings) -> "LocalityLookupClient":
        """Factory that builds the client from Settings."""
        return cls(create_lookup_client(settings))

    async def aclose(self) -> None:
        """Close the underlying HTTP resources."""
        await self._client.aclose()

    async def lookup(
        self,
        *,
        name: str | None = None,
        postal_code: str | None = None,
    ) -> list[LocalityRecord] | None:
        """Return the localities matching a name or a postal code."""
        params = _build_filter(name, postal_code)
        logger.debug("Looking up localities", extra={"filter": params})

        def _transport_error(message: str, *, exc: Exception | None = None) -> LookupApiError:
            logger.error(
                message,
                extra={"path": LOCALITIES_PATH, "filter": params},
                exc_info=exc,
            )
            return LookupApiError(message)

        try:
            response = await self._client.get(LOCALITIES_PATH, params=params)
        except httpx.TimeoutException as exc:
            raise _transport_error(
                f"Locality lookup timed out ({params}).",
                exc=exc,
            ) from exc
        except httpx.RequestError as exc:
            raise _transport_error(
                f"Locality lookup failed ({params}): {exc!s}",
                exc=exc,
            ) from exc

        if not response.is_success:
            logger.warning(
                "Lookup service responded with error",
                extra={
                    "path": LOCALITIES_PATH,
                    "filter": params,
                    "status_code": response.status_code,
                },
            )
            return None

        try:
            payload: Any = response.json()
        except json.JSONDecodeError as exc:
            raise _transport_error(
                f"Lookup service returned invalid JSON ({params}).",
                exc=exc,
            ) from exc

        try:
            return _RECORDS.validate_python(payload)
        except ValidationError as exc:
            raise _transport_error(
                f"Lookup service returned unexpected records ({params}).",
                exc=exc,
            ) from exc
