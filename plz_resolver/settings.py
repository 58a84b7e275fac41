"""Environment-driven configuration utilities for the PLZ resolver."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_LOOKUP_SERVICE_URL = "https://openplzapi.org/de"


@dataclass(frozen=True, slots=True)
class Settings:
    """Container for runtime configuration."""

    lookup_service_url: str = DEFAULT_LOOKUP_SERVICE_URL
    api_timeout: float = 30.0
    debounce_seconds: float = 1.0
    min_postal_code_digits: int = 3
    mcp_sse_port: int = 8000

    @property
    def settle_timeout(self) -> float:
        """Upper bound for a debounced lookup plus the confirming lookup it triggers."""
        return 2 * (self.debounce_seconds + self.api_timeout)

    @classmethod
    def load(cls) -> "Settings":
        """
        Load configuration from environment variables.

        Python-dotenv is used so developers can rely on a local .env file without
        exporting variables globally.
        """
        load_dotenv()

        lookup_service_url = (
            os.getenv("LOOKUP_SERVICE_URL", "").strip() or DEFAULT_LOOKUP_SERVICE_URL
        )

        api_timeout_raw = os.getenv("API_TIMEOUT", "").strip() or "30"
        try:
            api_timeout = float(api_timeout_raw)
        except ValueError as exc:
            raise ValueError("API_TIMEOUT must be a numeric value.") from exc
        if api_timeout <= 0:
            raise ValueError("API_TIMEOUT must be greater than zero.")

        debounce_raw = os.getenv("DEBOUNCE_SECONDS", "").strip() or "1.0"
        try:
            debounce_seconds = float(debounce_raw)
        except ValueError as exc:
            raise ValueError("DEBOUNCE_SECONDS must be a numeric value.") from exc
        if debounce_seconds < 0:
            raise ValueError("DEBOUNCE_SECONDS must not be negative.")

        min_digits_raw = os.getenv("MIN_POSTAL_CODE_DIGITS", "").strip() or "3"
        try:
            min_postal_code_digits = int(min_digits_raw)
        except ValueError as exc:
            raise ValueError("MIN_POSTAL_CODE_DIGITS must be an integer.") from exc
        if min_postal_code_digits < 1:
            raise ValueError("MIN_POSTAL_CODE_DIGITS must be at least 1.")

        mcp_sse_port_raw = os.getenv("MCP_SSE_PORT", "").strip() or "8000"
        try:
            mcp_sse_port = int(mcp_sse_port_raw)
        except ValueError as exc:
            raise ValueError("MCP_SSE_PORT must be an integer.") from exc
        if mcp_sse_port <= 0:
            raise ValueError("MCP_SSE_PORT must be greater than zero.")

        return cls(
            lookup_service_url=lookup_service_url.rstrip("/"),
            api_timeout=api_timeout,
            debounce_seconds=debounce_seconds,
            min_postal_code_digits=min_postal_code_digits,
            mcp_sse_port=mcp_sse_port,
        )
