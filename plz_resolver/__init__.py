"""
Bidirectional German locality / postal code (PLZ) resolution.

The resolver engine, its lookup client and the MCP tools that host it live
in submodules; the most commonly used names are re-exported here.
"""

from plz_resolver.client import LocalityLookupClient, LookupApiError
from plz_resolver.models import ErrorState, FieldState, FieldStatus, FormState, LocalityRecord
from plz_resolver.resolver import AddressResolver

__all__ = [
    "AddressResolver",
    "ErrorState",
    "FieldState",
    "FieldStatus",
    "FormState",
    "LocalityLookupClient",
    "LocalityRecord",
    "LookupApiError",
]
