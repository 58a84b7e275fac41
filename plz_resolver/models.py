"""State and record types shared by the resolver, reducer and MCP tools."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

LOADING_MESSAGE = "Verifying details..."


class LocalityRecord(BaseModel):
    """One row returned by the lookup service."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str
    postal_code: str = Field(alias="postalCode")


class FieldStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    RESOLVED = "resolved"
    INVALID = "invalid"


class ErrorState(str, Enum):
    """User-visible resolution errors; the value is the message shown."""

    INVALID_LOCALITY = "Invalid Locality"
    INVALID_POSTAL_CODE = "Invalid Postal Code"


@dataclass(frozen=True, slots=True)
class FieldState:
    """Literal input text together with the status derived from it."""

    raw_value: str = ""
    status: FieldStatus = FieldStatus.IDLE


@dataclass(frozen=True, slots=True)
class FormState:
    """
    Snapshot of both address fields plus the disambiguation and status surface.

    Instances are immutable; every transition produces a new snapshot via the
    reducer, so a snapshot can be handed to a renderer without copying.
    """

    locality: FieldState = field(default_factory=FieldState)
    postal_code: FieldState = field(default_factory=FieldState)
    candidates: tuple[str, ...] = ()
    dropdown_open: bool = False
    error: ErrorState | None = None
    pending_lookups: int = 0

    @property
    def loading(self) -> bool:
        return self.pending_lookups > 0

    @property
    def status_message(self) -> str | None:
        """The single message for the status region; errors replace loading."""
        if self.error is not None:
            return self.error.value
        if self.loading:
            return LOADING_MESSAGE
        return None

    def to_payload(self) -> dict[str, Any]:
        """Render the snapshot as a JSON-friendly mapping."""
        return {
            "locality": self.locality.raw_value,
            "locality_status": self.locality.status.value,
            "postal_code": self.postal_code.raw_value,
            "postal_code_status": self.postal_code.status.value,
            "candidates": sorted(self.candidates),
            "dropdown_open": self.dropdown_open,
            "error": self.error.value if self.error is not None else None,
            "loading": self.loading,
            "status_message": self.status_message,
        }
