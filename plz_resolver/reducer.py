"""
Pure state transitions for the address form.

Every user edit and every lookup outcome is an event; ``reduce`` maps the
current snapshot plus one event to the next snapshot. The resolver applies
it synchronously before scheduling any lookup, so the mutual exclusion rules
(editing one field clears the other's derived state) hold before any timer
or network call can observe the form.
"""

import re
from dataclasses import dataclass, replace
from typing import Sequence, Union

from plz_resolver.models import (
    ErrorState,
    FieldState,
    FieldStatus,
    FormState,
    LocalityRecord,
)

DEFAULT_MIN_POSTAL_CODE_DIGITS = 3

_NON_DIGITS = re.compile(r"\D")


@dataclass(frozen=True, slots=True)
class LocalityEdited:
    value: str


@dataclass(frozen=True, slots=True)
class PostalCodeEdited:
    value: str


@dataclass(frozen=True, slots=True)
class LookupStarted:
    pass


@dataclass(frozen=True, slots=True)
class LookupFinished:
    pass


@dataclass(frozen=True, slots=True)
class LocalityLookupCompleted:
    """Records returned for a name query; empty when nothing matched."""

    records: tuple[LocalityRecord, ...] = ()


@dataclass(frozen=True, slots=True)
class LocalityLookupFailed:
    pass


@dataclass(frozen=True, slots=True)
class PostalCodeLookupCompleted:
    records: tuple[LocalityRecord, ...] = ()


@dataclass(frozen=True, slots=True)
class PostalCodeLookupFailed:
    pass


@dataclass(frozen=True, slots=True)
class DropdownToggled:
    pass


@dataclass(frozen=True, slots=True)
class DropdownDismissed:
    pass


@dataclass(frozen=True, slots=True)
class CandidateSelected:
    code: str


Event = Union[
    LocalityEdited,
    PostalCodeEdited,
    LookupStarted,
    LookupFinished,
    LocalityLookupCompleted,
    LocalityLookupFailed,
    PostalCodeLookupCompleted,
    PostalCodeLookupFailed,
    DropdownToggled,
    DropdownDismissed,
    CandidateSelected,
]


def digits_only(value: str) -> str:
    """Strip every non-digit character from a postal code input."""
    return _NON_DIGITS.sub("", value)


def distinct_postal_codes(records: Sequence[LocalityRecord]) -> tuple[str, ...]:
    """Sorted, de-duplicated postal codes of a lookup result."""
    return tuple(sorted({record.postal_code for record in records}))


def _with_locality(state: FormState, locality: FieldState) -> FormState:
    # An empty locality never carries candidates.
    if not locality.raw_value:
        return replace(state, locality=locality, candidates=(), dropdown_open=False)
    return replace(state, locality=locality)


def _on_locality_edited(state: FormState, value: str) -> FormState:
    if value == state.locality.raw_value:
        return state
    # Whitespace alone is kept as typed but never looked up.
    status = FieldStatus.PENDING if value.strip() else FieldStatus.IDLE
    state = replace(
        state,
        locality=FieldState(value, status),
        candidates=(),
        dropdown_open=False,
        error=None,
    )
    if value:
        state = replace(state, postal_code=FieldState())
    return state


def _on_postal_code_edited(state: FormState, value: str, min_digits: int) -> FormState:
    digits = digits_only(value)
    if digits == state.postal_code.raw_value:
        return state
    status = FieldStatus.PENDING if len(digits) >= min_digits else FieldStatus.IDLE
    state = replace(
        state,
        postal_code=FieldState(digits, status),
        error=None,
        dropdown_open=False,
    )
    if digits:
        state = _with_locality(state, FieldState())
    return state


def _on_locality_completed(state: FormState, records: Sequence[LocalityRecord]) -> FormState:
    name = state.locality.raw_value
    codes = distinct_postal_codes(records)

    if not codes:
        return replace(
            state,
            locality=FieldState(name, FieldStatus.INVALID),
            postal_code=FieldState(),
            candidates=(),
            dropdown_open=False,
            error=ErrorState.INVALID_LOCALITY,
        )

    resolved = FieldState(name, FieldStatus.RESOLVED)
    if len(codes) == 1:
        return replace(
            state,
            locality=resolved,
            postal_code=FieldState(codes[0], FieldStatus.RESOLVED),
            candidates=(),
            dropdown_open=False,
            error=None,
        )

    # Ambiguous: offer the codes, leave the postal code field as it is.
    return replace(
        state,
        locality=resolved,
        candidates=codes,
        dropdown_open=False,
        error=None,
    )


def _on_locality_failed(state: FormState) -> FormState:
    if state.locality.status is FieldStatus.PENDING:
        return replace(state, locality=FieldState(state.locality.raw_value))
    return state


def _on_postal_code_completed(state: FormState, records: Sequence[LocalityRecord]) -> FormState:
    if not records:
        return _on_postal_code_invalid(state)
    return replace(
        _with_locality(state, FieldState(records[0].name, FieldStatus.RESOLVED)),
        postal_code=FieldState(state.postal_code.raw_value, FieldStatus.RESOLVED),
        candidates=(),
        dropdown_open=False,
        error=None,
    )


def _on_postal_code_invalid(state: FormState) -> FormState:
    return replace(
        state,
        postal_code=FieldState(state.postal_code.raw_value, FieldStatus.INVALID),
        candidates=(),
        dropdown_open=False,
        error=ErrorState.INVALID_POSTAL_CODE,
    )


def reduce(
    state: FormState,
    event: Event,
    *,
    min_postal_code_digits: int = DEFAULT_MIN_POSTAL_CODE_DIGITS,
) -> FormState:
    """Return the snapshot that follows ``state`` once ``event`` is applied."""
    if isinstance(event, LocalityEdited):
        return _on_locality_edited(state, event.value)
    if isinstance(event, PostalCodeEdited):
        return _on_postal_code_edited(state, event.value, min_postal_code_digits)
    if isinstance(event, LookupStarted):
        return replace(state, pending_lookups=state.pending_lookups + 1, error=None)
    if isinstance(event, LookupFinished):
        return replace(state, pending_lookups=max(0, state.pending_lookups - 1))
    if isinstance(event, LocalityLookupCompleted):
        return _on_locality_completed(state, event.records)
    if isinstance(event, LocalityLookupFailed):
        return _on_locality_failed(state)
    if isinstance(event, PostalCodeLookupCompleted):
        return _on_postal_code_completed(state, event.records)
    if isinstance(event, PostalCodeLookupFailed):
        return _on_postal_code_invalid(state)
    if isinstance(event, DropdownToggled):
        if not state.candidates:
            return state
        return replace(state, dropdown_open=not state.dropdown_open)
    if isinstance(event, DropdownDismissed):
        return replace(state, dropdown_open=False)
    if isinstance(event, CandidateSelected):
        return replace(
            state,
            postal_code=FieldState(digits_only(event.code), FieldStatus.RESOLVED),
            candidates=(),
            dropdown_open=False,
        )
    raise TypeError(f"Unsupported form event: {event!r}")
