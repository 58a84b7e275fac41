from dataclasses import replace

import pytest

from helpers import record
from plz_resolver.models import ErrorState, FieldState, FieldStatus, FormState
from plz_resolver.reducer import (
    CandidateSelected,
    DropdownDismissed,
    DropdownToggled,
    LocalityEdited,
    LocalityLookupCompleted,
    LocalityLookupFailed,
    LookupFinished,
    LookupStarted,
    PostalCodeEdited,
    PostalCodeLookupCompleted,
    PostalCodeLookupFailed,
    digits_only,
    distinct_postal_codes,
    reduce,
)

AMBIGUOUS = FormState(
    locality=FieldState("Berlin", FieldStatus.RESOLVED),
    candidates=("10115", "13353"),
)


def test_digits_only_strips_everything_else() -> None:
    assert digits_only("80 331") == "80331"
    assert digits_only("D-80331x") == "80331"
    assert digits_only("abc") == ""


def test_distinct_postal_codes_are_sorted_and_deduplicated(berlin_records) -> None:
    assert distinct_postal_codes(berlin_records) == ("10115", "13353")
    assert distinct_postal_codes([]) == ()


def test_locality_edit_clears_postal_code_candidates_and_error() -> None:
    state = replace(
        AMBIGUOUS,
        postal_code=FieldState("10115", FieldStatus.RESOLVED),
        dropdown_open=True,
        error=ErrorState.INVALID_POSTAL_CODE,
    )
    state = reduce(state, LocalityEdited("Hamburg"))
    assert state.locality == FieldState("Hamburg", FieldStatus.PENDING)
    assert state.postal_code == FieldState()
    assert state.candidates == ()
    assert state.dropdown_open is False
    assert state.error is None


def test_clearing_locality_keeps_postal_code() -> None:
    state = replace(AMBIGUOUS, postal_code=FieldState("10115", FieldStatus.RESOLVED))
    state = reduce(state, LocalityEdited(""))
    assert state.locality == FieldState()
    assert state.postal_code.raw_value == "10115"
    assert state.candidates == ()


def test_postal_code_edit_strips_non_digits_and_clears_locality() -> None:
    state = replace(AMBIGUOUS, dropdown_open=True)
    state = reduce(state, PostalCodeEdited("80-331"))
    assert state.postal_code == FieldState("80331", FieldStatus.PENDING)
    assert state.locality == FieldState()
    assert state.candidates == ()
    assert state.dropdown_open is False


@pytest.mark.parametrize("value", ["8", "80", "8a0"])
def test_short_postal_code_stays_idle(value: str) -> None:
    state = reduce(FormState(), PostalCodeEdited(value))
    assert state.postal_code.status is FieldStatus.IDLE
    assert state.error is None
    assert not state.loading


def test_postal_code_minimum_is_configurable() -> None:
    state = reduce(FormState(), PostalCodeEdited("80"), min_postal_code_digits=2)
    assert state.postal_code.status is FieldStatus.PENDING


def test_non_digit_postal_code_input_leaves_locality_alone() -> None:
    state = FormState(locality=FieldState("Berlin", FieldStatus.RESOLVED))
    state = reduce(state, PostalCodeEdited("abc"))
    assert state.postal_code == FieldState()
    assert state.locality.raw_value == "Berlin"


def test_locality_without_matches_is_invalid() -> None:
    state = FormState(
        locality=FieldState("asdasd", FieldStatus.PENDING),
        postal_code=FieldState("123", FieldStatus.PENDING),
    )
    state = reduce(state, LocalityLookupCompleted(()))
    assert state.error is ErrorState.INVALID_LOCALITY
    assert state.locality.status is FieldStatus.INVALID
    assert state.postal_code == FieldState()
    assert state.candidates == ()


def test_single_postal_code_fills_field(munich) -> None:
    state = FormState(locality=FieldState("München", FieldStatus.PENDING))
    state = reduce(state, LocalityLookupCompleted((munich, munich)))
    assert state.postal_code == FieldState("80331", FieldStatus.RESOLVED)
    assert state.locality.status is FieldStatus.RESOLVED
    assert state.candidates == ()
    assert state.error is None


def test_ambiguous_locality_offers_sorted_candidates_without_error(berlin_records) -> None:
    state = FormState(
        locality=FieldState("Berlin", FieldStatus.PENDING),
        error=ErrorState.INVALID_LOCALITY,
    )
    state = reduce(state, LocalityLookupCompleted(tuple(berlin_records)))
    assert state.candidates == ("10115", "13353")
    assert state.dropdown_open is False
    assert state.postal_code == FieldState()
    assert state.error is None


def test_failed_locality_lookup_only_resets_pending_status() -> None:
    state = FormState(locality=FieldState("Berlin", FieldStatus.PENDING), pending_lookups=1)
    state = reduce(state, LocalityLookupFailed())
    assert state.locality == FieldState("Berlin", FieldStatus.IDLE)
    assert state.error is None
    assert state.pending_lookups == 1


def test_postal_code_lookup_takes_first_match() -> None:
    state = FormState(postal_code=FieldState("01234", FieldStatus.PENDING))
    records = (record("Dresden", "01234"), record("Freital", "01234"))
    state = reduce(state, PostalCodeLookupCompleted(records))
    assert state.locality == FieldState("Dresden", FieldStatus.RESOLVED)
    assert state.postal_code == FieldState("01234", FieldStatus.RESOLVED)


@pytest.mark.parametrize("event", [PostalCodeLookupCompleted(()), PostalCodeLookupFailed()])
def test_unknown_postal_code_keeps_raw_value(event) -> None:
    state = FormState(postal_code=FieldState("99999", FieldStatus.PENDING))
    state = reduce(state, event)
    assert state.error is ErrorState.INVALID_POSTAL_CODE
    assert state.postal_code == FieldState("99999", FieldStatus.INVALID)
    assert state.status_message == "Invalid Postal Code"


def test_lookup_counter_and_status_message() -> None:
    state = reduce(FormState(error=ErrorState.INVALID_LOCALITY), LookupStarted())
    assert state.error is None
    assert state.loading
    assert state.status_message == "Verifying details..."

    state = reduce(state, LookupStarted())
    state = reduce(state, LookupFinished())
    assert state.loading
    state = reduce(state, LookupFinished())
    state = reduce(state, LookupFinished())
    assert state.pending_lookups == 0
    assert state.status_message is None


def test_error_message_replaces_loading() -> None:
    state = FormState(pending_lookups=1, error=ErrorState.INVALID_LOCALITY)
    assert state.status_message == "Invalid Locality"


def test_toggle_requires_candidates() -> None:
    assert reduce(FormState(), DropdownToggled()) == FormState()

    opened = reduce(AMBIGUOUS, DropdownToggled())
    assert opened.dropdown_open is True
    assert reduce(opened, DropdownToggled()).dropdown_open is False


def test_dismiss_closes_without_clearing_candidates() -> None:
    state = reduce(replace(AMBIGUOUS, dropdown_open=True), DropdownDismissed())
    assert state.dropdown_open is False
    assert state.candidates == ("10115", "13353")


def test_selecting_candidate_fills_postal_code() -> None:
    state = reduce(replace(AMBIGUOUS, dropdown_open=True), CandidateSelected("13353"))
    assert state.postal_code == FieldState("13353", FieldStatus.RESOLVED)
    assert state.candidates == ()
    assert state.dropdown_open is False
    assert state.locality.raw_value == "Berlin"


def test_payload_renders_sorted_candidates() -> None:
    payload = replace(AMBIGUOUS, candidates=("13353", "10115")).to_payload()
    assert payload["candidates"] == ["10115", "13353"]
    assert payload["locality_status"] == "resolved"
    assert payload["error"] is None
    assert payload["loading"] is False


def test_unknown_event_is_rejected() -> None:
    with pytest.raises(TypeError):
        reduce(FormState(), object())  # type: ignore[arg-type]


def test_unchanged_edits_keep_the_resolved_form() -> None:
    state = FormState(
        locality=FieldState("München", FieldStatus.RESOLVED),
        postal_code=FieldState("80331", FieldStatus.RESOLVED),
    )
    assert reduce(state, PostalCodeEdited("80331 ")) == state
    assert reduce(state, LocalityEdited("München")) == state


def test_whitespace_locality_stays_idle() -> None:
    state = reduce(FormState(), LocalityEdited("  "))
    assert state.locality == FieldState("  ", FieldStatus.IDLE)
