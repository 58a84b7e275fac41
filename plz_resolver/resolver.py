"""
Bidirectional locality/postal code resolution engine.

``AddressResolver`` owns the form snapshot and the two lookup channels:

* locality -> postal code: debounced name query; one distinct code fills the
  postal code field, several populate the candidate list, none is an error.
* postal code -> locality: debounced code query once enough digits are typed;
  the first match names the locality, none (or a failed call) is an error.

Edits go through the reducer synchronously. Afterwards each channel whose
value changed bumps its generation, drops its pending timer and, if the new
value qualifies, schedules a fresh lookup. Results from an outdated
generation are discarded.
"""

import asyncio
import functools
import logging
from typing import Callable, Protocol, Sequence

from plz_resolver.debounce import Debouncer
from plz_resolver.dropdown import DropdownController
from plz_resolver.models import FormState, LocalityRecord
from plz_resolver.reducer import (
    DEFAULT_MIN_POSTAL_CODE_DIGITS,
    CandidateSelected,
    DropdownDismissed,
    DropdownToggled,
    Event,
    LocalityEdited,
    LocalityLookupCompleted,
    LocalityLookupFailed,
    LookupFinished,
    LookupStarted,
    PostalCodeEdited,
    PostalCodeLookupCompleted,
    PostalCodeLookupFailed,
    reduce,
)

logger = logging.getLogger(__name__)

LOCALITY_CHANNEL = "locality"
POSTAL_CODE_CHANNEL = "postal_code"

Listener = Callable[[FormState], None]


class LocalityLookup(Protocol):
    async def lookup(
        self,
        *,
        name: str | None = None,
        postal_code: str | None = None,
    ) -> Sequence[LocalityRecord] | None: ...


class AddressResolver:
    """Keeps the locality and postal code fields consistent with each other."""

    def __init__(
        self,
        lookup: LocalityLookup,
        *,
        debounce_seconds: float = 1.0,
        min_postal_code_digits: int = DEFAULT_MIN_POSTAL_CODE_DIGITS,
        dropdown: DropdownController | None = None,
    ) -> None:
        self._lookup = lookup
        self._min_postal_code_digits = min_postal_code_digits
        self._dropdown = dropdown or DropdownController()
        self._state = FormState()
        self._listeners: list[Listener] = []
        self._closed = False
        self._timers = {
            LOCALITY_CHANNEL: Debouncer(LOCALITY_CHANNEL, debounce_seconds),
            POSTAL_CODE_CHANNEL: Debouncer(POSTAL_CODE_CHANNEL, debounce_seconds),
        }
        self._generations = {LOCALITY_CHANNEL: 0, POSTAL_CODE_CHANNEL: 0}

    @property
    def state(self) -> FormState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def busy(self) -> bool:
        """True while any debounce timer or lookup is outstanding."""
        return any(timer.busy for timer in self._timers.values())

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a render callback; returns a function that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # User-facing handlers

    def edit_locality(self, value: str) -> FormState:
        return self.dispatch(LocalityEdited(value))

    def edit_postal_code(self, value: str) -> FormState:
        return self.dispatch(PostalCodeEdited(value))

    def toggle_dropdown(self) -> FormState:
        return self.dispatch(DropdownToggled())

    def select_candidate(self, code: str) -> FormState:
        return self.dispatch(CandidateSelected(code))

    def pointer_down(self, target: str | None) -> FormState:
        """Route a pointer interaction; outside the postal code region it closes the list."""
        if self._dropdown.contains(target):
            return self._state
        return self.dispatch(DropdownDismissed())

    # Core loop

    def dispatch(self, event: Event) -> FormState:
        """Apply ``event`` synchronously, then reschedule the affected channels."""
        if self._closed:
            logger.debug("Ignoring event after close", extra={"event": type(event).__name__})
            return self._state

        previous = self._state
        self._state = reduce(
            previous,
            event,
            min_postal_code_digits=self._min_postal_code_digits,
        )
        self._sync_channels(previous, self._state)
        if self._state != previous:
            for listener in list(self._listeners):
                listener(self._state)
        return self._state

    def _sync_channels(self, previous: FormState, current: FormState) -> None:
        locality = current.locality.raw_value
        if locality != previous.locality.raw_value:
            generation = self._advance(LOCALITY_CHANNEL)
            if locality.strip():
                self._timers[LOCALITY_CHANNEL].schedule(
                    functools.partial(self._resolve_locality, locality, generation)
                )

        postal_code = current.postal_code.raw_value
        if postal_code != previous.postal_code.raw_value:
            generation = self._advance(POSTAL_CODE_CHANNEL)
            if len(postal_code) >= self._min_postal_code_digits:
                self._timers[POSTAL_CODE_CHANNEL].schedule(
                    functools.partial(self._resolve_postal_code, postal_code, generation)
                )

    def _advance(self, channel: str) -> int:
        self._timers[channel].cancel()
        self._generations[channel] += 1
        return self._generations[channel]

    def _is_current(self, channel: str, generation: int) -> bool:
        if self._generations[channel] == generation:
            return True
        logger.debug(
            "Discarding stale lookup result",
            extra={"channel": channel, "generation": generation},
        )
        return False

    async def _resolve_locality(self, name: str, generation: int) -> None:
        self.dispatch(LookupStarted())
        try:
            records = await self._lookup.lookup(name=name.strip())
        except Exception:  # noqa: BLE001
            logger.warning(
                "Locality lookup failed",
                extra={"locality": name},
                exc_info=True,
            )
            if self._is_current(LOCALITY_CHANNEL, generation):
                self.dispatch(LocalityLookupFailed())
        else:
            if records is None:
                logger.warning(
                    "Locality lookup got a non-success response",
                    extra={"locality": name},
                )
                if self._is_current(LOCALITY_CHANNEL, generation):
                    self.dispatch(LocalityLookupFailed())
            elif self._is_current(LOCALITY_CHANNEL, generation):
                self.dispatch(LocalityLookupCompleted(tuple(records)))
        finally:
            self.dispatch(LookupFinished())

    async def _resolve_postal_code(self, postal_code: str, generation: int) -> None:
        self.dispatch(LookupStarted())
        try:
            records = await self._lookup.lookup(postal_code=postal_code)
        except Exception:  # noqa: BLE001
            logger.warning(
                "Postal code lookup failed",
                extra={"postal_code": postal_code},
                exc_info=True,
            )
            if self._is_current(POSTAL_CODE_CHANNEL, generation):
                self.dispatch(PostalCodeLookupFailed())
        else:
            if self._is_current(POSTAL_CODE_CHANNEL, generation):
                self.dispatch(PostalCodeLookupCompleted(tuple(records or ())))
        finally:
            self.dispatch(LookupFinished())

    # Lifecycle

    async def wait_idle(self, poll_interval: float = 0.01) -> FormState:
        """Wait until no timer is pending and no lookup is running."""
        while self.busy:
            for timer in self._timers.values():
                await timer.join()
            if self.busy:
                await asyncio.sleep(poll_interval)
        return self._state

    def close(self) -> None:
        """Cancel timers and in-flight lookups, then reset the form."""
        if self._closed:
            return
        self._closed = True
        for timer in self._timers.values():
            timer.close()
        self._state = FormState()
        self._listeners.clear()
        logger.info("Address resolver closed")
