import asyncio
from typing import Callable

from plz_resolver.models import LocalityRecord

Response = list[LocalityRecord] | None | Exception


def record(name: str, postal_code: str) -> LocalityRecord:
    return LocalityRecord(name=name, postal_code=postal_code)


class FakeLookup:
    """In-memory stand-in for the lookup service, keyed by query value."""

    def __init__(
        self,
        by_name: dict[str, Response] | None = None,
        by_postal_code: dict[str, Response] | None = None,
    ) -> None:
        self.by_name = by_name or {}
        self.by_postal_code = by_postal_code or {}
        self.calls: list[dict[str, str]] = []
        self._gates: dict[str, asyncio.Event] = {}

    def block(self, value: str) -> asyncio.Event:
        """Hold lookups for ``value`` until the returned event is set."""
        gate = asyncio.Event()
        self._gates[value] = gate
        return gate

    async def lookup(
        self,
        *,
        name: str | None = None,
        postal_code: str | None = None,
    ) -> list[LocalityRecord] | None:
        if name is not None:
            self.calls.append({"name": name})
            key, table = name, self.by_name
        else:
            assert postal_code is not None
            self.calls.append({"postalCode": postal_code})
            key, table = postal_code, self.by_postal_code

        gate = self._gates.get(key)
        if gate is not None:
            await gate.wait()

        response = table.get(key, [])
        if isinstance(response, Exception):
            raise response
        return response


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout)

