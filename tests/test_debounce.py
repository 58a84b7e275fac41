import asyncio

import pytest

from plz_resolver.debounce import Debouncer


@pytest.mark.anyio
async def test_rescheduling_runs_only_the_latest_action() -> None:
    seen: list[str] = []
    debouncer = Debouncer("test", 0.02)

    def _action(value: str):
        async def _run() -> None:
            seen.append(value)

        return _run

    for value in ("M", "Mü", "Mün"):
        debouncer.schedule(_action(value))
        await asyncio.sleep(0.005)

    await asyncio.sleep(0.05)
    await debouncer.join()
    assert seen == ["Mün"]
    assert not debouncer.busy


@pytest.mark.anyio
async def test_cancel_drops_pending_timer() -> None:
    seen: list[str] = []
    debouncer = Debouncer("test", 0.01)

    async def _run() -> None:
        seen.append("fired")

    debouncer.schedule(_run)
    assert debouncer.scheduled
    assert debouncer.cancel() is True
    assert debouncer.cancel() is False

    await asyncio.sleep(0.03)
    assert seen == []


@pytest.mark.anyio
async def test_close_cancels_started_action() -> None:
    started = asyncio.Event()
    cancelled = asyncio.Event()
    debouncer = Debouncer("test", 0)

    async def _run() -> None:
        started.set()
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    debouncer.schedule(_run)
    await asyncio.wait_for(started.wait(), 1)
    assert debouncer.busy and not debouncer.scheduled

    debouncer.close()
    await asyncio.wait_for(cancelled.wait(), 1)
    assert not debouncer.busy
