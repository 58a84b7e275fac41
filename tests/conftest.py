import pytest

from helpers import record
from plz_resolver.models import LocalityRecord


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def munich() -> LocalityRecord:
    return record("München", "80331")


@pytest.fixture
def berlin_records() -> list[LocalityRecord]:
    return [
        record("Berlin", "13353"),
        record("Berlin", "10115"),
        record("Berlin", "10115"),
    ]
