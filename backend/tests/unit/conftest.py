from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport

from alarms.generator import AlarmGenerator
from alarms.models import ALL_INDICATORS, AlarmRecord, GeneratorConfig, Indicator, StatusLevel
from alarms.monitor import AlarmMonitor

NOW = datetime(2026, 1, 5, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock for deterministic generation."""

    def __init__(self, start: datetime = NOW) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_indicators() -> Callable[..., dict]:
    """All 12 indicators OK, with keyword overrides: make_indicators(overtemp="CRITICAL")."""

    def _make(**overrides) -> dict:
        indicators = {ind.value: StatusLevel.OK.value for ind in ALL_INDICATORS}
        indicators.update(overrides)
        return indicators

    return _make


@pytest.fixture
def make_record() -> Callable[..., AlarmRecord]:
    def _make(
        unit_id: str = "M01",
        indicator: Indicator = Indicator.OVERTEMP,
        severity: StatusLevel = StatusLevel.WARNING,
        activated_ago: timedelta = timedelta(minutes=30),
        cleared_ago: timedelta | None = None,
        duration: str | None = None,
    ) -> AlarmRecord:
        return AlarmRecord(
            unit_id=unit_id,
            indicator=indicator,
            severity=severity,
            activated_at=NOW - activated_ago,
            cleared_at=NOW - cleared_ago if cleared_ago is not None else None,
            duration=duration,
        )

    return _make


@pytest.fixture
def generator(clock: FakeClock) -> AlarmGenerator:
    return AlarmGenerator(clock=clock, config=GeneratorConfig())


@pytest.fixture
def fake_redis() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def monitor(fake_redis: AsyncMock, generator: AlarmGenerator) -> AlarmMonitor:
    return AlarmMonitor(fake_redis, generator)


@pytest.fixture
def test_app(monitor: AlarmMonitor) -> FastAPI:
    """Routers mounted on a bare app with the monitor wired in (no Redis, no lifespan)."""
    from alarms.router import router as alarms_router
    from api.units import router as units_router

    app = FastAPI()
    app.include_router(units_router)
    app.include_router(alarms_router)
    app.state.alarm_monitor = monitor
    return app


@pytest_asyncio.fixture
async def client(test_app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = ASGITransport(app=test_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
