"""Route tests over ASGITransport; the monitor is fed directly, no Redis."""

import pytest
import pytest_asyncio
from httpx import AsyncClient

from alarms.exporter import export_filename
from config import settings


@pytest_asyncio.fixture
async def populated(monitor, clock, make_indicators):
    """M01 critical overtemp (active), M02 warning fan cleared after 5m, M03 healthy."""
    await monitor._process({"unit_id": "M01", "name": "Module 1",
                            "indicators": make_indicators(overtemp="CRITICAL")})
    await monitor._process({"unit_id": "M02", "name": "Module 2",
                            "indicators": make_indicators(fan="WARNING")})
    await monitor._process({"unit_id": "M03", "name": "Module 3",
                            "indicators": make_indicators()})
    clock.advance(minutes=5)
    await monitor._process({"unit_id": "M02", "name": "Module 2",
                            "indicators": make_indicators()})
    clock.advance(hours=2)
    return monitor


@pytest.mark.asyncio
class TestUnitsRoutes:
    async def test_list_units_with_aggregate_status(self, client: AsyncClient, populated):
        r = await client.get("/api/units")
        assert r.status_code == 200
        data = r.json()
        assert [(u["id"], u["status"]) for u in data] == [
            ("M01", "CRITICAL"), ("M02", "OK"), ("M03", "OK"),
        ]
        assert len(data[0]["indicators"]) == 12

    async def test_get_unit(self, client: AsyncClient, populated):
        r = await client.get("/api/units/M01")
        assert r.status_code == 200
        assert r.json()["indicators"]["overtemp"] == "CRITICAL"

    async def test_unknown_unit_404(self, client: AsyncClient, populated):
        r = await client.get("/api/units/M42")
        assert r.status_code == 404

    async def test_validate_reports_discrepancies(self, client: AsyncClient, populated):
        r = await client.post("/api/units/validate", json={"M01": "WARNING", "M03": "OK", "X": "OK"})
        assert r.status_code == 200
        assert {(d["unit_id"], d["reason"]) for d in r.json()} == {
            ("M01", "mismatch"), ("X", "unknown_unit"),
        }


@pytest.mark.asyncio
class TestAlarmRoutes:
    async def test_unfiltered_view(self, client: AsyncClient, populated):
        r = await client.get("/api/alarms")
        assert r.status_code == 200
        data = r.json()
        assert data["active_count"] == 1
        assert data["cleared_count"] == 1
        active = data["active"][0]
        assert (active["unit_id"], active["unit_name"], active["indicator"]) == ("M01", "Module 1", "overtemp")
        assert active["duration"] == "2h 5m"
        assert active["is_active"] is True
        assert data["cleared"][0]["duration"] == "5m"

    async def test_time_range_filter(self, client: AsyncClient, populated):
        r = await client.get("/api/alarms", params={"time_range": "1h"})
        data = r.json()
        assert data["active_count"] == 0
        assert data["cleared_count"] == 0

    async def test_severity_and_module_filter(self, client: AsyncClient, populated):
        r = await client.get("/api/alarms", params={"severity": "WARNING", "module": "M02"})
        data = r.json()
        assert data["active"] == []
        assert [c["unit_id"] for c in data["cleared"]] == ["M02"]

    async def test_invalid_filter_token_rejected(self, client: AsyncClient, populated):
        r = await client.get("/api/alarms", params={"severity": "BAD"})
        assert r.status_code == 422

    async def test_export_csv(self, client: AsyncClient, populated, clock):
        r = await client.get("/api/alarms/export")
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("text/csv")
        expected_name = export_filename(settings.SYSTEM_NAME, clock.now)
        assert r.headers["content-disposition"] == f'attachment; filename="{expected_name}"'
        lines = r.text.splitlines()
        assert lines[0].startswith("Severity,Module,Status")
        assert len(lines) == 3

    async def test_export_empty_view_is_header_only(self, client: AsyncClient, populated):
        r = await client.get("/api/alarms/export", params={"module": "M03"})
        assert r.status_code == 200
        assert r.text.splitlines() == ["Severity,Module,Status,Triggered Time,Cleared Time,Duration,Message"]

    async def test_definitions(self, client: AsyncClient):
        r = await client.get("/api/alarms/definitions")
        assert r.status_code == 200
        data = r.json()
        assert len(data) == 12
        assert {"indicator": "overtemp", "label": "Overtemp",
                "message": "IGBT module over-temperature"} in data


@pytest.mark.asyncio
async def test_cleared_view_after_long_gap(client: AsyncClient, populated, clock):
    clock.advance(days=8)
    r = await client.get("/api/alarms", params={"time_range": "7d"})
    data = r.json()
    assert data["cleared_count"] == 0
    # active alarms are windowed on activation time too
    assert data["active_count"] == 0
