"""Leave report API tests — routing, query parameters, problem details, CSV."""

from __future__ import annotations

import csv
import io

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tests.conftest import seed_employee, seed_holiday, seed_leave

BASE = "/api/v1/leave-reports"
AS_OF = {"reference_date": "2026-01-20", "start_month": 10}


async def _seed_team(db: AsyncSession) -> None:
    await seed_employee(db, "EMP001", "Asha Rao")
    await seed_employee(db, "EMP002", "Bala Iyer")
    await seed_leave(db, "EMP001", "2025-12-24", request_date="2025-12-01")
    await seed_leave(db, "EMP001", "2025-12-26", request_date="2025-12-02")
    await seed_leave(db, "EMP001", "2026-01-12", "2026-01-13", status="Rejected", request_date="2026-01-05")
    await seed_leave(db, "EMP002", "2026-01-05", "2026-01-09", request_date="2025-12-28")
    await seed_holiday(db, "2025-12-25", name="Christmas")
    await db.commit()


class TestHealth:

    async def test_health(self, client: AsyncClient):
        resp = await client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"


# ═════════════════════════════════════════════════════════════════════
# GET /summaries
# ═════════════════════════════════════════════════════════════════════


class TestSummariesEndpoint:

    async def test_all_months(self, client: AsyncClient, db: AsyncSession):
        await _seed_team(db)
        resp = await client.get(f"{BASE}/summaries", params=AS_OF)
        assert resp.status_code == 200
        body = resp.json()

        assert body["month"] == "All"
        assert body["month_label"] == "All Months"
        assert body["leave_year_start"] == "2025-11-01"
        assert body["leave_year_end"] == "2026-10-31"
        assert body["total"] == 2

        rows = {row["employee_id"]: row for row in body["rows"]}
        assert rows["EMP001"]["sandwich_count"] == 1
        assert rows["EMP001"]["sandwich_days"] == 2
        assert rows["EMP001"]["total_leave_days"] == 2
        assert rows["EMP002"]["extra_leaves"] == 4

    async def test_month_filter(self, client: AsyncClient, db: AsyncSession):
        await _seed_team(db)
        resp = await client.get(f"{BASE}/summaries", params={**AS_OF, "month": "2026-01"})
        rows = {row["employee_id"]: row for row in resp.json()["rows"]}
        assert resp.json()["month_label"] == "January 2026"
        assert rows["EMP001"]["total_leave_days"] == 0
        assert rows["EMP001"]["sandwich_count"] == 0
        assert rows["EMP002"]["total_leave_days"] == 5

    async def test_search_and_sort(self, client: AsyncClient, db: AsyncSession):
        await _seed_team(db)
        resp = await client.get(
            f"{BASE}/summaries",
            params={**AS_OF, "sort": "total_leave_days", "order": "desc"},
        )
        assert [r["employee_id"] for r in resp.json()["rows"]] == ["EMP002", "EMP001"]

        resp = await client.get(f"{BASE}/summaries", params={**AS_OF, "search": "bala"})
        assert [r["employee_id"] for r in resp.json()["rows"]] == ["EMP002"]

    async def test_start_month_override(self, client: AsyncClient, db: AsyncSession):
        await seed_employee(db, "EMP001")
        await db.commit()
        resp = await client.get(
            f"{BASE}/summaries",
            params={"reference_date": "2026-06-15", "start_month": 3},
        )
        body = resp.json()
        assert body["leave_year_start"] == "2026-04-01"
        assert body["rows"][0]["pending_leaves"] == 3

    async def test_invalid_month_is_problem_detail(self, client: AsyncClient):
        resp = await client.get(f"{BASE}/summaries", params={"month": "Jan-2026"})
        assert resp.status_code == 422
        assert resp.headers["content-type"].startswith("application/problem+json")
        body = resp.json()
        assert body["type"].endswith("/validation-error")
        assert "month" in body["errors"]

    async def test_unknown_sort_column(self, client: AsyncClient):
        resp = await client.get(f"{BASE}/summaries", params={"sort": "salary"})
        assert resp.status_code == 422
        assert resp.json()["status"] == 422

    async def test_start_month_out_of_range(self, client: AsyncClient):
        resp = await client.get(f"{BASE}/summaries", params={"start_month": 12})
        assert resp.status_code == 422

    async def test_january_start_index(self, client: AsyncClient, db: AsyncSession):
        await seed_employee(db, "EMP001")
        await db.commit()
        resp = await client.get(
            f"{BASE}/summaries",
            params={"reference_date": "2026-06-15", "start_month": 0},
        )
        body = resp.json()
        assert resp.status_code == 200
        assert body["leave_year_start"] == "2026-01-01"
        assert body["rows"][0]["pending_leaves"] == 6

    async def test_month_filter_is_case_insensitive(self, client: AsyncClient):
        resp = await client.get(f"{BASE}/summaries", params={"month": "all"})
        assert resp.status_code == 200
        assert resp.json()["month"] == "All"


# ═════════════════════════════════════════════════════════════════════
# POST /summaries
# ═════════════════════════════════════════════════════════════════════


class TestSnapshotEndpoint:

    async def test_frontend_payload_with_aliases(self, client: AsyncClient):
        payload = {
            "employees": [{"employeeId": "EMP001", "name": "Asha Rao"}, {"employeeId": "EMP002"}],
            "leaveRequests": [
                {"employeeId": "EMP001", "from": "2026-05-09", "to": "2026-05-09", "status": "approved"},
                {"employeeId": "EMP001", "from": "2026-05-11", "to": "2026-05-11", "status": "Approved"},
                {"employeeId": "EMP002", "from": "not a date", "to": "2026-05-12", "status": "Approved"},
            ],
            "holidays": [{"name": "Labour Day", "startDate": "2026-05-01", "endDate": "2026-05-01"}],
            "month": "2026-05",
            "referenceDate": "2026-05-20",
            "startMonth": 3,
        }
        resp = await client.post(f"{BASE}/summaries", json=payload)
        assert resp.status_code == 200
        rows = {row["employee_id"]: row for row in resp.json()["rows"]}

        assert rows["EMP001"]["sandwich_count"] == 1
        assert rows["EMP001"]["total_leave_days"] == 2
        assert rows["EMP001"]["extra_leaves"] == 1
        assert rows["EMP002"]["employee_name"] == "Unknown"
        assert rows["EMP002"]["total_leave_days"] == 0

    async def test_empty_snapshot(self, client: AsyncClient):
        resp = await client.post(f"{BASE}/summaries", json={"referenceDate": "2026-01-01"})
        assert resp.status_code == 200
        assert resp.json()["rows"] == []

    async def test_bad_start_month_rejected(self, client: AsyncClient):
        resp = await client.post(f"{BASE}/summaries", json={"startMonth": 12})
        assert resp.status_code == 422

    async def test_month_past_last_calendar_month_is_problem_detail(self, client: AsyncClient):
        payload = {
            "employees": [{"employeeId": "EMP001"}],
            "leaveRequests": [{"employeeId": "EMP001", "from": "2026-05-11", "to": "2026-05-11", "status": "Approved"}],
            "month": "9999-12",
        }
        resp = await client.post(f"{BASE}/summaries", json=payload)
        assert resp.status_code == 422
        assert resp.headers["content-type"].startswith("application/problem+json")
        assert "month" in resp.json()["errors"]


# ═════════════════════════════════════════════════════════════════════
# GET /summaries/export
# ═════════════════════════════════════════════════════════════════════


class TestExportEndpoint:

    async def test_csv_download(self, client: AsyncClient, db: AsyncSession):
        await _seed_team(db)
        resp = await client.get(f"{BASE}/summaries/export", params={"month": "2026-01"})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert 'filename="leave_summary_2026-01.csv"' in resp.headers["content-disposition"]

        parsed = list(csv.DictReader(io.StringIO(resp.text)))
        assert [r["Employee ID"] for r in parsed] == ["EMP001", "EMP002"]
        assert parsed[1]["Total Leave Days"] == "5"
        assert parsed[1]["Extra Leaves (LOP)"] == "4"


# ═════════════════════════════════════════════════════════════════════
# Drill-down
# ═════════════════════════════════════════════════════════════════════


class TestHistoryEndpoint:

    async def test_history_newest_first_with_reasons(self, client: AsyncClient, db: AsyncSession):
        await _seed_team(db)
        resp = await client.get(f"{BASE}/employees/EMP001/history")
        assert resp.status_code == 200
        body = resp.json()

        assert body["employee_name"] == "Asha Rao"
        assert body["total_entries"] == 3
        entries = body["entries"]
        assert [e["status"] for e in entries] == ["Rejected", "Approved", "Approved"]
        assert entries[0]["sandwich_reasons"] == []
        assert entries[1]["sandwich_reasons"] == ["Sandwiched around holiday Christmas (25-Dec-2025)"]
        assert entries[0]["days"] == 2

    async def test_history_month_filter(self, client: AsyncClient, db: AsyncSession):
        await _seed_team(db)
        resp = await client.get(f"{BASE}/employees/EMP001/history", params={"month": "2025-12"})
        assert resp.json()["total_entries"] == 2

    async def test_unknown_employee_404(self, client: AsyncClient):
        resp = await client.get(f"{BASE}/employees/NOPE/history")
        assert resp.status_code == 404
        body = resp.json()
        assert body["title"] == "Employee Not Found"
        assert body["instance"] == f"{BASE}/employees/NOPE/history"


class TestLedgerEndpoint:

    async def test_ledger_months(self, client: AsyncClient, db: AsyncSession):
        await _seed_team(db)
        resp = await client.get(f"{BASE}/employees/EMP001/ledger", params=AS_OF)
        assert resp.status_code == 200
        body = resp.json()

        assert [m["month"] for m in body["months"]] == ["2025-11", "2025-12", "2026-01"]
        assert [m["used"] for m in body["months"]] == [0, 2, 0]
        assert body["balance"] == 1
        assert body["total_accrued"] == 3

    async def test_ledger_unknown_employee(self, client: AsyncClient):
        resp = await client.get(f"{BASE}/employees/NOPE/ledger")
        assert resp.status_code == 404


class TestMonthsEndpoint:

    async def test_months_newest_first(self, client: AsyncClient, db: AsyncSession):
        await _seed_team(db)
        resp = await client.get(f"{BASE}/months")
        assert resp.status_code == 200
        body = resp.json()
        assert body["months"] == ["2026-01", "2025-12"]
        assert body["labels"]["2026-01"] == "January 2026"
