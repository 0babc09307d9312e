# /tests/test_maintenance.py

import asyncio
from datetime import timedelta

import pytest

from app.core.clock import utcnow
from app.services import maintenance_service
from app.services.otp_service import otp_store


def test_run_once_sweeps_loans_and_purges_stale_rows(db, student, make_book, make_loan):
    late = make_loan(student, make_book(), borrowed_days_ago=20, due_in_days=-1)
    db.add_predictions([{
        "id": "pred_old", "type": "overdue_risk", "target_id": student.id, "prediction": {"risk_score": 0.4},
        "confidence": 0.5, "valid_until": utcnow(), "created_at": utcnow() - timedelta(days=8),
    }])

    results = maintenance_service.run_once(db)

    assert results["marked_overdue"] == 1
    assert results["predictions"] == 1
    assert results["analytics"] == 0
    assert db.get_transaction_by_id(late.id).status == "OVERDUE"


def test_purge_drops_expired_codes(monkeypatch):
    otp_store.create_otp("a@uni.edu")
    real_clock = otp_store._clock
    monkeypatch.setattr(otp_store, "_clock", lambda: real_clock() + 3600)

    assert maintenance_service.purge_in_memory_stores()["otps"] == 1


async def test_loop_keeps_running_after_a_failed_run(mocker):
    calls = []

    def run():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("database unavailable")
        return {"marked_overdue": 0}

    mocker.patch("app.services.maintenance_service._run_with_new_session", side_effect=run)

    task = asyncio.create_task(maintenance_service.maintenance_loop(interval_seconds=0.01))
    await asyncio.sleep(0.1)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert len(calls) >= 2


# --- Dashboard & health ---

def test_dashboard_summary(client, librarian, student, make_book, make_loan, auth_headers):
    make_loan(student, make_book(copies=3))
    make_book(title="Second", copies=1)

    summary = client.get("/api/dashboard/summary", headers=auth_headers(librarian)).json()

    assert summary["totalBooks"] == 2
    assert summary["totalCopies"] == 4
    assert summary["availableCopies"] == 3
    assert summary["activeLoans"] == 1
    assert summary["totalStudents"] == 1
    assert client.get("/api/dashboard/summary", headers=auth_headers(student)).status_code == 403


def test_health_check(client):
    assert client.get("/").json()["status"] == "Library API is running!"
