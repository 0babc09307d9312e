# /tests/test_predictive.py

from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from app.core.clock import utcnow
from app.services import ai_predictive_service as predictive

MARCH = datetime(2025, 3, 10, 12, 0)


def _user(role="STUDENT"):
    return SimpleNamespace(id="usr_1", role=role)


def _book(category="Technology", total=2, available=1):
    return SimpleNamespace(id="book_1", title="A Book", category=category,
                           total_copies=total, available_copies=available)


def _loan(now, borrowed_days_ago, due_in_days, returned_days_ago=None, book=None, user=None, status=None):
    returned = now - timedelta(days=returned_days_ago) if returned_days_ago is not None else None
    book = book or _book()
    user = user or _user()
    return SimpleNamespace(
        id="txn_1",
        user_id=user.id,
        book_id=book.id,
        user=user,
        book=book,
        borrowed_date=now - timedelta(days=borrowed_days_ago),
        due_date=now + timedelta(days=due_in_days),
        returned_date=returned,
        status=status or ("RETURNED" if returned else "BORROWED"),
    )


# --- Overdue risk ---

def test_late_history_and_imminent_due_date_is_high_risk():
    history = [
        _loan(MARCH, borrowed_days_ago=60, due_in_days=-46, returned_days_ago=40),
        _loan(MARCH, borrowed_days_ago=30, due_in_days=-16, returned_days_ago=10),
    ]
    current = _loan(MARCH, borrowed_days_ago=13, due_in_days=1)

    risk = predictive.calculate_overdue_risk(current, history + [current], MARCH)

    assert risk["risk_score"] == pytest.approx(0.8)
    assert risk["days_until_due"] == 1
    assert "book due very soon" in risk["factors"]
    assert risk["factors"][0].startswith("high historical overdue rate")
    assert risk["recommended_actions"] == ["Send immediate reminder", "Consider extension offer"]
    assert risk["confidence"] == pytest.approx(0.6)


def test_new_member_far_from_due_date_is_low_risk_except_at_exam_time():
    may = datetime(2025, 5, 2)
    current = _loan(may, borrowed_days_ago=1, due_in_days=10, book=_book("Fiction"))

    risk = predictive.calculate_overdue_risk(current, [current], may)

    assert risk["risk_score"] == pytest.approx(0.2)
    assert risk["factors"] == ["exam period timing"]
    assert risk["recommended_actions"] == []
    assert risk["confidence"] == pytest.approx(0.5)


def test_risk_is_capped_at_one():
    december = datetime(2025, 12, 1)
    book = _book("Technical Reference")
    history = [_loan(december, 40, -30, returned_days_ago=20, book=book) for _ in range(3)]
    active = [_loan(december, 2, 0, book=book) for _ in range(4)]

    risk = predictive.calculate_overdue_risk(active[0], history + active, december)

    assert risk["risk_score"] == 1.0


# --- Popularity forecast ---

def test_rising_academic_title_needs_more_copies():
    october = datetime(2025, 10, 15)
    book = _book("Textbook", total=2, available=0)
    borrowed_on = [datetime(2025, m, 5) for m in (5, 6, 7, 8)] + [datetime(2025, 9, d) for d in (1, 2, 3)] \
        + [datetime(2025, 10, d) for d in (1, 2, 3)]
    loans = [SimpleNamespace(borrowed_date=d) for d in borrowed_on]

    forecast = predictive.calculate_popularity_forecast(book, loans, october)

    assert forecast["trend_direction"] == "increasing"
    assert forecast["seasonal_factors"] == ["academic semester peak"]
    assert forecast["expected_demand"] == pytest.approx(2.6)
    assert forecast["recommended_copies"] == 4
    assert forecast["confidence"] == pytest.approx(0.9)


def test_title_without_history_is_stable_and_unconfident():
    forecast = predictive.calculate_popularity_forecast(_book("History"), [], MARCH)

    assert forecast["trend_direction"] == "stable"
    assert forecast["expected_demand"] == 0
    assert forecast["recommended_copies"] == 2
    assert forecast["confidence"] == pytest.approx(0.3)


@pytest.mark.parametrize("category, month, expected", [
    ("Fiction", 7, ["summer reading season"]),
    ("Fiction", 12, ["holiday reading period"]),
    ("Academic Textbook", 2, ["spring semester demand"]),
    ("Cooking", 7, []),
])
def test_seasonal_factors(category, month, expected):
    assert predictive.seasonal_factors(_book(category), datetime(2025, month, 1)) == expected


# --- Optimal due date ---

def test_new_reader_gets_longer_loan_for_reference_material():
    suggestion = predictive.calculate_optimal_due_date(_user(), _book("Reference"), [], MARCH)

    assert suggestion["loan_days"] == 25
    assert suggestion["user_profile"] == "new reader"
    assert suggestion["suggested_due_date"] == MARCH + timedelta(days=25)
    assert len(suggestion["reasoning"]) == 2


def test_loan_length_is_clamped_to_thirty_days():
    december = datetime(2025, 12, 3)
    suggestion = predictive.calculate_optimal_due_date(_user(), _book("Technical"), [], december)
    assert suggestion["loan_days"] == 30


def test_fast_frequent_reader_gets_minimum_loan():
    history = [_loan(MARCH, borrowed_days_ago=30, due_in_days=-16, returned_days_ago=27) for _ in range(11)]

    suggestion = predictive.calculate_optimal_due_date(_user("LIBRARIAN"), _book("Fiction"), history, MARCH)

    assert suggestion["user_profile"] == "frequent reader"
    assert suggestion["loan_days"] == 7


# --- Persisted predictions ---

def test_only_significant_risks_are_stored(db, student, make_book, make_loan):
    risky = make_loan(student, make_book(title="Due Tomorrow"), due_in_days=1)
    make_loan(student, make_book(title="Due Later"), due_in_days=10)

    stored = predictive.predict_overdue_risk(db, user_id=student.id, now=utcnow())

    assert len(stored) == 1
    assert stored[0].prediction["transaction_id"] == risky.id
    assert stored[0].target_id == student.id
    assert stored[0].valid_until == risky.due_date
    assert "Due Tomorrow" in stored[0].reasoning


def test_suggested_due_date_is_stored_as_prediction(db, student, make_book):
    book = make_book(category="Fiction")

    suggestion = predictive.suggest_optimal_due_date(db, student.id, book.id)

    stored = predictive.get_predictions_by_target(db, f"{student.id}-{book.id}")
    assert len(stored) == 1
    assert stored[0].type == "optimal_due_date"
    assert stored[0].prediction["loan_days"] == suggestion["loan_days"]
    assert isinstance(stored[0].prediction["suggested_due_date"], str)


def test_suggested_due_date_for_unknown_user(db, make_book):
    with pytest.raises(LookupError):
        predictive.suggest_optimal_due_date(db, "usr_missing", make_book().id)


def test_popularity_forecast_skips_low_confidence_titles(db, make_book):
    make_book()
    assert predictive.forecast_book_popularity(db) == []


def test_cleanup_removes_week_old_predictions(db, student, make_book, make_loan):
    make_loan(student, make_book(), due_in_days=1)
    predictive.predict_overdue_risk(db)

    assert predictive.cleanup_old_predictions(db) == 0
    assert predictive.cleanup_old_predictions(db, now=utcnow() + timedelta(days=8)) == 1
    assert predictive.get_all_predictions(db) == []


async def test_risk_assessment_falls_back_without_ai(db, student):
    text = await predictive.generate_risk_assessment(db, student.id)

    assert student.full_name in text
    assert await predictive.generate_risk_assessment(db, "usr_missing") is None
