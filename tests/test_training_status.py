from datetime import date, datetime

import pytest

from esg_platform.training_status import (
    STATUS_CANCELLED, STATUS_PLANNED, STATUS_IN_PROGRESS,
    STATUS_AWAITING_EFFICACY, STATUS_COMPLETED, EXPIRED_LABEL,
    calculate_training_status, add_months, calculate_expiration_date,
    days_until_expiry, expiry_label,
)

START = date(2024, 3, 1)
END = date(2024, 3, 5)
DEADLINE = date(2024, 4, 5)


def _status(today, **kwargs):
    kwargs.setdefault("efficacy_evaluation_deadline", DEADLINE)
    return calculate_training_status(START, END, today=today, **kwargs)


def test_before_start_is_planned():
    assert _status(date(2024, 2, 28)) == STATUS_PLANNED


def test_window_is_inclusive_on_both_ends():
    assert _status(START) == STATUS_IN_PROGRESS
    assert _status(date(2024, 3, 3)) == STATUS_IN_PROGRESS
    assert _status(END) == STATUS_IN_PROGRESS


def test_after_end_waits_for_efficacy_until_deadline():
    assert _status(date(2024, 3, 6)) == STATUS_AWAITING_EFFICACY
    assert _status(DEADLINE) == STATUS_AWAITING_EFFICACY
    assert _status(date(2024, 4, 6)) == STATUS_COMPLETED


def test_evaluation_done_completes_immediately():
    assert _status(date(2024, 3, 6), has_efficacy_evaluation=True) == STATUS_COMPLETED


def test_no_deadline_completes_after_end():
    assert _status(date(2024, 3, 6), efficacy_evaluation_deadline=None) == STATUS_COMPLETED


def test_cancelled_wins_even_without_dates():
    assert calculate_training_status(None, None, is_cancelled=True) == STATUS_CANCELLED
    assert _status(date(2024, 3, 3), is_cancelled=True) == STATUS_CANCELLED


def test_missing_dates_raise():
    with pytest.raises(ValueError):
        calculate_training_status(START, None, today=date(2024, 3, 3))


def test_datetimes_are_treated_as_dates():
    assert calculate_training_status(
        datetime(2024, 3, 1, 15, 0), datetime(2024, 3, 5, 8, 0), today=datetime(2024, 3, 5, 23, 59)
    ) == STATUS_IN_PROGRESS


def test_add_months_clamps_day():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)
    assert add_months(date(2024, 5, 10), 0) == date(2024, 5, 10)


def test_expiration_date():
    assert calculate_expiration_date(date(2024, 3, 10), 12) == date(2025, 3, 10)
    assert calculate_expiration_date(None, 12) is None
    assert calculate_expiration_date(date(2024, 3, 10), None) is None


def test_expiry_label():
    today = date(2024, 6, 1)
    assert expiry_label(date(2024, 5, 31), today=today) == EXPIRED_LABEL
    assert expiry_label(date(2024, 6, 1), today=today) == "Vence em 0 dias"
    assert expiry_label(date(2024, 7, 1), today=today) == "Vence em 30 dias"
    assert expiry_label(date(2024, 7, 2), today=today) is None
    assert expiry_label(None, today=today) is None
    assert days_until_expiry(date(2024, 6, 11), today=today) == 10
