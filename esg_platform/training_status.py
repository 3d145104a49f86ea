"""
Training lifecycle rules

Derives the present-tense status of an employee's participation in a training
program from the program's scheduling window, and the certificate expiration
date from the completion date and the program validity.

Status labels are the persisted wire values and are matched verbatim by
listings, filters and the training-hours dashboard.
"""

import calendar
from datetime import date, datetime

STATUS_CANCELLED = "Cancelado"
STATUS_PLANNED = "Planejado"
STATUS_IN_PROGRESS = "Em Andamento"
STATUS_AWAITING_EFFICACY = "Aguardando Avaliação de Eficácia"
STATUS_COMPLETED = "Concluído"

TRAINING_STATUSES = (
    STATUS_CANCELLED,
    STATUS_PLANNED,
    STATUS_IN_PROGRESS,
    STATUS_AWAITING_EFFICACY,
    STATUS_COMPLETED,
)

EXPIRED_LABEL = "VENCIDO"


def _as_date(value):
    if isinstance(value, datetime):
        return value.date()
    return value


def calculate_training_status(start_date, end_date, efficacy_evaluation_deadline=None,
                              has_efficacy_evaluation=False, is_cancelled=False, today=None):
    """Classify a training given its program window.

    Cancellation short-circuits before any date is looked at, so a cancelled
    record is valid even with missing dates. Otherwise both window dates are
    required. All comparisons are inclusive on the boundary dates.
    """
    if is_cancelled:
        return STATUS_CANCELLED

    start_date = _as_date(start_date)
    end_date = _as_date(end_date)
    if start_date is None or end_date is None:
        raise ValueError("Training program must have both start_date and end_date.")

    today = _as_date(today) or date.today()

    if today < start_date:
        return STATUS_PLANNED
    if today <= end_date:
        return STATUS_IN_PROGRESS

    deadline = _as_date(efficacy_evaluation_deadline)
    if deadline is not None and today <= deadline and not has_efficacy_evaluation:
        return STATUS_AWAITING_EFFICACY
    return STATUS_COMPLETED


def status_for(training, today=None):
    """Live status for an EmployeeTraining row and its program."""
    program = training.program
    return calculate_training_status(
        program.start_date if program else None,
        program.end_date if program else None,
        efficacy_evaluation_deadline=program.efficacy_evaluation_deadline if program else None,
        has_efficacy_evaluation=bool(training.has_efficacy_evaluation),
        is_cancelled=bool(training.is_cancelled),
        today=today,
    )


def add_months(base, months):
    """Add calendar months, clamping the day to the end of the target month.

    2024-01-31 + 1 month -> 2024-02-29; 2023-01-31 + 1 month -> 2023-02-28.
    """
    if months <= 0:
        return base
    year = base.year + (base.month - 1 + months) // 12
    month = (base.month - 1 + months) % 12 + 1
    day = min(base.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def calculate_expiration_date(completion_date, valid_for_months):
    """completion_date + valid_for_months, or None when either is missing."""
    completion_date = _as_date(completion_date)
    if completion_date is None or valid_for_months is None:
        return None
    return add_months(completion_date, int(valid_for_months))


def days_until_expiry(expiration_date, today=None):
    expiration_date = _as_date(expiration_date)
    if expiration_date is None:
        return None
    today = _as_date(today) or date.today()
    return (expiration_date - today).days


def expiry_label(expiration_date, today=None, warning_days=30):
    """Badge text for a certificate: expired, expiring soon, or None."""
    days = days_until_expiry(expiration_date, today)
    if days is None:
        return None
    if days < 0:
        return EXPIRED_LABEL
    if days <= warning_days:
        return f"Vence em {days} dias"
    return None
