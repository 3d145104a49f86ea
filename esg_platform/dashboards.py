"""
Dashboard loaders: query the rows for a period, run the pure aggregator and
keep the result in the query cache until a write touches the entity.
"""

import logging
from datetime import date

from flask import current_app

from esg_platform import cache
from esg_platform.query_cache import EMPLOYEE, COMPANY
from esg_platform.economic_value import calculate_economic_value
from esg_platform.environmental import calculate_emissions, calculate_water, calculate_waste
from esg_platform.models import (
    Employee, EmployeeBenefit, EmployeeTraining, EmissionEntry, WaterRecord, WasteLog,
    EconomicValueEntry, Stakeholder,
)
from esg_platform.social import calculate_benefits, calculate_stakeholder_engagement
from esg_platform.training_metrics import (
    summarize_employee_trainings, calculate_training_hours, previous_period,
)
from esg_platform.training_service import effective_status
from esg_platform.training_status import STATUS_COMPLETED, expiry_label

logger = logging.getLogger(__name__)


def _year_bounds(year):
    return date(year, 1, 1), date(year + 1, 1, 1)


def employee_trainings(employee):
    """Enrollment rows of one employee with the status in effect and badges."""
    warning_days = current_app.config.get("TRAINING_EXPIRY_WARNING_DAYS", 30)
    rows = []
    for t in employee.trainings.order_by(EmployeeTraining.created_at.desc()).all():
        row = t.to_dict()
        row["status"] = effective_status(t)
        row["expiry_label"] = expiry_label(t.expiration_date, warning_days=warning_days)
        rows.append(row)
    return rows


def employee_training_summary(employee):
    def compute():
        trainings = employee.trainings.all()
        statuses = {t.id: effective_status(t) for t in trainings}
        return summarize_employee_trainings(
            trainings, statuses,
            warning_days=current_app.config.get("TRAINING_EXPIRY_WARNING_DAYS", 30),
        )
    return cache.get_or_compute("training_summary", EMPLOYEE, employee.id, compute)


def _completed_between(start, end):
    """Completed enrollments with a completion date in [start, end)."""
    rows = (
        EmployeeTraining.query
        .filter(EmployeeTraining.completion_date >= start)
        .filter(EmployeeTraining.completion_date < end)
        .all()
    )
    return [t for t in rows if effective_status(t) == STATUS_COMPLETED]


def training_hours(start, end, sector=None):
    """GRI 404-1 for [start, end). Raises ValueError when nobody is active."""
    sector = sector or current_app.config.get("TRAINING_HOURS_BENCHMARK_SECTOR", "Default")

    def compute():
        employees = Employee.query.filter_by(status="Ativo").all()
        prev_start, prev_end = previous_period(start, end)
        return calculate_training_hours(
            employees,
            _completed_between(start, end),
            _completed_between(prev_start, prev_end),
            sector=sector,
        )
    return cache.get_or_compute(f"training_hours:{start}:{end}:{sector}", COMPANY, None, compute)


def benefits():
    return cache.get_or_compute(
        "benefits", COMPANY, None,
        lambda: calculate_benefits(Employee.query.all(), EmployeeBenefit.query.all()),
    )


def emissions(year, intensity_per="employee"):
    def compute():
        entries = EmissionEntry.query.filter_by(year=year).all()
        denominator, label = None, ""
        if intensity_per == "employee":
            denominator = Employee.query.filter_by(status="Ativo").count() or None
            label = "employee"
        elif intensity_per == "revenue":
            dva = EconomicValueEntry.query.filter_by(year=year).first()
            denominator = dva.revenue if dva is not None and dva.revenue else None
            label = "BRL revenue"
        return calculate_emissions(entries, denominator, label)
    return cache.get_or_compute(f"emissions:{year}:{intensity_per}", COMPANY, None, compute)


def water(year):
    start, end = _year_bounds(year)

    def compute():
        records = (
            WaterRecord.query
            .filter(WaterRecord.period_start_date >= start)
            .filter(WaterRecord.period_start_date < end)
            .all()
        )
        return calculate_water(records)
    return cache.get_or_compute(f"water:{year}", COMPANY, None, compute)


def waste(year):
    """Waste of `year`, compared with the previous year as baseline."""
    start, end = _year_bounds(year)
    base_start, base_end = _year_bounds(year - 1)

    def logs(a, b):
        return WasteLog.query.filter(WasteLog.log_date >= a).filter(WasteLog.log_date < b).all()

    return cache.get_or_compute(
        f"waste:{year}", COMPANY, None,
        lambda: calculate_waste(logs(start, end), logs(base_start, base_end)),
    )


def stakeholders():
    return cache.get_or_compute(
        "stakeholders", COMPANY, None,
        lambda: calculate_stakeholder_engagement(Stakeholder.query.all()),
    )


def economic(year):
    def compute():
        entry = EconomicValueEntry.query.filter_by(year=year).first()
        if entry is None:
            return None
        previous = EconomicValueEntry.query.filter_by(year=year - 1).first()
        return calculate_economic_value(entry, previous)
    return cache.get_or_compute(f"economic:{year}", COMPANY, None, compute)


def report_dashboards(report):
    """All dashboards for a report's year, keyed the way indicator sources expect."""
    year = report.year
    if report.reporting_period_start and report.reporting_period_end:
        start, end = report.reporting_period_start, report.reporting_period_end
        end = date.fromordinal(end.toordinal() + 1)
    else:
        start, end = _year_bounds(year)

    data = {
        "emissions": emissions(year),
        "water": water(year),
        "waste": waste(year),
        "benefits": benefits(),
        "stakeholders": stakeholders(),
        "economic": economic(year),
    }
    try:
        data["training_hours"] = training_hours(start, end)
    except ValueError as e:
        logger.warning(f"Training hours unavailable for report {report.id}: {e}")
        data["training_hours"] = None
    return data
