"""
Training metrics

1. Per-employee summary shown on the employee's training tab.
2. GRI 404-1 training-hours analysis for a reporting period: averages per
   employee with gender / department / category / role breakdowns, a
   benchmark classification and a compliance checklist.

All functions are pure reductions over already-loaded rows. Training rows are
EmployeeTraining-like objects exposing `employee_id`, `completion_date`,
`score`, `expiration_date` and `program` (with `duration_hours`, `category`,
`is_mandatory`).
"""

from datetime import date

from esg_platform.training_status import STATUS_COMPLETED, days_until_expiry

# Average training hours per employee per year considered "good" by sector
TRAINING_HOURS_BENCHMARKS = {
    "Default": {"good": 40, "minimum": 20},
    "Industry": {"good": 48, "minimum": 24},
    "Services": {"good": 36, "minimum": 18},
    "Technology": {"good": 44, "minimum": 22},
    "Retail": {"good": 24, "minimum": 12},
}

_MALE = ("masculino", "male", "m")
_FEMALE = ("feminino", "female", "f")
_UNSPECIFIED = "Não especificado"


def _hours(training):
    program = training.program
    if program is None or not program.duration_hours:
        return 0
    return program.duration_hours


def _pct(part, whole, digits=1):
    return round(part / whole * 100, digits) if whole else 0


def summarize_employee_trainings(trainings, statuses, today=None, warning_days=30):
    """Cards on the employee training tab.

    `statuses` maps training id -> status in effect (live or stored, chosen by
    the caller).
    """
    total_hours = sum(_hours(t) for t in trainings)
    completed = [t for t in trainings if statuses.get(t.id) == STATUS_COMPLETED]
    scored = [t.score for t in completed if t.score is not None]

    expiring = 0
    for t in trainings:
        days = days_until_expiry(t.expiration_date, today)
        if days is not None and 0 <= days <= warning_days:
            expiring += 1

    return {
        "total_hours": total_hours,
        "total_trainings": len(trainings),
        "completed_count": len(completed),
        "average_score": round(sum(scored) / len(scored), 1) if scored else None,
        "expiring_certificates": expiring,
    }


def _gender_bucket(gender):
    g = (gender or "").strip().lower()
    if g in _MALE:
        return "men"
    if g in _FEMALE:
        return "women"
    return "other"


def _group_by_employee_attr(employees, hours_by_employee, attr):
    groups = {}
    for emp in employees:
        key = getattr(emp, attr, None) or _UNSPECIFIED
        bucket = groups.setdefault(key, {"hours": 0, "count": 0})
        bucket["count"] += 1
        bucket["hours"] += hours_by_employee.get(emp.id, 0)
    return groups


def classify_performance(avg_hours, benchmark):
    if avg_hours >= benchmark * 1.2:
        return "Excelente"
    if avg_hours >= benchmark:
        return "Bom"
    if avg_hours >= benchmark * 0.6:
        return "Atenção"
    return "Crítico"


def data_quality_tier(completeness):
    if completeness >= 90:
        return "high"
    if completeness >= 70:
        return "medium"
    return "low"


def calculate_training_hours(employees, trainings, previous_trainings=(), sector="Default"):
    """GRI 404-1 analysis.

    Args:
        employees: active employees in scope.
        trainings: completed trainings inside the reporting period.
        previous_trainings: completed trainings of the preceding period of
            equal length, used for the comparison block.
        sector: key of TRAINING_HOURS_BENCHMARKS.

    Raises ValueError when there are no employees.
    """
    if not employees:
        raise ValueError("No active employees found.")

    total_employees = len(employees)
    employee_ids = {e.id for e in employees}
    trainings = [t for t in trainings if t.employee_id in employee_ids]

    total_hours = 0
    with_duration = 0
    without_duration = 0
    hours_by_employee = {}
    count_by_employee = {}
    for t in trainings:
        h = _hours(t)
        if h > 0:
            total_hours += h
            with_duration += 1
        else:
            without_duration += 1
        hours_by_employee[t.employee_id] = hours_by_employee.get(t.employee_id, 0) + h
        count_by_employee[t.employee_id] = count_by_employee.get(t.employee_id, 0) + 1

    avg_hours = total_hours / total_employees
    completeness = _pct(with_duration, len(trainings)) if trainings else 0
    quality = data_quality_tier(completeness)

    benchmark = TRAINING_HOURS_BENCHMARKS.get(sector, TRAINING_HOURS_BENCHMARKS["Default"])["good"]
    vs_benchmark = (avg_hours / benchmark - 1) * 100

    # Gender
    by_gender = {k: {"total_hours": 0, "employee_count": 0, "avg_hours": 0} for k in ("men", "women", "other")}
    for emp in employees:
        bucket = by_gender[_gender_bucket(emp.gender)]
        bucket["total_hours"] += hours_by_employee.get(emp.id, 0)
        bucket["employee_count"] += 1
    for bucket in by_gender.values():
        if bucket["employee_count"]:
            bucket["avg_hours"] = round(bucket["total_hours"] / bucket["employee_count"], 1)

    # Department / role
    by_department = [
        {
            "department": dept,
            "total_hours": d["hours"],
            "avg_hours": round(d["hours"] / d["count"], 1) if d["count"] else 0,
            "employee_count": d["count"],
            "percentage_of_total": _pct(d["hours"], total_hours),
        }
        for dept, d in _group_by_employee_attr(employees, hours_by_employee, "department").items()
    ]
    by_department.sort(key=lambda x: -x["avg_hours"])

    by_role = [
        {
            "role": role,
            "total_hours": d["hours"],
            "avg_hours": round(d["hours"] / d["count"], 1) if d["count"] else 0,
            "employee_count": d["count"],
        }
        for role, d in _group_by_employee_attr(employees, hours_by_employee, "role").items()
    ]
    by_role.sort(key=lambda x: -x["avg_hours"])

    # Category / mandatory
    categories = {}
    mandatory = {"total_hours": 0, "training_count": 0}
    optional = {"total_hours": 0, "training_count": 0}
    for t in trainings:
        h = _hours(t)
        cat = (t.program.category if t.program else None) or "Não categorizado"
        c = categories.setdefault(cat, {"hours": 0, "count": 0})
        c["hours"] += h
        c["count"] += 1
        target = mandatory if t.program is not None and t.program.is_mandatory else optional
        target["total_hours"] += h
        target["training_count"] += 1
    mandatory["percentage"] = _pct(mandatory["total_hours"], total_hours)
    optional["percentage"] = _pct(optional["total_hours"], total_hours)

    by_category = [
        {
            "category": cat,
            "total_hours": c["hours"],
            "training_count": c["count"],
            "avg_hours_per_training": round(c["hours"] / c["count"], 1) if c["count"] else 0,
            "percentage_of_total": _pct(c["hours"], total_hours),
        }
        for cat, c in categories.items()
    ]
    by_category.sort(key=lambda x: -x["total_hours"])

    # Monthly trend
    months = {}
    for t in trainings:
        if not t.completion_date:
            continue
        key = f"{t.completion_date.year}-{t.completion_date.month:02d}"
        m = months.setdefault(key, {"hours": 0, "count": 0})
        m["hours"] += _hours(t)
        m["count"] += 1
    monthly_trend = [
        {
            "month": key,
            "total_hours": m["hours"],
            "avg_hours_per_employee": round(m["hours"] / total_employees, 2),
            "trainings_completed": m["count"],
        }
        for key, m in sorted(months.items())
    ]

    # Previous period
    prev_hours = sum(_hours(t) for t in previous_trainings if t.employee_id in employee_ids)
    prev_avg = prev_hours / total_employees
    change = (avg_hours - prev_avg) / prev_avg * 100 if prev_avg > 0 else 0

    # Gaps
    untrained = [e for e in employees if e.id not in hours_by_employee]
    ranked = sorted(
        employees,
        key=lambda e: hours_by_employee.get(e.id, 0),
        reverse=True,
    )

    def _row(emp):
        return {
            "id": emp.id,
            "name": emp.full_name,
            "total_hours": hours_by_employee.get(emp.id, 0),
            "trainings_completed": count_by_employee.get(emp.id, 0),
        }

    top_10 = [_row(e) for e in ranked[:10]]
    trained = [e for e in ranked if hours_by_employee.get(e.id, 0) > 0]
    bottom_10 = [_row(e) for e in reversed(trained[-10:])]

    # GRI 404-1 checklist
    missing, recommendations = [], []
    if quality == "low":
        missing.append("Training duration incomplete (<70% of trainings have hours)")
        recommendations.append("Fill in duration_hours for every training program")
    if by_gender["men"]["employee_count"] == 0 and by_gender["women"]["employee_count"] == 0:
        missing.append("Gender data missing")
        recommendations.append("Record gender for every employee")
    if len(by_department) == 1 and by_department[0]["department"] == _UNSPECIFIED:
        missing.append("Departments not categorized")
        recommendations.append("Assign a department to every employee")

    return {
        "total_training_hours": total_hours,
        "total_employees": total_employees,
        "average_hours_per_employee": round(avg_hours, 1),
        "data_quality": quality,
        "trainings_with_duration": with_duration,
        "trainings_without_duration": without_duration,
        "data_completeness_percent": completeness,
        "by_gender": by_gender,
        "by_department": by_department,
        "by_category": by_category,
        "by_role": by_role,
        "mandatory_vs_optional": {"mandatory": mandatory, "optional": optional},
        "monthly_trend": monthly_trend,
        "comparison": {
            "previous_period_avg": round(prev_avg, 1),
            "change_percentage": round(change, 1),
            "is_improving": change > 0,
        },
        "employees_without_training": {
            "count": len(untrained),
            "percentage": _pct(len(untrained), total_employees),
            "employee_list": [
                {
                    "id": e.id,
                    "name": e.full_name,
                    "department": e.department or _UNSPECIFIED,
                    "hire_date": e.hire_date.isoformat() if e.hire_date else None,
                }
                for e in untrained[:10]
            ],
        },
        "top_10_employees": top_10,
        "bottom_10_employees": bottom_10,
        "performance_classification": classify_performance(avg_hours, benchmark),
        "sector_benchmark": benchmark,
        "performance_vs_benchmark": round(vs_benchmark, 1),
        "gri_404_1_compliance": {
            "is_compliant": not missing and quality != "low",
            "missing_data": missing,
            "recommendations": recommendations,
        },
        "calculation_date": date.today().isoformat(),
    }


def previous_period(start, end):
    """Window of equal length ending the day `start` begins (end exclusive)."""
    span = end - start
    return start - span, start
