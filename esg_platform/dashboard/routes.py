from datetime import date

from flask import Blueprint, jsonify, request
from flask_login import login_required

from esg_platform import dashboards
from esg_platform.api import parse_date, parse_number
from esg_platform.models import Employee, TrainingProgram, GRIReport, Document
from esg_platform.training_metrics import TRAINING_HOURS_BENCHMARKS

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/dashboard")


def _year_arg():
    return parse_number(request.args.get("year"), "year", int) or date.today().year


@dashboard_bp.route("/")
@login_required
def index():
    reports = GRIReport.query.order_by(GRIReport.updated_at.desc()).all()
    stats = {
        "employees": Employee.query.count(),
        "active_employees": Employee.query.filter_by(status="Ativo").count(),
        "training_programs": TrainingProgram.query.count(),
        "documents": Document.query.count(),
        "reports": len(reports),
        "reports_by_status": {},
    }
    for r in reports:
        stats["reports_by_status"][r.status] = stats["reports_by_status"].get(r.status, 0) + 1
    return jsonify({
        "stats": stats,
        "recent_reports": [
            {"id": r.id, "title": r.title, "year": r.year, "status": r.status,
             "completion_percentage": r.completion_percentage}
            for r in reports[:5]
        ],
    })


@dashboard_bp.route("/training-hours")
@login_required
def training_hours():
    """GRI 404-1 over [start, end]; defaults to the current calendar year."""
    year = _year_arg()
    start = parse_date(request.args.get("start"), "start") or date(year, 1, 1)
    end = parse_date(request.args.get("end"), "end") or date(year, 12, 31)
    if end < start:
        return jsonify({"error": "end must not be before start."}), 400
    sector = request.args.get("sector") or None
    if sector and sector not in TRAINING_HOURS_BENCHMARKS:
        return jsonify({"error": f"Unknown sector: {sector}"}), 400
    try:
        data = dashboards.training_hours(start, date.fromordinal(end.toordinal() + 1), sector)
    except ValueError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(data)


@dashboard_bp.route("/benefits")
@login_required
def benefits():
    return jsonify(dashboards.benefits())


@dashboard_bp.route("/emissions")
@login_required
def emissions():
    intensity = request.args.get("intensity", "employee")
    if intensity not in ("employee", "revenue", "none"):
        return jsonify({"error": "intensity must be employee, revenue or none."}), 400
    return jsonify(dashboards.emissions(_year_arg(), intensity))


@dashboard_bp.route("/water")
@login_required
def water():
    return jsonify(dashboards.water(_year_arg()))


@dashboard_bp.route("/waste")
@login_required
def waste():
    return jsonify(dashboards.waste(_year_arg()))


@dashboard_bp.route("/stakeholders")
@login_required
def stakeholders():
    return jsonify(dashboards.stakeholders())


@dashboard_bp.route("/economic")
@login_required
def economic():
    year = _year_arg()
    data = dashboards.economic(year)
    if data is None:
        return jsonify({"error": f"No economic value data for {year}."}), 404
    return jsonify(data)
