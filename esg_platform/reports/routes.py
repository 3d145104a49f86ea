import logging

from flask import Blueprint, jsonify, send_file
from flask_login import login_required, current_user

from esg_platform import db, cache, dashboards, wizard
from esg_platform import report_service as service
from esg_platform.ai_writer import generate_section
from esg_platform.api import (
    json_body, clean, editor_required, get_or_404, result_response, batch_response,
    parse_bool, commit,
)
from esg_platform.exporter import export_docx, export_pdf, export_filename, DOCX_MIMETYPE, PDF_MIMETYPE
from esg_platform.gri_indicators import GRI_INDICATORS, DEFAULT_SECTIONS, get_indicators_by_step
from esg_platform.models import (
    GRIReport, EmissionEntry, WaterRecord, WasteLog, EconomicValueEntry, Stakeholder,
)
from esg_platform.query_cache import REPORT, COMPANY

logger = logging.getLogger(__name__)

reports_bp = Blueprint("reports", __name__, url_prefix="/reports")


def _report_payload(report):
    data = report.to_dict()
    data["wizard"] = wizard.wizard_state(report.current_step or 1, report.furthest_step or 1)
    data["sections"] = [s.to_dict() for s in report.sections.all()]
    data["indicators"] = [v.to_dict() for v in report.indicator_values.all()]
    return data


def _planning_data(data):
    values = clean(
        data, dates=("reporting_period_start", "reporting_period_end"),
        allowed=service.EDITABLE_FIELDS + ("status",),
    )
    audience = values.get("target_audience")
    if audience is not None and not isinstance(audience, list):
        values["target_audience"] = [a.strip() for a in str(audience).split(",") if a.strip()]
    return values


@reports_bp.route("/")
@login_required
def list_reports():
    reports = GRIReport.query.order_by(GRIReport.year.desc(), GRIReport.updated_at.desc()).all()
    return jsonify([r.to_dict() for r in reports])


@reports_bp.route("/", methods=["POST"])
@login_required
@editor_required
def create_report():
    data = json_body()
    values = _planning_data(data)
    values.pop("status", None)
    title = values.pop("title", None)
    result = service.create_report(title, data.get("year"), current_user.id, **values)
    return result_response(result, _report_payload, created=True)


@reports_bp.route("/<int:report_id>")
@login_required
def view_report(report_id):
    report, missing = get_or_404(GRIReport, report_id)
    if missing:
        return missing
    return jsonify(cache.get_or_compute("report_detail", REPORT, report.id, lambda: _report_payload(report)))


@reports_bp.route("/<int:report_id>", methods=["PUT", "PATCH"])
@login_required
@editor_required
def update_report(report_id):
    report, missing = get_or_404(GRIReport, report_id)
    if missing:
        return missing
    return result_response(service.update_report(report, _planning_data(json_body())), _report_payload)


@reports_bp.route("/<int:report_id>", methods=["DELETE"])
@login_required
@editor_required
def delete_report(report_id):
    report, missing = get_or_404(GRIReport, report_id)
    if missing:
        return missing
    return result_response(service.delete_report(report))


# ---------------------------------------------------------------------------
# Wizard
# ---------------------------------------------------------------------------

@reports_bp.route("/<int:report_id>/wizard")
@login_required
def wizard_state(report_id):
    report, missing = get_or_404(GRIReport, report_id)
    if missing:
        return missing
    state = wizard.wizard_state(report.current_step or 1, report.furthest_step or 1)
    state["indicators"] = get_indicators_by_step().get(state["step"]["key"], [])
    return jsonify(state)


@reports_bp.route("/<int:report_id>/wizard/<string:action>", methods=["POST"])
@login_required
@editor_required
def wizard_move(report_id, action):
    """next | previous | go_to ({"step": n})."""
    report, missing = get_or_404(GRIReport, report_id)
    if missing:
        return missing
    if action not in ("next", "previous", "go_to"):
        return jsonify({"error": f"Unknown wizard action: {action}"}), 404
    target = json_body().get("step") if action == "go_to" else None
    return result_response(service.move_wizard(report, action, target), error_status=409)


# ---------------------------------------------------------------------------
# Sections and indicators
# ---------------------------------------------------------------------------

@reports_bp.route("/<int:report_id>/sections/<string:section_key>", methods=["PUT", "PATCH"])
@login_required
@editor_required
def save_section(report_id, section_key):
    report, missing = get_or_404(GRIReport, report_id)
    if missing:
        return missing
    data = json_body()
    is_complete = parse_bool(data["is_complete"]) if "is_complete" in data else None
    result = service.save_section(report, section_key, content=data.get("content"), is_complete=is_complete)
    return result_response(result, lambda s: s.to_dict(), error_status=404)


@reports_bp.route("/<int:report_id>/sections/<string:section_key>/generate", methods=["POST"])
@login_required
@editor_required
def generate(report_id, section_key):
    """Write a section with AI; {"regenerate": true} replaces existing text."""
    report, missing = get_or_404(GRIReport, report_id)
    if missing:
        return missing
    regenerate = parse_bool(json_body().get("regenerate", False))
    result = generate_section(report, section_key, dashboards.report_dashboards(report), regenerate)
    return result_response(result, error_status=404)


@reports_bp.route("/<int:report_id>/indicators/<path:indicator_code>", methods=["PUT", "PATCH"])
@login_required
@editor_required
def save_indicator(report_id, indicator_code):
    report, missing = get_or_404(GRIReport, report_id)
    if missing:
        return missing
    data = json_body()
    if "is_complete" in data:
        data["is_complete"] = parse_bool(data["is_complete"])
    return result_response(service.save_indicator(report, indicator_code, data), lambda v: v.to_dict())


@reports_bp.route("/<int:report_id>/indicators/prefill", methods=["POST"])
@login_required
@editor_required
def prefill(report_id):
    """Fill numeric indicators from the dashboards of the report's year."""
    report, missing = get_or_404(GRIReport, report_id)
    if missing:
        return missing
    overwrite = parse_bool(json_body().get("overwrite", False))
    return batch_response(service.prefill_indicators(report, dashboards.report_dashboards(report), overwrite))


@reports_bp.route("/catalog")
@login_required
def catalog():
    return jsonify({"indicators": GRI_INDICATORS, "sections": DEFAULT_SECTIONS, "steps": wizard.WIZARD_STEPS})


# ---------------------------------------------------------------------------
# Content and export
# ---------------------------------------------------------------------------

@reports_bp.route("/<int:report_id>/content")
@login_required
def content(report_id):
    report, missing = get_or_404(GRIReport, report_id)
    if missing:
        return missing
    return jsonify({"markdown": service.generate_report_content(report)})


@reports_bp.route("/<int:report_id>/export/<string:fmt>")
@login_required
def export(report_id, fmt):
    report, missing = get_or_404(GRIReport, report_id)
    if missing:
        return missing
    if fmt == "docx":
        buf, mimetype = export_docx(report), DOCX_MIMETYPE
    elif fmt == "pdf":
        buf, mimetype = export_pdf(report), PDF_MIMETYPE
    else:
        return jsonify({"error": "Format must be docx or pdf."}), 400
    return send_file(buf, mimetype=mimetype, as_attachment=True, download_name=export_filename(report, fmt))


# ---------------------------------------------------------------------------
# Environmental, economic and stakeholder data entry
# ---------------------------------------------------------------------------

DATA_TABLES = {
    "emissions": {
        "model": EmissionEntry, "required": ("year", "scope"),
        "ints": ("year", "scope"), "floats": ("tco2e",),
        "fields": ("year", "scope", "source_name", "category", "tco2e"),
    },
    "water": {
        "model": WaterRecord, "required": ("period_start_date", "period_end_date"),
        "dates": ("period_start_date", "period_end_date"),
        "floats": ("withdrawal_volume_m3", "consumption_volume_m3", "discharge_volume_m3",
                   "total_dissolved_solids_mg_l"),
        "bools": ("is_water_stressed_area",),
        "fields": ("source_type", "source_name", "withdrawal_volume_m3", "consumption_volume_m3",
                   "discharge_volume_m3", "total_dissolved_solids_mg_l", "is_water_stressed_area",
                   "water_quality", "period_start_date", "period_end_date"),
    },
    "waste": {
        "model": WasteLog, "required": ("waste_type", "log_date"),
        "dates": ("log_date",), "floats": ("quantity",), "bools": ("is_hazardous",),
        "fields": ("waste_type", "is_hazardous", "quantity", "unit", "final_destination", "log_date"),
    },
    "economic": {
        "model": EconomicValueEntry, "required": ("year",),
        "ints": ("year",), "floats": EconomicValueEntry.LINE_ITEMS,
        "fields": ("year",) + EconomicValueEntry.LINE_ITEMS,
    },
    "stakeholders": {
        "model": Stakeholder, "required": ("name",),
        "dates": ("last_engagement_date",), "ints": ("influence_level", "interest_level"),
        "floats": ("engagement_score",),
        "fields": ("name", "category", "influence_level", "interest_level", "engagement_score",
                   "last_engagement_date", "notes"),
    },
}


def _clean_row(table, data):
    return clean(
        data, dates=table.get("dates", ()), floats=table.get("floats", ()),
        ints=table.get("ints", ()), bools=table.get("bools", ()), allowed=table["fields"],
    )


def _validate_row(kind, values, row=None):
    if kind == "emissions" and values.get("scope") not in (None, 1, 2, 3):
        return "scope must be 1, 2 or 3."
    if kind == "stakeholders":
        for name in ("influence_level", "interest_level"):
            if values.get(name) is not None and not 1 <= values[name] <= 5:
                return f"{name} must be between 1 and 5."
        score = values.get("engagement_score")
        if score is not None and not 0 <= score <= 100:
            return "engagement_score must be between 0 and 100."
    if kind == "water":
        start = values.get("period_start_date") or getattr(row, "period_start_date", None)
        end = values.get("period_end_date") or getattr(row, "period_end_date", None)
        if start and end and end < start:
            return "period_end_date must not be before period_start_date."
    if kind == "economic" and values.get("year") is not None:
        if EconomicValueEntry.query.filter_by(year=values["year"]).first() is not None:
            return f"Economic value data for {values['year']} already exists."
    return None


@reports_bp.route("/data/<string:kind>")
@login_required
def list_rows(kind):
    table = DATA_TABLES.get(kind)
    if table is None:
        return jsonify({"error": f"Unknown data set: {kind}"}), 404
    rows = table["model"].query.order_by(table["model"].id).all()
    return jsonify([r.to_dict() for r in rows])


@reports_bp.route("/data/<string:kind>", methods=["POST"])
@login_required
@editor_required
def create_row(kind):
    table = DATA_TABLES.get(kind)
    if table is None:
        return jsonify({"error": f"Unknown data set: {kind}"}), 404
    values = _clean_row(table, json_body())
    absent = [f for f in table["required"] if values.get(f) in (None, "")]
    if absent:
        return jsonify({"error": f"Required: {', '.join(absent)}"}), 400
    error = _validate_row(kind, values)
    if error:
        return jsonify({"error": error}), 409 if "already exists" in error else 400

    row = table["model"](**values)
    db.session.add(row)
    failed = commit(f"Saving {kind} data")
    if failed:
        return failed
    cache.invalidate(COMPANY)
    return jsonify(row.to_dict()), 201


@reports_bp.route("/data/<string:kind>/<int:row_id>", methods=["PUT", "PATCH"])
@login_required
@editor_required
def update_row(kind, row_id):
    table = DATA_TABLES.get(kind)
    if table is None:
        return jsonify({"error": f"Unknown data set: {kind}"}), 404
    row, missing = get_or_404(table["model"], row_id)
    if missing:
        return missing
    values = _clean_row(table, json_body())
    if kind == "economic" and values.get("year") == row.year:
        values.pop("year")
    error = _validate_row(kind, values, row)
    if error:
        return jsonify({"error": error}), 409 if "already exists" in error else 400
    for name, value in values.items():
        setattr(row, name, value)
    failed = commit(f"Updating {kind} data")
    if failed:
        return failed
    cache.invalidate(COMPANY)
    return jsonify(row.to_dict())


@reports_bp.route("/data/<string:kind>/<int:row_id>", methods=["DELETE"])
@login_required
@editor_required
def delete_row(kind, row_id):
    table = DATA_TABLES.get(kind)
    if table is None:
        return jsonify({"error": f"Unknown data set: {kind}"}), 404
    row, missing = get_or_404(table["model"], row_id)
    if missing:
        return missing
    db.session.delete(row)
    failed = commit(f"Deleting {kind} data")
    if failed:
        return failed
    cache.invalidate(COMPANY)
    return jsonify({"ok": True, "id": row_id})
