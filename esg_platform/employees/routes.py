import logging

from flask import Blueprint, jsonify, request
from flask_login import login_required

from esg_platform import db, cache
from esg_platform.api import (
    json_body, clean, editor_required, get_or_404, commit, batch_response,
)
from esg_platform.document_store import remove_stored_files
from esg_platform.employee_import import import_employees, EMPLOYEE_STATUSES
from esg_platform.models import Employee, EmployeeBenefit
from esg_platform.query_cache import EMPLOYEE, PROGRAM, COMPANY

logger = logging.getLogger(__name__)

employees_bp = Blueprint("employees", __name__, url_prefix="/employees")

EMPLOYEE_FIELDS = (
    "full_name", "employee_code", "email", "department", "role", "gender",
    "hire_date", "birth_date", "status",
)
BENEFIT_FIELDS = ("name", "benefit_type", "monthly_cost", "start_date", "end_date", "is_active")


def _invalidate(employee_id):
    cache.invalidate(EMPLOYEE, employee_id)
    cache.invalidate(COMPANY)


def _apply_employee(employee, data):
    values = clean(data, dates=("hire_date", "birth_date"), allowed=EMPLOYEE_FIELDS)
    if "full_name" in values and not values["full_name"]:
        return "Name is required."
    if values.get("status") and values["status"] not in EMPLOYEE_STATUSES:
        return f"Status must be one of {', '.join(EMPLOYEE_STATUSES)}."
    code = values.get("employee_code") or None
    if "employee_code" in values:
        clash = Employee.query.filter(Employee.employee_code == code, Employee.id != employee.id).first() \
            if code else None
        if clash is not None:
            return f"Employee code {code} is already in use."
        values["employee_code"] = code
    for name, value in values.items():
        setattr(employee, name, value)
    return None


@employees_bp.route("/")
@login_required
def list_employees():
    query = Employee.query
    status = request.args.get("status")
    if status:
        query = query.filter_by(status=status)
    department = request.args.get("department")
    if department:
        query = query.filter_by(department=department)
    search = (request.args.get("q") or "").strip()
    if search:
        query = query.filter(Employee.full_name.ilike(f"%{search}%"))
    return jsonify([e.to_dict() for e in query.order_by(Employee.full_name).all()])


@employees_bp.route("/", methods=["POST"])
@login_required
@editor_required
def create_employee():
    data = json_body()
    if not (data.get("full_name") or "").strip():
        return jsonify({"error": "Name is required."}), 400
    employee = Employee()
    error = _apply_employee(employee, data)
    if error:
        return jsonify({"error": error}), 409 if "in use" in error else 400
    db.session.add(employee)
    failed = commit("Employee creation")
    if failed:
        return failed
    cache.invalidate(COMPANY)
    logger.info(f"Employee {employee.id} created")
    return jsonify(employee.to_dict()), 201


@employees_bp.route("/<int:employee_id>")
@login_required
def view_employee(employee_id):
    employee, missing = get_or_404(Employee, employee_id)
    if missing:
        return missing
    data = employee.to_dict()
    data["benefits"] = [b.to_dict() for b in employee.benefits.all()]
    data["documents"] = [d.to_dict() for d in employee.documents.all()]
    return jsonify(data)


@employees_bp.route("/<int:employee_id>", methods=["PUT", "PATCH"])
@login_required
@editor_required
def update_employee(employee_id):
    employee, missing = get_or_404(Employee, employee_id)
    if missing:
        return missing
    error = _apply_employee(employee, json_body())
    if error:
        db.session.rollback()
        return jsonify({"error": error}), 409 if "in use" in error else 400
    failed = commit("Employee update")
    if failed:
        return failed
    _invalidate(employee.id)
    return jsonify(employee.to_dict())


@employees_bp.route("/<int:employee_id>", methods=["DELETE"])
@login_required
@editor_required
def delete_employee(employee_id):
    employee, missing = get_or_404(Employee, employee_id)
    if missing:
        return missing
    program_ids = {t.training_program_id for t in employee.trainings}
    stored_names = [d.filename for d in employee.documents]
    db.session.delete(employee)
    failed = commit("Employee deletion")
    if failed:
        return failed
    remove_stored_files(stored_names)
    _invalidate(employee_id)
    for program_id in program_ids:
        cache.invalidate(PROGRAM, program_id)
    logger.info(f"Employee {employee_id} deleted")
    return jsonify({"ok": True, "id": employee_id})


@employees_bp.route("/import", methods=["POST"])
@login_required
@editor_required
def import_file():
    """Import employees from an uploaded CSV or XLSX file."""
    file = request.files.get("file")
    if file is None or not file.filename:
        return jsonify({"error": "No file selected."}), 400
    try:
        batch = import_employees(file.filename, file.stream)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return batch_response(batch)


# ---------------------------------------------------------------------------
# Benefits
# ---------------------------------------------------------------------------

def _apply_benefit(benefit, data):
    values = clean(
        data, dates=("start_date", "end_date"), floats=("monthly_cost",),
        bools=("is_active",), allowed=BENEFIT_FIELDS,
    )
    if "name" in values and not values["name"]:
        return "Benefit name is required."
    if (values.get("monthly_cost") or 0) < 0:
        return "monthly_cost must not be negative."
    for name, value in values.items():
        setattr(benefit, name, value)
    if benefit.start_date and benefit.end_date and benefit.end_date < benefit.start_date:
        return "end_date must not be before start_date."
    return None


@employees_bp.route("/<int:employee_id>/benefits")
@login_required
def list_benefits(employee_id):
    employee, missing = get_or_404(Employee, employee_id)
    if missing:
        return missing
    return jsonify([b.to_dict() for b in employee.benefits.all()])


@employees_bp.route("/<int:employee_id>/benefits", methods=["POST"])
@login_required
@editor_required
def create_benefit(employee_id):
    employee, missing = get_or_404(Employee, employee_id)
    if missing:
        return missing
    data = json_body()
    if not (data.get("name") or "").strip():
        return jsonify({"error": "Benefit name is required."}), 400
    benefit = EmployeeBenefit(employee_id=employee.id)
    error = _apply_benefit(benefit, data)
    if error:
        return jsonify({"error": error}), 400
    db.session.add(benefit)
    failed = commit("Benefit creation")
    if failed:
        return failed
    _invalidate(employee.id)
    return jsonify(benefit.to_dict()), 201


@employees_bp.route("/benefits/<int:benefit_id>", methods=["PUT", "PATCH"])
@login_required
@editor_required
def update_benefit(benefit_id):
    benefit, missing = get_or_404(EmployeeBenefit, benefit_id)
    if missing:
        return missing
    error = _apply_benefit(benefit, json_body())
    if error:
        db.session.rollback()
        return jsonify({"error": error}), 400
    failed = commit("Benefit update")
    if failed:
        return failed
    _invalidate(benefit.employee_id)
    return jsonify(benefit.to_dict())


@employees_bp.route("/benefits/<int:benefit_id>", methods=["DELETE"])
@login_required
@editor_required
def delete_benefit(benefit_id):
    benefit, missing = get_or_404(EmployeeBenefit, benefit_id)
    if missing:
        return missing
    employee_id = benefit.employee_id
    db.session.delete(benefit)
    failed = commit("Benefit deletion")
    if failed:
        return failed
    _invalidate(employee_id)
    return jsonify({"ok": True, "id": benefit_id})
