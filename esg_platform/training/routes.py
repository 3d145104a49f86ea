from flask import Blueprint, jsonify
from flask_login import login_required

from esg_platform import db, cache, dashboards
from esg_platform import training_service as service
from esg_platform.api import (
    json_body, clean, editor_required, get_or_404, result_response, batch_response, InvalidInput,
)
from esg_platform.models import Employee, EmployeeTraining, TrainingProgram
from esg_platform.query_cache import PROGRAM

training_bp = Blueprint("training", __name__, url_prefix="/training")

PROGRAM_DATES = ("start_date", "end_date", "efficacy_evaluation_deadline")
ENROLLMENT_DATES = ("completion_date",)


def _program_data(data):
    return clean(
        data, dates=PROGRAM_DATES, floats=("duration_hours",), ints=("valid_for_months",),
        bools=("is_mandatory",), allowed=service.PROGRAM_FIELDS,
    )


def _enrollment_data(data):
    return clean(
        data, dates=ENROLLMENT_DATES, floats=("score",),
        bools=("is_cancelled", "has_efficacy_evaluation"), allowed=service.ENROLLMENT_FIELDS,
    )


def _training_dict(training):
    data = training.to_dict()
    data["status"] = service.effective_status(training)
    return data


# ---------------------------------------------------------------------------
# Programs
# ---------------------------------------------------------------------------

@training_bp.route("/programs")
@login_required
def list_programs():
    programs = TrainingProgram.query.order_by(TrainingProgram.start_date.desc()).all()
    return jsonify([p.to_dict() for p in programs])


@training_bp.route("/programs", methods=["POST"])
@login_required
@editor_required
def create_program():
    result = service.save_program(_program_data(json_body()))
    return result_response(result, lambda p: p.to_dict(), created=True)


@training_bp.route("/programs/<int:program_id>")
@login_required
def view_program(program_id):
    program, missing = get_or_404(TrainingProgram, program_id)
    if missing:
        return missing

    def compute():
        data = program.to_dict()
        data["enrollments"] = [_training_dict(t) for t in program.enrollments.all()]
        return data
    return jsonify(cache.get_or_compute("program_detail", PROGRAM, program.id, compute))


@training_bp.route("/programs/<int:program_id>", methods=["PUT", "PATCH"])
@login_required
@editor_required
def update_program(program_id):
    program, missing = get_or_404(TrainingProgram, program_id)
    if missing:
        return missing
    result = service.save_program(_program_data(json_body()), program)
    return result_response(result, lambda p: p.to_dict())


@training_bp.route("/programs/<int:program_id>", methods=["DELETE"])
@login_required
@editor_required
def delete_program(program_id):
    program, missing = get_or_404(TrainingProgram, program_id)
    if missing:
        return missing
    return result_response(service.delete_program(program))


@training_bp.route("/programs/<int:program_id>/enroll", methods=["POST"])
@login_required
@editor_required
def bulk_enroll(program_id):
    """Enroll a list of employees: {"employee_ids": [...], ...enrollment fields}."""
    program, missing = get_or_404(TrainingProgram, program_id)
    if missing:
        return missing
    data = json_body()
    employee_ids = data.pop("employee_ids", None)
    if not isinstance(employee_ids, list) or not employee_ids:
        return jsonify({"error": "employee_ids must be a non-empty list."}), 400
    try:
        employee_ids = [int(i) for i in employee_ids]
    except (TypeError, ValueError):
        raise InvalidInput("employee_ids must contain integers.")
    batch = service.bulk_enroll(program, employee_ids, _enrollment_data(data))
    return batch_response(batch)


# ---------------------------------------------------------------------------
# Enrollments
# ---------------------------------------------------------------------------

@training_bp.route("/employees/<int:employee_id>/trainings")
@login_required
def employee_trainings(employee_id):
    employee, missing = get_or_404(Employee, employee_id)
    if missing:
        return missing
    return jsonify({
        "trainings": dashboards.employee_trainings(employee),
        "summary": dashboards.employee_training_summary(employee),
        "status_source": service.status_source(),
    })


@training_bp.route("/employees/<int:employee_id>/summary")
@login_required
def employee_summary(employee_id):
    employee, missing = get_or_404(Employee, employee_id)
    if missing:
        return missing
    return jsonify(dashboards.employee_training_summary(employee))


@training_bp.route("/employees/<int:employee_id>/trainings", methods=["POST"])
@login_required
@editor_required
def create_enrollment(employee_id):
    employee, missing = get_or_404(Employee, employee_id)
    if missing:
        return missing
    data = json_body()
    program_id = data.get("training_program_id")
    program = db.session.get(TrainingProgram, program_id) if program_id else None
    if program is None:
        return jsonify({"error": "training_program_id must reference an existing program."}), 400
    result = service.save_enrollment(employee, program, _enrollment_data(data))
    return result_response(result, _training_dict, created=True)


@training_bp.route("/enrollments/<int:training_id>", methods=["PUT", "PATCH"])
@login_required
@editor_required
def update_enrollment(training_id):
    training, missing = get_or_404(EmployeeTraining, training_id)
    if missing:
        return missing
    data = json_body()
    program = training.program
    if data.get("training_program_id") and data["training_program_id"] != training.training_program_id:
        program = db.session.get(TrainingProgram, data["training_program_id"])
        if program is None:
            return jsonify({"error": "training_program_id must reference an existing program."}), 400
    result = service.save_enrollment(training.employee, program, _enrollment_data(data), training)
    return result_response(result, _training_dict)


@training_bp.route("/enrollments/<int:training_id>", methods=["DELETE"])
@login_required
@editor_required
def delete_enrollment(training_id):
    training, missing = get_or_404(EmployeeTraining, training_id)
    if missing:
        return missing
    return result_response(service.delete_enrollment(training))

