"""
Training program and enrollment writes.

Every enrollment save derives the status snapshot and the certificate
expiration date from the program, so the stored columns never depend on what
the client sent.
"""

import logging
from datetime import date

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from esg_platform import db, cache
from esg_platform.query_cache import EMPLOYEE, PROGRAM, COMPANY
from esg_platform.models import Employee, EmployeeTraining, TrainingProgram
from esg_platform.results import OperationResult, BatchResult
from esg_platform.training_status import calculate_expiration_date, status_for

logger = logging.getLogger(__name__)

PROGRAM_FIELDS = (
    "name", "description", "category", "duration_hours", "is_mandatory",
    "valid_for_months", "start_date", "end_date", "efficacy_evaluation_deadline",
    "instructor", "status",
)
PROGRAM_STATUSES = ("Ativo", "Inativo")
ENROLLMENT_FIELDS = (
    "completion_date", "score", "is_cancelled", "has_efficacy_evaluation", "instructor", "notes",
)


def status_source():
    return current_app.config.get("TRAINING_STATUS_SOURCE", "live")


def effective_status(training, today=None):
    """Status shown to users: live from program dates, or the stored snapshot."""
    if status_source() == "stored":
        return training.status
    if training.program is None:
        return training.status
    return status_for(training, today)


def _invalidate_employee(employee_id):
    cache.invalidate(EMPLOYEE, employee_id)
    cache.invalidate(COMPANY)


def _validate_program(data):
    if not (data.get("name") or "").strip():
        return "Program name is required."
    start, end = data.get("start_date"), data.get("end_date")
    if start is None or end is None:
        return "Program start_date and end_date are required."
    if end < start:
        return "Program end_date must not be before start_date."
    months = data.get("valid_for_months")
    if months is not None and int(months) < 0:
        return "valid_for_months must be zero or positive."
    if data.get("status") and data["status"] not in PROGRAM_STATUSES:
        return f"Status must be one of {', '.join(PROGRAM_STATUSES)}."
    return None


def save_program(data, program=None):
    """Create a program, or update one; enrollments are re-derived on change."""
    merged = {name: getattr(program, name) for name in PROGRAM_FIELDS} if program else {}
    merged.update({k: v for k, v in data.items() if k in PROGRAM_FIELDS})
    error = _validate_program(merged)
    if error:
        return OperationResult.failure(error)

    is_new = program is None
    if is_new:
        program = TrainingProgram()
        db.session.add(program)
    for name, value in merged.items():
        setattr(program, name, value)

    try:
        db.session.flush()
        touched = set()
        if not is_new:
            for training in program.enrollments:
                _derive(training)
                touched.add(training.employee_id)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Saving training program failed: {e}")
        return OperationResult.failure(f"Saving training program failed: {e}")

    cache.invalidate(PROGRAM, program.id)
    for employee_id in touched:
        cache.invalidate(EMPLOYEE, employee_id)
    cache.invalidate(COMPANY)
    logger.info(f"Training program {program.id} {'created' if is_new else 'updated'}")
    return OperationResult.success(program)


def delete_program(program):
    employee_ids = {t.employee_id for t in program.enrollments}
    program_id = program.id
    try:
        db.session.delete(program)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Deleting training program {program_id} failed: {e}")
        return OperationResult.failure(f"Deleting training program failed: {e}")
    cache.invalidate(PROGRAM, program_id)
    for employee_id in employee_ids:
        cache.invalidate(EMPLOYEE, employee_id)
    cache.invalidate(COMPANY)
    return OperationResult.success({"id": program_id})


def _derive(training, today=None):
    """Write the status snapshot and expiration date from the program."""
    program = training.program
    if program is None:
        return
    training.status = status_for(training, today)
    training.expiration_date = calculate_expiration_date(
        training.completion_date, program.valid_for_months
    )


def _validate_enrollment(data):
    score = data.get("score")
    if score is not None:
        try:
            score = float(score)
        except (TypeError, ValueError):
            return "Score must be a number."
        if score < 0 or score > 100:
            return "Score must be between 0 and 100."
    completion = data.get("completion_date")
    if completion is not None and not isinstance(completion, date):
        return "completion_date must be a date."
    return None


def save_enrollment(employee, program, data, training=None):
    error = _validate_enrollment(data)
    if error:
        return OperationResult.failure(error)

    if training is None:
        training = EmployeeTraining(employee=employee, program=program)
        db.session.add(training)
    elif program is not None and training.training_program_id != program.id:
        old_program_id = training.training_program_id
        training.program = program
        cache.invalidate(PROGRAM, old_program_id)

    for name in ENROLLMENT_FIELDS:
        if name in data:
            setattr(training, name, data[name])
    if training.score is not None:
        training.score = float(training.score)
    _derive(training)

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Saving enrollment for employee {employee.id} failed: {e}")
        return OperationResult.failure(f"Saving enrollment failed: {e}")

    _invalidate_employee(training.employee_id)
    cache.invalidate(PROGRAM, training.training_program_id)
    return OperationResult.success(training)


def delete_enrollment(training):
    employee_id, program_id, training_id = training.employee_id, training.training_program_id, training.id
    try:
        db.session.delete(training)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Deleting enrollment {training_id} failed: {e}")
        return OperationResult.failure(f"Deleting enrollment failed: {e}")
    _invalidate_employee(employee_id)
    cache.invalidate(PROGRAM, program_id)
    return OperationResult.success({"id": training_id})


def bulk_enroll(program, employee_ids, data=None):
    """Enroll many employees in one program; each employee is its own commit."""
    batch = BatchResult()
    data = data or {}
    for employee_id in employee_ids:
        employee = db.session.get(Employee, employee_id)
        if employee is None:
            batch.add_failure(employee_id, "Employee not found.")
            continue
        already = employee.trainings.filter_by(training_program_id=program.id).first()
        if already is not None:
            batch.add_failure(employee_id, "Already enrolled in this program.")
            continue
        result = save_enrollment(employee, program, data)
        if result.ok:
            batch.add_success(employee_id, {"training_id": result.data.id, "status": result.data.status})
        else:
            batch.add_failure(employee_id, result.error)

    logger.info(
        f"Bulk enrollment into program {program.id}: "
        f"{len(batch.succeeded)} ok, {len(batch.failed)} failed"
    )
    return batch


def recompute_stored_statuses(today=None, dry_run=False):
    """Rewrite every status snapshot from live values. Returns the number changed.

    With ``dry_run`` the changes are counted and then rolled back.
    """
    changed = 0
    touched = set()
    for training in EmployeeTraining.query.all():
        before = (training.status, training.expiration_date)
        _derive(training, today)
        if (training.status, training.expiration_date) != before:
            changed += 1
            touched.add(training.employee_id)
    if dry_run:
        db.session.rollback()
        return changed
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Recomputing training statuses failed: {e}")
        raise
    for employee_id in touched:
        cache.invalidate(EMPLOYEE, employee_id)
    if touched:
        cache.invalidate(COMPANY)
    return changed
