"""
Employee import from CSV or XLSX.

Header names are matched case-insensitively in English or Portuguese. Rows
whose employee code already exists update that employee; a code repeated
inside the same file is rejected after its first row.
"""

import csv
import io
import logging
from datetime import date, datetime

from sqlalchemy.exc import SQLAlchemyError

from esg_platform import db, cache
from esg_platform.query_cache import EMPLOYEE, COMPANY
from esg_platform.models import Employee
from esg_platform.results import BatchResult

logger = logging.getLogger(__name__)

COLUMN_ALIASES = {
    "full_name": ("full_name", "name", "nome", "nome completo"),
    "employee_code": ("employee_code", "code", "matricula", "matrícula", "codigo", "código"),
    "email": ("email", "e-mail"),
    "department": ("department", "departamento", "setor"),
    "role": ("role", "cargo", "position"),
    "gender": ("gender", "genero", "gênero", "sexo"),
    "hire_date": ("hire_date", "admissao", "admissão", "data de admissão", "data de admissao"),
    "birth_date": ("birth_date", "nascimento", "data de nascimento"),
    "status": ("status", "situacao", "situação"),
}

DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%Y/%m/%d")
EMPLOYEE_STATUSES = ("Ativo", "Inativo")


def parse_date(value):
    """Accept date/datetime objects and the usual text formats. Raises ValueError."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Unrecognized date: {text}")


def _map_headers(headers):
    mapping = {}
    for idx, header in enumerate(headers):
        h = str(header or "").strip().lower()
        for field, aliases in COLUMN_ALIASES.items():
            if h in aliases and field not in mapping:
                mapping[field] = idx
    return mapping


def read_rows(filename, stream):
    """Return (headers, rows) from an uploaded CSV or XLSX stream."""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if ext == "csv":
        text = stream.read()
        if isinstance(text, bytes):
            text = text.decode("utf-8-sig", errors="replace")
        sample = text[:2048]
        delimiter = ";" if sample.count(";") > sample.count(",") else ","
        rows = [r for r in csv.reader(io.StringIO(text), delimiter=delimiter) if any(c.strip() for c in r)]
    elif ext == "xlsx":
        from openpyxl import load_workbook
        wb = load_workbook(io.BytesIO(stream.read()), read_only=True, data_only=True)
        ws = wb.worksheets[0]
        rows = [list(r) for r in ws.iter_rows(values_only=True) if any(c not in (None, "") for c in r)]
        wb.close()
    else:
        raise ValueError("Only .csv and .xlsx files can be imported.")
    if not rows:
        return [], []
    return rows[0], rows[1:]


def _row_values(row, mapping):
    values = {}
    for field, idx in mapping.items():
        cell = row[idx] if idx < len(row) else None
        if isinstance(cell, str):
            cell = cell.strip()
        values[field] = cell
    return values


def import_employees(filename, stream):
    batch = BatchResult()
    headers, rows = read_rows(filename, stream)
    mapping = _map_headers(headers)
    if "full_name" not in mapping:
        batch.add_failure("header", "A name column (full_name / nome) is required.")
        return batch

    seen_codes = set()
    for line_no, row in enumerate(rows, start=2):
        item = f"row {line_no}"
        values = _row_values(row, mapping)
        name = values.get("full_name")
        if not name:
            batch.add_failure(item, "Name is required.")
            continue

        code = values.get("employee_code")
        code = str(code).strip() if code not in (None, "") else None
        if code and code in seen_codes:
            batch.add_failure(item, f"Duplicate employee code in file: {code}")
            continue

        try:
            hire_date = parse_date(values.get("hire_date"))
            birth_date = parse_date(values.get("birth_date"))
        except ValueError as e:
            batch.add_failure(item, str(e))
            continue

        status = values.get("status") or "Ativo"
        if status not in EMPLOYEE_STATUSES:
            batch.add_failure(item, f"Invalid status: {status}")
            continue

        employee = Employee.query.filter_by(employee_code=code).first() if code else None
        created = employee is None
        if created:
            employee = Employee(employee_code=code)
            db.session.add(employee)
        employee.full_name = str(name)
        for field in ("email", "department", "role", "gender"):
            if values.get(field) not in (None, ""):
                setattr(employee, field, str(values[field]))
        if hire_date:
            employee.hire_date = hire_date
        if birth_date:
            employee.birth_date = birth_date
        employee.status = status

        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Employee import {item} failed: {e}")
            batch.add_failure(item, f"Database error: {e}")
            continue

        if code:
            seen_codes.add(code)
        cache.invalidate(EMPLOYEE, employee.id)
        batch.add_success(item, {"id": employee.id, "created": created})

    cache.invalidate(COMPANY)
    logger.info(f"Employee import {filename}: {len(batch.succeeded)} ok, {len(batch.failed)} failed")
    return batch
