"""
Document uploads and text extraction.

Each uploaded file is saved, read and committed on its own so one bad file
never loses the others.
"""

import csv
import logging
import os
import uuid

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.utils import secure_filename

from esg_platform import db, cache
from esg_platform.query_cache import EMPLOYEE
from esg_platform.models import Document
from esg_platform.results import BatchResult, OperationResult

logger = logging.getLogger(__name__)

ENCRYPTED_PDF = "[ENCRYPTED_PDF]"
SCANNED_PDF = "[SCANNED_PDF]"


# ---------------------------------------------------------------------------
# Text extraction
# ---------------------------------------------------------------------------

def extract_text_from_file(filepath):
    """Extract text content from a file based on its extension.

    Returns an empty string for unsupported types or unreadable files, and a
    marker string for encrypted or image-only PDFs.
    """
    ext = filepath.rsplit(".", 1)[-1].lower() if "." in filepath else ""
    try:
        if ext == "pdf":
            return _extract_pdf(filepath)
        elif ext == "docx":
            return _extract_docx(filepath)
        elif ext == "xlsx":
            return _extract_xlsx(filepath)
        elif ext == "csv":
            return _extract_csv(filepath)
        elif ext == "txt":
            return _extract_txt(filepath)
        return ""
    except Exception as e:
        logger.warning(f"Failed to extract text from {filepath}: {e}")
        return ""


def _extract_pdf(filepath):
    from PyPDF2 import PdfReader
    from PyPDF2.errors import PdfReadError

    try:
        reader = PdfReader(filepath)
    except PdfReadError as e:
        logger.warning(f"PDF read error for {filepath}: {e}")
        return ""

    if reader.is_encrypted:
        # Owner-password-only PDFs open with an empty password
        try:
            if not reader.decrypt(""):
                logger.warning(f"PDF is encrypted and cannot be decrypted: {filepath}")
                return ENCRYPTED_PDF
        except Exception as e:
            logger.warning(f"PDF is password-protected: {filepath} ({e})")
            return ENCRYPTED_PDF

    total_pages = len(reader.pages)
    parts = []
    for page in reader.pages:
        try:
            text = page.extract_text()
        except Exception as e:
            logger.warning(f"Failed to extract page from {filepath}: {e}")
            continue
        if text and text.strip():
            parts.append(text)

    if total_pages and not parts:
        logger.warning(f"PDF appears to be scanned/image-based (0/{total_pages} pages had text): {filepath}")
        return SCANNED_PDF
    return "\n".join(parts)


def _extract_docx(filepath):
    from docx import Document as DocxDocument
    doc = DocxDocument(filepath)
    return "\n".join(p.text for p in doc.paragraphs if p.text.strip())


def _extract_xlsx(filepath):
    from openpyxl import load_workbook
    wb = load_workbook(filepath, read_only=True, data_only=True)
    parts = []
    for ws in wb.worksheets:
        for row in ws.iter_rows(values_only=True):
            cells = [str(c) for c in row if c is not None]
            if cells:
                parts.append(" | ".join(cells))
    wb.close()
    return "\n".join(parts)


def _extract_csv(filepath):
    with open(filepath, "r", errors="replace", newline="") as f:
        return "\n".join(" | ".join(row) for row in csv.reader(f))


def _extract_txt(filepath):
    with open(filepath, "r", errors="replace") as f:
        return f.read()


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------

def allowed_file(filename):
    return "." in filename and \
        filename.rsplit(".", 1)[1].lower() in current_app.config["ALLOWED_EXTENSIONS"]


def _save_uploaded_file(file):
    """Save an uploaded file and return (stored_name, original_name, file_size)."""
    upload_dir = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(upload_dir, exist_ok=True)

    original_name = secure_filename(file.filename)
    ext = original_name.rsplit(".", 1)[1].lower() if "." in original_name else ""
    stored_name = f"{uuid.uuid4().hex}.{ext}"

    path = os.path.join(upload_dir, stored_name)
    file.save(path)
    return stored_name, original_name, os.path.getsize(path)


def _remove_stored(stored_name):
    path = os.path.join(current_app.config["UPLOAD_FOLDER"], stored_name)
    if os.path.exists(path):
        os.remove(path)


def remove_stored_files(stored_names):
    """Delete stored uploads whose rows were removed by a cascade."""
    for stored_name in stored_names:
        _remove_stored(stored_name)


def upload_documents(files, user_id, category="Geral", employee_id=None):
    batch = BatchResult()
    for file in files:
        name = file.filename or ""
        if not name:
            continue
        if not allowed_file(name):
            batch.add_failure(name, "File type not allowed.")
            continue

        stored_name = None
        try:
            stored_name, original_name, file_size = _save_uploaded_file(file)
            extracted = extract_text_from_file(
                os.path.join(current_app.config["UPLOAD_FOLDER"], stored_name)
            )
            doc = Document(
                filename=stored_name,
                original_name=original_name,
                file_size=file_size,
                category=category or "Geral",
                employee_id=employee_id,
                extracted_text=extracted,
                uploaded_by=user_id,
            )
            db.session.add(doc)
            db.session.commit()
        except (OSError, SQLAlchemyError) as e:
            db.session.rollback()
            if stored_name:
                _remove_stored(stored_name)
            logger.error(f"Upload of {name} failed: {e}")
            batch.add_failure(name, f"Upload failed: {e}")
            continue

        warning = None
        if extracted in (ENCRYPTED_PDF, SCANNED_PDF):
            warning = "PDF text could not be extracted (encrypted or scanned)."
        batch.add_success(name, {"id": doc.id, "has_text": bool(extracted), "warning": warning})

    if employee_id is not None and batch.succeeded:
        cache.invalidate(EMPLOYEE, employee_id)
    logger.info(f"Uploaded {len(batch.succeeded)} document(s), {len(batch.failed)} failed")
    return batch


def delete_document(doc):
    doc_id, employee_id, stored_name = doc.id, doc.employee_id, doc.filename
    try:
        db.session.delete(doc)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Deleting document {doc_id} failed: {e}")
        return OperationResult.failure(f"Deleting document failed: {e}")
    _remove_stored(stored_name)
    if employee_id is not None:
        cache.invalidate(EMPLOYEE, employee_id)
    return OperationResult.success({"id": doc_id})
