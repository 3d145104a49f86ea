from flask import Blueprint, jsonify, request, send_from_directory, current_app
from flask_login import login_required, current_user

from esg_platform import db
from esg_platform.api import editor_required, get_or_404, result_response, batch_response, parse_number
from esg_platform.document_store import upload_documents, delete_document as remove_document
from esg_platform.models import Document, Employee

documents_bp = Blueprint("documents", __name__, url_prefix="/documents")


@documents_bp.route("/")
@login_required
def list_documents():
    query = Document.query
    employee_id = parse_number(request.args.get("employee_id"), "employee_id", int)
    if employee_id is not None:
        query = query.filter_by(employee_id=employee_id)
    category = request.args.get("category")
    if category:
        query = query.filter_by(category=category)
    return jsonify([d.to_dict() for d in query.order_by(Document.uploaded_at.desc()).all()])


@documents_bp.route("/", methods=["POST"])
@login_required
@editor_required
def upload():
    """Upload one or more files ("files" field); each file succeeds or fails alone."""
    files = request.files.getlist("files")
    if not files or all(f.filename == "" for f in files):
        return jsonify({"error": "No files selected."}), 400

    employee_id = parse_number(request.form.get("employee_id"), "employee_id", int)
    if employee_id is not None and db.session.get(Employee, employee_id) is None:
        return jsonify({"error": f"Employee {employee_id} not found."}), 404

    batch = upload_documents(
        files, current_user.id, category=request.form.get("category", "Geral"), employee_id=employee_id,
    )
    return batch_response(batch)


@documents_bp.route("/<int:doc_id>")
@login_required
def view_document(doc_id):
    doc, missing = get_or_404(Document, doc_id)
    if missing:
        return missing
    data = doc.to_dict()
    data["extracted_text"] = doc.extracted_text
    return jsonify(data)


@documents_bp.route("/<int:doc_id>/download")
@login_required
def download(doc_id):
    doc, missing = get_or_404(Document, doc_id)
    if missing:
        return missing
    return send_from_directory(
        current_app.config["UPLOAD_FOLDER"], doc.filename,
        download_name=doc.original_name, as_attachment=True,
    )


@documents_bp.route("/<int:doc_id>", methods=["DELETE"])
@login_required
@editor_required
def delete(doc_id):
    doc, missing = get_or_404(Document, doc_id)
    if missing:
        return missing
    return result_response(remove_document(doc))
