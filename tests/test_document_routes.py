import io
import os

from docx import Document as DocxDocument

from esg_platform.document_store import extract_text_from_file


def _docx_bytes(text):
    doc = DocxDocument()
    doc.add_paragraph(text)
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


def test_extract_text_by_extension(tmp_path):
    txt = tmp_path / "politica.txt"
    txt.write_text("Política ambiental", encoding="utf-8")
    assert extract_text_from_file(str(txt)) == "Política ambiental"

    csv_file = tmp_path / "dados.csv"
    csv_file.write_text("ano,emissoes\n2024,12.5\n")
    assert extract_text_from_file(str(csv_file)) == "ano | emissoes\n2024 | 12.5"

    docx_file = tmp_path / "codigo.docx"
    docx_file.write_bytes(_docx_bytes("Código de conduta"))
    assert extract_text_from_file(str(docx_file)) == "Código de conduta"

    assert extract_text_from_file(str(tmp_path / "foto.png")) == ""
    broken = tmp_path / "broken.pdf"
    broken.write_bytes(b"not a pdf")
    assert extract_text_from_file(str(broken)) == ""


def test_upload_batch_with_rejected_file(app, admin_client, make_employee):
    employee = make_employee()
    res = admin_client.post(
        "/documents/",
        data={
            "files": [
                (io.BytesIO(b"Certificado NR-35"), "certificado.txt"),
                (io.BytesIO(_docx_bytes("Código de conduta")), "codigo.docx"),
                (io.BytesIO(b"MZ"), "setup.exe"),
            ],
            "employee_id": str(employee.id),
            "category": "Certificados",
        },
        content_type="multipart/form-data",
    )
    assert res.status_code == 207
    data = res.get_json()
    assert data["succeeded"] == 2
    assert data["failed"] == 1
    rejected = [i for i in data["items"] if not i["ok"]][0]
    assert rejected == {"item": "setup.exe", "ok": False, "error": "File type not allowed.", "data": None}

    listed = admin_client.get(f"/documents/?employee_id={employee.id}").get_json()
    assert len(listed) == 2
    assert all(d["category"] == "Certificados" for d in listed)

    txt_id = next(i["data"]["id"] for i in data["items"] if i["item"] == "certificado.txt")
    detail = admin_client.get(f"/documents/{txt_id}").get_json()
    assert detail["extracted_text"] == "Certificado NR-35"

    download = admin_client.get(f"/documents/{txt_id}/download")
    assert download.status_code == 200
    assert download.data == b"Certificado NR-35"

    assert len(os.listdir(app.config["UPLOAD_FOLDER"])) == 2
    assert admin_client.delete(f"/documents/{txt_id}").status_code == 200
    assert len(os.listdir(app.config["UPLOAD_FOLDER"])) == 1


def test_upload_requires_files_and_known_employee(admin_client):
    assert admin_client.post("/documents/", data={}, content_type="multipart/form-data").status_code == 400
    res = admin_client.post(
        "/documents/",
        data={"files": [(io.BytesIO(b"x"), "a.txt")], "employee_id": "999"},
        content_type="multipart/form-data",
    )
    assert res.status_code == 404


def test_deleting_employee_removes_stored_files(app, admin_client, make_employee):
    employee = make_employee()
    res = admin_client.post(
        "/documents/",
        data={"files": [(io.BytesIO(b"Atestado"), "a.txt")], "employee_id": str(employee.id)},
        content_type="multipart/form-data",
    )
    assert res.status_code == 200
    assert len(os.listdir(app.config["UPLOAD_FOLDER"])) == 1

    assert admin_client.delete(f"/employees/{employee.id}").status_code == 200
    assert os.listdir(app.config["UPLOAD_FOLDER"]) == []
