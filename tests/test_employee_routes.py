import io

from openpyxl import Workbook

from esg_platform.models import Employee


def _upload(client, filename, content):
    return client.post(
        "/employees/import",
        data={"file": (io.BytesIO(content), filename)},
        content_type="multipart/form-data",
    )


def test_employee_crud(admin_client):
    res = admin_client.post("/employees/", json={
        "full_name": "Maria Silva", "employee_code": "E001", "department": "Operações",
        "gender": "Feminino", "hire_date": "2021-02-01",
    })
    assert res.status_code == 201
    employee = res.get_json()
    assert employee["hire_date"] == "2021-02-01"

    dup = admin_client.post("/employees/", json={"full_name": "João", "employee_code": "E001"})
    assert dup.status_code == 409

    bad_date = admin_client.post("/employees/", json={"full_name": "João", "hire_date": "01/02/2021"})
    assert bad_date.status_code == 400

    res = admin_client.patch(f"/employees/{employee['id']}", json={"status": "Inativo"})
    assert res.get_json()["status"] == "Inativo"
    assert admin_client.patch(f"/employees/{employee['id']}", json={"status": "Férias"}).status_code == 400

    listed = admin_client.get("/employees/?status=Inativo").get_json()
    assert [e["employee_code"] for e in listed] == ["E001"]
    assert admin_client.get("/employees/?q=silva").get_json()[0]["full_name"] == "Maria Silva"

    assert admin_client.delete(f"/employees/{employee['id']}").status_code == 200
    assert admin_client.get(f"/employees/{employee['id']}").status_code == 404


def test_benefits(admin_client, make_employee):
    employee = make_employee()
    res = admin_client.post(f"/employees/{employee.id}/benefits", json={
        "name": "Plano de saúde", "benefit_type": "Saúde", "monthly_cost": "450.50",
    })
    assert res.status_code == 201
    benefit = res.get_json()
    assert benefit["monthly_cost"] == 450.5

    negative = admin_client.post(f"/employees/{employee.id}/benefits", json={"name": "VR", "monthly_cost": -1})
    assert negative.status_code == 400

    res = admin_client.patch(f"/employees/benefits/{benefit['id']}", json={"is_active": "false"})
    assert res.get_json()["is_active"] is False

    assert len(admin_client.get(f"/employees/{employee.id}/benefits").get_json()) == 1
    assert admin_client.delete(f"/employees/benefits/{benefit['id']}").status_code == 200


def test_import_csv_with_partial_failures(admin_client, make_employee):
    make_employee("Carlos Antigo", employee_code="E010", department="TI")
    csv_text = (
        "Nome;Matrícula;Departamento;Gênero;Data de Admissão\n"
        "Carlos Lima;E010;Financeiro;Masculino;15/03/2020\n"
        "Paula Reis;E011;RH;Feminino;2022-07-01\n"
        ";E012;RH;Feminino;2022-07-01\n"
        "Pedro Dias;E011;RH;Masculino;2022-07-01\n"
        "Lia Costa;E013;RH;Feminino;31-31-2022\n"
    )
    res = _upload(admin_client, "colaboradores.csv", csv_text.encode("utf-8"))
    assert res.status_code == 207
    data = res.get_json()
    assert data["total"] == 5
    assert data["succeeded"] == 2
    failed = {i["item"]: i["error"] for i in data["items"] if not i["ok"]}
    assert set(failed) == {"row 4", "row 5", "row 6"}
    assert "Duplicate" in failed["row 5"]

    updated = Employee.query.filter_by(employee_code="E010").one()
    assert updated.full_name == "Carlos Lima"
    assert updated.department == "Financeiro"
    assert Employee.query.filter_by(employee_code="E011").one().full_name == "Paula Reis"


def test_import_xlsx(admin_client):
    wb = Workbook()
    ws = wb.active
    ws.append(["full_name", "employee_code", "department"])
    ws.append(["Ana Souza", "X1", "Logística"])
    ws.append(["Bruno Melo", "X2", "Logística"])
    buf = io.BytesIO()
    wb.save(buf)

    res = _upload(admin_client, "equipe.xlsx", buf.getvalue())
    assert res.status_code == 200
    assert res.get_json()["succeeded"] == 2
    assert Employee.query.count() == 2


def test_import_rejects_other_types_and_missing_name_column(admin_client):
    assert _upload(admin_client, "equipe.pdf", b"%PDF").status_code == 400

    res = _upload(admin_client, "equipe.csv", b"codigo,setor\nA1,RH\n")
    assert res.status_code == 207
    assert res.get_json()["items"][0]["item"] == "header"
