from datetime import date

from esg_platform.models import EmployeeBenefit


def test_training_hours_dashboard(admin_client, make_employee, make_program, make_training):
    ana = make_employee("Ana", gender="Feminino", department="RH")
    bruno = make_employee("Bruno", gender="Masculino", department="TI")
    make_employee("Carla", status="Inativo")
    program = make_program(start_date=date(2024, 3, 1), end_date=date(2024, 3, 5), duration_hours=16)
    make_training(ana, program, completion_date=date(2024, 3, 5))
    make_training(bruno, program, completion_date=date(2024, 12, 31))
    make_training(bruno, program, completion_date=date(2025, 1, 1))
    make_training(ana, program, completion_date=date(2024, 6, 1), is_cancelled=True)

    res = admin_client.get("/dashboard/training-hours?year=2024")
    assert res.status_code == 200
    data = res.get_json()
    assert data["total_employees"] == 2
    assert data["total_training_hours"] == 32
    assert data["average_hours_per_employee"] == 16
    assert data["by_gender"]["women"]["total_hours"] == 16

    res = admin_client.get("/dashboard/training-hours?start=2024-12-31&end=2024-12-31")
    assert res.get_json()["total_training_hours"] == 16

    assert admin_client.get("/dashboard/training-hours?start=2024-02-01&end=2024-01-01").status_code == 400
    assert admin_client.get("/dashboard/training-hours?sector=Mining").status_code == 400
    assert admin_client.get("/dashboard/training-hours?year=abc").status_code == 400


def test_training_hours_without_employees(admin_client):
    res = admin_client.get("/dashboard/training-hours?year=2024")
    assert res.status_code == 404


def test_index_and_benefits(admin_client, make_employee):
    employee = make_employee()
    from esg_platform import db
    db.session.add(EmployeeBenefit(employee_id=employee.id, name="VR", benefit_type="Alimentação", monthly_cost=600))
    db.session.commit()

    index = admin_client.get("/dashboard/").get_json()
    assert index["stats"]["employees"] == 1
    assert index["stats"]["reports"] == 0

    benefits = admin_client.get("/dashboard/benefits").get_json()
    assert benefits["total_annual_cost"] == 7200
    assert benefits["participation_rate"] == 100.0


def test_emissions_intensity(admin_client, make_employee):
    make_employee("Ana")
    make_employee("Bruno")
    admin_client.post("/reports/data/emissions", json={"year": 2024, "scope": 1, "tco2e": 10})
    admin_client.post("/reports/data/economic", json={"year": 2024, "revenue": 1000})

    per_employee = admin_client.get("/dashboard/emissions?year=2024").get_json()
    assert per_employee["intensity"]["value"] == 5.0

    per_revenue = admin_client.get("/dashboard/emissions?year=2024&intensity=revenue").get_json()
    assert per_revenue["intensity"]["value"] == 0.01

    assert admin_client.get("/dashboard/emissions?year=2024&intensity=none").get_json()["intensity"] is None
    assert admin_client.get("/dashboard/emissions?intensity=area").status_code == 400


def test_economic_and_stakeholders(admin_client):
    assert admin_client.get("/dashboard/economic?year=2024").status_code == 404
    admin_client.post("/reports/data/economic", json={"year": 2024, "revenue": 1000, "salaries": 400})
    data = admin_client.get("/dashboard/economic?year=2024").get_json()
    assert data["retained"]["value"] == 600

    admin_client.post("/reports/data/stakeholders", json={
        "name": "Fornecedores", "category": "Cadeia de valor", "influence_level": 4,
        "interest_level": 4, "engagement_score": 8,
    })
    stakeholders = admin_client.get("/dashboard/stakeholders").get_json()
    assert stakeholders["total_stakeholders"] == 1
    assert stakeholders["matrix"]["manage_closely"][0]["name"] == "Fornecedores"


def test_water_dashboard(admin_client):
    admin_client.post("/reports/data/water", json={
        "source_type": "Rede pública", "withdrawal_volume_m3": 120, "discharge_volume_m3": 20,
        "period_start_date": "2024-02-01", "period_end_date": "2024-02-29",
    })
    admin_client.post("/reports/data/water", json={
        "source_type": "Poço", "withdrawal_volume_m3": 999,
        "period_start_date": "2023-02-01", "period_end_date": "2023-02-28",
    })
    data = admin_client.get("/dashboard/water?year=2024").get_json()
    assert data["total_withdrawal_m3"] == 120
    assert data["by_source"]["public_network"] == 120
