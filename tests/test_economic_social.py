from datetime import date
from types import SimpleNamespace

from esg_platform.economic_value import calculate_economic_value, MANDATORY_ITEMS
from esg_platform.models import EconomicValueEntry
from esg_platform.social import calculate_benefits, calculate_stakeholder_engagement, matrix_quadrant


def _entry(year=2024, **values):
    data = {name: None for name in EconomicValueEntry.LINE_ITEMS}
    data.update(values)
    return SimpleNamespace(year=year, **data)


FULL = dict(
    revenue=1000.0, raw_materials=200.0, suppliers=100.0, salaries=250.0, benefits=50.0,
    payroll_taxes=40.0, income_taxes=60.0, interest_payments=20.0, dividends=30.0, donations=30.0,
)


def test_generated_distributed_retained():
    data = calculate_economic_value(_entry(**FULL))
    assert data["generated"]["total"] == 1000
    assert data["distributed"]["employees"]["total"] == 300
    assert data["distributed"]["total"] == 780
    assert data["retained"] == {"value": 220, "percentage_of_generated": 22.0}
    assert data["distribution_percentage"]["employees"] == 30.0
    assert data["stakeholder_ranking"][0]["group"] == "operational_costs"
    assert data["completeness_percentage"] == 100.0
    assert data["gri_201_1_compliant"] is True
    codes = {a["code"] for a in data["alerts"]}
    assert "strong_distribution" in codes


def test_incomplete_entry_alerts():
    data = calculate_economic_value(_entry(revenue=100.0, salaries=150.0))
    codes = {a["code"] for a in data["alerts"]}
    assert data["retained"]["value"] == -50
    assert "negative_retained" in codes
    assert "gri_201_1_incomplete" in codes
    assert len(data["missing_data"]) == len(MANDATORY_ITEMS) - 2


def test_growth_against_previous_year():
    previous = _entry(year=2023, **dict(FULL, revenue=2000.0))
    data = calculate_economic_value(_entry(**FULL), previous_entry=previous)
    assert data["growth"]["deg_percentage"] == -50.0
    assert "deg_drop" in {a["code"] for a in data["alerts"]}


def test_benefits_only_count_active_rows():
    employees = [SimpleNamespace(id=1, status="Ativo"), SimpleNamespace(id=2, status="Ativo"),
                 SimpleNamespace(id=3, status="Inativo")]
    benefits = [
        SimpleNamespace(employee_id=1, benefit_type="Saúde", monthly_cost=500.0, is_active=True),
        SimpleNamespace(employee_id=1, benefit_type="Alimentação", monthly_cost=300.0, is_active=True),
        SimpleNamespace(employee_id=2, benefit_type="Saúde", monthly_cost=200.0, is_active=False),
        SimpleNamespace(employee_id=3, benefit_type="Saúde", monthly_cost=900.0, is_active=True),
    ]
    data = calculate_benefits(employees, benefits)
    assert data["total_monthly_cost"] == 800
    assert data["total_annual_cost"] == 9600
    assert data["participation_rate"] == 50.0
    assert data["by_type"][0]["benefit_type"] == "Saúde"
    assert data["by_type"][0]["percentage_of_cost"] == 62.5


def test_stakeholder_matrix():
    assert matrix_quadrant(5, 5) == "manage_closely"
    assert matrix_quadrant(4, 1) == "keep_satisfied"
    assert matrix_quadrant(1, 3) == "keep_informed"
    assert matrix_quadrant(None, None) == "monitor"

    stakeholders = [
        SimpleNamespace(id=1, name="Comunidade local", category="Comunidade", influence_level=2,
                        interest_level=5, engagement_score=7.0, last_engagement_date=date(2024, 5, 1)),
        SimpleNamespace(id=2, name="Investidores", category="Financeiro", influence_level=5,
                        interest_level=5, engagement_score=None, last_engagement_date=None),
    ]
    data = calculate_stakeholder_engagement(stakeholders, today=date(2024, 6, 1))
    assert data["total_stakeholders"] == 2
    assert data["average_engagement_score"] == 7.0
    assert data["matrix"]["manage_closely"] == [{"id": 2, "name": "Investidores"}]
    assert data["not_engaged_recently"] == 1
