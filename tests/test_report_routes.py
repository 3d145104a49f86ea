from types import SimpleNamespace

from esg_platform import ai_writer


def _create_report(client, **fields):
    body = {"title": "Relatório de Sustentabilidade", "year": 2024, **fields}
    res = client.post("/reports/", json=body)
    assert res.status_code == 201, res.get_json()
    return res.get_json()["data"]


class FakeMessages:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.prompts = []

    def create(self, **kwargs):
        self.prompts.append(kwargs["messages"][0]["content"])
        if self.error:
            raise self.error
        return SimpleNamespace(content=[SimpleNamespace(text=self.text)], stop_reason="end_turn")


def test_create_and_update_report(admin_client):
    report = _create_report(admin_client, target_audience="Investidores, Colaboradores",
                            reporting_period_start="2024-01-01", reporting_period_end="2024-12-31")
    assert report["status"] == "Rascunho"
    assert report["target_audience"] == ["Investidores", "Colaboradores"]
    assert report["wizard"]["current_step"] == 1
    assert len(report["sections"]) == 10

    assert admin_client.post("/reports/", json={"year": 2024}).status_code == 400

    res = admin_client.patch(f"/reports/{report['id']}", json={"ceo_message": "Mensagem"})
    assert res.get_json()["data"]["status"] == "Em Andamento"
    assert admin_client.get(f"/reports/{report['id']}").get_json()["ceo_message"] == "Mensagem"

    assert admin_client.patch(f"/reports/{report['id']}", json={"status": "Arquivado"}).status_code == 400
    assert admin_client.get("/reports/").get_json()[0]["id"] == report["id"]

    assert admin_client.delete(f"/reports/{report['id']}").status_code == 200
    assert admin_client.get(f"/reports/{report['id']}").status_code == 404


def test_wizard_navigation(admin_client):
    report = _create_report(admin_client)
    url = f"/reports/{report['id']}/wizard"

    state = admin_client.get(url).get_json()
    assert state["step"]["key"] == "planning"
    assert {i["code"] for i in state["indicators"]} >= {"GRI 2-1", "GRI 2-3"}

    assert admin_client.post(f"{url}/previous").status_code == 409
    res = admin_client.post(f"{url}/next")
    assert res.get_json()["data"]["current_step"] == 2
    assert admin_client.post(f"{url}/go_to", json={"step": 6}).status_code == 409
    assert admin_client.post(f"{url}/go_to", json={"step": 3}).get_json()["data"]["furthest_step"] == 3
    assert admin_client.post(f"{url}/jump").status_code == 404


def test_sections_and_indicators(admin_client):
    report = _create_report(admin_client)
    rid = report["id"]

    res = admin_client.patch(f"/reports/{rid}/sections/strategy",
                             json={"content": "Nossa estratégia.", "is_complete": "true"})
    assert res.status_code == 200
    assert res.get_json()["data"]["is_complete"] is True
    assert admin_client.patch(f"/reports/{rid}/sections/unknown", json={"content": "x"}).status_code == 404

    res = admin_client.put(f"/reports/{rid}/indicators/GRI%20305-1", json={"numeric_value": 12.5})
    assert res.status_code == 200
    assert res.get_json()["data"]["unit"] == "tCO2e"
    assert admin_client.put(f"/reports/{rid}/indicators/GRI%20305-1",
                            json={"numeric_value": "x"}).status_code == 400
    assert admin_client.put(f"/reports/{rid}/indicators/GRI%201-1", json={"text_value": "x"}).status_code == 400

    detail = admin_client.get(f"/reports/{rid}").get_json()
    assert detail["completion_percentage"] == round(2 / 20 * 100)

    markdown = admin_client.get(f"/reports/{rid}/content").get_json()["markdown"]
    assert "Nossa estratégia." in markdown


def test_prefill_from_dashboards(admin_client, make_employee):
    make_employee()
    report = _create_report(admin_client)
    admin_client.post("/reports/data/emissions", json={"year": 2024, "scope": 1, "tco2e": 7.5})
    admin_client.post("/reports/data/emissions", json={"year": 2023, "scope": 1, "tco2e": 99})

    res = admin_client.post(f"/reports/{report['id']}/indicators/prefill", json={})
    assert res.status_code == 207
    items = {i["item"]: i for i in res.get_json()["items"]}
    assert items["GRI 305-1"]["data"]["numeric_value"] == 7.5
    assert items["GRI 2-7"]["data"]["numeric_value"] == 1
    assert items["GRI 201-1"]["ok"] is False


def test_generate_section_with_template_fallback(admin_client):
    report = _create_report(admin_client)
    admin_client.post("/reports/data/emissions", json={"year": 2024, "scope": 2, "tco2e": 3})
    url = f"/reports/{report['id']}/sections/environmental_performance/generate"

    res = admin_client.post(url, json={})
    assert res.status_code == 200
    data = res.get_json()["data"]
    assert data["source"] == "template"
    assert "GRI 305-2" in data["section"]["content"]
    assert data["section"]["ai_generated_content"] is False

    again = admin_client.post(url, json={})
    assert again.get_json()["data"]["source"] == "existing"

    assert admin_client.post(f"/reports/{report['id']}/sections/unknown/generate").status_code == 404


def test_generate_section_with_ai(admin_client, monkeypatch):
    report = _create_report(admin_client, organization_purpose="Energia limpa")
    messages = FakeMessages(text="Texto gerado pela IA.")
    monkeypatch.setattr(ai_writer, "_get_anthropic_client", lambda: SimpleNamespace(messages=messages))

    res = admin_client.post(f"/reports/{report['id']}/sections/strategy/generate", json={"regenerate": True})
    data = res.get_json()["data"]
    assert data["source"] == "ai"
    assert data["section"]["content"] == "Texto gerado pela IA."
    assert data["section"]["ai_generated_content"] is True
    assert "Organization purpose: Energia limpa" in messages.prompts[0]


def test_generate_section_falls_back_when_ai_fails(admin_client, monkeypatch):
    report = _create_report(admin_client)
    messages = FakeMessages(error=ConnectionError("offline"))
    monkeypatch.setattr(ai_writer, "_get_anthropic_client", lambda: SimpleNamespace(messages=messages))

    res = admin_client.post(f"/reports/{report['id']}/sections/governance/generate", json={})
    data = res.get_json()["data"]
    assert data["source"] == "template"
    assert "serão complementadas" in data["section"]["content"]


def test_export_docx_and_pdf(admin_client):
    report = _create_report(admin_client, title="Relatório <ESG> & Clima")
    admin_client.patch(f"/reports/{report['id']}/sections/strategy", json={"content": "Linha 1\n\nLinha 2"})

    docx = admin_client.get(f"/reports/{report['id']}/export/docx")
    assert docx.status_code == 200
    assert docx.data[:2] == b"PK"
    assert "ESG____Clima_2024.docx" in docx.headers["Content-Disposition"]

    pdf = admin_client.get(f"/reports/{report['id']}/export/pdf")
    assert pdf.status_code == 200
    assert pdf.data.startswith(b"%PDF")

    assert admin_client.get(f"/reports/{report['id']}/export/odt").status_code == 400


def test_data_tables(admin_client):
    assert admin_client.post("/reports/data/emissions", json={"year": 2024, "scope": 4}).status_code == 400
    assert admin_client.post("/reports/data/emissions", json={"tco2e": 1}).status_code == 400
    assert admin_client.get("/reports/data/energy").status_code == 404

    res = admin_client.post("/reports/data/water", json={
        "source_type": "Poço", "withdrawal_volume_m3": 100,
        "period_start_date": "2024-01-01", "period_end_date": "2024-01-31",
    })
    assert res.status_code == 201
    water_id = res.get_json()["id"]
    bad = admin_client.patch(f"/reports/data/water/{water_id}", json={"period_end_date": "2023-12-01"})
    assert bad.status_code == 400

    assert admin_client.post("/reports/data/economic", json={"year": 2024, "revenue": 1000}).status_code == 201
    assert admin_client.post("/reports/data/economic", json={"year": 2024}).status_code == 409

    res = admin_client.post("/reports/data/stakeholders", json={"name": "Comunidade", "influence_level": 6})
    assert res.status_code == 400

    res = admin_client.post("/reports/data/waste", json={
        "waste_type": "Papel", "quantity": 500, "unit": "kg",
        "final_destination": "Reciclagem", "log_date": "2024-05-10",
    })
    waste_id = res.get_json()["id"]
    assert admin_client.get("/dashboard/waste?year=2024").get_json()["total_generated_tonnes"] == 0.5

    admin_client.patch(f"/reports/data/waste/{waste_id}", json={"quantity": 2000})
    assert admin_client.get("/dashboard/waste?year=2024").get_json()["total_generated_tonnes"] == 2

    assert admin_client.delete(f"/reports/data/waste/{waste_id}").status_code == 200
    assert admin_client.get("/reports/data/waste").get_json() == []


def test_catalog(admin_client):
    data = admin_client.get("/reports/catalog").get_json()
    assert len(data["steps"]) == 7
    assert len(data["sections"]) == 10
    assert any(i["code"] == "GRI 404-1" for i in data["indicators"])


def test_stakeholder_score_range(admin_client):
    res = admin_client.post("/reports/data/stakeholders", json={"name": "ONG", "engagement_score": 120})
    assert res.status_code == 400
    res = admin_client.post("/reports/data/stakeholders", json={"name": "ONG", "engagement_score": 100})
    assert res.status_code == 201
