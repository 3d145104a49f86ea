"""
GRI Indicator Catalog

Disclosures collected by the report wizard, labelled with the GRI Standards
2021 codes they support.

Each indicator has:
- code: GRI disclosure code, e.g. "GRI 305-1"
- title: Short disclosure title
- indicator_type: Universal, Econômico, Ambiental, Social or Governança
- data_type: Numérico, Percentual, Texto or Booleano
- unit: Expected unit for numeric disclosures (empty for text)
- is_mandatory: Required for a report "in accordance with" GRI
- wizard_step: Key of the wizard step that collects it
- source: Dashboard that can pre-fill the value (None when entered by hand)
"""

INDICATOR_TYPES = ("Universal", "Econômico", "Ambiental", "Social", "Governança")

GRI_INDICATORS = [
    # Universal / organization
    {
        "code": "GRI 2-1", "title": "Organizational details",
        "indicator_type": "Universal", "data_type": "Texto", "unit": "",
        "is_mandatory": True, "wizard_step": "planning", "source": None,
    },
    {
        "code": "GRI 2-2", "title": "Entities included in sustainability reporting",
        "indicator_type": "Universal", "data_type": "Texto", "unit": "",
        "is_mandatory": True, "wizard_step": "planning", "source": None,
    },
    {
        "code": "GRI 2-3", "title": "Reporting period, frequency and contact point",
        "indicator_type": "Universal", "data_type": "Texto", "unit": "",
        "is_mandatory": True, "wizard_step": "planning", "source": None,
    },
    {
        "code": "GRI 2-7", "title": "Employees",
        "indicator_type": "Universal", "data_type": "Numérico", "unit": "employees",
        "is_mandatory": True, "wizard_step": "social", "source": "training_hours.total_employees",
    },
    # Governance
    {
        "code": "GRI 2-9", "title": "Governance structure and composition",
        "indicator_type": "Governança", "data_type": "Texto", "unit": "",
        "is_mandatory": True, "wizard_step": "strategy_governance", "source": None,
    },
    {
        "code": "GRI 2-12", "title": "Role of the highest governance body in overseeing the management of impacts",
        "indicator_type": "Governança", "data_type": "Texto", "unit": "",
        "is_mandatory": True, "wizard_step": "strategy_governance", "source": None,
    },
    {
        "code": "GRI 2-22", "title": "Statement on sustainable development strategy",
        "indicator_type": "Governança", "data_type": "Texto", "unit": "",
        "is_mandatory": True, "wizard_step": "strategy_governance", "source": None,
    },
    {
        "code": "GRI 2-23", "title": "Policy commitments",
        "indicator_type": "Governança", "data_type": "Texto", "unit": "",
        "is_mandatory": True, "wizard_step": "strategy_governance", "source": None,
    },
    {
        "code": "GRI 2-29", "title": "Approach to stakeholder engagement",
        "indicator_type": "Universal", "data_type": "Texto", "unit": "",
        "is_mandatory": True, "wizard_step": "stakeholders", "source": None,
    },
    # Economic
    {
        "code": "GRI 201-1", "title": "Direct economic value generated and distributed",
        "indicator_type": "Econômico", "data_type": "Numérico", "unit": "BRL",
        "is_mandatory": False, "wizard_step": "economic", "source": "economic.generated.total",
    },
    # Environmental
    {
        "code": "GRI 303-3", "title": "Water withdrawal",
        "indicator_type": "Ambiental", "data_type": "Numérico", "unit": "m3",
        "is_mandatory": False, "wizard_step": "environmental", "source": "water.total_withdrawal_m3",
    },
    {
        "code": "GRI 303-5", "title": "Water consumption",
        "indicator_type": "Ambiental", "data_type": "Numérico", "unit": "m3",
        "is_mandatory": False, "wizard_step": "environmental", "source": "water.total_consumption_m3",
    },
    {
        "code": "GRI 305-1", "title": "Direct (Scope 1) GHG emissions",
        "indicator_type": "Ambiental", "data_type": "Numérico", "unit": "tCO2e",
        "is_mandatory": False, "wizard_step": "environmental", "source": "emissions.scope_1_tco2e",
    },
    {
        "code": "GRI 305-2", "title": "Energy indirect (Scope 2) GHG emissions",
        "indicator_type": "Ambiental", "data_type": "Numérico", "unit": "tCO2e",
        "is_mandatory": False, "wizard_step": "environmental", "source": "emissions.scope_2_tco2e",
    },
    {
        "code": "GRI 305-3", "title": "Other indirect (Scope 3) GHG emissions",
        "indicator_type": "Ambiental", "data_type": "Numérico", "unit": "tCO2e",
        "is_mandatory": False, "wizard_step": "environmental", "source": "emissions.scope_3_tco2e",
    },
    {
        "code": "GRI 306-3", "title": "Waste generated",
        "indicator_type": "Ambiental", "data_type": "Numérico", "unit": "t",
        "is_mandatory": False, "wizard_step": "environmental", "source": "waste.total_generated_tonnes",
    },
    {
        "code": "GRI 306-4", "title": "Waste diverted from disposal",
        "indicator_type": "Ambiental", "data_type": "Percentual", "unit": "%",
        "is_mandatory": False, "wizard_step": "environmental", "source": "waste.recycling_percentage",
    },
    # Social
    {
        "code": "GRI 401-2", "title": "Benefits provided to full-time employees",
        "indicator_type": "Social", "data_type": "Numérico", "unit": "BRL/year",
        "is_mandatory": False, "wizard_step": "social", "source": "benefits.total_annual_cost",
    },
    {
        "code": "GRI 404-1", "title": "Average hours of training per year per employee",
        "indicator_type": "Social", "data_type": "Numérico", "unit": "h",
        "is_mandatory": False, "wizard_step": "social", "source": "training_hours.average_hours_per_employee",
    },
]

DEFAULT_SECTIONS = [
    {"key": "organizational_profile", "title": "Perfil Organizacional", "order_index": 1, "wizard_step": "planning"},
    {"key": "strategy", "title": "Estratégia", "order_index": 2, "wizard_step": "strategy_governance"},
    {"key": "ethics_integrity", "title": "Ética e Integridade", "order_index": 3, "wizard_step": "strategy_governance"},
    {"key": "governance", "title": "Governança", "order_index": 4, "wizard_step": "strategy_governance"},
    {"key": "stakeholder_engagement", "title": "Engajamento de Stakeholders", "order_index": 5, "wizard_step": "stakeholders"},
    {"key": "reporting_practices", "title": "Práticas de Relatório", "order_index": 6, "wizard_step": "planning"},
    {"key": "material_topics", "title": "Temas Materiais", "order_index": 7, "wizard_step": "stakeholders"},
    {"key": "economic_performance", "title": "Performance Econômica", "order_index": 8, "wizard_step": "economic"},
    {"key": "environmental_performance", "title": "Performance Ambiental", "order_index": 9, "wizard_step": "environmental"},
    {"key": "social_performance", "title": "Performance Social", "order_index": 10, "wizard_step": "social"},
]


def get_indicator(code):
    """Look up a single indicator by GRI code."""
    for ind in GRI_INDICATORS:
        if ind["code"] == code:
            return ind
    return None


def get_mandatory_indicators():
    return [ind for ind in GRI_INDICATORS if ind["is_mandatory"]]


def get_indicators_by_step():
    """Group indicators by wizard step key."""
    grouped = {}
    for ind in GRI_INDICATORS:
        grouped.setdefault(ind["wizard_step"], []).append(ind)
    return grouped


def get_section(key):
    return next((s for s in DEFAULT_SECTIONS if s["key"] == key), None)


def resolve_source(source, dashboards):
    """Follow a dotted `source` path into a dict of dashboard results."""
    if not source:
        return None
    value = dashboards
    for part in source.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value
