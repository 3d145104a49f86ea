"""
Economic Value Generated and Distributed (DVA, GRI 201-1)

    VER (retained) = DEG (generated) - DED (distributed)

DED is split across five stakeholder groups. Percentages are relative to
DEG. Completeness counts the mandatory line items that were filled in.
"""

GENERATED_ITEMS = ("revenue", "financial_income", "asset_sales")

DISTRIBUTION_GROUPS = {
    "operational_costs": {
        "label": "Custos Operacionais",
        "items": {"raw_materials": "raw_materials", "suppliers": "suppliers", "other_operating_costs": "other"},
    },
    "employees": {
        "label": "Empregados",
        "items": {"salaries": "salaries", "benefits": "benefits"},
    },
    "government": {
        "label": "Governo",
        "items": {
            "payroll_taxes": "payroll_taxes",
            "income_taxes": "income_taxes",
            "sales_taxes": "sales_taxes",
            "other_taxes": "other_taxes",
        },
    },
    "capital_providers": {
        "label": "Provedores de Capital",
        "items": {
            "interest_payments": "interest_payments",
            "dividends": "dividends",
            "loan_repayments": "loan_repayments",
        },
    },
    "community": {
        "label": "Comunidade",
        "items": {"donations": "donations", "sponsorships": "sponsorships", "infrastructure": "infrastructure"},
    },
}

MANDATORY_ITEMS = (
    "revenue", "raw_materials", "suppliers", "salaries", "benefits",
    "payroll_taxes", "income_taxes", "interest_payments", "dividends", "donations",
)

COMPLIANCE_THRESHOLD = 80


def _val(entry, name):
    if entry is None:
        return 0.0
    return getattr(entry, name, None) or 0.0


def _growth(current, previous):
    if not previous:
        return 0.0
    return round((current - previous) / abs(previous) * 100, 1)


def _totals(entry):
    generated = sum(_val(entry, n) for n in GENERATED_ITEMS)
    groups = {}
    for key, group in DISTRIBUTION_GROUPS.items():
        detail = {out: _val(entry, field) for field, out in group["items"].items()}
        detail["total"] = sum(detail.values())
        groups[key] = detail
    distributed = sum(g["total"] for g in groups.values())
    return generated, groups, distributed


def calculate_economic_value(entry, previous_entry=None):
    generated, groups, distributed = _totals(entry)
    retained = generated - distributed

    def share(value):
        return round(value / generated * 100, 2) if generated else 0.0

    distribution_percentage = {key: share(g["total"]) for key, g in groups.items()}

    filled = [n for n in MANDATORY_ITEMS if entry is not None and getattr(entry, n, None) is not None]
    missing = [n for n in MANDATORY_ITEMS if n not in filled]
    completeness = round(len(filled) / len(MANDATORY_ITEMS) * 100, 1)

    ranking = sorted(
        (
            {"group": key, "label": DISTRIBUTION_GROUPS[key]["label"],
             "value": g["total"], "percentage": distribution_percentage[key]}
            for key, g in groups.items()
        ),
        key=lambda x: -x["value"],
    )

    growth = {"deg_percentage": 0.0, "ded_percentage": 0.0, "ver_percentage": 0.0}
    if previous_entry is not None:
        p_generated, _, p_distributed = _totals(previous_entry)
        growth = {
            "deg_percentage": _growth(generated, p_generated),
            "ded_percentage": _growth(distributed, p_distributed),
            "ver_percentage": _growth(retained, p_generated - p_distributed),
        }

    result = {
        "year": entry.year if entry is not None else None,
        "generated": {
            "revenue": _val(entry, "revenue"),
            "financial_income": _val(entry, "financial_income"),
            "asset_sales": _val(entry, "asset_sales"),
            "total": generated,
        },
        "distributed": dict(groups, total=distributed),
        "retained": {"value": retained, "percentage_of_generated": share(retained)},
        "distribution_percentage": distribution_percentage,
        "stakeholder_ranking": ranking,
        "growth": growth,
        "completeness_percentage": completeness,
        "missing_data": missing,
        "gri_201_1_compliant": completeness >= COMPLIANCE_THRESHOLD,
    }
    result["alerts"] = economic_alerts(result)
    return result


def economic_alerts(data):
    """Alerts shown above the DVA dashboard."""
    alerts = []
    pct = data["distribution_percentage"]
    retained = data["retained"]

    if retained["value"] < 0:
        alerts.append({
            "severity": "error", "code": "negative_retained",
            "message": "Distributed more value than was generated.",
        })
    if retained["percentage_of_generated"] > 50:
        alerts.append({
            "severity": "warning", "code": "high_retained",
            "message": f"Retained value is {retained['percentage_of_generated']:.1f}% of generated value.",
        })
    if data["generated"]["total"] and pct["community"] < 0.5:
        alerts.append({
            "severity": "info", "code": "low_community",
            "message": f"Community investment is only {pct['community']:.2f}% of generated value.",
        })
    if pct["government"] > 30:
        alerts.append({
            "severity": "warning", "code": "high_tax_burden",
            "message": f"Taxes take {pct['government']:.1f}% of generated value.",
        })
    if not data["gri_201_1_compliant"]:
        alerts.append({
            "severity": "error", "code": "gri_201_1_incomplete",
            "message": f"GRI 201-1 incomplete ({data['completeness_percentage']:.0f}% of mandatory items).",
        })
    if data["growth"]["deg_percentage"] < -10:
        alerts.append({
            "severity": "error", "code": "deg_drop",
            "message": f"Generated value fell {abs(data['growth']['deg_percentage']):.1f}% against the previous year.",
        })
    if pct["community"] > 2 and pct["employees"] > 25:
        alerts.append({
            "severity": "success", "code": "strong_distribution",
            "message": (f"{pct['employees']:.1f}% to employees and "
                        f"{pct['community']:.1f}% to the community."),
        })
    return alerts
