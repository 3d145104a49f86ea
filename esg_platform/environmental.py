"""
Environmental dashboards: GHG emissions by scope (GRI 305), water
withdrawal / consumption / discharge (GRI 303) and waste generation and
treatment (GRI 306).

Source types and destinations are free text typed by users, mostly in
Portuguese, so both are bucketed by keyword.
"""

from datetime import date


def _r3(value):
    return round(value, 3)


def _pct(part, whole, digits=1):
    return round(part / whole * 100, digits) if whole else 0


# ---------------------------------------------------------------------------
# Emissions
# ---------------------------------------------------------------------------

def calculate_emissions(entries, intensity_denominator=None, denominator_label=""):
    """Totals per scope, share of each scope and optional intensity."""
    scopes = {1: 0.0, 2: 0.0, 3: 0.0}
    by_category = {}
    for e in entries:
        if e.scope not in scopes:
            continue
        value = e.tco2e or 0
        scopes[e.scope] += value
        key = e.category or "Outros"
        by_category[key] = by_category.get(key, 0) + value

    total = sum(scopes.values())
    result = {
        "total_tco2e": _r3(total),
        "scope_1_tco2e": _r3(scopes[1]),
        "scope_2_tco2e": _r3(scopes[2]),
        "scope_3_tco2e": _r3(scopes[3]),
        "scope_percentages": {f"scope_{s}": _pct(v, total) for s, v in scopes.items()},
        "by_category": sorted(
            ({"category": k, "tco2e": _r3(v), "percentage": _pct(v, total)} for k, v in by_category.items()),
            key=lambda x: -x["tco2e"],
        ),
        "intensity": None,
    }
    if intensity_denominator:
        result["intensity"] = {
            "value": round(total / intensity_denominator, 4),
            "denominator": intensity_denominator,
            "unit": f"tCO2e/{denominator_label}" if denominator_label else "tCO2e/unit",
        }
    return result


# ---------------------------------------------------------------------------
# Water
# ---------------------------------------------------------------------------

# Checked in order; first match wins
_WATER_SOURCE_KEYWORDS = [
    ("public_network", ("rede pública", "rede publica", "public", "concessionária")),
    ("well", ("poço", "poco", "well", "subterrânea")),
    ("surface_water", ("superficial", "rio", "lago", "surface", "river")),
    ("rainwater", ("chuva", "pluvial", "rain")),
    ("reuse", ("reuso", "reúso", "reciclada", "reuse")),
    ("third_party", ("terceiros", "caminhão", "third")),
]

FRESHWATER_TDS_LIMIT = 1000  # mg/L


def classify_water_source(source_type):
    text = (source_type or "").lower()
    for bucket, keywords in _WATER_SOURCE_KEYWORDS:
        if any(k in text for k in keywords):
            return bucket
    return "other"


def calculate_water(records):
    by_source = {k: 0.0 for k, _ in _WATER_SOURCE_KEYWORDS}
    by_source["other"] = 0.0
    by_quality = {"freshwater": 0.0, "other_water": 0.0}
    totals = {"withdrawal": 0.0, "consumption": 0.0, "discharge": 0.0}
    stressed = 0.0
    breakdown = []

    for r in records:
        withdrawal = r.withdrawal_volume_m3 or 0
        consumption = r.consumption_volume_m3 if r.consumption_volume_m3 else withdrawal
        discharge = r.discharge_volume_m3 or 0

        totals["withdrawal"] += withdrawal
        totals["consumption"] += consumption
        totals["discharge"] += discharge
        by_source[classify_water_source(r.source_type)] += withdrawal

        if (r.total_dissolved_solids_mg_l or 0) <= FRESHWATER_TDS_LIMIT:
            by_quality["freshwater"] += withdrawal
        else:
            by_quality["other_water"] += withdrawal
        if r.is_water_stressed_area:
            stressed += withdrawal

        breakdown.append({
            "source_type": r.source_type,
            "source_name": r.source_name or "Não informado",
            "withdrawal_m3": _r3(withdrawal),
            "consumption_m3": _r3(consumption),
            "discharge_m3": _r3(discharge),
            "quality": r.water_quality or "Não informado",
            "is_stressed_area": bool(r.is_water_stressed_area),
            "period": f"{r.period_start_date} a {r.period_end_date}",
        })

    return {
        "total_withdrawal_m3": _r3(totals["withdrawal"]),
        "total_consumption_m3": _r3(totals["consumption"]),
        "total_discharge_m3": _r3(totals["discharge"]),
        "by_source": {k: _r3(v) for k, v in by_source.items()},
        "by_quality": {k: _r3(v) for k, v in by_quality.items()},
        "water_stressed_areas_m3": _r3(stressed),
        "reuse_volume_m3": _r3(by_source["reuse"]),
        "reuse_percentage": _pct(by_source["reuse"], totals["consumption"], 2),
        "breakdown": breakdown,
        "calculation_date": date.today().isoformat(),
    }


# ---------------------------------------------------------------------------
# Waste
# ---------------------------------------------------------------------------

_TREATMENT_KEYWORDS = [
    ("recycling", ("recicla", "recycl")),
    ("composting", ("compost",)),
    ("incineration", ("incinera", "coprocess")),
    ("landfill", ("aterro", "landfill")),
]


def classify_treatment(destination):
    text = (destination or "").lower()
    for bucket, keywords in _TREATMENT_KEYWORDS:
        if any(k in text for k in keywords):
            return bucket
    return "other"


def to_tonnes(quantity, unit):
    quantity = quantity or 0
    if (unit or "t").strip().lower() in ("kg", "quilo", "quilos"):
        return quantity / 1000
    return quantity


def _waste_totals(logs):
    total = hazardous = 0.0
    by_treatment = {k: 0.0 for k, _ in _TREATMENT_KEYWORDS}
    by_treatment["other"] = 0.0
    for log in logs:
        t = to_tonnes(log.quantity, log.unit)
        total += t
        if log.is_hazardous:
            hazardous += t
        by_treatment[classify_treatment(log.final_destination)] += t
    return total, hazardous, by_treatment


def calculate_waste(logs, baseline_logs=()):
    """Generation and treatment split; compares recycling with a baseline period."""
    total, hazardous, by_treatment = _waste_totals(logs)
    recycling_pct = _pct(by_treatment["recycling"], total)

    baseline_total, _, baseline_treatment = _waste_totals(baseline_logs)
    baseline_recycling_pct = _pct(baseline_treatment["recycling"], baseline_total)

    by_type = {}
    for log in logs:
        by_type[log.waste_type] = by_type.get(log.waste_type, 0) + to_tonnes(log.quantity, log.unit)

    return {
        "total_generated_tonnes": _r3(total),
        "hazardous_tonnes": _r3(hazardous),
        "non_hazardous_tonnes": _r3(total - hazardous),
        "by_treatment": {k: _r3(v) for k, v in by_treatment.items()},
        "recycling_percentage": recycling_pct,
        "landfill_percentage": _pct(by_treatment["landfill"], total),
        "baseline_total": _r3(baseline_total),
        "baseline_recycling_percentage": baseline_recycling_pct,
        "improvement_percent": round(recycling_pct - baseline_recycling_pct, 1),
        "is_improving": recycling_pct > baseline_recycling_pct,
        "breakdown": sorted(
            ({"waste_type": k, "tonnes": _r3(v)} for k, v in by_type.items()),
            key=lambda x: -x["tonnes"],
        ),
    }
