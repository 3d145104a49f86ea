"""
AI text generation for GRI report sections.

Uses the Claude API when ANTHROPIC_API_KEY is configured, otherwise writes a
deterministic summary from the same figures so the wizard is usable offline.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout

from flask import current_app

from esg_platform.gri_indicators import get_section, get_indicators_by_step
from esg_platform.results import OperationResult
from esg_platform import report_service

logger = logging.getLogger(__name__)

# Which dashboards feed each section
SECTION_DATA = {
    "organizational_profile": ("training_hours",),
    "strategy": ("emissions", "economic"),
    "ethics_integrity": (),
    "governance": (),
    "stakeholder_engagement": ("stakeholders",),
    "reporting_practices": (),
    "material_topics": ("stakeholders", "emissions"),
    "economic_performance": ("economic",),
    "environmental_performance": ("emissions", "water", "waste"),
    "social_performance": ("training_hours", "benefits"),
}

SYSTEM_PROMPT = """You are a sustainability reporting specialist writing a company's GRI report (GRI Standards 2021) in Brazilian Portuguese.

Write the requested section as continuous prose in 3 to 5 paragraphs:
- Use only the figures provided; never invent numbers, names or commitments
- Cite the GRI disclosure codes the figures support, e.g. (GRI 305-1)
- When data is missing, say that it will be reported in future cycles
- Formal, objective tone; no headings, bullet lists or markdown"""


def _get_anthropic_client():
    """Get Anthropic client if API key is configured."""
    api_key = current_app.config.get("ANTHROPIC_API_KEY", "")
    if not api_key:
        return None
    try:
        import anthropic
        return anthropic.Anthropic(api_key=api_key, timeout=current_app.config.get("AI_TIMEOUT", 45))
    except Exception as e:
        logger.warning(f"Failed to create Anthropic client: {e}")
        return None


def _compact(data):
    """Drop bulky list fields so the prompt stays small."""
    if not isinstance(data, dict):
        return data
    skip = ("breakdown", "employee_list", "monthly_trend", "top_10_employees", "bottom_10_employees", "matrix")
    return {k: _compact(v) for k, v in data.items() if k not in skip}


def section_data(section_key, dashboards):
    return {name: _compact(dashboards.get(name)) for name in SECTION_DATA.get(section_key, ())
            if dashboards.get(name) is not None}


def build_prompt(report, section_key, dashboards):
    section = get_section(section_key)
    step_indicators = get_indicators_by_step().get(section["wizard_step"], []) if section else []
    codes = ", ".join(i["code"] for i in step_indicators) or "n/a"

    lines = [
        f"Report: {report.title} ({report.year})",
        f"Standard: {report.gri_standard_version or 'GRI Standards 2021'}",
        f"Section: {section['title'] if section else section_key}",
        f"Related disclosures: {codes}",
    ]
    if report.organization_purpose:
        lines.append(f"Organization purpose: {report.organization_purpose}")
    if report.report_objective:
        lines.append(f"Report objective: {report.report_objective}")
    if report.target_audience:
        lines.append(f"Target audience: {', '.join(report.target_audience)}")

    data = section_data(section_key, dashboards)
    lines.append("")
    lines.append("Data (JSON):")
    lines.append(json.dumps(data, ensure_ascii=False, default=str) if data else "{}")
    lines.append("")
    lines.append("Write this section now.")
    return "\n".join(lines)


def _call_claude(client, prompt):
    model = current_app.config.get("AI_MODEL", "claude-haiku-4-5-20251001")
    max_tokens = current_app.config.get("AI_MAX_TOKENS", 2000)
    timeout = current_app.config.get("AI_TIMEOUT", 45)

    def _call_api():
        return client.messages.create(
            model=model,
            max_tokens=max_tokens,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )

    try:
        with ThreadPoolExecutor(max_workers=1) as executor:
            future = executor.submit(_call_api)
            response = future.result(timeout=timeout)
    except FuturesTimeout:
        raise RuntimeError(f"AI generation timed out ({timeout:g}s)")
    except Exception as e:
        raise RuntimeError(f"AI generation failed: {type(e).__name__}: {e}")

    if getattr(response, "stop_reason", None) == "max_tokens":
        logger.warning("AI response truncated (stop_reason=max_tokens)")
    text = response.content[0].text.strip() if response.content else ""
    if not text:
        raise RuntimeError("AI returned an empty response")
    return text


# ---------------------------------------------------------------------------
# Template fallback
# ---------------------------------------------------------------------------

def _fmt(value, digits=1):
    if value is None:
        return "n/d"
    if isinstance(value, float):
        return f"{value:,.{digits}f}".replace(",", "X").replace(".", ",").replace("X", ".")
    if isinstance(value, int):
        return f"{value:,}".replace(",", ".")
    return str(value)


def template_text(report, section_key, dashboards):
    """Deterministic section text built from the dashboard figures."""
    section = get_section(section_key)
    title = section["title"] if section else section_key
    parts = [f"{title} - {report.title} ({report.year})."]

    emissions = dashboards.get("emissions")
    if emissions and "emissions" in SECTION_DATA.get(section_key, ()):
        parts.append(
            f"As emissões totais de gases de efeito estufa somaram {_fmt(emissions['total_tco2e'], 3)} tCO2e, "
            f"sendo {_fmt(emissions['scope_1_tco2e'], 3)} de Escopo 1 (GRI 305-1), "
            f"{_fmt(emissions['scope_2_tco2e'], 3)} de Escopo 2 (GRI 305-2) e "
            f"{_fmt(emissions['scope_3_tco2e'], 3)} de Escopo 3 (GRI 305-3)."
        )
    water = dashboards.get("water")
    if water and "water" in SECTION_DATA.get(section_key, ()):
        parts.append(
            f"A captação de água foi de {_fmt(water['total_withdrawal_m3'], 3)} m³ e o consumo de "
            f"{_fmt(water['total_consumption_m3'], 3)} m³ (GRI 303-3, 303-5)."
        )
    waste = dashboards.get("waste")
    if waste and "waste" in SECTION_DATA.get(section_key, ()):
        parts.append(
            f"Foram geradas {_fmt(waste['total_generated_tonnes'], 3)} t de resíduos, das quais "
            f"{_fmt(waste['recycling_percentage'])}% foram destinadas à reciclagem (GRI 306-3, 306-4)."
        )
    hours = dashboards.get("training_hours")
    if hours and "training_hours" in SECTION_DATA.get(section_key, ()):
        parts.append(
            f"A organização conta com {_fmt(hours['total_employees'])} colaboradores ativos, que receberam em média "
            f"{_fmt(hours['average_hours_per_employee'])} horas de treinamento no período (GRI 404-1)."
        )
    benefits = dashboards.get("benefits")
    if benefits and "benefits" in SECTION_DATA.get(section_key, ()):
        parts.append(
            f"O investimento anual em benefícios foi de R$ {_fmt(benefits['total_annual_cost'], 2)}, "
            f"com participação de {_fmt(benefits['participation_rate'])}% dos colaboradores (GRI 401-2)."
        )
    stakeholders = dashboards.get("stakeholders")
    if stakeholders and "stakeholders" in SECTION_DATA.get(section_key, ()):
        parts.append(
            f"Foram mapeados {_fmt(stakeholders['total_stakeholders'])} stakeholders, com pontuação média de "
            f"engajamento de {_fmt(stakeholders['average_engagement_score'])} (GRI 2-29)."
        )
    economic = dashboards.get("economic")
    if economic and "economic" in SECTION_DATA.get(section_key, ()):
        parts.append(
            f"O valor econômico gerado foi de R$ {_fmt(economic['generated']['total'], 2)} e o distribuído de "
            f"R$ {_fmt(economic['distributed']['total'], 2)} (GRI 201-1)."
        )

    if len(parts) == 1:
        parts.append("As informações desta seção serão complementadas pela equipe responsável pelo relatório.")
    return " ".join(parts)


def generate_section(report, section_key, dashboards, regenerate=False):
    """Fill a section with AI text (or the template) and save it.

    An existing section with content is returned untouched unless
    `regenerate` is set.
    """
    section = report_service.get_section(report, section_key)
    if section is None:
        return OperationResult.failure(f"Unknown section: {section_key}")
    if section.content and not regenerate:
        return OperationResult.success({"section": section.to_dict(), "source": "existing"})

    source = "template"
    client = _get_anthropic_client()
    if client is not None:
        try:
            text = _call_claude(client, build_prompt(report, section_key, dashboards))
            source = "ai"
        except RuntimeError as e:
            logger.error(f"Section {section_key} of report {report.id}: {e}; using template")
            text = template_text(report, section_key, dashboards)
    else:
        text = template_text(report, section_key, dashboards)

    result = report_service.save_section(report, section_key, content=text, ai_generated=(source == "ai"))
    if not result.ok:
        return result
    logger.info(f"Section {section_key} of report {report.id} generated ({source})")
    return OperationResult.success({"section": result.data.to_dict(), "source": source})
