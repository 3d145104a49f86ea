"""
GRI report service

Creating a report seeds the ten default sections and a placeholder value for
every mandatory indicator. Every write recalculates the completion percentage
and drops the cached views of the report.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from esg_platform import db, cache
from esg_platform.query_cache import REPORT
from esg_platform.gri_indicators import (
    DEFAULT_SECTIONS, GRI_INDICATORS, get_indicator, get_mandatory_indicators, resolve_source,
)
from esg_platform.models import GRIReport, GRIReportSection, GRIIndicatorValue
from esg_platform.results import OperationResult, BatchResult
from esg_platform import wizard

logger = logging.getLogger(__name__)

REPORT_STATUSES = ("Rascunho", "Em Andamento", "Em Revisão", "Finalizado", "Publicado")

PLACEHOLDER = "Aguardando conteúdo..."

# Planning fields editable through update_report
EDITABLE_FIELDS = (
    "title", "gri_standard_version", "reporting_period_start", "reporting_period_end",
    "organization_purpose", "report_objective", "target_audience",
    "executive_summary", "ceo_message", "methodology",
)


def _fail(action, exc):
    db.session.rollback()
    logger.error(f"{action} failed: {exc}")
    return OperationResult.failure(f"{action} failed: {exc}")


def initialize_report(report):
    """Add default sections and mandatory indicator placeholders (idempotent)."""
    existing = {s.section_key for s in report.sections}
    for section in DEFAULT_SECTIONS:
        if section["key"] in existing:
            continue
        db.session.add(GRIReportSection(
            report=report,
            section_key=section["key"],
            title=section["title"],
            order_index=section["order_index"],
        ))

    codes = {v.indicator_code for v in report.indicator_values}
    for ind in get_mandatory_indicators():
        if ind["code"] in codes:
            continue
        db.session.add(GRIIndicatorValue(
            report=report, indicator_code=ind["code"], unit=ind["unit"], is_complete=False,
        ))


def calculate_completion(sections, indicator_values):
    """Complete sections plus complete indicators over the total, 0-100."""
    total = len(sections) + len(indicator_values)
    if not total:
        return 0
    done = sum(1 for s in sections if s.is_complete) + sum(1 for v in indicator_values if v.is_complete)
    return round(done / total * 100)


def refresh_completion(report):
    report.completion_percentage = calculate_completion(
        report.sections.all(), report.indicator_values.all()
    )
    return report.completion_percentage


def create_report(title, year, user_id=None, **fields):
    if not title or not str(title).strip():
        return OperationResult.failure("Title is required.")
    try:
        year = int(year)
    except (TypeError, ValueError):
        return OperationResult.failure("Year must be a number.")

    report = GRIReport(title=title.strip(), year=year, created_by=user_id)
    for name in EDITABLE_FIELDS:
        if name in fields and name != "title":
            setattr(report, name, fields[name])
    try:
        db.session.add(report)
        db.session.flush()
        initialize_report(report)
        db.session.flush()
        refresh_completion(report)
        db.session.commit()
    except SQLAlchemyError as e:
        return _fail("Report creation", e)

    logger.info(f"GRI report {report.id} created ({report.title} {report.year})")
    return OperationResult.success(report)


def update_report(report, data):
    status = data.get("status")
    if status is not None and status not in REPORT_STATUSES:
        return OperationResult.failure(f"Invalid status: {status}")

    for name in EDITABLE_FIELDS:
        if name in data:
            setattr(report, name, data[name])
    if status is not None:
        report.status = status
        if status == "Publicado" and report.published_at is None:
            report.published_at = datetime.now(timezone.utc)
    elif report.status == "Rascunho":
        report.status = "Em Andamento"

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        return _fail("Report update", e)
    cache.invalidate(REPORT, report.id)
    return OperationResult.success(report)


def delete_report(report):
    report_id = report.id
    try:
        db.session.delete(report)
        db.session.commit()
    except SQLAlchemyError as e:
        return _fail("Report deletion", e)
    cache.invalidate(REPORT, report_id)
    logger.info(f"GRI report {report_id} deleted")
    return OperationResult.success({"id": report_id})


def get_section(report, section_key):
    return report.sections.filter_by(section_key=section_key).first()


def save_section(report, section_key, content=None, is_complete=None, ai_generated=False):
    section = get_section(report, section_key)
    if section is None:
        return OperationResult.failure(f"Unknown section: {section_key}")

    if content is not None:
        section.content = content
        section.ai_generated_content = ai_generated
        if ai_generated:
            section.last_ai_update = datetime.now(timezone.utc)
    if is_complete is not None:
        section.is_complete = bool(is_complete)
    try:
        db.session.flush()
        refresh_completion(report)
        db.session.commit()
    except SQLAlchemyError as e:
        return _fail("Section save", e)
    cache.invalidate(REPORT, report.id)
    return OperationResult.success(section)


def save_indicator(report, indicator_code, data):
    """Create or update one indicator value of a report."""
    indicator = get_indicator(indicator_code)
    if indicator is None:
        return OperationResult.failure(f"Unknown GRI indicator: {indicator_code}")

    value = report.indicator_values.filter_by(indicator_code=indicator_code).first()
    if value is None:
        value = GRIIndicatorValue(report=report, indicator_code=indicator_code, unit=indicator["unit"])
        db.session.add(value)

    if "numeric_value" in data:
        raw = data["numeric_value"]
        if raw in (None, ""):
            value.numeric_value = None
        else:
            try:
                value.numeric_value = float(raw)
            except (TypeError, ValueError):
                db.session.rollback()
                return OperationResult.failure(f"numeric_value must be a number for {indicator_code}")
    for name in ("text_value", "unit", "methodology", "data_source", "notes"):
        if name in data:
            setattr(value, name, data[name])
    if "is_complete" in data:
        value.is_complete = bool(data["is_complete"])
    else:
        value.is_complete = value.numeric_value is not None or bool(value.text_value)

    try:
        db.session.flush()
        refresh_completion(report)
        db.session.commit()
    except SQLAlchemyError as e:
        return _fail("Indicator save", e)
    cache.invalidate(REPORT, report.id)
    return OperationResult.success(value)


def prefill_indicators(report, dashboards, overwrite=False):
    """Copy dashboard figures into the numeric indicators they support."""
    batch = BatchResult()
    for ind in GRI_INDICATORS:
        if not ind["source"]:
            continue
        value = resolve_source(ind["source"], dashboards)
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            batch.add_failure(ind["code"], "No dashboard data for this period.")
            continue
        current = report.indicator_values.filter_by(indicator_code=ind["code"]).first()
        if current is not None and current.numeric_value is not None and not overwrite:
            batch.add_success(ind["code"], {"numeric_value": current.numeric_value, "kept": True})
            continue
        result = save_indicator(report, ind["code"], {
            "numeric_value": value, "data_source": "dashboard", "is_complete": True,
        })
        if result.ok:
            batch.add_success(ind["code"], {"numeric_value": value, "kept": False})
        else:
            batch.add_failure(ind["code"], result.error)
    return batch


def move_wizard(report, action, target=None):
    """Apply next / previous / go_to to a report and persist the new step."""
    current = report.current_step or wizard.FIRST_STEP
    furthest = report.furthest_step or current
    if action == "next":
        result = wizard.next_step(current, furthest)
    elif action == "previous":
        result = wizard.previous_step(current, furthest)
    elif action == "go_to":
        try:
            target = int(target)
        except (TypeError, ValueError):
            return OperationResult.failure("Target step must be a number.")
        result = wizard.go_to_step(current, furthest, target)
    else:
        return OperationResult.failure(f"Unknown wizard action: {action}")

    if not result.ok:
        return result

    report.current_step = result.data["current_step"]
    report.furthest_step = result.data["furthest_step"]
    if report.status == "Rascunho":
        report.status = "Em Andamento"
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        return _fail("Wizard step save", e)
    cache.invalidate(REPORT, report.id)
    return result


# ---------------------------------------------------------------------------
# Content assembly
# ---------------------------------------------------------------------------

def _indicator_display(value):
    if value.numeric_value is not None:
        shown = f"{value.numeric_value:g}"
        return f"{shown} {value.unit}".strip()
    return value.text_value or "Não informado"


def build_outline(report):
    """Ordered blocks shared by the markdown, DOCX and PDF renderings.

    Each block is ("title" | "heading1" | "heading2" | "paragraph", text).
    """
    blocks = [("title", f"{report.title} - {report.year}")]
    if report.gri_standard_version:
        blocks.append(("paragraph", report.gri_standard_version))

    for heading, text in (
        ("Sumário Executivo", report.executive_summary),
        ("Mensagem da Liderança", report.ceo_message),
        ("Metodologia", report.methodology),
    ):
        blocks.append(("heading1", heading))
        blocks.append(("paragraph", text or PLACEHOLDER))

    blocks.append(("heading1", "Seções do Relatório"))
    for section in report.sections.all():
        blocks.append(("heading2", section.title))
        blocks.append(("paragraph", section.content or PLACEHOLDER))

    values = report.indicator_values.all()
    if values:
        blocks.append(("heading1", "Indicadores GRI"))
        for value in sorted(values, key=lambda v: v.indicator_code):
            indicator = get_indicator(value.indicator_code)
            title = indicator["title"] if indicator else ""
            blocks.append(("heading2", f"{value.indicator_code} - {title}".rstrip(" -")))
            blocks.append(("paragraph", f"Valor: {_indicator_display(value)}"))
            if value.notes:
                blocks.append(("paragraph", f"Observações: {value.notes}"))
    return blocks


def generate_report_content(report):
    """Render the report outline as markdown."""
    prefixes = {"title": "# ", "heading1": "## ", "heading2": "### ", "paragraph": ""}
    lines = []
    for kind, text in build_outline(report):
        lines.append(f"{prefixes[kind]}{text}")
        lines.append("")
    return "\n".join(lines).strip() + "\n"
