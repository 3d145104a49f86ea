"""Report export to Word (.docx) and PDF from the shared report outline."""

import io
import logging
from xml.sax.saxutils import escape

from docx import Document
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer

from esg_platform.report_service import build_outline

logger = logging.getLogger(__name__)

DOCX_MIMETYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PDF_MIMETYPE = "application/pdf"


def export_filename(report, ext):
    safe = "".join(c if c.isalnum() else "_" for c in report.title).strip("_") or "relatorio"
    return f"{safe}_{report.year}.{ext}"


def export_docx(report):
    doc = Document()
    for kind, text in build_outline(report):
        if kind == "title":
            doc.add_heading(text, level=0)
        elif kind == "heading1":
            doc.add_heading(text, level=1)
        elif kind == "heading2":
            doc.add_heading(text, level=2)
        else:
            for para in text.split("\n\n"):
                doc.add_paragraph(para.strip())

    buf = io.BytesIO()
    doc.save(buf)
    buf.seek(0)
    logger.info(f"Report {report.id} exported to DOCX ({buf.getbuffer().nbytes} bytes)")
    return buf


def export_pdf(report):
    styles = getSampleStyleSheet()
    style_for = {
        "title": styles["Title"],
        "heading1": styles["Heading1"],
        "heading2": styles["Heading2"],
        "paragraph": styles["BodyText"],
    }

    story = []
    for kind, text in build_outline(report):
        if kind == "paragraph":
            for para in text.split("\n\n"):
                story.append(Paragraph(escape(para.strip()).replace("\n", "<br/>"), style_for[kind]))
                story.append(Spacer(1, 0.2 * cm))
        else:
            story.append(Paragraph(escape(text), style_for[kind]))

    buf = io.BytesIO()
    pdf = SimpleDocTemplate(
        buf, pagesize=A4, title=f"{report.title} - {report.year}",
        leftMargin=2 * cm, rightMargin=2 * cm, topMargin=2 * cm, bottomMargin=2 * cm,
    )
    pdf.build(story)
    buf.seek(0)
    logger.info(f"Report {report.id} exported to PDF ({buf.getbuffer().nbytes} bytes)")
    return buf
