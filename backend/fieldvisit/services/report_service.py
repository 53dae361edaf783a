# Overview: Builds the printable visit report; a pure read followed by PDF rendering.

"""
Visit Report Generation

PIPELINE:
1. load_visit_report(): read the visit, its branch and company, cash record,
   inventory lines and notes into an immutable VisitReport
2. cash_table_rows() / inventory_table_rows(): the logical table content,
   discrepancies computed here (actual - system)
3. render_visit_pdf(): lay the tables out on A4 pages with reportlab

Rendering has no side effects and is reproducible: the same VisitReport
always yields the same document (reportlab invariant mode).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from io import BytesIO
from xml.sax.saxutils import escape

from flask import current_app
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import (
    ListFlowable,
    ListItem,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from ..errors import NotFoundError
from ..extensions import db
from ..models import Visit
from ..time_utils import format_report_date, format_report_time


PAGE_MARGINS = (30, 60, 30, 40)  # left, top, right, bottom (points)

CASH_HEADER = ["System balance", "Actual balance", "Sales", "Discrepancy"]
INVENTORY_HEADER = ["#", "Item", "Color", "Size", "System qty", "Actual qty", "Discrepancy"]
INVENTORY_COL_WIDTHS = [24, 246, 60, 45, 50, 50, 60]


@dataclass(frozen=True)
class CashSummary:
    """Cash figures in integer cents."""
    system_balance_cents: int = 0
    actual_balance_cents: int = 0
    sales_amount_cents: int = 0

    @property
    def discrepancy_cents(self) -> int:
        return self.actual_balance_cents - self.system_balance_cents


@dataclass(frozen=True)
class ReportFonts:
    regular: str = "Helvetica"
    bold: str = "Helvetica-Bold"


DEFAULT_FONTS = ReportFonts()


@dataclass(frozen=True)
class InventoryLine:
    item_name: str
    color: str | None
    size: str | None
    system_qty: int
    actual_qty: int

    @property
    def discrepancy(self) -> int:
        return self.actual_qty - self.system_qty


@dataclass(frozen=True)
class VisitReport:
    """Everything printed on a visit report, detached from the session."""
    visit_id: int
    status: str
    company_name: str
    branch_name: str
    branch_location: str | None
    employee_name: str
    started_at: datetime | None
    ended_at: datetime | None
    cash: CashSummary = field(default_factory=CashSummary)
    items: tuple[InventoryLine, ...] = ()
    notes: tuple[str, ...] = ()


def load_visit_report(visit_id: int) -> VisitReport:
    """
    Gather a visit's full record.

    A visit without a cash record reports all-zero cash figures; inventory and
    notes may be empty. Notes are in creation order.

    Raises:
        NotFoundError: visit_id does not resolve
    """
    visit = db.session.query(Visit).filter_by(id=visit_id).first()
    if not visit:
        raise NotFoundError(f"Visit {visit_id} not found")

    branch = visit.branch
    company = branch.company if branch else None

    cash = CashSummary()
    if visit.cash is not None:
        cash = CashSummary(
            system_balance_cents=visit.cash.system_balance_cents or 0,
            actual_balance_cents=visit.cash.actual_balance_cents or 0,
            sales_amount_cents=visit.cash.sales_amount_cents or 0,
        )

    items = tuple(
        InventoryLine(
            item_name=item.item_name,
            color=item.color,
            size=item.size,
            system_qty=item.system_qty or 0,
            actual_qty=item.actual_qty or 0,
        )
        for item in visit.inventory_items
    )

    return VisitReport(
        visit_id=visit.id,
        status=visit.status,
        company_name=company.name if company else "",
        branch_name=branch.name if branch else "",
        branch_location=branch.location if branch else None,
        employee_name=visit.employee.full_name if visit.employee else "",
        started_at=visit.started_at,
        ended_at=visit.ended_at,
        cash=cash,
        items=items,
        notes=tuple(note.note_text for note in visit.notes),
    )


def format_amount(cents: int) -> str:
    return f"{Decimal(cents).scaleb(-2):,.2f}"


def cash_table_rows(report: VisitReport) -> list[list[str]]:
    cash = report.cash
    return [
        list(CASH_HEADER),
        [
            format_amount(cash.system_balance_cents),
            format_amount(cash.actual_balance_cents),
            format_amount(cash.sales_amount_cents),
            format_amount(cash.discrepancy_cents),
        ],
    ]


def inventory_table_rows(report: VisitReport) -> list[list[str]]:
    rows = [list(INVENTORY_HEADER)]
    for sequence, item in enumerate(report.items, start=1):
        rows.append([
            str(sequence),
            item.item_name,
            item.color or "",
            item.size or "",
            str(item.system_qty),
            str(item.actual_qty),
            str(item.discrepancy),
        ])
    return rows


def summary_line(report: VisitReport) -> tuple[str, str]:
    branch = report.branch_name
    if report.branch_location:
        branch = f"{branch} - {report.branch_location}"
    return f"Branch: {branch}", f"Date: {format_report_date(report.started_at)}"


def detail_line(report: VisitReport) -> tuple[str, str]:
    """Second summary row: the employee, then the time window with the status."""
    started = format_report_time(report.started_at) or "-"
    ended = format_report_time(report.ended_at) or "not ended"
    return (
        f"Employee: {report.employee_name or '-'}",
        f"Time: {started} to {ended} | Status: {report.status}",
    )


# =============================================================================
# Rendering
# =============================================================================

def register_report_fonts(regular_path: str | None, bold_path: str | None = None) -> ReportFonts:
    """
    Register TrueType faces for report text and return their names.

    Faces are named after their file and registered once per process.
    Without a regular path the built-in Helvetica pair is used; without a
    bold path headings use the regular face.
    """
    if not regular_path:
        return DEFAULT_FONTS

    def register(path: str) -> str:
        name = os.path.splitext(os.path.basename(path))[0]
        if name not in pdfmetrics.getRegisteredFontNames():
            pdfmetrics.registerFont(TTFont(name, path))
        return name

    regular = register(regular_path)
    bold = register(bold_path) if bold_path else regular
    return ReportFonts(regular=regular, bold=bold)


def _styles(fonts: ReportFonts) -> dict:
    base = getSampleStyleSheet()
    return {
        "h1": ParagraphStyle("h1", parent=base["Heading1"], fontName=fonts.bold, fontSize=14,
                             alignment=TA_CENTER, spaceAfter=4),
        "h2": ParagraphStyle("h2", parent=base["Heading2"], fontName=fonts.bold, fontSize=12,
                             alignment=TA_CENTER, spaceAfter=12),
        "section": ParagraphStyle("section", parent=base["Heading3"], fontName=fonts.bold, fontSize=11,
                                  spaceBefore=10, spaceAfter=4),
        "body": ParagraphStyle("body", parent=base["BodyText"], fontName=fonts.regular, fontSize=9, leading=11),
        "cell": ParagraphStyle("cell", parent=base["BodyText"], fontName=fonts.regular, fontSize=8, leading=10),
    }


def _grid_style(fonts: ReportFonts, header_rows: int = 1) -> TableStyle:
    return TableStyle([
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("BACKGROUND", (0, 0), (-1, header_rows - 1), colors.HexColor("#E8EDF3")),
        ("FONTNAME", (0, 0), (-1, -1), fonts.regular),
        ("FONTNAME", (0, 0), (-1, header_rows - 1), fonts.bold),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ])


def _page_footer(organization_name: str, visit_id: int, font_name: str):
    def draw(canvas, doc):
        canvas.saveState()
        canvas.setFont(font_name, 7)
        canvas.setFillColor(colors.grey)
        canvas.drawString(PAGE_MARGINS[0], PAGE_MARGINS[3] / 2, f"{organization_name} - visit #{visit_id}")
        canvas.drawRightString(
            A4[0] - PAGE_MARGINS[2],
            PAGE_MARGINS[3] / 2,
            f"Page {canvas.getPageNumber()}",
        )
        canvas.restoreState()
    return draw


def render_visit_pdf(report: VisitReport, organization_name: str, fonts: ReportFonts = DEFAULT_FONTS) -> bytes:
    """Lay out the report as a paginated A4 PDF and return its bytes."""
    styles = _styles(fonts)
    buffer = BytesIO()
    left, top, right, bottom = PAGE_MARGINS
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=left,
        topMargin=top,
        rightMargin=right,
        bottomMargin=bottom,
        title=f"Field Visit Report #{report.visit_id}",
        author=organization_name,
        invariant=1,
    )

    summary_rows = [
        [Paragraph(escape(left_text), styles["body"]), Paragraph(escape(right_text), styles["body"])]
        for left_text, right_text in (summary_line(report), detail_line(report))
    ]
    summary = Table(summary_rows, colWidths=[doc.width / 2, doc.width / 2])
    summary.setStyle(TableStyle([("ALIGN", (1, 0), (1, -1), "RIGHT")]))

    cash_table = Table(cash_table_rows(report), colWidths=[doc.width / 4] * 4)
    cash_table.setStyle(_grid_style(fonts))

    inventory_rows = inventory_table_rows(report)
    # Item names wrap inside their column
    for row in inventory_rows[1:]:
        row[1] = Paragraph(escape(row[1]), styles["cell"])
    inventory_table = Table(inventory_rows, colWidths=INVENTORY_COL_WIDTHS, repeatRows=1)
    inventory_table.setStyle(_grid_style(fonts))

    story = [
        Paragraph(escape(organization_name), styles["h1"]),
        Paragraph(f"Field Visit Report #{report.visit_id}", styles["h2"]),
        summary,
        Spacer(1, 8),
        Paragraph("Cash reconciliation", styles["section"]),
        cash_table,
        Paragraph("Inventory count", styles["section"]),
        inventory_table,
        Paragraph("Notes", styles["section"]),
    ]

    if report.notes:
        story.append(ListFlowable(
            [ListItem(Paragraph(escape(note), styles["body"])) for note in report.notes],
            bulletType="bullet",
            start="•",
        ))
    else:
        story.append(Paragraph("No notes recorded.", styles["body"]))

    footer = _page_footer(organization_name, report.visit_id, fonts.regular)
    doc.build(story, onFirstPage=footer, onLaterPages=footer)
    return buffer.getvalue()


def build_report(visit_id: int) -> bytes:
    """Load and render the report for `visit_id` (NotFoundError if unknown)."""
    report = load_visit_report(visit_id)
    config = current_app.config
    fonts = register_report_fonts(config.get("REPORT_FONT_PATH"), config.get("REPORT_BOLD_FONT_PATH"))
    return render_visit_pdf(report, config["ORGANIZATION_NAME"], fonts)
