"""
Visit report tests.

Verifies:
- Reports load with zero cash defaults and derived discrepancies
- Table content is formatted the way it is printed
- Rendering produces a PDF, is reproducible and prints the visit details
- Configured TrueType fonts are embedded
- The PDF endpoint serves the document inline
"""

import dataclasses
import os
from datetime import datetime

import pytest
import reportlab

from fieldvisit.errors import NotFoundError
from fieldvisit.services import report_service, visit_service
from fieldvisit.services.report_service import CashSummary, InventoryLine, VisitReport


VERA_TTF = os.path.join(os.path.dirname(reportlab.__file__), "fonts", "Vera.ttf")
VERA_BOLD_TTF = os.path.join(os.path.dirname(reportlab.__file__), "fonts", "VeraBd.ttf")


def _report(**overrides):
    values = dict(
        visit_id=7,
        status="submitted",
        company_name="Northwind Retail",
        branch_name="Downtown",
        branch_location="12 Main St",
        employee_name="Eve Employee",
        started_at=None,
        ended_at=None,
    )
    values.update(overrides)
    return VisitReport(**values)


class TestLoadVisitReport:

    def test_visit_without_captures(self, open_visit):
        report = report_service.load_visit_report(open_visit.id)

        assert report.cash == CashSummary(0, 0, 0)
        assert report.cash.discrepancy_cents == 0
        assert report.items == ()
        assert report.notes == ()
        assert report.company_name == "Northwind Retail"
        assert report.branch_name == "Downtown"
        assert report.employee_name == "Eve Employee"

    def test_inventory_discrepancy_is_actual_minus_system(self, open_visit):
        visit_service.record_inventory(open_visit.id, [
            {"item_name": "Shirt", "color": "Blue", "size": "L", "system_qty": 10, "actual_qty": 7},
        ])

        report = report_service.load_visit_report(open_visit.id)

        assert report.items[0].discrepancy == -3
        assert report_service.inventory_table_rows(report)[1] == ["1", "Shirt", "Blue", "L", "10", "7", "-3"]

    def test_notes_in_creation_order(self, open_visit):
        for text in ("door lock broken", "stock room tidy"):
            visit_service.add_note(open_visit.id, text)

        report = report_service.load_visit_report(open_visit.id)
        assert report.notes == ("door lock broken", "stock room tidy")

    def test_unknown_visit(self):
        with pytest.raises(NotFoundError):
            report_service.load_visit_report(999999)


class TestTableContent:

    def test_cash_rows(self):
        report = _report(cash=CashSummary(
            system_balance_cents=100000, actual_balance_cents=95000, sales_amount_cents=20000,
        ))
        rows = report_service.cash_table_rows(report)

        assert rows[0] == report_service.CASH_HEADER
        assert rows[1] == ["1,000.00", "950.00", "200.00", "-50.00"]

    def test_cash_rows_keep_cents_exact(self):
        report = _report(cash=CashSummary(system_balance_cents=10010, actual_balance_cents=10000))
        assert report_service.cash_table_rows(report)[1] == ["100.10", "100.00", "0.00", "-0.10"]

    def test_inventory_rows_are_numbered_from_one(self):
        report = _report(items=(
            InventoryLine("Shirt", None, None, 5, 5),
            InventoryLine("Hat", "Black", "S", 2, 4),
        ))
        rows = report_service.inventory_table_rows(report)

        assert rows[0] == report_service.INVENTORY_HEADER
        assert rows[1] == ["1", "Shirt", "", "", "5", "5", "0"]
        assert rows[2] == ["2", "Hat", "Black", "S", "2", "4", "2"]

    def test_summary_line(self):
        branch_text, date_text = report_service.summary_line(_report())
        assert branch_text == "Branch: Downtown - 12 Main St"
        assert date_text.startswith("Date: ")

    def test_summary_line_without_location(self):
        branch_text, _ = report_service.summary_line(_report(branch_location=None))
        assert branch_text == "Branch: Downtown"

    def test_detail_line(self):
        report = _report(
            started_at=datetime(2024, 3, 5, 9, 15),
            ended_at=datetime(2024, 3, 5, 11, 40),
        )
        employee_text, time_text = report_service.detail_line(report)

        assert employee_text == "Employee: Eve Employee"
        assert time_text == "Time: 09:15 UTC to 11:40 UTC | Status: submitted"

    def test_detail_line_for_unfinished_visit(self):
        report = _report(status="open", started_at=datetime(2024, 3, 5, 9, 15))
        _, time_text = report_service.detail_line(report)
        assert time_text == "Time: 09:15 UTC to not ended | Status: open"


class TestRendering:

    def test_renders_pdf(self):
        pdf = report_service.render_visit_pdf(_report(notes=("a", "b")), "Test Inspection Co")
        assert pdf.startswith(b"%PDF")

    def test_rendering_is_reproducible(self):
        report = _report(
            cash=CashSummary(10000, 9000, 1000),
            items=(InventoryLine("Shirt", "Blue", "M", 3, 2),),
            notes=("checked",),
        )
        first = report_service.render_visit_pdf(report, "Test Inspection Co")
        second = report_service.render_visit_pdf(report, "Test Inspection Co")
        assert first == second

    def test_long_inventory_paginates(self):
        items = tuple(InventoryLine(f"Item {n}", None, None, n, n) for n in range(200))
        pdf = report_service.render_visit_pdf(_report(items=items), "Test Inspection Co")
        assert pdf.startswith(b"%PDF")

    def test_markup_in_free_text_is_escaped(self):
        report = _report(branch_name="A & B <Outlet>", notes=("<b>unclosed",))
        pdf = report_service.render_visit_pdf(report, "Test & Co")
        assert pdf.startswith(b"%PDF")

    @pytest.mark.parametrize(
        "changes",
        [
            {"employee_name": "Max Manager"},
            {"status": "approved"},
            {"ended_at": datetime(2024, 3, 5, 11, 40)},
        ],
    )
    def test_details_are_printed(self, changes):
        report = _report(started_at=datetime(2024, 3, 5, 9, 15))
        baseline = report_service.render_visit_pdf(report, "Test Inspection Co")
        changed = report_service.render_visit_pdf(dataclasses.replace(report, **changes), "Test Inspection Co")
        assert changed != baseline

    def test_default_fonts_are_builtin(self):
        assert report_service.register_report_fonts(None) == report_service.DEFAULT_FONTS
        pdf = report_service.render_visit_pdf(_report(), "Test Inspection Co")
        assert b"/FontFile2" not in pdf

    def test_truetype_font_is_embedded(self):
        fonts = report_service.register_report_fonts(VERA_TTF, VERA_BOLD_TTF)
        assert fonts == report_service.ReportFonts(regular="Vera", bold="VeraBd")

        report = _report(branch_name="Café Zürich", notes=("Caisse vérifiée",))
        pdf = report_service.render_visit_pdf(report, "Test Inspection Co", fonts)

        assert pdf.startswith(b"%PDF")
        assert b"/FontFile2" in pdf

    def test_bold_face_falls_back_to_regular(self):
        fonts = report_service.register_report_fonts(VERA_TTF)
        assert fonts.bold == fonts.regular == "Vera"

    def test_build_report_uses_configured_font(self, app, open_visit, monkeypatch):
        monkeypatch.setitem(app.config, "REPORT_FONT_PATH", VERA_TTF)
        pdf = report_service.build_report(open_visit.id)
        assert b"/FontFile2" in pdf


class TestPdfEndpoint:

    def test_scenario_discrepancy(self, client, branch, employee_headers, manager_headers):
        start = client.post("/api/visits/start", json={"branch_id": branch.id}, headers=employee_headers)
        visit_id = start.get_json()["visit_id"]

        client.put(
            f"/api/visits/{visit_id}/cash",
            json={"system_balance": 1000, "actual_balance": 950, "sales_amount": 200},
            headers=employee_headers,
        )
        client.post(f"/api/visits/{visit_id}/submit", headers=employee_headers)
        client.post(f"/api/visits/{visit_id}/approve", headers=manager_headers)

        report = report_service.load_visit_report(visit_id)
        assert report.status == "approved"
        assert report_service.cash_table_rows(report)[1][3] == "-50.00"

        resp = client.get(f"/api/visits/{visit_id}/pdf", headers=manager_headers)
        assert resp.status_code == 200
        assert resp.mimetype == "application/pdf"
        assert resp.headers["Content-Disposition"] == f'inline; filename="visit-{visit_id}.pdf"'
        assert resp.data.startswith(b"%PDF")

    def test_unknown_visit(self, client, employee_headers):
        resp = client.get("/api/visits/999999/pdf", headers=employee_headers)
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "not_found"
