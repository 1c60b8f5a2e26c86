import csv
import io
from datetime import date

from openpyxl import load_workbook
from reportlab.pdfgen import canvas

from greep.models.enums import UserRole
from greep.models.payment import DriverPayment
from greep.models.user import User
from greep.services.exports import (
    monthly_report_pdf,
    monthly_report_workbook,
    rows_to_csv,
    sheets_to_workbook,
)
from greep.services.monthly_report import PAYMENT_COLUMNS, build_monthly_report
from greep.utils.decimal_math import money


def _report():
    users = [User(id="d1", name="Mehmet", email="d1@test.com", role=UserRole.driver, tier="A", active=True, can_login=False)]
    payments = [
        DriverPayment(id="p1", driver_id="d1", week_start_date=date(2024, 3, 4), amount_paid=money(700), balance_carryover=money(60), notes="short"),
        DriverPayment(id="p2", driver_id="gone", week_start_date=date(2024, 3, 11), amount_paid=money(760), balance_carryover=money(0), notes=None),
    ]
    return build_monthly_report("2024-03", users, payments, [], [])


def test_csv_export_writes_header_and_rows() -> None:
    text = rows_to_csv(_report().payment_rows, PAYMENT_COLUMNS)

    rows = list(csv.DictReader(io.StringIO(text)))
    assert text.splitlines()[0] == "driver_name,driver_tier,week_start,amount,notes"
    assert rows[0] == {
        "driver_name": "Mehmet",
        "driver_tier": "A",
        "week_start": "2024-03-04",
        "amount": "700.00",
        "notes": "short",
    }
    assert rows[1]["driver_name"] == "Unknown"


def test_empty_csv_export_is_header_only() -> None:
    text = rows_to_csv([], ["category", "amount"])
    assert text.strip() == "category,amount"


def test_monthly_workbook_has_one_sheet_per_category() -> None:
    workbook = load_workbook(io.BytesIO(monthly_report_workbook(_report())))

    assert workbook.sheetnames == ["Summary", "Payments", "Expenses", "Payouts"]
    summary = list(workbook["Summary"].iter_rows(values_only=True))
    assert summary[0] == ("category", "amount")
    assert summary[1] == ("Revenue", 1460.0)
    payments = list(workbook["Payments"].iter_rows(values_only=True))
    assert payments[1][0] == "Mehmet"
    assert payments[2][0] == "Unknown"


def test_sheet_titles_are_truncated_for_excel() -> None:
    payload = sheets_to_workbook({"x" * 40: (["a"], [{"a": 1}])})
    workbook = load_workbook(io.BytesIO(payload))
    assert workbook.sheetnames == ["x" * 31]


def test_pdf_export_produces_a_pdf_document() -> None:
    payload = monthly_report_pdf(_report(), app_name="Greep", currency="TRY")
    assert payload.startswith(b"%PDF")
    assert len(payload) > 500


def test_pdf_money_cells_are_right_aligned(monkeypatch) -> None:
    right_aligned: list[str] = []
    left_aligned: list[str] = []
    draw_right = canvas.Canvas.drawRightString
    draw_left = canvas.Canvas.drawString

    def record_right(self, x, y, text, *args, **kwargs):
        right_aligned.append(text)
        return draw_right(self, x, y, text, *args, **kwargs)

    def record_left(self, x, y, text, *args, **kwargs):
        left_aligned.append(text)
        return draw_left(self, x, y, text, *args, **kwargs)

    monkeypatch.setattr(canvas.Canvas, "drawRightString", record_right)
    monkeypatch.setattr(canvas.Canvas, "drawString", record_left)

    monthly_report_pdf(_report(), app_name="Greep", currency="TRY")

    assert "700.00" in right_aligned
    assert "760.00" in right_aligned
    assert "Amount" in right_aligned
    assert "700.00" not in left_aligned
    assert "Mehmet" in left_aligned
