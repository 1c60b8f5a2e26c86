from __future__ import annotations

import csv
import io
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from decimal import Decimal

from openpyxl import Workbook
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from greep.services.monthly_report import (
    EXPENSE_COLUMNS,
    PAYMENT_COLUMNS,
    PAYOUT_COLUMNS,
    SUMMARY_COLUMNS,
    MonthlyReport,
)
from greep.utils.decimal_math import money


MONEY_KEYS = frozenset({"amount", "gross_amount", "total_expenses", "net_amount"})


def _cell(value: object) -> object:
    if isinstance(value, Decimal):
        return float(value)
    return value


def rows_to_csv(rows: Sequence[Mapping], columns: Sequence[str]) -> str:
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=list(columns), extrasaction="ignore")
    writer.writeheader()
    writer.writerows(rows)
    return output.getvalue()


def sheets_to_workbook(sheets: Mapping[str, tuple[Sequence[str], Sequence[Mapping]]]) -> bytes:
    workbook = Workbook()
    workbook.remove(workbook.active)
    for title, (columns, rows) in sheets.items():
        sheet = workbook.create_sheet(title=title[:31])
        sheet.append(list(columns))
        for row in rows:
            sheet.append([_cell(row.get(key)) for key in columns])

    stream = io.BytesIO()
    workbook.save(stream)
    return stream.getvalue()


def monthly_report_workbook(report: MonthlyReport) -> bytes:
    return sheets_to_workbook(
        {
            "Summary": (SUMMARY_COLUMNS, report.summary_rows),
            "Payments": (PAYMENT_COLUMNS, report.payment_rows),
            "Expenses": (EXPENSE_COLUMNS, report.expense_rows),
            "Payouts": (PAYOUT_COLUMNS, report.payout_rows),
        }
    )


def _draw_header(pdf: canvas.Canvas, title: str, subtitle: str) -> None:
    pdf.setFont("Helvetica-Bold", 14)
    pdf.drawString(50, 800, title)
    pdf.setFont("Helvetica", 10)
    pdf.drawString(50, 785, subtitle)
    pdf.line(50, 780, 550, 780)


def _draw_table(
    pdf: canvas.Canvas,
    y: float,
    heading: str,
    columns: Sequence[tuple[str, str, float]],
    rows: Sequence[Mapping],
) -> float:
    """Draw one titled table and return the next free y position.

    ``columns`` holds ``(header, key, x)`` triples. Money columns (and their
    headers) are right-aligned ending at ``x``; the rest start at ``x``.
    """
    if y < 120:
        pdf.showPage()
        y = 800
    pdf.setFont("Helvetica-Bold", 11)
    pdf.drawString(50, y, heading)
    y -= 16
    pdf.setFont("Helvetica-Bold", 9)
    for header, key, x in columns:
        if key in MONEY_KEYS:
            pdf.drawRightString(x, y, header)
        else:
            pdf.drawString(x, y, header)
    y -= 14
    pdf.setFont("Helvetica", 9)
    if not rows:
        pdf.drawString(50, y, "No records for this month.")
        return y - 24

    for row in rows:
        if y < 80:
            pdf.showPage()
            y = 800
            pdf.setFont("Helvetica", 9)
        for _header, key, x in columns:
            value = row.get(key)
            if isinstance(value, Decimal):
                pdf.drawRightString(x, y, f"{money(value):,.2f}")
            else:
                pdf.drawString(x, y, str(value if value is not None else "")[:32])
        y -= 14
    return y - 10


def monthly_report_pdf(report: MonthlyReport, *, app_name: str, currency: str) -> bytes:
    stream = io.BytesIO()
    pdf = canvas.Canvas(stream, pagesize=A4)
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    _draw_header(
        pdf,
        f"Monthly Report - {report.month}",
        f"{app_name} | Generated on {generated}",
    )

    y = 755
    pdf.setFont("Helvetica", 10)
    for row in report.summary_rows:
        pdf.drawString(50, y, f"{row['category']}: {currency} {money(row['amount']):,.2f}")
        y -= 16
    y -= 8

    y = _draw_table(
        pdf,
        y,
        "Driver Payments",
        [("Driver", "driver_name", 50), ("Tier", "driver_tier", 220), ("Week", "week_start", 270), ("Amount", "amount", 420), ("Notes", "notes", 440)],
        report.payment_rows,
    )
    y = _draw_table(
        pdf,
        y,
        "Expenses",
        [("Date", "date", 50), ("Type", "type", 130), ("Description", "description", 200), ("Amount", "amount", 460), ("Notes", "notes", 475)],
        report.expense_rows,
    )
    _draw_table(
        pdf,
        y,
        "Investor Payouts",
        [("Investor", "investor_name", 50), ("Gross", "gross_amount", 260), ("Expenses", "total_expenses", 340), ("Net", "net_amount", 420), ("Status", "status", 440), ("Month", "month", 500)],
        report.payout_rows,
    )

    pdf.save()
    return stream.getvalue()


def export_filename(prefix: str, extension: str) -> str:
    return f"{prefix}-{datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S')}.{extension}"
