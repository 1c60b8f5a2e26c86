from dataclasses import asdict
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from greep.api.deps import get_clock, get_db, get_operator
from greep.core.config import get_settings
from greep.models.user import User
from greep.schemas.reports import DriverPerformanceOut, ExpenseBreakdownOut, MonthlyReportOut
from greep.services.exports import export_filename, monthly_report_pdf, monthly_report_workbook, rows_to_csv
from greep.services.monthly_report import REPORT_COLUMNS, MonthlyReport, build_monthly_report
from greep.services.records import load_collections
from greep.utils.dates import MONTH_PATTERN, month_key


router = APIRouter(prefix="/reports", tags=["reports"])


def _build(db: Session, month: str | None, now: datetime) -> MonthlyReport:
    data = load_collections(db)
    return build_monthly_report(
        month or month_key(now),
        data.users,
        data.payments,
        data.expenses,
        data.payouts,
    )


@router.get("/monthly", response_model=MonthlyReportOut)
def get_monthly_report(
    month: str | None = Query(default=None, pattern=MONTH_PATTERN),
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
    now: datetime = Depends(get_clock),
) -> MonthlyReportOut:
    report = _build(db, month, now)
    return MonthlyReportOut(
        month=report.month,
        monthly_revenue=report.monthly_revenue,
        monthly_expense_total=report.monthly_expense_total,
        monthly_payout_total=report.monthly_payout_total,
        monthly_profit=report.monthly_profit,
        payment_rows=report.payment_rows,
        expense_rows=report.expense_rows,
        payout_rows=report.payout_rows,
        summary_rows=report.summary_rows,
        driver_performance=[DriverPerformanceOut(**asdict(row)) for row in report.driver_performance],
        expense_breakdown=[ExpenseBreakdownOut(**asdict(row)) for row in report.expense_breakdown],
    )


@router.get("/monthly/export/csv")
def export_monthly_csv(
    month: str | None = Query(default=None, pattern=MONTH_PATTERN),
    category: Literal["payments", "expenses", "payouts", "summary"] = "summary",
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
    now: datetime = Depends(get_clock),
):
    report = _build(db, month, now)
    content = rows_to_csv(report.rows_for(category), REPORT_COLUMNS[category])
    filename = f"greep-{category}-{report.month}.csv"
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/monthly/export/excel")
def export_monthly_excel(
    month: str | None = Query(default=None, pattern=MONTH_PATTERN),
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
    now: datetime = Depends(get_clock),
):
    report = _build(db, month, now)
    filename = export_filename(f"greep-report-{report.month}", "xlsx")
    return StreamingResponse(
        iter([monthly_report_workbook(report)]),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/monthly/export/pdf")
def export_monthly_pdf(
    month: str | None = Query(default=None, pattern=MONTH_PATTERN),
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
    now: datetime = Depends(get_clock),
):
    settings = get_settings()
    report = _build(db, month, now)
    filename = f"greep-report-{report.month}.pdf"
    return StreamingResponse(
        iter([monthly_report_pdf(report, app_name=settings.app_name, currency=settings.currency_symbol)]),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
