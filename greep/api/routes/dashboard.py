from dataclasses import asdict
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from greep.api.deps import get_clock, get_db, get_operator
from greep.core.config import get_settings
from greep.models.user import User
from greep.schemas.dashboard import DashboardOut, DashboardStatsOut, PendingPayoutOut, RecentPaymentOut
from greep.services.dashboard import compute_dashboard_stats, pending_payout_rows, recent_payments
from greep.services.records import load_collections


router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardOut)
def get_dashboard(
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
    now: datetime = Depends(get_clock),
) -> DashboardOut:
    data = load_collections(db)
    stats = compute_dashboard_stats(data.users, data.payments, data.expenses, data.payouts, now=now)
    return DashboardOut(
        stats=DashboardStatsOut(**asdict(stats)),
        recent_payments=[
            RecentPaymentOut(**asdict(row))
            for row in recent_payments(data.users, data.payments, limit=get_settings().recent_payments_limit)
        ],
        pending_payouts=[PendingPayoutOut(**asdict(row)) for row in pending_payout_rows(data.users, data.payouts)],
    )
