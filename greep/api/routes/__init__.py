from fastapi import APIRouter

from greep.api.routes import audit, dashboard, expenses, exports, health, imports, payments, payouts, reports, users


api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(users.router)
api_router.include_router(payments.router)
api_router.include_router(expenses.router)
api_router.include_router(payouts.router)
api_router.include_router(dashboard.router)
api_router.include_router(reports.router)
api_router.include_router(exports.router)
api_router.include_router(imports.router)
api_router.include_router(audit.router)
