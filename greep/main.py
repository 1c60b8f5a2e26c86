from collections import defaultdict, deque
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import time

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from greep.api.routes import api_router
from greep.core.config import get_settings
from greep.db.base import Base
from greep.db.session import SessionLocal, engine
from greep.services.seed import ensure_default_admin


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

settings = get_settings()
logger = logging.getLogger("greep.api")


def _prepare_database() -> None:
    if settings.auto_create_schema:
        Base.metadata.create_all(bind=engine)
    if not settings.seed_default_admin:
        return
    with SessionLocal() as db:
        try:
            admin = ensure_default_admin(db)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Could not ensure the default admin account.")
        else:
            logger.info("Operating as %s when no X-User-Id header is sent.", admin.email)


@asynccontextmanager
async def lifespan(app: FastAPI):
    _prepare_database()
    logger.info("%s ready on %s", settings.app_name, settings.api_prefix)
    yield
    engine.dispose()
    logger.info("%s stopped.", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# sliding window of request timestamps per client, method and path
_request_windows: dict[str, deque[float]] = defaultdict(deque)
MAX_TRACKED_WINDOWS = 1024


def _prune_windows(now: float) -> None:
    stale = [
        key
        for key, window in _request_windows.items()
        if not window or now - window[-1] > settings.rate_limit_window_seconds
    ]
    for key in stale:
        del _request_windows[key]


def _over_rate_limit(key: str, now: float) -> bool:
    if len(_request_windows) >= MAX_TRACKED_WINDOWS:
        _prune_windows(now)
    window = _request_windows[key]
    while window and now - window[0] > settings.rate_limit_window_seconds:
        window.popleft()
    if len(window) >= settings.rate_limit_requests:
        return True
    window.append(now)
    return False


@app.exception_handler(SQLAlchemyError)
async def persistence_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Database operation failed."})


@app.middleware("http")
async def log_and_throttle(request: Request, call_next):
    client = request.client.host if request.client else "unknown"
    if _over_rate_limit(f"{client}:{request.method}:{request.url.path}", time.time()):
        logger.warning("Throttled %s %s for %s", request.method, request.url.path, client)
        return JSONResponse(
            status_code=429,
            content={"detail": "Too many requests. Please retry later."},
        )

    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as exc:  # pragma: no cover
        logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    elapsed_ms = (time.perf_counter() - started) * 1000
    response.headers["X-Response-Time-Ms"] = f"{elapsed_ms:.1f}"
    logger.info(
        "%s %s -> %s in %.1fms",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


@app.get("/healthz")
def healthz() -> dict:
    return {
        "ok": True,
        "service": settings.app_name,
        "checked_at": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/", include_in_schema=False)
def root() -> dict[str, str]:
    prefix = settings.api_prefix
    return {
        "service": settings.app_name,
        "currency": settings.currency_symbol,
        "dashboard": f"{prefix}/dashboard",
        "monthly_report": f"{prefix}/reports/monthly",
        "docs": "/docs",
    }


@app.get("/favicon.ico", include_in_schema=False)
def favicon() -> Response:
    return Response(status_code=204)


app.include_router(api_router, prefix=settings.api_prefix)
