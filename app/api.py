import logging
import os
import sqlite3

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware

from app import metrics as app_metrics
from core.mps_repository import (
    ItemNotFoundError,
    MpsIntegrityError,
    MpsStorageError,
    MpsTransactionError,
)
from engine.week_calendar import WeekRangeError

logging.basicConfig(level=os.getenv("MPS_LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

app = FastAPI(title="MPS backend")

from app import items_api as _items_api  # noqa: E402
from app import bom_api as _bom_api  # noqa: E402
from app import movements_api as _movements_api  # noqa: E402
from app import orders_api as _orders_api  # noqa: E402
from app import mps_api as _mps_api  # noqa: E402

app.include_router(_items_api.router)
app.include_router(_bom_api.router)
app.include_router(_movements_api.router)
app.include_router(_orders_api.router)
app.include_router(_mps_api.router)


def _cors_origins() -> list[str]:
    raw = os.getenv("MPS_CORS_ORIGINS", "*")
    return [o.strip() for o in raw.split(",") if o.strip()] or ["*"]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    リクエストバリデーションエラーを400で返し、内容をログに出力する。
    """
    detail = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
        for e in exc.errors()
    ]
    logger.warning(f"Validation error for: {request.method} {request.url} {detail}")
    message = detail[0]["msg"] if detail else "invalid request"
    return JSONResponse(status_code=400, content={"error": message, "detail": detail})


@app.exception_handler(WeekRangeError)
async def week_range_exception_handler(request: Request, exc: WeekRangeError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(ItemNotFoundError)
async def not_found_exception_handler(request: Request, exc: ItemNotFoundError):
    return JSONResponse(status_code=404, content={"error": str(exc.args[0] if exc.args else exc)})


@app.exception_handler(MpsStorageError)
async def storage_exception_handler(request: Request, exc: MpsStorageError):
    status = 500
    if isinstance(exc, MpsIntegrityError):
        status = 409
    elif isinstance(exc, MpsTransactionError) and isinstance(
        exc.__cause__, sqlite3.IntegrityError
    ):
        status = 409
    if status == 500:
        logger.error(f"storage error on {request.method} {request.url}: {exc}")
    return JSONResponse(status_code=status, content={"error": str(exc)})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.on_event("startup")
async def migrate_on_startup() -> None:
    """起動時にスキーマを最新化する（冪等）。"""
    from app import db  # 遅延import（起動順の安定化）

    db.init_db()


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}


@app.get("/metrics")
def metrics():
    return app_metrics.metrics_snapshot()
