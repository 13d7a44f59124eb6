from app.api import app
import os
import logging

from fastapi import Request
from starlette.responses import JSONResponse

from app.metrics import start_metrics_server

__all__ = ["app"]


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logging.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": f"Internal Server Error: {exc}",
            "detail": "An unexpected error occurred. Please check server logs.",
        },
    )


@app.on_event("startup")
def on_startup():
    # ワーカー等で別ポートから公開したい場合のみ
    if os.getenv("METRICS_ENABLED", "0") == "1":
        start_metrics_server()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=os.getenv("MPS_HOST", "0.0.0.0"),
        port=int(os.getenv("MPS_PORT", "8000")),
    )
