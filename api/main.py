import logging
import os

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.deps import get_catalog_breaker
from api.routes.activity import router as activity_router
from api.routes.notifications import router as notifications_router
from api.routes.recommendations import router as recommendations_router
from api.routes.share import router as share_router
from api.routes.trending import router as trending_router
from infrastructure.metrics import get_metrics_response

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="TrackShare Feed")

# CORS: the web and mobile clients call from arbitrary origins. Bearer
# tokens travel in headers, never cookies.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(activity_router)
app.include_router(notifications_router)
app.include_router(recommendations_router)
app.include_router(trending_router)
app.include_router(share_router)


# ---------------------------------------------------------------------------
# Error envelope — every non-2xx body is {"success": false, "error": ...}
# ---------------------------------------------------------------------------


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return _error(exc.status_code, message, getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    return _error(400, message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return _error(500, "Internal server error")


@app.get("/health")
def health() -> dict:
    """Liveness check plus the catalog circuit state."""
    return {"status": "ok", "catalog": get_catalog_breaker().status()}


@app.get("/metrics")
def metrics() -> Response:
    """Prometheus metrics endpoint (text exposition format)."""
    body, content_type = get_metrics_response()
    return Response(content=body, media_type=content_type)
