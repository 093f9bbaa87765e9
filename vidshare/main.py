import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from vidshare.api import users, videos
from vidshare.config import get_settings
from vidshare.db import init_db
from vidshare.errors import ApiError, InternalError
from vidshare.services.storage import LocalMediaHost, build_media_host

settings = get_settings()
logger = logging.getLogger("vidshare")
logger.setLevel(settings.log_level)

if settings.quiet_access_log:
    # Keep warning/error lines, suppress normal access noise (200/201 etc).
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

app = FastAPI(title="vidshare")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup_events() -> None:
    init_db()
    media_host = build_media_host(settings)
    if isinstance(media_host, LocalMediaHost):
        media_host.ensure_storage()
    logger.info("vidshare ready (media host: %s)", type(media_host).__name__)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(exc.to_body(), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        {"message": "Invalid request", "errors": jsonable_encoder(exc.errors())},
        status_code=400,
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(InternalError().to_body(), status_code=500)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(InternalError().to_body(), status_code=500)


@app.middleware("http")
async def mutation_log_middleware(request: Request, call_next):
    response = await call_next(request)
    method = request.method.upper()
    if method in {"POST", "PUT", "DELETE"}:
        logger.debug("%s %s -> %s", method, request.url.path, response.status_code)
    return response


@app.get("/")
def root():
    return {
        "ok": True,
        "service": "vidshare-api",
        "time_utc": datetime.now(timezone.utc).isoformat(),
        "docs": "/docs",
    }


@app.get("/healthz")
def healthz():
    return {"ok": True}


app.include_router(users.router)
app.include_router(videos.router)

if not settings.s3_bucket and settings.media_base_url.startswith("/"):
    app.mount(
        settings.media_base_url,
        StaticFiles(directory=settings.media_dir, check_dir=False),
        name="media",
    )
