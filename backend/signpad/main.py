import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from signpad.config import settings
from signpad.database import bootstrap_storage
from signpad.errors import ConfigurationError, PersistenceError
from signpad.logging_config import configure_logging
from signpad.routers import admin, submissions

logger = logging.getLogger("signpad")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings)
    # Requests bootstrap again on their own, so a failure here is only reported.
    try:
        bootstrap_storage(settings)
        logger.info("Storage ready: db=%s uploads=%s", settings.db_path, settings.upload_path)
    except ConfigurationError as exc:
        logger.error("Startup storage bootstrap failed: %s (%s)", exc.message, exc.detail)
    yield


app = FastAPI(
    title="Signature Pad Form",
    description="Receives signed agreement forms with drawn or typed signatures",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    return JSONResponse(status_code=503, content={"detail": "Database unavailable"})


app.include_router(submissions.router, prefix=settings.api_prefix)
app.include_router(admin.router, prefix=settings.api_prefix)


@app.get("/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}
