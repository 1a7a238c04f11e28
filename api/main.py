import logging
import sys
import time
from collections import defaultdict
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request

from api.shared.dtos import ErrorResponse, HealthCheckResponse, ReadinessResponse
from api.shared.exceptions import SupportChatException
from core.logging_config import configure_logging
from core.settings import SETTINGS
from di.container import ApplicationContainer as DependencyContainer

configure_logging(SETTINGS.APP.LOG_LEVEL, SETTINGS.APP.JSON_LOGS)

logger = structlog.get_logger("support_chat")

ERROR_STATUS_CODES = {
    "VALIDATION_ERROR": 400,
    "STORE_NOT_INITIALIZED": 503,
}


class CustomFastAPI(FastAPI):
    container: DependencyContainer


@asynccontextmanager
async def lifespan(_app: CustomFastAPI):
    logger.info("Starting application initialization...")
    start_time = time.time()

    try:
        logger.info("Initializing database connection...")
        db_start = time.time()
        db_resource = _app.container.infrastructure.database()
        await db_resource.init()
        await db_resource.prepare()
        logger.info(
            "Database connection established",
            elapsed=f"{time.time() - db_start:.2f}s",
            schema_ready=db_resource.schema_ready,
        )

        reply_generator = _app.container.services.reply_generator()
        if not reply_generator.api_key:
            logger.warning("OPENAI_API_KEY is not set; replies will explain that the LLM is not configured")
        logger.info(
            "Reply generator ready",
            model=reply_generator.model,
            fallback_model=reply_generator.fallback_model,
        )

        logger.info(
            "Application startup completed",
            elapsed=f"{time.time() - start_time:.2f}s",
        )
    except Exception as e:
        logger.exception("Failed to initialize application", error=str(e))
        raise

    yield

    try:
        db_resource = _app.container.infrastructure.database()
        if db_resource:
            await db_resource.shutdown()
        logger.info("Application shutdown complete")
    except Exception as e:
        logger.exception("Error during shutdown", error=str(e))


def create_fastapi_app() -> CustomFastAPI:
    _app = CustomFastAPI(
        title="Support Chat API",
        description="Support chat backend: conversation history and LLM replies",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Initialize dependency container
    _app.container = DependencyContainer()
    _app.container.wire(modules=[sys.modules[__name__]])
    _app.container.init_resources()

    logging.getLogger("uvicorn.error").disabled = False
    logging.getLogger("uvicorn.access").disabled = False

    _app.add_middleware(
        CORSMiddleware,
        allow_origins=SETTINGS.SERVER.cors_origins(),
        allow_origin_regex=SETTINGS.SERVER.cors_origin_regex(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from api.features.chat.router import router as chat_router

    _app.include_router(chat_router, prefix="/chat", tags=["Chat"])

    return _app


app = create_fastapi_app()


@app.get("/")
async def root():
    return {"message": "Support Chat API is running", "status": "ok"}


@app.get("/health", response_model=HealthCheckResponse)
async def health():
    return HealthCheckResponse(ok=True)


@app.get("/ready", response_model=ReadinessResponse)
async def ready(request: Request):
    db_resource = request.app.container.infrastructure.database()
    schema_ready = await db_resource.check_schema()
    body = ReadinessResponse(
        ok=schema_ready,
        database="ok" if schema_ready else "not_initialized",
        missing_tables=db_resource.missing_tables,
    )
    return JSONResponse(
        status_code=200 if schema_ready else 503,
        content=body.model_dump(by_alias=True),
    )


def _error_content(error, details=None) -> dict:
    return ErrorResponse(error=error, details=details).model_dump(
        by_alias=True, exclude_none=True
    )


def flatten_validation_errors(errors) -> dict:
    """Group pydantic errors into ``formErrors`` and per-field ``fieldErrors``."""
    field_errors = defaultdict(list)
    form_errors = []
    for err in errors:
        loc = [part for part in err.get("loc", ()) if part not in ("body", "query")]
        if loc:
            field_errors[str(loc[0])].append(err.get("msg", "Invalid value"))
        else:
            form_errors.append(err.get("msg", "Invalid request"))
    return {"formErrors": form_errors, "fieldErrors": dict(field_errors)}


# Exception handlers
@app.exception_handler(404)
async def not_found_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=404,
        content=_error_content(f"Not Found: {request.url.path}"),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content=_error_content(flatten_validation_errors(exc.errors())),
    )


@app.exception_handler(SupportChatException)
async def support_chat_exception_handler(request: Request, exc: SupportChatException):
    status_code = ERROR_STATUS_CODES.get(exc.error_code, 500)
    if status_code >= 500:
        logger.error(
            "Request failed",
            path=request.url.path,
            error_code=exc.error_code,
            error=exc.message,
        )
    details = None
    if status_code == 500 and SETTINGS.APP.ENVIRONMENT != "prod":
        details = exc.details
    return JSONResponse(status_code=status_code, content=_error_content(exc.message, details))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception", error=str(exc))
    details = None
    if SETTINGS.APP.ENVIRONMENT != "prod":
        details = {"message": str(exc), "name": type(exc).__name__}
    return JSONResponse(
        status_code=500,
        content=_error_content("Something went wrong. Please try again.", details),
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host="0.0.0.0", port=SETTINGS.SERVER.PORT)
