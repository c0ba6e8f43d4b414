import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.core.database_init import init_database_schema
from app.core.db import get_engine
from app.core.logging import configure_logging
from app.core.middleware import RequestContextMiddleware
from app.core.storage import get_blob_store
from app.routers import files, get_api_router
from app.services.exceptions import ServiceError, ValidationError
from app.services.validation import error_details


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()

    logger = logging.getLogger("app.errors")

    app = FastAPI(title=settings.PROJECT_NAME)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(RequestContextMiddleware)

    @app.exception_handler(ServiceError)
    async def service_exception_handler(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.status_code, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        error = ValidationError(error_details(list(exc.errors())))
        logger.info("Validation error on %s %s detail=%s", request.method, request.url.path, error.details)
        return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=error.to_dict())

    app.include_router(get_api_router(), prefix=settings.API_PREFIX)
    app.include_router(files.router, prefix=settings.MEDIA_URL_PREFIX)

    @app.on_event("startup")
    def startup_event():
        if settings.AUTO_CREATE_SCHEMA:
            init_database_schema(get_engine())
        get_blob_store()

    return app


app = create_app()
