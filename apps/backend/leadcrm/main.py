import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from leadcrm import __version__
from leadcrm.config import configure_logging, settings
from leadcrm.contracts import InputValidationError, verify_bindings
from leadcrm.api.routes_health import router as health_router
from leadcrm.api.routes_leads import router as leads_router
from leadcrm.api.routes_applications import router as applications_router
from leadcrm.api.routes_conversations import router as conversations_router
from leadcrm.api.routes_dashboard import router as dashboard_router
from leadcrm.models import create_all
from leadcrm.models.db import SessionLocal
from leadcrm.seed import seed_demo_data

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Starting Leadership CRM API (env=%s)", settings.ENV)
    verify_bindings(app)
    # Auto-create tables if they don't exist
    try:
        create_all()
    except OperationalError as e:
        raise RuntimeError("Database connection failed. Check DATABASE_URL and credentials.") from e
    if settings.SEED_DEMO_DATA:
        with SessionLocal() as db:
            seed_demo_data(db)
    yield


def create_app(use_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="Leadership CRM API",
        version=__version__,
        description="Leads, program applications and the program advisor chat.",
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(leads_router)
    app.include_router(applications_router)
    app.include_router(conversations_router)
    app.include_router(dashboard_router)

    @app.exception_handler(InputValidationError)
    async def _invalid_input(request: Request, exc: InputValidationError):
        return JSONResponse(status_code=400, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(request: Request, exc: RequestValidationError):
        # Drop the "body"/"path"/"query" prefix from the error location
        errors = [{**e, "loc": tuple(e.get("loc", ()))[1:]} for e in exc.errors()]
        return JSONResponse(status_code=400, content=InputValidationError.from_errors(errors).to_body())

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s", request.method, request.url, exc_info=exc)
        return JSONResponse(status_code=500, content={"message": "Internal server error"})

    @app.get("/")
    def root():
        return {
            "name": "Leadership CRM API",
            "env": settings.ENV,
            "status": "running",
            "docs_url": "/docs",
        }

    return app


app = create_app()
