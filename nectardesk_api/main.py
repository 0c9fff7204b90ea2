"""
NectarDesk API application
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
import logging

from .core.config import settings
from .core.database import check_connection, init_db
from .core.exceptions import BaseAPIException
from .api import auth, organizations, users, agents, transcripts, call_types, master_admin
from .jobs.agent_metrics_job import AgentMetricsJob, JOB_NAME
from .middleware import AuthMiddleware
from .services.scheduler_service import JobScheduler

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format=settings.log_format,
    force=True
)
logger = logging.getLogger(__name__)

ROUTERS = (auth, organizations, users, agents, transcripts, call_types, master_admin)


def error_body(error: str, message: str, details=None) -> dict:
    return {"error": error, "message": message, "details": details or {}}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    if not check_connection():
        raise RuntimeError("Database connection failed")

    # Migrations own the schema outside debug mode
    if settings.debug:
        init_db()

    scheduler = JobScheduler()
    if settings.scheduler_enabled:
        scheduler.schedule_job(JOB_NAME, settings.agent_metrics_cron, AgentMetricsJob())
        scheduler.start()
    else:
        logger.info("Scheduler disabled; agent metrics job not registered")
    app.state.scheduler = scheduler

    try:
        yield
    finally:
        await scheduler.stop()
        logger.info("Application stopped")


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(BaseAPIException)
    async def api_exception_handler(request: Request, exc: BaseAPIException):
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.error_code, exc.message, exc.details))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Body and query validation failures are reported as 400, not FastAPI's 422"""
        errors = [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=error_body("VALIDATION_ERROR", "Invalid request data", {"errors": errors})
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unexpected error on {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content=error_body("INTERNAL_SERVER_ERROR", "An unexpected error occurred")
        )


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
        debug=settings.debug
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(AuthMiddleware)

    register_exception_handlers(application)

    @application.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "version": settings.app_version,
            "environment": "debug" if settings.debug else "production"
        }

    @application.get(f"{settings.api_prefix}/version")
    async def api_version():
        return {"api_version": "v1", "app_version": settings.app_version, "app_name": settings.app_name}

    for module in ROUTERS:
        application.include_router(module.router, prefix=settings.api_prefix)

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("nectardesk_api.main:app", host=settings.api_host, port=settings.api_port, reload=settings.debug)
