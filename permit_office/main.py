import asyncio
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Registers every table on Base.metadata
import permit_office.auth.models  # noqa: F401
import permit_office.core.models  # noqa: F401
from permit_office.api.applications.router import router as applications_router
from permit_office.api.auth.router import router as auth_router
from permit_office.api.dashboard.router import router as dashboard_router
from permit_office.api.invoices.router import router as invoices_router
from permit_office.api.parks.router import router as parks_router
from permit_office.api.permit_templates.router import router as permit_templates_router
from permit_office.api.permits.router import router as permits_router
from permit_office.api.public.router import router as public_router
from permit_office.api.system.router import router as system_router
from permit_office.api.users.router import router as users_router
from permit_office.core.admission import AdmissionQueue
from permit_office.core.config import settings
from permit_office.core.logging import configure_logging
from permit_office.db.session import AsyncSessionLocal
from permit_office.jobs.reaper import run_reaper

logger = logging.getLogger(__name__)


async def _warm_up(queue: AdmissionQueue, started_at: float) -> None:
    remaining = settings.warmup_seconds - (time.monotonic() - started_at)
    if remaining > 0:
        await asyncio.sleep(remaining)
    queue.mark_ready()


@asynccontextmanager
async def lifespan(app: FastAPI):
    started_at = time.monotonic()
    tasks = []

    if settings.admission_queue_enabled:
        queue = AdmissionQueue(
            capacity=settings.admission_queue_capacity,
            item_timeout=settings.admission_queue_timeout_seconds,
            tick_interval=settings.admission_queue_tick_seconds,
        )
        app.state.admission_queue = queue
        tasks.append(asyncio.create_task(queue.run(), name="admission-ticker"))
        tasks.append(asyncio.create_task(_warm_up(queue, started_at), name="admission-warmup"))

    if settings.reaper_enabled:
        tasks.append(
            asyncio.create_task(
                run_reaper(
                    AsyncSessionLocal,
                    settings.reaper_interval_seconds,
                    max_age_hours=settings.stale_application_hours,
                ),
                name="stale-application-reaper",
            )
        )

    logger.info("Permit office started (%d background task(s))", len(tasks))
    try:
        yield
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        app.state.admission_queue = None
        logger.info("Permit office stopped")


def create_app() -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(title="Park Permit Office", lifespan=lifespan)
    app.state.admission_queue = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def admission_gate(request: Request, call_next):
        queue = getattr(request.app.state, "admission_queue", None)
        if queue is None or queue.is_ready or queue.is_exempt(request.url.path):
            return await call_next(request)

        ticket = queue.enqueue()
        if ticket is None:
            retry_after = settings.admission_retry_after_seconds
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"message": "Server overloaded, please try again later", "retry_after": retry_after},
                headers={"Retry-After": str(retry_after)},
            )
        if not await queue.wait(ticket):
            return JSONResponse(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                content={"message": "Request timeout"},
            )
        return await call_next(request)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        if not request.url.path.startswith("/api"):
            return await call_next(request)
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s %d in %.0fms", request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    @app.exception_handler(Exception)
    async def unhandled_exception(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # Routers
    app.include_router(system_router)
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(parks_router)
    app.include_router(permits_router)
    app.include_router(permit_templates_router)
    app.include_router(applications_router)
    app.include_router(invoices_router)
    app.include_router(public_router)
    app.include_router(dashboard_router)

    return app


app = create_app()
