import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request

from .api import events, stats, triggers
from .dependencies import get_database, get_pulse_scheduler, get_settings
from .logging_config import setup_logging

# Seconds the shutdown waits for an in-flight pipeline iteration
SHUTDOWN_GRACE_SECONDS = 10.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    settings = get_settings()
    setup_logging(settings)

    config_info = settings.config_file_info
    logging.info(f"Configuration loaded from: {config_info['active_config_file']}")
    logging.info(f"Running on hostname: {config_info['hostname']}")
    if len(config_info["all_available_configs"]) > 1:
        logging.info(
            f"Available config files: {', '.join(config_info['all_available_configs'])}"
        )

    logging.info("autopulse starting up...")
    logging.info(f"Targets: {', '.join(settings.targets) or 'none'}")
    logging.info(f"Webhooks: {', '.join(settings.webhooks) or 'none'}")
    logging.info(f"check_path={settings.check_path}, max_retries={settings.max_retries}")

    get_database()

    scheduler = get_pulse_scheduler()
    scheduler.start()
    logging.info("PulseScheduler started as background task")

    yield

    logging.info("autopulse shutting down...")
    await scheduler.stop(timeout=SHUTDOWN_GRACE_SECONDS)
    get_database().dispose()
    logging.info("Shutdown complete")


app = FastAPI(
    title="autopulse",
    description="Reconciles file scan events against disk and notifies media servers",
    version="0.1.0",
    lifespan=lifespan,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logging.info(
        f"Incoming request: {request.method} {request.url.path}",
        extra={
            "operation": "http_request",
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else "unknown",
        },
    )

    response = await call_next(request)

    logging.info(
        f"Response: {response.status_code}",
        extra={
            "operation": "http_response",
            "status_code": response.status_code,
            "path": request.url.path,
        },
    )

    return response


app.include_router(stats.router)
app.include_router(triggers.router)
app.include_router(events.router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "autopulse is running"}


@app.get("/health")
async def health():
    """Detailed health check."""
    scheduler = get_pulse_scheduler()
    return {
        "status": "healthy",
        "service": "autopulse",
        "scheduler_running": scheduler.is_running,
        "iterations": scheduler.iterations,
        "failed_iterations": scheduler.failed_iterations,
    }


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "autopulse.main:app",
        host=settings.hostname,
        port=settings.port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    run()
