"""Entry point for the metadata mirror service."""

import time
import uuid

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from mirror import event_log
from mirror.config import MIRROR_HOST, MIRROR_PORT
from mirror.exceptions import (
    MirrorException,
    InvalidPathError,
    MissingRecordError,
    MirrorUnavailableError
)
from mirror.manager import build_manager
from mirror.routes.event_routes import router as event_router
from mirror.routes.inode_routes import router as inode_router
from mirror.schemas.inodes import IndexStatsResponse, StatusResponse
from mirror.service_locator import get_manager, set_manager

logger = setup_logging('mirror')

app = FastAPI(
    title="DBFS Metadata Mirror",
    description="Queryable mirror of a hierarchical namespace in a document store",
    version="1.0.0"
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
    )

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


@app.on_event("startup")
def startup_event():
    """
    Reset the mirror database, index the namespace and start event processing.
    """
    logger.info("Mirror service starting up...")

    manager = get_manager()
    if manager is None:
        manager = build_manager()
        set_manager(manager)

    manager.start()


@app.on_event("shutdown")
def shutdown_event():
    """
    Stop the event processor on application shutdown.
    """
    logger.info("Mirror service shutting down...")

    manager = get_manager()
    if manager:
        manager.stop()


@app.exception_handler(InvalidPathError)
async def invalid_path_handler(request: Request, exc: InvalidPathError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Invalid path error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "code": "INVALID_PATH"}
    )


@app.exception_handler(MissingRecordError)
async def inode_not_found_handler(request: Request, exc: MissingRecordError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Inode not found error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc), "code": "INODE_NOT_FOUND"}
    )


@app.exception_handler(MirrorUnavailableError)
async def mirror_unavailable_handler(request: Request, exc: MirrorUnavailableError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Mirror unavailable error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc), "code": "MIRROR_UNAVAILABLE"}
    )


@app.exception_handler(MirrorException)
async def mirror_exception_handler(request: Request, exc: MirrorException):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Mirror exception: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "code": "INTERNAL_ERROR"}
    )


app.include_router(inode_router)
app.include_router(event_router)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "DBFS Metadata Mirror API", "status": "running"}


@app.get("/health")
async def health_check():
    """
    Health check endpoint.
    Returns 200 if service is alive.
    """
    return {"status": "healthy", "service": "mirror"}


@app.get("/status", response_model=StatusResponse)
def mirror_status():
    """
    Event processor state and mirror counters.
    """
    manager = get_manager()
    if manager is None or not manager.started:
        raise MirrorUnavailableError("Mirror is not started")

    stats = manager.processor_stats
    audited = None
    if manager.event_pool is not None:
        audited = event_log.count_events(manager.event_pool)
    index = None
    if manager.index_stats is not None:
        index = IndexStatsResponse(
            directories=manager.index_stats.directories,
            files=manager.index_stats.files,
            symlinks=manager.index_stats.symlinks,
            total_bytes=manager.index_stats.total_bytes,
            elapsed_ms=manager.index_stats.elapsed_ms
        )

    return StatusResponse(
        running=manager.status(),
        root=manager.root,
        records=manager.store.count(),
        batches=stats.batches,
        events=stats.events,
        events_by_kind=dict(stats.by_kind),
        last_transaction_id=stats.last_transaction_id,
        audited_events=audited,
        index=index
    )


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "mirror.main:app",
        host=MIRROR_HOST,
        port=MIRROR_PORT
    )


if __name__ == "__main__":
    main()
