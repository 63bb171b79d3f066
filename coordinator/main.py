"""Entry point for the coordinator service."""

import time
import uuid

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from common.logging_config import setup_logging
from coordinator import config
from coordinator.blob_sink_client import WebhookBlobSink
from coordinator.catalog import SQLiteCatalogStore
from coordinator.cleanup_task import OrphanedPartCleaner
from coordinator.exceptions import (
    PartVaultException,
    ValidationError,
    CapacityExceededError,
    NotFoundError,
    UpstreamFailureError,
    PartialFailureError,
    PartialContentMissingError,
    CatalogError,
)
from coordinator.orphan_log import OrphanLog
from coordinator.routes.file_routes import router as file_router
from coordinator.routes.merge_routes import router as merge_router
from coordinator.schemas.common import ErrorResponse
from coordinator.service_locator import (
    get_cleaner,
    get_file_service,
    has_file_service,
    set_cleaner,
    set_file_service,
)
from coordinator.services.file_service import FileService

logger = setup_logging('coordinator')

app = FastAPI(
    title="partvault coordinator",
    description="Stores files of any size as ordered parts in a size-limited blob sink",
    version="1.0.0"
)


def build_file_service() -> FileService:
    """
    Wire the file service from configuration.
    """
    catalog = SQLiteCatalogStore(config.DATABASE_PATH)
    catalog.initialize()
    logger.info("Database initialized")

    if not config.SINK_WEBHOOK_URL:
        logger.warning("PV_SINK_WEBHOOK_URL is not set; uploads will fail")

    sink = WebhookBlobSink(
        config.SINK_WEBHOOK_URL,
        timeout=config.SINK_TIMEOUT,
        max_retries=config.SINK_RETRIES,
    )

    return FileService(
        sink,
        catalog,
        orphan_log=OrphanLog(config.ORPHAN_LOG_PATH),
        max_part_size=config.MAX_PART_SIZE,
        max_parts=config.MAX_PARTS,
        concurrency=config.CONCURRENCY,
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


@app.on_event("startup")
async def startup_event():
    """
    Build the file service and start the orphan cleanup task.
    """
    logger.info("Coordinator service starting up...")
    logger.info(
        f"Part size limit {config.MAX_PART_SIZE} bytes, "
        f"aggregate cap {config.MAX_PART_SIZE * config.MAX_PARTS} bytes, "
        f"concurrency {config.CONCURRENCY}"
    )

    if not has_file_service():
        set_file_service(build_file_service())

    service = get_file_service()
    if service.orphan_log is not None:
        cleaner = OrphanedPartCleaner(service.sink, service.orphan_log)
        await cleaner.start()
        set_cleaner(cleaner)


@app.on_event("shutdown")
async def shutdown_event():
    """
    Cleanup resources on application shutdown.
    """
    logger.info("Coordinator service shutting down...")

    cleaner = get_cleaner()
    if cleaner:
        await cleaner.stop()
        set_cleaner(None)

    if has_file_service():
        await get_file_service().close()


def _request_id(request: Request) -> str:
    return getattr(request.state, 'request_id', 'unknown')


def _describe_request_errors(errors) -> str:
    """
    Collapse FastAPI's request validation errors into one message.

    A missing or non-file `file` field and a missing merge body map to the
    same messages the routes raise themselves.
    """
    for error in errors:
        loc = tuple(str(part) for part in error.get("loc", ()))
        if loc[:2] == ("body", "file"):
            return "File field is missing or invalid file selected."
        if error.get("type") == "json_invalid":
            return "Request body is not valid JSON."
        if loc == ("body",) or "fileId" in loc:
            return "File ID is required."

    return "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', 'invalid value')}"
        for error in errors
    ) or "Invalid request"


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    detail = _describe_request_errors(exc.errors())
    logger.warning(f"Invalid request: {detail} [request_id={_request_id(request)}] path={request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(detail=detail, code="VALIDATION_ERROR").model_dump()
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.warning(f"Validation error: {exc} [request_id={_request_id(request)}] path={request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(detail=str(exc), code="VALIDATION_ERROR").model_dump()
    )


@app.exception_handler(CapacityExceededError)
async def capacity_exceeded_handler(request: Request, exc: CapacityExceededError):
    logger.warning(f"Capacity exceeded: {exc} [request_id={_request_id(request)}] path={request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        content=ErrorResponse(detail=str(exc), code="CAPACITY_EXCEEDED").model_dump()
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    logger.warning(f"Not found: {exc} [request_id={_request_id(request)}] path={request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=ErrorResponse(detail=str(exc), code="NOT_FOUND").model_dump()
    )


@app.exception_handler(PartialFailureError)
async def partial_failure_handler(request: Request, exc: PartialFailureError):
    logger.error(
        f"Partial upload failure ({exc.stored_count} stored, {exc.failed_count} not stored): {exc} "
        f"[request_id={_request_id(request)}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=ErrorResponse(detail=str(exc), code="PARTIAL_FAILURE").model_dump()
    )


@app.exception_handler(UpstreamFailureError)
async def upstream_failure_handler(request: Request, exc: UpstreamFailureError):
    logger.error(f"Upstream failure: {exc} [request_id={_request_id(request)}] path={request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=ErrorResponse(detail=str(exc), code="UPSTREAM_FAILURE").model_dump()
    )


@app.exception_handler(PartialContentMissingError)
async def partial_content_missing_handler(request: Request, exc: PartialContentMissingError):
    logger.error(
        f"Parts missing {exc.missing_indices}: {exc} "
        f"[request_id={_request_id(request)}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=ErrorResponse(detail=str(exc), code="PARTIAL_CONTENT_MISSING").model_dump()
    )


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    logger.error(
        f"Catalog error: {exc} [request_id={_request_id(request)}] path={request.url.path}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(detail=str(exc), code="CATALOG_ERROR").model_dump()
    )


@app.exception_handler(PartVaultException)
async def partvault_exception_handler(request: Request, exc: PartVaultException):
    logger.error(
        f"Unhandled partvault exception: {exc} [request_id={_request_id(request)}] path={request.url.path}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(detail=str(exc), code="INTERNAL_ERROR").model_dump()
    )


app.include_router(file_router)
app.include_router(merge_router)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "partvault coordinator API", "status": "running"}


@app.get("/health")
async def health_check():
    """
    Health check endpoint for container healthchecks.
    """
    return {"status": "healthy", "service": "coordinator"}


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "coordinator.main:app",
        host=config.COORDINATOR_HOST,
        port=config.COORDINATOR_PORT,
    )


if __name__ == "__main__":
    main()
