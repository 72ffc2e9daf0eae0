"""FastAPI application entry point."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from habit_lens.api import router as api_router
from habit_lens.core.analysis_session import AnalysisSessionRegistry
from habit_lens.core.errors import AuthRequired, HabitLensError, ValidationError
from habit_lens.core.logging import get_logger

logger = get_logger(__name__)

app = FastAPI(
    title="Habit Lens",
    description="Template-driven habit tracking with LLM analysis of logged data",
    version="0.1.0",
)

app.state.analysis_sessions = AnalysisSessionRegistry()


@app.exception_handler(HabitLensError)
async def habit_lens_error_handler(request: Request, exc: HabitLensError) -> JSONResponse:
    """Convert domain errors into user-facing JSON responses."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.code}): {exc.message}")

    content = {"error": exc.code, "detail": exc.message}
    if exc.persistent:
        content["persistent"] = True

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthRequired) else None
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies and parameters in the same shape as domain errors."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return await habit_lens_error_handler(request, ValidationError("; ".join(problems) or None))


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "ok"}, status_code=200)


# Include v1 API router
app.include_router(api_router, prefix="/v1", tags=["v1"])
