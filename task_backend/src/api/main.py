import logging
from typing import Any, Dict, Sequence, Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import AppError, InternalError, ValidationError
from .logging_config import configure_logging
from .routers import auth as auth_router
from .routers import profile as profile_router
from .routers import tasks as tasks_router
from .settings import Settings, get_settings

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "auth", "description": "Registration, login and logout. Sessions travel in the `token` cookie."},
    {"name": "profile", "description": "The logged-in user's own profile."},
    {
        "name": "tasks",
        "description": "CRUD operations on the logged-in user's tasks with text search and status filtering.",
    },
]

# Missing DATABASE_URL or JWT_SECRET stops the process here.
_settings = get_settings()
configure_logging(_settings.log_level)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Task Backend",
    description="Multi-user task management API with cookie-carried session tokens.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)


# PUBLIC_INTERFACE
def cors_options(settings: Settings) -> Dict[str, Any]:
    """
    CORS middleware options for the configured origins.

    Credentialed (cookie-carrying) cross-origin requests are only allowed for an
    explicit origin list; a wildcard never gets credentials.
    """
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    return {
        "allow_origins": ["*"] if allow_all else settings.cors_allow_origins,
        "allow_credentials": not allow_all,
        "allow_methods": ["*"],
        "allow_headers": ["*"],
    }


# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
app.add_middleware(CORSMiddleware, **cors_options(_settings))


def _field_path(loc: Sequence[Union[str, int]]) -> str:
    # Malformed JSON is reported at a character offset: ('body', 17).
    if len(loc) == 2 and isinstance(loc[1], int):
        return str(loc[0])
    # Drop the leading 'body' / 'query' / 'path' marker.
    parts = [str(p) for p in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
    return ".".join(parts)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """
    Turn an error kind raised by a handler or dependency into its response.

    Response format:
        {
            "error": "<kind>",
            "message": "<human readable>",
            "errors": [...]   # validation failures only
        }
    """
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a 400 ValidationError body listing each offending field.
    """
    error = ValidationError(
        errors=[
            {"field": _field_path(e.get("loc", ())), "message": e.get("msg", ""), "type": e.get("type", "")}
            for e in exc.errors()
        ]
    )
    return await app_error_handler(request, error)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content=error.to_body())


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy", "backend": _settings.backend}


# Include routers
app.include_router(auth_router.router)
app.include_router(profile_router.router)
app.include_router(tasks_router.router)
