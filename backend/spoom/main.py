import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from spoom.core.config import settings
from spoom.core.errors import ApiError
from spoom.core.logging_config import configure_logging
from spoom.routes.auth import router as auth_router
from spoom.routes.user_settings import router as user_settings_router
from spoom.routes.workspaces import router as workspaces_router

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Spoom API")
logger.info(
    "Startup config: ENV=%s identity_provider=%s auth_cookies=%s",
    settings.ENV,
    settings.IDENTITY_PROVIDER,
    settings.AUTH_COOKIES_ENABLED,
)

_ERROR_CODE_BY_STATUS: dict[int, str] = {
    400: "VALIDATION_ERROR",
    401: "INVALID_OR_EXPIRED_TOKEN",
    403: "UNAUTHORIZED",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "ACCOUNT_EXISTS",
    422: "VALIDATION_ERROR",
    429: "UNEXPECTED",
    500: "UNEXPECTED",
}


def _error_code(status_code: int) -> str:
    return _ERROR_CODE_BY_STATUS.get(int(status_code), "UNEXPECTED")


@app.exception_handler(ApiError)
def api_error_handler(request: Request, exc: ApiError):  # noqa: ARG001
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


# Routing 404/405 are raised as the Starlette base class.
@app.exception_handler(StarletteHTTPException)
def http_exception_handler(request: Request, exc: StarletteHTTPException):  # noqa: ARG001
    detail = exc.detail
    message: str
    details: dict | None = None

    if isinstance(detail, str):
        message = detail
    elif isinstance(detail, dict):
        msg = detail.get("message")
        message = msg if isinstance(msg, str) and msg else "Request failed"
        det = detail.get("details")
        details = det if isinstance(det, dict) else None
    else:
        message = str(detail) if detail is not None else "Request failed"

    payload: dict = {"success": False, "error": _error_code(exc.status_code), "message": message}
    if details:
        payload["details"] = details
    return JSONResponse(status_code=exc.status_code, content=payload, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError):  # noqa: ARG001
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": "VALIDATION_ERROR",
            "message": "Invalid request payload",
            "details": {"errors": errors},
        },
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(user_settings_router)
app.include_router(workspaces_router)


@app.get("/health")
def health_check():
    return {"status": "ok", "identityProvider": settings.IDENTITY_PROVIDER}
