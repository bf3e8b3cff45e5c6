"""FastAPI main application (V2)."""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from backend.app.api import generation as generation_api
from backend.app.config import DEFAULT_DB_PATH, DEV_ERROR_DETAIL, MODEL_CONFIG
from backend.app.core.error_handling import create_error_response, log_error_with_context
from backend.app.core.errors import GenerationError, classify_failure
from backend.app.core.llm_provider import LLMProviderError
from backend.app.core.model_adapter import close_clients
from backend.app.db.migrate import apply_schema

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _parse_cors_allowlist(raw: str) -> list[str]:
    origins = [o.strip() for o in raw.split(",") if o and o.strip()]
    if origins:
        return origins
    return [
        "http://localhost",
        "http://127.0.0.1",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]


CORS_ALLOW_ORIGINS = _parse_cors_allowlist(os.environ.get("ARCHIVIST_CORS_ALLOW_ORIGINS", ""))


def _node_for_path(path: str) -> str:
    for node in ("outline", "draft", "context", "suggest-metadata", "filters"):
        if path.rstrip("/").endswith(node):
            return node.replace("-", "_")
    return "api"


def _error_code(exc: Exception) -> str:
    """CamelCase exception name -> UPPER_SNAKE error code (ForbiddenTermLeak -> FORBIDDEN_TERM_LEAK)."""
    name = type(exc).__name__
    return "".join(f"_{c}" if c.isupper() and i else c for i, c in enumerate(name)).upper()


@asynccontextmanager
async def lifespan(app: FastAPI):
    applied = apply_schema(DEFAULT_DB_PATH)
    generation_provider = (MODEL_CONFIG.get("generation") or {}).get("provider", "")
    logger.info(
        "API startup complete (db=%s, migrations applied=%d, generation provider=%s)",
        DEFAULT_DB_PATH,
        len(applied),
        generation_provider or "none",
    )
    yield
    close_clients()


app = FastAPI(title="Archivist API", version="2.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError):
    """Guard/adapter failures: terminal for the request, mapped to a UI notice."""
    node = _node_for_path(request.url.path)
    logger.warning("[%s] %s: %s", node, type(exc).__name__, exc)
    details = {"path": request.url.path}
    terms = getattr(exc, "terms", None)
    if terms:
        details["terms"] = terms
    if exc.attempts:
        details["attempts"] = [{"kind": a.kind, "matches": a.matches} for a in exc.attempts]
    error_response = create_error_response(
        error_code=_error_code(exc),
        message=str(exc),
        node=node,
        notice=classify_failure(exc),
        details=details,
    )
    return JSONResponse(status_code=exc.status_code, content=error_response)


@app.exception_handler(LLMProviderError)
async def provider_error_handler(request: Request, exc: LLMProviderError):
    """Provider transport failures that survived the adapter's single retry."""
    node = _node_for_path(request.url.path)
    log_error_with_context(
        error=exc,
        node_name=node,
        stage=node,
        extra_context={"method": request.method, "path": request.url.path},
    )
    error_response = create_error_response(
        error_code="LLM_PROVIDER_ERROR",
        message=str(exc) if DEV_ERROR_DETAIL else "The text generator request failed.",
        node=node,
        notice=classify_failure(exc),
        details={"path": request.url.path},
    )
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=error_response)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTPExceptions with structured error responses."""
    node = _node_for_path(request.url.path)
    error_response = create_error_response(
        error_code=f"{node.upper()}_HTTP_{exc.status_code}",
        message=exc.detail,
        node=node,
        details={
            "status_code": exc.status_code,
            "path": request.url.path,
        },
    )
    return JSONResponse(status_code=exc.status_code, content=error_response)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler: return structured error responses with logging."""
    node = _node_for_path(request.url.path)

    # Log error with full context and stack trace
    log_error_with_context(
        error=exc,
        node_name=node,
        stage=node,
        extra_context={
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
        },
    )

    message = f"An error occurred: {type(exc).__name__}"
    if DEV_ERROR_DETAIL and str(exc):
        message = str(exc)

    error_response = create_error_response(
        error_code=f"{node.upper()}_ERROR",
        message=message,
        node=node,
        notice=classify_failure(exc),
        details={
            "exception_type": type(exc).__name__,
            "path": request.url.path,
        },
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=error_response)


app.include_router(generation_api.router)


@app.get("/")
async def root():
    return {"message": "Archivist API", "version": "2.0.0"}


@app.get("/health")
async def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
