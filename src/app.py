"""ShopCheckout FastAPI application.

Mounts the ordering and payments routers over a service container built from
the environment. Tests build their own container and pass it to
``create_app``.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError
from protean.exceptions import ValidationError as ProteanValidationError

from container import DOMAINS, Container, build_container
from ordering.api.routes import admin_router, order_router
from payments.api.routes import checkout_router, webhook_router
from shared.config import Settings
from shared.errors import CheckoutError
from shared.logging import add_context, clear_context, configure_logging

logger = structlog.get_logger(__name__)


def _error_body(message: str, errors: dict) -> dict:
    return {"success": False, "message": message, "errors": errors}


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as ``{"success": false, "message", "errors"}``."""

    @app.exception_handler(CheckoutError)
    async def checkout_error_handler(request: Request, exc: CheckoutError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("Checkout request failed", path=request.url.path, error=exc.message)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.messages))

    @app.exception_handler(ProteanValidationError)
    async def domain_validation_handler(request: Request, exc: ProteanValidationError) -> JSONResponse:
        messages = exc.messages if isinstance(exc.messages, dict) else {"_entity": [str(exc.messages)]}
        first = next((errors[0] for errors in messages.values() if errors), "Invalid request")
        return JSONResponse(status_code=400, content=_error_body(str(first), messages))

    @app.exception_handler(ObjectNotFoundError)
    async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content=_error_body("Not found", {"_entity": [str(exc)]}))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors: dict[str, list[str]] = {}
        for error in exc.errors():
            location = [str(part) for part in error.get("loc", ()) if part != "body"]
            errors.setdefault(".".join(location) or "_entity", []).append(error.get("msg", "Invalid value"))
        return JSONResponse(status_code=400, content=_error_body("Invalid request", errors))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error", path=request.url.path)
        return JSONResponse(
            status_code=500,
            content=_error_body("Internal server error", {"_entity": ["Internal server error"]}),
        )


def create_app(container: Container | None = None) -> FastAPI:
    container = container or build_container()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        container.close()

    app = FastAPI(
        lifespan=lifespan,
        title="ShopCheckout API",
        description="Checkout core: stock reservation, pricing, payment verification and order lifecycle",
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        """Bind a request id to every log line emitted while handling the request."""
        clear_context()
        add_context(request_id=request.headers.get("x-request-id") or uuid4().hex[:12])
        try:
            return await call_next(request)
        finally:
            clear_context()

    register_exception_handlers(app)

    # -----------------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------------
    app.include_router(checkout_router)
    app.include_router(order_router)
    app.include_router(admin_router)
    app.include_router(webhook_router)

    # -----------------------------------------------------------------------
    # Health
    # -----------------------------------------------------------------------
    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "environment": container.settings.env,
            "domains": {
                domain.name: {"provider": domain.config["databases"]["default"]["provider"]} for domain in DOMAINS
            },
            "gateway": type(container.gateway).__name__,
        }

    return app


settings = Settings.from_env()
configure_logging(settings)
app = create_app(build_container(settings))
