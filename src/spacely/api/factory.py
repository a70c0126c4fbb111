"""FastAPI application factory."""

from fastapi import FastAPI, Request, Response

from spacely.observability.correlation import CORRELATION_ID_HEADER, correlation_scope
from spacely.observability.logging import configure_logging

from .routers import public
from .routes import pricing


def create_app() -> FastAPI:
    """Create the pricing API app.

    Mounts the health check and the pricing routes, and wires the
    correlation ID middleware so every log line of a request shares one ID.
    """
    configure_logging()

    app = FastAPI(
        title="Spacely Pricing",
        docs_url=None,
        redoc_url=None,
    )

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        with correlation_scope(request.headers.get(CORRELATION_ID_HEADER)) as cid:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = cid
            return response

    app.include_router(public.router)
    app.include_router(pricing.router)

    return app
