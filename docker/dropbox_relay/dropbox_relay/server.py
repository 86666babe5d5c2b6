"""FastAPI application for the Dropbox token relay."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse, Response

from . import __version__
from .config import RelayConfig
from .cors import CORSPolicyMiddleware
from .payloads import (
    InvalidRequestBody,
    authorization_code_params,
    read_string_field,
    refresh_token_params,
)
from .upstream import UpstreamClient, UpstreamUnavailableError
from .utils.logger import logger

router = APIRouter()


def error_response(message: str, status_code: int) -> JSONResponse:
    """Build the relay's JSON error body."""
    return JSONResponse(status_code=status_code, content={"error": message})


async def relay_to_upstream(request: Request, params: dict[str, str]) -> Response:
    """Forward params to the token endpoint and pass its answer straight back."""
    upstream: UpstreamClient = request.app.state.upstream

    try:
        result = await upstream.post_form(params)
    except UpstreamUnavailableError as e:
        logger.error("Token exchange request failed: %s", e)
        return error_response("failed to contact dropbox", 502)

    if result.status_code >= 400:
        logger.warning(
            "Dropbox rejected %s request: status=%d",
            params["grant_type"],
            result.status_code,
        )

    return Response(
        content=result.body,
        status_code=result.status_code,
        media_type="application/json",
    )


@router.post("/api/dropbox/exchange")
async def exchange_authorization_code(request: Request) -> Response:
    """Exchange an authorization code for tokens using the server-held secret."""
    logger.info(
        "Authorization code exchange request received from %s",
        request.client.host if request.client else "unknown",
    )

    try:
        code = read_string_field(await request.body(), "code")
    except InvalidRequestBody as e:
        logger.warning("Rejected authorization code exchange: %s", e)
        return error_response("invalid request body", 400)

    config: RelayConfig = request.app.state.config
    return await relay_to_upstream(request, authorization_code_params(config, code))


@router.post("/api/dropbox/refresh")
async def refresh_access_token(request: Request) -> Response:
    """Exchange a refresh token for a new access token."""
    logger.info(
        "Refresh token request received from %s",
        request.client.host if request.client else "unknown",
    )

    try:
        refresh_token = read_string_field(await request.body(), "refresh_token")
    except InvalidRequestBody as e:
        logger.warning("Rejected refresh token request: %s", e)
        return error_response("invalid request body", 400)

    config: RelayConfig = request.app.state.config
    return await relay_to_upstream(request, refresh_token_params(config, refresh_token))


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "dropbox-relay", "version": __version__}


def create_app(config: RelayConfig, upstream: UpstreamClient | None = None) -> FastAPI:
    """
    Build the relay application.

    Args:
        config: Client credentials, shared read-only by all requests.
        upstream: Token endpoint client. A default client is created when omitted.

    Returns:
        FastAPI app with the relay routes behind the CORS policy
    """
    upstream_client = upstream or UpstreamClient()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Close the shared upstream client on shutdown."""
        logger.info(
            "Application startup - relaying token requests to %s",
            upstream_client.token_url,
        )

        yield

        logger.info("Application shutdown requested...")
        await upstream_client.aclose()
        logger.info("Application shutdown completed")

    app = FastAPI(
        title="Dropbox Token Relay",
        description="Exchanges Dropbox OAuth codes and refresh tokens without exposing the client secret",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.upstream = upstream_client

    app.add_middleware(CORSPolicyMiddleware)
    app.include_router(router)
    return app
