"""
OpenID Provider (authorization code flow).
Discovery, GET/POST /oauth2/authorize, POST /oauth2/token, in-memory single-use codes.
"""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from oidc_provider import config
from oidc_provider.authorize import router as authorize_router
from oidc_provider.clients import ClientRegistry, registry_from_env
from oidc_provider.code_store import CodeStore
from oidc_provider.dependencies import get_now
from oidc_provider.keys import build_signer, TokenSigner
from oidc_provider.metadata import HEALTH_ENDPOINT
from oidc_provider.token_endpoint import router as token_router
from oidc_provider.well_known import router as well_known_router

logger = logging.getLogger(__name__)


async def _sweep_loop(store: CodeStore, interval: float):
    while True:
        await asyncio.sleep(interval)
        try:
            removed = store.sweep_expired(get_now())
        except Exception:
            logger.exception("Error in authorization code sweep")
            continue
        if removed:
            logger.debug("Swept %d expired authorization codes", removed)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the expired-code sweep; expiry is also enforced on every lookup."""
    task = None
    interval = app.state.sweep_interval
    if interval > 0:
        task = asyncio.create_task(_sweep_loop(app.state.code_store, interval))
    try:
        yield
    finally:
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


def create_app(
    code_store: CodeStore | None = None,
    client_registry: ClientRegistry | None = None,
    signer: TokenSigner | None = None,
    request_timeout: float = config.REQUEST_TIMEOUT_SECONDS,
    sweep_interval: float = config.SWEEP_INTERVAL_SECONDS,
) -> FastAPI:
    """Build the app. Components default to the environment configuration."""
    app = FastAPI(title="OpenID Provider", version="0.1.0", lifespan=lifespan)
    # CodeStore defines __len__, so an empty store is falsy
    app.state.code_store = code_store if code_store is not None else CodeStore()
    app.state.sweep_interval = sweep_interval
    if client_registry is None:
        client_registry = registry_from_env(config.CLIENT_ID, config.REDIRECT_URIS, config.CLIENT_SECRET)
    app.state.client_registry = client_registry
    if signer is None:
        signer = build_signer(config.ID_TOKEN_SIGNING, config.SIGNING_KEY_PATH)
    app.state.signer = signer

    app.include_router(authorize_router, tags=["authorize"])
    app.include_router(token_router, tags=["token"])
    app.include_router(well_known_router, tags=["well-known"])

    @app.middleware("http")
    async def request_timeout_middleware(request: Request, call_next):
        # Sync endpoints run in the threadpool and cannot be cancelled: a request that
        # times out here still finishes in its worker, so a 504 from /oauth2/authorize
        # may leave an issued code in the store. The code is never delivered and expires
        # with CODE_TTL_SECONDS.
        try:
            return await asyncio.wait_for(call_next(request), timeout=request_timeout)
        except asyncio.TimeoutError:
            logger.warning("Request timed out after %ss: %s %s", request_timeout, request.method, request.url.path)
            return Response("request timeout", status_code=504, media_type="text/plain")

    @app.exception_handler(RequestValidationError)
    async def invalid_request_handler(request: Request, exc: RequestValidationError):
        logger.debug("Malformed request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            status_code=400,
            content={"detail": {"error": "invalid_request", "error_description": "invalid request"}},
        )

    @app.get(HEALTH_ENDPOINT)
    def health():
        """Health check endpoint."""
        return Response(status_code=200)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=config.LOG_LEVEL)
    uvicorn.run(
        "oidc_provider.main:app",
        host=config.HOST,
        port=config.PORT,
        log_level=config.LOG_LEVEL.lower(),
    )
