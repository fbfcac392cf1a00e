from dotenv import load_dotenv
load_dotenv()

from datetime import datetime, timezone
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.config import MODE_BATCH, MODE_MANAGED_WALLET, Settings, load_settings
from api.errors import RelayError
from api.log import configure_logging, get_logger
from api.privy import PrivyClient
from api.solana_rpc import SolanaRpcClient
from api.transfer import RelayDependencies, batch_router, managed_wallet_router, router

logger = get_logger("relay.app")


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = first.get("msg", "invalid value")
    return f"Invalid request body: {loc}: {msg}" if loc else f"Invalid request body: {msg}"


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the relay app around an immutable ``Settings``.

    ``transport`` is handed to every outbound httpx client, which lets tests
    serve Privy and Solana RPC from an ``httpx.MockTransport``.
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Sanafi Gasless Relay")
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.state.deps = RelayDependencies(
        settings=settings,
        privy=PrivyClient(settings, transport=transport),
        solana=SolanaRpcClient(settings, transport=transport),
    )

    app.include_router(router, prefix="/api")
    if settings.gasless_mode == MODE_BATCH:
        app.include_router(batch_router, prefix="/api")
    else:
        app.include_router(managed_wallet_router, prefix="/api")

    # ==== errors → JSON ====
    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        logger.error("%s %s failed (%s): %s", request.method, request.url.path, type(exc).__name__, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        message = _describe_validation_error(exc)
        logger.warning("%s %s rejected: %s", request.method, request.url.path, message)
        return JSONResponse(status_code=400, content={"error": message})

    # Only programming errors reach this: every outbound step raises a RelayError.
    # Starlette re-raises after responding, so the server logs the traceback.
    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.error("%s %s crashed: %r", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": str(exc) or "Failed to process transaction"})

    # ==== routes ====
    @app.get("/health")
    async def health():
        body = {
            "status": "healthy",
            "gasSponsorship": settings.sponsorship_label,
            "privyConfigured": settings.privy_configured,
        }
        if settings.gasless_mode == MODE_MANAGED_WALLET:
            body["feePayerConfigured"] = settings.fee_payer_configured
        body["network"] = settings.network
        body["timestamp"] = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
        return body

    return app


app = create_app()
