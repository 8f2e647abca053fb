"""FastAPI application serving quotes from the routing engine.

The app starts unconfigured and answers 503 until an engine is installed
with `endpoints.install_quoter`.
"""

import os

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from dexrouter import __version__
from dexrouter.api.endpoints import quoter_configured, router
from dexrouter.chain.errors import ChainError
from dexrouter.errors import RouterError
from dexrouter.logging import configure_logging

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("DEXROUTER_HOST", "0.0.0.0")
PORT = int(os.environ.get("DEXROUTER_PORT", "8000"))
DEBUG = os.environ.get("DEXROUTER_DEBUG", "false").lower() in ("true", "1", "yes")
LOG_LEVEL = os.environ.get("DEXROUTER_LOG_LEVEL", "DEBUG" if DEBUG else "INFO")
LOG_JSON = os.environ.get("DEXROUTER_LOG_JSON", "false").lower() in ("true", "1", "yes")

app = FastAPI(
    title="dexrouter",
    description="Quotes and routes across constant-product, concentrated, weighted and "
    "tick-indexed venues",
    version=__version__,
)


@app.exception_handler(RouterError)
async def router_error_handler(request: Request, exc: RouterError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"reason": exc.reason, "detail": exc.detail})


@app.exception_handler(ChainError)
async def chain_error_handler(request: Request, exc: ChainError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"reason": exc.reason, "detail": str(exc)})


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "configured": quoter_configured()}


def run() -> None:
    """Run the quote API server.

    Configuration via environment variables:
    - DEXROUTER_HOST: Host to bind to (default: 0.0.0.0)
    - DEXROUTER_PORT: Port to bind to (default: 8000)
    - DEXROUTER_DEBUG: Enable debug/reload mode (default: false)
    - DEXROUTER_LOG_LEVEL: Minimum log level (default: INFO, DEBUG in debug mode)
    - DEXROUTER_LOG_JSON: Emit JSON log lines (default: false)
    """
    configure_logging(LOG_LEVEL, json_output=LOG_JSON)
    uvicorn.run(
        "dexrouter.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
