"""FastAPI application for the migration builder.

The service is stateless: callers supply pool data with each request and
send the returned transaction themselves.
"""

import os

import uvicorn
from fastapi import FastAPI

from migrator import __version__
from migrator.api.endpoints import router

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("MIGRATOR_HOST", "0.0.0.0")
PORT = int(os.environ.get("MIGRATOR_PORT", "8000"))
DEBUG = os.environ.get("MIGRATOR_DEBUG", "false").lower() in ("true", "1", "yes")

app = FastAPI(
    title="BPT Migrator",
    description="Builds batch relayer transactions migrating liquidity between pools",
    version=__version__,
)

app.include_router(router)


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


def run() -> None:
    """Run the API server.

    Configuration via environment variables:
    - MIGRATOR_HOST: Host to bind to (default: 0.0.0.0)
    - MIGRATOR_PORT: Port to bind to (default: 8000)
    - MIGRATOR_DEBUG: Enable debug/reload mode (default: false)
    """
    uvicorn.run(
        "migrator.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
