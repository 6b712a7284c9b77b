"""Zimship FastAPI application.

Web server for the booking flow, the operations console and the driver app.
Commands are processed synchronously inside the shipping domain context.

Usage:
    python src/app.py --port 8000
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload   # development
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → event_processing = "sync"  (projectors fire in UoW)
#   - "production" → event_processing = "async" (projectors fire via Engine)
import argparse
import os
from uuid import uuid4

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from shipping.domain import shipping  # noqa: E402
from shipping.utils.logging import add_context, clear_context

shipping.init()

_DOCS_PATHS = ("/docs", "/redoc", "/openapi.json", "/health")

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Zimship API",
    description="Drum shipping from the UK and Ireland to Zimbabwe — bookings, routes and tracking",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the shipping domain context and bind request context to log lines."""
    if request.url.path.startswith(_DOCS_PATHS):
        return await call_next(request)

    add_context(request_id=request.headers.get("X-Request-ID") or uuid4().hex, path=request.url.path)
    try:
        with shipping.domain_context():
            return await call_next(request)
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from shipping.api import (  # noqa: E402
    quote_router,
    register_error_handlers,
    route_router,
    schedule_router,
    shipment_router,
)

app.include_router(shipment_router)
app.include_router(route_router)
app.include_router(quote_router)
app.include_router(schedule_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": shipping.name})


def main():
    parser = argparse.ArgumentParser(description="Zimship API server")
    parser.add_argument("--host", default=os.environ.get("HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", "8000")))
    args = parser.parse_args()

    # uvicorn logs through the handlers the shipping domain configured
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()
