"""FastAPI application entry point."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from api.routes import stats, table
from api.websocket import router as ws_router
from config import config
from enhc.errors import BlackjackError, IllegalAction, InsufficientFunds, InvalidState

logging.basicConfig(level=config.logging.level, format=config.logging.format)
logger = logging.getLogger(__name__)

# Initialize rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    enabled=config.rate_limit.enabled,
    default_limits=[f"{config.rate_limit.requests_per_minute}/minute"],
)

# HTTP status for each engine error
ERROR_STATUS: dict[type[BlackjackError], int] = {
    InvalidState: 409,
    IllegalAction: 400,
    InsufficientFunds: 402,
}


def _rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle rate limit exceeded errors."""
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )


def _blackjack_error_handler(request: Request, exc: BlackjackError) -> JSONResponse:
    """Translate a rejected table command into a client error."""
    status_code = next(
        (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)),
        400,
    )
    logger.debug("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


app = FastAPI(
    title="ENHC Blackjack",
    description="Multi-seat European no-hole-card blackjack table API",
    version="0.1.0",
)

# Add rate limiter to app state and exception handlers
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(BlackjackError, _blackjack_error_handler)

# CORS middleware with configurable origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors.allowed_origins,
    allow_credentials=config.cors.allow_credentials,
    allow_methods=config.cors.allow_methods,
    allow_headers=config.cors.allow_headers,
)


@app.get("/api/health")
@limiter.limit(f"{config.rate_limit.requests_per_minute}/minute")
async def health_check(request: Request) -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


# Include routers
app.include_router(table.router, prefix="/api/table", tags=["table"])
app.include_router(stats.router, prefix="/api/stats", tags=["stats"])
app.include_router(ws_router, prefix="/ws", tags=["websocket"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host=config.host, port=config.port, reload=config.debug)
