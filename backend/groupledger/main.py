"""
FastAPI entrypoint for the GroupLedger backend application.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from groupledger.core.config import settings
from groupledger.core.exceptions import LedgerError
from groupledger.core.logging_config import setup_logging
from groupledger.core.utils import format_error
from groupledger.api.router import api_router

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="GroupLedger API",
    description="Shared expense ledger, balances and settlements for groups",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    """Map ledger errors onto their HTTP status codes."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=format_error(exc.message, exc.to_dict()))


# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "GroupLedger API is running"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
