"""Main FastAPI application."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .api.rest.routes import router as scouting_router

load_dotenv()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Scoutmaster API starting (GRID key configured: %s)", bool(os.environ.get("GRID_API_KEY")))
    yield


app = FastAPI(
    title="Scoutmaster API",
    description="Opponent scouting reports and How to Win plans for LoL and VALORANT",
    version=__version__,
    lifespan=lifespan,
)

# CORS configuration for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",  # Vite dev server
        "http://localhost:3000",
        "*",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    api_key_configured: bool


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Routes put {"error": {...}} in detail; return it as the body itself.
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        content = exc.detail
    else:
        content = {
            "error": {
                "code": "HTTP_ERROR",
                "message": str(exc.detail),
                "details": {},
            }
        }
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "code": "INVALID_REQUEST",
                "message": "Request validation failed",
                "details": {"errors": errors},
            }
        },
    )


@app.get("/", tags=["meta"])
async def root():
    """API root with information and available endpoints."""
    return {
        "name": "Scoutmaster API",
        "version": __version__,
        "docs": "/docs",
        "endpoints": {
            "health": "GET /api/health",
            "search": "GET /api/teams/search?q=",
            "scout": "POST /api/scout",
            "scout_by_id": "GET /api/scout/{team_id}",
            "pdf": "GET /api/scout/name/{team_name}/pdf",
        },
    }


@app.get("/api/health", response_model=HealthResponse, tags=["meta"])
async def health_check():
    """Check API health and configuration status."""
    api_key = os.environ.get("GRID_API_KEY")
    return HealthResponse(
        status="healthy",
        version=__version__,
        api_key_configured=bool(api_key),
    )


app.include_router(scouting_router)
