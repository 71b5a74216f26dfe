"""
FastAPI app entrypoint.

Facility reservations backed by per-facility-per-day slot rows (capacity concurrency control).
"""
import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from stableslot.api.routes import facilities, facility_reservations  # noqa: E402
from stableslot.config import settings  # noqa: E402

logger = logging.getLogger(__name__)

app = FastAPI(title="Stable facility booking", version="0.1.0")

# CORS: dev origins + optional CORS_ORIGINS env (comma-separated) for production frontend
_cors_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
if settings.cors_origins:
    _cors_origins.extend(o.strip() for o in settings.cors_origins.split(",") if o.strip())
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(facility_reservations.router, prefix="/facility-reservations", tags=["facility-reservations"])
app.include_router(facilities.router, prefix="/facilities", tags=["facilities"])


@app.get("/", include_in_schema=False)
def root():
    """Root: point to API docs and health."""
    return {"message": "Stable facility booking API", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
