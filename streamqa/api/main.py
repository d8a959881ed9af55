import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from streamqa.api.deps import get_settings
from streamqa.app_shell.config import configure_logging, validate_ops_rules
from streamqa.rules.loader import load_rules

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules and validate on startup (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
        validate_ops_rules(rules)
        logger.info("Rules loaded from %s (storage=%s)", settings.rules_path, settings.storage)
    except Exception as e:
        logger.critical("Rules load failed: %s", e)
        sys.exit(1)

    yield


app = FastAPI(
    title="StreamQA Credits API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from streamqa.api.routes import guest_payments, questions, sessions  # noqa: E402

app.include_router(guest_payments.router, prefix="/api/guest-payments", tags=["Guest Payments"])
app.include_router(sessions.router, prefix="/api/sessions", tags=["Sessions"])
app.include_router(questions.router, prefix="/api/questions", tags=["Questions"])


# CORS (Allow Frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "streamqa-credits"}
