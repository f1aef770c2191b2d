"""
FastAPI application entry point.

Run:
- dev: uvicorn sonia.app.main:app --reload
- prod: uvicorn sonia.app.main:app
"""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import yaml
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from sonia import __version__
from sonia.app.providers import LLMProvider, create_provider
from sonia.app.routes import auth, chat, context, journal, voice, wellness
from sonia.app.services import (
    AuthService,
    ChatService,
    EmotionService,
    JournalService,
    ReportService,
)
from sonia.core.logging import configure_logging
from sonia.core.store import UserStore
from sonia.domain.constants import DEFAULT_HISTORY_WINDOW

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent

# =============================================================================
# Configuration
# =============================================================================


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load default.yaml (project root) and apply environment overrides."""
    if config_path is None:
        config_path = PROJECT_ROOT / "default.yaml"

    data: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    return apply_env_overrides(data)


def apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """
    Environment wins over the file:
    - SONIA_DATA_ROOT → paths.data_root
    - JWT_SECRET → auth.jwt_secret
    - SONIA_AI_PROVIDER → ai.provider

    Provider API keys (GOOGLE_API_KEY, ANTHROPIC_API_KEY) are read by the
    providers themselves.
    """
    overrides = {
        ("paths", "data_root"): os.environ.get("SONIA_DATA_ROOT"),
        ("auth", "jwt_secret"): os.environ.get("JWT_SECRET"),
        ("ai", "provider"): os.environ.get("SONIA_AI_PROVIDER"),
    }
    for (section, key), value in overrides.items():
        if value:
            config.setdefault(section, {})
            if config[section] is None:
                config[section] = {}
            config[section][key] = value
    return config


def init_state(
    app: FastAPI,
    config: dict[str, Any],
    provider: LLMProvider | None = None,
) -> None:
    """
    Build services and attach them to app.state.

    Args:
        config: loaded configuration
        provider: LLM provider (default: created from config["ai"])

    Raises:
        WellnessError: JWT_SECRET_MISSING
    """
    paths = config.get("paths", {}) or {}
    data_root = Path(paths.get("data_root", "data"))
    if not data_root.is_absolute():
        data_root = PROJECT_ROOT / data_root

    storage = config.get("storage", {}) or {}
    auth_config = config.get("auth", {}) or {}
    chat_config = config.get("chat", {}) or {}

    store = UserStore(data_root, lock_timeout=float(storage.get("lock_timeout", 10.0)))
    provider = provider or create_provider(config)
    emotion = EmotionService(
        provider,
        history_window=int(chat_config.get("history_window", DEFAULT_HISTORY_WINDOW)),
    )

    app.state.config = config
    app.state.store = store
    app.state.provider = provider
    app.state.auth = AuthService(
        store,
        secret=auth_config.get("jwt_secret") or "",
        algorithm=auth_config.get("jwt_algorithm", "HS256"),
        token_ttl_days=int(auth_config.get("token_ttl_days", 7)),
        bcrypt_rounds=int(auth_config.get("bcrypt_rounds", 10)),
    )
    app.state.emotion = emotion
    app.state.chat = ChatService(store, emotion)
    app.state.journal = JournalService(store, emotion)
    app.state.reports = ReportService(store, provider)
    logger.info(f"Data root: {data_root}")


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: load config, configure logging, build services.

    State that is already initialized (tests) is kept.
    """
    if not hasattr(app.state, "store"):
        config = load_config()
        configure_logging(config)
        init_state(app, config)

    yield


# =============================================================================
# App Instance
# =============================================================================


def create_app() -> FastAPI:
    app = FastAPI(
        title="Sonia",
        description="Emotional wellness journaling API",
        version=__version__,
        lifespan=lifespan,
    )

    server_config = (load_config().get("server", {}) or {})
    app.add_middleware(
        CORSMiddleware,
        allow_origins=server_config.get("cors_origins", ["http://localhost:5173"]),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Static files (built client)
    static_dir = Path(__file__).parent / "static"
    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

    app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
    app.include_router(chat.router, prefix="/api/chat", tags=["Chat"])
    app.include_router(journal.router, prefix="/api/journal", tags=["Journal"])
    app.include_router(context.router, prefix="/api/context", tags=["Context"])
    app.include_router(wellness.router, prefix="/api/wellness", tags=["Wellness"])
    app.include_router(voice.router, prefix="/api/voice", tags=["Voice"])

    @app.get("/")
    async def root() -> dict[str, Any]:
        return {
            "message": "Sonia wellness API",
            "endpoints": {
                "auth": "/api/auth",
                "chat": "/api/chat",
                "journal": "/api/journal",
                "context": "/api/context",
                "wellness": "/api/wellness",
                "voice": "/api/voice",
            },
        }

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "sonia.app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
