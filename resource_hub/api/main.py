import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI

from resource_hub.adapters.sqlite.migrator import SQLiteMigrator
from resource_hub.api.deps import get_rules, get_settings
from resource_hub.api.routes import auth, resources

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Invalid rules fail the startup; a missing file means defaults
    rules = get_rules()
    logger.info(
        "Rules loaded (page_size=%d, categories=%d)",
        rules.browser.page_size,
        len(rules.taxonomy.categories),
    )

    Path(settings.db_path).parent.mkdir(parents=True, exist_ok=True)
    applied = SQLiteMigrator(settings.db_path).run_migrations()
    if applied:
        logger.info("Applied %d migration(s) to %s", len(applied), settings.db_path)

    yield


app = FastAPI(
    title="Resource Hub API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(resources.router, prefix="/api", tags=["Resources"])


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "api"}
