"""
SQL Genius — natural-language SQL assistant
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import health, schema, connect, query
from config import settings

# ── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger("sql_genius")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("SQL Genius starting up (AI provider: %s)…", settings.AI_PROVIDER)
    yield
    logger.info("SQL Genius shutting down.")


# ── App ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="SQL Genius",
    description="Schema-aware SQL generation, optimization and validation backed by a local or hosted LLM.",
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(health.router,  prefix="/api")
app.include_router(schema.router,  prefix="/api")
app.include_router(connect.router, prefix="/api")
app.include_router(query.router,   prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
