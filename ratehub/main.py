import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.database import close_pool, get_pool
from .routers import dashboard, pricing

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Snapshots posted in the request body need no database
    if settings.build_db_url():
        await get_pool()
    else:
        log.info("No database configured; stored pricing routes are unavailable")
    yield
    await close_pool()


app = FastAPI(
    title="RateHub Backend",
    version="1.0.0",
    lifespan=lifespan,
)

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

configured_origins = settings.cors_origins or []
if "*" in configured_origins:
    allowed_origins = ["*"]
else:
    allowed_origins = list(dict.fromkeys(configured_origins + DEFAULT_CORS_ORIGINS))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(pricing.router, prefix=settings.api_prefix, tags=["pricing"])
app.include_router(dashboard.router, prefix=settings.api_prefix, tags=["dashboard"])


@app.get("/health")
async def health():
    return {"status": "ok"}
