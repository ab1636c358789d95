import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.cache import cache
from app.config import settings
from app.database import create_tables
from app.errors import ServiceError, service_error_handler, unhandled_error_handler
from app.middleware import RequestContextMiddleware, RequestIdFilter
from app.routers import articles, auth, comments, profiles, users

VERSION = "1.0.0"


def configure_logging() -> None:
    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s")
    )
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(settings.LOG_LEVEL.upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging()
    if settings.CREATE_TABLES_ON_STARTUP:
        await create_tables()
    await cache.connect()  # App works without Redis
    yield
    # Shutdown
    await cache.disconnect()

app = FastAPI(
    title="Blog API",
    description="Articles, comments, profiles and bearer-token authentication",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Error mapping
app.add_exception_handler(ServiceError, service_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

# Routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(profiles.router)
app.include_router(articles.router)
app.include_router(comments.router)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": VERSION}
