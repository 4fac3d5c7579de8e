from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .api.api import router as api_router
from .core.config import settings
from .core.errors import register_exception_handlers
from .core.logging_setup import setup_logging
from .db.session import create_db_and_tables

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(level=settings.LOG_LEVEL.upper(), log_file=settings.LOG_FILE, sql_echo=settings.SQL_ECHO)
    # Create tables on startup
    create_db_and_tables()
    logger.info("%s started", settings.PROJECT_NAME)
    yield

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Users and tasks with a mirrored list of pending tasks per user",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware for the configured frontend origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Errors are rendered as {"message": ..., "data": []}
register_exception_handlers(app)

# Include API routers
app.include_router(api_router, prefix=settings.API_PREFIX)

@app.get("/")
def read_root():
    return {"message": settings.PROJECT_NAME}

@app.get("/health")
def health_check():
    return {"status": "healthy"}
