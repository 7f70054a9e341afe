"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tandem_goals.config import settings
from tandem_goals.database import database
from tandem_goals.logging_config import setup_logging
from tandem_goals.routers import goals, maintenance, partner_goals, tasks


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    # Startup
    setup_logging(log_level="DEBUG" if settings.debug else settings.log_level)
    await database.connect()
    await database.ensure_indexes()
    yield
    # Shutdown
    await database.disconnect()


app = FastAPI(
    title="Tandem Goals API",
    description="Goal progress and lifecycle engine for shared weekly planning",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(goals.router)
app.include_router(tasks.router)
app.include_router(maintenance.router)
app.include_router(partner_goals.router)


@app.get("/")
async def root():
    """Root endpoint - health check."""
    return {"status": "ok", "message": "Tandem Goals API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
