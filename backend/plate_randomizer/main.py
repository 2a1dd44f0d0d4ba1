"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from plate_randomizer import __version__
from plate_randomizer.config import settings
from plate_randomizer.routers import file, quality, randomize

logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)

app = FastAPI(
    title=settings.app_name,
    description="Covariate-balanced sample randomization across microplates",
    version=__version__
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(file.router, prefix="/api/file", tags=["file"])
app.include_router(randomize.router, prefix="/api/randomize", tags=["randomize"])
app.include_router(quality.router, prefix="/api/quality", tags=["quality"])


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "app": settings.app_name}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
