"""FastAPI application setup for SkyCast."""

from fastapi import FastAPI

from .api import router as api_router

app = FastAPI(title="SkyCast Weather")

# API routes
app.include_router(api_router, prefix="/api")
