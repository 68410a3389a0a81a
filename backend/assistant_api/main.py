"""
FastAPI application entry point.

Settings (and with them the .env files) are loaded on import of
assistant_api.config.settings, before the app is built.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from assistant_api.config.settings import settings
from assistant_api.routers.assistant import router as assistant_router

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins,
    allow_credentials=settings.allow_credentials,
    allow_methods=settings.allow_methods,
    allow_headers=settings.allow_headers,
)

# Register routers
app.include_router(assistant_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health():
    """Basic health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "assistant_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
