"""FastAPI application for LinkHub posts and social account connections."""

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from linkhub import __version__
from linkhub.api.routes.posts import router as posts_router
from linkhub.api.routes.social import router as social_router
from linkhub.config.settings import settings
from linkhub.services.platforms import default_registry

app = FastAPI(
    title="LinkHub API",
    description="Post scheduling, publishing and social account endpoints",
    version=__version__,
)

# CORS middleware — restrict to our own domain in production
_cors_origins = (
    [settings.OAUTH_REDIRECT_BASE_URL]
    if settings.OAUTH_REDIRECT_BASE_URL
    else ["http://localhost:8000"]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "X-User-Id"],
)

# Register routes
app.include_router(posts_router, prefix="/api/posts")
app.include_router(social_router, prefix="/api/social")


@app.get("/api/health")
async def health():
    """Liveness check plus the platforms this deployment can publish to."""
    return {
        "status": "ok",
        "version": __version__,
        "platforms": default_registry().platforms(),
    }


def run():
    """Serve the API with uvicorn (console script: linkhub-api)."""
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT, log_level=settings.LOG_LEVEL.lower())
