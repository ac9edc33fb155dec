from typing import Dict

from fastapi import FastAPI

from app.api.auth.routes import router as auth_router
from app.api.playlists.routes import router as playlists_router
from app.core import configure_logging

configure_logging()

app = FastAPI(
    title="Spotify AI Playlists API",
    version="0.2.0",
    description="Backend API for AI-generated playlists and their transfer to Spotify.",
)


@app.get("/health", tags=["health"])
def health() -> Dict[str, str]:
    return {"status": "ok"}


# Spotify account routes
app.include_router(auth_router, prefix="/auth/spotify", tags=["auth"])

# Playlist routes
app.include_router(playlists_router, prefix="/playlists", tags=["playlists"])
