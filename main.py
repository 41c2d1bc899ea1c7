"""FastAPI app entry point for the tactics battle core."""

from fastapi import FastAPI

from api.battle import router as battle_router
from config import setup_logging
from engine.combat import create_default_battle

setup_logging()

app = FastAPI(
    title="Grid Tactics",
    description="Turn order, reachability, and combat resolution for a grid tactics battle",
    version="0.1.0",
)

# The app owns the one battle the presentation layer talks to
app.state.battle = create_default_battle()

app.include_router(battle_router, prefix="/battle", tags=["Battle"])


@app.get("/")
def root() -> dict:
    """Root endpoint returning server info."""
    return {"name": "Grid Tactics", "version": "0.1.0", "status": "running"}


@app.get("/health")
def health() -> dict:
    """Health check endpoint."""
    return {"healthy": True}
