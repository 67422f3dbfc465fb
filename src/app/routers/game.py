"""Game control API — start, pause, restart, hit, level select, progress."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

router = APIRouter(prefix="/api/game", tags=["game"])


class JumpLevel(BaseModel):
    level: int = Field(ge=1)


class PlayAreaSize(BaseModel):
    width: float = Field(ge=0)
    height: float = Field(ge=0)


def _get_engine(request: Request):
    """Retrieve the SimulationEngine from app state."""
    engine = getattr(request.app.state, "simulation_engine", None)
    if engine is None:
        raise HTTPException(503, "Simulation engine not available")
    return engine


def _get_progress(request: Request):
    """Retrieve the BestLevelStore, applying any progress events still queued."""
    store = getattr(request.app.state, "progress", None)
    if store is None:
        raise HTTPException(503, "Progress store not available")
    sub = getattr(request.app.state, "progress_sub", None)
    if sub is not None:
        store.consume(sub)
    return store


def _state_with_best(request: Request, state: dict) -> dict:
    if getattr(request.app.state, "progress", None) is not None:
        state["best_level"] = _get_progress(request).best_level
    return state


@router.get("/state")
async def get_game_state(request: Request):
    """Current round state plus the best level reached."""
    engine = _get_engine(request)
    return _state_with_best(request, engine.get_game_state())


@router.get("/snapshot")
async def get_snapshot(request: Request):
    """Round state plus every live circle."""
    engine = _get_engine(request)
    return _state_with_best(request, engine.get_snapshot())


@router.post("/start")
async def start_game(request: Request):
    """Start the current level (from ready or after a completed level)."""
    engine = _get_engine(request)
    state = engine.game_mode.state
    if not engine.begin():
        raise HTTPException(400, f"Cannot start in state: {state}")
    return {"status": "started", "level": engine.game_mode.level}


@router.post("/pause")
async def toggle_pause(request: Request):
    """Pause a running round, or resume a paused one."""
    engine = _get_engine(request)
    state = engine.game_mode.state
    if not engine.toggle_pause():
        raise HTTPException(400, f"Cannot pause or resume in state: {state}")
    return {"status": engine.game_mode.state}


@router.post("/restart")
async def restart_level(request: Request):
    """Restart the current level without changing the level counter."""
    engine = _get_engine(request)
    state = engine.game_mode.state
    if not engine.restart_level():
        raise HTTPException(400, f"Cannot restart in state: {state}")
    return {"status": "restarted", "level": engine.game_mode.level}


@router.post("/restart-from-start")
async def restart_from_level_one(request: Request):
    """Start over at level 1."""
    engine = _get_engine(request)
    engine.restart_from_level_one()
    return {"status": "restarted", "level": 1}


@router.post("/level")
async def jump_to_level(body: JumpLevel, request: Request):
    """Debug override: jump straight to a level and start it."""
    engine = _get_engine(request)
    engine.jump_to_level(body.level)
    return {"status": "started", "level": body.level}


@router.post("/hit/{circle_id}")
async def hit_circle(circle_id: str, request: Request):
    """Player hit on a circle.  Unknown or already-destroyed ids are ignored."""
    engine = _get_engine(request)
    report = engine.hit(circle_id)
    if report is None:
        return {"status": "ignored", "circle_id": circle_id}
    return {
        "status": "destroyed" if report.destroyed else "damaged",
        "circle_id": circle_id,
        "kind": report.kind,
        "children": report.children,
        "score": engine.game_mode.score,
    }


@router.post("/hold")
async def hold(request: Request):
    """Pause while an overlay (help, settings) is open."""
    engine = _get_engine(request)
    return {"held": engine.hold(), "state": engine.game_mode.state}


@router.post("/release")
async def release(request: Request):
    """Close the overlay; resumes only if hold() paused the round."""
    engine = _get_engine(request)
    return {"resumed": engine.release(), "state": engine.game_mode.state}


@router.post("/resize")
async def resize(size: PlayAreaSize, request: Request):
    """Report the client's current play-area size."""
    engine = _get_engine(request)
    engine.resize(size.width, size.height)
    return {"width": size.width, "height": size.height}


@router.get("/progress")
async def get_progress(request: Request):
    """Best level reached so far."""
    return _get_progress(request).to_dict()


@router.delete("/progress")
async def reset_progress(request: Request):
    """Forget the best level and return to level 1 (ready)."""
    engine = _get_engine(request)
    engine.reset_progress()
    store = _get_progress(request)
    return {"status": "reset", "state": engine.game_mode.state, **store.to_dict()}
