"""Draw result routes — /api/v1/draws (public)."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request

from luckylottery.api.deps import get_services
from luckylottery.core.constants import PRIZE_DESCRIPTIONS, PRIZE_TABLE
from luckylottery.services.draw_engine import DrawEngine

router = APIRouter(prefix="/api/v1/draws", tags=["draws"])


def _get_draw_engine(request: Request) -> DrawEngine:
    return get_services(request).draws


@router.get("")
def list_draws(request: Request, limit: int = Query(default=10, ge=1, le=100)) -> dict[str, Any]:
    """Recent draw results, most recent first."""
    return {"items": _get_draw_engine(request).list_results(limit=limit)}


@router.get("/latest")
def latest_draw(request: Request) -> dict[str, Any]:
    result = _get_draw_engine(request).latest_result()
    if result is None:
        raise HTTPException(status_code=404, detail="No draw has been run yet")
    return result


@router.get("/winners")
def recent_winners(
    request: Request,
    draw_id: str | None = Query(default=None),
    limit: int = Query(default=20, ge=1, le=100),
) -> dict[str, Any]:
    """Winners of one draw, or the most recent winners across draws."""
    engine = _get_draw_engine(request)
    if draw_id:
        return {"items": engine.winners_for_draw(draw_id)}
    return {"items": engine.recent_winners(limit=limit)}


@router.get("/prizes")
def prize_table() -> dict[str, Any]:
    """Payout per number of matched numbers."""
    return {
        "items": [
            {"match_count": matched, "prize": prize, "description": PRIZE_DESCRIPTIONS[matched]}
            for matched, prize in sorted(PRIZE_TABLE.items(), reverse=True)
        ]
    }
