from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
import logging

from dependencies import get_active_store, get_insights
from insights import InsightBoard, InsightState
from models import KPICategory, Tier
from rewards import RewardLookupError, resolve_reward
from schemas import Store
from scoring import evaluate_store
from utils import format_amount, time_ago

logger = logging.getLogger(__name__)

router = APIRouter()

# --- Pydantic Models ---
class KPICard(BaseModel):
    id: str
    name: str
    description: str
    category: KPICategory
    target: float
    actual: float
    unit: str
    completion_percent: int

class Scorecard(BaseModel):
    store_id: str
    code: str
    fantasia: str
    razao_social: str
    manager: str
    last_update: datetime
    last_update_formatted: str
    performance: int
    tier: Tier
    tier_color: str
    reward_amount: float
    # Only shown when the tier pays something
    reward_formatted: Optional[str] = None
    kpis: List[KPICard]

class InsightResponse(BaseModel):
    store_id: str
    state: InsightState
    text: Optional[str] = None


@router.get("/dashboard", response_model=Scorecard, tags=["Dashboard"])
def get_dashboard(store: Store = Depends(get_active_store)):
    evaluation = evaluate_store(store)
    try:
        reward = resolve_reward(store, evaluation.tier)
    except RewardLookupError as e:
        logger.error("Cannot build scorecard: %s", e)
        raise HTTPException(status_code=500, detail="Store reward table is incomplete.")

    kpis = [
        KPICard(
            id=kpi.id, name=kpi.name, description=kpi.description, category=kpi.category,
            target=kpi.target, actual=kpi.actual, unit=kpi.unit,
            completion_percent=score.display_percent,
        )
        for kpi, score in zip(store.kpis, evaluation.kpis)
    ]
    return Scorecard(
        store_id=store.id,
        code=store.code,
        fantasia=store.fantasia,
        razao_social=store.razao_social,
        manager=store.manager,
        last_update=store.last_update,
        last_update_formatted=time_ago(store.last_update),
        performance=evaluation.performance,
        tier=evaluation.tier,
        tier_color=reward.color,
        reward_amount=reward.amount,
        reward_formatted=format_amount(reward.amount) if reward.amount > 0 else None,
        kpis=kpis,
    )


@router.get("/dashboard/insights", response_model=InsightResponse, tags=["Dashboard"])
async def get_dashboard_insights(
    wait: bool = False,
    store: Store = Depends(get_active_store),
    board: InsightBoard = Depends(get_insights),
):
    """
    Starts the insight request for the active store on first call.
    With `wait=true` the response is held until the request finishes.
    """
    board.activate(store)
    if wait:
        await board.wait()
    return InsightResponse(store_id=store.id, state=board.state, text=board.text)
