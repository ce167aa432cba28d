import logging
from typing import Optional

import httpx

import config
from schemas import Store
from scoring import evaluate_store

logger = logging.getLogger(__name__)


def build_insight_prompt(store: Store) -> str:
    evaluation = evaluate_store(store)
    lines = [
        f"You are a retail performance consultant. Store '{store.fantasia}' (code {store.code}, "
        f"manager {store.manager}) is at {evaluation.performance}% of its targets, "
        f"tier {evaluation.tier.value}.",
        "Current KPIs:",
    ]
    for kpi, score in zip(store.kpis, evaluation.kpis):
        lines.append(
            f"- {kpi.name} ({kpi.category.value}): actual {kpi.actual:g}{kpi.unit} "
            f"of target {kpi.target:g}{kpi.unit} ({score.display_percent}%)"
        )
    lines.append(
        "Write three short, practical recommendations for the store manager to reach the next tier."
    )
    return "\n".join(lines)


def _extract_text(body: dict) -> Optional[str]:
    candidates = body.get("candidates") or []
    if not candidates:
        return None
    parts = (candidates[0].get("content") or {}).get("parts") or []
    text = "".join(part.get("text", "") for part in parts).strip()
    return text or None


async def generate_insight(store: Store) -> Optional[str]:
    """Asks Gemini for a short narrative about the store. None when unavailable."""
    if not config.GEMINI_API_KEY:
        logger.info("GEMINI_API_KEY is not set. Skipping insights.")
        return None

    url = f"{config.GEMINI_API_BASE}/models/{config.GEMINI_MODEL}:generateContent"
    payload = {"contents": [{"parts": [{"text": build_insight_prompt(store)}]}]}
    try:
        async with httpx.AsyncClient(timeout=config.ADVISOR_TIMEOUT_SECONDS) as client:
            response = await client.post(url, params={"key": config.GEMINI_API_KEY}, json=payload)
            response.raise_for_status()
            text = _extract_text(response.json())
    except httpx.HTTPStatusError as e:
        logger.error(
            "Insight request for store %s failed | Status: %s | Response: %s",
            store.code, e.response.status_code, e.response.text,
        )
        return None
    except (httpx.HTTPError, ValueError, AttributeError, TypeError) as e:
        logger.error("Insight request for store %s failed: %s", store.code, e)
        return None

    if text is None:
        logger.warning("Insight response for store %s had no text.", store.code)
    return text
