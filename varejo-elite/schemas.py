"""
Store and KPI records as the rest of the service sees them.

`Store` and `KPI` are frozen values: once committed they are never edited in
place. Administrative edits go through a `StoreDraft`, which is merged back
into a new `Store` only by `StoreDraft.commit()`.
"""
import math
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

import config
from models import KPICategory, Tier, TIER_ORDER


def _new_id() -> str:
    return str(uuid.uuid4())


# --- Committed records ---
class KPI(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    name: str
    description: str = ""
    category: KPICategory = KPICategory.FINANCE
    target: float
    actual: float = 0
    unit: str = ""
    # Carried for forward compatibility, scoring does not apply it.
    weight: float = 1


class Store(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    code: str
    razao_social: str = ""
    fantasia: str = ""
    manager: str = ""
    last_update: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    kpis: Tuple[KPI, ...] = ()
    custom_rewards: Dict[Tier, float]
    tier_colors: Dict[Tier, str]

    def draft(self) -> "StoreDraft":
        return StoreDraft.model_validate(self.model_dump())


# --- Editing copy ---
class KPIDraft(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    description: str = ""
    category: KPICategory = KPICategory.FINANCE
    target: float
    actual: float = 0
    unit: str = ""
    weight: float = 1


class StoreDraft(BaseModel):
    """Mutable working copy of a store, used by the admin editor."""

    id: str
    code: str
    razao_social: str = ""
    fantasia: str = ""
    manager: str = ""
    last_update: Optional[datetime] = None
    kpis: List[KPIDraft] = Field(default_factory=list)
    custom_rewards: Dict[Tier, float] = Field(default_factory=dict)
    tier_colors: Dict[Tier, str] = Field(default_factory=dict)

    def update_kpi(self, kpi_id: str, **changes) -> KPIDraft:
        for index, kpi in enumerate(self.kpis):
            if kpi.id == kpi_id:
                updated = KPIDraft.model_validate({**kpi.model_dump(), **changes})
                self.kpis[index] = updated
                return updated
        raise KeyError(kpi_id)

    def add_kpi(self, **fields) -> KPIDraft:
        kpi = KPIDraft(**fields)
        self.kpis.append(kpi)
        return kpi

    def remove_kpi(self, kpi_id: str) -> None:
        remaining = [k for k in self.kpis if k.id != kpi_id]
        if len(remaining) == len(self.kpis):
            raise KeyError(kpi_id)
        self.kpis = remaining

    def commit(self, now: Optional[datetime] = None) -> Store:
        """Returns a new committed Store stamped with `now`."""
        data = self.model_dump()
        data["code"] = data["code"].strip()
        data["last_update"] = now or datetime.now(timezone.utc)
        return Store.model_validate(data)


def new_store(code: str, now: Optional[datetime] = None) -> Store:
    """A store seeded with the default KPI set and tier tables."""
    return Store(
        code=code,
        last_update=now or datetime.now(timezone.utc),
        kpis=tuple(KPI(**seed) for seed in config.DEFAULT_KPIS),
        custom_rewards=dict(config.DEFAULT_REWARDS),
        tier_colors=dict(config.DEFAULT_TIER_COLORS),
        **config.NEW_STORE_TEXTS,
    )


def _is_finite_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def check_store_integrity(store: Store, others: Sequence[Store] = ()) -> Tuple[bool, List[str]]:
    """
    Checks a store against the record invariants before it is persisted.
    `others` are the remaining stores of the directory, used for code uniqueness.
    """
    messages = []

    code = (store.code or "").strip()
    if not code:
        messages.append("Store code must not be empty.")
    elif code != store.code:
        messages.append(f"Store code '{store.code}' must not start or end with spaces.")
    elif any(other.code == store.code and other.id != store.id for other in others):
        messages.append(f"Store code '{store.code}' is already in use.")

    for tier in TIER_ORDER:
        if tier not in store.custom_rewards:
            messages.append(f"Reward table has no entry for tier {tier.value}.")
        elif not _is_finite_number(store.custom_rewards[tier]) or store.custom_rewards[tier] < 0:
            messages.append(f"Reward for tier {tier.value} must be a non-negative amount.")
        if tier not in store.tier_colors:
            messages.append(f"Color table has no entry for tier {tier.value}.")
        elif not store.tier_colors[tier]:
            messages.append(f"Color for tier {tier.value} must not be empty.")

    seen_ids = set()
    for kpi in store.kpis:
        if kpi.id in seen_ids:
            messages.append(f"KPI id '{kpi.id}' appears more than once.")
        seen_ids.add(kpi.id)
        for field in ("target", "actual", "weight"):
            if not _is_finite_number(getattr(kpi, field)):
                messages.append(f"KPI '{kpi.name}' has a non-numeric {field}.")
        if _is_finite_number(kpi.target) and _is_finite_number(kpi.actual) and kpi.target != 0:
            if abs(kpi.actual) / abs(kpi.target) > config.MAX_COMPLETION_RATIO:
                messages.append(f"KPI '{kpi.name}' actual is out of range for its target.")

    return (not messages), messages
