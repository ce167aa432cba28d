# varejo-elite/rewards.py
from pydantic import BaseModel

from models import Tier
from schemas import Store


class RewardLookupError(LookupError):
    """A store's reward or color table has no entry for a tier."""

    def __init__(self, store_id: str, tier: Tier, table: str):
        self.store_id = store_id
        self.tier = tier
        self.table = table
        super().__init__(f"Store {store_id} has no {table} entry for tier {tier.value}.")


class Reward(BaseModel):
    tier: Tier
    amount: float
    color: str


def resolve_reward(store: Store, tier: Tier) -> Reward:
    """Reads the reward amount and display color from the store's own tables."""
    if tier not in store.custom_rewards:
        raise RewardLookupError(store.id, tier, "custom_rewards")
    if tier not in store.tier_colors:
        raise RewardLookupError(store.id, tier, "tier_colors")
    return Reward(tier=tier, amount=store.custom_rewards[tier], color=store.tier_colors[tier])
