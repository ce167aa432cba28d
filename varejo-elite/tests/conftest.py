import pathlib
import sys
from datetime import datetime, timezone

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from database import init_db, make_engine, make_session_factory  # noqa: E402
from models import KPICategory, Tier  # noqa: E402
from repository import RepositoryError, StoreRepository  # noqa: E402
from schemas import KPI, Store  # noqa: E402

FIXED_NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

REWARDS = {Tier.NONE: 0, Tier.BRONZE: 500, Tier.SILVER: 1000, Tier.GOLD: 2500, Tier.ELITE: 5000}
COLORS = {Tier.NONE: "#94a3b8", Tier.BRONZE: "#cd7f32", Tier.SILVER: "#c0c0c0", Tier.GOLD: "#ffd700", Tier.ELITE: "#00ffff"}


def make_store(code="LOJA-1", kpis=None, **overrides) -> Store:
    if kpis is None:
        kpis = [(100000, 100000), (5, 5), (30, 30)]
    fields = dict(
        code=code,
        razao_social="Comercial Exemplo Ltda",
        fantasia=f"Loja {code}",
        manager="Ana",
        last_update=FIXED_NOW,
        kpis=tuple(
            KPI(name=f"KPI {i}", category=KPICategory.FINANCE, target=target, actual=actual, unit="R$")
            for i, (target, actual) in enumerate(kpis)
        ),
        custom_rewards=dict(REWARDS),
        tier_colors=dict(COLORS),
    )
    fields.update(overrides)
    return Store(**fields)


class InMemoryRepository:
    """Repository double that keeps stores in a dict and can be told to fail."""

    def __init__(self, stores=()):
        self.saved = {store.id: store for store in stores}
        self.fail = False
        self.calls = []

    def _check(self, name):
        self.calls.append(name)
        if self.fail:
            raise RepositoryError(f"{name} failed")

    async def list_stores(self):
        self._check("list_stores")
        return list(self.saved.values())

    async def upsert_store(self, store):
        self._check("upsert_store")
        self.saved[store.id] = store
        return store

    async def delete_store(self, store_id):
        self._check("delete_store")
        return self.saved.pop(store_id, None) is not None


@pytest.fixture()
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'scorecard.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def repository(engine) -> StoreRepository:
    return StoreRepository(make_session_factory(engine))
