# varejo-elite/repository.py
import logging
from typing import List

from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload, sessionmaker

from database import SessionLocal
from models import KpiRow, StoreRow, Tier
from schemas import KPI, Store
from utils import ensure_timezone_aware

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Durable storage could not complete an operation."""


def _tier_table(raw: dict) -> dict:
    return {Tier(key): value for key, value in (raw or {}).items() if key in Tier.__members__}


def _to_record(row: StoreRow) -> Store:
    return Store(
        id=row.id,
        code=row.code,
        razao_social=row.razao_social,
        fantasia=row.fantasia,
        manager=row.manager,
        last_update=ensure_timezone_aware(row.last_update),
        kpis=tuple(
            KPI(
                id=k.id,
                name=k.name,
                description=k.description,
                category=k.category,
                target=k.target,
                actual=k.actual,
                unit=k.unit,
                weight=k.weight,
            )
            for k in row.kpis
        ),
        custom_rewards=_tier_table(row.custom_rewards),
        tier_colors=_tier_table(row.tier_colors),
    )


class StoreRepository:
    """
    SQLAlchemy-backed store persistence.

    A store and its whole KPI sequence are written in a single transaction:
    either both land or neither does. KPIs missing from the saved sequence
    are deleted.
    """

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self._session_factory = session_factory

    # --- Coroutine API ---

    async def list_stores(self) -> List[Store]:
        return await run_in_threadpool(self._list_stores)

    async def upsert_store(self, store: Store) -> Store:
        return await run_in_threadpool(self._upsert_store, store)

    async def delete_store(self, store_id: str) -> bool:
        return await run_in_threadpool(self._delete_store, store_id)

    # --- Blocking implementations ---

    def _list_stores(self) -> List[Store]:
        with self._session_factory() as db:
            try:
                rows = db.scalars(
                    select(StoreRow)
                    .options(selectinload(StoreRow.kpis))
                    .order_by(StoreRow.created_at, StoreRow.id)
                ).all()
                return [_to_record(row) for row in rows]
            except (SQLAlchemyError, ValidationError, ValueError) as e:
                logger.error("Error while listing stores: %s", e)
                raise RepositoryError("list stores") from e

    def _upsert_store(self, store: Store) -> Store:
        with self._session_factory() as db:
            try:
                row = db.get(StoreRow, store.id, options=[selectinload(StoreRow.kpis)])
                if row is None:
                    row = StoreRow(id=store.id)
                    db.add(row)

                row.code = store.code
                row.razao_social = store.razao_social
                row.fantasia = store.fantasia
                row.manager = store.manager
                row.last_update = store.last_update
                row.custom_rewards = {tier.value: amount for tier, amount in store.custom_rewards.items()}
                row.tier_colors = {tier.value: color for tier, color in store.tier_colors.items()}

                existing = {k.id: k for k in row.kpis}
                kpi_rows = []
                for position, kpi in enumerate(store.kpis):
                    kpi_row = existing.get(kpi.id) or KpiRow(id=kpi.id)
                    kpi_row.position = position
                    kpi_row.name = kpi.name
                    kpi_row.description = kpi.description
                    kpi_row.category = kpi.category
                    kpi_row.target = kpi.target
                    kpi_row.actual = kpi.actual
                    kpi_row.unit = kpi.unit
                    kpi_row.weight = kpi.weight
                    kpi_rows.append(kpi_row)
                # delete-orphan removes the KPIs left out of the new sequence
                row.kpis = kpi_rows

                db.commit()
                logger.info("Saved store %s (%s) with %d KPIs.", store.id, store.code, len(kpi_rows))
                return _to_record(row)
            except SQLAlchemyError as e:
                db.rollback()
                logger.error("Error while saving store %s: %s", store.id, e)
                raise RepositoryError(f"save store {store.id}") from e

    def _delete_store(self, store_id: str) -> bool:
        with self._session_factory() as db:
            try:
                row = db.get(StoreRow, store_id)
                if row is None:
                    return False
                db.delete(row)
                db.commit()
                logger.info("Deleted store %s.", store_id)
                return True
            except SQLAlchemyError as e:
                db.rollback()
                logger.error("Error while deleting store %s: %s", store_id, e)
                raise RepositoryError(f"delete store {store_id}") from e
