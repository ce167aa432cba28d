import asyncio

import pytest

from conftest import make_store
from models import Tier
from repository import RepositoryError
from schemas import KPI


def _without_timestamp(store):
    return store.model_dump(exclude={"last_update"})


def test_upsert_then_list_round_trips(repository):
    store = make_store()

    async def _scenario():
        await repository.upsert_store(store)
        return await repository.list_stores()

    stores = asyncio.run(_scenario())
    assert len(stores) == 1
    assert _without_timestamp(stores[0]) == _without_timestamp(store)
    assert stores[0].last_update.tzinfo is not None


def test_replace_round_trips_edits_and_kpi_order(repository):
    store = make_store()

    async def _scenario():
        await repository.upsert_store(store)
        draft = store.draft()
        draft.fantasia = "Loja Centro"
        draft.custom_rewards[Tier.ELITE] = 7500
        draft.kpis.reverse()
        draft.update_kpi(store.kpis[1].id, actual=3)
        edited = draft.commit()
        await repository.upsert_store(edited)
        return edited, await repository.list_stores()

    edited, stores = asyncio.run(_scenario())
    assert _without_timestamp(stores[0]) == _without_timestamp(edited)
    assert [k.id for k in stores[0].kpis] == [k.id for k in reversed(store.kpis)]


def test_omitted_kpis_are_deleted(repository):
    store = make_store()

    async def _scenario():
        await repository.upsert_store(store)
        draft = store.draft()
        draft.remove_kpi(store.kpis[0].id)
        await repository.upsert_store(draft.commit())
        return await repository.list_stores()

    stores = asyncio.run(_scenario())
    assert [k.id for k in stores[0].kpis] == [store.kpis[1].id, store.kpis[2].id]


def test_failed_kpi_write_rolls_back_the_store_row(repository):
    broken_kpi = KPI.model_construct(
        id="broken", name=None, description="", category=None, target=1.0, actual=0.0, unit="", weight=1.0,
    )
    store = make_store(code="LOJA-9")
    broken = store.model_copy(update={"kpis": store.kpis + (broken_kpi,)})

    async def _scenario():
        with pytest.raises(RepositoryError):
            await repository.upsert_store(broken)
        return await repository.list_stores()

    assert asyncio.run(_scenario()) == []


def test_failed_update_keeps_previous_version(repository):
    first = make_store(code="LOJA-1")
    second = make_store(code="LOJA-2")

    async def _scenario():
        await repository.upsert_store(first)
        await repository.upsert_store(second)
        # steals a KPI id owned by the first store
        hijack = second.model_copy(update={"fantasia": "Changed", "kpis": second.kpis + (first.kpis[0],)})
        with pytest.raises(RepositoryError):
            await repository.upsert_store(hijack)
        return await repository.list_stores()

    stores = asyncio.run(_scenario())
    by_code = {s.code: s for s in stores}
    assert by_code["LOJA-2"].fantasia == second.fantasia
    assert len(by_code["LOJA-2"].kpis) == 3
    assert _without_timestamp(by_code["LOJA-1"]) == _without_timestamp(first)


def test_list_keeps_creation_order(repository):
    stores = [make_store(code=f"LOJA-{n}") for n in range(1, 4)]

    async def _scenario():
        for store in stores:
            await repository.upsert_store(store)
        await repository.upsert_store(stores[0].model_copy(update={"manager": "Bruno"}))
        return await repository.list_stores()

    assert [s.code for s in asyncio.run(_scenario())] == ["LOJA-1", "LOJA-2", "LOJA-3"]


def test_delete_store_removes_store_and_kpis(repository):
    store = make_store()

    async def _scenario():
        await repository.upsert_store(store)
        deleted = await repository.delete_store(store.id)
        missing = await repository.delete_store(store.id)
        # the KPI ids are free again
        await repository.upsert_store(make_store(code="LOJA-2", kpis=[]).model_copy(update={"kpis": store.kpis}))
        return deleted, missing, await repository.list_stores()

    deleted, missing, stores = asyncio.run(_scenario())
    assert deleted is True
    assert missing is False
    assert [s.code for s in stores] == ["LOJA-2"]
