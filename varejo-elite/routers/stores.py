from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel
from typing import List
import logging

from access import AccessGate
from dependencies import get_directory, get_gate, require_admin
from directory import StoreDirectory, StoreValidationError, UnknownStoreError
from models import Tier
from schemas import Store, StoreDraft
from scoring import evaluate_store
from session_store import SessionContext

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])

# --- Pydantic Models ---
class StoreSummary(BaseModel):
    index: int
    id: str
    code: str
    fantasia: str
    manager: str
    performance: int
    tier: Tier
    is_active: bool


def _unavailable():
    return HTTPException(status_code=503, detail="Storage is unavailable, the change was not saved.")


@router.get("/stores", response_model=List[StoreSummary], tags=["Stores"])
def list_stores(
    session: SessionContext = Depends(require_admin),
    directory: StoreDirectory = Depends(get_directory),
):
    summaries = []
    for index, store in enumerate(directory.stores):
        evaluation = evaluate_store(store)
        summaries.append(StoreSummary(
            index=index, id=store.id, code=store.code, fantasia=store.fantasia, manager=store.manager,
            performance=evaluation.performance, tier=evaluation.tier,
            is_active=(index == session.store_index),
        ))
    return summaries


@router.post("/stores", response_model=Store, status_code=201, tags=["Stores"])
async def create_store(
    request: Request,
    session: SessionContext = Depends(require_admin),
    directory: StoreDirectory = Depends(get_directory),
    gate: AccessGate = Depends(get_gate),
):
    store = await directory.create_store()
    if store is None:
        raise _unavailable()
    if session.store_index is None:
        request.app.state.session = gate.select(session, 0)
    logger.info("Created store %s (%s).", store.id, store.code)
    return store


@router.get("/stores/{store_id}/draft", response_model=StoreDraft, tags=["Stores"])
def get_store_draft(store_id: str, directory: StoreDirectory = Depends(get_directory)):
    store = directory.get(directory.index_of(store_id))
    if store is None:
        raise HTTPException(status_code=404, detail="Store not found.")
    return store.draft()


@router.put("/stores/{store_id}", response_model=Store, tags=["Stores"])
async def save_store(store_id: str, draft: StoreDraft, directory: StoreDirectory = Depends(get_directory)):
    if draft.id != store_id:
        raise HTTPException(status_code=422, detail=["Store id in the body does not match the URL."])
    try:
        saved = await directory.replace(draft.commit())
    except UnknownStoreError:
        raise HTTPException(status_code=404, detail="Store not found.")
    except StoreValidationError as e:
        raise HTTPException(status_code=422, detail=e.messages)
    if not saved:
        raise _unavailable()
    return directory.get(directory.index_of(store_id))


@router.delete("/stores/{store_id}", status_code=204, tags=["Stores"])
async def delete_store(
    store_id: str,
    request: Request,
    session: SessionContext = Depends(require_admin),
    directory: StoreDirectory = Depends(get_directory),
    gate: AccessGate = Depends(get_gate),
):
    removed_index = directory.index_of(store_id)
    try:
        deleted = await directory.remove(store_id)
    except UnknownStoreError:
        raise HTTPException(status_code=404, detail="Store not found.")
    if not deleted:
        raise _unavailable()

    # Keep the active selection on the same store where possible
    active = session.store_index
    if active is not None and active > removed_index:
        active -= 1
    elif active is None or active == removed_index:
        active = 0 if len(directory) else None
    request.app.state.session = gate.select(session, active)
    return Response(status_code=204)


@router.post("/stores/{index}/select", tags=["Stores"])
def select_store(
    index: int,
    request: Request,
    session: SessionContext = Depends(require_admin),
    gate: AccessGate = Depends(get_gate),
):
    try:
        selected = gate.select(session, index)
    except IndexError:
        raise HTTPException(status_code=404, detail="Store not found.")
    request.app.state.session = selected
    return {"role": selected.role.value, "store_index": selected.store_index}
