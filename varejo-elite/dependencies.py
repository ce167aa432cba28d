from fastapi import Depends, HTTPException, Request

from access import AccessGate
from directory import StoreDirectory
from insights import InsightBoard
from schemas import Store
from session_store import SessionContext


def get_directory(request: Request) -> StoreDirectory:
    return request.app.state.directory


def get_gate(request: Request) -> AccessGate:
    return request.app.state.gate


def get_insights(request: Request) -> InsightBoard:
    return request.app.state.insights


def require_session(request: Request) -> SessionContext:
    session = request.app.state.session
    if session is None:
        raise HTTPException(status_code=401, detail="Not authenticated.")
    return session


def require_admin(session: SessionContext = Depends(require_session)) -> SessionContext:
    if not session.is_admin:
        raise HTTPException(status_code=403, detail="Administrator access required.")
    return session


def get_active_store(
    session: SessionContext = Depends(require_session),
    directory: StoreDirectory = Depends(get_directory),
) -> Store:
    store = directory.get(session.store_index)
    if store is None:
        raise HTTPException(status_code=404, detail="No active store.")
    return store
