from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from pydantic import BaseModel
from sqlalchemy.engine import Engine
from typing import Optional, List
import logging
import os

import config
import advisor_client
from access import AccessGate, AccessMode
from database import engine as default_engine, init_db, make_session_factory
from dependencies import get_directory, get_gate, get_insights, require_session
from directory import StoreDirectory
from insights import InsightBoard, InsightGenerator
from repository import StoreRepository
from session_store import Role, SessionContext, SessionStore
from routers import dashboard as dashboard_router
from routers import stores as stores_router

logger = logging.getLogger("varejo_elite")
if not logging.getLogger().handlers:
    logging.basicConfig(level=logging.INFO)

ADMIN_HEADER_TITLE = "GESTÃO GLOBAL"

# --- Pydantic Models ---
class AccessRequest(BaseModel):
    code: str
    admin: bool = False

class SessionResponse(BaseModel):
    role: Role
    store_index: Optional[int]
    header_title: str


def _get_allowed_origins() -> List[str]:
    env_val = os.getenv("BACKEND_CORS_ORIGINS")
    if not env_val:
        return ["*"]
    return [o.strip() for o in env_val.split(",") if o.strip()]


def _session_response(session: SessionContext, directory: StoreDirectory) -> SessionResponse:
    if session.is_admin:
        title = ADMIN_HEADER_TITLE
    else:
        store = directory.get(session.store_index)
        title = store.fantasia if store else "LOJA"
    return SessionResponse(role=session.role, store_index=session.store_index, header_title=title)


@asynccontextmanager
async def _lifespan(app: FastAPI, engine: Engine):
    init_db(engine)
    await app.state.directory.load()
    app.state.session = app.state.gate.resume()
    if app.state.session is not None:
        logger.info("Resumed %s session.", app.state.session.role.value)
    yield
    app.state.insights.reset()


def create_app(
    engine: Optional[Engine] = None,
    session_store: Optional[SessionStore] = None,
    generate_insight: Optional[InsightGenerator] = None,
    admin_secret: str = config.ADMIN_PASSWORD,
) -> FastAPI:
    """
    Builds the scorecard app.

    Intended for single-user local deployment: the process holds exactly one
    session (`app.state.session`), shared by every HTTP caller. Once someone
    logs in as ADMIN, any client reaching the service acts as ADMIN until
    logout. Do not expose it to untrusted networks.
    """
    engine = engine or default_engine
    directory = StoreDirectory(StoreRepository(make_session_factory(engine)))
    session_store = session_store or SessionStore(config.SESSION_FILE)

    app = FastAPI(title="Varejo Elite Scorecard", lifespan=lambda app: _lifespan(app, engine))
    app.state.directory = directory
    app.state.gate = AccessGate(directory, session_store, admin_secret=admin_secret)
    app.state.insights = InsightBoard(generate_insight or advisor_client.generate_insight)
    app.state.session = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_get_allowed_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(stores_router.router, prefix="/api")
    app.include_router(dashboard_router.router, prefix="/api")

    # --- API Endpoints ---
    @app.get("/")
    def read_root():
        return {"status": "Varejo Elite is running!", "stores": len(directory)}

    @app.post("/api/access", response_model=SessionResponse, tags=["Access"])
    def access(
        payload: AccessRequest,
        request: Request,
        gate: AccessGate = Depends(get_gate),
    ):
        mode = AccessMode.ADMIN if payload.admin else AccessMode.CLIENT
        result = gate.authorize(payload.code, mode)
        if not result.ok:
            raise HTTPException(status_code=401, detail=result.error)
        request.app.state.session = result.session
        return _session_response(result.session, directory)

    @app.post("/api/logout", tags=["Access"])
    async def logout(
        request: Request,
        gate: AccessGate = Depends(get_gate),
        insights: InsightBoard = Depends(get_insights),
    ):
        gate.logout()
        insights.reset()
        request.app.state.session = None
        return {"status": "logged out"}

    @app.get("/api/session", response_model=SessionResponse, tags=["Access"])
    def get_session(
        session: SessionContext = Depends(require_session),
        directory: StoreDirectory = Depends(get_directory),
    ):
        return _session_response(session, directory)

    return app


app = create_app()
