# varejo-elite/access.py
import enum
import logging
from dataclasses import dataclass
from typing import Optional

import config
from directory import StoreDirectory
from session_store import Role, SessionContext, SessionStore

logger = logging.getLogger(__name__)


class AccessMode(enum.Enum):
    ADMIN = "ADMIN"
    CLIENT = "CLIENT"


@dataclass(frozen=True)
class AccessResult:
    session: Optional[SessionContext] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.session is not None


class AccessGate:
    """
    Authorizes a session as the global ADMIN (shared secret) or as the CLIENT
    of a single store (store code). The caller picks the mode explicitly.
    """

    def __init__(self, directory: StoreDirectory, session_store: SessionStore, admin_secret: str = config.ADMIN_PASSWORD):
        self._directory = directory
        self._session_store = session_store
        self._admin_secret = admin_secret

    def authorize(self, code: str, mode: AccessMode) -> AccessResult:
        code = (code or "").strip()
        if not code:
            return AccessResult(error=config.ACCESS_MESSAGES["empty_code"])

        if mode is AccessMode.ADMIN:
            if code != self._admin_secret:
                logger.info("Rejected administrative login.")
                return AccessResult(error=config.ACCESS_MESSAGES["admin_denied"])
            index = 0 if len(self._directory) else None
            return self._start(SessionContext(role=Role.ADMIN, store_index=index))

        index = self._directory.index_of_code(code)
        if index is None:
            logger.info("Rejected client login for unknown store code.")
            return AccessResult(error=config.ACCESS_MESSAGES["store_not_found"])
        return self._start(SessionContext(role=Role.CLIENT, store_index=index))

    def _start(self, session: SessionContext) -> AccessResult:
        self._session_store.persist(session)
        logger.info("Session started: role=%s store_index=%s", session.role.value, session.store_index)
        return AccessResult(session=session)

    def resume(self) -> Optional[SessionContext]:
        """Restores a persisted session, dropping it if its store is gone."""
        session = self._session_store.read()
        if session is None:
            return None
        if session.store_index is not None and self._directory.get(session.store_index) is None:
            logger.warning("Persisted session points at missing store %s, clearing it.", session.store_index)
            self._session_store.clear()
            return None
        if session.role is Role.CLIENT and session.store_index is None:
            self._session_store.clear()
            return None
        return session

    def select(self, session: SessionContext, index: Optional[int]) -> SessionContext:
        """Changes the active store of an ADMIN session. None only when there are no stores."""
        if not session.is_admin:
            raise PermissionError("only the administrator can change the active store")
        if index is None:
            if len(self._directory):
                raise IndexError(index)
        elif self._directory.get(index) is None:
            raise IndexError(index)
        selected = SessionContext(role=Role.ADMIN, store_index=index)
        self._session_store.persist(selected)
        return selected

    def logout(self) -> None:
        self._session_store.clear()
        logger.info("Session cleared.")
