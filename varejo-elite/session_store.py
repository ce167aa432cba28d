# varejo-elite/session_store.py
import enum
import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class Role(enum.Enum):
    ADMIN = "ADMIN"
    CLIENT = "CLIENT"


@dataclass(frozen=True)
class SessionContext:
    """An authorized session: who is logged in and which store is active."""

    role: Role
    store_index: Optional[int]

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    def to_dict(self) -> dict:
        return {"role": self.role.value, "index": self.store_index}

    @classmethod
    def from_dict(cls, data: dict) -> "SessionContext":
        index = data.get("index")
        if index is not None and (isinstance(index, bool) or not isinstance(index, int)):
            raise ValueError(f"invalid store index: {index!r}")
        return cls(role=Role(data["role"]), store_index=index)


class SessionStore:
    """Durable single-slot storage for the current session."""

    def __init__(self, path):
        self.path = Path(path)

    def persist(self, session: SessionContext) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(session.to_dict(), f)
            os.replace(tmp_name, self.path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def read(self) -> Optional[SessionContext]:
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as f:
                return SessionContext.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Discarding unreadable session file %s: %s", self.path, e)
            self.clear()
            return None

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
