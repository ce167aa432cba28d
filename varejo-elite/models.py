# models.py
import enum
from datetime import datetime, timezone
from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    DateTime,
    Enum,
    ForeignKey,
    JSON,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Tier(enum.Enum):
    NONE = "NONE"
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    ELITE = "ELITE"

    @property
    def rank(self) -> int:
        return TIER_ORDER.index(self)


TIER_ORDER = [Tier.NONE, Tier.BRONZE, Tier.SILVER, Tier.GOLD, Tier.ELITE]


class KPICategory(enum.Enum):
    FINANCE = "FINANCE"
    GROWTH = "GROWTH"
    MARKET = "MARKET"
    OPERATIONS = "OPERATIONS"
    CUSTOMER = "CUSTOMER"


def _utcnow():
    return datetime.now(timezone.utc)


class StoreRow(Base):
    __tablename__ = 'stores'

    id = Column(String, primary_key=True)
    code = Column(String, nullable=False, unique=True, index=True)
    razao_social = Column(String, nullable=False, default="")
    fantasia = Column(String, nullable=False, default="")
    manager = Column(String, nullable=False, default="")
    last_update = Column(DateTime(timezone=True), nullable=False)
    # Keyed by Tier value
    custom_rewards = Column(JSON, nullable=False)
    tier_colors = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    kpis = relationship(
        "KpiRow",
        back_populates="store",
        order_by="KpiRow.position",
        cascade="all, delete-orphan",
    )


class KpiRow(Base):
    __tablename__ = 'kpis'

    id = Column(String, primary_key=True)
    store_id = Column(String, ForeignKey('stores.id', ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    category = Column(Enum(KPICategory), nullable=False)
    target = Column(Float, nullable=False)
    actual = Column(Float, nullable=False, default=0)
    unit = Column(String, nullable=False, default="")
    weight = Column(Float, nullable=False, default=1)

    store = relationship("StoreRow", back_populates="kpis")
