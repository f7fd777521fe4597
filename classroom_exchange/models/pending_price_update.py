from datetime import datetime
from sqlalchemy import String, Integer, DateTime, Index, text
from sqlalchemy.orm import Mapped, mapped_column

from classroom_exchange.db.base import Base

PENDING = "pending"
APPLIED = "applied"
FAILED = "failed"


class PendingPriceUpdate(Base):
    __tablename__ = "pending_price_updates"
    __table_args__ = (
        # one open edit per stock; applied/failed rows are kept as history
        Index(
            "uq_pending_price_updates_open_stock",
            "stock_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    # no FK: a queued edit may outlive its stock and is then marked failed
    stock_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    new_price: Mapped[int] = mapped_column(Integer, nullable=False)
    changed_by: Mapped[str] = mapped_column(String(64), nullable=False)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default=PENDING)  # pending / applied / failed
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    applied_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
