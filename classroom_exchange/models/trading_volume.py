from datetime import datetime
from sqlalchemy import String, Integer, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from classroom_exchange.db.base import Base


class TradingVolume(Base):
    __tablename__ = "trading_volume"
    __table_args__ = (
        UniqueConstraint("stock_id", "time_window", name="uq_trading_volume_stock_window"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    stock_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    time_window: Mapped[str] = mapped_column(String(16), index=True, nullable=False)  # "YYYY-MM-DD HH:00"

    buy_volume: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sell_volume: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    net_volume: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    price_before: Mapped[int] = mapped_column(Integer, nullable=False)
    price_after: Mapped[int | None] = mapped_column(Integer, nullable=True)
    applied_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
