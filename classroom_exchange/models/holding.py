from datetime import datetime
from sqlalchemy import Integer, Float, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from classroom_exchange.db.base import Base


class Holding(Base):
    __tablename__ = "user_stocks"
    __table_args__ = (
        UniqueConstraint("user_id", "stock_id", name="uq_user_stocks_user_stock"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    stock_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    avg_price: Mapped[float] = mapped_column(Float, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
