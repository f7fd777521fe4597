from datetime import datetime
from sqlalchemy import String, Integer, DateTime, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from classroom_exchange.db.base import Base


class Stock(Base):
    __tablename__ = "stocks"
    __table_args__ = (
        CheckConstraint("current_price > 0", name="ck_stocks_current_price_positive"),
        # ids are never reused, queued edits and the trade log refer to them
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    code: Mapped[str] = mapped_column(String(16), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    current_price: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    price_history: Mapped[list["PriceHistory"]] = relationship(
        back_populates="stock",
        cascade="all, delete-orphan",
        order_by="PriceHistory.id",
    )
