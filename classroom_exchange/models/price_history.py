from datetime import datetime
from sqlalchemy import String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from classroom_exchange.db.base import Base


class PriceHistory(Base):
    """Append-only log of every price a stock has been set to."""

    __tablename__ = "price_history"

    id: Mapped[int] = mapped_column(primary_key=True)
    stock_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("stocks.id", ondelete="CASCADE"), index=True, nullable=False
    )
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    changed_by: Mapped[str] = mapped_column(String(64), nullable=False)  # admin username or AUTO_UPDATE
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    stock: Mapped["Stock"] = relationship(back_populates="price_history")
