from datetime import datetime
from sqlalchemy import Integer, Float, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from classroom_exchange.db.base import Base


class PriceImpactSettings(Base):
    __tablename__ = "price_impact_settings"

    stock_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    impact_rate: Mapped[float] = mapped_column(Float, nullable=False)
    max_change_rate: Mapped[float] = mapped_column(Float, nullable=False)
    min_volume: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
