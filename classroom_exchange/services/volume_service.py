"""
Volume Service
Accumulates traded quantity per stock per hour bucket.
"""
import logging
from datetime import datetime
from typing import List, Literal, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from classroom_exchange.models.stock import Stock
from classroom_exchange.models.trading_volume import TradingVolume
from classroom_exchange.services.trading_hours import TradingHours

logger = logging.getLogger(__name__)

Side = Literal["BUY", "SELL"]


class VolumeService:
    def __init__(self, db: Session, trading_hours: TradingHours):
        self.db = db
        self.trading_hours = trading_hours

    def record_trade(self, stock_id: int, side: Side, quantity: int, now: Optional[datetime] = None) -> None:
        """
        Add a trade to its hour bucket.

        Best effort: the trade itself is already committed, so any failure
        here is rolled back and logged instead of raised.
        """
        time_window = self.trading_hours.time_window_key(now)
        try:
            stock = self.db.get(Stock, stock_id)
            if stock is None:
                logger.error(f"record_trade: stock not found (stock_id={stock_id})")
                return

            if not self._increment(stock_id, time_window, side, quantity):
                buy = quantity if side == "BUY" else 0
                sell = quantity if side == "SELL" else 0
                self.db.add(TradingVolume(
                    stock_id=stock_id,
                    time_window=time_window,
                    buy_volume=buy,
                    sell_volume=sell,
                    net_volume=buy - sell,
                    price_before=stock.current_price,
                ))
                try:
                    self.db.flush()
                except IntegrityError:
                    # another request created the bucket first
                    self.db.rollback()
                    self._increment(stock_id, time_window, side, quantity)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"record_trade failed: {e} (stock_id={stock_id}, side={side}, quantity={quantity})",
                exc_info=True,
            )

    def _increment(self, stock_id: int, time_window: str, side: Side, quantity: int) -> bool:
        """Atomically add to an existing bucket. Returns False if none exists."""
        if side == "BUY":
            values = {
                "buy_volume": TradingVolume.buy_volume + quantity,
                "net_volume": (TradingVolume.buy_volume + quantity) - TradingVolume.sell_volume,
            }
        else:
            values = {
                "sell_volume": TradingVolume.sell_volume + quantity,
                "net_volume": TradingVolume.buy_volume - (TradingVolume.sell_volume + quantity),
            }
        result = self.db.execute(
            update(TradingVolume)
            .where(TradingVolume.stock_id == stock_id, TradingVolume.time_window == time_window)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    def current_volumes(self) -> dict:
        """Buckets of the current hour joined with stock data, by stock code."""
        time_window = self.trading_hours.time_window_key()
        rows = self.db.execute(
            select(TradingVolume, Stock)
            .join(Stock, Stock.id == TradingVolume.stock_id)
            .where(TradingVolume.time_window == time_window)
            .order_by(Stock.code)
        ).all()
        return {
            "timeWindow": time_window,
            "volumes": [self._row(volume, stock, with_price=True) for volume, stock in rows],
        }

    def history(self, stock_id: int, limit: int = 50) -> List[dict]:
        rows = self.db.execute(
            select(TradingVolume, Stock)
            .join(Stock, Stock.id == TradingVolume.stock_id)
            .where(TradingVolume.stock_id == stock_id)
            .order_by(TradingVolume.time_window.desc())
            .limit(limit)
        ).all()
        return [self._row(volume, stock) for volume, stock in rows]

    @staticmethod
    def _row(volume: TradingVolume, stock: Stock, with_price: bool = False) -> dict:
        row = {
            "id": volume.id,
            "stock_id": volume.stock_id,
            "time_window": volume.time_window,
            "buy_volume": volume.buy_volume,
            "sell_volume": volume.sell_volume,
            "net_volume": volume.net_volume,
            "price_before": volume.price_before,
            "price_after": volume.price_after,
            "applied_at": volume.applied_at,
            "code": stock.code,
            "name": stock.name,
        }
        if with_price:
            row["current_price"] = stock.current_price
        return row
