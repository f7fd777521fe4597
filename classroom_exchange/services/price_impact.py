"""
Price Impact
Turns the net traded volume of an hour bucket into a bounded price move.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from classroom_exchange.core.config import settings
from classroom_exchange.core.errors import ValidationFailed
from classroom_exchange.models.price_impact_settings import PriceImpactSettings
from classroom_exchange.models.stock import Stock
from classroom_exchange.models.trading_volume import TradingVolume
from classroom_exchange.services.event_publisher import event_publisher
from classroom_exchange.services.stock_service import StockService
from classroom_exchange.services.trading_hours import TradingHours

logger = logging.getLogger(__name__)

AUTO_UPDATE = "AUTO_UPDATE"


@dataclass(frozen=True)
class ImpactParameters:
    impact_rate: float
    max_change_rate: float
    min_volume: int

    @classmethod
    def defaults(cls) -> "ImpactParameters":
        return cls(
            impact_rate=settings.default_impact_rate,
            max_change_rate=settings.default_max_change_rate,
            min_volume=settings.default_min_volume,
        )

    @classmethod
    def from_row(cls, row: Optional[PriceImpactSettings]) -> "ImpactParameters":
        if row is None:
            return cls.defaults()
        return cls(
            impact_rate=row.impact_rate,
            max_change_rate=row.max_change_rate,
            min_volume=row.min_volume,
        )


@dataclass(frozen=True)
class ImpactResult:
    new_price: int
    change_rate: float
    skipped: bool = False


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_impacted_price(
    current_price: int,
    buy_volume: int,
    sell_volume: int,
    params: ImpactParameters,
) -> ImpactResult:
    """
    Price after applying the bucket's buying/selling pressure.

    The rate is ``net / 100 * impact_rate`` clamped to
    ``[-max_change_rate, max_change_rate]``. After rounding, the price is
    kept inside the integer band allowed by ``max_change_rate`` and never
    drops below 1.
    """
    if buy_volume + sell_volume < params.min_volume:
        return ImpactResult(new_price=current_price, change_rate=0.0, skipped=True)

    net_volume = buy_volume - sell_volume
    raw_rate = (net_volume / 100) * params.impact_rate
    rate = max(-params.max_change_rate, min(params.max_change_rate, raw_rate))

    new_price = _round_half_up(current_price * (1 + rate))
    lowest = math.ceil(current_price * (1 - params.max_change_rate))
    highest = math.floor(current_price * (1 + params.max_change_rate))
    new_price = max(lowest, min(highest, new_price))
    return ImpactResult(new_price=max(1, new_price), change_rate=rate)


class PriceImpactService:
    def __init__(self, db: Session, trading_hours: TradingHours):
        self.db = db
        self.trading_hours = trading_hours
        self.stocks = StockService(db)

    def apply_volume_based_update(self, time_window: Optional[str] = None) -> dict:
        """
        Apply every un-applied bucket of ``time_window`` (default: current hour).

        Each bucket commits on its own; a failing bucket is rolled back and
        logged and the rest are still processed.
        """
        window = time_window or self.trading_hours.time_window_key()
        rows = self.db.execute(
            select(TradingVolume.id, Stock.id, PriceImpactSettings)
            .join(Stock, Stock.id == TradingVolume.stock_id)
            .outerjoin(PriceImpactSettings, PriceImpactSettings.stock_id == TradingVolume.stock_id)
            .where(TradingVolume.time_window == window, TradingVolume.applied_at.is_(None))
            .order_by(TradingVolume.id)
        ).all()

        if not rows:
            return {
                "updated": 0,
                "skipped": 0,
                "failed": 0,
                "timeWindow": window,
                "message": "업데이트할 거래량 데이터가 없습니다.",
            }

        updated = skipped = failed = 0
        changes = []
        for volume_id, stock_id, impact_row in rows:
            params = ImpactParameters.from_row(impact_row)
            try:
                volume = self.db.get(TradingVolume, volume_id)
                stock = self.db.get(Stock, stock_id)
                if volume is None or volume.applied_at is not None:
                    continue
                if stock is None:
                    logger.error(f"Volume update: stock not found (stock_id={stock_id})")
                    failed += 1
                    continue

                result = compute_impacted_price(
                    stock.current_price, volume.buy_volume, volume.sell_volume, params
                )
                now = datetime.utcnow()
                if result.skipped:
                    volume.price_after = volume.price_before
                    volume.applied_at = now
                    self.db.commit()
                    skipped += 1
                    continue

                self.stocks.set_price(stock, result.new_price, AUTO_UPDATE)
                volume.price_after = result.new_price
                volume.applied_at = now
                self.db.commit()
                updated += 1
                changes.append((stock.id, stock.code, result.new_price))
                logger.info(
                    f"Volume update {window}: {stock.code} -> {result.new_price} "
                    f"(net={volume.net_volume}, rate={result.change_rate:+.4f})"
                )
            except Exception as e:
                self.db.rollback()
                failed += 1
                logger.error(f"Volume update failed for stock {stock_id}: {e}", exc_info=True)

        for stock_id, code, price in changes:
            event_publisher.publish_price_changed(stock_id, code, price, AUTO_UPDATE)

        return {
            "updated": updated,
            "skipped": skipped,
            "failed": failed,
            "timeWindow": window,
            "message": f"{updated}개 종목의 주가가 업데이트되었습니다.",
        }

    def get_parameters(self, stock_id: int) -> ImpactParameters:
        return ImpactParameters.from_row(self.db.get(PriceImpactSettings, stock_id))

    def list_settings(self) -> List[dict]:
        rows = self.db.execute(
            select(PriceImpactSettings, Stock)
            .join(Stock, Stock.id == PriceImpactSettings.stock_id)
            .order_by(Stock.code)
        ).all()
        return [
            {
                "stock_id": row.stock_id,
                "impact_rate": row.impact_rate,
                "max_change_rate": row.max_change_rate,
                "min_volume": row.min_volume,
                "updated_at": row.updated_at,
                "code": stock.code,
                "name": stock.name,
            }
            for row, stock in rows
        ]

    def save_settings(
        self,
        stock_id: int,
        impact_rate: float,
        max_change_rate: float,
        min_volume: int,
    ) -> PriceImpactSettings:
        self.stocks.require_stock(stock_id)
        if impact_rate <= 0:
            raise ValidationFailed("impact_rate는 0보다 커야 합니다.")
        if not 0 < max_change_rate < 1:
            raise ValidationFailed("max_change_rate는 0과 1 사이여야 합니다.")
        if min_volume < 0:
            raise ValidationFailed("min_volume은 0 이상이어야 합니다.")

        row = self.db.get(PriceImpactSettings, stock_id)
        if row is None:
            row = PriceImpactSettings(stock_id=stock_id)
            self.db.add(row)
        row.impact_rate = impact_rate
        row.max_change_rate = max_change_rate
        row.min_volume = min_volume
        row.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(row)
        return row
