"""
Price Scheduler
Applies admin price edits immediately while trading is open and queues
them for the next trading window otherwise.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List

from sqlalchemy import select, delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from classroom_exchange.core.errors import DomainRuleViolation, ValidationFailed
from classroom_exchange.models.pending_price_update import PendingPriceUpdate, PENDING, APPLIED, FAILED
from classroom_exchange.models.stock import Stock
from classroom_exchange.services.event_publisher import event_publisher
from classroom_exchange.services.stock_service import StockService
from classroom_exchange.services.trading_hours import TradingHours

logger = logging.getLogger(__name__)

FORCED_SUFFIX = " (강제 반영)"


@dataclass
class PriceChangeResult:
    stock: Stock
    applied: bool
    forced: bool
    pending: bool
    pending_price: int | None = None

    @property
    def message(self) -> str:
        if self.pending:
            return "주가 변경이 예약되었습니다. 다음 거래 시간에 자동으로 반영됩니다."
        if self.forced:
            return "주가가 강제로 즉시 반영되었습니다."
        return "주가가 즉시 반영되었습니다."


class PriceScheduler:
    def __init__(self, db: Session, trading_hours: TradingHours):
        self.db = db
        self.trading_hours = trading_hours
        self.stocks = StockService(db)

    def schedule_or_apply(
        self,
        stock_id: int,
        new_price: int,
        actor: str,
        force_apply: bool = False,
    ) -> PriceChangeResult:
        stock = self.stocks.require_stock(stock_id)
        if new_price <= 0:
            raise ValidationFailed("주가는 0보다 커야 합니다.")

        if force_apply or self.trading_hours.is_open():
            changed_by = f"{actor}{FORCED_SUFFIX}" if force_apply else actor
            self.stocks.set_price(stock, new_price, changed_by)
            self.db.execute(
                delete(PendingPriceUpdate).where(
                    PendingPriceUpdate.stock_id == stock_id,
                    PendingPriceUpdate.status == PENDING,
                )
            )
            self.db.commit()
            self.db.refresh(stock)
            logger.info(f"Price of {stock.code} set to {new_price} by {changed_by}")
            event_publisher.publish_price_changed(stock.id, stock.code, new_price, changed_by)
            return PriceChangeResult(stock=stock, applied=True, forced=force_apply, pending=False)

        self._upsert_pending(stock_id, new_price, actor)
        self.db.refresh(stock)
        logger.info(f"Price of {stock.code} queued at {new_price} by {actor}")
        return PriceChangeResult(
            stock=stock, applied=False, forced=False, pending=True, pending_price=new_price
        )

    def _upsert_pending(self, stock_id: int, new_price: int, actor: str) -> PendingPriceUpdate:
        """Keep a single open edit per stock; the latest edit wins."""
        try:
            return self._write_pending(stock_id, new_price, actor)
        except IntegrityError:
            # a concurrent request inserted the open edit first
            self.db.rollback()
            return self._write_pending(stock_id, new_price, actor)

    def _write_pending(self, stock_id: int, new_price: int, actor: str) -> PendingPriceUpdate:
        row = self.db.scalar(
            select(PendingPriceUpdate).where(
                PendingPriceUpdate.stock_id == stock_id,
                PendingPriceUpdate.status == PENDING,
            )
        )
        if row is None:
            row = PendingPriceUpdate(stock_id=stock_id, status=PENDING)
            self.db.add(row)
        row.new_price = new_price
        row.changed_by = actor
        row.created_at = datetime.utcnow()
        self.db.commit()
        return row

    def flush_pending(self) -> int:
        """
        Apply queued edits oldest first. Only allowed while trading is open.

        Each row is claimed with a conditional ``pending -> applied`` update
        so overlapping flushes apply it once. Rows whose stock no longer
        exists are marked failed.
        """
        status = self.trading_hours.status()
        if not status.allowed:
            raise DomainRuleViolation("거래 시간이 아닙니다.")

        queued = self.db.execute(
            select(PendingPriceUpdate.id, PendingPriceUpdate.stock_id)
            .where(PendingPriceUpdate.status == PENDING)
            .order_by(PendingPriceUpdate.created_at.asc(), PendingPriceUpdate.id.asc())
        ).all()

        applied = []
        for update_id, stock_id in queued:
            try:
                stock = self.db.get(Stock, stock_id)
                if stock is None:
                    logger.warning(f"Pending update {update_id}: stock {stock_id} not found, marking failed")
                    self._transition(update_id, FAILED)
                    self.db.commit()
                    continue

                if not self._transition(update_id, APPLIED, applied_at=datetime.utcnow()):
                    self.db.rollback()
                    continue

                pending = self.db.get(PendingPriceUpdate, update_id)
                self.stocks.set_price(stock, pending.new_price, pending.changed_by)
                self.db.commit()
                applied.append((stock.id, stock.code, pending.new_price, pending.changed_by))
            except Exception as e:
                self.db.rollback()
                logger.error(f"Applying pending update {update_id} failed: {e}", exc_info=True)

        for stock_id, code, price, changed_by in applied:
            event_publisher.publish_price_changed(stock_id, code, price, changed_by)

        if queued:
            logger.info(f"Applied {len(applied)} of {len(queued)} pending price updates")
        return len(applied)

    def _transition(self, update_id: int, new_status: str, applied_at: datetime | None = None) -> bool:
        values = {"status": new_status}
        if applied_at is not None:
            values["applied_at"] = applied_at
        result = self.db.execute(
            update(PendingPriceUpdate)
            .where(PendingPriceUpdate.id == update_id, PendingPriceUpdate.status == PENDING)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def list_pending(self) -> List[dict]:
        rows = self.db.execute(
            select(PendingPriceUpdate, Stock)
            .join(Stock, Stock.id == PendingPriceUpdate.stock_id)
            .where(PendingPriceUpdate.status == PENDING)
            .order_by(PendingPriceUpdate.created_at.desc())
        ).all()
        return [
            {
                "id": pending.id,
                "stock_id": pending.stock_id,
                "new_price": pending.new_price,
                "changed_by": pending.changed_by,
                "status": pending.status,
                "created_at": pending.created_at,
                "code": stock.code,
                "name": stock.name,
                "current_price": stock.current_price,
            }
            for pending, stock in rows
        ]
