"""
Stock Service
Handles business logic for the stock catalogue and price writes.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy import select, delete, func, update

from classroom_exchange.core.errors import DomainRuleViolation, NotFound, ValidationFailed
from classroom_exchange.models.holding import Holding
from classroom_exchange.models.pending_price_update import PendingPriceUpdate, FAILED, PENDING
from classroom_exchange.models.price_history import PriceHistory
from classroom_exchange.models.price_impact_settings import PriceImpactSettings
from classroom_exchange.models.stock import Stock
from classroom_exchange.models.trading_volume import TradingVolume

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20


class StockService:
    """Service for managing stock operations."""

    def __init__(self, db: Session):
        self.db = db

    def get_stock(self, stock_id: int) -> Optional[Stock]:
        """
        Get a stock by id.

        Args:
            stock_id: Stock primary key

        Returns:
            Stock object if found, None otherwise
        """
        return self.db.get(Stock, stock_id)

    def require_stock(self, stock_id: int) -> Stock:
        stock = self.get_stock(stock_id)
        if stock is None:
            raise NotFound("주식을 찾을 수 없습니다.")
        return stock

    def get_by_code(self, code: str) -> Optional[Stock]:
        return self.db.scalar(select(Stock).where(Stock.code == code.upper()))

    def list_stocks(self, query: Optional[str] = None) -> List[dict]:
        """
        List stocks ordered by id, with the derived board fields.

        Args:
            query: Optional case-insensitive filter on code or name

        Returns:
            One dict per stock with ``pending_price`` (queued admin edit or
            None) and ``previous_price`` (price before the latest change)
        """
        stocks = self.search_stocks(query) if query else list(
            self.db.scalars(select(Stock).order_by(Stock.id)).all()
        )

        pending = dict(
            self.db.execute(
                select(PendingPriceUpdate.stock_id, PendingPriceUpdate.new_price)
                .where(PendingPriceUpdate.status == PENDING)
            ).all()
        )

        result = []
        for stock in stocks:
            data = self.to_dict(stock)
            data["pending_price"] = pending.get(stock.id)
            data["previous_price"] = self.previous_price(stock)
            result.append(data)
        return result

    def previous_price(self, stock: Stock) -> int:
        """Price before the most recent history entry, else the current price."""
        prices = self.db.scalars(
            select(PriceHistory.price)
            .where(PriceHistory.stock_id == stock.id)
            .order_by(PriceHistory.created_at.desc(), PriceHistory.id.desc())
            .limit(2)
        ).all()
        if len(prices) >= 2:
            return prices[1]
        return stock.current_price

    def get_detail(self, stock_id: int) -> dict:
        """Stock plus its most recent price history (newest first)."""
        stock = self.require_stock(stock_id)
        history = self.db.scalars(
            select(PriceHistory)
            .where(PriceHistory.stock_id == stock_id)
            .order_by(PriceHistory.created_at.desc(), PriceHistory.id.desc())
            .limit(HISTORY_LIMIT)
        ).all()
        return {"stock": stock, "history": list(history)}

    def search_stocks(self, query: str) -> List[Stock]:
        """
        Search stocks by code or name.

        Args:
            query: Search query

        Returns:
            List of matching Stock objects
        """
        stmt = select(Stock).where(
            (Stock.code.ilike(f"%{query}%")) | (Stock.name.ilike(f"%{query}%"))
        ).order_by(Stock.id)
        return list(self.db.scalars(stmt).all())

    def create_stock(self, code: str, name: str, price: int, created_by: str) -> Stock:
        """
        Create a new stock with an opening history entry.

        Raises:
            ValidationFailed: If price is not positive
            DomainRuleViolation: If the code already exists
        """
        if price <= 0:
            raise ValidationFailed("주가는 0보다 커야 합니다.")
        if self.get_by_code(code):
            raise DomainRuleViolation(f"이미 존재하는 종목 코드입니다: {code.upper()}")

        now = datetime.utcnow()
        stock = Stock(
            code=code.upper(),
            name=name,
            current_price=price,
            created_at=now,
            updated_at=now,
        )
        self.db.add(stock)
        self.db.flush()
        self.db.add(PriceHistory(stock_id=stock.id, price=price, changed_by=created_by, created_at=now))
        self.db.commit()
        self.db.refresh(stock)
        logger.info(f"Stock {stock.code} listed at {price} by {created_by}")
        return stock

    def set_price(self, stock: Stock, new_price: int, changed_by: str) -> PriceHistory:
        """
        Write a new price and append the history row. Does not commit.

        Raises:
            ValidationFailed: If price is not positive
        """
        if new_price <= 0:
            raise ValidationFailed("주가는 0보다 커야 합니다.")

        now = datetime.utcnow()
        stock.current_price = new_price
        stock.updated_at = now
        entry = PriceHistory(stock_id=stock.id, price=new_price, changed_by=changed_by, created_at=now)
        self.db.add(entry)
        return entry

    def delete_stock(self, stock_id: int) -> None:
        """
        Delist a stock. Refused while any user still holds it.

        Price history goes with the stock; impact settings and volume
        buckets are removed too. Queued price edits are marked failed in
        the same commit.
        """
        stock = self.require_stock(stock_id)

        holders = self.db.scalar(
            select(func.count()).select_from(Holding).where(Holding.stock_id == stock_id)
        )
        if holders:
            raise DomainRuleViolation("보유 중인 사용자가 있어 삭제할 수 없습니다.")

        self.db.execute(delete(PriceImpactSettings).where(PriceImpactSettings.stock_id == stock_id))
        self.db.execute(delete(TradingVolume).where(TradingVolume.stock_id == stock_id))
        self.db.execute(
            update(PendingPriceUpdate)
            .where(PendingPriceUpdate.stock_id == stock_id, PendingPriceUpdate.status == PENDING)
            .values(status=FAILED)
            .execution_options(synchronize_session=False)
        )
        self.db.delete(stock)
        self.db.commit()
        logger.info(f"Stock {stock_id} deleted")

    @staticmethod
    def to_dict(stock: Stock) -> dict:
        return {
            "id": stock.id,
            "code": stock.code,
            "name": stock.name,
            "current_price": stock.current_price,
            "created_at": stock.created_at,
            "updated_at": stock.updated_at,
        }
