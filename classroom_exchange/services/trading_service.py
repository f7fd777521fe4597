"""
Trading Service
Executes buy/sell orders against the current stock price.
"""
import logging
from datetime import datetime
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from classroom_exchange.core.errors import DomainRuleViolation, NotFound, ValidationFailed
from classroom_exchange.models.holding import Holding
from classroom_exchange.models.stock import Stock
from classroom_exchange.models.transaction import Transaction
from classroom_exchange.models.user import User
from classroom_exchange.services.trading_hours import TradingHours
from classroom_exchange.services.volume_service import VolumeService

logger = logging.getLogger(__name__)

TRANSACTION_LIMIT = 50


class TradingService:
    def __init__(self, db: Session, trading_hours: TradingHours):
        self.db = db
        self.trading_hours = trading_hours
        self.volumes = VolumeService(db, trading_hours)

    def _check_open(self, quantity: int) -> None:
        if quantity <= 0:
            raise ValidationFailed("수량은 1 이상이어야 합니다.")
        status = self.trading_hours.status()
        if not status.allowed:
            raise DomainRuleViolation(status.message)

    def _holding(self, user_id: int, stock_id: int) -> Holding | None:
        return self.db.scalar(
            select(Holding).where(Holding.user_id == user_id, Holding.stock_id == stock_id)
        )

    def buy(self, user_id: int, stock_id: int, quantity: int) -> Transaction:
        self._check_open(quantity)

        user = self.db.get(User, user_id)
        if user is None:
            raise NotFound("사용자를 찾을 수 없습니다.")
        stock = self.db.get(Stock, stock_id)
        if stock is None:
            raise NotFound("주식을 찾을 수 없습니다.")

        price = stock.current_price
        total_amount = price * quantity
        if user.cash < total_amount:
            raise DomainRuleViolation("잔액이 부족합니다.")

        now = datetime.utcnow()
        tx = Transaction(
            user_id=user_id,
            stock_id=stock_id,
            type="BUY",
            quantity=quantity,
            price=price,
            total_amount=total_amount,
            created_at=now,
        )
        self.db.add(tx)
        user.cash = User.cash - total_amount

        holding = self._holding(user_id, stock_id)
        if holding:
            total_quantity = holding.quantity + quantity
            holding.avg_price = (holding.avg_price * holding.quantity + price * quantity) / total_quantity
            holding.quantity = total_quantity
            holding.updated_at = now
        else:
            self.db.add(Holding(
                user_id=user_id,
                stock_id=stock_id,
                quantity=quantity,
                avg_price=float(price),
                created_at=now,
                updated_at=now,
            ))

        self.db.commit()
        self.db.refresh(tx)
        logger.info(f"User {user_id} bought {quantity} x {stock.code} @ {price}")

        self.volumes.record_trade(stock_id, "BUY", quantity)
        return tx

    def sell(self, user_id: int, stock_id: int, quantity: int) -> Transaction:
        self._check_open(quantity)

        holding = self._holding(user_id, stock_id)
        if holding is None or holding.quantity < quantity:
            raise DomainRuleViolation("보유 수량이 부족합니다.")

        stock = self.db.get(Stock, stock_id)
        if stock is None:
            raise NotFound("주식을 찾을 수 없습니다.")
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFound("사용자를 찾을 수 없습니다.")

        price = stock.current_price
        total_amount = price * quantity
        now = datetime.utcnow()
        tx = Transaction(
            user_id=user_id,
            stock_id=stock_id,
            type="SELL",
            quantity=quantity,
            price=price,
            total_amount=total_amount,
            created_at=now,
        )
        self.db.add(tx)
        user.cash = User.cash + total_amount

        remaining = holding.quantity - quantity
        if remaining == 0:
            self.db.delete(holding)
        else:
            # average cost is unchanged by a sale
            holding.quantity = remaining
            holding.updated_at = now

        self.db.commit()
        self.db.refresh(tx)
        logger.info(f"User {user_id} sold {quantity} x {stock.code} @ {price}")

        self.volumes.record_trade(stock_id, "SELL", quantity)
        return tx

    def holdings(self, user_id: int) -> List[dict]:
        rows = self.db.execute(
            select(Holding, Stock)
            .join(Stock, Stock.id == Holding.stock_id)
            .where(Holding.user_id == user_id, Holding.quantity > 0)
            .order_by(Stock.code)
        ).all()
        result = []
        for holding, stock in rows:
            profit = (stock.current_price - holding.avg_price) * holding.quantity
            profit_rate = (stock.current_price - holding.avg_price) / holding.avg_price * 100
            result.append({
                "user_id": holding.user_id,
                "stock_id": holding.stock_id,
                "quantity": holding.quantity,
                "avg_price": holding.avg_price,
                "code": stock.code,
                "name": stock.name,
                "current_price": stock.current_price,
                "profit": profit,
                "profit_rate": profit_rate,
            })
        return result

    def transactions(self, user_id: int, limit: int = TRANSACTION_LIMIT) -> List[dict]:
        rows = self.db.execute(
            select(Transaction, Stock)
            # the log outlives delisted stocks
            .outerjoin(Stock, Stock.id == Transaction.stock_id)
            .where(Transaction.user_id == user_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .limit(limit)
        ).all()
        return [
            {
                "id": tx.id,
                "user_id": tx.user_id,
                "stock_id": tx.stock_id,
                "type": tx.type,
                "quantity": tx.quantity,
                "price": tx.price,
                "total_amount": tx.total_amount,
                "created_at": tx.created_at,
                "code": stock.code if stock else None,
                "name": stock.name if stock else None,
            }
            for tx, stock in rows
        ]
