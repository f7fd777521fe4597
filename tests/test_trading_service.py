"""
Tests for buying and selling
"""
import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from classroom_exchange.core.errors import DomainRuleViolation, NotFound, ValidationFailed
from classroom_exchange.models import Holding, Stock, TradingVolume, Transaction, User
from classroom_exchange.services.stock_service import StockService
from classroom_exchange.services.trading_hours import TradingHours
from classroom_exchange.services.trading_service import TradingService


@pytest.fixture
def trading(db_session: Session, trading_hours: TradingHours) -> TradingService:
    return TradingService(db_session, trading_hours)


def cash_of(db: Session, user_id: int) -> float:
    db.expire_all()
    return db.get(User, user_id).cash


def holding_of(db: Session, user_id: int, stock_id: int) -> Holding | None:
    db.expire_all()
    return db.scalar(select(Holding).where(Holding.user_id == user_id, Holding.stock_id == stock_id))


class TestBuy:
    def test_buy_debits_cash_and_creates_holding(
        self, trading: TradingService, student: User, stock: Stock, db_session: Session,
    ):
        tx = trading.buy(student.id, stock.id, 5)

        assert tx.type == "BUY"
        assert tx.price == 10000
        assert tx.total_amount == 50000
        assert cash_of(db_session, student.id) == 950000

        holding = holding_of(db_session, student.id, stock.id)
        assert holding.quantity == 5
        assert holding.avg_price == 10000

    def test_second_buy_averages_cost(
        self, trading: TradingService, student: User, stock: Stock, db_session: Session,
    ):
        trading.buy(student.id, stock.id, 10)
        stock.current_price = 13000
        db_session.commit()

        trading.buy(student.id, stock.id, 5)

        holding = holding_of(db_session, student.id, stock.id)
        assert holding.quantity == 15
        assert holding.avg_price == pytest.approx(11000)
        assert cash_of(db_session, student.id) == 1_000_000 - 100000 - 65000

    def test_insufficient_cash(
        self, trading: TradingService, student: User, make_stock, db_session: Session,
    ):
        expensive = make_stock("LGCH", 120000)

        with pytest.raises(DomainRuleViolation, match="잔액이 부족합니다."):
            trading.buy(student.id, expensive.id, 10)

        assert cash_of(db_session, student.id) == 1_000_000
        assert holding_of(db_session, student.id, expensive.id) is None
        assert db_session.scalars(select(Transaction)).all() == []

    def test_spending_all_cash_is_allowed(
        self, trading: TradingService, student: User, make_stock, db_session: Session,
    ):
        whole = make_stock("WHOL", 100000)

        trading.buy(student.id, whole.id, 10)

        assert cash_of(db_session, student.id) == 0

    def test_buy_records_volume(
        self, trading: TradingService, student: User, stock: Stock, db_session: Session,
    ):
        trading.buy(student.id, stock.id, 7)

        bucket = db_session.scalar(select(TradingVolume).where(TradingVolume.stock_id == stock.id))
        assert bucket.time_window == "2025-12-01 09:00"
        assert bucket.buy_volume == 7

    def test_buy_rejected_when_closed(
        self, trading: TradingService, student: User, stock: Stock, db_session: Session, market_closed,
    ):
        with pytest.raises(DomainRuleViolation, match="거래 가능 시간이 아닙니다"):
            trading.buy(student.id, stock.id, 1)

        assert cash_of(db_session, student.id) == 1_000_000

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_rejects_non_positive_quantity(
        self, trading: TradingService, student: User, stock: Stock, quantity: int,
    ):
        with pytest.raises(ValidationFailed):
            trading.buy(student.id, stock.id, quantity)

    def test_unknown_stock(self, trading: TradingService, student: User):
        with pytest.raises(NotFound):
            trading.buy(student.id, 999, 1)

    def test_unknown_user(self, trading: TradingService, stock: Stock):
        with pytest.raises(NotFound):
            trading.buy(999, stock.id, 1)


class TestSell:
    def test_round_trip_restores_cash(
        self, trading: TradingService, student: User, stock: Stock, db_session: Session,
    ):
        trading.buy(student.id, stock.id, 5)
        tx = trading.sell(student.id, stock.id, 5)

        assert tx.type == "SELL"
        assert tx.total_amount == 50000
        assert cash_of(db_session, student.id) == 1_000_000
        assert holding_of(db_session, student.id, stock.id) is None

    def test_partial_sell_keeps_average(
        self, trading: TradingService, student: User, stock: Stock, db_session: Session,
    ):
        trading.buy(student.id, stock.id, 10)
        stock.current_price = 15000
        db_session.commit()

        trading.sell(student.id, stock.id, 4)

        holding = holding_of(db_session, student.id, stock.id)
        assert holding.quantity == 6
        assert holding.avg_price == 10000
        assert cash_of(db_session, student.id) == 1_000_000 - 100000 + 60000

    def test_cannot_sell_more_than_held(
        self, trading: TradingService, student: User, stock: Stock, db_session: Session,
    ):
        trading.buy(student.id, stock.id, 2)

        with pytest.raises(DomainRuleViolation, match="보유 수량이 부족합니다."):
            trading.sell(student.id, stock.id, 3)

        assert holding_of(db_session, student.id, stock.id).quantity == 2

    def test_cannot_sell_without_holding(self, trading: TradingService, student: User, stock: Stock):
        with pytest.raises(DomainRuleViolation):
            trading.sell(student.id, stock.id, 1)

    def test_sell_records_volume(
        self, trading: TradingService, student: User, stock: Stock, db_session: Session,
    ):
        trading.buy(student.id, stock.id, 8)
        trading.sell(student.id, stock.id, 3)

        db_session.expire_all()
        bucket = db_session.scalar(select(TradingVolume).where(TradingVolume.stock_id == stock.id))
        assert bucket.buy_volume == 8
        assert bucket.sell_volume == 3
        assert bucket.net_volume == 5

    def test_sell_rejected_when_closed(
        self, trading: TradingService, student: User, stock: Stock, db_session: Session, clock,
    ):
        trading.buy(student.id, stock.id, 2)
        clock.moment = clock.moment.replace(minute=30)

        with pytest.raises(DomainRuleViolation):
            trading.sell(student.id, stock.id, 1)


class TestQueries:
    def test_holdings_with_profit(
        self, trading: TradingService, student: User, stock: Stock, db_session: Session,
    ):
        trading.buy(student.id, stock.id, 10)
        stock.current_price = 11000
        db_session.commit()

        holdings = trading.holdings(student.id)

        assert len(holdings) == 1
        assert holdings[0]["code"] == "SAMS"
        assert holdings[0]["profit"] == pytest.approx(10000)
        assert holdings[0]["profit_rate"] == pytest.approx(10.0)

    def test_transactions_newest_first(self, trading: TradingService, student: User, stock: Stock):
        trading.buy(student.id, stock.id, 3)
        trading.sell(student.id, stock.id, 1)

        history = trading.transactions(student.id)

        assert [tx["type"] for tx in history] == ["SELL", "BUY"]
        assert history[0]["code"] == "SAMS"

    def test_transactions_limited(self, trading: TradingService, student: User, stock: Stock):
        for _ in range(3):
            trading.buy(student.id, stock.id, 1)

        assert len(trading.transactions(student.id, limit=2)) == 2

    def test_log_keeps_trades_of_delisted_stock(
        self, trading: TradingService, student: User, stock: Stock, db_session: Session,
    ):
        trading.buy(student.id, stock.id, 2)
        trading.sell(student.id, stock.id, 2)

        StockService(db_session).delete_stock(stock.id)
        history = trading.transactions(student.id)

        assert [tx["type"] for tx in history] == ["SELL", "BUY"]
        assert history[0]["code"] is None
        assert history[0]["total_amount"] == 20000


class TestVolumeFailure:
    """Volume aggregation is best effort; the trade stands when it fails."""

    @pytest.fixture
    def break_volumes(self, trading: TradingService, monkeypatch):
        def fail(*args, **kwargs):
            raise OperationalError("UPDATE trading_volume", {}, Exception("database is locked"))

        return lambda: monkeypatch.setattr(trading.volumes, "_increment", fail)

    def test_buy_commits_when_volume_fails(
        self, trading: TradingService, student: User, stock: Stock, db_session: Session,
        break_volumes, caplog,
    ):
        break_volumes()

        tx = trading.buy(student.id, stock.id, 3)

        assert tx.total_amount == 30000
        assert cash_of(db_session, student.id) == 970000
        assert holding_of(db_session, student.id, stock.id).quantity == 3
        assert len(db_session.scalars(select(Transaction)).all()) == 1
        assert db_session.scalars(select(TradingVolume)).all() == []
        assert "record_trade failed" in caplog.text

    def test_sell_commits_when_volume_fails(
        self, trading: TradingService, student: User, stock: Stock, db_session: Session,
        break_volumes,
    ):
        trading.buy(student.id, stock.id, 3)
        break_volumes()

        trading.sell(student.id, stock.id, 1)

        assert cash_of(db_session, student.id) == 980000
        assert holding_of(db_session, student.id, stock.id).quantity == 2
        types = [tx.type for tx in db_session.scalars(select(Transaction).order_by(Transaction.id)).all()]
        assert types == ["BUY", "SELL"]
