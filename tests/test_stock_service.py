"""
Tests for Stock Service
"""
import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from classroom_exchange.core.errors import DomainRuleViolation, NotFound, ValidationFailed
from classroom_exchange.models import Holding, PendingPriceUpdate, PriceHistory, Stock, TradingVolume
from classroom_exchange.models.pending_price_update import FAILED
from classroom_exchange.services.stock_service import StockService


@pytest.fixture
def stock_service(db_session: Session) -> StockService:
    """Create a StockService instance with a test database session."""
    return StockService(db_session)


class TestGetStock:
    """Tests for lookups."""

    def test_get_existing_stock(self, stock_service: StockService, stock: Stock):
        """Test retrieving an existing stock."""
        result = stock_service.get_stock(stock.id)

        assert result is not None
        assert result.code == "SAMS"
        assert result.name == "Samsung"
        assert result.current_price == 10000

    def test_get_nonexistent_stock(self, stock_service: StockService):
        """Test retrieving a stock that doesn't exist."""
        assert stock_service.get_stock(999) is None

    def test_require_stock_raises(self, stock_service: StockService):
        with pytest.raises(NotFound):
            stock_service.require_stock(999)

    def test_get_by_code_is_case_insensitive(self, stock_service: StockService, stock: Stock):
        assert stock_service.get_by_code("sams").id == stock.id


class TestListStocks:
    """Tests for the board listing."""

    def test_list_empty(self, stock_service: StockService):
        assert stock_service.list_stocks() == []

    def test_list_ordered_by_id(self, stock_service: StockService, make_stock):
        make_stock("ZZZZ", 100)
        make_stock("AAAA", 200)

        codes = [row["code"] for row in stock_service.list_stocks()]

        assert codes == ["ZZZZ", "AAAA"]

    def test_previous_price_defaults_to_current(self, stock_service: StockService, stock: Stock):
        """A stock with a single history row has no earlier price."""
        row = stock_service.list_stocks()[0]

        assert row["previous_price"] == 10000
        assert row["pending_price"] is None

    def test_previous_price_after_change(
        self, stock_service: StockService, stock: Stock, db_session: Session
    ):
        stock_service.set_price(stock, 10500, "mr_park")
        db_session.commit()

        row = stock_service.list_stocks()[0]

        assert row["current_price"] == 10500
        assert row["previous_price"] == 10000

    def test_pending_price_shown(self, stock_service: StockService, stock: Stock, db_session: Session):
        db_session.add(PendingPriceUpdate(stock_id=stock.id, new_price=12000, changed_by="mr_park"))
        db_session.commit()

        row = stock_service.list_stocks()[0]

        assert row["pending_price"] == 12000
        assert row["current_price"] == 10000

    def test_list_with_query(self, stock_service: StockService, make_stock):
        make_stock("SAMS", 70000, name="Samsung Electronics")
        make_stock("KAKO", 50000, name="Kakao")

        rows = stock_service.list_stocks("kak")

        assert [row["code"] for row in rows] == ["KAKO"]


class TestSearchStocks:
    """Tests for search_stocks method."""

    def test_search_by_code(self, stock_service: StockService, make_stock):
        make_stock("NAVR", 200000, name="Naver")
        make_stock("HYDM", 180000, name="Hyundai Motor")

        results = stock_service.search_stocks("NAV")

        assert len(results) == 1
        assert results[0].code == "NAVR"

    def test_search_by_name(self, stock_service: StockService, make_stock):
        make_stock("HYDM", 180000, name="Hyundai Motor")

        results = stock_service.search_stocks("motor")

        assert len(results) == 1
        assert results[0].code == "HYDM"

    def test_search_no_results(self, stock_service: StockService, stock: Stock):
        assert stock_service.search_stocks("NOPE") == []


class TestCreateStock:
    """Tests for create_stock method."""

    def test_create_writes_opening_history(self, stock_service: StockService, db_session: Session):
        stock = stock_service.create_stock("lgch", "LG Chem", 400000, "mr_park")

        assert stock.code == "LGCH"
        history = db_session.scalars(
            select(PriceHistory).where(PriceHistory.stock_id == stock.id)
        ).all()
        assert len(history) == 1
        assert history[0].price == 400000
        assert history[0].changed_by == "mr_park"

    def test_create_duplicate_code(self, stock_service: StockService, stock: Stock):
        with pytest.raises(DomainRuleViolation):
            stock_service.create_stock("SAMS", "Other", 100, "mr_park")

    @pytest.mark.parametrize("price", [0, -5])
    def test_create_rejects_non_positive_price(self, stock_service: StockService, price: int):
        with pytest.raises(ValidationFailed):
            stock_service.create_stock("NEWC", "New Co.", price, "mr_park")


class TestSetPrice:
    """Tests for set_price method."""

    def test_set_price_appends_history(self, stock_service: StockService, stock: Stock, db_session: Session):
        stock_service.set_price(stock, 11000, "mr_park")
        db_session.commit()

        detail = stock_service.get_detail(stock.id)

        assert detail["stock"].current_price == 11000
        assert [h.price for h in detail["history"]] == [11000, 10000]
        assert detail["history"][0].changed_by == "mr_park"

    def test_set_price_rejects_zero(self, stock_service: StockService, stock: Stock):
        with pytest.raises(ValidationFailed):
            stock_service.set_price(stock, 0, "mr_park")


class TestGetDetail:
    def test_history_limited(self, stock_service: StockService, stock: Stock, db_session: Session):
        for i in range(25):
            stock_service.set_price(stock, 10001 + i, "mr_park")
        db_session.commit()

        detail = stock_service.get_detail(stock.id)

        assert len(detail["history"]) == 20
        assert detail["history"][0].price == 10025

    def test_detail_missing_stock(self, stock_service: StockService):
        with pytest.raises(NotFound):
            stock_service.get_detail(999)


class TestDeleteStock:
    """Tests for delete_stock method."""

    def test_delete_removes_history_and_volume(
        self, stock_service: StockService, stock: Stock, db_session: Session
    ):
        stock_id = stock.id
        db_session.add(TradingVolume(
            stock_id=stock_id, time_window="2025-12-01 09:00", price_before=10000,
        ))
        db_session.commit()

        stock_service.delete_stock(stock_id)

        assert stock_service.get_stock(stock_id) is None
        assert db_session.scalars(select(PriceHistory).where(PriceHistory.stock_id == stock_id)).all() == []
        assert db_session.scalars(select(TradingVolume).where(TradingVolume.stock_id == stock_id)).all() == []

    def test_delete_refused_while_held(
        self, stock_service: StockService, stock: Stock, student, db_session: Session
    ):
        db_session.add(Holding(user_id=student.id, stock_id=stock.id, quantity=1, avg_price=10000.0))
        db_session.commit()

        with pytest.raises(DomainRuleViolation):
            stock_service.delete_stock(stock.id)

        assert stock_service.get_stock(stock.id) is not None

    def test_delete_missing_stock(self, stock_service: StockService):
        with pytest.raises(NotFound):
            stock_service.delete_stock(999)

    def test_delete_fails_queued_edit(
        self, stock_service: StockService, stock: Stock, db_session: Session
    ):
        stock_id = stock.id
        db_session.add(PendingPriceUpdate(stock_id=stock_id, new_price=5, changed_by="mr_park"))
        db_session.commit()

        stock_service.delete_stock(stock_id)

        db_session.expire_all()
        rows = db_session.scalars(select(PendingPriceUpdate).where(PendingPriceUpdate.stock_id == stock_id)).all()
        assert [row.status for row in rows] == [FAILED]

    def test_deleted_id_is_not_reused(self, stock_service: StockService, stock: Stock):
        old_id = stock.id
        stock_service.delete_stock(old_id)

        new_stock = stock_service.create_stock("NEWC", "New Co.", 90000, "mr_park")

        assert new_stock.id != old_id
