"""
Tests for hourly volume aggregation
"""
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from classroom_exchange.models import Stock, TradingVolume
from classroom_exchange.services.trading_hours import TradingHours
from classroom_exchange.services.volume_service import VolumeService

KST = ZoneInfo("Asia/Seoul")


@pytest.fixture
def volume_service(db_session: Session, trading_hours: TradingHours) -> VolumeService:
    return VolumeService(db_session, trading_hours)


def buckets(db: Session, stock_id: int) -> list[TradingVolume]:
    db.expire_all()
    return list(db.scalars(
        select(TradingVolume).where(TradingVolume.stock_id == stock_id).order_by(TradingVolume.time_window)
    ).all())


class TestRecordTrade:
    def test_first_trade_creates_bucket(self, volume_service: VolumeService, stock: Stock, db_session: Session):
        volume_service.record_trade(stock.id, "BUY", 5)

        rows = buckets(db_session, stock.id)
        assert len(rows) == 1
        assert rows[0].time_window == "2025-12-01 09:00"
        assert rows[0].buy_volume == 5
        assert rows[0].sell_volume == 0
        assert rows[0].net_volume == 5
        assert rows[0].price_before == 10000
        assert rows[0].applied_at is None

    def test_trades_accumulate_in_same_hour(
        self, volume_service: VolumeService, stock: Stock, db_session: Session
    ):
        volume_service.record_trade(stock.id, "BUY", 80)
        volume_service.record_trade(stock.id, "SELL", 20)
        volume_service.record_trade(stock.id, "BUY", 3)

        rows = buckets(db_session, stock.id)
        assert len(rows) == 1
        assert rows[0].buy_volume == 83
        assert rows[0].sell_volume == 20
        assert rows[0].net_volume == 63

    def test_price_before_is_fixed_at_creation(
        self, volume_service: VolumeService, stock: Stock, db_session: Session
    ):
        volume_service.record_trade(stock.id, "BUY", 1)
        stock.current_price = 12000
        db_session.commit()
        volume_service.record_trade(stock.id, "SELL", 1)

        assert buckets(db_session, stock.id)[0].price_before == 10000

    def test_new_hour_opens_new_bucket(self, volume_service: VolumeService, stock: Stock, db_session: Session):
        volume_service.record_trade(stock.id, "BUY", 1, now=datetime(2025, 12, 1, 9, 15, tzinfo=KST))
        volume_service.record_trade(stock.id, "BUY", 1, now=datetime(2025, 12, 1, 10, 15, tzinfo=KST))

        assert [row.time_window for row in buckets(db_session, stock.id)] == [
            "2025-12-01 09:00",
            "2025-12-01 10:00",
        ]

    def test_missing_stock_is_logged_not_raised(
        self, volume_service: VolumeService, db_session: Session, caplog
    ):
        volume_service.record_trade(999, "BUY", 1)

        assert buckets(db_session, 999) == []
        assert "stock not found" in caplog.text

    def test_database_error_is_logged_not_raised(
        self, volume_service: VolumeService, stock: Stock, db_session: Session, monkeypatch, caplog
    ):
        volume_service.record_trade(stock.id, "BUY", 2)

        def fail(*args, **kwargs):
            raise OperationalError("UPDATE trading_volume", {}, Exception("database is locked"))

        monkeypatch.setattr(volume_service, "_increment", fail)
        volume_service.record_trade(stock.id, "BUY", 5)

        assert buckets(db_session, stock.id)[0].buy_volume == 2
        assert "record_trade failed" in caplog.text


class TestQueries:
    def test_current_volumes(self, volume_service: VolumeService, stock: Stock, make_stock):
        other = make_stock("AAAA", 500)
        volume_service.record_trade(stock.id, "BUY", 4)
        volume_service.record_trade(other.id, "SELL", 2)
        volume_service.record_trade(other.id, "BUY", 1, now=datetime(2025, 12, 1, 8, 5, tzinfo=KST))

        result = volume_service.current_volumes()

        assert result["timeWindow"] == "2025-12-01 09:00"
        assert [row["code"] for row in result["volumes"]] == ["AAAA", "SAMS"]
        assert result["volumes"][0]["net_volume"] == -2
        assert result["volumes"][1]["current_price"] == 10000

    def test_history_newest_first(self, volume_service: VolumeService, stock: Stock):
        for hour in (8, 9, 10):
            volume_service.record_trade(stock.id, "BUY", hour, now=datetime(2025, 12, 1, hour, 5, tzinfo=KST))

        history = volume_service.history(stock.id)

        assert [row["time_window"] for row in history] == [
            "2025-12-01 10:00",
            "2025-12-01 09:00",
            "2025-12-01 08:00",
        ]
        assert history[0]["buy_volume"] == 10
