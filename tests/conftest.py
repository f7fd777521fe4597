import os
import sys
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

# settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["EVENTS_ENABLED"] = "false"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["TRADING_ALWAYS_OPEN"] = "false"

# Add the parent directory to the path so we can import project modules
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from classroom_exchange.core.deps import get_db, get_trading_hours
from classroom_exchange.core.security import hash_password
from classroom_exchange.db.base import Base
from classroom_exchange.main import app
from classroom_exchange.models import Admin, PriceHistory, Stock, User
from classroom_exchange.services.trading_hours import TradingHours, TradingWindow

KST = ZoneInfo("Asia/Seoul")
OPEN_TIME = datetime(2025, 12, 1, 9, 15, tzinfo=KST)    # inside 09:10~09:20
CLOSED_TIME = datetime(2025, 12, 1, 9, 30, tzinfo=KST)  # between windows

WINDOWS = [
    "08:00-08:20", "09:10-09:20", "10:10-10:20", "11:10-11:20",
    "12:10-12:20", "13:00-13:10", "14:00-14:10", "15:00-15:10",
]

ADMIN_PASSWORD = "admin-pass"
STUDENT_PASSWORD = "student-pass"


class FakeClock:
    """Settable clock for the trading-hours evaluator."""

    def __init__(self, moment: datetime):
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(OPEN_TIME)


@pytest.fixture
def trading_hours(clock: FakeClock) -> TradingHours:
    return TradingHours(
        windows=[TradingWindow.parse(spec) for spec in WINDOWS],
        tz="Asia/Seoul",
        clock=clock,
    )


@pytest.fixture
def market_closed(clock: FakeClock) -> FakeClock:
    clock.moment = CLOSED_TIME
    return clock


@pytest.fixture(scope="function")
def db_session() -> Session:
    """Create a fresh database session for each test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = SessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def admin(db_session: Session) -> Admin:
    admin = Admin(username="mr_park", password_hash=hash_password(ADMIN_PASSWORD))
    db_session.add(admin)
    db_session.commit()
    db_session.refresh(admin)
    return admin


@pytest.fixture
def student(db_session: Session) -> User:
    user = User(
        username="student1",
        password_hash=hash_password(STUDENT_PASSWORD),
        name="Kim",
        cash=1_000_000.0,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def add_stock(db: Session, code: str, price: int, name: str | None = None) -> Stock:
    stock = Stock(code=code, name=name or f"{code} Corp.", current_price=price)
    db.add(stock)
    db.flush()
    db.add(PriceHistory(stock_id=stock.id, price=price, changed_by="SEED"))
    db.commit()
    db.refresh(stock)
    return stock


@pytest.fixture
def make_stock(db_session: Session):
    def _make(code: str, price: int, name: str | None = None) -> Stock:
        return add_stock(db_session, code, price, name)
    return _make


@pytest.fixture
def stock(db_session: Session) -> Stock:
    return add_stock(db_session, "SAMS", 10000, name="Samsung")


@pytest.fixture
def client(db_session: Session, trading_hours: TradingHours):
    """Test client sharing the test session and clock."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_trading_hours] = lambda: trading_hours
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
