import logging
import os

from sqlalchemy.orm import Session

from classroom_exchange.core.errors import DomainRuleViolation
from classroom_exchange.db.session import SessionLocal, init_db
from classroom_exchange.models.price_history import PriceHistory
from classroom_exchange.models.stock import Stock
from classroom_exchange.services.account_service import AccountService

logger = logging.getLogger(__name__)

DEFAULT_STOCKS = [
    ("SAMS", "삼성전자", 70000),
    ("HYDM", "현대자동차", 180000),
    ("KAKO", "카카오", 50000),
    ("NAVR", "네이버", 200000),
    ("LGCH", "LG화학", 400000),
]


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    init_db()

    db: Session = SessionLocal()
    try:
        for code, name, price in DEFAULT_STOCKS:
            existing = db.query(Stock).filter(Stock.code == code).first()
            if existing:
                continue
            stock = Stock(code=code, name=name, current_price=price)
            db.add(stock)
            db.flush()
            db.add(PriceHistory(stock_id=stock.id, price=price, changed_by="SEED"))

        db.commit()

        admin_username = os.environ.get("SEED_ADMIN_USERNAME", "admin")
        try:
            AccountService(db).create_admin(admin_username, os.environ.get("SEED_ADMIN_PASSWORD", "admin1234"))
        except DomainRuleViolation:
            logger.info(f"Admin '{admin_username}' already exists")
        logger.info(f"Seeded {len(DEFAULT_STOCKS)} stocks and admin '{admin_username}'")
    finally:
        db.close()


if __name__ == "__main__":
    main()
