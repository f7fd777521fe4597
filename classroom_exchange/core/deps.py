from classroom_exchange.db.session import get_db
from classroom_exchange.services.trading_hours import get_trading_hours

__all__ = ["get_db", "get_trading_hours"]
