from .user import User
from .admin import Admin
from .stock import Stock
from .price_history import PriceHistory
from .pending_price_update import PendingPriceUpdate
from .trading_volume import TradingVolume
from .price_impact_settings import PriceImpactSettings
from .holding import Holding
from .transaction import Transaction
from .news import News, NewsView

__all__ = [
    "User",
    "Admin",
    "Stock",
    "PriceHistory",
    "PendingPriceUpdate",
    "TradingVolume",
    "PriceImpactSettings",
    "Holding",
    "Transaction",
    "News",
    "NewsView",
]
