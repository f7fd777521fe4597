from .common import CamelModel, MessageResponse
from .stock import (
    StockCreate,
    StockResponse,
    StockListResponse,
    StockDetailResponse,
    PriceUpdateRequest,
    PriceUpdateResponse,
)
from .trading import TradeRequest, TradeResponse, TradingStatusResponse
from .news import NewsCreate, NewsOut, NewsPurchaseRequest

__all__ = [
    "CamelModel",
    "MessageResponse",
    "StockCreate",
    "StockResponse",
    "StockListResponse",
    "StockDetailResponse",
    "PriceUpdateRequest",
    "PriceUpdateResponse",
    "TradeRequest",
    "TradeResponse",
    "TradingStatusResponse",
    "NewsCreate",
    "NewsOut",
    "NewsPurchaseRequest",
]
