from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from .common import CamelModel

Side = Literal["BUY", "SELL"]


class TradeRequest(CamelModel):
    user_id: int
    stock_id: int
    quantity: int = Field(..., gt=0)


class TradeResponse(BaseModel):
    success: bool = True
    message: str
    transaction_id: int
    price: int
    total_amount: int


class TransactionOut(BaseModel):
    id: int
    user_id: int
    stock_id: int
    type: Side
    quantity: int
    price: int
    total_amount: int
    created_at: datetime
    code: Optional[str] = None
    name: Optional[str] = None


class TransactionListResponse(BaseModel):
    transactions: list[TransactionOut]


class HoldingOut(BaseModel):
    user_id: int
    stock_id: int
    quantity: int
    avg_price: float
    code: str
    name: str
    current_price: int
    profit: float
    profit_rate: float


class HoldingListResponse(BaseModel):
    user_stocks: list[HoldingOut] = Field(..., serialization_alias="userStocks")


class TradingStatusResponse(CamelModel):
    allowed: bool
    is_beta: bool
    message: str
    current_time: datetime
    closes_at: Optional[datetime] = None
    next_open_at: Optional[datetime] = None
