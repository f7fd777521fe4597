"""
Stock Schemas for API Request/Response
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict

from .common import CamelModel


class StockBase(BaseModel):
    """Base stock schema."""
    code: str = Field(..., min_length=1, max_length=16, description="Ticker code (e.g., SAMS)")
    name: str = Field(..., min_length=1, max_length=128, description="Company name")
    current_price: int = Field(..., gt=0, description="Current stock price")


class StockCreate(CamelModel):
    """Schema for listing a new stock (admin only)."""
    code: str = Field(..., min_length=1, max_length=16)
    name: str = Field(..., min_length=1, max_length=128)
    price: int = Field(..., gt=0)
    admin_username: str


class StockResponse(StockBase):
    """Schema for stock response."""
    id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StockListItem(StockResponse):
    """Board row with the derived price fields."""
    pending_price: Optional[int] = None
    previous_price: int


class StockListResponse(BaseModel):
    stocks: list[StockListItem]


class PriceHistoryResponse(BaseModel):
    id: int
    stock_id: int
    price: int
    changed_by: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StockDetailResponse(BaseModel):
    stock: StockResponse
    history: list[PriceHistoryResponse]


class PriceUpdateRequest(CamelModel):
    """Admin price edit; queued when trading is closed unless forced."""
    price: int = Field(..., gt=0)
    admin_username: str
    force_apply: bool = False


class PriceUpdateStock(StockResponse):
    pending_price: Optional[int] = None


class PriceUpdateResponse(BaseModel):
    stock: PriceUpdateStock
    message: str
    applied: bool
    forced: bool = False
    pending: bool = False


class PendingPriceUpdateResponse(BaseModel):
    id: int
    stock_id: int
    new_price: int
    changed_by: str
    status: str
    created_at: datetime
    code: str
    name: str
    current_price: int


class PendingListResponse(BaseModel):
    pending: list[PendingPriceUpdateResponse]


class ApplyPendingResponse(BaseModel):
    success: bool = True
    message: str
    applied_count: int = Field(..., serialization_alias="appliedCount")
