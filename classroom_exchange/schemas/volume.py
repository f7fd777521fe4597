from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .common import CamelModel


class VolumeBucket(BaseModel):
    id: int
    stock_id: int
    time_window: str
    buy_volume: int
    sell_volume: int
    net_volume: int
    price_before: int
    price_after: Optional[int] = None
    applied_at: Optional[datetime] = None
    code: str
    name: str
    current_price: Optional[int] = None


class CurrentVolumeResponse(CamelModel):
    time_window: str
    volumes: list[VolumeBucket]


class VolumeHistoryResponse(BaseModel):
    history: list[VolumeBucket]


class VolumeUpdateRequest(CamelModel):
    time_window: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}-\d{2} \d{2}:00$")


class VolumeUpdateResponse(CamelModel):
    updated: int
    skipped: int
    failed: int
    time_window: str
    message: str


class ImpactSettingsRequest(CamelModel):
    impact_rate: float = Field(..., gt=0)
    max_change_rate: float = Field(..., gt=0, lt=1)
    min_volume: int = Field(..., ge=0)
    admin_username: str


class ImpactSettingsOut(BaseModel):
    stock_id: int
    impact_rate: float
    max_change_rate: float
    min_volume: int
    updated_at: datetime
    code: str
    name: str


class ImpactSettingsListResponse(BaseModel):
    settings: list[ImpactSettingsOut]


class ImpactParametersOut(BaseModel):
    """Effective parameters for one stock, defaults when none are stored."""
    stock_id: int
    impact_rate: float
    max_change_rate: float
    min_volume: int
