"""
News Schemas for API Request/Response
"""
from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from .common import CamelModel


class NewsBase(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    admin_username: str


class FreeNewsCreate(NewsBase):
    """Free article, readable by everyone."""
    type: Literal["FREE"]


class PremiumNewsCreate(NewsBase):
    """Premium article, readable after purchase."""
    type: Literal["PREMIUM"]
    price: int = Field(..., gt=0)


NewsCreate = Annotated[Union[FreeNewsCreate, PremiumNewsCreate], Field(discriminator="type")]


class NewsOut(BaseModel):
    """Article as seen by a particular viewer."""
    id: int
    title: str
    content: str
    type: Literal["FREE", "PREMIUM"]
    price: int
    created_by: str
    created_at: datetime
    purchased: bool = True


class NewsListResponse(BaseModel):
    news: list[NewsOut]


class NewsEnvelope(BaseModel):
    news: NewsOut


class NewsDetailResponse(BaseModel):
    news: NewsOut
    purchased: bool


class NewsPurchaseRequest(CamelModel):
    news_id: int
    user_id: int


class NewsPurchaseResponse(BaseModel):
    success: bool = True
    message: str
    news: NewsOut


class AdminActionRequest(CamelModel):
    admin_username: str
