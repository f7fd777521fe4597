from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .common import CamelModel


class LoginIn(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RegisterIn(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=4, max_length=72)
    name: str = Field(..., min_length=1, max_length=64)


class ChangePasswordIn(CamelModel):
    user_id: int
    old_password: str
    new_password: str = Field(..., min_length=4, max_length=72)


class UserOut(BaseModel):
    id: int
    username: str
    name: str
    user_type: str
    cash: float
    password_changed: bool

    model_config = ConfigDict(from_attributes=True)


class UserEnvelope(BaseModel):
    user: UserOut


class AdminOut(BaseModel):
    id: int
    username: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AdminEnvelope(BaseModel):
    admin: AdminOut


class LeaderboardEntry(BaseModel):
    id: int
    username: str
    name: str
    cash: float
    stock_value: float
    total_assets: float


class LeaderboardResponse(BaseModel):
    users: list[LeaderboardEntry]


class ResetAllUsersIn(CamelModel):
    admin_username: str
    confirm_password: str
