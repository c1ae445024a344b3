from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    phone: str = ""
    provider: str = Field(default="credentials")
    created_at: datetime = Field(default_factory=datetime.utcnow)


class UserOrderLink(SQLModel, table=True):
    """Orders placed by a signed-in user. The composite key gives set semantics."""

    __tablename__ = "user_order"

    user_id: int = Field(foreign_key="user.id", primary_key=True)
    order_id: str = Field(foreign_key="orders.id", primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
