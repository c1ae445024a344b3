from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

class Address(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    label: str = Field(default="Home")
    name: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    pincode: str = ""
    country: str = Field(default="India")
    is_default: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)
