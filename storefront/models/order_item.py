from sqlmodel import SQLModel, Field , Relationship
from typing import Optional , TYPE_CHECKING

if TYPE_CHECKING:
    from storefront.models.order import Order

class OrderItem(SQLModel, table=True):
    __tablename__ = "order_item"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: str = Field(foreign_key="orders.id", index=True)
    position: int = 0

    # snapshot of the cart line, never joined back to the catalog
    product_reference: Optional[str] = None
    design_name: str
    design_code: str
    unit_price: float
    quantity: int
    image_url: str = ""

    order: Optional["Order"] = Relationship(back_populates="items")
