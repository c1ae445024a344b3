from typing import Iterable, List, Optional

from storefront.errors import ValidationError
from storefront.schemas.order_schemas import OrderItemIn
from storefront.utils.money import round_money


def _line_key(line: OrderItemIn) -> str:
    return line.product_reference or f"code:{line.design_code}"


class Cart:
    """
    Client-held working set of cart lines, unique by product reference.

    Subtotal and count are always derived from the lines.
    """

    def __init__(self, lines: Optional[Iterable[OrderItemIn]] = None):
        self._lines: List[OrderItemIn] = []
        for line in lines or []:
            self.add(line)

    @property
    def lines(self) -> List[OrderItemIn]:
        return list(self._lines)

    @property
    def count(self) -> int:
        return sum(line.quantity for line in self._lines)

    @property
    def subtotal(self) -> float:
        total = sum(round_money(line.unit_price) * line.quantity for line in self._lines)
        return float(round_money(total))

    def is_empty(self) -> bool:
        return not self._lines

    def _find(self, key: str) -> Optional[int]:
        for index, line in enumerate(self._lines):
            if _line_key(line) == key:
                return index
        return None

    def add(self, line: OrderItemIn):
        index = self._find(_line_key(line))
        if index is None:
            self._lines.append(line.model_copy())
            return
        existing = self._lines[index]
        self._lines[index] = existing.model_copy(
            update={"quantity": existing.quantity + line.quantity}
        )

    def remove(self, key: str):
        self._lines = [line for line in self._lines if _line_key(line) != key]

    def increase(self, key: str):
        index = self._find(key)
        if index is not None:
            line = self._lines[index]
            self._lines[index] = line.model_copy(update={"quantity": line.quantity + 1})

    def decrease(self, key: str):
        # dropping below one removes the line
        index = self._find(key)
        if index is None:
            return
        line = self._lines[index]
        if line.quantity <= 1:
            self.remove(key)
        else:
            self._lines[index] = line.model_copy(update={"quantity": line.quantity - 1})

    def clear(self):
        self._lines = []

    def validate_for_checkout(self):
        if self.is_empty():
            raise ValidationError("Cart is empty")

        for line in self._lines:
            if line.quantity < 1:
                raise ValidationError(f"Quantity for {line.design_code} must be at least 1")
            if line.unit_price < 0:
                raise ValidationError(f"Price for {line.design_code} cannot be negative")
