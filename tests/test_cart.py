import pytest

from storefront.errors import ValidationError
from storefront.schemas.order_schemas import OrderItemIn
from storefront.services.cart import Cart


def _line(code, price, qty=1, product=None):
    return OrderItemIn.model_validate({
        "productReference": product,
        "designName": f"Design {code}",
        "designCode": code,
        "price": price,
        "qty": qty,
    })


class TestCart:
    def test_adding_same_product_merges_quantity(self):
        cart = Cart()
        cart.add(_line("GX-1", 500, product="p1"))
        cart.add(_line("GX-1", 500, qty=2, product="p1"))

        assert len(cart.lines) == 1
        assert cart.count == 3
        assert cart.subtotal == 1500

    def test_lines_without_product_reference_are_keyed_by_design_code(self):
        cart = Cart([_line("GX-1", 100), _line("GX-1", 100), _line("GX-2", 50)])

        assert len(cart.lines) == 2
        assert cart.count == 3
        assert cart.subtotal == 250

    def test_increase_and_decrease(self):
        cart = Cart([_line("GX-1", 120, product="p1")])
        cart.increase("p1")
        assert cart.count == 2

        cart.decrease("p1")
        cart.decrease("p1")
        assert cart.is_empty()

    def test_remove_and_clear(self):
        cart = Cart([_line("GX-1", 10, product="p1"), _line("GX-2", 20, product="p2")])
        cart.remove("p1")
        assert [line.product_reference for line in cart.lines] == ["p2"]

        cart.clear()
        assert cart.is_empty()
        assert cart.subtotal == 0

    def test_subtotal_rounds_to_cents(self):
        cart = Cart([_line("GX-1", 0.1, qty=3)])
        assert cart.subtotal == 0.3

    def test_empty_cart_cannot_check_out(self):
        with pytest.raises(ValidationError, match="Cart is empty"):
            Cart().validate_for_checkout()

    def test_zero_quantity_cannot_check_out(self):
        cart = Cart([_line("GX-1", 100, qty=0)])
        with pytest.raises(ValidationError, match="at least 1"):
            cart.validate_for_checkout()
